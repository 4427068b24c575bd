# tests/unit/test_twitch_client.py
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from chatpulse.core.clients.twitch import TwitchClient


@pytest.fixture
def client():
    return TwitchClient(client_id="cid", client_secret="secret")


def _response(status: int, json_data: dict):
    resp = AsyncMock()
    resp.status = status
    resp.json = AsyncMock(return_value=json_data)
    resp.text = AsyncMock(return_value="")
    cm = AsyncMock()
    cm.__aenter__ = AsyncMock(return_value=resp)
    cm.__aexit__ = AsyncMock(return_value=False)
    return cm


def _make_aiohttp_mock(token_status: int, stream_responses: list):
    mock_http = AsyncMock()
    mock_http.post = MagicMock(return_value=_response(token_status, {"access_token": "tok"}))
    mock_http.get = MagicMock(side_effect=[_response(s, d) for s, d in stream_responses])

    mock_session_cm = AsyncMock()
    mock_session_cm.__aenter__ = AsyncMock(return_value=mock_http)
    mock_session_cm.__aexit__ = AsyncMock(return_value=False)

    return MagicMock(return_value=mock_session_cm), mock_http


async def test_viewer_count_for_live_channel(client):
    mock_session, _ = _make_aiohttp_mock(200, [(200, {"data": [{"viewer_count": 4321}]})])

    with patch("aiohttp.ClientSession", mock_session):
        assert await client.get_viewer_count("shroud") == 4321


async def test_viewer_count_offline_is_zero(client):
    mock_session, _ = _make_aiohttp_mock(200, [(200, {"data": []})])

    with patch("aiohttp.ClientSession", mock_session):
        assert await client.get_viewer_count("shroud") == 0


async def test_expired_token_is_refreshed_once(client):
    client.app_token = "stale"
    mock_session, mock_http = _make_aiohttp_mock(
        200, [(401, {}), (200, {"data": [{"viewer_count": 10}]})]
    )

    with patch("aiohttp.ClientSession", mock_session):
        assert await client.get_viewer_count("shroud") == 10

    assert client.app_token == "tok"
    assert mock_http.get.call_count == 2


async def test_token_failure_returns_zero(client):
    mock_session, mock_http = _make_aiohttp_mock(400, [])

    with patch("aiohttp.ClientSession", mock_session):
        assert await client.get_viewer_count("shroud") == 0

    mock_http.get.assert_not_called()


async def test_unconfigured_client_never_calls_out():
    client = TwitchClient(client_id=None, client_secret=None)
    client.client_id = None

    with patch("aiohttp.ClientSession") as mock_session:
        assert await client.get_viewer_count("shroud") == 0

    mock_session.assert_not_called()


async def test_network_exception_returns_zero(client):
    client.app_token = "tok"
    with patch("aiohttp.ClientSession", side_effect=Exception("network error")):
        assert await client.get_viewer_count("shroud") == 0
