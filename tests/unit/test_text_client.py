"""Tests for the activity log text source client"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from xp_analytics.text_client import TextSourceClient, default_data_file


def _response(text="", json_body=None, status=200):
    resp = MagicMock()
    resp.status_code = status
    resp.text = text
    if json_body is not None:
        resp.headers = {"Content-Type": "application/json"}
        resp.json.return_value = json_body
    else:
        resp.headers = {"Content-Type": "text/plain; charset=utf-8"}
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status} error")
    return resp


@pytest.fixture
def client():
    return TextSourceClient(endpoint="http://extract.local/api/", token="secret")


class TestTextSourceClient:

    def test_plain_text_response(self, client):
        with patch.object(client.session, "get", return_value=_response("Mon, Jan 5th, 2026")) as get:
            assert client.fetch_text("log 1.pdf") == "Mon, Jan 5th, 2026"
        get.assert_called_once_with("http://extract.local/api/log%201.pdf/text", timeout=client.timeout)

    def test_json_response_joins_pages(self, client):
        body = {"text": ["page one", "page two"], "pages": 2}
        with patch.object(client.session, "get", return_value=_response(json_body=body)):
            assert client.fetch_text() == "page one\npage two"

    @pytest.mark.parametrize("body", [["page one"], {"text": None}, {"pages": 3}, "plain string"])
    def test_json_body_without_text_is_a_value_error(self, client, body):
        with patch.object(client.session, "get", return_value=_response(json_body=body)):
            with pytest.raises(ValueError):
                client.fetch_text()

    def test_source_info_when_reachable(self, client):
        with patch.object(client.session, "get", return_value=_response(status=200)) as get:
            assert client.get_source_info() == {
                "endpoint": "http://extract.local/api",
                "connected": True,
                "auth": "bearer",
            }
        get.assert_called_once_with("http://extract.local/api", timeout=10)

    def test_http_error_propagates(self, client):
        with patch.object(client.session, "get", return_value=_response(status=404)):
            with pytest.raises(requests.HTTPError):
                client.fetch_text()

    def test_bearer_token_header(self, client):
        assert client.session.headers["Authorization"] == "Bearer secret"

    def test_missing_endpoint(self, monkeypatch):
        monkeypatch.delenv("XP_TEXT_ENDPOINT", raising=False)
        monkeypatch.delenv("XP_TEXT_TOKEN", raising=False)
        client = TextSourceClient()
        with pytest.raises(ValueError):
            client.fetch_text()
        assert client.ping() is False
        assert client.get_source_info() == {"endpoint": None, "connected": False, "auth": "none"}

    def test_env_configuration(self, monkeypatch):
        monkeypatch.setenv("XP_TEXT_ENDPOINT", "https://example.test/")
        monkeypatch.setenv("XP_TEXT_TOKEN", "abc")
        client = TextSourceClient()
        assert client.endpoint == "https://example.test"
        assert client.token == "abc"

    def test_ping_handles_connection_errors(self, client):
        with patch.object(client.session, "get", side_effect=requests.ConnectionError("down")):
            assert client.ping() is False

    def test_load_file(self, tmp_path):
        path = tmp_path / "log.txt"
        path.write_text("Thu, Oct 16th, 2025\n", encoding="utf-8")
        assert TextSourceClient.load_file(path) == "Thu, Oct 16th, 2025\n"


def test_default_data_file(monkeypatch, tmp_path):
    monkeypatch.setenv("XP_DATA_FILE", str(tmp_path / "missing.txt"))
    assert default_data_file() is None

    path = tmp_path / "log.txt"
    path.write_text("x", encoding="utf-8")
    monkeypatch.setenv("XP_DATA_FILE", str(path))
    assert default_data_file() == path
