# tests/test_http_client.py
from unittest import mock

import pytest
import requests

from modules.job_crawl.lib.http_client import HttpClient, TransportError


def _resp(status, text="", encoding="utf-8"):
    r = mock.Mock()
    r.status_code = status
    r.text = text
    r.encoding = encoding
    return r


def test_session_headers_and_retry_policy():
    client = HttpClient(user_agent="jc-test/1.0", retries=2)

    assert client.session.headers["User-Agent"] == "jc-test/1.0"
    assert "text/html" in client.session.headers["Accept"]
    retry = client.session.get_adapter("https://www.zeil.com").max_retries
    assert retry.total == 2
    assert 503 in retry.status_forcelist
    assert 429 in retry.status_forcelist


def test_get_text_returns_body():
    client = HttpClient(timeout=3, retries=0)
    with mock.patch.object(client.session, "get", return_value=_resp(200, "<html>ok</html>")) as get:
        assert client.get_text("https://example.com/a") == "<html>ok</html>"

    assert get.call_args.kwargs["timeout"] == 3


def test_non_2xx_becomes_transport_error():
    client = HttpClient(retries=0)
    with mock.patch.object(client.session, "get", return_value=_resp(500)):
        with pytest.raises(TransportError) as ei:
            client.get_text("https://example.com/a")

    assert ei.value.status == 500
    assert ei.value.url == "https://example.com/a"


def test_network_failure_becomes_transport_error():
    client = HttpClient(retries=0)
    with mock.patch.object(client.session, "get", side_effect=requests.ConnectionError("refused")):
        with pytest.raises(TransportError) as ei:
            client.get_text("https://example.com/a")

    assert ei.value.status is None


def test_timeout_becomes_transport_error():
    client = HttpClient(retries=0)
    with mock.patch.object(client.session, "get", side_effect=requests.Timeout("slow")):
        with pytest.raises(TransportError):
            client.get_text("https://example.com/a")


def test_context_manager_closes_session():
    client = HttpClient()
    with mock.patch.object(client.session, "close") as close:
        with client:
            pass
    close.assert_called_once()
