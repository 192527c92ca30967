"""Tests for the /api/psi proxy endpoint."""

import httpx
import pytest
from fastapi.testclient import TestClient

from psi_report.services import pagespeed_service


def test_missing_url_returns_400(client, upstream):
    r = client.get("/api/psi")

    assert r.status_code == 400
    assert r.json() == {"ok": False, "error": "Missing ?url="}
    assert upstream.requests == []


def test_empty_url_returns_400(client, upstream):
    r = client.get("/api/psi", params={"url": ""})

    assert r.status_code == 400
    assert r.json()["ok"] is False
    assert upstream.requests == []


@pytest.mark.parametrize("target", ["https://example.com/", "not a url"])
def test_missing_api_key_returns_500(client, settings, upstream, target):
    settings.PSI_API_KEY = None

    r = client.get("/api/psi", params={"url": target})

    assert r.status_code == 500
    assert r.json() == {"ok": False, "error": "Server missing PSI_API_KEY env var"}
    assert upstream.requests == []


def test_success_relays_upstream_body(client, upstream, psi_response):
    r = client.get("/api/psi", params={"url": "https://example.com/"})

    assert r.status_code == 200
    assert r.json() == psi_response
    assert r.headers["cache-control"] == "public, max-age=300"


def test_forwards_url_strategy_and_key(client, upstream):
    client.get("/api/psi", params={"url": "https://example.com/?a=1&b=2"})

    assert len(upstream.requests) == 1
    sent = upstream.requests[0]
    assert sent.method == "GET"
    assert sent.url.host == "www.googleapis.com"
    assert sent.url.path == "/pagespeedonline/v5/runPagespeed"
    assert sent.url.params["url"] == "https://example.com/?a=1&b=2"
    assert sent.url.params["strategy"] == "mobile"
    assert sent.url.params["key"] == "test-key"


def test_upstream_error_status_is_relayed_with_details(client, upstream):
    error_body = {"error": {"code": 429, "message": "Quota exceeded"}}
    upstream.responder = lambda request: httpx.Response(429, json=error_body)

    r = client.get("/api/psi", params={"url": "https://example.com/"})

    assert r.status_code == 429
    assert r.json() == {"ok": False, "error": "PSI request failed", "details": error_body}
    assert "cache-control" not in r.headers


def test_upstream_non_json_error_keeps_text_details(client, upstream):
    upstream.responder = lambda request: httpx.Response(502, text="<html>Bad Gateway</html>")

    r = client.get("/api/psi", params={"url": "https://example.com/"})

    assert r.status_code == 502
    assert r.json()["details"] == "<html>Bad Gateway</html>"


def test_transport_failure_returns_500(client, upstream):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    upstream.responder = refuse

    r = client.get("/api/psi", params={"url": "https://example.com/"})

    assert r.status_code == 500
    body = r.json()
    assert body["ok"] is False
    assert "connection refused" in body["error"]
    assert len(upstream.requests) == 1


def test_invalid_json_from_upstream_returns_500(client, upstream):
    upstream.responder = lambda request: httpx.Response(200, text="not json")

    r = client.get("/api/psi", params={"url": "https://example.com/"})

    assert r.status_code == 500
    assert r.json()["ok"] is False


def test_api_key_never_leaks_into_error_body(client, upstream):
    upstream.responder = lambda request: httpx.Response(400, json={"error": {"message": "Bad request"}})

    r = client.get("/api/psi", params={"url": "https://example.com/"})

    assert "test-key" not in r.text


def test_root(client):
    r = client.get("/")

    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_invalid_upstream_url_returns_500(client, upstream):
    def bad_endpoint(request):
        raise httpx.InvalidURL("bad endpoint")

    upstream.responder = bad_endpoint

    r = client.get("/api/psi", params={"url": "https://example.com/"})

    assert r.status_code == 500
    body = r.json()
    assert body["ok"] is False
    assert "bad endpoint" in body["error"]


def test_unexpected_error_keeps_json_contract(api, upstream):
    def explode(request):
        raise RuntimeError("something broke")

    upstream.responder = explode

    r = TestClient(api, raise_server_exceptions=False).get("/api/psi", params={"url": "https://example.com/"})

    assert r.status_code == 500
    assert r.json() == {"ok": False, "error": "something broke"}


def test_upstream_redirect_is_followed(client, upstream, psi_response):
    def redirect_once(request):
        if request.url.path == "/pagespeedonline/v5/runPagespeed":
            return httpx.Response(302, headers={"Location": "https://www.googleapis.com/moved"})
        return httpx.Response(200, json=psi_response)

    upstream.responder = redirect_once

    r = client.get("/api/psi", params={"url": "https://example.com/"})

    assert r.status_code == 200
    assert r.json() == psi_response
    assert [req.url.path for req in upstream.requests] == ["/pagespeedonline/v5/runPagespeed", "/moved"]


@pytest.mark.asyncio
async def test_http_client_follows_redirects(settings):
    clients = pagespeed_service.get_http_client(settings)
    http_client = await clients.__anext__()
    try:
        assert http_client.follow_redirects is True
        assert http_client.timeout.read == settings.PSI_TIMEOUT_SECONDS
    finally:
        await clients.aclose()
