import copy

import httpx
import pytest
from fastapi.testclient import TestClient

from psi_report.core.config import Settings, get_settings
from psi_report.main import app
from psi_report.services import pagespeed_service

# ---------------------------------------------------------------------------
# Shared Fixtures
# ---------------------------------------------------------------------------

PSI_RESPONSE = {
    "id": "https://example.com/",
    "lighthouseResult": {
        "requestedUrl": "https://example.com/",
        "categories": {
            "performance": {"id": "performance", "score": 0.92},
            "accessibility": {"id": "accessibility", "score": 0.85},
            "best-practices": {"id": "best-practices", "score": 0.78},
            "seo": {"id": "seo", "score": 0.95},
        },
        "audits": {
            "largest-contentful-paint": {"score": 0.55, "title": "Largest Contentful Paint"},
            "render-blocking-resources": {"score": 0.3, "title": "Eliminate render-blocking resources"},
            "unused-javascript": {"score": 0.95, "title": "Reduce unused JavaScript"},
            "unused-css-rules": {"score": None, "title": "Reduce unused CSS"},
            "speed-index": {"score": 0.2, "title": "Speed Index"},
        },
    },
    "loadingExperience": {
        "metrics": {
            "LARGEST_CONTENTFUL_PAINT_MS": {"percentile": 2345, "category": "AVERAGE"},
            "INTERACTION_TO_NEXT_PAINT": {"percentile": 200, "category": "FAST"},
            "FIRST_INPUT_DELAY_MS": {"percentile": 50, "category": "FAST"},
            "CUMULATIVE_LAYOUT_SHIFT_SCORE": {"percentile": 10, "category": "FAST"},
        },
    },
}


class FakeUpstream:
    """MockTransport handler that records requests; set `responder` to change the answer."""

    def __init__(self):
        self.requests = []
        self.responder = lambda request: httpx.Response(200, json=PSI_RESPONSE)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)


@pytest.fixture
def psi_response():
    return copy.deepcopy(PSI_RESPONSE)


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def settings():
    return Settings(PSI_API_KEY="test-key", _env_file=None)


@pytest.fixture
def api(settings, upstream):
    async def _client():
        async with httpx.AsyncClient(transport=httpx.MockTransport(upstream), follow_redirects=True) as client:
            yield client

    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[pagespeed_service.get_http_client] = _client
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(api):
    return TestClient(api)
