# psi_report/services/mock_service.py
from typing import Any, Dict

BASE_SCORES = {
    "performance": 0.72,
    "accessibility": 0.88,
    "best-practices": 0.86,
    "seo": 0.84,
}

MOCK_AUDITS = {
    "largest-contentful-paint": {"score": 0.55, "title": "Improve Largest Contentful Paint"},
    "render-blocking-resources": {"score": 0.62, "title": "Eliminate render-blocking resources"},
    "unused-javascript": {"score": 0.48, "title": "Reduce unused JavaScript"},
    "unused-css-rules": {"score": 0.91, "title": "Reduce unused CSS"},
    "uses-responsive-images": {"score": None, "title": "Properly size images"},
    "offscreen-images": {"score": 0.95, "title": "Defer offscreen images"},
    "uses-text-compression": {"score": 1, "title": "Enable text compression"},
}

MOCK_FIELD_METRICS = {
    "LARGEST_CONTENTFUL_PAINT_MS": {"percentile": 2500},
    "INTERACTION_TO_NEXT_PAINT": {"percentile": 190},
    "CUMULATIVE_LAYOUT_SHIFT_SCORE": {"percentile": 8},
}


def _score_offset(url: str) -> int:
    return len(url) % 20


def build_mock_report(url: str) -> Dict[str, Any]:
    """
    Synthesizes a PSI-shaped report for demo mode.

    The same URL always yields the same scores: each category gets its base
    score plus a small offset derived from the URL length, clamped to [0, 1].

    Args:
        url: The normalized target URL.

    Returns:
        A dict in the upstream `runPagespeed` JSON shape.
    """
    offset = _score_offset(url) / 100
    categories = {
        name: {"score": min(1.0, max(0.0, round(base + offset, 2)))}
        for name, base in BASE_SCORES.items()
    }

    return {
        "id": url,
        "lighthouseResult": {
            "requestedUrl": url,
            "categories": categories,
            "audits": {key: dict(audit) for key, audit in MOCK_AUDITS.items()},
        },
        "loadingExperience": {
            "metrics": {key: dict(metric) for key, metric in MOCK_FIELD_METRICS.items()},
        },
    }
