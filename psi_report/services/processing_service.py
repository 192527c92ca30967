# psi_report/services/processing_service.py
import math
import re
from typing import Any, List, Literal, Optional, Union

from pydantic import AnyHttpUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from psi_report.core.errors import ValidationError
from psi_report.models import (
    LighthouseResult,
    MetricValue,
    PerformanceReport,
    ReportView,
    ViewState,
)

UNKNOWN = "—"

# High-signal Lighthouse audits, in display order
OPPORTUNITY_AUDIT_KEYS = [
    "largest-contentful-paint",
    "render-blocking-resources",
    "unused-javascript",
    "unused-css-rules",
    "uses-responsive-images",
    "offscreen-images",
    "uses-text-compression",
]
MAX_OPPORTUNITIES = 5
GOOD_AUDIT_SCORE = 0.9
NO_OPPORTUNITIES = "No major opportunities detected (or audit data was limited)."

CWV_NOTE_MISSING = (
    "Field (real-user) data was not available for this URL. "
    "Scores above are still useful as a lab audit."
)
CWV_NOTE_PRESENT = (
    "Field data availability depends on whether Chrome has enough "
    "real-user samples for this page/origin."
)

MAX_MESSAGE_LENGTH = 160

_url_adapter = TypeAdapter(AnyHttpUrl)
_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _round_half_up(value: float) -> int:
    # Halves round up, so 12.5 displays as 13
    return math.floor(value + 0.5)


def _plain_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def normalize_url(raw: Optional[str]) -> str:
    """
    Turns user input into a canonical absolute URL.

    Args:
        raw: The string typed by the user.

    Returns:
        The re-serialized URL, e.g. "example.com" -> "https://example.com/".

    Raises:
        ValidationError: If the input is empty or does not parse as an absolute URL.
    """
    trimmed = (raw or "").strip()
    if not trimmed:
        raise ValidationError("Empty URL")

    # If the user forgot the scheme, assume https
    if not trimmed.startswith(("http://", "https://")):
        trimmed = f"https://{trimmed}"

    try:
        return str(_url_adapter.validate_python(trimmed))
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid URL: {trimmed}") from e


def to_percent(score: Any) -> str:
    """Converts a 0-1 Lighthouse score to an integer percentage string."""
    if not _is_number(score):
        return UNKNOWN
    return str(_round_half_up(score * 100))


def format_cwv_metric(metric: Optional[MetricValue], unit: Literal["ms", "s", "raw"] = "ms") -> str:
    if metric is None or not _is_number(metric.percentile):
        return UNKNOWN

    percentile = metric.percentile
    if unit == "s":
        return f"{percentile / 1000:.1f} s"
    if unit == "ms":
        return f"{_round_half_up(percentile)} ms"
    return _plain_number(percentile)


def get_top_opportunities(lighthouse_result: Optional[LighthouseResult]) -> List[str]:
    """
    Builds the opportunity list from a fixed set of Lighthouse audits.

    An audit is skipped only when its score is numeric and already "good";
    a missing score counts as unknown and is kept.
    """
    audits = lighthouse_result.audits if lighthouse_result else {}
    items = []
    for key in OPPORTUNITY_AUDIT_KEYS:
        audit = audits.get(key)
        if audit is None:
            continue
        if _is_number(audit.score) and audit.score >= GOOD_AUDIT_SCORE:
            continue
        items.append(audit.title or key)

    if not items:
        return [NO_OPPORTUNITIES]
    return items[:MAX_OPPORTUNITIES]


def build_report_view(data: Union[PerformanceReport, Any]) -> ReportView:
    """
    Projects a performance report onto the fixed display fields.

    Args:
        data: A PerformanceReport, or the decoded JSON of one.

    Returns:
        A fully populated ReportView; missing values show as the unknown placeholder.
    """
    report = data if isinstance(data, PerformanceReport) else PerformanceReport.from_json(data)

    lighthouse = report.lighthouse_result
    categories = lighthouse.categories if lighthouse else None

    def category_score(name: str) -> str:
        category = getattr(categories, name, None) if categories else None
        return to_percent(category.score if category else None)

    metrics = report.loading_experience.metrics if report.loading_experience else None
    if metrics is None:
        lcp = inp = cls = UNKNOWN
        note = CWV_NOTE_MISSING
    else:
        lcp = format_cwv_metric(metrics.lcp, "s")
        # Older field data only has FID
        inp = format_cwv_metric(metrics.inp if metrics.inp is not None else metrics.fid, "ms")
        cls = format_cwv_metric(metrics.cls, "raw")
        note = CWV_NOTE_PRESENT

    return ReportView(
        performance=category_score("performance"),
        accessibility=category_score("accessibility"),
        best_practices=category_score("best_practices"),
        seo=category_score("seo"),
        lcp=lcp,
        inp=inp,
        cls=cls,
        cwv_note=note,
        opportunities=get_top_opportunities(lighthouse),
    )


def sanitize_message(message: Any, limit: int = MAX_MESSAGE_LENGTH) -> str:
    """Reduces an error message to short plain text: no tags, single spaces, bounded length."""
    text = _TAG_RE.sub(" ", str(message or ""))
    text = _WHITESPACE_RE.sub(" ", text).strip()
    if len(text) > limit:
        text = text[: limit - 1].rstrip() + "…"
    return text


def render_text(state: ViewState) -> str:
    """
    Formats a view state as plain text for a terminal.
    """
    lines = [state.status] if state.status else []
    view = state.view
    if not state.results_visible or view is None:
        return "\n".join(lines)

    lines.append("\n--- Lighthouse Scores ---")
    lines.append(f"Performance: {view.performance}")
    lines.append(f"Accessibility: {view.accessibility}")
    lines.append(f"Best Practices: {view.best_practices}")
    lines.append(f"SEO: {view.seo}")

    lines.append("\n--- Core Web Vitals (Field) ---")
    lines.append(f"LCP: {view.lcp}")
    lines.append(f"INP: {view.inp}")
    lines.append(f"CLS: {view.cls}")
    lines.append(view.cwv_note)

    lines.append("\n--- Top Opportunities ---")
    for index, title in enumerate(view.opportunities, start=1):
        lines.append(f"{index}. {title}")

    return "\n".join(lines)
