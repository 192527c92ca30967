# psi_report/models.py
import math
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _numeric_or_none(value: Any) -> Optional[float]:
    # bool is an int subclass; a "true" score is not a score
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return value


def _object_or_none(value: Any) -> Optional[Dict[str, Any]]:
    return value if isinstance(value, dict) else None


# --- Performance report (upstream wire format) ---
# Every level is partial: absent or malformed values become None.

class Partial(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class CategoryScore(Partial):
    score: Optional[float] = None

    @field_validator("score", mode="before")
    @classmethod
    def _numeric_score(cls, value: Any) -> Optional[float]:
        return _numeric_or_none(value)


class Categories(Partial):
    performance: Optional[CategoryScore] = None
    accessibility: Optional[CategoryScore] = None
    best_practices: Optional[CategoryScore] = Field(default=None, alias="best-practices")
    seo: Optional[CategoryScore] = None

    @field_validator("*", mode="before")
    @classmethod
    def _objects_only(cls, value: Any) -> Optional[Dict[str, Any]]:
        return _object_or_none(value)


class Audit(Partial):
    score: Optional[float] = None
    title: Optional[str] = None

    @field_validator("score", mode="before")
    @classmethod
    def _numeric_score(cls, value: Any) -> Optional[float]:
        return _numeric_or_none(value)

    @field_validator("title", mode="before")
    @classmethod
    def _text_title(cls, value: Any) -> Optional[str]:
        return value if isinstance(value, str) and value else None


class LighthouseResult(Partial):
    categories: Optional[Categories] = None
    audits: Dict[str, Audit] = Field(default_factory=dict)

    @field_validator("categories", mode="before")
    @classmethod
    def _categories_object(cls, value: Any) -> Optional[Dict[str, Any]]:
        return _object_or_none(value)

    @field_validator("audits", mode="before")
    @classmethod
    def _audit_objects(cls, value: Any) -> Dict[str, Any]:
        if not isinstance(value, dict):
            return {}
        return {key: audit for key, audit in value.items() if isinstance(audit, dict)}


class MetricValue(Partial):
    percentile: Optional[float] = None

    @field_validator("percentile", mode="before")
    @classmethod
    def _numeric_percentile(cls, value: Any) -> Optional[float]:
        return _numeric_or_none(value)


class FieldMetrics(Partial):
    lcp: Optional[MetricValue] = Field(default=None, alias="LARGEST_CONTENTFUL_PAINT_MS")
    inp: Optional[MetricValue] = Field(default=None, alias="INTERACTION_TO_NEXT_PAINT")
    fid: Optional[MetricValue] = Field(default=None, alias="FIRST_INPUT_DELAY_MS")
    cls: Optional[MetricValue] = Field(default=None, alias="CUMULATIVE_LAYOUT_SHIFT_SCORE")

    @field_validator("*", mode="before")
    @classmethod
    def _present_metric(cls, value: Any) -> Optional[Dict[str, Any]]:
        # Truthy non-objects count as present but unreadable
        if isinstance(value, dict):
            return value
        if value is None or value is False or value == 0 or value == "":
            return None
        return {}


class LoadingExperience(Partial):
    metrics: Optional[FieldMetrics] = None

    @field_validator("metrics", mode="before")
    @classmethod
    def _metrics_object(cls, value: Any) -> Optional[Dict[str, Any]]:
        return _object_or_none(value)


class PerformanceReport(Partial):
    lighthouse_result: Optional[LighthouseResult] = Field(default=None, alias="lighthouseResult")
    loading_experience: Optional[LoadingExperience] = Field(default=None, alias="loadingExperience")

    @field_validator("*", mode="before")
    @classmethod
    def _objects_only(cls, value: Any) -> Optional[Dict[str, Any]]:
        return _object_or_none(value)

    @classmethod
    def from_json(cls, data: Any) -> "PerformanceReport":
        """Builds a report from decoded JSON of any shape; non-objects yield an empty report."""
        return cls.model_validate(data if isinstance(data, dict) else {})


# --- Proxy responses ---

class ProxyError(BaseModel):
    ok: bool = False
    error: str
    details: Optional[Any] = None


# --- Report client ---

class ClientConfig(BaseModel):
    mode: Literal["demo", "live"] = "live"
    endpoint: Optional[str] = None
    demo_delay: float = Field(default=0.8, ge=0)


class SubmissionPhase(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    REJECTED = "rejected"
    LOADING = "loading"
    SUCCESS = "success"
    FAILED = "failed"


class ReportView(BaseModel):
    performance: str
    accessibility: str
    best_practices: str
    seo: str
    lcp: str
    inp: str
    cls: str
    cwv_note: str
    opportunities: List[str]


class ViewState(BaseModel):
    status: str = ""
    status_kind: Literal["", "good", "bad"] = ""
    phase: SubmissionPhase = SubmissionPhase.IDLE
    submit_disabled: bool = False
    submit_label: str = "Run Report"
    results_visible: bool = False
    view: Optional[ReportView] = None
