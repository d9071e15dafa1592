"""Tunable thresholds and versioned term tables.

Thresholds used by the analysis modules are empirically chosen constants;
they live in :class:`AnalysisSettings` so hosts can override them without
touching the algorithms. The reimbursement matcher's vocabulary (category
synonyms, positive phrases, material terms, deduction percentages) is data,
shipped as ``data/term_tables.json`` and validated by :class:`TermTables`.

Nothing here reads the environment at import time. ``load_settings`` and
``load_term_tables`` consult ``FINANCE_INSIGHTS_SETTINGS`` and
``FINANCE_INSIGHTS_TERM_TABLES`` only when called (the CLI does so at
startup).
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from .logging_setup import get_logger

_SETTINGS_ENV = "FINANCE_INSIGHTS_SETTINGS"
_TERM_TABLES_ENV = "FINANCE_INSIGHTS_TERM_TABLES"

_logger = get_logger("finance_insights.settings")


class CadenceBand(BaseModel):
    """Inclusive day-gap band ``[low, high]``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    low: int
    high: int

    @model_validator(mode="after")
    def _ordered(self) -> CadenceBand:
        if self.low < 0 or self.high < self.low:
            raise ValueError(f"invalid band: [{self.low}, {self.high}]")
        return self

    def contains(self, gap_days: float) -> bool:
        return self.low <= gap_days <= self.high


class AnalysisSettings(BaseModel):
    """Thresholds shared by the recurrence, anomaly and correlation modules.

    Percent thresholds are on a 0-100 scale; ratios are on a 0-1 scale.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    # Recurrence
    weekly_band: CadenceBand = CadenceBand(low=6, high=8)
    monthly_band: CadenceBand = CadenceBand(low=25, high=35)
    quarterly_band: CadenceBand = CadenceBand(low=80, high=100)
    yearly_band: CadenceBand = CadenceBand(low=350, high=380)
    similar_amount_ratio: float = 0.15
    subscription_amount_tolerance: float = 0.10
    subscription_min_confidence: float = 50.0

    # Anomalies
    variance_warning_pct: float = 30.0
    variance_critical_pct: float = 50.0
    spike_pct: float = 100.0
    duplicate_window_days: int = 1

    # Correlation
    strong_correlation: float = 0.7
    moderate_correlation: float = 0.4
    weak_correlation: float = 0.3
    healthy_savings_rate: float = 20.0
    slope_outpace: float = 1.0
    slope_control: float = 0.5

    @model_validator(mode="after")
    def _bands_disjoint(self) -> AnalysisSettings:
        bands = [self.weekly_band, self.monthly_band, self.quarterly_band, self.yearly_band]
        for prev, nxt in zip(bands, bands[1:]):
            if prev.high >= nxt.low:
                raise ValueError("cadence bands must be ascending and must not overlap")
        if not self.variance_warning_pct <= self.variance_critical_pct:
            raise ValueError("variance_warning_pct must not exceed variance_critical_pct")
        if not self.weak_correlation <= self.moderate_correlation <= self.strong_correlation:
            raise ValueError("correlation bands must be ascending")
        return self


class TermTables(BaseModel):
    """Vocabulary used by the reimbursement matcher.

    ``synonyms`` maps an expense category to the ordered list of words a
    contract may use for it (in any supported language). Categories missing
    from the table match on their own name.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    version: int
    synonyms: dict[str, tuple[str, ...]]
    positive_phrases: tuple[str, ...]
    material_terms: tuple[str, ...]
    material_categories: frozenset[str]
    materials_label: str = "materials/tools"
    deduction_percent: dict[str, int] = {}

    @field_validator("positive_phrases", "material_terms")
    @classmethod
    def _non_empty(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        items = tuple(s for s in v if s)
        if not items:
            raise ValueError("phrase lists must not be empty")
        return items

    @field_validator("deduction_percent")
    @classmethod
    def _percent_range(cls, v: dict[str, int]) -> dict[str, int]:
        for category, pct in v.items():
            if not 0 <= pct <= 100:
                raise ValueError(f"deduction percent for {category!r} must be within [0,100]")
        return v

    def synonyms_for(self, category: str) -> tuple[str, ...]:
        return self.synonyms.get(category) or (category,)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def load_settings(path: str | os.PathLike[str] | None = None) -> AnalysisSettings:
    """Return settings from ``path`` (or ``FINANCE_INSIGHTS_SETTINGS``), else defaults.

    The file is a JSON object with any subset of :class:`AnalysisSettings`
    fields. Validation errors propagate as ``pydantic.ValidationError``.
    """

    src = path if path is not None else os.getenv(_SETTINGS_ENV)
    if not src:
        return AnalysisSettings()
    _logger.info("Loading analysis settings from %s", src)
    return AnalysisSettings.model_validate_json(Path(src).read_text(encoding="utf-8"))


@lru_cache(maxsize=1)
def default_term_tables() -> TermTables:
    """The term tables bundled with the package (parsed once)."""

    raw = resources.files("finance_insights").joinpath("data/term_tables.json").read_text(
        encoding="utf-8"
    )
    return TermTables.model_validate_json(raw)


def load_term_tables(path: str | os.PathLike[str] | None = None) -> TermTables:
    """Return term tables from ``path`` (or ``FINANCE_INSIGHTS_TERM_TABLES``), else the bundled ones."""

    src = path if path is not None else os.getenv(_TERM_TABLES_ENV)
    if not src:
        return default_term_tables()
    _logger.info("Loading term tables from %s", src)
    return TermTables.model_validate_json(Path(src).read_text(encoding="utf-8"))


__all__ = [
    "AnalysisSettings",
    "CadenceBand",
    "TermTables",
    "default_term_tables",
    "load_settings",
    "load_term_tables",
]
