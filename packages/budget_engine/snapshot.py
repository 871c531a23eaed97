"""JSON snapshot I/O for the CLI.

A snapshot is a single JSON document holding everything the engine needs for a
run: periods (with income sources), allocations, transactions and optional
settings. It is parsed with Pydantic (unknown keys rejected) and converted into
the frozen records from :mod:`budget_engine.models`. The calculation modules
never import this file.

Example shape::

    {
      "schema_version": 1,
      "periods": [{"id": "jan", "methodology": "envelope",
                   "start_date": "2025-01-01", "end_date": "2025-01-31",
                   "income_sources": [{"id": "i1", "source_name": "Salary",
                                       "amount": "5000"}]}],
      "allocations": [{"id": "a1", "planned_amount": "400",
                       "budget_period_id": "jan", "category_id": "food"}],
      "transactions": [{"id": "t1", "date": "2025-01-15", "sub_total": "12.50",
                        "merchant": "Cafe", "bucket": "wants"}],
      "settings": {"needs_percentage": "50", "wants_percentage": "30",
                   "savings_percentage": "20"}
    }
"""

from __future__ import annotations

import dataclasses
import datetime as dt
import enum
import os
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, localcontext
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .logging_setup import get_logger
from .models import (
    Bucket,
    BudgetPeriod,
    CategoryAllocation,
    IncomeSource,
    Methodology,
    Transaction,
    UserSettings,
)

SCHEMA_VERSION: int = 1
_DEFAULT_PLACES = 2
_PLACES_ENV_VAR = "BUDGET_ENGINE_DECIMAL_PLACES"

_logger = get_logger("budget_engine.snapshot")


class SnapshotError(ValueError):
    """The snapshot file could not be read or did not match the schema."""


# ---------------------------------------------------------------------------
# Wire models
# ---------------------------------------------------------------------------


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True, frozen=True)


class IncomeSourceIn(_WireModel):
    id: str
    source_name: str
    amount: Decimal
    budget_period_id: str | None = None

    def to_record(self, period_id: str) -> IncomeSource:
        return IncomeSource(
            id=self.id,
            source_name=self.source_name,
            amount=self.amount,
            budget_period_id=self.budget_period_id or period_id,
        )


class BudgetPeriodIn(_WireModel):
    id: str
    methodology: Methodology
    start_date: dt.date
    end_date: dt.date
    income_sources: list[IncomeSourceIn] = []

    def to_record(self) -> BudgetPeriod:
        return BudgetPeriod(
            id=self.id,
            methodology=self.methodology,
            start_date=self.start_date,
            end_date=self.end_date,
            income_sources=tuple(s.to_record(self.id) for s in self.income_sources),
        )


class CategoryAllocationIn(_WireModel):
    id: str
    planned_amount: Decimal
    carry_over_amount: Decimal = Decimal(0)
    budget_period_id: str | None = None
    category_id: str | None = None

    def to_record(self) -> CategoryAllocation:
        return CategoryAllocation(
            id=self.id,
            planned_amount=self.planned_amount,
            carry_over_amount=self.carry_over_amount,
            budget_period_id=self.budget_period_id,
            category_id=self.category_id,
        )


class TransactionIn(_WireModel):
    id: str
    date: dt.date
    sub_total: Decimal
    merchant: str
    bucket: Bucket
    tax: Decimal | None = None
    description: str | None = None
    category_id: str | None = None
    sub_category_id: str | None = None
    budget_period_id: str | None = None

    def to_record(self) -> Transaction:
        return Transaction(
            id=self.id,
            date=self.date,
            sub_total=self.sub_total,
            merchant=self.merchant,
            bucket=self.bucket,
            tax=self.tax,
            description=self.description,
            category_id=self.category_id,
            sub_category_id=self.sub_category_id,
            budget_period_id=self.budget_period_id,
        )


class UserSettingsIn(_WireModel):
    needs_percentage: Decimal = Decimal(50)
    wants_percentage: Decimal = Decimal(30)
    savings_percentage: Decimal = Decimal(20)

    def to_record(self) -> UserSettings:
        return UserSettings(
            needs_percentage=self.needs_percentage,
            wants_percentage=self.wants_percentage,
            savings_percentage=self.savings_percentage,
        )


class SnapshotFile(_WireModel):
    """Top-level schema for a snapshot JSON file."""

    schema_version: int = SCHEMA_VERSION
    periods: list[BudgetPeriodIn] = []
    allocations: list[CategoryAllocationIn] = []
    transactions: list[TransactionIn] = []
    settings: UserSettingsIn | None = None

    @field_validator("schema_version")
    @classmethod
    def _supported_version(cls, v: int) -> int:
        if v != SCHEMA_VERSION:
            raise ValueError(f"unsupported schema_version {v}; expected {SCHEMA_VERSION}")
        return v


# ---------------------------------------------------------------------------
# Loaded snapshot
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Snapshot:
    periods: tuple[BudgetPeriod, ...]
    allocations: tuple[CategoryAllocation, ...]
    transactions: tuple[Transaction, ...]
    settings: UserSettings

    def period(self, period_id: str) -> BudgetPeriod | None:
        return next((p for p in self.periods if p.id == period_id), None)

    def allocations_for(self, period_id: str) -> list[CategoryAllocation]:
        return [a for a in self.allocations if a.budget_period_id == period_id]


def parse_snapshot(text: str) -> Snapshot:
    """Parse snapshot JSON text; raise :class:`SnapshotError` on schema errors."""

    try:
        parsed = SnapshotFile.model_validate_json(text)
    except ValidationError as e:
        raise SnapshotError(f"invalid snapshot: {e}") from e

    snapshot = Snapshot(
        periods=tuple(p.to_record() for p in parsed.periods),
        allocations=tuple(a.to_record() for a in parsed.allocations),
        transactions=tuple(t.to_record() for t in parsed.transactions),
        settings=parsed.settings.to_record() if parsed.settings else UserSettings.default(),
    )
    _logger.debug(
        "snapshot:parsed periods=%d allocations=%d transactions=%d",
        len(snapshot.periods),
        len(snapshot.allocations),
        len(snapshot.transactions),
    )
    return snapshot


def load_snapshot(path: str | os.PathLike[str]) -> Snapshot:
    """Read and parse a snapshot file.

    ``FileNotFoundError``/``PermissionError`` propagate unchanged so callers can
    report them distinctly; decoding and schema problems become
    :class:`SnapshotError`.
    """

    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise SnapshotError(f"snapshot is not valid UTF-8: {p}") from e
    return parse_snapshot(text)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def resolve_decimal_places() -> int:
    """Places used when rendering decimals for output.

    Honors ``BUDGET_ENGINE_DECIMAL_PLACES``; invalid or negative values fall
    back to 2.
    """

    raw = os.getenv(_PLACES_ENV_VAR)
    if raw is None or not raw.strip():
        return _DEFAULT_PLACES
    try:
        places = int(raw.strip())
    except ValueError:
        _logger.warning("snapshot:bad_places value=%r fallback=%d", raw, _DEFAULT_PLACES)
        return _DEFAULT_PLACES
    return places if places >= 0 else _DEFAULT_PLACES


def format_decimal(value: Decimal, places: int) -> str:
    """Fixed-point string with exactly ``places`` decimals (ROUND_HALF_UP).

    The context precision grows with the magnitude of ``value``, so very large
    ratios (tiny income, large spend) still render instead of raising
    ``InvalidOperation``.
    """

    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + places + 2)
        q = value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
    return f"{q:f}"


def to_jsonable(obj: Any, *, places: int = _DEFAULT_PLACES) -> Any:
    """Convert engine values into JSON-ready structures.

    Decimals become fixed-point strings, dates ISO strings, enums their values.
    Dataclass instances become dicts of their fields; tagged-union variants get
    a ``"kind"`` key naming the variant.
    """

    if isinstance(obj, Decimal):
        return format_decimal(obj, places)
    if isinstance(obj, enum.Enum):
        return obj.value
    if isinstance(obj, dt.date):
        return obj.isoformat()
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        out: dict[str, Any] = {}
        kind = _VARIANT_KINDS.get(type(obj).__name__)
        if kind is not None:
            out["kind"] = kind
        for f in dataclasses.fields(obj):
            out[f.name] = to_jsonable(getattr(obj, f.name), places=places)
        return out
    if isinstance(obj, Mapping):
        return {str(to_jsonable(k, places=places)): to_jsonable(v, places=places) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(v, places=places) for v in obj]
    return obj


_VARIANT_KINDS: dict[str, str] = {
    "OnTrack": "on_track",
    "UnderTarget": "under_target",
    "OverTarget": "over_target",
    "Assigned": "assigned",
    "Orphaned": "orphaned",
}
