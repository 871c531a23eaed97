"""Public interface for the ``budget_engine`` package.

The calculation services are plain function modules, imported here under
their own names so callers can write ``assignment.assign_many(...)`` or
``allocation.carry_over(...)``. Entity records and the computed result types
are re-exported as the stable import surface. There is no runtime logic
here, only symbol re-exports.
"""

from . import allocation, assignment, percentages, prefill, validation
from .allocation import BudgetPeriodTotals
from .assignment import (
    Assigned,
    AssignmentStatus,
    Orphaned,
    OrphanReason,
    ReassignmentResult,
)
from .models import (
    Bucket,
    BudgetPeriod,
    CategoryAllocation,
    IncomeSource,
    Methodology,
    Transaction,
    UserSettings,
)
from .percentages import (
    ACCEPTABLE_VARIANCE,
    OnTrack,
    OverTarget,
    PercentageComparison,
    UnderTarget,
)
from .prefill import (
    BudgetDraftSummary,
    BudgetPeriodDraft,
    CategoryAllocationDraft,
    DraftValidationResult,
    IncomeSourceDraft,
)
from .validation import BudgetValidationError

__all__ = [
    # Services
    "allocation",
    "assignment",
    "percentages",
    "prefill",
    "validation",
    # Entities
    "Bucket",
    "Methodology",
    "Transaction",
    "IncomeSource",
    "BudgetPeriod",
    "CategoryAllocation",
    "UserSettings",
    # Results
    "Assigned",
    "Orphaned",
    "OrphanReason",
    "AssignmentStatus",
    "ReassignmentResult",
    "BudgetPeriodTotals",
    "ACCEPTABLE_VARIANCE",
    "OnTrack",
    "UnderTarget",
    "OverTarget",
    "PercentageComparison",
    "IncomeSourceDraft",
    "CategoryAllocationDraft",
    "BudgetPeriodDraft",
    "DraftValidationResult",
    "BudgetDraftSummary",
    # Errors
    "BudgetValidationError",
]
