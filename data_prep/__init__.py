"""
Data preparation: validating storage exports, building snapshots, data-quality checks.
"""

from .loader import (
    frame_to_records,
    load_export_csv,
    load_records_csv,
    load_snapshot_json,
    parse_records,
    snapshot_from_payload,
)
from .records import (
    AccountRecord,
    BillRecord,
    CardRecord,
    CycleReconciliationRecord,
    EnvelopeRecord,
    GoalRecord,
    IncomePaymentCheckRecord,
    IncomeRecord,
    LoanRecord,
    PurchaseRecord,
    PurchaseSplitRecord,
)
from .validators import ValidationResult, validate_export_frame, validate_snapshot

__all__ = [
    "AccountRecord",
    "BillRecord",
    "CardRecord",
    "CycleReconciliationRecord",
    "EnvelopeRecord",
    "GoalRecord",
    "IncomePaymentCheckRecord",
    "IncomeRecord",
    "LoanRecord",
    "PurchaseRecord",
    "PurchaseSplitRecord",
    "ValidationResult",
    "frame_to_records",
    "load_export_csv",
    "load_records_csv",
    "load_snapshot_json",
    "parse_records",
    "snapshot_from_payload",
    "validate_export_frame",
    "validate_snapshot",
]
