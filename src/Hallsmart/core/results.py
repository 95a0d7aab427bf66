from dataclasses import dataclass, field, asdict
from typing import List, Optional


@dataclass
class FeeUpdateResult:
    success: bool
    bookings_updated: int = 0
    registrations_updated: int = 0
    skipped_custom: int = 0
    skipped_past: int = 0
    error: Optional[str] = None

    def to_dict(self):
        return asdict(self)


@dataclass
class RolloverResult:
    success: bool
    registrations_created: int = 0
    attendance_cleared: int = 0
    # explanatory text for signalled no-ops, or the failure message
    error: Optional[str] = None

    def to_dict(self):
        return asdict(self)


@dataclass
class BatchRolloverResult:
    success: bool
    bookings_processed: int = 0
    total_registrations_created: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self):
        return asdict(self)


@dataclass
class RequestResult:
    success: bool
    request: Optional[dict] = None
    error: Optional[str] = None
    # True when an approval also wrote the payload to the settlement
    applied: bool = False

    def to_dict(self):
        return asdict(self)


@dataclass
class StepResult:
    """Outcome of a best-effort side step that must not block the main action."""
    success: bool
    value: object = None
    reason: Optional[str] = None


@dataclass
class PaymentResult:
    success: bool
    payment_id: Optional[int] = None
    paid_amount: float = 0
    payment_status: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self):
        return asdict(self)


@dataclass
class QueryResult:
    success: bool
    # list of rows or a summary dict
    data: object = None
    error: Optional[str] = None

    def to_dict(self):
        return asdict(self)
