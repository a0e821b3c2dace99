# modules/payroll/lifecycle.py
"""
Salary status lifecycle.

    PENDING --Approve--> APPROVED --Pay--> PAID
    PENDING --Reject---> REJECTED

PAID and REJECTED are terminal. Each command names the one status it may
start from; the move itself is a single conditional UPDATE so two people
acting on the same record cannot both win.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from sqlalchemy.orm import Session

from core.errors import BadRequestError
from core.transitions import compare_and_set
from database.base import utcnow
from modules.payroll.models import Salary, SalaryStatus

TRANSITIONS: Dict[SalaryStatus, frozenset] = {
    SalaryStatus.PENDING: frozenset({SalaryStatus.APPROVED, SalaryStatus.REJECTED}),
    SalaryStatus.APPROVED: frozenset({SalaryStatus.PAID}),
    SalaryStatus.PAID: frozenset(),
    SalaryStatus.REJECTED: frozenset(),
}


@dataclass(frozen=True)
class Approve:
    source = SalaryStatus.PENDING
    target = SalaryStatus.APPROVED

    def changes(self, actor_id: int) -> Dict[str, Any]:
        return {"approved_by_id": actor_id, "approved_at": utcnow()}


@dataclass(frozen=True)
class Reject:
    reason: str
    source = SalaryStatus.PENDING
    target = SalaryStatus.REJECTED

    def changes(self, actor_id: int) -> Dict[str, Any]:
        if not (self.reason or "").strip():
            raise BadRequestError("Rejection reason is required")
        return {"rejected_by_id": actor_id, "rejected_at": utcnow(), "rejection_reason": self.reason.strip()}


@dataclass(frozen=True)
class Pay:
    payment_method: str
    payment_reference: Optional[str] = None
    source = SalaryStatus.APPROVED
    target = SalaryStatus.PAID

    def changes(self, actor_id: int) -> Dict[str, Any]:
        if not (self.payment_method or "").strip():
            raise BadRequestError("Payment method is required")
        return {
            "paid_by_id": actor_id,
            "paid_at": utcnow(),
            "payment_method": self.payment_method.strip(),
            "payment_reference": self.payment_reference,
        }


Command = Union[Approve, Reject, Pay]


def can_transition(current: SalaryStatus, target: SalaryStatus) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


def apply_transition(db: Session, salary_id: int, command: Command, actor_id: int) -> Salary:
    """
    Apply `command` to a live (not soft-deleted) salary. Flushes but does not
    commit. Raises NotFoundError for missing/deleted records and
    InvalidTransitionError (409) when the record is not in `command.source`.
    """
    values = {"status": command.target, **command.changes(actor_id)}
    return compare_and_set(
        db,
        Salary,
        salary_id,
        Salary.status,
        command.source,
        values,
        entity="salary",
        requested=command.target,
        visible=Salary.is_deleted.is_(False),
    )
