"""
gymactivity/payments.py
───────────────────────
Payment urgency classification and the member's debt summary.

Both are pure functions of the payment list and `as_of`; nothing is cached, so
a payment that was "pending" yesterday becomes "due_soon" or "overdue" on the
next read without any write to the store.

  days until due   urgency   status
  ───────────────  ────────  ────────
  paid             low       paid      (days = 0)
  < 0              high      overdue
  0 … 3            high      due_soon
  4 … 7            medium    pending
  > 7              low       pending
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from .attendance import start_of_month
from .normalize import PaymentRecord

OUTSTANDING = ("pending", "overdue", "partial")


@dataclass(frozen=True)
class PaymentStatus:
    status: str          # 'paid' | 'pending' | 'overdue' | 'due_soon'
    days_until_due: int
    urgency: str         # 'low' | 'medium' | 'high'


@dataclass(frozen=True)
class DebtSummary:
    total_debt: float = 0.0
    overdue_amount: float = 0.0
    pending_amount: float = 0.0
    next_due_date: datetime | None = None
    paid_this_month: float = 0.0
    last_payment_date: datetime | None = None
    last_payment_amount: float = 0.0

    def as_payload(self) -> dict[str, Any]:
        return {
            "totalDebt":         self.total_debt,
            "overdueAmount":     self.overdue_amount,
            "pendingAmount":     self.pending_amount,
            "nextDueDate":       self.next_due_date.isoformat() if self.next_due_date else None,
            "paidThisMonth":     self.paid_this_month,
            "lastPaymentDate":   self.last_payment_date.isoformat() if self.last_payment_date else None,
            "lastPaymentAmount": self.last_payment_amount,
        }


def days_until(due: datetime, as_of: datetime) -> int:
    return math.ceil((due - as_of).total_seconds() / 86400)


def classify(payment: PaymentRecord, as_of: datetime) -> PaymentStatus:
    if payment.status == "paid":
        return PaymentStatus("paid", 0, "low")

    days = days_until(payment.due_date, as_of)
    if days < 0:
        return PaymentStatus("overdue", days, "high")
    if days <= 3:
        return PaymentStatus("due_soon", days, "high")
    if days <= 7:
        return PaymentStatus("pending", days, "medium")
    return PaymentStatus("pending", days, "low")


def debt_summary(payments: list[PaymentRecord], as_of: datetime) -> DebtSummary:
    total = overdue = pending = paid_month = last_amount = 0.0
    next_due: datetime | None = None
    last_paid: datetime | None = None
    month_start = start_of_month(as_of)

    for p in payments:
        if p.status in OUTSTANDING:
            total += p.amount
            if p.due_date < as_of:
                overdue += p.amount
            else:
                pending += p.amount
                if next_due is None or p.due_date < next_due:
                    next_due = p.due_date

        if p.status == "paid" and p.paid_date is not None:
            if month_start <= p.paid_date <= as_of:
                paid_month += p.amount
            if last_paid is None or p.paid_date > last_paid:
                last_paid = p.paid_date
                last_amount = p.amount

    return DebtSummary(
        total_debt=round(total, 2),
        overdue_amount=round(overdue, 2),
        pending_amount=round(pending, 2),
        next_due_date=next_due,
        paid_this_month=round(paid_month, 2),
        last_payment_date=last_paid,
        last_payment_amount=round(last_amount, 2),
    )


def payment_history(payments: list[PaymentRecord]) -> list[PaymentRecord]:
    """All payments, latest due date first."""
    return sorted(payments, key=lambda p: p.due_date, reverse=True)


def pending_payments(payments: list[PaymentRecord]) -> list[PaymentRecord]:
    """Outstanding payments, earliest due date first."""
    return sorted((p for p in payments if p.status in OUTSTANDING), key=lambda p: p.due_date)


def next_payment(payments: list[PaymentRecord]) -> PaymentRecord | None:
    """Earliest-due outstanding payment, so anything overdue comes first."""
    outstanding = pending_payments(payments)
    return outstanding[0] if outstanding else None
