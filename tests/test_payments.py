from datetime import timedelta

import pytest

from gymactivity.payments import (
    DebtSummary,
    PaymentStatus,
    classify,
    debt_summary,
    next_payment,
    payment_history,
    pending_payments,
)

from conftest import AS_OF, bill, days_ago


def test_due_in_two_days_is_due_soon():
    assert classify(bill(AS_OF + timedelta(days=2)), AS_OF) == PaymentStatus("due_soon", 2, "high")


def test_five_days_late_is_overdue():
    assert classify(bill(AS_OF - timedelta(days=5)), AS_OF) == PaymentStatus("overdue", -5, "high")


@pytest.mark.parametrize("days, status, urgency", [
    (0, "due_soon", "high"),
    (3, "due_soon", "high"),
    (4, "pending", "medium"),
    (7, "pending", "medium"),
    (8, "pending", "low"),
    (30, "pending", "low"),
])
def test_urgency_tiers(days, status, urgency):
    state = classify(bill(AS_OF + timedelta(days=days)), AS_OF)
    assert (state.status, state.days_until_due, state.urgency) == (status, days, urgency)


def test_partial_day_rounds_up():
    assert classify(bill(AS_OF + timedelta(hours=30)), AS_OF).days_until_due == 2
    assert classify(bill(AS_OF - timedelta(hours=1)), AS_OF).status == "due_soon"


def test_paid_is_always_low():
    paid = bill(AS_OF - timedelta(days=40), status="paid", paid=AS_OF - timedelta(days=39))
    assert classify(paid, AS_OF) == PaymentStatus("paid", 0, "low")


def test_debt_summary_totals():
    payments = [
        bill(AS_OF - timedelta(days=5), amount=3000, rid="late"),
        bill(AS_OF + timedelta(days=2), amount=10000, rid="soon"),
        bill(AS_OF + timedelta(days=20), status="partial", amount=2500, rid="partial"),
        bill(days_ago(30), status="paid", amount=9000, paid=days_ago(28), rid="may"),
        bill(days_ago(9), status="paid", amount=10000, paid=days_ago(8), rid="june"),
    ]
    summary = debt_summary(payments, AS_OF)

    assert summary.total_debt == 15500
    assert summary.overdue_amount == 3000
    assert summary.pending_amount == 12500
    assert summary.next_due_date == AS_OF + timedelta(days=2)
    assert summary.paid_this_month == 10000
    assert summary.last_payment_date == days_ago(8)
    assert summary.last_payment_amount == 10000


def test_debt_summary_is_pure():
    payments = [bill(AS_OF + timedelta(days=2)), bill(days_ago(3), status="paid", paid=days_ago(2))]
    first = debt_summary(payments, AS_OF)
    second = debt_summary(payments, AS_OF)
    assert first == second
    assert first.as_payload() == second.as_payload()


def test_debt_summary_of_nothing():
    assert debt_summary([], AS_OF) == DebtSummary()
    assert debt_summary([], AS_OF).as_payload()["nextDueDate"] is None


def test_history_pending_and_next():
    late = bill(AS_OF - timedelta(days=5), rid="late")
    soon = bill(AS_OF + timedelta(days=2), rid="soon")
    done = bill(days_ago(30), status="paid", paid=days_ago(29), rid="done")
    payments = [soon, done, late]

    assert [p.id for p in payment_history(payments)] == ["soon", "late", "done"]
    assert [p.id for p in pending_payments(payments)] == ["late", "soon"]
    assert next_payment(payments).id == "late"
    assert next_payment([done]) is None
