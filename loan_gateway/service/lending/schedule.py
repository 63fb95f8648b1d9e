"""Repayment schedule generation."""

from datetime import date
from decimal import Decimal
from typing import List
from uuid import UUID

from loan_gateway.domain.entities import ScheduleEntry, ScheduleEntryStatus
from loan_gateway.utils.date_utils import add_weeks
from loan_gateway.utils.money import quantize_money


def generate_schedule(
    loan_id: UUID,
    start_date: date,
    term_weeks: int,
    weekly_payment: Decimal,
    total_repayment: Decimal,
) -> List[ScheduleEntry]:
    """
    Build the weekly installments of an approved loan.

    Week ``w`` falls due ``7 * w`` days after ``start_date``. Every entry
    owes ``weekly_payment`` except the last, which absorbs the rounding
    residue so the schedule sums exactly to ``total_repayment``.

    Args:
        loan_id: Loan the entries belong to
        start_date: Loan start date
        term_weeks: Number of entries to create (>= 1)
        weekly_payment: Rounded weekly installment
        total_repayment: Exact amount the schedule must add up to

    Returns:
        Entries ordered by week number
    """
    if term_weeks < 1:
        raise ValueError(f"term_weeks must be at least 1, got {term_weeks}")

    weekly = quantize_money(weekly_payment)
    last = quantize_money(total_repayment) - weekly * (term_weeks - 1)

    return [
        ScheduleEntry(
            loan_id=loan_id,
            week_number=week,
            due_date=add_weeks(start_date, week),
            amount_due=last if week == term_weeks else weekly,
            status=ScheduleEntryStatus.PENDING,
        )
        for week in range(1, term_weeks + 1)
    ]
