"""
Loan amortization.

Simple (flat) interest over the term, repaid in equal weekly installments:

    interest = principal * rate / 100 * term_weeks / 52
    total_repayment = principal + interest
    weekly_payment = total_repayment / term_weeks

Every monetary result is rounded half-up to two decimal places.
"""

from dataclasses import dataclass
from decimal import Decimal

from loan_gateway.utils.money import Number, quantize_money, to_decimal

WEEKS_PER_YEAR = Decimal("52")


@dataclass(frozen=True)
class Amortization:
    """Repayment figures for one loan."""

    principal: Decimal
    interest_rate: Decimal
    term_weeks: int
    interest_amount: Decimal
    total_repayment: Decimal
    weekly_payment: Decimal

    def to_dict(self) -> dict:
        return {
            "principal": str(self.principal),
            "interest_rate": str(self.interest_rate),
            "term_weeks": self.term_weeks,
            "interest_amount": str(self.interest_amount),
            "total_repayment": str(self.total_repayment),
            "weekly_payment": str(self.weekly_payment),
        }


def amortize(principal: Number, term_weeks: int, annual_rate: Number) -> Amortization:
    """
    Compute total repayment and the weekly installment.

    Args:
        principal: Amount lent
        term_weeks: Number of weekly installments (>= 1)
        annual_rate: Annual interest rate in percent

    Returns:
        Amortization with every amount rounded to 0.01

    Raises:
        ValueError: If the term is not positive or an input is negative
    """
    if term_weeks < 1:
        raise ValueError(f"term_weeks must be at least 1, got {term_weeks}")

    principal = quantize_money(principal)
    rate = to_decimal(annual_rate)
    if principal < 0 or rate < 0:
        raise ValueError("principal and annual_rate cannot be negative")

    interest = quantize_money(principal * rate / 100 * term_weeks / WEEKS_PER_YEAR)
    total = principal + interest
    weekly = quantize_money(total / term_weeks)

    return Amortization(
        principal=principal,
        interest_rate=rate,
        term_weeks=term_weeks,
        interest_amount=interest,
        total_repayment=total,
        weekly_payment=weekly,
    )
