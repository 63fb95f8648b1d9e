"""
Lending Policy Module for the Driver Loan Gateway
"""

from .settings import LendingSettings, lending_settings
from .eligibility import EligibilityResult, evaluate_eligibility, has_disqualifying_default
from .amortization import Amortization, amortize
from .schedule import generate_schedule
from .allocation import (
    AllocationResult,
    allocate_payment,
    credit_loan,
    debit_loan,
    open_entries,
    reverse_allocations,
)

__all__ = [
    # Settings
    "LendingSettings",
    "lending_settings",
    # Eligibility
    "EligibilityResult",
    "evaluate_eligibility",
    "has_disqualifying_default",
    # Amortization
    "Amortization",
    "amortize",
    # Schedule
    "generate_schedule",
    # Allocation
    "AllocationResult",
    "allocate_payment",
    "credit_loan",
    "debit_loan",
    "open_entries",
    "reverse_allocations",
]
