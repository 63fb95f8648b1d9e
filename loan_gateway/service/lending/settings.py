"""
Lending policy settings.

Bounds applied to loan applications and payments, plus the eligibility
rules evaluated before a loan is created.

Environment variables use the LENDING_ prefix:
    LENDING_MAX_ACTIVE_LOANS=1
    LENDING_DEFAULT_LOOKBACK_DAYS=365
"""

from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LendingSettings(BaseSettings):
    """
    Configurable lending policy.

    All settings can be overridden via environment variables with LENDING_ prefix.
    Amounts are in the configured currency's major unit.
    """

    model_config = SettingsConfigDict(
        env_prefix="LENDING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Application bounds ===
    min_loan_amount: Decimal = Field(default=Decimal("100000"), gt=0)
    max_loan_amount: Decimal = Field(default=Decimal("2000000"), gt=0)
    min_term_weeks: int = Field(default=4, ge=1)
    max_term_weeks: int = Field(default=52, ge=1)
    min_purpose_length: int = Field(default=10, ge=0)
    max_purpose_length: int = Field(default=200, ge=1)

    # === Admin decisions ===
    min_rejection_reason_length: int = Field(default=10, ge=1)
    max_rejection_reason_length: int = Field(default=500, ge=1)
    min_interest_rate: Decimal = Field(default=Decimal("0"), ge=0)
    max_interest_rate: Decimal = Field(default=Decimal("50"), ge=0)

    # === Payments ===
    min_payment_amount: Decimal = Field(default=Decimal("1000"), gt=0)
    max_payment_amount: Decimal = Field(default=Decimal("10000000"), gt=0)

    # === Eligibility ===
    max_active_loans: int = Field(default=1, ge=1)
    min_credit_score: int = Field(default=350, ge=0, le=1000)
    min_account_age_days: int = Field(default=30, ge=0)
    default_lookback_days: Optional[int] = Field(
        default=None,
        ge=1,
        description="Days a default disqualifies a borrower; None means forever",
    )

    # === Re-scoring ===
    score_recalc_attempts: int = Field(
        default=3,
        ge=1,
        description="Attempts made to record a score recalculation after a commit",
    )

    @model_validator(mode="after")
    def validate_ranges(self) -> "LendingSettings":
        if self.min_loan_amount > self.max_loan_amount:
            raise ValueError("min_loan_amount must not exceed max_loan_amount")
        if self.min_term_weeks > self.max_term_weeks:
            raise ValueError("min_term_weeks must not exceed max_term_weeks")
        if self.min_purpose_length > self.max_purpose_length:
            raise ValueError("min_purpose_length must not exceed max_purpose_length")
        if self.min_rejection_reason_length > self.max_rejection_reason_length:
            raise ValueError("rejection reason bounds are inverted")
        if self.min_interest_rate > self.max_interest_rate:
            raise ValueError("min_interest_rate must not exceed max_interest_rate")
        if self.min_payment_amount > self.max_payment_amount:
            raise ValueError("min_payment_amount must not exceed max_payment_amount")
        return self


@lru_cache
def get_lending_settings() -> LendingSettings:
    """Get cached lending settings instance."""
    return LendingSettings()


lending_settings = get_lending_settings()
