"""
Scoring Settings for the driver credit score.

This module contains every configurable parameter of the credit score:
component weights, the band tables each component is scored against, the
rating thresholds and the loan terms attached to each rating.

Environment variables use the SCORING_ prefix:
    SCORING_WEIGHT_PAYMENT_HISTORY=0.35
    SCORING_ACCOUNT_AGE_BANDS_JSON='[[730,1000],[365,800],[180,600],[90,400]]'

Usage:
    from loan_gateway.service.scoring.settings import scoring_settings

    # Use default settings (loaded from env)
    weight = scoring_settings.weight_payment_history

    # Or create custom settings for testing
    custom = ScoringSettings(neutral_driving_score=400)
"""

import json
from decimal import Decimal
from functools import lru_cache
from typing import Dict, List, Tuple

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

RATING_LETTERS = ("A", "B", "C", "D", "E")


def _parse_bands(raw: str) -> List[Tuple[float, int]]:
    """Parse a ``[[threshold, score], ...]`` JSON band table."""
    try:
        bands = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON: {e}")
    if not isinstance(bands, list) or not bands:
        raise ValueError("Bands must be a non-empty list")
    parsed = []
    for band in bands:
        if not isinstance(band, list) or len(band) != 2:
            raise ValueError("Each band must be [threshold, score]")
        threshold, score = band
        if not isinstance(threshold, (int, float)) or not isinstance(score, int):
            raise ValueError("Band threshold must be numeric and score an integer")
        if not 0 <= score <= 1000:
            raise ValueError(f"Band score out of range 0-1000: {score}")
        parsed.append((float(threshold), score))
    return parsed


class ScoringSettings(BaseSettings):
    """
    Configurable parameters for the credit score.

    All settings can be overridden via environment variables with SCORING_ prefix.
    All component scores and the total are on a 0-1000 scale.
    Band tables are JSON arrays of [threshold, score] pairs.
    """

    model_config = SettingsConfigDict(
        env_prefix="SCORING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Component Weights ===
    weight_payment_history: float = Field(default=0.35, ge=0.0, le=1.0)
    weight_loan_utilization: float = Field(default=0.30, ge=0.0, le=1.0)
    weight_account_age: float = Field(default=0.15, ge=0.0, le=1.0)
    weight_driving_performance: float = Field(default=0.10, ge=0.0, le=1.0)
    weight_kyc_completeness: float = Field(default=0.10, ge=0.0, le=1.0)

    # === Payment History ===
    payment_history_bands_json: str = Field(
        default="[[100,1000],[95,900],[90,800],[80,600],[70,400]]",
        description="On-time percentage at or above threshold earns the score",
    )
    payment_history_floor_score: int = Field(default=200, ge=0, le=1000)
    payment_history_neutral_score: int = Field(
        default=500,
        ge=0,
        le=1000,
        description="Score when no payment can be classified yet",
    )
    late_payment_grace_days: int = Field(
        default=7,
        ge=0,
        description="Payments up to this many days late count as late, beyond as missed",
    )

    # === Loan Utilization ===
    utilization_bands_json: str = Field(
        default="[[25,1000],[50,800],[75,600],[100,400]]",
        description="Outstanding percentage at or below threshold earns the score",
    )
    utilization_over_leveraged_score: int = Field(default=200, ge=0, le=1000)
    utilization_no_active_loans_score: int = Field(default=800, ge=0, le=1000)

    # === Account Age ===
    account_age_bands_json: str = Field(
        default="[[730,1000],[365,800],[180,600],[90,400]]",
        description="Account age in days at or above threshold earns the score",
    )
    account_age_floor_score: int = Field(default=200, ge=0, le=1000)

    # === Driving Performance ===
    driving_rating_bands_json: str = Field(
        default="[[4.8,400],[4.5,350],[4.0,250],[3.5,150],[0,50]]",
    )
    driving_acceptance_bands_json: str = Field(
        default="[[0.95,300],[0.90,250],[0.80,200],[0.70,100],[0,50]]",
    )
    driving_completion_bands_json: str = Field(
        default="[[0.95,300],[0.90,250],[0.80,200],[0.70,100],[0,50]]",
    )
    neutral_driving_score: int = Field(
        default=500,
        ge=0,
        le=1000,
        description="Score when telemetry is unavailable or the driver is unmatched",
    )

    # === KYC Completeness ===
    kyc_full_score: int = Field(default=1000, ge=0, le=1000)
    kyc_id_and_license_score: int = Field(default=700, ge=0, le=1000)
    kyc_id_only_score: int = Field(default=600, ge=0, le=1000)
    kyc_pending_score: int = Field(default=300, ge=0, le=1000)
    kyc_none_score: int = Field(default=0, ge=0, le=1000)

    # === Ratings ===
    rating_thresholds_json: str = Field(
        default='[[800,"A"],[650,"B"],[500,"C"],[350,"D"]]',
        description="Minimum score for each rating; anything lower is E",
    )
    rating_terms_json: str = Field(
        default=(
            '{"A":["2000000","12.0"],"B":["1500000","15.0"],"C":["1000000","18.0"],'
            '"D":["500000","24.0"],"E":["0","0"]}'
        ),
        description="Rating to [max loan amount, annual interest rate %]",
    )

    # === Registration ===
    initial_score: int = Field(default=500, ge=0, le=1000)

    @field_validator(
        "payment_history_bands_json",
        "utilization_bands_json",
        "account_age_bands_json",
        "driving_rating_bands_json",
        "driving_acceptance_bands_json",
        "driving_completion_bands_json",
    )
    @classmethod
    def validate_bands_json(cls, v: str) -> str:
        """Validate that a band table is parseable and well-formed."""
        _parse_bands(v)
        return v

    @field_validator("rating_thresholds_json")
    @classmethod
    def validate_rating_thresholds(cls, v: str) -> str:
        try:
            thresholds = json.loads(v)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON: {e}")
        previous = None
        for entry in thresholds:
            if not isinstance(entry, list) or len(entry) != 2:
                raise ValueError("Each threshold must be [min_score, rating]")
            min_score, rating = entry
            if rating not in RATING_LETTERS:
                raise ValueError(f"Unknown rating: {rating}")
            if previous is not None and min_score >= previous:
                raise ValueError("Rating thresholds must be strictly descending")
            previous = min_score
        return v

    @field_validator("rating_terms_json")
    @classmethod
    def validate_rating_terms(cls, v: str) -> str:
        try:
            terms = json.loads(v)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON: {e}")
        missing = [letter for letter in RATING_LETTERS if letter not in terms]
        if missing:
            raise ValueError(f"Missing rating terms for: {', '.join(missing)}")
        for letter, pair in terms.items():
            if not isinstance(pair, list) or len(pair) != 2:
                raise ValueError(f"Terms for {letter} must be [max_amount, rate]")
            if Decimal(str(pair[0])) < 0 or Decimal(str(pair[1])) < 0:
                raise ValueError(f"Terms for {letter} cannot be negative")
        return v

    @model_validator(mode="after")
    def validate_weights_sum(self) -> "ScoringSettings":
        total = (
            Decimal(str(self.weight_payment_history))
            + Decimal(str(self.weight_loan_utilization))
            + Decimal(str(self.weight_account_age))
            + Decimal(str(self.weight_driving_performance))
            + Decimal(str(self.weight_kyc_completeness))
        )
        if total != Decimal("1"):
            raise ValueError(f"Component weights must sum to 1.0, got {total}")
        return self

    @property
    def payment_history_bands(self) -> List[Tuple[float, int]]:
        return _parse_bands(self.payment_history_bands_json)

    @property
    def utilization_bands(self) -> List[Tuple[float, int]]:
        return _parse_bands(self.utilization_bands_json)

    @property
    def account_age_bands(self) -> List[Tuple[float, int]]:
        return _parse_bands(self.account_age_bands_json)

    @property
    def driving_rating_bands(self) -> List[Tuple[float, int]]:
        return _parse_bands(self.driving_rating_bands_json)

    @property
    def driving_acceptance_bands(self) -> List[Tuple[float, int]]:
        return _parse_bands(self.driving_acceptance_bands_json)

    @property
    def driving_completion_bands(self) -> List[Tuple[float, int]]:
        return _parse_bands(self.driving_completion_bands_json)

    @property
    def rating_thresholds(self) -> List[Tuple[int, str]]:
        return [(int(score), rating) for score, rating in json.loads(self.rating_thresholds_json)]

    @property
    def rating_terms(self) -> Dict[str, Tuple[Decimal, Decimal]]:
        """Rating letter to (max loan amount, annual interest rate %)."""
        terms = json.loads(self.rating_terms_json)
        return {
            letter: (Decimal(str(pair[0])), Decimal(str(pair[1])))
            for letter, pair in terms.items()
        }

    @property
    def weights(self) -> Dict[str, Decimal]:
        return {
            "payment_history": Decimal(str(self.weight_payment_history)),
            "loan_utilization": Decimal(str(self.weight_loan_utilization)),
            "account_age": Decimal(str(self.weight_account_age)),
            "driving_performance": Decimal(str(self.weight_driving_performance)),
            "kyc_completeness": Decimal(str(self.weight_kyc_completeness)),
        }


@lru_cache
def get_scoring_settings() -> ScoringSettings:
    """Get cached scoring settings instance."""
    return ScoringSettings()


scoring_settings = get_scoring_settings()
