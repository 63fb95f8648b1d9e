"""SQLAlchemy ORM models for the loan ledger."""

from datetime import datetime, date
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from loan_gateway.utils.date_utils import utcnow

MONEY = Numeric(14, 2)


class Base(DeclarativeBase):
    pass


class BorrowerModel(Base):
    """Persisted borrower record."""

    __tablename__ = "borrowers"

    id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    external_id: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    account_status: Mapped[str] = mapped_column(String(20), nullable=False, default="ACTIVE")
    kyc_status: Mapped[str] = mapped_column(String(20), nullable=False, default="NOT_STARTED")
    credit_score: Mapped[int] = mapped_column(Integer, nullable=False, default=500)
    credit_rating: Mapped[str] = mapped_column(String(1), nullable=False, default="C")
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    loans: Mapped[list["LoanModel"]] = relationship("LoanModel", back_populates="borrower")


class KycDocumentModel(Base):
    """Persisted KYC document record."""

    __tablename__ = "kyc_documents"

    id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    borrower_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        ForeignKey("borrowers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    document_type: Mapped[str] = mapped_column(String(50), nullable=False)
    document_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="PENDING")
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)


class CreditScoreSnapshotModel(Base):
    """Append-only credit score history record."""

    __tablename__ = "credit_score_snapshots"

    id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    borrower_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        ForeignKey("borrowers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    rating: Mapped[str] = mapped_column(String(1), nullable=False)
    payment_history_score: Mapped[int] = mapped_column(Integer, nullable=False)
    loan_utilization_score: Mapped[int] = mapped_column(Integer, nullable=False)
    account_age_score: Mapped[int] = mapped_column(Integer, nullable=False)
    driving_performance_score: Mapped[int] = mapped_column(Integer, nullable=False)
    kyc_completeness_score: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=utcnow,
        index=True,
    )


class LoanModel(Base):
    """Persisted loan record."""

    __tablename__ = "loans"

    id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    borrower_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        ForeignKey("borrowers.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    principal: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    interest_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    term_weeks: Mapped[int] = mapped_column(Integer, nullable=False)
    total_repayment: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    weekly_payment: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    amount_paid: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="PENDING", index=True)
    purpose: Mapped[str] = mapped_column(String(200), nullable=False)
    approved_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    disbursed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    defaulted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=utcnow,
        index=True,
    )

    borrower: Mapped["BorrowerModel"] = relationship("BorrowerModel", back_populates="loans")
    schedule: Mapped[list["ScheduleEntryModel"]] = relationship(
        "ScheduleEntryModel",
        back_populates="loan",
        cascade="all, delete-orphan",
        order_by="ScheduleEntryModel.week_number",
    )


class ScheduleEntryModel(Base):
    """Persisted weekly installment of a loan."""

    __tablename__ = "loan_schedule"
    __table_args__ = (
        UniqueConstraint("loan_id", "week_number", name="uq_loan_schedule_week"),
    )

    id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    loan_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        ForeignKey("loans.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    week_number: Mapped[int] = mapped_column(Integer, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    amount_due: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    amount_paid: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="PENDING")
    paid_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    loan: Mapped["LoanModel"] = relationship("LoanModel", back_populates="schedule")


class PaymentModel(Base):
    """Persisted repayment record."""

    __tablename__ = "payments"

    id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    loan_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        ForeignKey("loans.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    borrower_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        ForeignKey("borrowers.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    schedule_entry_id: Mapped[str | None] = mapped_column(
        Uuid(as_uuid=False),
        ForeignKey("loan_schedule.id", ondelete="SET NULL"),
        nullable=True,
    )
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    method: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="PENDING")
    reference: Mapped[str | None] = mapped_column(String(255), nullable=True)
    provider_reference: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        unique=True,
    )
    failure_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    unallocated_amount: Mapped[Decimal] = mapped_column(
        MONEY,
        nullable=False,
        default=Decimal("0"),
    )
    processed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    refunded_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=utcnow,
        index=True,
    )


class PaymentAllocationModel(Base):
    """Share of a payment applied to one schedule entry."""

    __tablename__ = "payment_allocations"

    id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    payment_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        ForeignKey("payments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    schedule_entry_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        ForeignKey("loan_schedule.id", ondelete="CASCADE"),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
