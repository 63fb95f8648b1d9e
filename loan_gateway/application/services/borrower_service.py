"""Borrower service - driver registration and lookup."""

from uuid import UUID

import structlog

from loan_gateway.application.dto import BorrowerResponse, RegisterBorrowerRequest
from loan_gateway.domain.entities import Borrower
from loan_gateway.domain.exceptions import (
    BorrowerAlreadyExistsException,
    BorrowerNotFoundException,
    ValidationException,
)
from loan_gateway.domain.interfaces import BorrowerRepository, UnitOfWork
from loan_gateway.service.scoring import ScoringSettings, score_to_rating, scoring_settings

from .credit_service import CreditService

logger = structlog.get_logger(__name__)


class BorrowerService:
    """
    Application service for borrower use cases.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        borrower_repository: BorrowerRepository,
        credit_service: CreditService,
        scoring: ScoringSettings = scoring_settings,
    ):
        self._uow = uow
        self._borrower_repo = borrower_repository
        self._credit_service = credit_service
        self._scoring = scoring

    async def register(self, request: RegisterBorrowerRequest) -> BorrowerResponse:
        """
        Register a driver and seed their credit history.

        The borrower and their initial snapshot are written together.

        Raises:
            ValidationException: If request validation fails
            BorrowerAlreadyExistsException: If the external id is taken
        """
        errors = request.validate()
        if errors:
            raise ValidationException("; ".join(errors), errors)

        external_id = request.external_id.strip()
        if await self._borrower_repo.get_by_external_id(external_id) is not None:
            raise BorrowerAlreadyExistsException(external_id)

        initial_score = self._scoring.initial_score
        borrower = Borrower(
            external_id=external_id,
            name=request.name.strip(),
            phone=request.phone.strip(),
            credit_score=initial_score,
            credit_rating=score_to_rating(initial_score, self._scoring),
        )

        async with self._uow.transaction():
            await self._borrower_repo.save(borrower)
            await self._credit_service.seed(borrower)

        logger.info(
            "borrower_registered",
            borrower_id=str(borrower.id),
            external_id=external_id,
            credit_score=borrower.credit_score,
        )

        return BorrowerResponse.from_entity(borrower)

    async def get(self, borrower_id: UUID) -> BorrowerResponse:
        """
        Get a borrower by ID.

        Raises:
            BorrowerNotFoundException: If the borrower doesn't exist
        """
        borrower = await self._borrower_repo.get_by_id(borrower_id)
        if borrower is None:
            raise BorrowerNotFoundException(str(borrower_id))
        return BorrowerResponse.from_entity(borrower)
