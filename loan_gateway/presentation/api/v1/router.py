from fastapi import APIRouter

from .borrowers import borrower_router
from .kyc import kyc_router
from .loans import loan_router
from .payments import payment_router

router = APIRouter()

router.include_router(borrower_router, tags=["Borrowers"])
router.include_router(kyc_router, tags=["KYC"])
router.include_router(loan_router, tags=["Loans"])
router.include_router(payment_router, tags=["Payments"])
