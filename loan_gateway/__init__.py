"""
Driver Loan Gateway - Credit Decisioning & Loan Ledger Service

A FastAPI-based microservice that scores gig-economy drivers, decides and
prices their microloans, and reconciles weekly repayments against each
loan's schedule.
"""

__version__ = "0.1.0"
