"""
Scheduling API Routes
"""

from fastapi import APIRouter

from . import appointments, availability, payments, reports, time_slots

router = APIRouter()
router.include_router(time_slots.router)
router.include_router(availability.router)
router.include_router(appointments.router)
router.include_router(payments.router)
router.include_router(reports.router)

__all__ = ["router"]
