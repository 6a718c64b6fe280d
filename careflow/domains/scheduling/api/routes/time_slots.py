"""
Time Slot Routes

Slot generation, listing, checkout unlock and repricing.
"""

import logging
from datetime import date

from fastapi import APIRouter, Query

from careflow.config.settings import get_settings
from careflow.core.domain import ValidationException
from careflow.domains.scheduling.api.dependencies import (
    Actor,
    AppointmentSchedulerDep,
    TimeSlotManagerDep,
)
from careflow.domains.scheduling.api.schemas import (
    BulkUpdatePriceRequest,
    GenerateSlotsRangeRequest,
    GenerateSlotsRequest,
    TimeSlotResponse,
    UnlockSlotRequest,
    UpdatePriceRequest,
)
from careflow.domains.scheduling.domain.value_objects import ActorRole, AvailabilityWindow, SlotStatus

router = APIRouter(prefix="/timeslots", tags=["Time Slots"])
logger = logging.getLogger(__name__)


@router.post("/generate", response_model=list[TimeSlotResponse], status_code=201)
async def generate_slots(body: GenerateSlotsRequest, manager: TimeSlotManagerDep, actor: Actor):
    """Partition one availability window into slots. Existing slots are kept."""
    actor.require_self(body.caregiver_id, ActorRole.CAREGIVER, "generate slots")

    try:
        window = AvailabilityWindow(date=body.date, start_time=body.start_time, end_time=body.end_time)
    except ValueError as e:
        raise ValidationException(str(e), field="end_time") from e

    price = body.price.to_money(get_settings().DEFAULT_CURRENCY) if body.price else None
    slots = await manager.generate_slots(body.caregiver_id, window, body.duration_minutes, price)
    return [TimeSlotResponse.from_entity(slot) for slot in slots]


@router.post("/generate-range", response_model=list[TimeSlotResponse], status_code=201)
async def generate_slots_for_range(body: GenerateSlotsRangeRequest, manager: TimeSlotManagerDep, actor: Actor):
    """Generate slots from the caregiver's weekly availability."""
    actor.require_self(body.caregiver_id, ActorRole.CAREGIVER, "generate slots")

    price = body.price.to_money(get_settings().DEFAULT_CURRENCY) if body.price else None
    slots = await manager.generate_slots_for_range(
        body.caregiver_id, body.start_date, body.end_date, body.duration_minutes, price
    )
    return [TimeSlotResponse.from_entity(slot) for slot in slots]


@router.get("", response_model=list[TimeSlotResponse])
async def list_slots(
    manager: TimeSlotManagerDep,
    actor: Actor,
    caregiver_id: str | None = None,
    on_date: date | None = Query(default=None, alias="date"),
    from_date: date | None = None,
    to_date: date | None = None,
    status: SlotStatus | None = None,
):
    """List slots. Expired locks are reported as available."""
    slots = await manager.list_slots(
        caregiver_id=caregiver_id,
        on_date=on_date,
        from_date=from_date,
        to_date=to_date,
        status=status,
    )
    return [TimeSlotResponse.from_entity(slot) for slot in slots]


@router.get("/{slot_id}", response_model=TimeSlotResponse)
async def get_slot(slot_id: str, manager: TimeSlotManagerDep, actor: Actor):
    return TimeSlotResponse.from_entity(await manager.get_slot(slot_id))


@router.post("/{slot_id}/unlock", response_model=TimeSlotResponse)
async def unlock_slot(
    slot_id: str,
    body: UnlockSlotRequest,
    manager: TimeSlotManagerDep,
    scheduler: AppointmentSchedulerDep,
    actor: Actor,
):
    """Abandon the checkout holding this slot."""
    appointment = await scheduler.get_appointment(body.appointment_id)
    actor.require_participant(appointment, "unlock time slot")

    slot = await manager.unlock_slot(slot_id, holder_ref=body.appointment_id)
    return TimeSlotResponse.from_entity(slot)


@router.put("/bulk/price", response_model=list[TimeSlotResponse])
async def bulk_update_price(body: BulkUpdatePriceRequest, manager: TimeSlotManagerDep, actor: Actor):
    """Reprice several available slots at once. Fails as a whole if any slot is held."""
    slot_ids = list(dict.fromkeys(body.slot_ids))
    for slot_id in slot_ids:
        slot = await manager.get_slot(slot_id)
        actor.require_self(slot.caregiver_id, ActorRole.CAREGIVER, "update slot price")

    slots = await manager.bulk_update_price(slot_ids, body.price.to_money(get_settings().DEFAULT_CURRENCY))
    return [TimeSlotResponse.from_entity(slot) for slot in slots]


@router.put("/{slot_id}/price", response_model=TimeSlotResponse)
async def update_price(slot_id: str, body: UpdatePriceRequest, manager: TimeSlotManagerDep, actor: Actor):
    slot = await manager.get_slot(slot_id)
    actor.require_self(slot.caregiver_id, ActorRole.CAREGIVER, "update slot price")

    slot = await manager.update_price(slot_id, body.price.to_money(get_settings().DEFAULT_CURRENCY))
    return TimeSlotResponse.from_entity(slot)
