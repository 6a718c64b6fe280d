"""
Availability Routes

Weekly availability of caregivers.
"""

from fastapi import APIRouter, Response, status

from careflow.domains.scheduling.api.dependencies import Actor, AvailabilityServiceDep
from careflow.domains.scheduling.api.schemas import (
    AvailabilityResponse,
    AvailabilityWindowRequest,
    CreateAvailabilityRequest,
    ReplaceAvailabilityRequest,
)
from careflow.domains.scheduling.application.services import WeeklyWindow
from careflow.domains.scheduling.domain.value_objects import ActorRole

router = APIRouter(prefix="/availability", tags=["Availability"])


def _to_window(body: AvailabilityWindowRequest) -> WeeklyWindow:
    return WeeklyWindow(
        day_of_week=body.day_of_week,
        start_time=body.start_time,
        end_time=body.end_time,
        is_active=body.is_active,
    )


@router.get("", response_model=list[AvailabilityResponse])
async def list_availability(
    caregiver_id: str,
    service: AvailabilityServiceDep,
    actor: Actor,
    active_only: bool = False,
):
    windows = await service.list_windows(caregiver_id, active_only=active_only)
    return [AvailabilityResponse.from_entity(window) for window in windows]


@router.post("", response_model=AvailabilityResponse, status_code=status.HTTP_201_CREATED)
async def add_availability(body: CreateAvailabilityRequest, service: AvailabilityServiceDep, actor: Actor):
    actor.require_self(body.caregiver_id, ActorRole.CAREGIVER, "manage availability")

    availability = await service.add_window(body.caregiver_id, _to_window(body))
    return AvailabilityResponse.from_entity(availability)


@router.put("/caregivers/{caregiver_id}", response_model=list[AvailabilityResponse])
async def replace_availability(
    caregiver_id: str,
    body: ReplaceAvailabilityRequest,
    service: AvailabilityServiceDep,
    actor: Actor,
):
    """Replace the caregiver's whole weekly schedule."""
    actor.require_self(caregiver_id, ActorRole.CAREGIVER, "manage availability")

    windows = await service.replace_all(caregiver_id, [_to_window(window) for window in body.windows])
    return [AvailabilityResponse.from_entity(window) for window in windows]


@router.get("/{availability_id}", response_model=AvailabilityResponse)
async def get_availability(availability_id: str, service: AvailabilityServiceDep, actor: Actor):
    return AvailabilityResponse.from_entity(await service.get_window(availability_id))


@router.put("/{availability_id}", response_model=AvailabilityResponse)
async def update_availability(
    availability_id: str,
    body: AvailabilityWindowRequest,
    service: AvailabilityServiceDep,
    actor: Actor,
):
    current = await service.get_window(availability_id)
    actor.require_self(current.caregiver_id, ActorRole.CAREGIVER, "manage availability")

    availability = await service.update_window(availability_id, _to_window(body))
    return AvailabilityResponse.from_entity(availability)


@router.delete("/{availability_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_availability(availability_id: str, service: AvailabilityServiceDep, actor: Actor) -> Response:
    current = await service.get_window(availability_id)
    actor.require_self(current.caregiver_id, ActorRole.CAREGIVER, "manage availability")

    await service.remove_window(availability_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
