"""
Reschedule Policy Engine

The only place where a reschedule is authorized and carried out.
"""

import logging

from careflow.core.clock import Clock, utc_now
from careflow.core.domain import DomainException, EntityNotFoundException, ValidationException
from careflow.domains.scheduling.application.ports import (
    IAppointmentRepository,
    IRescheduleHistoryRepository,
    IUnitOfWork,
)
from careflow.domains.scheduling.application.services.appointment_scheduler import expire_lapsed_checkout
from careflow.domains.scheduling.application.services.time_slot_manager import TimeSlotManager
from careflow.domains.scheduling.domain.entities import Appointment, RescheduleRecord
from careflow.domains.scheduling.domain.services import RescheduleEligibility, ReschedulePolicy
from careflow.domains.scheduling.domain.value_objects import ActorRole, SchedulingPolicy

logger = logging.getLogger(__name__)


class ReschedulePolicyEngine:
    """
    Move a session_waiting appointment to another slot of the same caregiver.

    Checks run in order (status, cutoff, reschedule count, caregiver) and
    all of them happen before any slot is touched. The slot swap is
    lock new -> release old -> book new; if booking the new slot fails,
    the old slot is re-bound to the appointment before the error is
    re-raised. A target whose checkout lock lapsed is taken over and the
    pending appointment that held it is cancelled.

    Example:
        ```python
        engine = ReschedulePolicyEngine(slot_manager, appointment_repo, history_repo, uow, policy)
        appointment = await engine.reschedule(
            appointment_id, new_time_slot_id, reason="family emergency", requested_by=ActorRole.PATIENT
        )
        ```
    """

    def __init__(
        self,
        slot_manager: TimeSlotManager,
        appointment_repository: IAppointmentRepository,
        history_repository: IRescheduleHistoryRepository,
        unit_of_work: IUnitOfWork,
        policy: SchedulingPolicy,
        clock: Clock = utc_now,
    ):
        self._slots = slot_manager
        self._appointments = appointment_repository
        self._history = history_repository
        self._uow = unit_of_work
        self._policy = policy
        self._rules = ReschedulePolicy(policy)
        self._clock = clock

    async def reschedule(
        self,
        appointment_id: str,
        new_time_slot_id: str,
        reason: str = "",
        requested_by: ActorRole = ActorRole.PATIENT,
    ) -> Appointment:
        """
        Reschedule an appointment.

        Raises:
            InvalidTransitionException: Appointment is not session_waiting
            CutoffExceededException: Session starts within the cutoff window
            MaxReschedulesExceededException: No reschedules left
            WrongCaregiverException: Target slot belongs to another caregiver
            SlotUnavailableException: Target slot is held, booked or already the current slot
        """
        async with self._uow.transaction():
            appointment = await self._get(appointment_id, for_update=True)
            now = self._clock()
            self._rules.validate_appointment(appointment, now)

            new_slot = await self._slots.get_slot(new_time_slot_id)
            self._rules.validate_target(appointment, new_slot)
            new_scheduled_date = new_slot.starts_at(self._policy)
            if new_scheduled_date <= now:
                raise ValidationException("Cannot reschedule to a time slot in the past", field="new_time_slot_id")

            old_slot_id = appointment.time_slot_id
            old_scheduled_date = appointment.scheduled_date
            holder = appointment.id or ""

            await expire_lapsed_checkout(self._slots, self._appointments, self._uow, new_time_slot_id, now)
            await self._slots.lock_slot(new_time_slot_id, holder_ref=holder)
            await self._slots.release_slot(old_slot_id, holder_ref=holder)
            try:
                async with self._uow.savepoint():
                    await self._slots.book_slot(new_time_slot_id, holder)
            except DomainException:
                await self._restore_old_slot(holder, old_slot_id, new_time_slot_id)
                raise

            appointment.move_to_slot(new_time_slot_id, new_scheduled_date, reason, now)
            await self._appointments.save(appointment)
            await self._history.add(
                RescheduleRecord.create(
                    appointment_id=holder,
                    from_time_slot_id=old_slot_id,
                    to_time_slot_id=new_time_slot_id,
                    previous_scheduled_date=old_scheduled_date,
                    new_scheduled_date=new_scheduled_date,
                    reason=reason,
                    requested_by=requested_by,
                    now=now,
                )
            )
            self._uow.collect(appointment)

        logger.info(
            f"Appointment {appointment_id} rescheduled from slot {old_slot_id} to {new_time_slot_id} "
            f"({appointment.reschedule_count}/{self._policy.max_reschedules}) by {requested_by.value}"
        )
        return appointment

    async def _restore_old_slot(self, holder: str, old_slot_id: str, new_slot_id: str) -> None:
        logger.warning(f"Booking slot {new_slot_id} failed for appointment {holder}, restoring slot {old_slot_id}")
        try:
            await self._slots.release_slot(new_slot_id, holder_ref=holder)
            await self._slots.lock_slot(old_slot_id, holder_ref=holder)
            await self._slots.book_slot(old_slot_id, holder)
        except DomainException as e:
            # The enclosing transaction still rolls back both slots.
            logger.error(f"Could not restore slot {old_slot_id} for appointment {holder}: {e.message}")

    async def check_eligibility(self, appointment_id: str) -> RescheduleEligibility:
        """Advisory check for clients; `reschedule` re-validates everything."""
        appointment = await self._get(appointment_id)
        return self._rules.eligibility(appointment, self._clock())

    async def get_history(self, appointment_id: str) -> list[RescheduleRecord]:
        await self._get(appointment_id)
        return await self._history.find_by_appointment(appointment_id)

    async def _get(self, appointment_id: str, for_update: bool = False) -> Appointment:
        appointment = await self._appointments.find_by_id(appointment_id, for_update=for_update)
        if appointment is None:
            raise EntityNotFoundException("Appointment", appointment_id)
        return appointment
