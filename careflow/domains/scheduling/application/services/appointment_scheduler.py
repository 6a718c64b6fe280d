"""
Appointment Scheduler

Creates appointments, drives them through the status machine and keeps
their slot in step.
"""

import logging
from datetime import datetime

from careflow.core.clock import Clock, utc_now
from careflow.core.domain import (
    ConcurrencyException,
    EntityNotFoundException,
    ValidationException,
    generate_uuid_str,
)
from careflow.domains.scheduling.application.dto import CreateAppointmentRequest
from careflow.domains.scheduling.application.ports import (
    IAppointmentRepository,
    ICareSessionReportRepository,
    ISpecialtyRepository,
    IUnitOfWork,
)
from careflow.domains.scheduling.application.services.time_slot_manager import TimeSlotManager
from careflow.domains.scheduling.domain.entities import Appointment, CareSessionReport
from careflow.domains.scheduling.domain.exceptions import (
    InvalidTransitionException,
    LockExpiredException,
    SlotUnavailableException,
)
from careflow.domains.scheduling.domain.value_objects import (
    ActorRole,
    AppointmentStatus,
    FeeType,
    SchedulingPolicy,
)

logger = logging.getLogger(__name__)

PAYMENT_TIMEOUT_REASON = "payment_timeout"


async def expire_lapsed_checkout(
    slot_manager: TimeSlotManager,
    appointment_repository: IAppointmentRepository,
    unit_of_work: IUnitOfWork,
    slot_id: str,
    now: datetime,
) -> Appointment | None:
    """
    Cancel the pending appointment whose lapsed lock on the slot is about to be taken over.

    Must run inside the transaction that takes the new lock.

    Returns:
        The cancelled appointment, or None when there was nothing to cancel

    Raises:
        SlotUnavailableException: The previous holder changed concurrently
    """
    holder = await slot_manager.lapsed_lock_holder(slot_id)
    if holder is None:
        return None
    previous = await appointment_repository.find_by_id(holder, for_update=True)
    if previous is None or previous.status != AppointmentStatus.PENDING:
        return None

    previous.cancel(PAYMENT_TIMEOUT_REASON, ActorRole.SYSTEM.value, now)
    try:
        await appointment_repository.save(previous)
    except ConcurrencyException as e:
        raise SlotUnavailableException(slot_id) from e
    unit_of_work.collect(previous)
    logger.info(f"Appointment {previous.id} cancelled after payment timeout, slot {slot_id} taken over")
    return previous


class AppointmentScheduler:
    """
    Appointment lifecycle service.

    pending --(booking fee)--> session_waiting --(session fee + report)--> session_attended;
    pending and session_waiting can be cancelled. Every operation runs
    in one unit of work, so a failure leaves slot and appointment as they were.
    """

    def __init__(
        self,
        slot_manager: TimeSlotManager,
        appointment_repository: IAppointmentRepository,
        specialty_repository: ISpecialtyRepository,
        report_repository: ICareSessionReportRepository,
        unit_of_work: IUnitOfWork,
        policy: SchedulingPolicy,
        clock: Clock = utc_now,
    ):
        self._slots = slot_manager
        self._appointments = appointment_repository
        self._specialties = specialty_repository
        self._reports = report_repository
        self._uow = unit_of_work
        self._policy = policy
        self._clock = clock

    async def create_appointment(self, request: CreateAppointmentRequest) -> Appointment:
        """
        Lock the slot and create a pending appointment.

        When the slot still carries a lapsed checkout lock, the pending
        appointment that held it is cancelled in the same transaction.

        Raises:
            SlotUnavailableException: Slot is held by another checkout or booked
            ValidationException: Slot is in the past or the specialty is inactive
        """
        async with self._uow.transaction():
            slot = await self._slots.get_slot(request.time_slot_id)
            specialty = await self._specialties.find_by_id(request.specialty_id)
            if specialty is None:
                raise EntityNotFoundException("Specialty", request.specialty_id)
            if not specialty.is_active:
                raise ValidationException("Specialty is not available for booking", field="specialty_id")

            now = self._clock()
            scheduled_date = slot.starts_at(self._policy)
            if scheduled_date <= now:
                raise ValidationException("Cannot book a time slot in the past", field="time_slot_id")

            await expire_lapsed_checkout(self._slots, self._appointments, self._uow, slot.id or "", now)
            appointment_id = generate_uuid_str()
            await self._slots.lock_slot(slot.id or "", holder_ref=appointment_id)

            appointment = Appointment.create(
                patient_id=request.patient_id,
                caregiver_id=slot.caregiver_id,
                specialty_id=request.specialty_id,
                time_slot_id=slot.id or "",
                scheduled_date=scheduled_date,
                session_type=request.session_type,
                fees=specialty.fee_schedule(caregiver_rate=slot.price),
                notes=request.notes,
                appointment_id=appointment_id,
                now=now,
            )
            await self._appointments.add(appointment)
            self._uow.collect(appointment)

        logger.info(
            f"Appointment {appointment.id} created for patient {appointment.patient_id} "
            f"in slot {appointment.time_slot_id}, total {appointment.total_cost}"
        )
        return appointment

    async def on_fee_completed(self, appointment_id: str, fee_type: FeeType) -> Appointment:
        """
        Apply a completed fee to the appointment.

        The first booking fee moves pending -> session_waiting and books
        the slot. A lock that lapsed while the patient was paying is
        re-taken if the slot is still free.

        Raises:
            LockExpiredException: The slot was taken by someone else meanwhile
        """
        async with self._uow.transaction():
            appointment = await self._get(appointment_id, for_update=True)
            now = self._clock()

            changed = appointment.mark_fee_completed(fee_type, now)
            if not changed:
                logger.info(f"{fee_type.value} already completed for appointment {appointment_id}")
                return appointment

            if fee_type == FeeType.BOOKING_FEE and appointment.status == AppointmentStatus.PENDING:
                await self._book_held_slot(appointment)
                appointment.confirm_booking(now)

            await self._appointments.save(appointment)
            self._uow.collect(appointment)

        logger.info(
            f"{fee_type.value} completed for appointment {appointment_id}, status {appointment.status.value}"
        )
        return appointment

    async def _book_held_slot(self, appointment: Appointment) -> None:
        try:
            await self._slots.book_slot(appointment.time_slot_id, appointment.id or "")
        except LockExpiredException:
            slot = await self._slots.get_slot(appointment.time_slot_id)
            if not slot.is_available(self._clock()):
                logger.warning(
                    f"Slot {appointment.time_slot_id} was taken before appointment {appointment.id} was paid"
                )
                raise
            logger.info(f"Re-locking lapsed slot {slot.id} for paid appointment {appointment.id}")
            await self._slots.lock_slot(slot.id or "", holder_ref=appointment.id or "")
            await self._slots.book_slot(slot.id or "", appointment.id or "")

    async def cancel_appointment(
        self,
        appointment_id: str,
        reason: str,
        cancelled_by: ActorRole | str,
    ) -> Appointment:
        """Cancel a pending or session_waiting appointment and release its slot. No refund is issued."""
        cancelled_by_value = cancelled_by.value if isinstance(cancelled_by, ActorRole) else cancelled_by

        async with self._uow.transaction():
            appointment = await self._get(appointment_id, for_update=True)
            appointment.cancel(reason, cancelled_by_value, self._clock())
            await self._slots.release_slot(appointment.time_slot_id, holder_ref=appointment.id)
            await self._appointments.save(appointment)
            self._uow.collect(appointment)

        logger.info(f"Appointment {appointment_id} cancelled by {cancelled_by_value}: {reason}")
        return appointment

    async def complete_session(self, appointment_id: str, report: CareSessionReport) -> Appointment:
        """
        Close the session once its report is persisted.

        Raises:
            InvalidTransitionException: No persisted report, fees outstanding, or wrong status
        """
        async with self._uow.transaction():
            appointment = await self._get(appointment_id, for_update=True)
            stored = await self._reports.find_by_appointment(appointment_id)
            if stored is None or stored.id != report.id:
                raise InvalidTransitionException(
                    "appointment",
                    "complete session",
                    appointment.status.value,
                    message="A persisted care session report is required to complete the session",
                )

            appointment.complete_session(report, self._clock())
            await self._appointments.save(appointment)
            self._uow.collect(appointment)

        logger.info(f"Session of appointment {appointment_id} completed with report {report.id}")
        return appointment

    async def expire_abandoned_checkouts(self) -> int:
        """
        Cancel pending appointments whose checkout lock lapsed without payment.

        Each appointment is handled in its own savepoint so one conflict
        does not hold back the rest, also when the caller already opened
        a transaction.
        """
        stale = await self._appointments.find_stale_pending(self._clock())
        expired = 0

        for candidate in stale:
            try:
                async with self._uow.transaction(), self._uow.savepoint():
                    appointment = await self._get(candidate.id or "", for_update=True)
                    if appointment.status != AppointmentStatus.PENDING:
                        continue
                    appointment.cancel(PAYMENT_TIMEOUT_REASON, ActorRole.SYSTEM.value, self._clock())
                    await self._slots.release_slot(appointment.time_slot_id, holder_ref=appointment.id)
                    await self._appointments.save(appointment)
                    self._uow.collect(appointment)
                expired += 1
            except (ConcurrencyException, InvalidTransitionException) as e:
                logger.warning(f"Skipped expiring appointment {candidate.id}: {e.message}")

        if expired:
            logger.info(f"Cancelled {expired} appointments after payment timeout")
        return expired

    # Reads

    async def get_appointment(self, appointment_id: str) -> Appointment:
        return await self._get(appointment_id)

    async def list_appointments(
        self,
        patient_id: str | None = None,
        caregiver_id: str | None = None,
        status: AppointmentStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Appointment]:
        return await self._appointments.find_many(
            patient_id=patient_id,
            caregiver_id=caregiver_id,
            status=status,
            limit=limit,
            offset=offset,
        )

    async def _get(self, appointment_id: str, for_update: bool = False) -> Appointment:
        appointment = await self._appointments.find_by_id(appointment_id, for_update=for_update)
        if appointment is None:
            raise EntityNotFoundException("Appointment", appointment_id)
        return appointment

