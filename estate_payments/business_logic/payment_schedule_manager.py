# estate_payments/business_logic/payment_schedule_manager.py

from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, List, Optional, Union, TYPE_CHECKING
import logging
import threading
import uuid

from estate_payments.business_logic.entities.instalment_entity import InstalmentEntity
from estate_payments.business_logic.entities.payment_schedule_entity import PaymentScheduleEntity
from estate_payments.business_logic.entities.payment_statistics_entity import PaymentStatisticsEntity
from estate_payments.business_logic import schedule_calculator
from estate_payments.constants import (
    EntityType, InstalmentStatus, PaymentMethod, ScheduleStatus,
    OPEN_SCHEDULE_STATUSES, SCHEDULE_ID_PREFIX
)
from estate_payments.exceptions import InvalidScheduleInputError, ScheduleStatusTransitionError
from estate_payments.utils import date_converter

# --- Type Hinting Imports ---
if TYPE_CHECKING:
    from estate_payments.data_access.payment_schedules_repository import PaymentSchedulesRepository

logger = logging.getLogger(__name__)

# Marks keyword arguments the caller did not pass, so that None can still clear a field
_UNSET: Any = object()


def _to_decimal(value: Union[Decimal, int, float, str], field_name: str) -> Decimal:
    if isinstance(value, bool):
        raise InvalidScheduleInputError(f"{field_name} must be a number, got {value!r}.")
    try:
        converted = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as e:
        raise InvalidScheduleInputError(f"{field_name} must be a number, got {value!r}.") from e
    if not converted.is_finite():
        raise InvalidScheduleInputError(f"{field_name} must be finite, got {value!r}.")
    return converted


def _to_calendar_date(value: Union[date, str], field_name: str) -> date:
    try:
        parsed = date_converter.to_date(value)
    except (ValueError, TypeError) as e:
        raise InvalidScheduleInputError(f"{field_name} must be a YYYY-MM-DD date, got {value!r}.") from e
    if parsed is None:
        raise InvalidScheduleInputError(f"{field_name} is required.")
    return parsed


def _to_entity_type(value: Union[EntityType, str]) -> EntityType:
    try:
        return value if isinstance(value, EntityType) else EntityType(value)
    except ValueError as e:
        raise InvalidScheduleInputError(f"Unknown entity type {value!r}.") from e


class PaymentScheduleManager:
    """
    Creates payment schedules for transactions and keeps them reconciled.

    Every mutating call reads the whole schedule collection, changes one
    schedule, runs schedule_calculator.recompute_schedule over it and writes the
    collection back under the version it was read at. An in-process lock
    serialises writers sharing this manager; the version check catches writers
    in other processes. Queries take no lock: each one is a single read of the
    stored collection and sees either the state before a write or after it.
    """

    def __init__(self,
                 payment_schedules_repository: 'PaymentSchedulesRepository',
                 today_provider: Callable[[], date] = date.today,
                 clock: Callable[[], datetime] = datetime.now):
        if payment_schedules_repository is None: raise ValueError("payment_schedules_repository cannot be None")
        self.payment_schedules_repository = payment_schedules_repository
        self.today_provider = today_provider
        self.clock = clock
        self._lock = threading.RLock()

    def initialize(self) -> None:
        self.payment_schedules_repository.initialize()
        logger.info(f"Payment schedule store '{self.payment_schedules_repository.namespace}' initialized.")

    # ------------------------------------------------------------------ #
    # Creation
    # ------------------------------------------------------------------ #

    def create_payment_schedule(self,
                                total_amount: Union[Decimal, int, float, str],
                                number_of_instalments: int,
                                start_date: Union[date, str],
                                payment_completion_days: int,
                                entity_id: str,
                                entity_type: Union[EntityType, str],
                                created_by: str,
                                created_by_name: str,
                                property_id: Optional[str] = None,
                                description: Optional[str] = None,
                                terms: Optional[str] = None
                                ) -> PaymentScheduleEntity:
        """
        Generates the default instalment plan for a transaction and stores it as a draft.
        Raises InvalidScheduleInputError before anything is written if the parameters are malformed.
        """
        total = _to_decimal(total_amount, "total_amount")
        schedule_calculator.validate_schedule_input(total, number_of_instalments, payment_completion_days)
        start = _to_calendar_date(start_date, "start_date")
        owner_type = _to_entity_type(entity_type)
        if not entity_id:
            raise InvalidScheduleInputError("entity_id is required.")

        instalments = schedule_calculator.generate_default_instalments(
            total, number_of_instalments, start, payment_completion_days)

        now = self.clock()
        schedule = PaymentScheduleEntity(
            id=f"{SCHEDULE_ID_PREFIX}-{uuid.uuid4().hex}",
            entity_id=entity_id,
            entity_type=owner_type,
            property_id=property_id,
            total_amount=total,
            number_of_instalments=number_of_instalments,
            payment_completion_days=payment_completion_days,
            start_date=start,
            instalments=instalments,
            status=ScheduleStatus.DRAFT,
            created_by=created_by,
            created_by_name=created_by_name,
            created_at=now,
            updated_at=now,
            description=description,
            terms=terms,
        )
        schedule = schedule_calculator.recompute_schedule(schedule, self.today_provider())

        with self._lock:
            self.payment_schedules_repository.add(schedule)

        logger.info(f"Payment schedule {schedule.id} created for {owner_type.value} {entity_id}: "
                    f"{total} in {number_of_instalments} instalment(s) by {created_by_name or created_by}.")
        return schedule

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def get_all_payment_schedules(self) -> List[PaymentScheduleEntity]:
        return self.payment_schedules_repository.get_all()

    def get_payment_schedule_by_id(self, schedule_id: str) -> Optional[PaymentScheduleEntity]:
        return self.payment_schedules_repository.get_by_id(schedule_id)

    def get_payment_schedules_by_entity(self, entity_id: str,
                                        entity_type: Union[EntityType, str]) -> List[PaymentScheduleEntity]:
        return self.payment_schedules_repository.get_by_entity(entity_id, _to_entity_type(entity_type))

    def get_active_payment_schedule(self, entity_id: str,
                                    entity_type: Union[EntityType, str]) -> Optional[PaymentScheduleEntity]:
        schedules = self.get_payment_schedules_by_entity(entity_id, entity_type)
        return next((s for s in schedules if s.status == ScheduleStatus.ACTIVE), None)

    def get_payment_schedules_by_property(self, property_id: str) -> List[PaymentScheduleEntity]:
        return self.payment_schedules_repository.get_by_property(property_id)

    def get_payment_schedule_instalments(self, schedule_id: str) -> List[InstalmentEntity]:
        schedule = self.get_payment_schedule_by_id(schedule_id)
        return schedule.instalments if schedule else []

    def get_payment_statistics(self, schedule_id: str) -> Optional[PaymentStatisticsEntity]:
        """
        Counts instalments per status as of today and finds the next instalment
        to collect: the earliest pending or overdue one. Nothing is written.
        """
        schedule = self.get_payment_schedule_by_id(schedule_id)
        if not schedule:
            return None

        current = schedule_calculator.recompute_schedule(schedule, self.today_provider())
        counts = {status: 0 for status in InstalmentStatus}
        for inst in current.instalments:
            counts[inst.status] += 1

        collectable = [inst for inst in current.instalments
                       if inst.status in (InstalmentStatus.PENDING, InstalmentStatus.OVERDUE)]
        next_due = min(collectable, key=lambda inst: inst.due_date) if collectable else None

        return PaymentStatisticsEntity(
            schedule_id=schedule.id,
            total_instalments=len(current.instalments),
            paid_instalments=counts[InstalmentStatus.PAID],
            partial_instalments=counts[InstalmentStatus.PARTIAL],
            pending_instalments=counts[InstalmentStatus.PENDING],
            overdue_instalments=counts[InstalmentStatus.OVERDUE],
            next_due_date=next_due.due_date if next_due else None,
            next_due_amount=next_due.amount if next_due else Decimal("0"),
        )

    # ------------------------------------------------------------------ #
    # Mutations
    # ------------------------------------------------------------------ #

    def _mutate(self, schedule_id: str,
                change: Callable[[PaymentScheduleEntity], Optional[PaymentScheduleEntity]]
                ) -> Optional[PaymentScheduleEntity]:
        """Applies change to one stored schedule and writes it back; None if either side finds nothing."""
        with self._lock:
            schedules, version = self.payment_schedules_repository.get_snapshot()
            index = next((i for i, s in enumerate(schedules) if s.id == schedule_id), None)
            if index is None:
                logger.debug(f"Payment schedule {schedule_id} not found.")
                return None
            updated = change(schedules[index])
            if updated is None:
                return None
            schedules[index] = updated
            self.payment_schedules_repository.save_all(schedules, expected_version=version)
            return updated

    def update_payment_schedule(self,
                                schedule_id: str,
                                instalments: Optional[List[InstalmentEntity]] = None,
                                status: Optional[Union[ScheduleStatus, str]] = None,
                                description: Optional[str] = _UNSET,
                                terms: Optional[str] = _UNSET
                                ) -> Optional[PaymentScheduleEntity]:
        """
        Replaces the instalment list and/or status and notes of a schedule, then
        recomputes it. Instalments are replaced wholesale, never merged.
        """
        new_status = None
        if status is not None:
            try:
                new_status = status if isinstance(status, ScheduleStatus) else ScheduleStatus(status)
            except ValueError as e:
                raise InvalidScheduleInputError(f"Unknown schedule status {status!r}.") from e

        def change(schedule: PaymentScheduleEntity) -> PaymentScheduleEntity:
            changes = {'updated_at': self.clock()}
            if instalments is not None:
                changes['instalments'] = list(instalments)
            if description is not _UNSET:
                changes['description'] = description
            if terms is not _UNSET:
                changes['terms'] = terms
            return schedule_calculator.recompute_schedule(
                replace(schedule, **changes), self.today_provider(), status=new_status)

        updated = self._mutate(schedule_id, change)
        if updated:
            logger.info(f"Payment schedule {schedule_id} updated: {updated.percentage_complete}% complete, "
                        f"status '{updated.status.value}'.")
        return updated

    def record_instalment_payment(self,
                                  schedule_id: str,
                                  instalment_id: str,
                                  amount: Union[Decimal, int, float, str],
                                  payment_date: Union[date, str],
                                  payment_method: Optional[Union[PaymentMethod, str]] = None,
                                  receipt_number: Optional[str] = None,
                                  notes: Optional[str] = None
                                  ) -> Optional[PaymentScheduleEntity]:
        """
        Adds a payment to one instalment. Paid amounts accumulate; the payment
        date, method, receipt number and notes are replaced by this payment's.
        Over-payment is accepted: the instalment simply reads as paid.
        """
        payment_amount = _to_decimal(amount, "amount")
        paid_on = _to_calendar_date(payment_date, "payment_date")
        method = payment_method.value if isinstance(payment_method, PaymentMethod) else payment_method

        def change(schedule: PaymentScheduleEntity) -> Optional[PaymentScheduleEntity]:
            target = schedule.find_instalment(instalment_id)
            if target is None:
                logger.warning(f"Instalment {instalment_id} not found in payment schedule {schedule_id}.")
                return None

            new_paid_amount = (target.paid_amount or Decimal("0")) + payment_amount
            if new_paid_amount > target.amount:
                logger.warning(f"Instalment {instalment_id} of schedule {schedule_id} over-paid: "
                               f"{new_paid_amount} paid against {target.amount} due.")
            paid_instalment = replace(
                target,
                paid_amount=new_paid_amount,
                paid_date=paid_on,
                payment_method=method,
                receipt_number=receipt_number,
                notes=notes,
            )
            instalments = [paid_instalment if inst.id == instalment_id else inst
                           for inst in schedule.instalments]
            return schedule_calculator.recompute_schedule(
                replace(schedule, instalments=instalments, updated_at=self.clock()), self.today_provider())

        updated = self._mutate(schedule_id, change)
        if updated:
            logger.info(f"Payment of {payment_amount} recorded on instalment {instalment_id} of schedule "
                        f"{schedule_id}; total paid {updated.total_paid} ({updated.percentage_complete}%).")
        return updated

    def _transition(self, schedule_id: str, requested: ScheduleStatus,
                    allowed_from: tuple) -> Optional[PaymentScheduleEntity]:
        def change(schedule: PaymentScheduleEntity) -> PaymentScheduleEntity:
            if schedule.status not in allowed_from:
                raise ScheduleStatusTransitionError(schedule_id, schedule.status, requested)
            return schedule_calculator.recompute_schedule(
                replace(schedule, updated_at=self.clock()), self.today_provider(), status=requested)

        updated = self._mutate(schedule_id, change)
        if updated:
            logger.info(f"Payment schedule {schedule_id} is now '{updated.status.value}'.")
        return updated

    def activate_payment_schedule(self, schedule_id: str) -> Optional[PaymentScheduleEntity]:
        return self._transition(schedule_id, ScheduleStatus.ACTIVE,
                                allowed_from=(ScheduleStatus.DRAFT, ScheduleStatus.ACTIVE))

    def cancel_payment_schedule(self, schedule_id: str) -> Optional[PaymentScheduleEntity]:
        return self._transition(schedule_id, ScheduleStatus.CANCELLED,
                                allowed_from=OPEN_SCHEDULE_STATUSES + (ScheduleStatus.CANCELLED,))

    def delete_payment_schedule(self, schedule_id: str) -> bool:
        with self._lock:
            deleted = self.payment_schedules_repository.delete(schedule_id)
        if deleted:
            logger.info(f"Payment schedule {schedule_id} deleted.")
        return deleted

    def refresh_payment_statuses(self) -> int:
        """
        Re-derives every stored schedule against today's date, so instalments
        that became overdue since the last write are stored as such.
        Returns how many schedules changed.
        """
        today = self.today_provider()
        with self._lock:
            schedules, version = self.payment_schedules_repository.get_snapshot()
            refreshed = [schedule_calculator.recompute_schedule(s, today) for s in schedules]
            changed = sum(1 for old, new in zip(schedules, refreshed) if old != new)
            if changed:
                self.payment_schedules_repository.save_all(refreshed, expected_version=version)
        logger.info(f"Payment statuses refreshed for {len(schedules)} schedule(s); {changed} changed.")
        return changed
