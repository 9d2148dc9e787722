# estate_payments/business_logic/schedule_calculator.py
"""
Pure computation core of the payment schedule engine.

Nothing in this module touches storage or the clock: "today" is always passed
in. Instalment generation and Recompute live here so that every write path of
PaymentScheduleManager derives statuses and aggregates the same way.
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, List, Optional, Tuple
import logging
import uuid

from estate_payments.business_logic.entities.instalment_entity import InstalmentEntity
from estate_payments.business_logic.entities.payment_schedule_entity import PaymentScheduleEntity
from estate_payments.constants import InstalmentStatus, ScheduleStatus, INSTALMENT_ID_PREFIX
from estate_payments.exceptions import InvalidScheduleInputError
from estate_payments.utils.date_converter import add_days

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def new_instalment_id() -> str:
    return f"{INSTALMENT_ID_PREFIX}-{uuid.uuid4().hex}"


def validate_schedule_input(total_amount: Decimal,
                            number_of_instalments: int,
                            payment_completion_days: int,
                            allow_zero_total: bool = False) -> None:
    """
    Fails fast on parameters that would otherwise divide by zero or produce
    negative amounts. The generator allows a zero total; schedule creation does not.
    """
    if isinstance(number_of_instalments, bool) or not isinstance(number_of_instalments, int):
        raise InvalidScheduleInputError(
            f"number_of_instalments must be an integer, got {number_of_instalments!r}.")
    if number_of_instalments < 1:
        raise InvalidScheduleInputError(
            f"number_of_instalments must be at least 1, got {number_of_instalments}.")
    if isinstance(payment_completion_days, bool) or not isinstance(payment_completion_days, int):
        raise InvalidScheduleInputError(
            f"payment_completion_days must be an integer, got {payment_completion_days!r}.")
    if payment_completion_days < 0:
        raise InvalidScheduleInputError(
            f"payment_completion_days cannot be negative, got {payment_completion_days}.")
    if not isinstance(total_amount, Decimal) or not total_amount.is_finite():
        raise InvalidScheduleInputError(f"total_amount must be a finite Decimal, got {total_amount!r}.")
    if total_amount < 0 or (total_amount == 0 and not allow_zero_total):
        raise InvalidScheduleInputError(f"total_amount must be positive, got {total_amount}.")


def generate_default_instalments(total_amount: Decimal,
                                 number_of_instalments: int,
                                 start_date: date,
                                 payment_completion_days: int,
                                 id_factory: Callable[[], str] = new_instalment_id) -> List[InstalmentEntity]:
    """
    Splits total_amount into number_of_instalments equal floor amounts spaced
    floor(payment_completion_days / number_of_instalments) days apart from
    start_date. The whole division remainder goes to the last instalment, so the
    amounts always add up to total_amount exactly.
    """
    validate_schedule_input(total_amount, number_of_instalments, payment_completion_days,
                            allow_zero_total=True)

    base_amount = total_amount // number_of_instalments  # floor, total is non-negative
    remainder = total_amount - base_amount * number_of_instalments
    days_between = payment_completion_days // number_of_instalments

    instalments = []
    for i in range(number_of_instalments):
        amount = base_amount + remainder if i == number_of_instalments - 1 else base_amount
        instalments.append(InstalmentEntity(
            id=id_factory(),
            instalment_number=i + 1,
            amount=amount,
            due_date=add_days(start_date, i * days_between),
            paid_amount=ZERO,
            status=InstalmentStatus.PENDING,
        ))
    logger.debug(f"Generated {number_of_instalments} instalments: base {base_amount}, "
                 f"remainder {remainder}, {days_between} day(s) apart.")
    return instalments


def derive_instalment_status(instalment: InstalmentEntity, today: date) -> InstalmentStatus:
    # paid > partial > overdue > pending
    paid_amount = instalment.paid_amount or ZERO
    if paid_amount == 0:
        return InstalmentStatus.OVERDUE if instalment.due_date < today else InstalmentStatus.PENDING
    if paid_amount >= instalment.amount:
        return InstalmentStatus.PAID
    return InstalmentStatus.PARTIAL


def update_instalment_statuses(instalments: List[InstalmentEntity], today: date) -> List[InstalmentEntity]:
    return [replace(inst, status=derive_instalment_status(inst, today)) for inst in instalments]


def calculate_progress(instalments: List[InstalmentEntity]) -> Tuple[Decimal, Decimal, int]:
    """Returns (total_paid, total_pending, percentage_complete) for the given instalments."""
    total_paid = sum((inst.paid_amount or ZERO for inst in instalments), ZERO)
    instalments_total = sum((inst.amount for inst in instalments), ZERO)
    total_pending = instalments_total - total_paid
    if instalments_total > 0:
        ratio = total_paid / instalments_total * HUNDRED
        percentage_complete = int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    else:
        percentage_complete = 0
    return total_paid, total_pending, percentage_complete


def recompute_schedule(schedule: PaymentScheduleEntity,
                       today: date,
                       status: Optional[ScheduleStatus] = None) -> PaymentScheduleEntity:
    """
    Re-derives every instalment status and the schedule aggregates from the
    instalment list. Returns a new entity; the input is left untouched.

    `status` overrides the schedule status before the auto-completion rule runs.
    The only automatic transition is active -> completed at exactly 100 percent.
    """
    instalments = update_instalment_statuses(
        sorted(schedule.instalments, key=lambda inst: inst.instalment_number), today)
    total_paid, total_pending, percentage_complete = calculate_progress(instalments)

    new_status = status if status is not None else schedule.status
    if percentage_complete == 100 and new_status == ScheduleStatus.ACTIVE:
        new_status = ScheduleStatus.COMPLETED
        logger.info(f"Payment schedule {schedule.id} is fully paid and is now completed.")

    return replace(
        schedule,
        instalments=instalments,
        total_paid=total_paid,
        total_pending=total_pending,
        percentage_complete=percentage_complete,
        status=new_status,
    )
