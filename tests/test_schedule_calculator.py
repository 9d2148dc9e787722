# tests/test_schedule_calculator.py

from dataclasses import replace
from datetime import date, timedelta
from decimal import Decimal

import pytest

from estate_payments.business_logic import schedule_calculator
from estate_payments.business_logic.entities import InstalmentEntity, PaymentScheduleEntity
from estate_payments.constants import EntityType, InstalmentStatus, ScheduleStatus
from estate_payments.exceptions import InvalidScheduleInputError

START = date(2024, 1, 1)


def make_schedule(total, n, days=90, status=ScheduleStatus.DRAFT, start=START):
    total = Decimal(total)
    return PaymentScheduleEntity(
        id="schedule-test",
        entity_id="deal-1",
        entity_type=EntityType.DEAL,
        total_amount=total,
        number_of_instalments=n,
        payment_completion_days=days,
        start_date=start,
        instalments=schedule_calculator.generate_default_instalments(total, n, start, days),
        status=status,
    )


def pay(schedule, number, amount):
    instalments = [replace(inst, paid_amount=inst.paid_amount + Decimal(amount))
                   if inst.instalment_number == number else inst
                   for inst in schedule.instalments]
    return replace(schedule, instalments=instalments)


class TestGenerateDefaultInstalments:

    def test_three_way_split_of_one_million(self):
        instalments = schedule_calculator.generate_default_instalments(Decimal(1000000), 3, START, 90)

        assert [inst.amount for inst in instalments] == [333333, 333333, 333334]
        assert [inst.due_date for inst in instalments] == [
            date(2024, 1, 1), date(2024, 1, 31), date(2024, 3, 1)]
        assert [inst.instalment_number for inst in instalments] == [1, 2, 3]

    def test_remainder_goes_to_last_instalment(self):
        instalments = schedule_calculator.generate_default_instalments(Decimal(100), 7, START, 10)

        assert [inst.amount for inst in instalments] == [14, 14, 14, 14, 14, 14, 16]
        assert [inst.due_date for inst in instalments] == [START + timedelta(days=i) for i in range(7)]

    @pytest.mark.parametrize("total,n", [
        (0, 1), (1, 1), (1, 5), (99, 10), (1000000, 3), (1000001, 7), (250000, 12), (7, 7),
        ("1000.75", 4),
    ])
    def test_amounts_always_add_up_to_total(self, total, n):
        total = Decimal(total)
        instalments = schedule_calculator.generate_default_instalments(total, n, START, 365)

        assert sum(inst.amount for inst in instalments) == total
        base = total // n
        assert all(inst.amount == base for inst in instalments[:-1])
        assert instalments[-1].amount == base + (total - base * n)

    @pytest.mark.parametrize("days,n", [(90, 3), (365, 12), (31, 4), (0, 5)])
    def test_due_dates_are_evenly_spaced_by_floor_days(self, days, n):
        instalments = schedule_calculator.generate_default_instalments(Decimal(12000), n, START, days)

        spacing = days // n
        assert [inst.due_date for inst in instalments] == [
            START + timedelta(days=i * spacing) for i in range(n)]

    def test_short_window_gives_shared_due_dates(self):
        instalments = schedule_calculator.generate_default_instalments(Decimal(300), 3, START, 2)

        assert {inst.due_date for inst in instalments} == {START}

    def test_new_instalments_are_pending_and_unpaid_with_unique_ids(self):
        instalments = schedule_calculator.generate_default_instalments(Decimal(900), 3, START, 30)

        assert all(inst.status == InstalmentStatus.PENDING for inst in instalments)
        assert all(inst.paid_amount == 0 for inst in instalments)
        assert all(inst.id.startswith("instalment-") for inst in instalments)
        assert len({inst.id for inst in instalments}) == 3

    @pytest.mark.parametrize("n", [0, -1])
    def test_rejects_non_positive_instalment_count(self, n):
        with pytest.raises(InvalidScheduleInputError):
            schedule_calculator.generate_default_instalments(Decimal(100), n, START, 30)

    def test_rejects_negative_window_and_negative_total(self):
        with pytest.raises(InvalidScheduleInputError):
            schedule_calculator.generate_default_instalments(Decimal(100), 2, START, -1)
        with pytest.raises(InvalidScheduleInputError):
            schedule_calculator.generate_default_instalments(Decimal(-100), 2, START, 30)


class TestValidateScheduleInput:

    def test_zero_total_is_rejected_unless_allowed(self):
        with pytest.raises(InvalidScheduleInputError):
            schedule_calculator.validate_schedule_input(Decimal(0), 1, 0)
        schedule_calculator.validate_schedule_input(Decimal(0), 1, 0, allow_zero_total=True)

    @pytest.mark.parametrize("n", [1.5, "3", True])
    def test_instalment_count_must_be_an_integer(self, n):
        with pytest.raises(InvalidScheduleInputError):
            schedule_calculator.validate_schedule_input(Decimal(100), n, 30)

    def test_total_must_be_a_finite_decimal(self):
        with pytest.raises(InvalidScheduleInputError):
            schedule_calculator.validate_schedule_input(Decimal("NaN"), 1, 30)
        with pytest.raises(InvalidScheduleInputError):
            schedule_calculator.validate_schedule_input(100, 1, 30)


class TestDeriveInstalmentStatus:
    TODAY = date(2024, 2, 1)

    def make(self, paid, due):
        return InstalmentEntity(id="i", instalment_number=1, amount=Decimal(100),
                                due_date=due, paid_amount=Decimal(paid))

    @pytest.mark.parametrize("paid,due,expected", [
        (0, date(2024, 2, 1), InstalmentStatus.PENDING),
        (0, date(2024, 3, 1), InstalmentStatus.PENDING),
        (0, date(2024, 1, 31), InstalmentStatus.OVERDUE),
        (40, date(2024, 3, 1), InstalmentStatus.PARTIAL),
        (40, date(2024, 1, 1), InstalmentStatus.PARTIAL),
        (100, date(2024, 3, 1), InstalmentStatus.PAID),
        (100, date(2024, 1, 1), InstalmentStatus.PAID),
        (150, date(2024, 1, 1), InstalmentStatus.PAID),
    ])
    def test_status_table(self, paid, due, expected):
        assert schedule_calculator.derive_instalment_status(self.make(paid, due), self.TODAY) == expected

    def test_unset_paid_amount_counts_as_zero(self):
        inst = replace(self.make(0, date(2024, 1, 1)), paid_amount=None)
        assert schedule_calculator.derive_instalment_status(inst, self.TODAY) == InstalmentStatus.OVERDUE


class TestRecomputeSchedule:

    def test_initial_aggregates(self):
        schedule = schedule_calculator.recompute_schedule(make_schedule(1000000, 3), START)

        assert schedule.total_paid == 0
        assert schedule.total_pending == 1000000
        assert schedule.percentage_complete == 0

    def test_first_instalment_paid_gives_33_percent(self):
        schedule = schedule_calculator.recompute_schedule(pay(make_schedule(1000000, 3), 1, 333333), START)

        assert schedule.instalments[0].status == InstalmentStatus.PAID
        assert schedule.total_paid == 333333
        assert schedule.total_pending == 666667
        assert schedule.percentage_complete == 33

    @pytest.mark.parametrize("paid,expected", [(1, 1), (29, 15), (57, 29), (199, 100)])
    def test_percentage_rounds_exact_halves_up(self, paid, expected):
        schedule = schedule_calculator.recompute_schedule(pay(make_schedule(200, 1), 1, paid), START)
        assert schedule.percentage_complete == expected

    def test_is_idempotent(self):
        schedule = pay(pay(make_schedule(1000000, 3, status=ScheduleStatus.ACTIVE), 1, 333333), 2, 1000)
        later = date(2024, 4, 1)

        once = schedule_calculator.recompute_schedule(schedule, later)
        twice = schedule_calculator.recompute_schedule(once, later)

        assert once == twice

    def test_does_not_mutate_its_input(self):
        schedule = pay(make_schedule(1000000, 3), 1, 333333)
        before = replace(schedule, instalments=[replace(inst) for inst in schedule.instalments])

        schedule_calculator.recompute_schedule(schedule, date(2024, 6, 1))

        assert schedule == before

    def test_paid_dominates_a_fresh_overdue_state(self):
        later = date(2024, 6, 1)
        overdue = schedule_calculator.recompute_schedule(make_schedule(1000000, 3), later)
        assert all(inst.status == InstalmentStatus.OVERDUE for inst in overdue.instalments)

        paid = schedule_calculator.recompute_schedule(pay(overdue, 1, 333333), later)

        assert paid.instalments[0].status == InstalmentStatus.PAID
        assert [inst.status for inst in paid.instalments[1:]] == [InstalmentStatus.OVERDUE] * 2

    def test_active_schedule_completes_at_100_percent(self):
        schedule = make_schedule(1000000, 3, status=ScheduleStatus.ACTIVE)
        for number, amount in [(1, 333333), (2, 333333), (3, 333334)]:
            schedule = pay(schedule, number, amount)

        result = schedule_calculator.recompute_schedule(schedule, START)

        assert result.percentage_complete == 100
        assert result.status == ScheduleStatus.COMPLETED

    @pytest.mark.parametrize("status", [ScheduleStatus.DRAFT, ScheduleStatus.CANCELLED])
    def test_only_active_schedules_auto_complete(self, status):
        schedule = pay(make_schedule(900, 1, status=status), 1, 900)

        result = schedule_calculator.recompute_schedule(schedule, START)

        assert result.percentage_complete == 100
        assert result.status == status

    def test_status_override_applies_before_auto_completion(self):
        schedule = pay(make_schedule(900, 1), 1, 900)

        result = schedule_calculator.recompute_schedule(schedule, START, status=ScheduleStatus.ACTIVE)

        assert result.status == ScheduleStatus.COMPLETED

    def test_over_payment_leaves_negative_pending(self):
        schedule = make_schedule(1000, 2, status=ScheduleStatus.ACTIVE)
        schedule = pay(pay(schedule, 1, 500), 2, 700)

        result = schedule_calculator.recompute_schedule(schedule, START)

        assert result.total_pending == -200
        assert result.percentage_complete == 120
        assert result.status == ScheduleStatus.ACTIVE
        assert all(inst.status == InstalmentStatus.PAID for inst in result.instalments)

    def test_aggregates_use_instalment_amounts_not_stored_total(self):
        schedule = replace(make_schedule(1000, 2), total_amount=Decimal(5000))

        result = schedule_calculator.recompute_schedule(pay(schedule, 1, 500), START)

        assert result.total_amount == 5000
        assert result.total_pending == 500
        assert result.percentage_complete == 50

    def test_empty_instalment_list_is_zero_percent(self):
        schedule = replace(make_schedule(1000, 2), instalments=[])

        result = schedule_calculator.recompute_schedule(schedule, START)

        assert (result.total_paid, result.total_pending, result.percentage_complete) == (0, 0, 0)

    def test_instalments_come_back_ordered_by_number(self):
        schedule = make_schedule(900, 3)
        shuffled = replace(schedule, instalments=list(reversed(schedule.instalments)))

        result = schedule_calculator.recompute_schedule(shuffled, START)

        assert [inst.instalment_number for inst in result.instalments] == [1, 2, 3]
