# estate_payments/exceptions.py


class PaymentScheduleError(Exception):
    """Base class for every error raised by the payment schedule engine."""


class InvalidScheduleInputError(PaymentScheduleError, ValueError):
    """Generation parameters that cannot produce a valid instalment plan."""


class ScheduleStatusTransitionError(PaymentScheduleError, ValueError):
    """An explicit status change requested from a state that does not allow it."""

    def __init__(self, schedule_id: str, current_status, requested_status):
        self.schedule_id = schedule_id
        self.current_status = current_status
        self.requested_status = requested_status
        super().__init__(
            f"Payment schedule {schedule_id} cannot move from "
            f"'{current_status.value}' to '{requested_status.value}'."
        )


class PersistenceError(PaymentScheduleError):
    """The record store could not be read or written."""


class ConcurrentModificationError(PersistenceError):
    """Another writer changed the record store namespace since it was read."""

    def __init__(self, namespace: str, expected_version: int, actual_version: int):
        self.namespace = namespace
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Record store namespace '{namespace}' was modified concurrently "
            f"(expected version {expected_version}, found {actual_version})."
        )
