# estate_payments/business_logic/entities/__init__.py
from .base_entity import BaseEntity
from .instalment_entity import InstalmentEntity
from .payment_schedule_entity import PaymentScheduleEntity
from .payment_statistics_entity import PaymentStatisticsEntity

__all__ = [
    "BaseEntity", "InstalmentEntity", "PaymentScheduleEntity", "PaymentStatisticsEntity",
]
