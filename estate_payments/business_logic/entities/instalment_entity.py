# estate_payments/business_logic/entities/instalment_entity.py
from dataclasses import dataclass, field
from typing import Optional
from datetime import date
from decimal import Decimal
from .base_entity import BaseEntity
from estate_payments.constants import InstalmentStatus

@dataclass
class InstalmentEntity(BaseEntity):
    instalment_number: int # 1-based position inside the schedule
    amount: Decimal # Scheduled amount owed
    due_date: date
    paid_amount: Decimal = field(default=Decimal("0")) # Cumulative over every recorded payment
    status: InstalmentStatus = field(default=InstalmentStatus.PENDING) # Derived, see schedule_calculator

    # Metadata of the most recent payment only
    paid_date: Optional[date] = field(default=None)
    payment_method: Optional[str] = field(default=None)
    receipt_number: Optional[str] = field(default=None)
    notes: Optional[str] = field(default=None)
