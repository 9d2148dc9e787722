# estate_payments/business_logic/entities/payment_schedule_entity.py
from dataclasses import dataclass, field
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal
from .base_entity import BaseEntity
from .instalment_entity import InstalmentEntity
from estate_payments.constants import EntityType, ScheduleStatus

@dataclass
class PaymentScheduleEntity(BaseEntity):
    # Owning transaction, referenced only
    entity_id: str
    entity_type: EntityType

    # Generation parameters, kept for audit
    total_amount: Decimal
    number_of_instalments: int
    payment_completion_days: int
    start_date: date

    instalments: List[InstalmentEntity] = field(default_factory=list) # Ordered by instalment_number

    # Derived aggregates, written only by schedule_calculator.recompute_schedule
    total_paid: Decimal = field(default=Decimal("0"))
    total_pending: Decimal = field(default=Decimal("0"))
    percentage_complete: int = field(default=0)

    status: ScheduleStatus = field(default=ScheduleStatus.DRAFT)

    property_id: Optional[str] = field(default=None)
    created_by: str = field(default="")
    created_by_name: str = field(default="")
    created_at: Optional[datetime] = field(default=None)
    updated_at: Optional[datetime] = field(default=None)
    description: Optional[str] = field(default=None)
    terms: Optional[str] = field(default=None)

    def find_instalment(self, instalment_id: str) -> Optional[InstalmentEntity]:
        return next((inst for inst in self.instalments if inst.id == instalment_id), None)
