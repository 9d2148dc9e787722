# estate_payments/business_logic/entities/payment_statistics_entity.py
from dataclasses import dataclass, field
from typing import Optional
from datetime import date
from decimal import Decimal

@dataclass
class PaymentStatisticsEntity: # Read model, never persisted
    schedule_id: str
    total_instalments: int
    paid_instalments: int
    partial_instalments: int
    pending_instalments: int
    overdue_instalments: int
    next_due_date: Optional[date] = field(default=None)
    next_due_amount: Decimal = field(default=Decimal("0"))
