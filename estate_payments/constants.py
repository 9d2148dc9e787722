# estate_payments/constants.py

from enum import Enum

# General
DATE_FORMAT = "%Y-%m-%d"

SCHEDULE_ID_PREFIX = "schedule"
INSTALMENT_ID_PREFIX = "instalment"


class InstalmentStatus(Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"


class ScheduleStatus(Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Statuses a schedule can still leave through an explicit caller action
OPEN_SCHEDULE_STATUSES = (ScheduleStatus.DRAFT, ScheduleStatus.ACTIVE)


class EntityType(Enum):
    SELL_CYCLE = "sell-cycle"
    PURCHASE_CYCLE = "purchase-cycle"
    DEAL = "deal"
    BUYER_REQUIREMENT = "buyer-requirement"


class PaymentMethod(Enum):
    BANK_TRANSFER = "bank-transfer"
    CASH = "cash"
    CHEQUE = "cheque"
    ONLINE_PAYMENT = "online-payment"
    MOBILE_WALLET = "mobile-wallet"  # JazzCash / Easypaisa
    PAY_ORDER = "pay-order"
    DEMAND_DRAFT = "demand-draft"
    OTHER = "other"
