# estate_payments/business_logic/__init__.py
from .payment_schedule_manager import PaymentScheduleManager
