# estate_payments/data_access/payment_schedules_repository.py

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional
import logging

from estate_payments.config import PAYMENT_SCHEDULES_KEY
from estate_payments.data_access.base_repository import BaseRepository
from estate_payments.data_access.record_store import RecordStore
from estate_payments.business_logic.entities.instalment_entity import InstalmentEntity
from estate_payments.business_logic.entities.payment_schedule_entity import PaymentScheduleEntity
from estate_payments.constants import EntityType, InstalmentStatus, ScheduleStatus
from estate_payments.exceptions import PersistenceError
from estate_payments.utils import date_converter

logger = logging.getLogger(__name__)


def _amount_from_record(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    return Decimal(str(value))

def _amount_to_record(value: Optional[Decimal]) -> Any:
    if value is None:
        return 0
    # Integral amounts stay JSON integers
    if value == value.to_integral_value():
        return int(value)
    as_float = float(value)
    if Decimal(repr(as_float)) == value:
        return as_float
    # Too many digits for a JSON float; a decimal string reads back exactly
    return str(value)

def _drop_unset(record: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in record.items() if value is not None}


class PaymentSchedulesRepository(BaseRepository[PaymentScheduleEntity]):
    def __init__(self, record_store: RecordStore, namespace: str = PAYMENT_SCHEDULES_KEY):
        super().__init__(record_store=record_store, namespace=namespace)

    def _instalment_from_record(self, record: Dict[str, Any]) -> InstalmentEntity:
        return InstalmentEntity(
            id=record['id'],
            instalment_number=int(record['instalmentNumber']),
            amount=_amount_from_record(record['amount']),
            due_date=date_converter.to_date(record['dueDate']),
            paid_amount=_amount_from_record(record.get('paidAmount')),
            status=InstalmentStatus(record.get('status', InstalmentStatus.PENDING.value)),
            paid_date=date_converter.to_date(record.get('paidDate')),
            payment_method=record.get('paymentMethod'),
            receipt_number=record.get('receiptNumber'),
            notes=record.get('notes'),
        )

    def _instalment_to_record(self, instalment: InstalmentEntity) -> Dict[str, Any]:
        return _drop_unset({
            'id': instalment.id,
            'instalmentNumber': instalment.instalment_number,
            'amount': _amount_to_record(instalment.amount),
            'dueDate': date_converter.to_date_str(instalment.due_date),
            'paidAmount': _amount_to_record(instalment.paid_amount),
            'paidDate': date_converter.to_date_str(instalment.paid_date),
            'paymentMethod': instalment.payment_method,
            'receiptNumber': instalment.receipt_number,
            'notes': instalment.notes,
            'status': instalment.status.value,
        })

    def _entity_from_record(self, record: Dict[str, Any]) -> PaymentScheduleEntity:
        if record is None:
            raise PersistenceError("Input record cannot be None for PaymentScheduleEntity")
        try:
            return PaymentScheduleEntity(
                id=record['id'],
                entity_id=record['entityId'],
                entity_type=EntityType(record['entityType']),
                property_id=record.get('propertyId'),
                total_amount=_amount_from_record(record['totalAmount']),
                number_of_instalments=int(record['numberOfInstalments']),
                payment_completion_days=int(record['paymentCompletionDays']),
                start_date=date_converter.to_date(record['startDate']),
                instalments=[self._instalment_from_record(inst) for inst in record.get('instalments', [])],
                total_paid=_amount_from_record(record.get('totalPaid')),
                total_pending=_amount_from_record(record.get('totalPending')),
                percentage_complete=int(record.get('percentageComplete', 0)),
                status=ScheduleStatus(record.get('status', ScheduleStatus.DRAFT.value)),
                created_by=record.get('createdBy', ""),
                created_by_name=record.get('createdByName', ""),
                created_at=date_converter.to_datetime(record.get('createdAt')),
                updated_at=date_converter.to_datetime(record.get('updatedAt')),
                description=record.get('description'),
                terms=record.get('terms'),
            )
        except KeyError as e:
            logger.error(f"KeyError when creating PaymentScheduleEntity from record: {e}. Record: {record}")
            raise PersistenceError(f"Stored payment schedule is missing field {e}.") from e
        except (ValueError, TypeError, InvalidOperation) as e: # Enum, date or amount conversion
            logger.error(f"Invalid value when creating PaymentScheduleEntity: {e}. Record: {record}")
            raise PersistenceError(f"Stored payment schedule {record.get('id')} is malformed: {e}") from e

    def _entity_to_record(self, entity: PaymentScheduleEntity) -> Dict[str, Any]:
        return _drop_unset({
            'id': entity.id,
            'entityId': entity.entity_id,
            'entityType': entity.entity_type.value,
            'propertyId': entity.property_id,
            'totalAmount': _amount_to_record(entity.total_amount),
            'numberOfInstalments': entity.number_of_instalments,
            'paymentCompletionDays': entity.payment_completion_days,
            'startDate': date_converter.to_date_str(entity.start_date),
            'instalments': [self._instalment_to_record(inst) for inst in entity.instalments],
            'totalPaid': _amount_to_record(entity.total_paid),
            'totalPending': _amount_to_record(entity.total_pending),
            'percentageComplete': entity.percentage_complete,
            'createdBy': entity.created_by,
            'createdByName': entity.created_by_name,
            'createdAt': date_converter.to_datetime_str(entity.created_at),
            'updatedAt': date_converter.to_datetime_str(entity.updated_at),
            'status': entity.status.value,
            'description': entity.description,
            'terms': entity.terms,
        })

    def get_by_entity(self, entity_id: str, entity_type: EntityType) -> List[PaymentScheduleEntity]:
        return self.find_by_criteria({'entity_id': entity_id, 'entity_type': entity_type})

    def get_by_property(self, property_id: str) -> List[PaymentScheduleEntity]:
        return self.find_by_criteria({'property_id': property_id})
