# estate_payments/data_access/base_repository.py

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar, TYPE_CHECKING
import logging

from estate_payments.data_access.record_store import RecordStore

if TYPE_CHECKING:
    from estate_payments.business_logic.entities.base_entity import BaseEntity

logger = logging.getLogger(__name__)

T = TypeVar('T', bound='BaseEntity')

class BaseRepository(ABC, Generic[T]):
    """
    Typed access to one record store namespace.

    The namespace is always read and written as a whole; single-entity
    operations below are built on top of get_snapshot()/save_all().
    """

    def __init__(self, record_store: RecordStore, namespace: str):
        if record_store is None: raise ValueError("record_store cannot be None")
        self.record_store = record_store
        self._namespace = namespace

    @property
    def namespace(self) -> str:
        return self._namespace

    @abstractmethod
    def _entity_from_record(self, record: Dict[str, Any]) -> T:
        ...

    @abstractmethod
    def _entity_to_record(self, entity: T) -> Dict[str, Any]:
        ...

    def initialize(self) -> None:
        self.record_store.initialize(self._namespace)

    def get_snapshot(self) -> Tuple[List[T], int]:
        """Returns every entity together with the namespace version they were read at."""
        records, version = self.record_store.read(self._namespace)
        return [self._entity_from_record(record) for record in records], version

    def get_all(self) -> List[T]:
        entities, _ = self.get_snapshot()
        return entities

    def save_all(self, entities: List[T], expected_version: Optional[int] = None) -> int:
        records = [self._entity_to_record(entity) for entity in entities]
        return self.record_store.write(self._namespace, records, expected_version)

    def get_by_id(self, entity_id: str) -> Optional[T]:
        return next((entity for entity in self.get_all() if entity.id == entity_id), None)

    def find_by_criteria(self, criteria: Dict[str, Any]) -> List[T]:
        """Entities whose attributes equal every value in criteria."""
        if not criteria:
            return self.get_all()
        return [entity for entity in self.get_all()
                if all(getattr(entity, key, None) == value for key, value in criteria.items())]

    def add(self, entity: T) -> T:
        if entity.id is None:
            raise ValueError(f"{type(entity).__name__} must have an id before it is stored.")
        entities, version = self.get_snapshot()
        entities.append(entity)
        self.save_all(entities, expected_version=version)
        logger.debug(f"{type(entity).__name__} {entity.id} appended to '{self._namespace}'.")
        return entity

    def delete(self, entity_id: str) -> bool:
        entities, version = self.get_snapshot()
        remaining = [entity for entity in entities if entity.id != entity_id]
        if len(remaining) == len(entities):
            return False
        self.save_all(remaining, expected_version=version)
        return True
