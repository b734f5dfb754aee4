"""
Generic persistence operations shared by the services

Repositories only flush; committing is left to the service operation so each
operation is a single unit of work.
"""
from typing import Any, Dict, Generic, Iterable, List, Optional, Type, TypeVar

from sqlalchemy.orm import Session

from exambank.exceptions import RecordNotFound

ModelT = TypeVar("ModelT")


class Repository(Generic[ModelT]):
    """find / insert / update / delete by id or predicate for one model"""

    def __init__(self, model: Type[ModelT], label: str):
        self.model = model
        self.label = label

    def find_by_id(self, db: Session, record_id: str) -> Optional[ModelT]:
        return db.get(self.model, record_id)

    def get(self, db: Session, record_id: str) -> ModelT:
        """Get record by ID or raise RecordNotFound"""
        record = self.find_by_id(db, record_id)
        if record is None:
            raise RecordNotFound(f"{self.label} {record_id}")
        return record

    def find_many(
        self,
        db: Session,
        *criteria,
        skip: int = 0,
        limit: Optional[int] = None,
        order_by=None,
    ) -> List[ModelT]:
        query = db.query(self.model).filter(*criteria)
        if order_by is not None:
            query = query.order_by(order_by)
        query = query.offset(skip)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def find_one(self, db: Session, *criteria) -> Optional[ModelT]:
        return db.query(self.model).filter(*criteria).first()

    def exists(self, db: Session, *criteria) -> bool:
        return db.query(self.model).filter(*criteria).first() is not None

    def insert(self, db: Session, entity: ModelT) -> ModelT:
        db.add(entity)
        db.flush()
        return entity

    def update_by_id(self, db: Session, record_id: str, patch: Dict[str, Any]) -> ModelT:
        """Apply a field patch; None values are skipped"""
        record = self.get(db, record_id)
        for field, value in patch.items():
            if value is not None:
                setattr(record, field, value)
        db.flush()
        return record

    def update_many(self, db: Session, criteria: Iterable, patch: Dict[str, Any]) -> int:
        """Bulk UPDATE keyed on a predicate; returns affected rows"""
        affected = (
            db.query(self.model)
            .filter(*criteria)
            .update(patch, synchronize_session="fetch")
        )
        db.flush()
        return affected

    def delete_many(self, db: Session, record_ids: Iterable[str]) -> int:
        record_ids = list(record_ids)
        if not record_ids:
            return 0
        affected = (
            db.query(self.model)
            .filter(self.model.id.in_(record_ids))
            .delete(synchronize_session="fetch")
        )
        db.flush()
        return affected
