"""
Base repository class for data access operations
"""
from sqlalchemy.orm import Session
from typing import Generic, TypeVar, Type, Optional
from lead_router.models.base import BaseModel

ModelType = TypeVar("ModelType", bound=BaseModel)


class BaseRepository(Generic[ModelType]):
    """
    Base repository class for database operations.
    Repositories handle direct database access and queries. ``add`` only
    flushes, so several writes can share the caller's transaction; ``create``
    and ``update`` commit immediately.
    """

    model: Type[ModelType]

    def __init__(self, db: Session, model: Optional[Type[ModelType]] = None):
        self.db = db
        if model is not None:
            self.model = model

    def find_by_id(self, id: int) -> Optional[ModelType]:
        """Find a record by ID"""
        return self.db.get(self.model, id)

    def add(self, **kwargs) -> ModelType:
        """Stage a new record in the current transaction"""
        db_obj = self.model(**kwargs)
        self.db.add(db_obj)
        self.db.flush()
        return db_obj

    def create(self, **kwargs) -> ModelType:
        """Create a new record"""
        db_obj = self.add(**kwargs)
        self.db.commit()
        self.db.refresh(db_obj)
        return db_obj

    def update(self, db_obj: ModelType, **kwargs) -> ModelType:
        """Update an existing record"""
        for key, value in kwargs.items():
            setattr(db_obj, key, value)
        self.db.commit()
        self.db.refresh(db_obj)
        return db_obj
