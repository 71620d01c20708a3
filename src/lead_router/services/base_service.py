"""
Base service class for common service functionality
"""
from sqlalchemy.orm import Session
from typing import Generic, TypeVar, Type, Optional
from lead_router.models.base import BaseModel

ModelType = TypeVar("ModelType", bound=BaseModel)


class BaseService(Generic[ModelType]):
    """
    Base service class with common CRUD operations.
    Subclasses set ``model`` and add their domain rules on top.
    """

    model: Type[ModelType]

    def __init__(self, db: Session, model: Optional[Type[ModelType]] = None):
        self.db = db
        if model is not None:
            self.model = model

    def get(self, id: int) -> Optional[ModelType]:
        """Get a single record by ID"""
        return self.db.get(self.model, id)

    def create(self, **kwargs) -> ModelType:
        """Create a new record"""
        db_obj = self.model(**kwargs)
        self.db.add(db_obj)
        self.db.commit()
        self.db.refresh(db_obj)
        return db_obj
