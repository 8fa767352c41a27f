"""
Base model class for all database models.

Provides common functionality and fields for entity models:
- Primary key (Integer, caller-assignable so imported ids are preserved)
- Timestamp fields (created_at, updated_at)
- SQLAlchemy declarative base

Relation tables with composite keys (ingredients, likes, follow edges)
derive from ``Base`` directly.
"""

from sqlalchemy import Column, Integer, DateTime
from sqlalchemy.orm import declarative_base

from recipe_hub.utils.datetime_utils import utc_now

Base = declarative_base()


class BaseModel(Base):
    """
    Abstract base model with common fields and methods.

    All entity models inherit from this class to get:
    - id: Primary key
    - created_at: Timestamp when record was created
    - updated_at: Timestamp when record was last modified
    """

    __abstract__ = True

    id = Column(Integer, primary_key=True, autoincrement=True)

    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    def __repr__(self) -> str:
        """
        String representation of model instance.

        Returns:
            String like "ClassName(id=1, name='...')"
        """
        class_name = self.__class__.__name__
        attrs = []

        if getattr(self, "id", None) is not None:
            attrs.append(f"id={self.id}")

        if getattr(self, "name", None) is not None:
            attrs.append(f"name='{self.name}'")

        return f"{class_name}({', '.join(attrs)})"
