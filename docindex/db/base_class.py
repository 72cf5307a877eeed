"""
Base class for SQLAlchemy models.
"""
import re

from sqlalchemy.orm import DeclarativeBase, declared_attr


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models.

    Models without an explicit ``__tablename__`` get the snake_case form of
    their class name.
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return re.sub(r"(?<!^)(?=[A-Z])", "_", cls.__name__).lower()

    __table_args__ = {"extend_existing": True}
