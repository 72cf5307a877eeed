from datetime import datetime, UTC

from sqlalchemy import String, Text, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from docindex.db.base_class import Base


class AppSetting(Base):
    """Runtime key/value setting editable through the API."""

    __tablename__ = "app_settings"

    key: Mapped[str] = mapped_column(String, primary_key=True)
    value: Mapped[str] = mapped_column(Text, default="")
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )
