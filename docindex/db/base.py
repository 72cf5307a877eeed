# Import all models so that Base has them before running Alembic
from docindex.db.base_class import Base  # noqa: F401
from docindex.db.models import (  # noqa: F401
    AppSetting,
    Category,
    Document,
    DocumentCategory,
    Keyword,
    ScanSession,
)
