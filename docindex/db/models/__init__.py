from docindex.db.models.document import Document, DocumentCategory, Keyword
from docindex.db.models.category import Category
from docindex.db.models.scan_session import ScanSession
from docindex.db.models.app_setting import AppSetting

# These imports are required to ensure all models are discovered by SQLAlchemy
__all__ = [
    "Document",
    "DocumentCategory",
    "Keyword",
    "Category",
    "ScanSession",
    "AppSetting",
]
