"""Shared constants for file typing, parsing and scanning."""

from enum import Enum


class FileType(str, Enum):
    PDF = "pdf"
    DOCX = "docx"
    XLSX = "xlsx"
    PPTX = "pptx"
    TXT = "txt"
    IMAGE = "image"
    OFD = "ofd"


class ScanStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class SearchMode(str, Enum):
    FULLTEXT = "fulltext"
    SEMANTIC = "semantic"
    HYBRID = "hybrid"


# Extension -> file type for the formats with a dedicated parser
FILE_TYPE_MAP = {
    ".pdf": FileType.PDF,
    ".docx": FileType.DOCX,
    ".doc": FileType.DOCX,
    ".xlsx": FileType.XLSX,
    ".xls": FileType.XLSX,
    ".pptx": FileType.PPTX,
    ".ppt": FileType.PPTX,
    ".txt": FileType.TXT,
    ".png": FileType.IMAGE,
    ".jpg": FileType.IMAGE,
    ".jpeg": FileType.IMAGE,
    ".gif": FileType.IMAGE,
    ".webp": FileType.IMAGE,
    ".ofd": FileType.OFD,
}

# Anything here is read as plain text
TEXT_EXTENSIONS = frozenset([
    ".txt", ".md", ".markdown", ".rst", ".log",
    ".json", ".xml", ".yaml", ".yml", ".toml",
    ".ini", ".cfg", ".conf", ".env",
    ".js", ".ts", ".jsx", ".tsx", ".mjs", ".cjs",
    ".py", ".rb", ".go", ".rs", ".java", ".c", ".cpp", ".h", ".hpp",
    ".css", ".scss", ".sass", ".less",
    ".html", ".htm", ".vue", ".svelte",
    ".sql", ".sh", ".bash", ".zsh", ".fish",
    ".gitignore", ".dockerignore", ".editorconfig",
])

# Extensions picked up by a directory scan
SUPPORTED_EXTENSIONS = frozenset(FILE_TYPE_MAP)

SPREADSHEET_EXTENSIONS = frozenset([".xlsx", ".xls"])

IMAGE_MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
}

# Directory names never descended into during a walk
SKIPPED_DIRECTORIES = frozenset([
    "node_modules",
    "__pycache__",
    "venv",
    "site-packages",
])

# Parser engine tags recorded in document metadata
PARSER_PDF_PRIMARY = "pypdf"
PARSER_PDF_SECONDARY = "pdfminer"
PARSER_PDF_FALLBACK = "fallback-filename-only"

PDF_FALLBACK_TEMPLATE = (
    "【系统提示：未提取到有效文本，该文件可能为纯图片或扫描版 PDF，"
    "已降级为仅保留文件名索引】文件原名：{file_name}"
)
IMAGE_FALLBACK_CONTENT = "【系统提示：图片解析超时或触发接口限流，已跳过】"
OFD_SUMMARY = "系统自动识别为 OFD 电子发票文件"

SCAN_TIMEOUT_MESSAGE = "处理超时（>{seconds}s），已跳过"
SCAN_CANCELLED_MESSAGE = "scan cancelled"
SCAN_INTERRUPTED_MESSAGE = "scan interrupted"
