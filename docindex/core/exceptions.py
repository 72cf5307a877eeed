"""Exception types raised by docindex services."""

from typing import Optional


class DocIndexError(Exception):
    """Base class for all docindex errors."""


class UnsupportedFileTypeError(DocIndexError):
    """Raised when a file's extension has no parser."""

    def __init__(self, file_path: str):
        self.file_path = file_path
        super().__init__(f"Unsupported file type: {file_path}")


class ParseError(DocIndexError):
    """Raised when a file's bytes cannot be read as its declared format."""

    def __init__(self, file_path: str, message: str):
        self.file_path = file_path
        super().__init__(message)


class OperationCancelledError(DocIndexError):
    """Raised at a cancellation checkpoint after the token fired."""


class ScanInProgressError(DocIndexError):
    """Raised when a scan is requested while another one is running."""


class SearchIndexError(DocIndexError):
    """Raised when the full-text index is unreachable or rejects a request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class DocumentNotFoundError(DocIndexError):
    """Raised when a document id does not exist."""

    def __init__(self, document_id: str):
        self.document_id = document_id
        super().__init__(f"Document not found: {document_id}")
