"""Service for walking scan roots and fingerprinting files."""

import os
import hashlib
import logging
from datetime import datetime, UTC
from typing import Any, Dict, List, Optional

from docindex.core.constants import SKIPPED_DIRECTORIES, SUPPORTED_EXTENSIONS

logger = logging.getLogger(__name__)

HASH_CHUNK_SIZE = 1024 * 1024


class FileService:
    """Service for handling file operations."""

    def __init__(self, supported_extensions: Optional[frozenset] = None):
        self.supported_extensions = supported_extensions or SUPPORTED_EXTENSIONS

    def list_supported_files(self, root_path: str) -> List[str]:
        """Recursively collect scannable files below ``root_path``.

        Dotfiles, dot-directories and dependency-cache directories are
        skipped; only files with a supported extension are returned, sorted
        for a stable processing order.

        Raises:
            FileNotFoundError: root does not exist
            NotADirectoryError: root is a file
        """
        root = os.path.abspath(root_path)
        if not os.path.exists(root):
            raise FileNotFoundError(f"Scan root does not exist: {root}")
        if not os.path.isdir(root):
            raise NotADirectoryError(f"Scan root is not a directory: {root}")

        def _on_error(error: OSError) -> None:
            logger.warning(f"Cannot read {error.filename}: {error.strerror}")

        files = []
        for current, dirnames, filenames in os.walk(root, onerror=_on_error):
            # Prune in place so os.walk never descends into skipped directories
            dirnames[:] = [
                d for d in dirnames
                if not d.startswith(".") and d not in SKIPPED_DIRECTORIES
            ]
            for filename in filenames:
                if filename.startswith("."):
                    continue
                if os.path.splitext(filename)[1].lower() in self.supported_extensions:
                    files.append(os.path.join(current, filename))

        files.sort()
        logger.info(f"Found {len(files)} supported files under {root}")
        return files

    def calculate_file_hash(self, file_path: str) -> str:
        """MD5 of the file bytes, used only for change detection."""
        digest = hashlib.md5(usedforsecurity=False)
        with open(file_path, "rb") as f:
            for chunk in iter(lambda: f.read(HASH_CHUNK_SIZE), b""):
                digest.update(chunk)
        return digest.hexdigest()

    def get_file_metadata(self, file_path: str) -> Dict[str, Any]:
        stat_info = os.stat(file_path)
        return {
            "filename": os.path.basename(file_path),
            "path": file_path,
            "size": stat_info.st_size,
            "extension": os.path.splitext(file_path)[1].lower(),
            "modified_at": datetime.fromtimestamp(stat_info.st_mtime, UTC),
        }
