"""PDF text extraction with a three-tier fallback chain.

1. pypdf text layer
2. pdfminer.six layout analysis, an independent engine
3. a synthetic placeholder that keeps only the file name searchable

A tier whose text is shorter than ``settings.PDF_MIN_TEXT_LENGTH`` counts as
failed. The chain never raises to the caller.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple

from pdfminer.high_level import extract_pages
from pdfminer.layout import LTTextContainer
from pypdf import PdfReader

from docindex.core.cancellation import CancellationToken
from docindex.core.config import settings
from docindex.core.constants import (
    PARSER_PDF_FALLBACK,
    PARSER_PDF_PRIMARY,
    PARSER_PDF_SECONDARY,
    PDF_FALLBACK_TEMPLATE,
)
from docindex.core.exceptions import OperationCancelledError
from docindex.services.ingestion.types import ParsedDocument, word_count

logger = logging.getLogger(__name__)


def _checkpoint(cancel_token: Optional[CancellationToken]) -> None:
    if cancel_token is not None:
        cancel_token.raise_if_cancelled()


def extract_with_pypdf(file_path: str, cancel_token: Optional[CancellationToken] = None) -> Tuple[str, int]:
    reader = PdfReader(file_path)
    pages = []
    for page in reader.pages:
        _checkpoint(cancel_token)
        pages.append(page.extract_text() or "")
    return "\n".join(pages), len(reader.pages)


def extract_with_pdfminer(file_path: str, cancel_token: Optional[CancellationToken] = None) -> Tuple[str, int]:
    pages = []
    for page_layout in extract_pages(file_path):
        _checkpoint(cancel_token)
        pages.append("".join(
            element.get_text() for element in page_layout if isinstance(element, LTTextContainer)
        ))
    return "\n".join(pages), len(pages)


def parse_pdf(file_path: str, cancel_token: Optional[CancellationToken] = None) -> ParsedDocument:
    title = Path(file_path).stem
    min_length = settings.PDF_MIN_TEXT_LENGTH
    page_count = 0

    tiers = (
        (PARSER_PDF_PRIMARY, extract_with_pypdf),
        (PARSER_PDF_SECONDARY, extract_with_pdfminer),
    )
    for parser_name, extractor in tiers:
        try:
            text, pages = extractor(file_path, cancel_token)
        except OperationCancelledError:
            raise
        except Exception as e:
            logger.warning(f"PDF tier {parser_name} failed for {file_path}: {e}")
            continue

        page_count = page_count or pages
        if len(text.strip()) < min_length:
            logger.warning(
                f"PDF tier {parser_name} extracted {len(text.strip())} chars from {file_path}, "
                f"below the {min_length} char minimum"
            )
            continue

        return ParsedDocument(
            title=title,
            content=text,
            metadata={"parser": parser_name, "pageCount": pages, "wordCount": word_count(text)},
        )

    logger.warning(f"No usable text in {file_path}, indexing the file name only")
    metadata = {"parser": PARSER_PDF_FALLBACK, "error": "all-tiers-failed"}
    if page_count:
        metadata["pageCount"] = page_count
    return ParsedDocument(
        title=title,
        content=PDF_FALLBACK_TEMPLATE.format(file_name=title),
        metadata=metadata,
    )
