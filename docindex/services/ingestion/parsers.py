"""File parsers for different document types."""

import asyncio
import base64
import csv
import inspect
import io
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import docx
import xlrd
from openpyxl import load_workbook
from pptx import Presentation
from pptx.shapes.group import GroupShape

from docindex.core.constants import (
    FILE_TYPE_MAP,
    IMAGE_FALLBACK_CONTENT,
    IMAGE_MIME_TYPES,
    TEXT_EXTENSIONS,
    FileType,
)
from docindex.core.exceptions import OperationCancelledError, ParseError, UnsupportedFileTypeError
from docindex.services.ai.service import AIService
from docindex.services.ingestion.pdf import parse_pdf as _parse_pdf_chain
from docindex.services.ingestion.types import ParseContext, ParsedDocument, word_count

logger = logging.getLogger(__name__)

# Dictionary mapping file extensions to parser functions
PARSER_REGISTRY: Dict[str, Callable] = {}


def register_parser(extensions: Iterable[str]):
    """Decorator to register a parser function for specific file extensions."""
    def decorator(func):
        for ext in extensions:
            PARSER_REGISTRY[ext.lower()] = func
        return func
    return decorator


def get_file_type(file_path: str) -> Optional[str]:
    """Return the file type for a path, or None when it cannot be parsed."""
    ext = os.path.splitext(file_path)[1].lower()
    if ext in FILE_TYPE_MAP:
        return FILE_TYPE_MAP[ext].value
    if is_text_file(file_path):
        return FileType.TXT.value
    return None


def is_text_file(file_path: str) -> bool:
    name = os.path.basename(file_path).lower()
    ext = os.path.splitext(name)[1] or name
    return ext in TEXT_EXTENSIONS


def is_supported_file(file_path: str) -> bool:
    return get_file_type(file_path) is not None


def _title(file_path: str) -> str:
    return Path(file_path).stem


def _checkpoint(context: ParseContext) -> None:
    if context.cancel_token is not None:
        context.cancel_token.raise_if_cancelled()


async def parse_document(file_path: str, context: Optional[ParseContext] = None) -> ParsedDocument:
    """Parse a file with the parser registered for its extension.

    Synchronous parsers run in a worker thread; they observe the context's
    cancellation token between pages, sheets and slides.

    Raises:
        UnsupportedFileTypeError: no parser handles the extension
        ParseError: the file is unreadable as its declared format
    """
    context = context or ParseContext()
    name = os.path.basename(file_path).lower()
    ext = os.path.splitext(name)[1] or name
    parser = PARSER_REGISTRY.get(ext)
    if parser is None:
        raise UnsupportedFileTypeError(file_path)

    if inspect.iscoroutinefunction(parser):
        parsed = await parser(file_path, context)
    else:
        parsed = await asyncio.to_thread(parser, file_path, context)
    _checkpoint(context)
    return parsed


@register_parser(TEXT_EXTENSIONS)
def parse_text(file_path: str, context: ParseContext) -> ParsedDocument:
    """Parse a plain text file, honouring a UTF-8 or UTF-16 byte-order mark."""
    with open(file_path, "rb") as f:
        raw = f.read()

    try:
        content = decode_text(raw)
    except UnicodeDecodeError as e:
        raise ParseError(file_path, f"Unreadable text encoding: {e}") from e

    return ParsedDocument(
        title=_title(file_path),
        content=content.strip(),
        metadata={"wordCount": word_count(content), "lines": content.count("\n") + 1},
    )


def decode_text(raw: bytes) -> str:
    if raw.startswith(b"\xef\xbb\xbf"):
        return raw[3:].decode("utf-8")
    if raw.startswith(b"\xff\xfe"):
        return raw[2:].decode("utf-16-le")
    if raw.startswith(b"\xfe\xff"):
        return raw[2:].decode("utf-16-be")
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        # Legacy Chinese Windows exports
        return raw.decode("gb18030")


@register_parser([".pdf"])
def parse_pdf(file_path: str, context: ParseContext) -> ParsedDocument:
    return _parse_pdf_chain(file_path, context.cancel_token)


@register_parser([".docx", ".doc"])
def parse_docx(file_path: str, context: ParseContext) -> ParsedDocument:
    """Extract body paragraphs and table cells from a Word document."""
    try:
        document = docx.Document(file_path)
    except Exception as e:
        raise ParseError(file_path, f"Unreadable Word document: {e}") from e

    parts: List[str] = [p.text for p in document.paragraphs if p.text.strip()]
    for table in document.tables:
        _checkpoint(context)
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                parts.append("\t".join(cells))

    content = "\n".join(parts)
    return ParsedDocument(
        title=_title(file_path),
        content=content,
        metadata={"wordCount": word_count(content)},
    )


def _render_sheets(sheets: Iterable[Tuple[str, Iterable[Sequence[Any]]]], context: ParseContext) -> str:
    """Render ``(sheet name, rows)`` pairs as CSV blocks, skipping blank rows and sheets."""
    blocks = []
    for name, rows in sheets:
        _checkpoint(context)
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        for row in rows:
            if any(cell not in (None, "") for cell in row):
                writer.writerow(["" if cell is None else cell for cell in row])
        text = buffer.getvalue()
        if text.strip():
            blocks.append(f"\n--- [表名: {name}] ---\n{text}")
    return "\n".join(blocks)


@register_parser([".xlsx"])
def parse_xlsx(file_path: str, context: ParseContext) -> ParsedDocument:
    """Render every sheet as CSV under a header naming the sheet."""
    try:
        workbook = load_workbook(file_path, read_only=True, data_only=True)
    except Exception as e:
        raise ParseError(file_path, f"Unreadable spreadsheet: {e}") from e

    try:
        sheet_names = list(workbook.sheetnames)
        content = _render_sheets(
            ((name, workbook[name].iter_rows(values_only=True)) for name in sheet_names),
            context,
        )
    finally:
        workbook.close()

    return ParsedDocument(
        title=_title(file_path),
        content=content,
        metadata={"sheetCount": len(sheet_names), "wordCount": word_count(content)},
    )


def _xls_cell(cell: xlrd.sheet.Cell, datemode: int) -> Any:
    if cell.ctype == xlrd.XL_CELL_DATE:
        return xlrd.xldate_as_datetime(cell.value, datemode).isoformat(sep=" ")
    if cell.ctype == xlrd.XL_CELL_NUMBER and float(cell.value).is_integer():
        return int(cell.value)
    if cell.ctype == xlrd.XL_CELL_BOOLEAN:
        return bool(cell.value)
    if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK, xlrd.XL_CELL_ERROR):
        return None
    return cell.value


@register_parser([".xls"])
def parse_xls(file_path: str, context: ParseContext) -> ParsedDocument:
    """Legacy BIFF workbooks, rendered the same way as ``.xlsx``."""
    try:
        book = xlrd.open_workbook(file_path, on_demand=True)
    except Exception as e:
        raise ParseError(file_path, f"Unreadable spreadsheet: {e}") from e

    def rows(sheet):
        for index in range(sheet.nrows):
            yield [_xls_cell(cell, book.datemode) for cell in sheet.row(index)]

    try:
        sheet_names = book.sheet_names()
        content = _render_sheets(
            ((name, rows(book.sheet_by_name(name))) for name in sheet_names),
            context,
        )
    finally:
        book.release_resources()

    return ParsedDocument(
        title=_title(file_path),
        content=content,
        metadata={"sheetCount": len(sheet_names), "wordCount": word_count(content)},
    )


def _shape_texts(shapes) -> List[str]:
    texts = []
    for shape in shapes:
        if isinstance(shape, GroupShape):
            texts.extend(_shape_texts(shape.shapes))
        elif shape.has_text_frame:
            texts.extend(p.text for p in shape.text_frame.paragraphs if p.text.strip())
        elif getattr(shape, "has_table", False):
            for row in shape.table.rows:
                texts.extend(cell.text for cell in row.cells if cell.text.strip())
    return texts


@register_parser([".pptx", ".ppt"])
def parse_pptx(file_path: str, context: ParseContext) -> ParsedDocument:
    """Read slide text in presentation order, then speaker notes."""
    try:
        presentation = Presentation(file_path)
    except Exception as e:
        raise ParseError(file_path, f"Unreadable presentation: {e}") from e

    slide_texts = []
    notes = []
    slides = list(presentation.slides)
    for slide in slides:
        _checkpoint(context)
        text = " ".join(_shape_texts(slide.shapes)).strip()
        if text:
            slide_texts.append(f"[Slide {len(slide_texts) + 1}]\n{text}")
        if slide.has_notes_slide:
            frame = slide.notes_slide.notes_text_frame
            if frame is not None and frame.text.strip():
                notes.append(frame.text.strip())

    content = "\n\n".join(slide_texts)
    if notes:
        content += "\n\n[Speaker Notes]\n" + "\n".join(notes)

    return ParsedDocument(
        title=_title(file_path),
        content=content,
        metadata={"slideCount": len(slides), "wordCount": word_count(content)},
    )


@register_parser(IMAGE_MIME_TYPES.keys())
async def parse_image(file_path: str, context: ParseContext) -> ParsedDocument:
    """Describe an image through the vision model; never raises on API failure."""
    ext = os.path.splitext(file_path)[1].lower()
    mime_type = IMAGE_MIME_TYPES.get(ext, "image/png")
    raw = await asyncio.to_thread(Path(file_path).read_bytes)
    encoded = base64.b64encode(raw).decode("ascii")

    ai_service = context.ai_service or AIService()
    try:
        content = await ai_service.describe_image(encoded, mime_type)
    except OperationCancelledError:
        raise
    except Exception as e:
        logger.warning(f"Image description failed for {file_path}: {e}")
        content = IMAGE_FALLBACK_CONTENT

    return ParsedDocument(
        title=_title(file_path),
        content=content,
        metadata={"imageType": mime_type, "fileSizeBytes": len(raw)},
    )


@register_parser([".ofd"])
def parse_ofd(file_path: str, context: ParseContext) -> ParsedDocument:
    """Fixed-layout packages are not opened; only the title is kept."""
    return ParsedDocument(title=_title(file_path), content="", metadata={"format": "OFD"})
