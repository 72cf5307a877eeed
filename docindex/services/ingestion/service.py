"""Scan orchestrator: walk a root, detect changes and ingest changed files."""

import asyncio
import logging
import os
import time
from dataclasses import dataclass, field, replace
from datetime import datetime, UTC
from typing import Any, AsyncContextManager, Callable, Dict, List, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from docindex.core.cancellation import CancellationToken
from docindex.core.config import settings
from docindex.core.constants import (
    OFD_SUMMARY,
    SCAN_CANCELLED_MESSAGE,
    SCAN_INTERRUPTED_MESSAGE,
    SCAN_TIMEOUT_MESSAGE,
    SPREADSHEET_EXTENSIONS,
    FileType,
    ScanStatus,
)
from docindex.core.exceptions import OperationCancelledError, ScanInProgressError, SearchIndexError
from docindex.db.models import ScanSession
from docindex.db.session import get_async_session
from docindex.services.ai.service import AIService
from docindex.services.classification.classifier import ClassificationResult, TopicClassifier, get_classifier
from docindex.services.classification.keywords import extract_keywords
from docindex.services.classification.summarizer import generate_summary
from docindex.services.documents import DocumentStore, to_index_document, vector_metadata, vector_text
from docindex.services.ingestion.file_service import FileService
from docindex.services.ingestion.parsers import get_file_type, parse_document
from docindex.services.ingestion.types import ParseContext, ParsedDocument
from docindex.services.search.meilisearch import IndexDocument, MeiliSearchClient, get_meili_client
from docindex.services.search.vector_store import VectorStore, get_vector_store

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AsyncContextManager[AsyncSession]]

STORED_KEYWORDS = 20
KEYWORD_MIN_FREQUENCY = 2

OUTCOME_NEW = "new"
OUTCOME_UPDATED = "updated"
OUTCOME_UNCHANGED = "unchanged"
OUTCOME_FAILED = "failed"

# One scan at a time per process
_scan_lock = asyncio.Lock()
_active_token: Optional[CancellationToken] = None


@dataclass
class ScanProgress:
    phase: str
    total_files: int = 0
    processed_files: int = 0
    new_files: int = 0
    updated_files: int = 0
    unchanged_files: int = 0
    current_file: Optional[str] = None
    errors: List[str] = field(default_factory=list)


@dataclass
class FileOutcome:
    status: str
    document_id: Optional[str] = None
    error: Optional[str] = None


def is_scan_running() -> bool:
    return _scan_lock.locked()


def cancel_active_scan(reason: str = SCAN_CANCELLED_MESSAGE) -> bool:
    """Signal the running scan to stop at its next checkpoint."""
    if _active_token is None:
        return False
    logger.info(f"Cancelling active scan: {reason}")
    _active_token.cancel(reason)
    return True


class ScanService:
    """Runs scan sessions and ingests individual files."""

    def __init__(
        self,
        file_service: Optional[FileService] = None,
        classifier: Optional[TopicClassifier] = None,
        ai_service: Optional[AIService] = None,
        index: Optional[MeiliSearchClient] = None,
        vector_store: Optional[VectorStore] = None,
        session_factory: SessionFactory = get_async_session,
        file_timeout: Optional[float] = None,
        ai_classification: Optional[bool] = None,
        ai_summary: Optional[bool] = None,
    ):
        self.file_service = file_service or FileService()
        self.classifier = classifier or get_classifier()
        self.ai_service = ai_service or AIService()
        self.index = index
        self.vector_store = vector_store if vector_store is not None else get_vector_store()
        self.session_factory = session_factory
        self.file_timeout = file_timeout or settings.FILE_TIMEOUT_SECONDS
        self.ai_classification = settings.AI_CLASSIFICATION_ENABLED if ai_classification is None else ai_classification
        self.ai_summary = settings.AI_SUMMARY_ENABLED if ai_summary is None else ai_summary

    async def scan_directory(
        self,
        root_path: str,
        on_progress: Optional[Callable[[ScanProgress], None]] = None,
    ) -> Dict[str, Any]:
        """Scan ``root_path`` and ingest every new or changed file.

        Per-file failures and timeouts are recorded on the session and never
        stop the scan. A failure of the walk itself, or a cancellation,
        finalizes the session as failed with the counters reached so far.

        Raises:
            ScanInProgressError: another scan is running in this process
        """
        global _active_token
        if _scan_lock.locked():
            raise ScanInProgressError("A scan is already running")

        async with _scan_lock:
            token = CancellationToken()
            _active_token = token
            try:
                return await self._run(os.path.abspath(root_path), token, on_progress)
            finally:
                _active_token = None

    async def _run(
        self,
        root_path: str,
        token: CancellationToken,
        on_progress: Optional[Callable[[ScanProgress], None]],
    ) -> Dict[str, Any]:
        started = time.monotonic()
        await self._prepare()
        scan_id = await self._create_session(root_path)
        logger.info(f"Scan {scan_id} started for {root_path}")

        progress = ScanProgress(phase="scanning")
        status = ScanStatus.FAILED

        def emit() -> None:
            if on_progress is not None:
                on_progress(replace(progress, errors=list(progress.errors)))

        try:
            emit()
            files = await asyncio.to_thread(self.file_service.list_supported_files, root_path)
            progress.total_files = len(files)
            async with self.session_factory() as db:
                existing = await DocumentStore(db).existing_hashes()

            progress.phase = "processing"
            for file_path in files:
                token.raise_if_cancelled()
                progress.current_file = file_path
                emit()

                outcome = await self._process_with_timeout(file_path, existing.get(file_path), token)
                progress.processed_files += 1
                if outcome.status == OUTCOME_NEW:
                    progress.new_files += 1
                elif outcome.status == OUTCOME_UPDATED:
                    progress.updated_files += 1
                elif outcome.status == OUTCOME_UNCHANGED:
                    progress.unchanged_files += 1
                else:
                    progress.errors.append(f"{file_path}: {outcome.error}")

                await self._save_progress(scan_id, progress)

            status = ScanStatus.COMPLETED
        except OperationCancelledError:
            logger.warning(f"Scan {scan_id} cancelled after {progress.processed_files} files")
            progress.errors.append(SCAN_CANCELLED_MESSAGE)
        except Exception as e:
            logger.error(f"Scan {scan_id} failed: {e}")
            progress.errors.append(str(e))
        finally:
            progress.phase = status.value
            progress.current_file = None
            await self._finalize(scan_id, status, progress)
            emit()

        duration = time.monotonic() - started
        logger.info(
            f"Scan {scan_id} {status.value}: {progress.processed_files}/{progress.total_files} files, "
            f"{progress.new_files} new, {progress.updated_files} updated, "
            f"{len(progress.errors)} errors in {duration:.1f}s"
        )
        return {
            "scan_id": scan_id,
            "status": status.value,
            "root_path": root_path,
            "total_files": progress.total_files,
            "processed_files": progress.processed_files,
            "new_files": progress.new_files,
            "updated_files": progress.updated_files,
            "unchanged_files": progress.unchanged_files,
            "errors": progress.errors,
            "duration_seconds": round(duration, 3),
        }

    async def _prepare(self) -> None:
        async with self.session_factory() as db:
            await DocumentStore(db).seed_categories()

        if self.index is None:
            self.index = await get_meili_client()
        try:
            await self.index.init_index()
        except SearchIndexError as e:
            logger.warning(f"Search index not initialised, documents will only be stored locally: {e}")

    async def _create_session(self, root_path: str) -> str:
        async with self.session_factory() as db:
            session = ScanSession(root_path=root_path, status=ScanStatus.RUNNING.value, errors=[])
            db.add(session)
            await db.flush()
            return session.id

    async def _save_progress(self, scan_id: str, progress: ScanProgress) -> None:
        async with self.session_factory() as db:
            await db.execute(
                update(ScanSession)
                .where(ScanSession.id == scan_id)
                .values(
                    total_files=progress.total_files,
                    processed_files=progress.processed_files,
                    new_files=progress.new_files,
                    updated_files=progress.updated_files,
                    errors=list(progress.errors),
                )
            )

    async def _finalize(self, scan_id: str, status: ScanStatus, progress: ScanProgress) -> None:
        async with self.session_factory() as db:
            await db.execute(
                update(ScanSession)
                .where(ScanSession.id == scan_id)
                .values(
                    status=status.value,
                    completed_at=datetime.now(UTC),
                    total_files=progress.total_files,
                    processed_files=progress.processed_files,
                    new_files=progress.new_files,
                    updated_files=progress.updated_files,
                    errors=list(progress.errors),
                )
            )

    async def _process_with_timeout(
        self,
        file_path: str,
        existing: Optional[Tuple[str, str]],
        scan_token: CancellationToken,
    ) -> FileOutcome:
        file_token = scan_token.child()
        try:
            return await asyncio.wait_for(
                self.process_file(file_path, existing, file_token),
                timeout=self.file_timeout,
            )
        except asyncio.TimeoutError:
            # Stops any parser thread still working on the file
            file_token.cancel("timeout")
            message = SCAN_TIMEOUT_MESSAGE.format(seconds=int(self.file_timeout))
            logger.error(f"Timed out processing {file_path} after {self.file_timeout}s")
            return FileOutcome(OUTCOME_FAILED, error=message)
        except OperationCancelledError:
            if scan_token.cancelled:
                raise
            return FileOutcome(OUTCOME_FAILED, error="cancelled")
        except Exception as e:
            logger.error(f"Error processing {file_path}: {e}")
            return FileOutcome(OUTCOME_FAILED, error=str(e))

    async def process_file(
        self,
        file_path: str,
        existing: Optional[Tuple[str, str]] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> FileOutcome:
        """Ingest one file unless its content hash matches ``existing``.

        Args:
            file_path: absolute path of the file
            existing: ``(document_id, content_hash)`` from the last scan, if any
            cancel_token: checked between pipeline steps and inside parsers
        """
        cancel_token = cancel_token or CancellationToken()
        content_hash = await asyncio.to_thread(self.file_service.calculate_file_hash, file_path)
        if existing is not None and existing[1] == content_hash:
            logger.debug(f"Unchanged, skipping: {file_path}")
            return FileOutcome(OUTCOME_UNCHANGED, document_id=existing[0])

        file_info = self.file_service.get_file_metadata(file_path)
        extension = file_info["extension"]
        file_type = get_file_type(file_path)

        parsed = await parse_document(file_path, ParseContext(cancel_token=cancel_token, ai_service=self.ai_service))
        if file_type == FileType.OFD.value:
            summary = OFD_SUMMARY
            categories = self.classifier.classify_file(file_type, extension, "", parsed.title)
            keywords = []
        else:
            summary = await self._summarize(parsed)
            cancel_token.raise_if_cancelled()
            categories = await self._classify(file_type, extension, parsed)
            keywords = extract_keywords(parsed.content, STORED_KEYWORDS, KEYWORD_MIN_FREQUENCY)
        cancel_token.raise_if_cancelled()

        async with self.session_factory() as db:
            store = DocumentStore(db)
            document, created = await store.upsert(
                file_path=file_path,
                title=parsed.title,
                file_type=file_type,
                file_size=file_info["size"],
                content=parsed.content,
                summary=summary,
                content_hash=content_hash,
                modified_at=file_info["modified_at"],
                metadata=parsed.metadata,
            )
            await store.replace_assignments(document, categories, keywords)
            document_id = document.id
            index_document = to_index_document(document)
            embedding_text = vector_text(document)
            embedding_metadata = vector_metadata(document)

        await self._push_to_index(index_document)
        await self._push_to_vector_store(document_id, embedding_text, embedding_metadata)

        logger.info(f"{'Added' if created else 'Updated'} {file_path} as {document_id}")
        return FileOutcome(OUTCOME_NEW if created else OUTCOME_UPDATED, document_id=document_id)

    async def _summarize(self, parsed: ParsedDocument) -> str:
        if self.ai_summary and parsed.content.strip():
            summary = await self.ai_service.summarize(parsed.content, settings.SUMMARY_MAX_LENGTH)
            if summary:
                return summary
        return generate_summary(parsed.content, settings.SUMMARY_MAX_LENGTH)

    async def _classify(self, file_type: str, extension: str, parsed: ParsedDocument) -> List[ClassificationResult]:
        forced = file_type == FileType.IMAGE.value or extension in SPREADSHEET_EXTENSIONS
        if self.ai_classification and not forced:
            result = await self.ai_service.classify(parsed.content, parsed.title)
            if result is not None:
                return [result]
            logger.info(f"AI classification unavailable for {parsed.title}, using rules")
        return self.classifier.classify_file(file_type, extension, parsed.content, parsed.title)

    async def _push_to_index(self, document: IndexDocument) -> None:
        if self.index is None:
            return
        try:
            await self.index.add_documents([document])
        except SearchIndexError as e:
            logger.warning(f"Failed to index {document.filePath}: {e}")

    async def _push_to_vector_store(self, document_id: str, text: str, metadata: Dict[str, Any]) -> None:
        try:
            await asyncio.to_thread(self.vector_store.add, document_id, text, metadata)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to add {document_id} to the vector store: {e}")


async def recover_stale_sessions(session_factory: SessionFactory = get_async_session) -> int:
    """Fail every session a previous process left running."""
    async with session_factory() as db:
        result = await db.execute(select(ScanSession).where(ScanSession.status == ScanStatus.RUNNING.value))
        stale = list(result.scalars().all())
        for session in stale:
            session.status = ScanStatus.FAILED.value
            session.completed_at = datetime.now(UTC)
            session.errors = [*(session.errors or []), SCAN_INTERRUPTED_MESSAGE]
    if stale:
        logger.warning(f"Marked {len(stale)} interrupted scan sessions as failed")
    return len(stale)


async def list_scan_sessions(db: AsyncSession, limit: int = 20) -> List[ScanSession]:
    result = await db.execute(select(ScanSession).order_by(ScanSession.started_at.desc()).limit(limit))
    return list(result.scalars().all())


async def get_scan_session(db: AsyncSession, scan_id: str) -> Optional[ScanSession]:
    return await db.get(ScanSession, scan_id)
