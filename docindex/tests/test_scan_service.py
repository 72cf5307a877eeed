"""Tests for the scan orchestrator."""

import asyncio
import os
from unittest.mock import patch

import docx
import pytest
from openpyxl import Workbook

from docindex.core.constants import ScanStatus
from docindex.core.exceptions import ScanInProgressError
from docindex.db.models import ScanSession
from docindex.services.classification.classifier import ClassifierConfig, TopicClassifier, forced_result
from docindex.services.documents import DocumentStore
from docindex.services.ingestion import service as scan_module
from docindex.services.ingestion.service import (
    ScanService,
    cancel_active_scan,
    get_scan_session,
    is_scan_running,
    list_scan_sessions,
    recover_stale_sessions,
)

MEETING_TEXT = "讨论下周的工作安排。\n待办事项：整理需求评审记录，确认测试报告。\n"


@pytest.fixture
def scan_service(session_factory, fake_index, vector_store, ai_service):
    return ScanService(
        classifier=TopicClassifier(ClassifierConfig()),
        ai_service=ai_service,
        index=fake_index,
        vector_store=vector_store,
        session_factory=session_factory,
        ai_classification=False,
        ai_summary=False,
    )


@pytest.fixture
def scan_root(tmp_path):
    root = tmp_path / "library"
    root.mkdir()
    (root / "项目会议纪要.txt").write_text(MEETING_TEXT, encoding="utf-8")
    (root / "notes.txt").write_text("budget budget review review plan", encoding="utf-8")
    return root


async def _document(session_factory, path):
    async with session_factory() as db:
        return await DocumentStore(db).get_by_path(str(path))


@pytest.mark.asyncio
async def test_scan_ingests_new_files(scan_service, scan_root, session_factory, fake_index, vector_store):
    progress_phases = []

    result = await scan_service.scan_directory(str(scan_root), on_progress=lambda p: progress_phases.append(p.phase))

    assert result["status"] == "completed"
    assert result["total_files"] == 2
    assert result["processed_files"] == 2
    assert result["new_files"] == 2
    assert result["errors"] == []
    assert progress_phases[0] == "scanning"
    assert progress_phases[-1] == "completed"

    meeting = await _document(session_factory, scan_root / "项目会议纪要.txt")
    assert meeting.title == "项目会议纪要"
    assert meeting.file_type == "txt"
    assert meeting.summary
    assert [c.category_id for c in meeting.categories][0] == "meeting"
    assert meeting.created_at is not None
    assert meeting.indexed_at is not None

    notes = await _document(session_factory, scan_root / "notes.txt")
    assert {k.keyword for k in notes.keywords} == {"budget", "review"}

    assert set(fake_index.documents) == {meeting.id, notes.id}
    assert fake_index.documents[meeting.id]["categoryNames"][0] == "会议纪要"
    assert meeting.id in vector_store and notes.id in vector_store

    async with session_factory() as db:
        session = await get_scan_session(db, result["scan_id"])
        assert session.status == "completed"
        assert session.processed_files == 2
        assert session.new_files == 2
        assert session.completed_at is not None


@pytest.mark.asyncio
async def test_rescan_skips_unchanged_files(scan_service, scan_root, fake_index):
    await scan_service.scan_directory(str(scan_root))
    add_calls = fake_index.add_calls

    with patch("docindex.services.ingestion.service.parse_document") as mock_parse:
        result = await scan_service.scan_directory(str(scan_root))

    mock_parse.assert_not_called()
    assert result["unchanged_files"] == 2
    assert result["new_files"] == 0
    assert fake_index.add_calls == add_calls


@pytest.mark.asyncio
async def test_modified_file_is_updated_in_place(scan_service, scan_root, session_factory):
    await scan_service.scan_directory(str(scan_root))
    before = await _document(session_factory, scan_root / "notes.txt")

    (scan_root / "notes.txt").write_text("invoice invoice travel travel", encoding="utf-8")
    result = await scan_service.scan_directory(str(scan_root))

    after = await _document(session_factory, scan_root / "notes.txt")
    assert result["updated_files"] == 1
    assert result["unchanged_files"] == 1
    assert after.id == before.id
    assert after.created_at == before.created_at
    assert after.content_hash != before.content_hash
    assert {k.keyword for k in after.keywords} == {"invoice", "travel"}


@pytest.mark.asyncio
async def test_missing_root_fails_the_session(scan_service, tmp_path, session_factory):
    result = await scan_service.scan_directory(str(tmp_path / "missing"))

    assert result["status"] == "failed"
    assert "does not exist" in result["errors"][0]
    async with session_factory() as db:
        session = await get_scan_session(db, result["scan_id"])
        assert session.status == "failed"


@pytest.mark.asyncio
async def test_corrupt_file_is_recorded_and_scan_continues(scan_service, scan_root):
    (scan_root / "broken.docx").write_bytes(b"not a zip")

    result = await scan_service.scan_directory(str(scan_root))

    assert result["status"] == "completed"
    assert result["processed_files"] == 3
    assert result["new_files"] == 2
    assert len(result["errors"]) == 1
    assert "broken.docx" in result["errors"][0]


@pytest.mark.asyncio
async def test_slow_file_times_out(session_factory, fake_index, vector_store, ai_service, scan_root):
    service = ScanService(
        classifier=TopicClassifier(ClassifierConfig()),
        ai_service=ai_service,
        index=fake_index,
        vector_store=vector_store,
        session_factory=session_factory,
        file_timeout=0.05,
    )

    async def slow_parse(file_path, context):
        await asyncio.sleep(1)

    with patch("docindex.services.ingestion.service.parse_document", side_effect=slow_parse):
        result = await service.scan_directory(str(scan_root))

    assert result["status"] == "completed"
    assert result["processed_files"] == 2
    assert len(result["errors"]) == 2
    assert all("处理超时" in error for error in result["errors"])


@pytest.mark.asyncio
async def test_cancel_stops_after_current_file(scan_service, scan_root):
    (scan_root / "third.txt").write_text("third file", encoding="utf-8")

    def on_progress(progress):
        if progress.phase == "processing" and progress.processed_files >= 1:
            cancel_active_scan()

    result = await scan_service.scan_directory(str(scan_root), on_progress=on_progress)

    assert result["status"] == "failed"
    assert result["processed_files"] == 1
    assert result["errors"][-1] == "scan cancelled"
    assert is_scan_running() is False


@pytest.mark.asyncio
async def test_second_scan_is_rejected_while_running(scan_service, scan_root):
    async with scan_module._scan_lock:
        assert is_scan_running() is True
        with pytest.raises(ScanInProgressError):
            await scan_service.scan_directory(str(scan_root))


def test_cancel_without_active_scan():
    assert cancel_active_scan() is False


@pytest.mark.asyncio
async def test_forced_categories_for_ofd_and_spreadsheets(scan_service, tmp_path, session_factory, fake_index):
    root = tmp_path / "finance"
    root.mkdir()
    (root / "滴滴行程.ofd").write_bytes(b"PK\x03\x04ofd")
    workbook = Workbook()
    workbook.active.append(["会议", "纪要"])
    workbook.save(str(root / "summary.xlsx"))

    result = await scan_service.scan_directory(str(root))
    assert result["new_files"] == 2

    ofd = await _document(session_factory, root / "滴滴行程.ofd")
    assert [c.category_id for c in ofd.categories] == ["reimbursement"]
    assert ofd.summary == "系统自动识别为 OFD 电子发票文件"
    assert ofd.keywords == []
    assert fake_index.documents[ofd.id]["keywords"] == []

    sheet = await _document(session_factory, root / "summary.xlsx")
    assert [c.category_id for c in sheet.categories] == ["report"]


@pytest.mark.asyncio
async def test_ai_classification_and_summary(session_factory, fake_index, vector_store, ai_service, scan_root):
    ai_service.classify.return_value = forced_result("tech", source="ai")
    ai_service.summarize.return_value = "模型生成的摘要"
    service = ScanService(
        classifier=TopicClassifier(ClassifierConfig()),
        ai_service=ai_service,
        index=fake_index,
        vector_store=vector_store,
        session_factory=session_factory,
        ai_classification=True,
        ai_summary=True,
    )

    await service.scan_directory(str(scan_root))

    notes = await _document(session_factory, scan_root / "notes.txt")
    assert [c.category_id for c in notes.categories] == ["tech"]
    assert notes.summary == "模型生成的摘要"
    assert ai_service.classify.await_count == 2


@pytest.mark.asyncio
async def test_ai_unavailable_falls_back_to_rules(scan_service, scan_root, session_factory, ai_service):
    scan_service.ai_classification = True
    ai_service.classify.return_value = None

    await scan_service.scan_directory(str(scan_root))

    meeting = await _document(session_factory, scan_root / "项目会议纪要.txt")
    assert meeting.categories[0].category_id == "meeting"


@pytest.mark.asyncio
async def test_index_outage_keeps_local_documents(scan_service, scan_root, session_factory, fake_index, vector_store):
    fake_index.fail_writes = True

    result = await scan_service.scan_directory(str(scan_root))

    assert result["status"] == "completed"
    assert result["new_files"] == 2
    assert fake_index.documents == {}
    assert len(vector_store) == 2


@pytest.mark.asyncio
async def test_recover_stale_sessions(session_factory):
    async with session_factory() as db:
        db.add(ScanSession(root_path="/old", status=ScanStatus.RUNNING.value, errors=[]))
        db.add(ScanSession(root_path="/done", status=ScanStatus.COMPLETED.value, errors=[]))

    recovered = await recover_stale_sessions(session_factory)

    assert recovered == 1
    async with session_factory() as db:
        sessions = {s.root_path: s for s in await list_scan_sessions(db)}
    assert sessions["/old"].status == "failed"
    assert sessions["/old"].errors == ["scan interrupted"]
    assert sessions["/done"].status == "completed"


@pytest.mark.asyncio
async def test_scan_uses_absolute_root(scan_service, scan_root, monkeypatch):
    monkeypatch.chdir(scan_root.parent)

    result = await scan_service.scan_directory(scan_root.name)

    assert result["root_path"] == os.path.abspath(str(scan_root))
    assert result["new_files"] == 2
