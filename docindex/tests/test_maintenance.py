"""Tests for the document store and maintenance operations."""

from datetime import datetime, timezone

import pytest

from docindex.core.exceptions import DocumentNotFoundError, ScanInProgressError, SearchIndexError
from docindex.db.models import ScanSession
from docindex.services.classification.classifier import forced_result
from docindex.services.classification.keywords import ExtractedKeyword
from docindex.services.documents import DocumentStore, remove_document, to_index_document
from docindex.services.ingestion import service as scan_module
from docindex.services.maintenance import clear_data, get_stats, reindex_all


async def _add_document(db, path, title, file_type="pdf", categories=("tech",), keywords=()):
    store = DocumentStore(db)
    document, _ = await store.upsert(
        file_path=path,
        title=title,
        file_type=file_type,
        file_size=100,
        content=f"{title} content",
        summary=f"{title} summary",
        content_hash=f"hash-{path}",
        modified_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        metadata={"wordCount": 2},
    )
    await store.replace_assignments(
        document,
        [forced_result(c) for c in categories],
        [ExtractedKeyword(keyword=k, weight=0.5, frequency=2) for k in keywords],
    )
    return document


@pytest.mark.asyncio
async def test_seed_categories_is_idempotent(db_session):
    store = DocumentStore(db_session)

    assert await store.seed_categories() == 10
    assert await store.seed_categories() == 0
    counts = await store.category_counts()
    assert [category.id for category, _ in counts][0] == "product"
    assert all(count == 0 for _, count in counts)


@pytest.mark.asyncio
async def test_seed_removes_stale_image_assignments(seeded_session):
    document = await _add_document(seeded_session, "/a.pdf", "A", categories=("image", "tech"))
    await seeded_session.commit()

    await DocumentStore(seeded_session).seed_categories()
    await seeded_session.commit()
    await seeded_session.refresh(document, ["categories"])

    assert [c.category_id for c in document.categories] == ["tech"]


@pytest.mark.asyncio
async def test_upsert_keeps_identity_and_created_at(seeded_session):
    store = DocumentStore(seeded_session)
    first = await _add_document(seeded_session, "/a.pdf", "A", keywords=("alpha", "beta"))
    created_at = first.created_at

    second, created = await store.upsert(
        file_path="/a.pdf", title="A2", file_type="pdf", file_size=5, content="new",
        summary=None, content_hash="new-hash", modified_at=None, metadata=None,
    )
    await store.replace_assignments(second, [forced_result("tech"), forced_result("tech")], [
        ExtractedKeyword(keyword="alpha", weight=1.0, frequency=3),
    ])

    assert created is False
    assert second.id == first.id
    assert second.created_at == created_at
    assert [c.category_id for c in second.categories] == ["tech"]
    assert [k.keyword for k in second.keywords] == ["alpha"]


@pytest.mark.asyncio
async def test_new_document_assignments_persist(session_factory):
    async with session_factory() as db:
        await DocumentStore(db).seed_categories()
        document = await _add_document(db, "/new.pdf", "New", categories=("tech", "report"), keywords=("alpha",))
        assert document.id

    async with session_factory() as db:
        stored = await DocumentStore(db).get_by_path("/new.pdf")
        assert sorted(c.category_id for c in stored.categories) == ["report", "tech"]
        assert [k.keyword for k in stored.keywords] == ["alpha"]


@pytest.mark.asyncio
async def test_replace_assignments_reloads_expired_collections(seeded_session):
    document = await _add_document(seeded_session, "/a.pdf", "A", keywords=("alpha",))
    seeded_session.expire(document, ["categories", "keywords"])

    await DocumentStore(seeded_session).replace_assignments(
        document,
        [forced_result("meeting")],
        [ExtractedKeyword(keyword="beta", weight=0.2, frequency=2)],
    )

    assert [c.category_id for c in document.categories] == ["meeting"]
    assert [k.keyword for k in document.keywords] == ["beta"]


@pytest.mark.asyncio
async def test_index_projection(seeded_session):
    document = await _add_document(seeded_session, "/a.pdf", "A", categories=("report",), keywords=("bom",))

    projected = to_index_document(document)

    assert projected.categories == ["report"]
    assert projected.categoryNames == ["报表"]
    assert projected.keywords == ["bom"]
    assert projected.modifiedAt == 1704067200000


@pytest.mark.asyncio
async def test_list_filters_and_pages(seeded_session):
    await _add_document(seeded_session, "/a.pdf", "Alpha", categories=("tech",))
    await _add_document(seeded_session, "/b.docx", "Beta", file_type="docx", categories=("product",))
    await _add_document(seeded_session, "/c.pdf", "Gamma", categories=("product",))
    store = DocumentStore(seeded_session)

    documents, total = await store.list(category="product", sort_by="title", sort_order="asc")
    assert total == 2
    assert [d.title for d in documents] == ["Beta", "Gamma"]

    documents, total = await store.list(file_type="pdf", page=2, limit=1, sort_by="title", sort_order="asc")
    assert total == 2
    assert [d.title for d in documents] == ["Gamma"]


@pytest.mark.asyncio
async def test_suggestions(seeded_session):
    await _add_document(seeded_session, "/a.pdf", "Budget 2024", keywords=("budget", "budgeting"))
    await _add_document(seeded_session, "/b.pdf", "Notes", keywords=("budget",))
    store = DocumentStore(seeded_session)

    assert await store.suggestions("b") == []
    suggestions = await store.suggestions("budg")
    assert suggestions[0] == "Budget 2024"
    assert suggestions[1] == "budget"
    assert "budgeting" in suggestions


@pytest.mark.asyncio
async def test_remove_document(seeded_session, fake_index, vector_store):
    document = await _add_document(seeded_session, "/a.pdf", "A")
    vector_store.add(document.id, "A content")

    await remove_document(seeded_session, document.id, fake_index, vector_store)

    assert fake_index.deleted == [document.id]
    assert document.id not in vector_store
    with pytest.raises(DocumentNotFoundError):
        await DocumentStore(seeded_session).get(document.id)


@pytest.mark.asyncio
async def test_remove_document_tolerates_index_outage(seeded_session, fake_index):
    document = await _add_document(seeded_session, "/a.pdf", "A")
    fake_index.healthy = False

    await remove_document(seeded_session, document.id, fake_index)

    assert await DocumentStore(seeded_session).get_by_path("/a.pdf") is None


@pytest.mark.asyncio
async def test_reindex_rebuilds_projections(session_factory, fake_index, vector_store):
    async with session_factory() as db:
        await DocumentStore(db).seed_categories()
        await _add_document(db, "/a.pdf", "A")
        await _add_document(db, "/b.pdf", "B", categories=("meeting",))
    vector_store.add("orphan", "left over")

    result = await reindex_all(fake_index, vector_store, session_factory)

    assert result == {"status": "completed", "documents": 2, "indexed": 2, "vectors": 2, "index_error": None}
    assert len(fake_index.documents) == 2
    assert "orphan" not in vector_store


@pytest.mark.asyncio
async def test_reindex_reports_index_outage(session_factory, fake_index, vector_store):
    async with session_factory() as db:
        await DocumentStore(db).seed_categories()
        await _add_document(db, "/a.pdf", "A")
    fake_index.healthy = False

    result = await reindex_all(fake_index, vector_store, session_factory)

    assert result["status"] == "partial"
    assert result["indexed"] == 0
    assert result["vectors"] == 1
    assert result["index_error"]


@pytest.mark.asyncio
async def test_maintenance_rejected_while_scanning(session_factory, seeded_session, fake_index, vector_store):
    async with scan_module._scan_lock:
        with pytest.raises(ScanInProgressError):
            await reindex_all(fake_index, vector_store, session_factory)
        with pytest.raises(ScanInProgressError):
            await clear_data(seeded_session, "all")


@pytest.mark.asyncio
async def test_stats(seeded_session, vector_store):
    await _add_document(seeded_session, "/a.pdf", "A", categories=("tech",))
    await _add_document(seeded_session, "/b.docx", "B", file_type="docx", categories=("tech", "product"))
    seeded_session.add(ScanSession(
        root_path="/docs", status="completed", processed_files=2,
        completed_at=datetime(2024, 1, 2, tzinfo=timezone.utc),
    ))
    await seeded_session.flush()
    vector_store.add("x", "text")

    stats = await get_stats(seeded_session, vector_store)

    assert stats["total_documents"] == 2
    assert stats["storage_bytes"] == 200
    assert stats["by_file_type"] == {"pdf": 1, "docx": 1}
    assert stats["by_category"]["tech"] == 2
    assert stats["by_category"]["product"] == 1
    assert stats["by_category"]["other"] == 0
    assert stats["vector_count"] == 1
    assert stats["last_scan"]["root_path"] == "/docs"


@pytest.mark.asyncio
async def test_clear_history_keeps_documents(seeded_session):
    await _add_document(seeded_session, "/a.pdf", "A")
    seeded_session.add(ScanSession(root_path="/docs", status="completed"))
    await seeded_session.flush()

    result = await clear_data(seeded_session, "history")

    assert result == {"target": "history", "scan_sessions": 1}
    assert (await get_stats(seeded_session))["total_documents"] == 1


@pytest.mark.asyncio
async def test_clear_all(seeded_session, fake_index, vector_store):
    await _add_document(seeded_session, "/a.pdf", "A", keywords=("alpha",))
    vector_store.add("x", "text")

    result = await clear_data(seeded_session, "all", fake_index, vector_store)

    assert result["documents"] == 1
    assert fake_index.index_deleted is True
    assert len(vector_store) == 0
    assert (await get_stats(seeded_session))["total_documents"] == 0


@pytest.mark.asyncio
async def test_clear_unknown_target(seeded_session):
    with pytest.raises(ValueError):
        await clear_data(seeded_session, "everything")


def test_search_index_error_carries_status():
    assert SearchIndexError("bad", status_code=400).status_code == 400
