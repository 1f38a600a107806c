"""
Unit Tests: JSON File Stores
"""

import json

import pytest

from ingestion.adapters.json_store import JsonFileIndexer, JsonMetadataRepository
from ingestion.orchestration.errors import IndexingError, PersistenceError
from ingestion.orchestration.models import SearchDocument
from ingestion.transcription.models import TranscriptSegment


@pytest.mark.asyncio
async def test_indexer_writes_document(tmp_path):
    indexer = JsonFileIndexer(str(tmp_path / "index"))
    document = SearchDocument(
        media_id="m1",
        title="hearing",
        transcript="Order in court.",
        segments=[TranscriptSegment("Order in court.", 0, 1500, 0.9, speaker="A")],
        topics=["custody"],
    )
    
    assert await indexer.index(document) is True
    
    data = json.loads(indexer.path_for("m1").read_text(encoding="utf-8"))
    assert data["title"] == "hearing"
    assert data["segments"][0]["speaker"] == "A"
    assert data["topics"] == ["custody"]
    assert not (tmp_path / "index" / "m1.json.tmp").exists()


@pytest.mark.asyncio
async def test_indexer_write_failure(tmp_path):
    blocker = tmp_path / "index"
    blocker.write_text("not a directory")
    indexer = JsonFileIndexer(str(blocker))
    
    with pytest.raises(IndexingError):
        await indexer.index(SearchDocument(media_id="m1", title="t", transcript=""))


@pytest.mark.asyncio
async def test_repository_round_trip(tmp_path):
    repository = JsonMetadataRepository(str(tmp_path))
    
    await repository.save("m1", {"transcript_id": "abc123", "indexed": False})
    
    assert await repository.load("m1") == {"transcript_id": "abc123", "indexed": False}


@pytest.mark.asyncio
async def test_repository_merges_updates(tmp_path):
    repository = JsonMetadataRepository(str(tmp_path))
    
    await repository.save("m1", {"transcript_id": "abc123", "indexed": False})
    await repository.save("m1", {"indexed": True})
    
    assert await repository.load("m1") == {"transcript_id": "abc123", "indexed": True}


@pytest.mark.asyncio
async def test_repository_load_missing(tmp_path):
    assert await JsonMetadataRepository(str(tmp_path)).load("nope") is None


@pytest.mark.asyncio
async def test_repository_corrupt_record(tmp_path):
    (tmp_path / "m1.json").write_text("{broken", encoding="utf-8")
    repository = JsonMetadataRepository(str(tmp_path))
    
    with pytest.raises(PersistenceError):
        await repository.load("m1")
    with pytest.raises(PersistenceError):
        await repository.save("m1", {"indexed": True})
