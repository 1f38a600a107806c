"""
JSON File Stores

Default SearchIndexer and MetadataRepository writing one JSON document per
media item. Writes go to a temporary file first and are renamed into place
so readers never see a partial document.
"""

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from ingestion.orchestration.errors import IndexingError, PersistenceError
from ingestion.orchestration.models import SearchDocument


logger = logging.getLogger(__name__)


def _write_json(path: Path, data: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with open(tmp_path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False, default=str)
    os.replace(tmp_path, path)


def _read_json(path: Path) -> Dict[str, Any]:
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


class JsonFileIndexer:
    """Writes search documents to ``<index_dir>/<media_id>.json``."""
    
    def __init__(self, index_dir: str):
        self.index_dir = Path(index_dir)
    
    def path_for(self, media_id: str) -> Path:
        return self.index_dir / f"{media_id}.json"
    
    async def index(self, document: SearchDocument) -> bool:
        """Index a document.
        
        Raises:
            IndexingError: If the document cannot be written
        """
        path = self.path_for(document.media_id)
        try:
            await asyncio.to_thread(_write_json, path, document.to_dict())
        except OSError as e:
            raise IndexingError(f"Cannot write index document {path}: {e}") from e
        logger.debug(f"Indexed {document.media_id} -> {path}")
        return True


class JsonMetadataRepository:
    """Persists media metadata to ``<root_dir>/<media_id>.json``."""
    
    def __init__(self, root_dir: str):
        self.root_dir = Path(root_dir)
    
    def path_for(self, media_id: str) -> Path:
        return self.root_dir / f"{media_id}.json"
    
    async def save(self, media_id: str, metadata: Dict[str, Any]) -> bool:
        """Merge ``metadata`` into the stored record.
        
        Raises:
            PersistenceError: If the record cannot be written
        """
        path = self.path_for(media_id)
        
        def merge_and_write():
            record = _read_json(path) if path.exists() else {}
            record.update(metadata)
            _write_json(path, record)
        
        try:
            await asyncio.to_thread(merge_and_write)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Cannot save metadata for {media_id}: {e}") from e
        return True
    
    async def load(self, media_id: str) -> Optional[Dict[str, Any]]:
        """Load a stored record, or None when nothing was saved yet.
        
        Raises:
            PersistenceError: If the record exists but cannot be read
        """
        path = self.path_for(media_id)
        if not path.exists():
            return None
        try:
            return await asyncio.to_thread(_read_json, path)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Cannot load metadata for {media_id}: {e}") from e
