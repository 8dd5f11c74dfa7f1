"""
Persistence collaborators.

The engine only talks to storage through these interfaces:
- StorageAdapter.upload(data, filename, content_type) -> url
- MetadataStore.save_generation_metadata(record)
- DocumentSource.fetch_source_document(document_id) -> SOPDocument

LocalFileStorage and InMemoryMetadataStore are reference implementations
used by scripts and tests; production deployments supply their own.
"""

from __future__ import annotations

import hashlib
import logging
import re
import threading
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import PersistenceError
from .formatter import SOPDocument

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def sanitize_filename(filename: str, default: str = "document.pdf") -> str:
    """Reduce a caller-supplied filename to a safe basename."""
    name = Path(filename or "").name
    name = _UNSAFE_FILENAME_CHARS.sub("_", name).strip("._")
    if not name:
        name = default
    if not name.lower().endswith(".pdf"):
        name = f"{name}.pdf"
    return name


@dataclass
class GenerationRecord:
    """Metadata persisted for every stored document."""
    document_type: str
    filename: str
    file_size: int
    content_hash: str
    generation_time_ms: int
    backend: str
    url: str
    download_token: str
    generated_at: datetime
    document_number: Optional[str] = None
    config_hash: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def hash_content(data: bytes) -> str:
        return hashlib.sha256(data).hexdigest()

    def to_dict(self) -> Dict[str, Any]:
        record = asdict(self)
        record["generated_at"] = self.generated_at.isoformat()
        return record


# =============================================================================
# INTERFACES
# =============================================================================

class StorageAdapter(ABC):

    @abstractmethod
    def upload(self, data: bytes, filename: str, content_type: str = "application/pdf") -> str:
        """Store bytes and return a retrievable URL. Raises PersistenceError."""


class MetadataStore(ABC):

    @abstractmethod
    def save_generation_metadata(self, record: GenerationRecord):
        """Persist a generation record. Raises PersistenceError."""


class DocumentSource(ABC):

    @abstractmethod
    def fetch_source_document(self, document_id: str) -> SOPDocument:
        """Load an SOP by id. Raises PersistenceError when it cannot."""


# =============================================================================
# REFERENCE IMPLEMENTATIONS
# =============================================================================

class LocalFileStorage(StorageAdapter):
    """
    Stores PDFs on the local filesystem.

    Files are written as <timestamp>_<sanitized name> so repeated uploads
    of the same filename never overwrite each other.
    """

    def __init__(self, root: Path):
        self.root = Path(root)
        self.logger = logging.getLogger(f"{__name__}.LocalFileStorage")

    def upload(self, data: bytes, filename: str, content_type: str = "application/pdf") -> str:
        safe_name = sanitize_filename(filename)
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%f")
        path = self.root / f"{stamp}_{safe_name}"
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise PersistenceError(f"Failed to store {safe_name}: {e}", filename=safe_name) from e

        self.logger.info(f"Stored {safe_name} ({len(data)} bytes, {content_type}) at {path}")
        return path.resolve().as_uri()


class InMemoryMetadataStore(MetadataStore):
    """Keeps generation records in memory."""

    def __init__(self):
        self._records: List[GenerationRecord] = []
        self._lock = threading.Lock()

    def save_generation_metadata(self, record: GenerationRecord):
        with self._lock:
            self._records.append(record)

    @property
    def records(self) -> List[GenerationRecord]:
        with self._lock:
            return list(self._records)


class InMemoryDocumentSource(DocumentSource):
    """Serves SOP documents from a dict, keyed by id."""

    def __init__(self, documents: Optional[Dict[str, SOPDocument]] = None):
        self._documents = dict(documents or {})

    def add(self, document_id: str, document: SOPDocument):
        self._documents[document_id] = document

    def fetch_source_document(self, document_id: str) -> SOPDocument:
        try:
            return self._documents[document_id]
        except KeyError:
            raise PersistenceError(f"Source document not found: {document_id}") from None
