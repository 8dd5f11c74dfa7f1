"""
Resolved-template cache.

Resolving a template merges per-request overrides onto a default; requests
that repeat the same document type and overrides reuse the merged result.
Templates are immutable, so entries never expire; they are only evicted
when the cache is full or dropped when a template is registered.
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
from collections import OrderedDict
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

if TYPE_CHECKING:
    from ..renderers.templates import DocumentTemplate

logger = logging.getLogger(__name__)


def template_key(document_type: str, overrides: Optional[Dict[str, Any]] = None) -> str:
    """Stable key for a document type plus overrides; dict order does not matter."""
    content = json.dumps({"type": document_type, "overrides": overrides or {}}, sort_keys=True, default=str)
    return f"tpl:{hashlib.sha256(content.encode()).hexdigest()[:32]}"


class TemplateCache:
    """Bounded, thread-safe LRU of resolved DocumentTemplates."""

    def __init__(self, max_entries: int = 256):
        if max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {max_entries}")
        self.max_entries = max_entries
        self._entries: OrderedDict[str, DocumentTemplate] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def get_or_resolve(
        self,
        document_type: str,
        overrides: Optional[Dict[str, Any]],
        resolve: Callable[[], DocumentTemplate],
    ) -> DocumentTemplate:
        """
        Return the cached template, resolving and storing it on a miss.

        resolve() runs outside the lock; two threads missing on the same
        key both resolve, and the later one wins. Both results are equal.
        """
        key = template_key(document_type, overrides)
        with self._lock:
            template = self._entries.get(key)
            if template is not None:
                self._entries.move_to_end(key)
                self.hits += 1
                return template
            self.misses += 1

        template = resolve()

        with self._lock:
            self._entries[key] = template
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                self.evictions += 1
                logger.debug(f"Evicted template {evicted}")
        return template

    def invalidate(self):
        """Drop every resolved template. Counters are kept."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            lookups = self.hits + self.misses
            return {
                "size": len(self._entries),
                "max_size": self.max_entries,
                "hits": self.hits,
                "misses": self.misses,
                "evictions": self.evictions,
                "hit_rate": round(self.hits / lookups, 4) if lookups else 0.0,
            }
