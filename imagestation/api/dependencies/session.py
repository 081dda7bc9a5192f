"""
In-memory result storage backing the download action.

Processed images (compressed JPEGs, background-free PNGs) are kept as bytes.
Generated images are kept as their vendor URL and fetched on first download.
"""

import logging
import uuid
from typing import Any, Dict, Optional
from datetime import datetime, timedelta, timezone
import threading
from dataclasses import dataclass, field

from imagestation.models.manager import ModelManager

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class StoredResult:
    """One processed image awaiting download."""
    result_id: str
    filename: str
    media_type: str
    created_at: datetime
    last_accessed: datetime
    data: Optional[bytes] = None
    source_url: Optional[str] = None  # set for generated images until fetched
    metadata: Dict[str, Any] = field(default_factory=dict)

class ResultStore:
    """
    Thread-safe in-memory result storage.

    Results are scoped to the running process and expire after a fixed
    lifetime measured from creation.
    """

    def __init__(self, ttl_minutes: int = 60):
        self._results: Dict[str, StoredResult] = {}
        self._lock = threading.Lock()
        self.ttl = timedelta(minutes=ttl_minutes)

    def save(
        self,
        filename: str,
        media_type: str,
        data: Optional[bytes] = None,
        source_url: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> str:
        """Store a result and return its ID. Exactly one of data/source_url is required."""
        if (data is None) == (source_url is None):
            raise ValueError("A stored result needs either data or a source_url")

        result_id = str(uuid.uuid4())
        now = _utcnow()
        result = StoredResult(
            result_id=result_id,
            filename=filename,
            media_type=media_type,
            created_at=now,
            last_accessed=now,
            data=data,
            source_url=source_url,
            metadata=metadata or {}
        )

        with self._lock:
            self._cleanup_expired()
            self._results[result_id] = result

        return result_id

    def get(self, result_id: str) -> Optional[StoredResult]:
        with self._lock:
            result = self._results.get(result_id)
            if result is None:
                return None
            if _utcnow() - result.created_at > self.ttl:
                del self._results[result_id]
                return None
            result.last_accessed = _utcnow()
            return result

    def attach_data(self, result_id: str, data: bytes) -> None:
        """Cache downloaded bytes on a URL-backed result."""
        with self._lock:
            result = self._results.get(result_id)
            if result is not None:
                result.data = data

    def _cleanup_expired(self):
        """Remove expired results (called with lock held)."""
        now = _utcnow()
        expired_ids = [
            result_id for result_id, result in self._results.items()
            if now - result.created_at > self.ttl
        ]
        for result_id in expired_ids:
            del self._results[result_id]

        if expired_ids:
            logger.info(f"Cleaned up {len(expired_ids)} expired results")

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "stored_results": len(self._results),
                "ttl_minutes": self.ttl.total_seconds() / 60,
                "oldest_result_age": (
                    max(
                        (_utcnow() - result.created_at).total_seconds()
                        for result in self._results.values()
                    ) if self._results else 0
                )
            }

# Global result store instance, resized from config at startup
result_store = ResultStore()

# FastAPI dependency functions
def get_result_store() -> ResultStore:
    return result_store

def get_model_manager() -> ModelManager:
    """FastAPI dependency to get the model manager from app state."""
    from ..main import app_state
    return app_state["model_manager"]
