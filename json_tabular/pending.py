"""In-memory store for conversions waiting on payment.

A pending conversion keeps the raw input and requested format under a
random session id so the conversion can be completed once the session is
paid. Entries expire after ``ttl_seconds``. The store is process-local and
guarded by a lock so request handlers running in a thread pool can share it.
"""

from __future__ import annotations

import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Set

from .converter import OutputFormat


@dataclass(frozen=True)
class PendingConversion:
    """A stored conversion request.

    Attributes
    ----------
    session_id : str
        Random identifier handed back to the client.
    json_input : str
        Raw JSON text, stored unparsed.
    output_format : OutputFormat
        Requested output format.
    table_name : str
        Table name for SQL output.
    created_at : float
        Clock reading when the entry was saved.
    """

    session_id: str
    json_input: str
    output_format: OutputFormat
    table_name: str = "converted_data"
    created_at: float = field(default_factory=time.monotonic)


class PendingConversionStore:
    """Thread-safe store of pending conversions and paid session ids."""

    def __init__(self, ttl_seconds: int = 3600, clock: Callable[[], float] = time.monotonic) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._pending: Dict[str, PendingConversion] = {}
        self._paid: Set[str] = set()

    def _is_expired(self, entry: PendingConversion, now: float) -> bool:
        return now - entry.created_at > self.ttl_seconds

    def _evict_expired(self) -> None:
        # Caller holds the lock.
        now = self._clock()
        expired = [key for key, entry in self._pending.items() if self._is_expired(entry, now)]
        for key in expired:
            del self._pending[key]
            self._paid.discard(key)

    def save(
        self,
        json_input: str,
        output_format: OutputFormat | str,
        table_name: str = "converted_data",
    ) -> PendingConversion:
        """Store a conversion under a new session id, dropping expired entries first."""
        entry = PendingConversion(
            session_id=str(uuid.uuid4()),
            json_input=json_input,
            output_format=OutputFormat.parse(output_format),
            table_name=table_name or "converted_data",
            created_at=self._clock(),
        )
        with self._lock:
            self._evict_expired()
            self._pending[entry.session_id] = entry
        return entry

    def get(self, session_id: str) -> Optional[PendingConversion]:
        """Return the entry, or None when unknown or expired (expired entries are evicted)."""
        with self._lock:
            entry = self._pending.get(session_id)
            if entry is None:
                return None
            if self._is_expired(entry, self._clock()):
                del self._pending[session_id]
                self._paid.discard(session_id)
                return None
            return entry

    def delete(self, session_id: str) -> bool:
        with self._lock:
            self._paid.discard(session_id)
            return self._pending.pop(session_id, None) is not None

    def mark_paid(self, session_id: str) -> bool:
        """Mark a stored session as paid; False if it is unknown or expired."""
        if self.get(session_id) is None:
            return False
        with self._lock:
            self._paid.add(session_id)
        return True

    def is_paid(self, session_id: Optional[str]) -> bool:
        if not session_id:
            return False
        with self._lock:
            return session_id in self._paid

    def __len__(self) -> int:
        with self._lock:
            self._evict_expired()
            return len(self._pending)
