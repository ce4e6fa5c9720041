"""
Persistence Layer

RESPONSIBILITY: Durable storage of serialized history blobs
ALLOWED INPUTS: Opaque strings produced by domain.serialization
OUTPUTS: The same strings, or None when nothing is stored

WHAT THIS LAYER MUST NOT DO:
============================
- Interpret or transform the blob
- Touch live state or history
- Raise on I/O failure (save/clear report False instead)
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional
import os
import tempfile

from ..contracts.events import AuditEventType
from ..observability import LogCollector


# =============================================================================
# PERSISTENCE INTERFACE (Dependency Inversion)
# =============================================================================

class PersistenceAdapter:
    """
    Abstract persistence interface.

    Implementations can use different storage systems (memory, file,
    browser storage behind an API) with the same four operations.
    """

    def save(self, blob: str) -> bool:
        """Store blob, replacing any previous one. Returns success."""
        raise NotImplementedError

    def load(self) -> Optional[str]:
        """Return the stored blob, or None."""
        raise NotImplementedError

    def exists(self) -> bool:
        raise NotImplementedError

    def clear(self) -> bool:
        """Remove the stored blob. Returns success."""
        raise NotImplementedError


# =============================================================================
# IN-MEMORY PERSISTENCE (Reference Implementation)
# =============================================================================

class InMemoryPersistence(PersistenceAdapter):
    """Keeps the blob in process memory. Suitable for tests."""

    def __init__(self):
        self._blob: Optional[str] = None

    def save(self, blob: str) -> bool:
        self._blob = blob
        return True

    def load(self) -> Optional[str]:
        return self._blob

    def exists(self) -> bool:
        return self._blob is not None

    def clear(self) -> bool:
        self._blob = None
        return True


# =============================================================================
# FILE PERSISTENCE
# =============================================================================

class FilePersistence(PersistenceAdapter):
    """
    Single JSON file on disk.

    Writes go to a temporary file in the same directory that then replaces
    the target, so a crash mid-write leaves the previous save intact.
    """

    def __init__(self, path: str, audit: Optional[LogCollector] = None):
        self._path = path
        self._audit = audit or LogCollector('storage')

    @property
    def path(self) -> str:
        return self._path

    def save(self, blob: str) -> bool:
        directory = os.path.dirname(os.path.abspath(self._path))
        temp_path = None
        try:
            os.makedirs(directory, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(blob)
            os.replace(temp_path, self._path)
            return True
        except OSError as e:
            if temp_path and os.path.exists(temp_path):
                os.remove(temp_path)
            self._audit.record(
                "save_failed",
                event_type=AuditEventType.PERSISTENCE,
                entity_id=self._path,
                error=str(e),
            )
            return False

    def load(self) -> Optional[str]:
        if not os.path.exists(self._path):
            return None
        with open(self._path, 'r', encoding='utf-8') as f:
            return f.read()

    def exists(self) -> bool:
        return os.path.exists(self._path)

    def clear(self) -> bool:
        try:
            if os.path.exists(self._path):
                os.remove(self._path)
            return True
        except OSError as e:
            self._audit.record(
                "clear_failed",
                event_type=AuditEventType.PERSISTENCE,
                entity_id=self._path,
                error=str(e),
            )
            return False


# =============================================================================
# CONFIGURATION
# =============================================================================

@dataclass
class StorageConfig:
    """Configuration for session persistence."""
    backend_type: str = "memory"  # "memory" or "file"
    storage_path: Optional[str] = None


def create_persistence(
    config: Optional[StorageConfig] = None,
    audit: Optional[LogCollector] = None
) -> PersistenceAdapter:
    """Create persistence adapter based on configuration."""
    config = config or StorageConfig()
    if config.backend_type == "file":
        if not config.storage_path:
            raise ValueError("File persistence requires storage_path")
        return FilePersistence(config.storage_path, audit=audit)
    if config.backend_type != "memory":
        raise ValueError(f"Unknown persistence backend {config.backend_type!r}")
    return InMemoryPersistence()
