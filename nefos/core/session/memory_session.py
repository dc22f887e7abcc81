"""
In-memory session storage implementation.

Provides non-persistent session storage for testing and temporary use.
"""
from typing import Optional

from .protocols import SessionStorage
from .models import Session


class MemorySession(SessionStorage):
    """
    In-memory session storage.

    Keeps the serialized blob rather than the object, so loading goes
    through the same decoding as a file.

    Example:
        >>> storage = MemorySession()
        >>> storage.save(session)
        >>> loaded = storage.load()
    """

    def __init__(self):
        """Initialize memory session storage."""
        self._blob: Optional[str] = None

    def load(self) -> Optional[Session]:
        """Load session from memory."""
        if self._blob is None:
            return None
        return Session.from_json(self._blob)

    def save(self, session: Session) -> None:
        """Save session to memory."""
        self._blob = session.to_json()

    def delete(self) -> None:
        """Delete session from memory."""
        self._blob = None

    def exists(self) -> bool:
        return self._blob is not None

    def close(self) -> None:
        """Close storage (no-op for memory storage)."""
        pass

    def __enter__(self) -> 'MemorySession':
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
