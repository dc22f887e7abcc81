"""
Session storage protocol.

Anything with these five methods can hold the session blob: a JSON file,
memory, a keyring entry.
"""
from typing import Protocol, Optional, runtime_checkable
from .models import Session


@runtime_checkable
class SessionStorage(Protocol):
    """Where the serialized Session lives between runs."""

    def load(self) -> Optional[Session]:
        """
        Decode the stored session.

        Returns:
            The Session, or None when nothing is stored

        Raises:
            SessionDecodeError: If the stored blob is corrupt
        """
        ...

    def save(self, session: Session) -> None:
        """Replace the stored blob with session."""
        ...

    def delete(self) -> None:
        ...

    def exists(self) -> bool:
        """True when a blob is stored (readable or not)."""
        ...

    def close(self) -> None:
        ...
