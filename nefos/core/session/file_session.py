"""
JSON file session storage implementation.

Stores the session blob in a single JSON file, by default
<config_dir>/session.json.
"""
import os
from pathlib import Path
from typing import Optional, Union

from .protocols import SessionStorage
from .models import Session
from ..logging import get_logger


class FileSession(SessionStorage):
    """
    File-based session storage.

    The file is written with owner-only permissions because it holds the
    session token.

    Example:
        >>> storage = FileSession(config.session_file)
        >>> storage.save(session)
        >>> loaded = storage.load()
    """

    def __init__(self, path: Union[str, Path]):
        """
        Initialize file session storage.

        Args:
            path: Path of the JSON file
        """
        self._path = Path(path)
        self._logger = get_logger('nefos.session')

    @property
    def path(self) -> Path:
        """Get session file path."""
        return self._path

    def read_blob(self) -> Optional[str]:
        """Read the raw blob, or None if no file exists."""
        if not self.exists():
            return None
        return self._path.read_text(encoding='utf-8')

    def load(self) -> Optional[Session]:
        """
        Load session from file.

        Returns:
            Session if the file exists, None otherwise

        Raises:
            SessionDecodeError: If the file is corrupt or partial
        """
        blob = self.read_blob()
        if blob is None:
            return None
        return Session.from_json(blob)

    def save(self, session: Session) -> None:
        """Overwrite the file with the session blob."""
        self._path.parent.mkdir(parents=True, exist_ok=True)

        fd = os.open(self._path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(session.to_json())

        self._logger.debug(f"Session saved to {self._path}")

    def delete(self) -> None:
        """Delete the session file."""
        if self.exists():
            self._path.unlink()

    def exists(self) -> bool:
        return self._path.is_file()

    def close(self) -> None:
        """Close storage (nothing is held open)."""
        pass

    def __enter__(self) -> 'FileSession':
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
