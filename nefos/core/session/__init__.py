"""
Session management module.

Provides the session token model and its persistent storage.
"""
from .protocols import SessionStorage
from .models import Session, new_client_id
from .file_session import FileSession
from .memory_session import MemorySession

__all__ = [
    'SessionStorage',
    'Session',
    'new_client_id',
    'FileSession',
    'MemorySession',
]
