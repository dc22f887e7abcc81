"""
nefos - Async Python client for the iCloud web authentication protocol.

Usage:
    >>> import nefos
    >>>
    >>> state = await nefos.sign_in(apple_id, password)
    >>> if isinstance(state, nefos.AwaitingSecondFactor):
    ...     icloud = await state.submit_code(code)
    ... else:
    ...     icloud = state.service
    >>> blob = icloud.serialize_session()
    >>> await icloud.save_cookies()
    >>>
    >>> # later
    >>> icloud = await nefos.resume(blob)
"""
import logging
from .auth import (
    AuthState,
    Authenticated,
    AwaitingSecondFactor,
    sign_in,
    resume,
    resume_session,
    resume_from_file
)
from .client import ICloudClient
from .service import ICloudService

# Configuration
from .core.api import (
    APIConfig,
    ProxyConfig,
    SSLConfig,
    TimeoutConfig,
    AsyncTransport,
    AuthService,
    CookieStore
)

# Session management
from .core.session import (
    Session,
    SessionStorage,
    FileSession,
    MemorySession
)

from .core.account import AccountProfile, PersonalInfo, WebService

from .core.exceptions import (
    NefosException,
    TransportError,
    ProtocolError,
    AccountProfileError,
    SessionDecodeError,
    CookieStoreError,
    AuthenticationError,
    SecondFactorRequiredError,
    SessionExpiredError,
    ServiceError
)

__version__ = '0.1.0'


def setup_logging(level=logging.INFO):
    """
    Configure logging for nefos modules.

    Args:
        level: Logging level (default: logging.INFO)
    """
    loggers = [
        'nefos',
        'nefos.auth',
        'nefos.client',
        'nefos.service',
        'nefos.transport',
        'nefos.cookies',
        'nefos.session',
        'nefos.calendar',
    ]

    for logger_name in loggers:
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)
        logger.propagate = True


__all__ = [
    'sign_in',
    'resume',
    'resume_session',
    'resume_from_file',
    'AuthState',
    'Authenticated',
    'AwaitingSecondFactor',
    'ICloudClient',
    'ICloudService',
    'AccountProfile',
    'PersonalInfo',
    'WebService',
    'Session',
    'SessionStorage',
    'FileSession',
    'MemorySession',
    'APIConfig',
    'ProxyConfig',
    'SSLConfig',
    'TimeoutConfig',
    'AsyncTransport',
    'AuthService',
    'CookieStore',
    'NefosException',
    'TransportError',
    'ProtocolError',
    'AccountProfileError',
    'SessionDecodeError',
    'CookieStoreError',
    'AuthenticationError',
    'SecondFactorRequiredError',
    'SessionExpiredError',
    'ServiceError',
    'setup_logging',
]
