"""iCloud web API module."""
from .config import APIConfig, ProxyConfig, SSLConfig, TimeoutConfig, default_config_dir
from .cookies import CookieStore, PersistentCookieJar
from .transport import AsyncTransport, TransportResponse
from .auth import AuthService, Credentials, SignInResult, AUTH_TYPE_HSA2

__all__ = [
    # Transport
    'AsyncTransport',
    'TransportResponse',
    'CookieStore',
    'PersistentCookieJar',

    # Authentication
    'AuthService',
    'Credentials',
    'SignInResult',
    'AUTH_TYPE_HSA2',

    # Configuration
    'APIConfig',
    'ProxyConfig',
    'SSLConfig',
    'TimeoutConfig',
    'default_config_dir',
]
