"""
Client configuration.

Endpoints, HTTP session settings and the on-disk locations of the
session blob and the cookie jar.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Dict, Any, Union
import ssl

import aiohttp
from yarl import URL


DEFAULT_USER_AGENT = (
    'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) '
    'AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.0 Safari/605.1.15'
)


def default_config_dir() -> Path:
    """Default directory for session and cookie files (~/.config/nefos)."""
    return Path.home() / ".config" / "nefos"


@dataclass
class ProxyConfig:
    """HTTP(S) proxy, optionally with basic-auth credentials."""
    url: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None

    def to_aiohttp_proxy(self) -> Optional[str]:
        """Proxy URL as passed to aiohttp, credentials included."""
        if not self.url:
            return None
        proxy = URL(self.url)
        if self.username and self.password:
            proxy = proxy.with_user(self.username).with_password(self.password)
        return str(proxy)


@dataclass
class SSLConfig:
    """TLS verification settings."""
    verify: bool = True
    ca_file: Optional[str] = None
    check_hostname: bool = True

    def create_ssl_context(self) -> Union[ssl.SSLContext, bool]:
        """SSL context for the connector, or False to skip verification."""
        if not self.verify:
            return False

        context = ssl.create_default_context(cafile=self.ca_file)
        context.check_hostname = self.check_hostname
        return context


@dataclass
class TimeoutConfig:
    """Per-request timeouts in seconds."""
    total: float = 60.0
    connect: float = 15.0
    sock_read: float = 30.0

    def to_aiohttp_timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(total=self.total, connect=self.connect, sock_read=self.sock_read)


@dataclass
class APIConfig:
    """
    Complete client configuration.

    The config directory is an explicit value: the transport and the
    session storage read their file paths from here rather than from
    any process-wide lookup.
    """
    auth_endpoint: str = 'https://idmsa.apple.com/appleauth/auth'
    home_endpoint: str = 'https://www.icloud.com'
    setup_endpoint: str = 'https://setup.icloud.com/setup/ws/1'

    config_dir: Path = field(default_factory=default_config_dir)
    cookie_filename: str = 'cookies.json'
    session_filename: str = 'session.json'

    user_agent: str = DEFAULT_USER_AGENT
    extra_headers: Dict[str, str] = field(default_factory=dict)

    proxy: Optional[ProxyConfig] = None
    ssl: SSLConfig = field(default_factory=SSLConfig)
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)

    # Connection pool
    limit_per_host: int = 4
    limit: int = 10

    def __post_init__(self):
        self.config_dir = Path(self.config_dir).expanduser()

    @classmethod
    def default(cls) -> 'APIConfig':
        return cls()

    @classmethod
    def in_directory(cls, config_dir: Union[str, Path], **kwargs) -> 'APIConfig':
        """Configuration storing its files under config_dir."""
        return cls(config_dir=Path(config_dir), **kwargs)

    @classmethod
    def with_proxy(cls, proxy_url: str, **kwargs) -> 'APIConfig':
        """Configuration sending every request through proxy_url."""
        return cls(proxy=ProxyConfig(url=proxy_url), **kwargs)

    @classmethod
    def insecure(cls, **kwargs) -> 'APIConfig':
        """Configuration with TLS verification disabled (debugging proxies)."""
        return cls(ssl=SSLConfig(verify=False, check_hostname=False), **kwargs)

    @property
    def cookie_file(self) -> Path:
        """Path of the persisted cookie jar."""
        return self.config_dir / self.cookie_filename

    @property
    def session_file(self) -> Path:
        """Path of the persisted session blob."""
        return self.config_dir / self.session_filename

    def get_default_headers(self) -> Dict[str, str]:
        """Headers sent with every request."""
        headers = {
            'Origin': self.home_endpoint,
            'Referer': f"{self.home_endpoint}/",
            'User-Agent': self.user_agent,
        }
        headers.update(self.extra_headers)
        return headers

    def get_connector_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for aiohttp.TCPConnector."""
        return {
            'limit': self.limit,
            'limit_per_host': self.limit_per_host,
            'ssl': self.ssl.create_ssl_context(),
        }

    def get_session_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for aiohttp.ClientSession."""
        return {
            'headers': self.get_default_headers(),
            'timeout': self.timeout.to_aiohttp_timeout(),
        }
