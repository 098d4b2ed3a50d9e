"""
API configuration module.

Provides comprehensive configuration for the FlowKore client.
Open for extension through custom configurations.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Dict, Any, Union
import ssl


@dataclass
class ProxyConfig:
    """
    Proxy configuration.

    Supports HTTP and HTTPS proxies.
    """
    url: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None

    def to_aiohttp_proxy(self) -> Optional[str]:
        """Convert to aiohttp proxy format."""
        if not self.url:
            return None

        if self.username and self.password:
            if '://' in self.url:
                protocol, rest = self.url.split('://', 1)
                return f"{protocol}://{self.username}:{self.password}@{rest}"

        return self.url


@dataclass
class SSLConfig:
    """
    SSL/TLS configuration.

    Allows customization of SSL behavior for security requirements.
    """
    verify: bool = True
    cert_file: Optional[str] = None
    key_file: Optional[str] = None
    ca_file: Optional[str] = None
    check_hostname: bool = True

    def create_ssl_context(self) -> Union[ssl.SSLContext, bool]:
        """Create SSL context from configuration."""
        if not self.verify:
            return False

        context = ssl.create_default_context()

        if self.ca_file:
            context.load_verify_locations(self.ca_file)

        if self.cert_file:
            context.load_cert_chain(
                self.cert_file,
                keyfile=self.key_file
            )

        context.check_hostname = self.check_hostname

        return context


@dataclass
class TimeoutConfig:
    """
    Timeout configuration.

    Applies to plain requests only; event streams are long-lived and
    get no total/read timeout.
    """
    total: float = 60.0
    connect: float = 30.0
    sock_read: float = 30.0
    sock_connect: float = 30.0

    def to_aiohttp_timeout(self):
        """Convert to aiohttp ClientTimeout."""
        import aiohttp
        return aiohttp.ClientTimeout(
            total=self.total,
            connect=self.connect,
            sock_read=self.sock_read,
            sock_connect=self.sock_connect
        )

    def to_stream_timeout(self):
        """ClientTimeout for event streams (connect limits only)."""
        import aiohttp
        return aiohttp.ClientTimeout(
            total=None,
            connect=self.connect,
            sock_read=None,
            sock_connect=self.sock_connect
        )


@dataclass
class AuthConfig:
    """
    Session lifecycle configuration.

    Attributes:
        storage_key: Key under which the session record is persisted
        storage_path: SQLite file for persistent storage (None = in-memory)
        persist_session: Write the session through to storage
        auto_refresh_token: Renew the access token before it expires
        refresh_margin: Seconds before expiry at which renewal fires
    """
    storage_key: str = 'flowkore.auth.session'
    storage_path: Optional[Union[str, Path]] = None
    persist_session: bool = True
    auto_refresh_token: bool = True
    refresh_margin: float = 60.0


@dataclass
class RealtimeConfig:
    """
    Realtime channel configuration.

    Attributes:
        max_reconnect_attempts: Reconnects before a channel gives up (CLOSED)
        reconnect_base_delay: Delay in seconds before the first reconnect
        exponential_base: Growth factor between consecutive delays
        reuse_channels: Return the existing channel for a known name
        enforce_filters: Apply column filters to payloads client-side
    """
    max_reconnect_attempts: int = 10
    reconnect_base_delay: float = 1.0
    exponential_base: float = 2.0
    reuse_channels: bool = True
    enforce_filters: bool = True


@dataclass
class APIConfig:
    """
    Complete client configuration.

    Centralizes all configuration options for the FlowKore client.
    """
    base_url: str = 'http://localhost:8090'

    user_agent: str = 'flowkore-py/1.0.0'

    # Sub-configurations
    proxy: Optional[ProxyConfig] = None
    ssl: SSLConfig = field(default_factory=SSLConfig)
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    realtime: RealtimeConfig = field(default_factory=RealtimeConfig)

    extra_headers: Dict[str, str] = field(default_factory=dict)

    log_level: int = 20  # logging.INFO

    # Connection pool settings
    limit_per_host: int = 10
    limit: int = 100

    def __post_init__(self):
        self.base_url = self.base_url.rstrip('/')

    @classmethod
    def default(cls) -> 'APIConfig':
        """Create default configuration."""
        return cls()

    @classmethod
    def with_proxy(cls, proxy_url: str, **kwargs) -> 'APIConfig':
        """Create configuration with proxy."""
        return cls(
            proxy=ProxyConfig(url=proxy_url),
            **kwargs
        )

    @classmethod
    def insecure(cls, **kwargs) -> 'APIConfig':
        """Create configuration with SSL verification disabled."""
        return cls(
            ssl=SSLConfig(verify=False, check_hostname=False),
            **kwargs
        )

    def get_connector_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp TCPConnector."""
        return {
            'limit': self.limit,
            'limit_per_host': self.limit_per_host,
            'ssl': self.ssl.create_ssl_context(),
        }

    def get_session_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp ClientSession."""
        headers = {
            'User-Agent': self.user_agent,
            **self.extra_headers
        }

        return {
            'headers': headers,
            'timeout': self.timeout.to_aiohttp_timeout(),
        }
