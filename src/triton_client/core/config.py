"""
Система конфигурации для CloudAPI клиента.

Все конфиги immutable (frozen dataclasses) для потокобезопасности.
"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Optional, Tuple, Dict, Set, Union, TYPE_CHECKING, Mapping

if TYPE_CHECKING:
    from .logging import LoggingConfig

DEFAULT_CLOUDAPI_URL = "https://us-east-1.api.joyent.com"
DEFAULT_HTTP_TIMEOUT = 20
DEFAULT_HTTP_RETRIES = 3

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# TIMEOUT CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class TimeoutConfig:
    """
    Конфигурация таймаутов.

    Args:
        connect: Таймаут подключения (сек)
        read: Таймаут чтения данных (сек)

    Examples:
        >>> TimeoutConfig(connect=5, read=30)
    """
    connect: float = 5
    read: float = DEFAULT_HTTP_TIMEOUT

    def __post_init__(self):
        """Валидация."""
        if self.connect <= 0:
            raise ValueError("connect timeout must be positive")
        if self.read <= 0:
            raise ValueError("read timeout must be positive")

    def as_tuple(self) -> Tuple[float, float]:
        """Вернуть как (connect, read) для requests."""
        return (self.connect, self.read)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# RETRY CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class RetryConfig:
    """
    Конфигурация retry стратегии.

    Args:
        max_retries: Количество повторов (не включая первую попытку)
        idempotent_only: Ретраить только идемпотентные методы
        idempotent_methods: Какие HTTP методы считаются идемпотентными
        backoff_base: Базовая задержка (сек), 0 - без задержки
        backoff_factor: Множитель для exponential backoff
        backoff_max: Максимальная задержка (сек)
        backoff_jitter: Добавлять случайность (против thundering herd)

    Examples:
        >>> RetryConfig(max_retries=3)
        >>> RetryConfig(max_retries=5, backoff_base=0.5, backoff_jitter=True)
    """
    max_retries: int = DEFAULT_HTTP_RETRIES
    idempotent_only: bool = False

    idempotent_methods: Set[str] = field(
        default_factory=lambda: {'GET', 'HEAD', 'PUT', 'DELETE', 'OPTIONS', 'TRACE'}
    )

    backoff_base: float = 0.0
    backoff_factor: float = 2.0
    backoff_max: float = 10.0
    backoff_jitter: bool = False

    def __post_init__(self):
        """Валидация."""
        if self.max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        if self.backoff_base < 0:
            raise ValueError("backoff_base must be non-negative")
        if self.backoff_factor < 1:
            raise ValueError("backoff_factor must be >= 1")
        if self.backoff_max < 0:
            raise ValueError("backoff_max must be non-negative")

    @property
    def max_attempts(self) -> int:
        """Общее количество попыток (включая первую)."""
        return self.max_retries + 1

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# CONNECTION POOL CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class ConnectionPoolConfig:
    """
    Конфигурация connection pool.

    Args:
        pool_connections: Количество connection pools для кеширования
        pool_maxsize: Максимум соединений в пуле
        pool_block: Блокировать при достижении лимита
    """
    pool_connections: int = 10
    pool_maxsize: int = 10
    pool_block: bool = False

    def __post_init__(self):
        """Валидация."""
        if self.pool_connections <= 0:
            raise ValueError("pool_connections must be positive")
        if self.pool_maxsize <= 0:
            raise ValueError("pool_maxsize must be positive")

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# MAIN CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class CloudApiConfig:
    """
    Главная конфигурация CloudAPI клиента.

    Args:
        url: URL CloudAPI
        account: Имя аккаунта (первый сегмент всех путей)
        key_id: Fingerprint SSH ключа для HTTP Signature
        key_path: Путь к приватному ключу
        key_content: Содержимое приватного ключа (PEM), приоритетнее key_path
        password: Пароль к приватному ключу
        no_auth: Не подписывать запросы
        verify_ssl: Проверять SSL сертификаты
        headers: Дефолтные заголовки
        timeout: Конфигурация таймаутов
        retry: Конфигурация retry
        pool: Конфигурация connection pool
        logging: Конфигурация логирования (None = только стандартный logging)

    Examples:
        >>> config = CloudApiConfig(account="alice", no_auth=True)
        >>> config = CloudApiConfig.create(account="alice", key_id="aa:bb", max_retries=5)
    """
    url: str = DEFAULT_CLOUDAPI_URL
    account: Optional[str] = None
    key_id: Optional[str] = None
    key_path: Optional[str] = None
    key_content: Optional[str] = field(default=None, repr=False)
    password: Optional[str] = field(default=None, repr=False)
    no_auth: bool = False
    verify_ssl: bool = True
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    pool: ConnectionPoolConfig = field(default_factory=ConnectionPoolConfig)
    logging: Optional['LoggingConfig'] = None

    def __post_init__(self):
        """Normalize url and freeze mutable dicts."""
        if isinstance(self.headers, dict):
            object.__setattr__(self, 'headers', MappingProxyType(dict(self.headers)))

        if not self.url:
            raise ValueError("url must be present")

        normalized = self.url.rstrip('/')
        if normalized != self.url:
            object.__setattr__(self, 'url', normalized)

    @property
    def signing_enabled(self) -> bool:
        """Подписывать ли запросы HTTP Signature."""
        return not self.no_auth

    @classmethod
    def create(
        cls,
        url: str = DEFAULT_CLOUDAPI_URL,
        account: Optional[str] = None,
        timeout: Union[float, Tuple[float, float], TimeoutConfig] = DEFAULT_HTTP_TIMEOUT,
        max_retries: int = DEFAULT_HTTP_RETRIES,
        headers: Optional[Dict[str, str]] = None,
        logging: Optional['LoggingConfig'] = None,
        **kwargs
    ) -> 'CloudApiConfig':
        """
        Удобный конструктор конфигурации.

        Args:
            url: URL CloudAPI
            account: Имя аккаунта
            timeout: Таймаут (число, (connect, read) или TimeoutConfig)
            max_retries: Количество retry попыток
            headers: Заголовки
            logging: Конфигурация логирования
            **kwargs: Остальные поля CloudApiConfig

        Returns:
            CloudApiConfig instance
        """
        return cls(
            url=url,
            account=account,
            headers=headers or {},
            timeout=_to_timeout(timeout),
            retry=RetryConfig(max_retries=max_retries),
            logging=logging,
            **kwargs
        )

    def with_timeout(self, timeout: Union[float, Tuple[float, float], TimeoutConfig]) -> 'CloudApiConfig':
        """Создать новый конфиг с изменённым timeout."""
        return replace(self, timeout=_to_timeout(timeout))

    def with_retries(self, max_retries: int) -> 'CloudApiConfig':
        """Создать новый конфиг с изменённым количеством повторов."""
        return replace(self, retry=replace(self.retry, max_retries=max_retries))

    def validate(self) -> None:
        """
        Проверить, что конфигурации достаточно для обращения к API.

        Raises:
            ConfigurationError: если не хватает обязательных значений
        """
        from .exceptions import ConfigurationError

        if not self.account:
            raise ConfigurationError("Account must be configured")
        if self.signing_enabled:
            if not self.key_id:
                raise ConfigurationError("Key id must be configured when auth is enabled")
            if not self.key_content and not self.key_path:
                raise ConfigurationError(
                    "Key path or key content must be configured when auth is enabled"
                )


def _to_timeout(timeout: Union[float, Tuple[float, float], TimeoutConfig]) -> TimeoutConfig:
    if isinstance(timeout, TimeoutConfig):
        return timeout
    if isinstance(timeout, tuple):
        return TimeoutConfig(connect=timeout[0], read=timeout[1])
    return TimeoutConfig(read=timeout)
