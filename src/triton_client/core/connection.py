# src/triton_client/core/connection.py
"""
Connection context: one requests.Session plus authentication state,
scoped to a logical unit of work.

The context is not thread-safe. Each thread (or each unit of work)
should acquire its own context and close it when done:

    >>> with api.create_connection_context() as context:
    ...     api.instances.find_by_id(instance_id, context=context)
"""

import logging
import uuid
from typing import Any, Dict, Iterable, Optional, Tuple, Union

import requests
from requests.adapters import HTTPAdapter

from .auth import HttpSignatureAuth, PrivateKey, load_private_key
from .config import CloudApiConfig

logger = logging.getLogger(__name__)

# Заголовок, в котором клиент отправляет id запроса
REQUEST_ID_HEADER = "x-request-id"

Params = Optional[Union[Dict[str, Any], Iterable[Tuple[str, Any]]]]


class ConnectionContext:
    """
    Scoped bundle of a transport session, auth and a correlation id.

    The correlation id is sent as `x-request-id` on every request made
    through this context and attached to every log record it emits.

    Args:
        session: Configured requests.Session (owned by the context)
        base_url: CloudAPI URL without trailing slash
        auth: Request signer, None when auth is disabled
        timeout: (connect, read) timeout for requests.Session.send
        verify_ssl: Verify TLS certificates
        correlation_id: Explicit id, a uuid4 is generated when omitted
    """

    def __init__(
        self,
        session: requests.Session,
        base_url: str,
        auth: Optional[HttpSignatureAuth] = None,
        timeout: Tuple[float, float] = (5, 20),
        verify_ssl: bool = True,
        correlation_id: Optional[str] = None
    ):
        self._session = session
        self.base_url = base_url.rstrip('/')
        self.auth = auth
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self.correlation_id: Optional[str] = correlation_id or str(uuid.uuid4())
        self._closed = False

        if auth is not None:
            session.auth = auth

        logger.debug(
            "Connection context opened",
            extra={"correlation_id": self.correlation_id, "signed": auth is not None}
        )

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def session(self) -> requests.Session:
        """Underlying session. Raises RuntimeError once the context is closed."""
        self._ensure_open()
        return self._session

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("Connection context is closed. Acquire a new one.")

    def log_extra(self, **fields: Any) -> Dict[str, Any]:
        """Extra dict for logging calls, carrying the correlation id."""
        fields["correlation_id"] = self.correlation_id
        return fields

    def prepare(
        self,
        method: str,
        path: str,
        params: Params = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None
    ) -> requests.PreparedRequest:
        """
        Build a signed request for `path` relative to the base url.

        Every request carries `x-request-id` with the context correlation id.
        """
        self._ensure_open()

        request_headers = {REQUEST_ID_HEADER: self.correlation_id}
        if headers:
            request_headers.update(headers)

        request = requests.Request(
            method=method.upper(),
            url=f"{self.base_url}{path}",
            params=params,
            json=json,
            headers=request_headers
        )
        return self._session.prepare_request(request)

    def send(self, request: requests.PreparedRequest) -> requests.Response:
        """Send a prepared request without any retry or error mapping."""
        self._ensure_open()
        return self._session.send(
            request,
            timeout=self.timeout,
            verify=self.verify_ssl,
            allow_redirects=False
        )

    def close(self) -> None:
        """
        Close the session and forget the correlation id.

        Idempotent.
        """
        if self._closed:
            return

        logger.debug("Connection context closed", extra={"correlation_id": self.correlation_id})

        self._closed = True
        self.correlation_id = None
        self._session.close()

    def __enter__(self) -> "ConnectionContext":
        self._ensure_open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"ConnectionContext({self.base_url!r}, {state}, correlation_id={self.correlation_id!r})"


class ConnectionFactory:
    """
    Creates connection contexts from a CloudApiConfig.

    The private key is loaded once, on first use, and shared by every
    context this factory creates.

    Examples:
        >>> factory = ConnectionFactory(config)
        >>> with factory.create_context() as context:
        ...     response = context.send(context.prepare("GET", "/alice/machines"))
    """

    def __init__(self, config: CloudApiConfig):
        self._config = config
        self._private_key: Optional[PrivateKey] = None

    @property
    def config(self) -> CloudApiConfig:
        return self._config

    def _create_session(self) -> requests.Session:
        """Create configured session."""
        session = requests.Session()

        adapter = HTTPAdapter(
            pool_connections=self._config.pool.pool_connections,
            pool_maxsize=self._config.pool.pool_maxsize,
            pool_block=self._config.pool.pool_block,
            max_retries=0  # Ретраи через RetryEngine
        )

        session.mount('http://', adapter)
        session.mount('https://', adapter)

        session.headers['Accept'] = 'application/json'
        if self._config.headers:
            session.headers.update(self._config.headers)

        return session

    def _create_auth(self) -> Optional[HttpSignatureAuth]:
        if not self._config.signing_enabled:
            return None

        self._config.validate()

        if self._private_key is None:
            self._private_key = load_private_key(
                key_content=self._config.key_content,
                key_path=self._config.key_path,
                password=self._config.password
            )

        return HttpSignatureAuth(self._config.account, self._config.key_id, self._private_key)

    def create_context(self, correlation_id: Optional[str] = None) -> ConnectionContext:
        """Acquire a new context. The caller must close it."""
        auth = self._create_auth()
        session = self._create_session()

        return ConnectionContext(
            session=session,
            base_url=self._config.url,
            auth=auth,
            timeout=self._config.timeout.as_tuple(),
            verify_ssl=self._config.verify_ssl,
            correlation_id=correlation_id
        )
