"""
Иерархия исключений CloudAPI клиента.

Классификация:
- TransportError (retryable=True) - сетевые ошибки, можно ретраить
- ResponseError, DecodeError, ConsistencyError (fatal=True) - НЕ ретраить никогда

Каждое исключение несёт ErrorKind и упорядоченный ErrorContext,
поэтому вызывающий код может разбирать ошибку без isinstance.
"""

import socket
import ssl
from enum import Enum
from typing import Any, Iterator, List, Optional, Tuple

import requests
from urllib3.exceptions import NameResolutionError, NewConnectionError

from ..utils.sanitizer import sanitize_headers

# Плейсхолдер для request id, когда заголовок не был отправлен
REQUEST_ID_NOT_SET = "[not set]"

# Ошибки requests, не связанные с вводом-выводом: повтор их не исправит
INVALID_REQUEST_ERRORS = (
    requests.exceptions.URLRequired,
    requests.exceptions.MissingSchema,
    requests.exceptions.InvalidSchema,
    requests.exceptions.InvalidURL,
    requests.exceptions.InvalidHeader,
    requests.exceptions.InvalidJSONError,
)


class ErrorKind(str, Enum):
    """Вид ошибки."""
    TRANSPORT = "transport"
    PROTOCOL = "protocol"
    DECODE = "decode"
    CONSISTENCY = "consistency"


class FailureCause(str, Enum):
    """Причина транспортной ошибки (значение контекста failureCause)."""
    INTERRUPTED = "interrupted"
    UNKNOWN_HOST = "unknown_host"
    CONNECTION_REFUSED = "connection_refused"
    TLS = "tls"
    CONNECTION_RESET = "connection_reset"
    INVALID_REQUEST = "invalid_request"
    OTHER = "other"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ERROR CONTEXT
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class ErrorContext:
    """
    Упорядоченный набор пар label/value, прикреплённый к исключению.

    Одна метка может встречаться несколько раз (add_value),
    set_value заменяет все значения метки одним.

    Examples:
        >>> ctx = ErrorContext()
        >>> ctx.add_value("requestId", "abc")
        >>> ctx.get_value("requestId")
        'abc'
    """

    def __init__(self):
        self._entries: List[Tuple[str, Any]] = []

    def add_value(self, label: str, value: Any) -> "ErrorContext":
        self._entries.append((label, value))
        return self

    def set_value(self, label: str, value: Any) -> "ErrorContext":
        """Заменить все значения метки одним (новое значение встаёт в конец)."""
        self._entries = [(k, v) for k, v in self._entries if k != label]
        self._entries.append((label, value))
        return self

    def get_value(self, label: str, default: Any = None) -> Any:
        """Первое значение метки."""
        for key, value in self._entries:
            if key == label:
                return value
        return default

    def get_values(self, label: str) -> List[Any]:
        return [value for key, value in self._entries if key == label]

    @property
    def labels(self) -> List[str]:
        seen: List[str] = []
        for key, _ in self._entries:
            if key not in seen:
                seen.append(key)
        return seen

    def items(self) -> List[Tuple[str, Any]]:
        return list(self._entries)

    def __contains__(self, label: str) -> bool:
        return any(key == label for key, _ in self._entries)

    def __iter__(self) -> Iterator[Tuple[str, Any]]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def format(self) -> str:
        """
        Отформатировать контекст для сообщения об ошибке.

        Формат:
            Exception Context:
                [1:requestID=...]
                [2:statusCode=404]
            ---------------------------------
        """
        if not self._entries:
            return ""

        lines = ["Exception Context:"]
        for index, (label, value) in enumerate(self._entries, start=1):
            lines.append(f"\t[{index}:{label}={value}]")
        lines.append("---------------------------------")
        return "\n".join(lines)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# BASE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class CloudApiError(Exception):
    """
    Базовое исключение CloudAPI клиента.

    Args:
        message: Сообщение об ошибке
        kind: Вид ошибки (ErrorKind)
        cause: Исходное исключение (опционально)
    """

    retryable: bool = False
    fatal: bool = False
    default_kind: ErrorKind = ErrorKind.TRANSPORT

    def __init__(
        self,
        message: str,
        kind: Optional[ErrorKind] = None,
        cause: Optional[BaseException] = None
    ):
        self.message = message
        self.kind = kind or self.default_kind
        self.cause = cause
        self.context = ErrorContext()
        super().__init__(message)

    # Делегаты к контексту - короче писать в местах вызова
    def add_context_value(self, label: str, value: Any) -> "CloudApiError":
        self.context.add_value(label, value)
        return self

    def set_context_value(self, label: str, value: Any) -> "CloudApiError":
        self.context.set_value(label, value)
        return self

    def get_context_value(self, label: str, default: Any = None) -> Any:
        return self.context.get_value(label, default)

    @property
    def request_id(self) -> str:
        """
        Request id из контекста или плейсхолдер.

        Заголовок request-id ответа сервера (requestID) важнее
        исходящего x-request-id (requestId).
        """
        return (
            self.context.get_value("requestID")
            or self.context.get_value("requestId")
            or REQUEST_ID_NOT_SET
        )

    def __str__(self) -> str:
        formatted = self.context.format()
        if not formatted:
            return self.message
        return f"{self.message}\n{formatted}"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ВРЕМЕННЫЕ ОШИБКИ (retryable=True)
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TransportError(CloudApiError):
    """
    Ошибка ввода-вывода: отказ в соединении, таймаут, сброс соединения.

    Ретраится по RetryEngine, кроме причин из NON_RETRIABLE_CAUSES.

    Args:
        message: Сообщение
        url: URL запроса
        failure_cause: Причина (FailureCause)
        cause: Исходное исключение
    """
    retryable = True
    default_kind = ErrorKind.TRANSPORT

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        failure_cause: FailureCause = FailureCause.OTHER,
        cause: Optional[BaseException] = None
    ):
        self.url = url
        self.failure_cause = failure_cause

        full_message = message
        if url:
            full_message += f" (url: {url})"

        super().__init__(full_message, cause=cause)
        self.add_context_value("failureCause", failure_cause.value)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ФАТАЛЬНЫЕ ОШИБКИ (fatal=True)
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class ResponseError(CloudApiError):
    """
    Сервер вернул ошибку (структурированную или нет).

    Args:
        message: Сообщение (декодированное или построенное по статусу)
        status_code: HTTP статус
        request_id: Значение заголовка request-id или плейсхолдер
        error_detail: Декодированное тело ошибки (если удалось)
    """
    fatal = True
    default_kind = ErrorKind.PROTOCOL

    def __init__(
        self,
        message: str,
        status_code: int,
        request_id: Optional[str] = None,
        error_detail: Any = None
    ):
        self.status_code = status_code
        self.error_detail = error_detail
        super().__init__(message)
        self.add_context_value("requestID", request_id or REQUEST_ID_NOT_SET)
        self.add_context_value("statusCode", status_code)

    @property
    def server_code(self) -> Optional[str]:
        """Машиночитаемый код ошибки от сервера."""
        if self.error_detail is None:
            return None
        return getattr(self.error_detail, "code", None)


class DecodeError(CloudApiError):
    """
    Ответ был успешным, но тело не соответствует ожидаемому типу.

    Это баг контракта, а не пользовательская ошибка.
    """
    fatal = True
    default_kind = ErrorKind.DECODE


class ConsistencyError(CloudApiError):
    """Нарушение согласованности (не тот id, сущность исчезла)."""
    fatal = True
    default_kind = ErrorKind.CONSISTENCY


class InstanceGoneMissingError(ConsistencyError):
    """Инстанс был найден при опросе, но потом исчез."""

    def __init__(self, message: str, instance_id: Any = None):
        super().__init__(message)
        self.instance_id = instance_id
        if instance_id is not None:
            self.add_context_value("instanceId", instance_id)


class ConfigurationError(CloudApiError):
    """Ошибка конфигурации."""
    fatal = True


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# УТИЛИТЫ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def _iter_causes(exc: BaseException) -> Iterator[BaseException]:
    """Обойти цепочку причин: args, reason, __cause__, __context__."""
    seen = set()
    stack = [exc]
    while stack:
        current = stack.pop()
        if id(current) in seen:
            continue
        seen.add(id(current))
        yield current

        reason = getattr(current, "reason", None)
        if isinstance(reason, BaseException):
            stack.append(reason)
        for arg in getattr(current, "args", ()):
            if isinstance(arg, BaseException):
                stack.append(arg)
        if current.__cause__ is not None:
            stack.append(current.__cause__)
        if current.__context__ is not None:
            stack.append(current.__context__)


def detect_failure_cause(exc: BaseException) -> FailureCause:
    """
    Определить причину сетевой ошибки по цепочке исключений.

    Args:
        exc: Исключение из requests/urllib3/socket

    Returns:
        FailureCause
    """
    if isinstance(exc, INVALID_REQUEST_ERRORS):
        return FailureCause.INVALID_REQUEST
    if isinstance(exc, requests.exceptions.Timeout):
        return FailureCause.INTERRUPTED
    if isinstance(exc, requests.exceptions.SSLError):
        return FailureCause.TLS

    for current in _iter_causes(exc):
        if isinstance(current, (NameResolutionError, socket.gaierror)):
            return FailureCause.UNKNOWN_HOST
        if isinstance(current, ConnectionRefusedError):
            return FailureCause.CONNECTION_REFUSED
        if isinstance(current, ssl.SSLError):
            return FailureCause.TLS
        if isinstance(current, (socket.timeout, InterruptedError)):
            return FailureCause.INTERRUPTED

    for current in _iter_causes(exc):
        if isinstance(current, NewConnectionError):
            # Соединение не установлено, но причина не распознана
            return FailureCause.OTHER
        if isinstance(current, ConnectionResetError):
            return FailureCause.CONNECTION_RESET

    if isinstance(exc, (requests.exceptions.ConnectionError,
                        requests.exceptions.ChunkedEncodingError)):
        return FailureCause.CONNECTION_RESET

    return FailureCause.OTHER


def classify_requests_exception(
    exc: Exception,
    url: str
) -> CloudApiError:
    """
    Конвертировать requests.exceptions в наши исключения.

    Args:
        exc: Исключение из requests
        url: URL запроса

    Returns:
        Наше исключение с правильной классификацией

    Examples:
        >>> exc = requests.exceptions.ConnectionError(ConnectionResetError())
        >>> our_exc = classify_requests_exception(exc, "https://example.com")
        >>> assert our_exc.kind is ErrorKind.TRANSPORT
    """
    if isinstance(exc, CloudApiError):
        return exc

    cause = detect_failure_cause(exc)

    if cause is FailureCause.INTERRUPTED:
        message = "Request timeout"
    elif cause is FailureCause.UNKNOWN_HOST:
        message = "Unable to resolve host"
    elif cause is FailureCause.CONNECTION_REFUSED:
        message = "Connection refused"
    elif cause is FailureCause.TLS:
        message = "TLS handshake failed"
    elif cause is FailureCause.CONNECTION_RESET:
        message = "Connection reset"
    elif cause is FailureCause.INVALID_REQUEST:
        message = "Invalid request"
    else:
        message = "Error making request to CloudAPI"

    return TransportError(message, url, failure_cause=cause, cause=exc)


def annotate_exception(
    exc: CloudApiError,
    request: Optional[requests.PreparedRequest]
) -> CloudApiError:
    """
    Добавить в контекст исключения данные исходящего запроса.

    Args:
        exc: Исключение
        request: Подготовленный запрос (может быть None)

    Returns:
        То же исключение
    """
    if request is None:
        return exc

    headers = dict(request.headers or {})
    request_id = None
    for name, value in headers.items():
        if name.lower() == "x-request-id":
            request_id = value
            break

    exc.set_context_value("requestId", request_id or REQUEST_ID_NOT_SET)
    exc.set_context_value("requestMethod", request.method)
    exc.set_context_value("requestPath", request.path_url)
    exc.set_context_value(
        "requestHeaders",
        ", ".join(f"{k}: {v}" for k, v in sanitize_headers(headers).items())
    )
    return exc
