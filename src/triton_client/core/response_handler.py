"""
Обработчик ответов CloudAPI.

Превращает requests.Response в типизированное значение или
классифицированную ошибку (ResponseError / DecodeError).

Каждая операция описывает себя явно:
- какие статусы считаются успешными
- допустимо ли пустое тело
- какие статусы означают "сущность отсутствует" (вернуть None без ошибки)
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, Optional, Union

import requests
from pydantic import TypeAdapter, ValidationError

from ..models import ErrorDetail
from .exceptions import REQUEST_ID_NOT_SET, DecodeError, ResponseError

logger = logging.getLogger(__name__)

# Заголовок, которым сервер возвращает id запроса
RESPONSE_REQUEST_ID_HEADER = "request-id"


class _Target:
    """Маркер специальной цели декодирования."""

    def __init__(self, name: str):
        self.name = name

    def __repr__(self) -> str:
        return self.name


# Результат всегда None, тело игнорируется
NO_VALUE = _Target("NO_VALUE")
# Результат - заголовки ответа (ключи в нижнем регистре)
HEADERS = _Target("HEADERS")


@dataclass(frozen=True)
class ResponseEnvelope:
    """
    Декодированное значение вместе со статусом и заголовками.

    Используется пагинацией для чтения x-resource-count / x-query-limit.
    """
    value: Any
    status_code: int
    headers: Dict[str, str]


def _lower_headers(response: requests.Response) -> Dict[str, str]:
    return {name.lower(): value for name, value in response.headers.items()}


class ResponseHandler:
    """
    Обработчик ответа для одной операции.

    Args:
        operation: Имя операции (для сообщений об ошибках)
        target: NO_VALUE, HEADERS или тип для pydantic.TypeAdapter
        success_codes: Успешные статусы
        allow_empty: Пустое успешное тело даёт None вместо DecodeError
        absent_codes: Статусы, означающие "не найдено" (вернуть None)

    Examples:
        >>> handler = ResponseHandler("find instance", Instance, {200, 410},
        ...                           allow_empty=True, absent_codes={404})
        >>> instance = handler.handle(response)
    """

    def __init__(
        self,
        operation: str,
        target: Union[_Target, Any],
        success_codes: Union[int, Iterable[int]],
        allow_empty: bool = False,
        absent_codes: Iterable[int] = frozenset()
    ):
        if isinstance(success_codes, int):
            success_codes = (success_codes,)

        self.operation = operation
        self.target = target
        self.success_codes: FrozenSet[int] = frozenset(success_codes)
        self.allow_empty = allow_empty
        self.absent_codes: FrozenSet[int] = frozenset(absent_codes)

        if not self.success_codes:
            raise ValueError("At least one success status code must be given")
        if self.success_codes & self.absent_codes:
            raise ValueError("Status codes can't be both success and absent")

        self._adapter: Optional[TypeAdapter] = None
        if not isinstance(target, _Target):
            self._adapter = TypeAdapter(target)

    def handle(self, response: requests.Response) -> Any:
        """
        Декодировать ответ.

        Returns:
            Типизированное значение или None

        Raises:
            ResponseError: статус не успешный и не из absent_codes
            DecodeError: успешный статус, но тело не соответствует типу
        """
        return self.handle_envelope(response).value

    def handle_envelope(self, response: requests.Response) -> ResponseEnvelope:
        """Как handle(), но вместе со статусом и заголовками."""
        status_code = response.status_code
        headers = _lower_headers(response)

        if status_code in self.success_codes:
            value = self._decode_success(response, headers)
        elif status_code in self.absent_codes:
            logger.debug(
                "Operation [%s] got status %d, treating as absent",
                self.operation, status_code
            )
            value = None
        else:
            raise self._build_response_error(response, headers)

        return ResponseEnvelope(value=value, status_code=status_code, headers=headers)

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # SUCCESS
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def _decode_success(self, response: requests.Response, headers: Dict[str, str]) -> Any:
        if self.target is NO_VALUE:
            return None
        if self.target is HEADERS:
            return headers

        body = response.content
        if not body or not body.strip():
            if self.allow_empty:
                return None
            raise self._decode_error(response, "Response body was empty")

        try:
            return self._adapter.validate_json(body)
        except (ValidationError, ValueError) as e:
            raise self._decode_error(response, str(e), cause=e) from e

    def _decode_error(
        self,
        response: requests.Response,
        reason: str,
        cause: Optional[BaseException] = None
    ) -> DecodeError:
        message = (
            f"Unable to decode response for operation [{self.operation}] "
            f"into {self._target_name()}"
        )
        error = DecodeError(message, cause=cause)
        error.add_context_value(
            "requestID",
            response.headers.get(RESPONSE_REQUEST_ID_HEADER) or REQUEST_ID_NOT_SET
        )
        error.add_context_value("statusCode", response.status_code)
        error.add_context_value("decodeError", reason)
        error.add_context_value("entityText", response.text)
        return error

    def _target_name(self) -> str:
        return getattr(self.target, "__name__", None) or repr(self.target)

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # ERRORS
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def _build_response_error(
        self,
        response: requests.Response,
        headers: Dict[str, str]
    ) -> ResponseError:
        request_id = headers.get(RESPONSE_REQUEST_ID_HEADER)
        detail = self._parse_error_detail(response)

        if detail is not None:
            message = (
                f"Error processing response for operation [{self.operation}]: "
                f"[{detail.code}] {detail.message}"
            )
        else:
            message = (
                f"Error processing response for operation [{self.operation}]: "
                f"[{response.status_code}] {response.reason or ''}".rstrip()
            )

        error = ResponseError(
            message,
            status_code=response.status_code,
            request_id=request_id,
            error_detail=detail
        )
        error.add_context_value("reasonPhrase", response.reason)

        if detail is not None:
            error.add_context_value("errorCode", detail.code)
            if detail.errors:
                error.add_context_value("errors", detail.errors)
        else:
            error.add_context_value("entityText", response.text)

        return error

    @staticmethod
    def _parse_error_detail(response: requests.Response) -> Optional[ErrorDetail]:
        body = response.content
        if not body or not body.strip():
            return None
        try:
            detail = ErrorDetail.model_validate_json(body)
        except (ValidationError, ValueError):
            return None
        if detail.code is None and detail.message is None:
            return None
        return detail
