# src/triton_client/core/http_client.py
"""
Исполнение запросов к CloudAPI.

Один вызов execute() = подготовка подписанного запроса, цикл retry,
декодирование ответа через ResponseHandler и обогащение ошибок
контекстом исходящего запроса.
"""

import time
from typing import Any, Optional

import requests

from .config import CloudApiConfig, RetryConfig
from .connection import ConnectionContext, Params
from .exceptions import CloudApiError, annotate_exception, classify_requests_exception
from .logging import CloudApiLogger
from .response_handler import ResponseEnvelope, ResponseHandler
from .retry_engine import RetryEngine


class CloudApiHttpClient:
    """
    Выполняет запросы в рамках ConnectionContext.

    Args:
        retry: Конфигурация retry
        logger: Логгер (по умолчанию - логгер модуля)

    Examples:
        >>> client = CloudApiHttpClient(RetryConfig(max_retries=3))
        >>> instance = client.execute(context, "GET", "/alice/machines/<id>", find_handler)
    """

    def __init__(self, retry: Optional[RetryConfig] = None, logger: Optional[CloudApiLogger] = None):
        self._retry_config = retry or RetryConfig()
        self._logger = logger or CloudApiLogger(name=__name__)

    @classmethod
    def from_config(cls, config: CloudApiConfig) -> "CloudApiHttpClient":
        return cls(retry=config.retry)

    @property
    def retry_config(self) -> RetryConfig:
        return self._retry_config

    def execute(
        self,
        context: ConnectionContext,
        method: str,
        path: str,
        handler: ResponseHandler,
        params: Params = None,
        json: Any = None
    ) -> Any:
        """
        Выполнить запрос и декодировать ответ.

        Returns:
            Значение, которое вернул handler (может быть None)

        Raises:
            TransportError: сетевая ошибка (после исчерпания retry)
            ResponseError: сервер вернул ошибку
            DecodeError: успешный ответ не удалось декодировать
        """
        return self.execute_envelope(context, method, path, handler, params=params, json=json).value

    def execute_envelope(
        self,
        context: ConnectionContext,
        method: str,
        path: str,
        handler: ResponseHandler,
        params: Params = None,
        json: Any = None
    ) -> ResponseEnvelope:
        """Как execute(), но вместе со статусом и заголовками ответа."""
        request = context.prepare(method, path, params=params, json=json)
        response = self._send_with_retry(context, request)

        try:
            return handler.handle_envelope(response)
        except CloudApiError as e:
            annotate_exception(e, request)
            self._logger.debug(
                "Response rejected",
                operation=handler.operation,
                status_code=response.status_code,
                error_kind=e.kind.value,
                correlation_id=context.correlation_id
            )
            raise

    def _send_with_retry(
        self,
        context: ConnectionContext,
        request: requests.PreparedRequest
    ) -> requests.Response:
        """
        Отправить запрос с повторами.

        Запрос отправляется без изменений на каждой попытке.
        """
        method = request.method
        engine = RetryEngine(self._retry_config)
        start_time = time.monotonic()

        self._logger.debug(
            "Request started",
            method=method,
            path=request.path_url,
            correlation_id=context.correlation_id,
            max_retries=self._retry_config.max_retries
        )

        while True:
            try:
                response = context.send(request)
            except requests.exceptions.RequestException as e:
                error = classify_requests_exception(e, request.url)

                if not engine.should_retry(method, error):
                    if engine.attempt:
                        error.add_context_value("retryAttempts", engine.attempt)
                    annotate_exception(error, request)

                    self._logger.error(
                        "Request failed",
                        method=method,
                        path=request.path_url,
                        error=error.message,
                        error_type=type(error).__name__,
                        attempt=engine.attempt + 1,
                        duration_ms=round((time.monotonic() - start_time) * 1000, 2),
                        correlation_id=context.correlation_id
                    )
                    raise error from e

                wait_time = engine.get_wait_time()
                engine.increment()

                self._logger.warning(
                    f"Request failed, {engine.attempt} retry",
                    method=method,
                    path=request.path_url,
                    error=error.message,
                    attempt=engine.attempt,
                    max_retries=self._retry_config.max_retries,
                    wait_time_s=round(wait_time, 2),
                    correlation_id=context.correlation_id
                )

                if wait_time > 0:
                    time.sleep(wait_time)
                continue

            self._logger.debug(
                "Request completed",
                method=method,
                path=request.path_url,
                status_code=response.status_code,
                attempt=engine.attempt + 1,
                duration_ms=round((time.monotonic() - start_time) * 1000, 2),
                correlation_id=context.correlation_id
            )
            return response
