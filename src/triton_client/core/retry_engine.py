"""
Retry engine для повторных попыток запросов к CloudAPI.

Включает:
- Список причин, которые никогда не ретраятся
- Проверку идемпотентности
- Опциональный exponential backoff с jitter
"""

import logging
import random
from typing import FrozenSet

from .config import RetryConfig
from .exceptions import FailureCause, TransportError

logger = logging.getLogger(__name__)

# Причины транспортных ошибок, которые повтор не исправит
NON_RETRIABLE_CAUSES: FrozenSet[FailureCause] = frozenset({
    FailureCause.INTERRUPTED,
    FailureCause.UNKNOWN_HOST,
    FailureCause.CONNECTION_REFUSED,
    FailureCause.TLS,
    FailureCause.INVALID_REQUEST,
})


class RetryEngine:
    """
    Механизм retry для одного логического запроса.

    Examples:
        >>> engine = RetryEngine(RetryConfig(max_retries=3))
        >>> if engine.should_retry('GET', error):
        >>>     time.sleep(engine.get_wait_time())
        >>>     engine.increment()
    """

    def __init__(self, config: RetryConfig):
        """
        Args:
            config: Конфигурация retry
        """
        self.config = config
        self._attempt = 0

    def should_retry(self, method: str, error: Exception) -> bool:
        """
        Решить нужен ли retry.

        Args:
            method: HTTP метод (GET, POST, etc)
            error: Исключение

        Returns:
            True если нужен retry
        """
        # Проверка лимита попыток
        if self._attempt >= self.config.max_retries:
            return False

        # Проверка идемпотентности
        if self.config.idempotent_only and method.upper() not in self.config.idempotent_methods:
            return False

        # Фатальные ошибки НЕ ретраим
        if getattr(error, 'fatal', False):
            return False

        if not isinstance(error, TransportError):
            return False

        if error.failure_cause in NON_RETRIABLE_CAUSES:
            logger.debug(
                "Not retrying %s: failure cause %s is not retriable",
                method, error.failure_cause.value
            )
            return False

        return error.retryable

    def get_wait_time(self) -> float:
        """
        Вычислить время ожидания перед следующей попыткой.

        Returns:
            Секунды для ожидания (0 по умолчанию)
        """
        if self.config.backoff_base <= 0:
            return 0.0

        wait = self.config.backoff_base * (
            self.config.backoff_factor ** self._attempt
        )
        wait = min(wait, self.config.backoff_max)

        # jitter 50-150% от wait
        if self.config.backoff_jitter:
            wait = wait * (0.5 + random.random())

        return wait

    def increment(self):
        """Увеличить счётчик попыток."""
        self._attempt += 1

    def reset(self):
        """Сбросить счётчик."""
        self._attempt = 0

    @property
    def attempt(self) -> int:
        """Сколько повторов уже сделано."""
        return self._attempt
