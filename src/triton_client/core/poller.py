"""
Ожидание смены состояния сущности (например, provisioning -> running).

Поллер блокирует вызывающий поток: повторно запрашивает сущность по id,
пока её поле state не станет отличным от начального, либо пока не
истечёт максимальное время ожидания.

Терминальные исходы:
- CHANGED     - вернуть сущность с новым состоянием
- TIMED_OUT   - вернуть последнюю сущность (состояние не изменилось), не ошибка
- GONE        - сущность пропала после того, как была найдена: InstanceGoneMissingError
- INTERRUPTED - ожидание прервано через cancel_event: вернуть None без ошибки;
                KeyboardInterrupt пробрасывается дальше
"""

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from .exceptions import InstanceGoneMissingError, TransportError

logger = logging.getLogger(__name__)


class PollOutcome(str, Enum):
    """Состояния автомата поллера."""
    INIT = "init"
    POLLING = "polling"
    CHANGED = "changed"
    TIMED_OUT = "timed_out"
    GONE = "gone"
    INTERRUPTED = "interrupted"


@dataclass(frozen=True)
class PollState:
    """
    Параметры одного вызова поллера.

    Args:
        entity_id: Id сущности
        initial_state: Состояние, смены которого ждём
        max_wait: Максимальное время ожидания (сек)
        interval: Пауза между запросами (сек), 0 - без паузы
    """
    entity_id: Any
    initial_state: str
    max_wait: float
    interval: float

    def __post_init__(self):
        """Валидация."""
        if self.entity_id is None:
            raise ValueError("Entity id must be present")
        if self.initial_state is None:
            raise ValueError("Initial state value must be present")
        if self.max_wait < 0:
            raise ValueError("Maximum wait time must be 0 seconds or greater")
        if self.interval < 0:
            raise ValueError("Wait interval must be 0 seconds or greater")


def _entity_id(entity: Any) -> Any:
    return getattr(entity, "id", None)


def _same_id(actual: Any, expected: Any) -> bool:
    return actual == expected or (actual is not None and str(actual) == str(expected))


def _entity_state(entity: Any) -> Any:
    return getattr(entity, "state", None)


class StateChangePoller:
    """
    Поллер смены состояния.

    Args:
        fetch: Функция id -> сущность или None (если не найдена)
        sleep: Функция ожидания (сек); по умолчанию Event.wait или time.sleep

    Examples:
        >>> poller = StateChangePoller(lambda id_: instances.find_by_id(id_, context=ctx))
        >>> instance = poller.wait_for_state_change(instance_id, "provisioning", 600, 5)
    """

    def __init__(
        self,
        fetch: Callable[[Any], Optional[Any]],
        sleep: Optional[Callable[[float], None]] = None
    ):
        self._fetch = fetch
        self._sleep = sleep
        self.last_outcome: Optional[PollOutcome] = None

    def _transition(self, outcome: PollOutcome, state: PollState) -> None:
        self.last_outcome = outcome
        logger.debug(
            "Poller for [%s] -> %s", state.entity_id, outcome.value,
            extra={"entity_id": str(state.entity_id), "outcome": outcome.value}
        )

    def _pause(self, interval: float, cancel_event: Optional[threading.Event]) -> bool:
        """
        Подождать interval секунд.

        Returns:
            False, если ожидание было прервано
        """
        if self._sleep is not None:
            self._sleep(interval)
            return not (cancel_event is not None and cancel_event.is_set())
        if cancel_event is not None:
            return not cancel_event.wait(interval)
        time.sleep(interval)
        return True

    def wait_for_state_change(
        self,
        entity_id: Any,
        initial_state: str,
        max_wait: float,
        interval: float,
        cancel_event: Optional[threading.Event] = None
    ) -> Optional[Any]:
        """
        Ждать, пока состояние сущности не станет отличным от initial_state.

        Проверка времени выполняется после каждой паузы, поэтому общее
        время может превысить max_wait не более чем на один interval.

        Args:
            entity_id: Id сущности
            initial_state: Начальное состояние
            max_wait: Максимальное время ожидания (сек)
            interval: Пауза между запросами (сек)
            cancel_event: Событие для прерывания ожидания

        Returns:
            Сущность (CHANGED / TIMED_OUT) или None (не найдена / INTERRUPTED)

        Raises:
            ValueError: неверные аргументы
            InstanceGoneMissingError: сущность пропала во время опроса
            TransportError: сервер вернул сущность с другим id
        """
        state = PollState(entity_id, initial_state, max_wait, interval)
        self._transition(PollOutcome.INIT, state)

        last_poll = self._fetch(entity_id)

        if last_poll is None:
            # Сущность не существовала изначально - это не ошибка
            return None

        if _entity_state(last_poll) != initial_state:
            logger.debug(
                "State changed from [%s] to [%s] - no longer waiting",
                initial_state, _entity_state(last_poll)
            )
            self._transition(PollOutcome.CHANGED, state)
            return last_poll

        self._transition(PollOutcome.POLLING, state)
        waited = 0.0
        started = time.monotonic()

        while True:
            if interval > 0:
                try:
                    resumed = self._pause(interval, cancel_event)
                except KeyboardInterrupt:
                    self._transition(PollOutcome.INTERRUPTED, state)
                    raise
                if not resumed:
                    self._transition(PollOutcome.INTERRUPTED, state)
                    return None
                waited += interval
            else:
                if cancel_event is not None and cancel_event.is_set():
                    self._transition(PollOutcome.INTERRUPTED, state)
                    return None
                waited = time.monotonic() - started

            last_poll = self._fetch(entity_id)

            if last_poll is None:
                self._transition(PollOutcome.GONE, state)
                raise InstanceGoneMissingError(
                    f"The instance [{entity_id}] was successfully polled previously, "
                    f"but is no longer available. Maybe it was deleted?",
                    instance_id=entity_id
                )

            if not _same_id(_entity_id(last_poll), entity_id):
                error = TransportError("Wrong instance id returned")
                error.set_context_value("expectedId", entity_id)
                error.set_context_value("actualId", _entity_id(last_poll))
                raise error

            if _entity_state(last_poll) != initial_state:
                logger.debug(
                    "State changed from [%s] to [%s] - no longer waiting",
                    initial_state, _entity_state(last_poll)
                )
                self._transition(PollOutcome.CHANGED, state)
                return last_poll

            if waited > max_wait:
                logger.debug(
                    "Exceeded maximum wait time [%s s] for state change - no longer waiting",
                    max_wait
                )
                self._transition(PollOutcome.TIMED_OUT, state)
                return last_poll
