"""Тесты StateChangePoller."""

import threading
from types import SimpleNamespace
from unittest.mock import Mock
from uuid import UUID

import pytest

from triton_client.core.exceptions import InstanceGoneMissingError, TransportError
from triton_client.core.poller import PollOutcome, PollState, StateChangePoller

ENTITY_ID = UUID("c872d3bf-cbaa-4165-8e18-f6e3e1d94da9")
OTHER_ID = UUID("4fb7ad20-e6e6-6b45-bdc5-af39ab3c4d6b")


def entity(state, entity_id=ENTITY_ID):
    return SimpleNamespace(id=entity_id, state=state)


def make_poller(*results):
    fetch = Mock(side_effect=list(results))
    sleep = Mock()
    return StateChangePoller(fetch, sleep=sleep), fetch, sleep


def test_already_changed_returns_without_sleep():
    """Состояние уже другое: сразу вернуть, без паузы."""
    poller, fetch, sleep = make_poller(entity("running"))

    result = poller.wait_for_state_change(ENTITY_ID, "provisioning", 600, 5)

    assert result.state == "running"
    assert fetch.call_count == 1
    sleep.assert_not_called()
    assert poller.last_outcome is PollOutcome.CHANGED


def test_changes_on_fifth_fetch():
    """Четыре раза provisioning, на пятый running."""
    poller, fetch, sleep = make_poller(
        entity("provisioning"), entity("provisioning"), entity("provisioning"),
        entity("provisioning"), entity("running")
    )

    result = poller.wait_for_state_change(ENTITY_ID, "provisioning", 600, 2)

    assert result.state == "running"
    assert result.id == ENTITY_ID
    assert fetch.call_count == 5
    assert sleep.call_count == 4
    assert sum(call.args[0] for call in sleep.call_args_list) >= 4 * 2


def test_not_found_initially_returns_none():
    poller, fetch, sleep = make_poller(None)

    assert poller.wait_for_state_change(ENTITY_ID, "provisioning", 600, 5) is None
    sleep.assert_not_called()


def test_gone_while_polling():
    poller, _, _ = make_poller(entity("provisioning"), None)

    with pytest.raises(InstanceGoneMissingError) as exc_info:
        poller.wait_for_state_change(ENTITY_ID, "provisioning", 600, 5)

    assert exc_info.value.get_context_value("instanceId") == ENTITY_ID
    assert poller.last_outcome is PollOutcome.GONE


def test_wrong_id_returned():
    poller, _, _ = make_poller(entity("provisioning"), entity("running", OTHER_ID))

    with pytest.raises(TransportError, match="Wrong instance id returned") as exc_info:
        poller.wait_for_state_change(ENTITY_ID, "provisioning", 600, 5)

    assert exc_info.value.get_context_value("expectedId") == ENTITY_ID
    assert exc_info.value.get_context_value("actualId") == OTHER_ID


def test_string_id_matches_uuid():
    poller, _, _ = make_poller(entity("provisioning"), entity("running"))

    result = poller.wait_for_state_change(str(ENTITY_ID), "provisioning", 600, 5)

    assert result.state == "running"


def test_timeout_returns_last_entity():
    """Таймаут - не ошибка: вернуть последнюю сущность."""
    poller, fetch, sleep = make_poller(*[entity("provisioning")] * 10)

    result = poller.wait_for_state_change(ENTITY_ID, "provisioning", 10, 5)

    assert result.state == "provisioning"
    # waited: 5, 10, 15 -> 15 > 10 после третьей паузы
    assert sleep.call_count == 3
    assert fetch.call_count == 4
    assert poller.last_outcome is PollOutcome.TIMED_OUT


def test_zero_interval_does_not_sleep():
    poller, fetch, sleep = make_poller(
        entity("provisioning"), entity("provisioning"), entity("running")
    )

    result = poller.wait_for_state_change(ENTITY_ID, "provisioning", 600, 0)

    assert result.state == "running"
    sleep.assert_not_called()
    assert fetch.call_count == 3


def test_cancel_event_interrupts():
    """Прерванное ожидание возвращает None без ошибки."""
    event = threading.Event()
    poller, fetch, sleep = make_poller(entity("provisioning"), entity("provisioning"))
    sleep.side_effect = lambda _: event.set()

    result = poller.wait_for_state_change(ENTITY_ID, "provisioning", 600, 5, cancel_event=event)

    assert result is None
    assert fetch.call_count == 1
    assert poller.last_outcome is PollOutcome.INTERRUPTED


def test_event_wait_used_without_injected_sleep():
    event = threading.Event()
    event.set()
    poller = StateChangePoller(Mock(return_value=entity("provisioning")))

    assert poller.wait_for_state_change(ENTITY_ID, "provisioning", 600, 5, cancel_event=event) is None


def test_keyboard_interrupt_propagates():
    """Ctrl-C не глотается: исход INTERRUPTED, исключение летит дальше."""
    poller, fetch, sleep = make_poller(entity("provisioning"))
    sleep.side_effect = KeyboardInterrupt

    with pytest.raises(KeyboardInterrupt):
        poller.wait_for_state_change(ENTITY_ID, "provisioning", 600, 5)

    assert fetch.call_count == 1
    assert poller.last_outcome is PollOutcome.INTERRUPTED


@pytest.mark.parametrize("kwargs", [
    {"entity_id": None},
    {"initial_state": None},
    {"max_wait": -1},
    {"interval": -1},
])
def test_invalid_arguments(kwargs):
    params = {"entity_id": ENTITY_ID, "initial_state": "provisioning", "max_wait": 10, "interval": 1}
    params.update(kwargs)

    with pytest.raises(ValueError):
        PollState(**params)

    poller, fetch, _ = make_poller()
    with pytest.raises(ValueError):
        poller.wait_for_state_change(**params)
    fetch.assert_not_called()
