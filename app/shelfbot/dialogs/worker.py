"""
Точка входа шага на стороне воркера.

Воркер держит DialogState одного диалога на всё время его жизни; роутер
видит состояние только через ответы `step`.
"""
import threading

from shelfbot.dialogs.events import decode_event
from shelfbot.dialogs.fsm import DialogFSM, DialogState
from shelfbot.logging import logger


class DialogWorker:
    def __init__(self, fsm: DialogFSM, state: DialogState | None = None):
        self._fsm = fsm
        self._state = state if state is not None else fsm.initial_state
        self._lock = threading.Lock()

    @property
    def state(self) -> DialogState:
        return self._state

    def step(self, raw_event: str) -> dict:
        """Применить событие (JSON-строка) и вернуть DialogOutcome в виде dict."""
        event = decode_event(raw_event)
        with self._lock:
            outcome = self._fsm.step(self._state, event)
            logger.debug(
                "%s dialog step: %s -> %s",
                self._fsm.spec.type_id,
                self._state.name,
                outcome.state.name,
            )
            self._state = outcome.state
        return outcome.to_dict()
