"""
Обобщённая FSM диалога.

Тип диалога задаётся значением DialogSpec: упорядоченные поля, фабрика
результата и текст подтверждения. Состояния линейны:

    Started -> Enter<Field1> -> ... -> Enter<FieldN> -> Completed

Переходы, промпты и терминальный результат выводятся из описания, поэтому
один DialogFSM обслуживает все типы диалогов. FSM чистая: состояние
хранит воркер, здесь только функции над ним.
"""
from dataclasses import dataclass
from typing import Any, Callable, Union

from shelfbot.dialogs.events import Event, Start, StructuredReply, TextProvided
from shelfbot.dialogs.results import DialogResult, result_from_dict, result_to_dict
from shelfbot.errors import UnexpectedTransitionError, ValidationError
from shelfbot.logging import logger

STARTED = "Started"
COMPLETED = "Completed"


def parse_text(raw: str) -> str:
    text = raw.strip()
    if not text:
        raise ValidationError("Value must not be empty")
    return text


@dataclass(frozen=True)
class Field:
    name: str
    prompt: str
    parse: Callable[[str], Any] = parse_text
    # Варианты быстрого ответа (inline-кнопки)
    choices: tuple[str, ...] = ()

    @property
    def state_name(self) -> str:
        return "Enter" + self.name.capitalize()


@dataclass(frozen=True)
class DialogSpec:
    type_id: str
    fields: tuple[Field, ...]
    result: Callable[..., DialogResult]
    completed_message: Callable[[DialogResult], str]


@dataclass(frozen=True)
class DialogState:
    name: str
    values: tuple = ()

    def to_dict(self) -> dict:
        return {"name": self.name, "values": list(self.values)}

    @classmethod
    def from_dict(cls, payload: dict) -> "DialogState":
        return cls(name=payload["name"], values=tuple(payload.get("values", ())))


@dataclass(frozen=True)
class Provide:
    """Провалидированное значение поля: внутреннее событие FSM."""
    field: str
    value: Any


@dataclass(frozen=True)
class DialogOutcome:
    """Ответ шага диалога: новое состояние и то, что показать пользователю."""
    state: DialogState
    prompt: str | None = None
    error: str | None = None
    choices: tuple[str, ...] = ()
    result: DialogResult | None = None

    def to_dict(self) -> dict:
        return {
            "state": self.state.to_dict(),
            "prompt": self.prompt,
            "error": self.error,
            "choices": list(self.choices),
            "result": result_to_dict(self.result) if self.result is not None else None,
        }

    @classmethod
    def from_dict(cls, payload: dict) -> "DialogOutcome":
        raw_result = payload.get("result")
        return cls(
            state=DialogState.from_dict(payload["state"]),
            prompt=payload.get("prompt"),
            error=payload.get("error"),
            choices=tuple(payload.get("choices") or ()),
            result=result_from_dict(raw_result) if raw_result is not None else None,
        )


class DialogFSM:
    def __init__(self, spec: DialogSpec):
        self.spec = spec
        self._by_state = {f.state_name: (i, f) for i, f in enumerate(spec.fields)}

    @property
    def initial_state(self) -> DialogState:
        return DialogState(STARTED)

    def transition(self, state: DialogState, event: Union[Event, Provide]) -> DialogState:
        """
        Тотальная функция перехода.

        Любая пара (state, event) без описанного перехода возвращает state
        без изменений. Completed поглощает все события.
        """
        if state.name == STARTED and isinstance(event, Start):
            return self._enter(0, ())

        position = self._by_state.get(state.name)
        if position is not None and isinstance(event, Provide):
            index, current = position
            if event.field == current.name:
                return self._enter(index + 1, state.values + (event.value,))

        diagnostic = UnexpectedTransitionError(state, event)
        if state.name == COMPLETED:
            logger.debug("Event on completed %s dialog ignored: %s", self.spec.type_id, diagnostic)
        else:
            logger.warning("Unexpected state transition in %s dialog: %s", self.spec.type_id, diagnostic)
        return state

    def prompt(self, state: DialogState) -> str | None:
        if state.name == COMPLETED:
            return self.spec.completed_message(self.terminal_result(state))
        position = self._by_state.get(state.name)
        if position is None:
            return None
        return position[1].prompt

    def choices(self, state: DialogState) -> tuple[str, ...]:
        position = self._by_state.get(state.name)
        return position[1].choices if position is not None else ()

    def terminal_result(self, state: DialogState) -> DialogResult | None:
        if state.name != COMPLETED:
            return None
        return self.spec.result(*state.values)

    def step(self, state: DialogState, event: Event) -> DialogOutcome:
        """
        Один шаг диалога: валидация ввода, переход и проекция на промпт.

        Ошибка валидации не двигает состояние: ответ несёт текст ошибки,
        который и служит повторным запросом. Повторный вызов в Completed
        возвращает тот же результат и то же подтверждение.
        """
        position = self._by_state.get(state.name)
        if position is not None and isinstance(event, (TextProvided, StructuredReply)):
            current = position[1]
            raw = event.text if isinstance(event, TextProvided) else event.data
            try:
                value = current.parse(raw)
            except ValidationError as e:
                return DialogOutcome(state=state, error=str(e), choices=current.choices)
            event = Provide(current.name, value)

        new_state = self.transition(state, event)
        result = self.terminal_result(new_state)
        if new_state == state:
            prompt = self.prompt(state) if result is not None else None
            return DialogOutcome(state=state, prompt=prompt, result=result)

        return DialogOutcome(
            state=new_state,
            prompt=self.prompt(new_state),
            choices=self.choices(new_state),
            result=result,
        )

    def _enter(self, index: int, values: tuple) -> DialogState:
        if index >= len(self.spec.fields):
            return DialogState(COMPLETED, values)
        return DialogState(self.spec.fields[index].state_name, values)
