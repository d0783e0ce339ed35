"""События, которые роутер передаёт в воркер диалога."""
import json
from dataclasses import dataclass
from typing import Union

from shelfbot.errors import TransportDecodeError


@dataclass(frozen=True)
class Start:
    pass


@dataclass(frozen=True)
class TextProvided:
    text: str


@dataclass(frozen=True)
class StructuredReply:
    """Нажатие inline-кнопки: `data` совпадает с callback_data кнопки."""
    data: str


Event = Union[Start, TextProvided, StructuredReply]


def event_to_dict(event: Event) -> dict:
    if isinstance(event, Start):
        return {"type": "start"}
    if isinstance(event, TextProvided):
        return {"type": "text", "text": event.text}
    if isinstance(event, StructuredReply):
        return {"type": "reply", "data": event.data}
    raise TypeError(f"Unknown event: {event!r}")


def event_from_dict(payload: object) -> Event:
    if not isinstance(payload, dict):
        raise TransportDecodeError(f"Event must be an object, got {type(payload).__name__}")

    event_type = payload.get("type")
    if event_type == "start":
        return Start()
    if event_type == "text" and isinstance(payload.get("text"), str):
        return TextProvided(payload["text"])
    if event_type == "reply" and isinstance(payload.get("data"), str):
        return StructuredReply(payload["data"])
    raise TransportDecodeError(f"Malformed event: {payload!r}")


def encode_event(event: Event) -> str:
    return json.dumps(event_to_dict(event), ensure_ascii=False)


def decode_event(raw: str) -> Event:
    try:
        payload = json.loads(raw)
    except (TypeError, json.JSONDecodeError) as e:
        raise TransportDecodeError(f"Event is not valid JSON: {e}") from e
    return event_from_dict(payload)
