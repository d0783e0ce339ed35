"""Итоговые записи завершённых диалогов."""
from dataclasses import asdict, dataclass, fields
from typing import ClassVar, Union


@dataclass(frozen=True)
class Book:
    kind: ClassVar[str] = "book"

    title: str
    author: str
    rating: int


@dataclass(frozen=True)
class Movie:
    kind: ClassVar[str] = "movie"

    title: str
    year: int
    rating: int


@dataclass(frozen=True)
class Quote:
    kind: ClassVar[str] = "quote"

    text: str
    title: str
    author: str


DialogResult = Union[Book, Movie, Quote]

RESULT_TYPES: dict[str, type] = {cls.kind: cls for cls in (Book, Movie, Quote)}


def result_to_dict(result: DialogResult) -> dict:
    return {"kind": result.kind, **asdict(result)}


def result_from_dict(payload: dict) -> DialogResult:
    """
    Собрать результат из JSON.

    Понимает две формы:
      - {"kind": "book", "title": ..., ...}
      - {"book": {"title": ..., ...}}: старый формат ответа воркера
    """
    if not isinstance(payload, dict):
        raise ValueError(f"Result must be an object, got {type(payload).__name__}")
    if "kind" in payload:
        kind = payload["kind"]
        body = {k: v for k, v in payload.items() if k != "kind"}
    else:
        present = [k for k in RESULT_TYPES if payload.get(k) is not None]
        if len(present) != 1:
            raise ValueError(f"Cannot determine result kind: {payload!r}")
        kind = present[0]
        body = payload[kind]

    cls = RESULT_TYPES.get(kind)
    if cls is None:
        raise ValueError(f"Unknown result kind: {kind!r}")

    expected = {f.name for f in fields(cls)}
    if not isinstance(body, dict) or set(body) != expected:
        raise ValueError(f"Malformed {kind} payload: {body!r}")
    return cls(**body)
