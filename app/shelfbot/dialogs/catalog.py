"""
Каталог диалогов: книги, фильмы, цитаты.

Все три диалога устроены одинаково и отличаются только полями, поэтому
описаны данными, а не кодом.
"""
from enum import Enum
from typing import Callable

from shelfbot.dialogs.fsm import DialogFSM, DialogSpec, Field
from shelfbot.dialogs.results import Book, Movie, Quote
from shelfbot.errors import ValidationError


class DialogType(str, Enum):
    ADD_BOOK = "add_book"
    ADD_MOVIE = "add_movie"
    ADD_QUOTE = "add_quote"


def int_in_range(label: str, low: int, high: int) -> Callable[[str], int]:
    """Парсер целого числа в диапазоне [low, high] с текстами ошибок для пользователя."""
    def parse(raw: str) -> int:
        text = raw.strip()
        if not (text.isascii() and text.isdigit()):
            raise ValidationError(f"{label} must be a number")
        value = int(text)
        if not low <= value <= high:
            raise ValidationError(f"{label} must be between {low} and {high}")
        return value

    return parse


parse_rating = int_in_range("Rating", 1, 5)
parse_year = int_in_range("Year", 1900, 2100)

RATING_CHOICES = ("1", "2", "3", "4", "5")


def _rating_field() -> Field:
    return Field("rating", "Enter rating", parse_rating, RATING_CHOICES)


DIALOGS: dict[DialogType, DialogSpec] = {
    DialogType.ADD_BOOK: DialogSpec(
        type_id=DialogType.ADD_BOOK.value,
        fields=(
            Field("title", "Enter title"),
            Field("author", "Enter author"),
            _rating_field(),
        ),
        result=Book,
        completed_message=lambda b: f"Added book {b.title} by {b.author} with rating {b.rating}",
    ),
    DialogType.ADD_MOVIE: DialogSpec(
        type_id=DialogType.ADD_MOVIE.value,
        fields=(
            Field("title", "Enter title"),
            Field("year", "Enter year", parse_year),
            _rating_field(),
        ),
        result=Movie,
        completed_message=lambda m: f"Added movie {m.title} ({m.year}) with rating {m.rating}",
    ),
    DialogType.ADD_QUOTE: DialogSpec(
        type_id=DialogType.ADD_QUOTE.value,
        fields=(
            Field("text", "Enter text"),
            Field("title", "Enter title"),
            Field("author", "Enter author"),
        ),
        result=Quote,
        completed_message=lambda q: f'Added quote: "{q.text}" from {q.title} by {q.author}',
    ),
}

# Команда -> тип диалога
START_COMMANDS: dict[str, DialogType] = {f"/{t.value}": t for t in DialogType}


def fsm_for(dialog_type: DialogType) -> DialogFSM:
    return DialogFSM(DIALOGS[dialog_type])
