"""Tests for commands outside of dialogs."""

import pytest

from conftest import USER_ID, button_update, text_update
from shelfbot.bot.commands import CommandHandler
from shelfbot.bot.messages import HELP, NO_ACTIVE_DIALOG, NO_BOOKS, NO_MOVIES, NO_QUOTES, UNKNOWN
from shelfbot.dialogs.results import Book, Movie, Quote


@pytest.fixture
def commands(collections):
    return CommandHandler(collections)


@pytest.mark.parametrize("text", ["/start", "/help", "/help@shelf_bot"])
def test_help(commands, text):
    assert commands.handle(text_update(text)) == HELP


def test_reset_without_dialog(commands):
    assert commands.handle(text_update("/reset")) == NO_ACTIVE_DIALOG


@pytest.mark.parametrize("text", ["/unknown", "hello"])
def test_unknown(commands, text):
    assert commands.handle(text_update(text)) == UNKNOWN


def test_button_press_is_ignored(commands):
    assert commands.handle(button_update("3")) is None


@pytest.mark.parametrize("text, empty", [("/books", NO_BOOKS), ("/movies", NO_MOVIES), ("/quotes", NO_QUOTES)])
def test_empty_listings(commands, text, empty):
    assert commands.handle(text_update(text)) == empty


def test_listings(commands, collections):
    collections.append(USER_ID, Book(title="Dune", author="Herbert", rating=5))
    collections.append(USER_ID, Book(title="Solaris", author="Lem", rating=4))
    collections.append(USER_ID, Movie(title="Alien", year=1979, rating=4))
    collections.append(USER_ID, Quote(text="Fear is the mind-killer", title="Dune", author="Herbert"))

    assert commands.handle(text_update("/books")) == (
        "Your books:\nDune by Herbert (rating: 5)\nSolaris by Lem (rating: 4)"
    )
    assert commands.handle(text_update("/movies")) == "Your movies:\nAlien (1979) (rating: 4)"
    assert commands.handle(text_update("/quotes")) == (
        'Your quotes:\n"Fear is the mind-killer" from Dune by Herbert'
    )


def test_listings_are_per_user(commands, collections):
    collections.append(USER_ID + 1, Book(title="Dune", author="Herbert", rating=5))

    assert commands.handle(text_update("/books")) == NO_BOOKS
