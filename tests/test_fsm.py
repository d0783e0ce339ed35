"""Tests for the generic dialog FSM and the dialog catalog."""

import pytest

from shelfbot.dialogs.catalog import DIALOGS, START_COMMANDS, DialogType, fsm_for
from shelfbot.dialogs.events import Start, StructuredReply, TextProvided
from shelfbot.dialogs.fsm import COMPLETED, STARTED, DialogState, Provide
from shelfbot.dialogs.results import Book, Movie, Quote

VALID_INPUTS = {
    DialogType.ADD_BOOK: ("Dune", "Herbert", "5"),
    DialogType.ADD_MOVIE: ("Alien", "1979", "4"),
    DialogType.ADD_QUOTE: ("Fear is the mind-killer", "Dune", "Herbert"),
}


def reachable_states(dialog_type: DialogType) -> list[DialogState]:
    """Все состояния на пути Started -> Completed с валидным вводом."""
    fsm = fsm_for(dialog_type)
    state = fsm.initial_state
    states = [state]
    state = fsm.step(state, Start()).state
    states.append(state)
    for raw in VALID_INPUTS[dialog_type]:
        state = fsm.step(state, TextProvided(raw)).state
        states.append(state)
    return states


@pytest.mark.parametrize("dialog_type", list(DialogType))
def test_transition_is_total(dialog_type):
    fsm = fsm_for(dialog_type)
    events = [
        Start(),
        TextProvided("anything"),
        StructuredReply("3"),
        Provide("no_such_field", "x"),
    ]
    for state in reachable_states(dialog_type):
        for event in events:
            next_state = fsm.transition(state, event)
            assert isinstance(next_state, DialogState)
            if not (state.name == STARTED and isinstance(event, Start)):
                # Сырые события и чужие поля не двигают состояние
                assert next_state == state


@pytest.mark.parametrize("dialog_type", list(DialogType))
def test_states_are_never_revisited(dialog_type):
    names = [s.name for s in reachable_states(dialog_type)]
    assert names[0] == STARTED
    assert names[-1] == COMPLETED
    assert len(names) == len(set(names))


def test_unknown_state_is_a_noop():
    fsm = fsm_for(DialogType.ADD_BOOK)
    state = DialogState("Bogus", ("x",))
    assert fsm.transition(state, Start()) == state
    assert fsm.prompt(state) is None
    assert fsm.terminal_result(state) is None


def test_book_dialog_walkthrough():
    fsm = fsm_for(DialogType.ADD_BOOK)
    state = fsm.initial_state
    assert fsm.prompt(state) is None

    outcome = fsm.step(state, Start())
    assert outcome.state == DialogState("EnterTitle")
    assert outcome.prompt == "Enter title"

    outcome = fsm.step(outcome.state, TextProvided("Dune"))
    assert outcome.state == DialogState("EnterAuthor", ("Dune",))
    assert outcome.prompt == "Enter author"

    outcome = fsm.step(outcome.state, TextProvided("Herbert"))
    assert outcome.state == DialogState("EnterRating", ("Dune", "Herbert"))
    assert outcome.prompt == "Enter rating"
    assert outcome.choices == ("1", "2", "3", "4", "5")
    assert outcome.result is None

    outcome = fsm.step(outcome.state, TextProvided("5"))
    assert outcome.state == DialogState(COMPLETED, ("Dune", "Herbert", 5))
    assert outcome.prompt == "Added book Dune by Herbert with rating 5"
    assert outcome.result == Book(title="Dune", author="Herbert", rating=5)


def test_movie_and_quote_completion_messages():
    movie = fsm_for(DialogType.ADD_MOVIE)
    completed = reachable_states(DialogType.ADD_MOVIE)[-1]
    assert movie.terminal_result(completed) == Movie(title="Alien", year=1979, rating=4)
    assert movie.prompt(completed) == "Added movie Alien (1979) with rating 4"

    quote = fsm_for(DialogType.ADD_QUOTE)
    completed = reachable_states(DialogType.ADD_QUOTE)[-1]
    assert quote.terminal_result(completed) == Quote(
        text="Fear is the mind-killer", title="Dune", author="Herbert"
    )
    assert quote.prompt(completed) == 'Added quote: "Fear is the mind-killer" from Dune by Herbert'


@pytest.mark.parametrize("dialog_type", list(DialogType))
def test_terminal_state_is_idempotent(dialog_type):
    fsm = fsm_for(dialog_type)
    completed = reachable_states(dialog_type)[-1]
    result = fsm.terminal_result(completed)
    assert result is not None

    for event in (Start(), TextProvided("again"), StructuredReply("1"), Provide("title", "x")):
        assert fsm.transition(completed, event) == completed
        assert fsm.terminal_result(completed) == result

        outcome = fsm.step(completed, event)
        assert outcome.state == completed
        assert outcome.result == result


@pytest.mark.parametrize("raw, message", [
    ("0", "Rating must be between 1 and 5"),
    ("6", "Rating must be between 1 and 5"),
    ("abc", "Rating must be a number"),
    ("-1", "Rating must be a number"),
    ("", "Rating must be a number"),
])
def test_invalid_rating_keeps_state(raw, message):
    fsm = fsm_for(DialogType.ADD_BOOK)
    rating_state = DialogState("EnterRating", ("Dune", "Herbert"))

    outcome = fsm.step(rating_state, TextProvided(raw))

    assert outcome.state == rating_state
    assert outcome.error == message
    assert outcome.result is None
    # Кнопки остаются, чтобы исправить ввод
    assert outcome.choices == ("1", "2", "3", "4", "5")


@pytest.mark.parametrize("raw", ["1", "2", "3", "4", "5", " 4 "])
def test_valid_rating_advances(raw):
    fsm = fsm_for(DialogType.ADD_BOOK)
    rating_state = DialogState("EnterRating", ("Dune", "Herbert"))

    outcome = fsm.step(rating_state, TextProvided(raw))

    assert outcome.error is None
    assert outcome.state == DialogState(COMPLETED, ("Dune", "Herbert", int(raw)))


def test_rating_from_button_press():
    fsm = fsm_for(DialogType.ADD_MOVIE)
    rating_state = DialogState("EnterRating", ("Alien", 1979))

    outcome = fsm.step(rating_state, StructuredReply("3"))

    assert outcome.result == Movie(title="Alien", year=1979, rating=3)


@pytest.mark.parametrize("raw, message", [
    ("1899", "Year must be between 1900 and 2100"),
    ("2101", "Year must be between 1900 and 2100"),
    ("abc", "Year must be a number"),
])
def test_invalid_year_keeps_state(raw, message):
    fsm = fsm_for(DialogType.ADD_MOVIE)
    year_state = DialogState("EnterYear", ("Alien",))

    outcome = fsm.step(year_state, TextProvided(raw))

    assert outcome.state == year_state
    assert outcome.error == message


@pytest.mark.parametrize("year", [1900, 1979, 2024, 2100])
def test_valid_year_advances(year):
    fsm = fsm_for(DialogType.ADD_MOVIE)
    year_state = DialogState("EnterYear", ("Alien",))

    outcome = fsm.step(year_state, TextProvided(str(year)))

    assert outcome.state == DialogState("EnterRating", ("Alien", year))
    assert outcome.prompt == "Enter rating"


def test_blank_text_is_rejected():
    fsm = fsm_for(DialogType.ADD_QUOTE)
    state = DialogState("EnterText")

    outcome = fsm.step(state, TextProvided("   "))

    assert outcome.state == state
    assert outcome.error == "Value must not be empty"


def test_event_before_start_is_ignored():
    fsm = fsm_for(DialogType.ADD_BOOK)

    outcome = fsm.step(fsm.initial_state, TextProvided("Dune"))

    assert outcome.state == fsm.initial_state
    assert outcome.prompt is None
    assert outcome.error is None


def test_start_commands_cover_every_dialog():
    assert START_COMMANDS == {
        "/add_book": DialogType.ADD_BOOK,
        "/add_movie": DialogType.ADD_MOVIE,
        "/add_quote": DialogType.ADD_QUOTE,
    }
    assert set(DIALOGS) == set(DialogType)
