"""Tests for the worker-side step entrypoint."""

import json

import pytest

from shelfbot.dialogs.catalog import DialogType, fsm_for
from shelfbot.dialogs.events import Start, TextProvided, encode_event
from shelfbot.dialogs.fsm import DialogOutcome
from shelfbot.dialogs.results import Quote
from shelfbot.dialogs.worker import DialogWorker
from shelfbot.errors import TransportDecodeError


def test_step_returns_json_compatible_outcome():
    worker = DialogWorker(fsm_for(DialogType.ADD_QUOTE))

    payload = worker.step(encode_event(Start()))

    assert json.loads(json.dumps(payload)) == payload
    assert payload["state"] == {"name": "EnterText", "values": []}
    assert payload["prompt"] == "Enter text"
    assert payload["result"] is None


def test_worker_keeps_state_between_steps():
    worker = DialogWorker(fsm_for(DialogType.ADD_QUOTE))
    worker.step(encode_event(Start()))
    worker.step(encode_event(TextProvided("Fear is the mind-killer")))
    worker.step(encode_event(TextProvided("Dune")))

    outcome = DialogOutcome.from_dict(worker.step(encode_event(TextProvided("Herbert"))))

    assert worker.state.name == "Completed"
    assert outcome.result == Quote(text="Fear is the mind-killer", title="Dune", author="Herbert")


def test_completed_worker_returns_same_result_again():
    worker = DialogWorker(fsm_for(DialogType.ADD_QUOTE))
    for raw in (encode_event(Start()), '{"type": "text", "text": "a"}',
                '{"type": "text", "text": "b"}', '{"type": "text", "text": "c"}'):
        first = worker.step(raw)

    again = worker.step('{"type": "text", "text": "anything"}')

    assert again == first


@pytest.mark.parametrize("raw", [
    "not json",
    "[]",
    '{"type": "text"}',
    '{"type": "reply", "data": 5}',
    '{"type": "jump"}',
])
def test_malformed_event_is_rejected(raw):
    worker = DialogWorker(fsm_for(DialogType.ADD_BOOK))

    with pytest.raises(TransportDecodeError):
        worker.step(raw)

    assert worker.state.name == "Started"
