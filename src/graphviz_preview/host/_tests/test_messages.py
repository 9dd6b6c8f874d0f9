from __future__ import annotations

import json

import pytest

from graphviz_preview.host import messages
from graphviz_preview.host.messages import PreviewMessage, ProtocolError, parse_message


def test_render_dot_serialises_command_and_value() -> None:
    payload = json.loads(messages.render_dot("digraph { a -> b }").to_json())
    assert payload == {"command": "renderDot", "value": "digraph { a -> b }"}


def test_message_without_value_omits_it() -> None:
    assert json.loads(PreviewMessage("ping").to_json()) == {"command": "ping"}


def test_parse_render_finished_with_error() -> None:
    msg = parse_message('{"command": "onRenderFinished", "value": {"err": "syntax error"}}')
    assert msg.command == messages.ON_RENDER_FINISHED
    assert msg.render_error == "syntax error"


def test_parse_render_finished_success() -> None:
    msg = parse_message({"command": "onRenderFinished", "value": {}})
    assert msg.render_error is None
    assert parse_message(b'{"command": "onPageLoaded"}').command == messages.ON_PAGE_LOADED


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        "[1, 2]",
        '{"value": 1}',
        '{"command": ""}',
        '{"command": 5}',
    ],
)
def test_parse_rejects_malformed(raw: str) -> None:
    with pytest.raises(ProtocolError):
        parse_message(raw)


def test_visibility_payload() -> None:
    hidden = parse_message('{"command": "onVisibilityChanged", "value": {"visible": false}}')
    assert hidden.command == messages.ON_VISIBILITY_CHANGED
    assert hidden.visible is False
    assert PreviewMessage(messages.ON_VISIBILITY_CHANGED, True).visible is True
    assert PreviewMessage(messages.ON_VISIBILITY_CHANGED).visible is True
