"""Navigation state of the dashboard and its reaction to input events.

``transition`` is pure: it never touches the broker or the terminal. Fetches
are requested with a ``FetchReport`` command and their outcome comes back as a
``ReportLoaded`` / ``ReportFailed`` event.
"""
from __future__ import annotations

from enum import Enum
from typing import Literal, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict

from kafka_dash.domain.services.report_format import format_edit_placeholder


class Panel(str, Enum):
    LIST = "list"
    DETAIL = "detail"
    EDIT = "edit"


class ViewState(BaseModel):
    """Active panel plus the selected topic ("" until one is selected)."""
    model_config = ConfigDict(frozen=True)

    panel: Panel = Panel.LIST
    topic: str = ""
    pending: str = ""  # topic whose report is being fetched


# ---------- events ----------

class KeyEvent(BaseModel):
    """A key press; ``row`` is the highlighted table row (0 is the header)."""
    model_config = ConfigDict(frozen=True)

    key: str
    row: int = 0


class RowSelected(BaseModel):
    model_config = ConfigDict(frozen=True)

    row: int


class CommandSubmitted(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str


class ReportLoaded(BaseModel):
    model_config = ConfigDict(frozen=True)

    topic: str
    content: str


class ReportFailed(BaseModel):
    model_config = ConfigDict(frozen=True)

    topic: str
    message: str


Event = Union[KeyEvent, RowSelected, CommandSubmitted, ReportLoaded, ReportFailed]


# ---------- render commands ----------

class NoOp(BaseModel):
    model_config = ConfigDict(frozen=True)


class Quit(BaseModel):
    model_config = ConfigDict(frozen=True)


class ClearText(BaseModel):
    model_config = ConfigDict(frozen=True)


class ShowText(BaseModel):
    model_config = ConfigDict(frozen=True)

    content: str
    kind: Literal["report", "edit", "error"] = "report"


class FetchReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    topic: str


Command = Union[NoOp, Quit, ClearText, ShowText, FetchReport]


class Transition(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: ViewState
    command: Command


Rows = Sequence[Tuple[str, str]]


def _topic_at(rows: Rows, row: int) -> str | None:
    if 0 < row < len(rows):
        return rows[row][0]
    return None


def _known(rows: Rows, topic: str) -> bool:
    return any(r[0] == topic for r in rows[1:])


def _on_key(state: ViewState, event: KeyEvent, rows: Rows) -> Transition:
    if event.key == "q":
        return Transition(state=state, command=Quit())
    if event.key == "c":
        # abandon any in-flight fetch
        update: dict = {"pending": ""}
        if state.topic:
            update["panel"] = Panel.DETAIL
        state = state.model_copy(update=update)
        return Transition(state=state, command=ClearText())
    if event.key == "e":
        topic = _topic_at(rows, event.row)
        if topic is None:
            return Transition(state=state, command=NoOp())
        return _edit(state, topic)
    return Transition(state=state, command=NoOp())


def _describe(state: ViewState, topic: str) -> Transition:
    return Transition(
        state=state.model_copy(update={"pending": topic}),
        command=FetchReport(topic=topic),
    )


def _edit(state: ViewState, topic: str) -> Transition:
    return Transition(
        state=state.model_copy(update={"panel": Panel.EDIT, "topic": topic, "pending": ""}),
        command=ShowText(content=format_edit_placeholder(topic), kind="edit"),
    )


def _on_command(state: ViewState, event: CommandSubmitted, rows: Rows) -> Transition:
    words = event.text.split()
    if not words:
        return Transition(state=state, command=NoOp())
    verb, args = words[0].lower(), words[1:]
    if verb in ("quit", "q") and not args:
        return Transition(state=state, command=Quit())
    if verb in ("clear", "c") and not args:
        return _on_key(state, KeyEvent(key="c"), rows)
    if verb in ("describe", "edit") and len(args) == 1:
        topic = args[0]
    elif len(words) == 1:
        verb, topic = "describe", words[0]
    else:
        return Transition(
            state=state,
            command=ShowText(content=f"Unknown command: {event.text.strip()}", kind="error"),
        )
    if not _known(rows, topic):
        return Transition(state=state, command=ShowText(content=f"Unknown topic: {topic}", kind="error"))
    if verb == "edit":
        return _edit(state, topic)
    return _describe(state, topic)


def transition(state: ViewState, event: Event, rows: Rows) -> Transition:
    """Return the next state and what to render for *event*.

    *rows* is the topic table as rendered: header at index 0.
    """
    if isinstance(event, KeyEvent):
        return _on_key(state, event, rows)

    if isinstance(event, RowSelected):
        topic = _topic_at(rows, event.row)
        if topic is None:
            return Transition(state=state, command=NoOp())
        return _describe(state, topic)

    if isinstance(event, CommandSubmitted):
        return _on_command(state, event, rows)

    if isinstance(event, ReportLoaded):
        if event.topic != state.pending:
            return Transition(state=state, command=NoOp())
        return Transition(
            state=ViewState(panel=Panel.DETAIL, topic=event.topic),
            command=ShowText(content=event.content, kind="report"),
        )

    if isinstance(event, ReportFailed):
        if event.topic != state.pending:
            return Transition(state=state, command=NoOp())
        return Transition(
            state=state.model_copy(update={"pending": ""}),
            command=ShowText(content=event.message, kind="error"),
        )

    raise TypeError(f"unsupported event: {event!r}")


class ViewStateMachine:
    """Owns the current ViewState; the only place it is replaced."""

    def __init__(self, rows: Rows, state: ViewState | None = None) -> None:
        self._rows = list(rows)
        self._state = state or ViewState()

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def rows(self) -> Rows:
        return self._rows

    def dispatch(self, event: Event) -> Command:
        t = transition(self._state, event, self._rows)
        self._state = t.state
        return t.command
