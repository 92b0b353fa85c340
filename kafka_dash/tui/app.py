"""Textual front-end: applies state machine commands to the terminal."""
from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

from rich.text import Text
from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import VerticalScroll
from textual.widgets import DataTable, Footer, Input, Static
from textual.worker import get_current_worker

from kafka_dash.core.config import Settings
from kafka_dash.core.errors import DashboardError
from kafka_dash.domain.models.topic import TopicSummary
from kafka_dash.domain.services.metadata_service import MetadataService
from kafka_dash.domain.services.report_format import (
    CONFIG_HEADER,
    PARTITION_HEADER,
    format_error,
    format_report,
    format_topic_summaries,
)
from kafka_dash.tui.state import (
    ClearText,
    Command,
    CommandSubmitted,
    Event,
    FetchReport,
    KeyEvent,
    Quit,
    ReportFailed,
    ReportLoaded,
    RowSelected,
    ShowText,
    ViewStateMachine,
)

logger = logging.getLogger(__name__)


class DashboardContext:
    """Everything the dashboard needs, built once at startup."""

    def __init__(self, settings: Settings, service: MetadataService, summaries: Sequence[TopicSummary]) -> None:
        self.settings = settings
        self.service = service
        self.summaries = list(summaries)

    @property
    def brokers(self) -> List[str]:
        return list(self.settings.brokers)

    @property
    def rows(self) -> List[Tuple[str, str]]:
        return format_topic_summaries(self.summaries)


def styled(cmd: ShowText) -> Text:
    if cmd.kind == "error":
        return Text(cmd.content, style="bold red")
    if cmd.kind == "edit":
        return Text(cmd.content, style="yellow")
    text = Text()
    for line in cmd.content.splitlines(keepends=True):
        if line.rstrip("\n") in (CONFIG_HEADER, PARTITION_HEADER):
            text.append(line, style="bold yellow")
        else:
            text.append(line)
    return text


class DashboardApp(App[int]):
    """Topic table on top, topic details below, command box above both."""

    TITLE = "Kafka CLI"
    ENABLE_COMMAND_PALETTE = False
    AUTO_FOCUS = "#topics"

    CSS = """
    #header {
        height: 3;
        border: round $accent;
        padding: 0 1;
    }
    #command {
        height: 3;
    }
    #topics {
        height: 1fr;
    }
    #detail-box {
        height: 2fr;
        border: round $accent;
        padding: 0 1;
    }
    """

    BINDINGS = [
        Binding("q", "press_key('q')", "Quit"),
        Binding("e", "press_key('e')", "Edit Topic"),
        Binding("c", "press_key('c')", "Clear"),
    ]

    def __init__(self, context: DashboardContext) -> None:
        super().__init__()
        self.context = context
        self.machine = ViewStateMachine(context.rows)
        self.detail_text = ""
        self.detail_kind = ""

    def compose(self) -> ComposeResult:
        yield Static(
            Text.assemble(("Kafka CLI", "yellow"), " - Brokers: ", (", ".join(self.context.brokers), "cyan")),
            id="header",
        )
        command = Input(placeholder="describe <topic> | edit <topic> | clear | quit", id="command")
        command.border_title = "Enter Command"
        yield command
        yield DataTable(id="topics", cursor_type="row")
        with VerticalScroll(id="detail-box") as box:
            box.border_title = "Topic Details"
            yield Static(id="detail")
        yield Footer()

    def on_mount(self) -> None:
        rows = self.machine.rows
        table = self.query_one("#topics", DataTable)
        table.add_columns(*rows[0])
        table.add_rows(rows[1:])
        table.focus()

    # ---------- input ----------

    def action_press_key(self, key: str) -> None:
        table = self.query_one("#topics", DataTable)
        self.handle_event(KeyEvent(key=key, row=table.cursor_row + 1))

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        self.handle_event(RowSelected(row=event.cursor_row + 1))

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.input.value = ""
        self.handle_event(CommandSubmitted(text=event.value))

    # ---------- output ----------

    def handle_event(self, event: Event) -> None:
        self.apply_command(self.machine.dispatch(event))

    def apply_command(self, cmd: Command) -> None:
        if isinstance(cmd, Quit):
            self.exit(0)
            return
        if isinstance(cmd, FetchReport):
            self.fetch_report(cmd.topic)
            return
        if isinstance(cmd, ClearText):
            self._show(Text(), "", "")
        elif isinstance(cmd, ShowText):
            self._show(styled(cmd), cmd.content, cmd.kind)
        else:
            return
        self.refresh()

    def _show(self, renderable: Text, plain: str, kind: str) -> None:
        self.query_one("#detail", Static).update(renderable)
        self.query_one("#detail-box", VerticalScroll).scroll_home(animate=False)
        self.detail_text = plain
        self.detail_kind = kind

    @work(thread=True, exclusive=True, group="describe")
    def fetch_report(self, topic: str) -> None:
        """Build the report off the event loop and hand the outcome back to it."""
        worker = get_current_worker()
        try:
            event: Event = ReportLoaded(topic=topic, content=format_report(self.context.service.build_report(topic)))
        except DashboardError as exc:
            logger.error("describe %s failed: %s", topic, exc)
            event = ReportFailed(topic=topic, message=format_error(exc))
        except Exception as exc:
            logger.exception("unexpected error while describing %s", topic)
            event = ReportFailed(topic=topic, message=format_error(exc))
        if not worker.is_cancelled:
            self.call_from_thread(self.handle_event, event)
