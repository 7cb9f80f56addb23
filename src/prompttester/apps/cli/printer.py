from __future__ import annotations
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.markup import escape
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from prompttester.domain.conversation.log import ConversationLog
    from prompttester.domain.session.session import Session


class Printer:
    """
    All CLI output goes through here so tests can swap the console.
    """

    def __init__(self, console: Console | None = None):
        self.console: Console = console or Console()

    def print_pretty(self, message: object, style: str | None = None) -> None:
        self.console.print(message, style=style)

    def print_error(self, message: str) -> None:
        self.console.print(f"[red]{escape(message)}[/red]")

    def print_sessions(self, sessions: list[Session]) -> None:
        table = Table(title="Sessions")
        table.add_column("", width=1)
        table.add_column("ID")
        table.add_column("Name")
        table.add_column("Versions", justify="right")
        for session in sessions:
            table.add_row(
                "*" if session.is_active else "",
                session.id,
                escape(session.name),
                str(len(session.versions)),
            )
        self.console.print(table)

    def print_session(self, session: Session) -> None:
        self.console.print(Panel(Text(session.content), title=escape(session.name)))

    def print_versions(self, session: Session) -> None:
        table = Table(title=f"Version History: {session.name}")
        table.add_column("", width=1)
        table.add_column("ID")
        table.add_column("Saved")
        table.add_column("Description")
        for version in session.versions:
            saved = datetime.fromtimestamp(version.timestamp / 1000).strftime(
                "%Y-%m-%d %H:%M:%S"
            )
            table.add_row(
                "=" if version.content == session.content else "",
                version.id,
                saved,
                escape(version.description or ""),
            )
        self.console.print(table)

    def print_conversation(self, conversation: ConversationLog) -> None:
        for index, turn in enumerate(conversation.turns):
            style = "cyan" if turn.role.value == "user" else "green"
            self.console.print(
                f"[{style}]{index} {turn.role.value.upper()}[/{style}]: {escape(turn.content)}"
            )
        if conversation.error:
            self.print_error(conversation.error)
