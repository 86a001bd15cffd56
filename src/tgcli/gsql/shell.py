"""Interactive GSQL read-eval loop."""

import logging
from typing import Callable, Optional

import click
from rich.console import Console

from ..utils.exception_logger import ExceptionLogger
from .exceptions import GSQLError
from .session import GSQLSession

logger = logging.getLogger(__name__)

EXIT_COMMANDS = frozenset({"quit", "exit"})


def prompt_line() -> str:
    return click.prompt("GSQL", default="", show_default=False, prompt_suffix=" > ")


class GSQLShell:
    """Reads commands and forwards them to an established session."""

    def __init__(
        self,
        session: GSQLSession,
        console: Optional[Console] = None,
        read_line: Optional[Callable[[], str]] = None,
    ):
        self.session = session
        self.console = console or Console()
        self.read_line = read_line or prompt_line

    def run(self) -> None:
        """Loop until ``quit``/``exit`` (any case) or end of input."""
        while True:
            try:
                line = self.read_line()
            except (EOFError, click.Abort):
                self.console.print()
                break

            command = line.strip()
            if not command:
                continue

            if command.lower() in EXIT_COMMANDS:
                self.console.print("Goodbye!")
                break

            try:
                self.session.execute_command(command)
            except GSQLError as e:
                logger.debug(f"Command failed: {command!r}")
                exception_logger = ExceptionLogger.get_instance()
                if exception_logger:
                    exception_logger.log_exception(e, context={"command": command})
                self.console.print(
                    f"Error executing command: {e}",
                    style="red",
                    markup=False,
                    soft_wrap=True,
                )
