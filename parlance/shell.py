# Parlance Command Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Provides `CommandShell`, an interactive Prompt Toolkit loop over a command tree.

Each line is dispatched through `CommandSpec.process`. Results are summarized
and failures are printed with Rich, parse errors with a caret under the
offending token. Built-in words:

- `help [path ...]`: render help for the root or a child command.
- `exit` / `quit`: leave the shell.
"""
from __future__ import annotations

from typing import Any

from prompt_toolkit import PromptSession
from prompt_toolkit.shortcuts import CompleteStyle
from rich.console import Console
from rich.markup import escape

from parlance.command import CommandSpec
from parlance.completer import CommandCompleter
from parlance.console import console as default_console
from parlance.exceptions import (
    ArgumentParseError,
    CommandExecutionError,
    PermissionDeniedError,
)
from parlance.logger import logger
from parlance.result import CommandResult
from parlance.validators import CommandValidator

HELP_WORDS = ("help",)
EXIT_WORDS = ("exit", "quit")


class CommandShell:
    """
    Interactive shell for a Parlance command tree.

    Args:
        command (CommandSpec): Root of the command tree.
        source (Any): Command source every line is run as.
        prompt (str): Prompt text.
        console (Console | None): Rich console for output.
    """

    def __init__(
        self,
        command: CommandSpec,
        source: Any,
        prompt: str = "parlance > ",
        console: Console | None = None,
    ) -> None:
        self.command = command
        self.source = source
        self.prompt = prompt
        self.console = console or default_console
        self._session: PromptSession | None = None

    @property
    def session(self) -> PromptSession:
        if self._session is None:
            builtins = HELP_WORDS + EXIT_WORDS
            self._session = PromptSession(
                message=self.prompt,
                multiline=False,
                completer=CommandCompleter(self.command, self.source, builtins),
                complete_style=CompleteStyle.COLUMN,
                validator=CommandValidator(self.command, self.source, builtins),
                validate_while_typing=False,
            )
        return self._session

    def show_help(self, path: list[str]) -> None:
        command = self.command
        for alias in path:
            child = command.get_child(alias)
            if child is None:
                self.console.print(f"[error]Unknown command '{escape(alias)}'.[/]")
                return
            command = child
        command.render_help(self.source, " ".join(path), console=self.console)

    def print_parse_error(self, error: ArgumentParseError) -> None:
        self.console.print(f"[error]{escape(error.message)}[/]")
        if error.raw:
            self.console.print(escape(error.raw), highlight=False)
            self.console.print(f"[caret]{' ' * error.position}^[/]", highlight=False)

    async def run_line(self, line: str) -> CommandResult | None:
        """Dispatch one line, printing the result or the failure."""
        try:
            result = await self.command.process(self.source, line)
        except ArgumentParseError as error:
            logger.debug("Parse failed for %r: %r", line, error)
            self.print_parse_error(error)
            return None
        except PermissionDeniedError as error:
            self.console.print(f"[error]{escape(str(error))}[/]")
            return None
        except CommandExecutionError as error:
            logger.warning("Command failed for %r: %s", line, error)
            self.console.print(f"[error]{escape(str(error))}[/]")
            return None
        self.console.print(f"[result]{escape(result.summary())}[/]")
        return result

    async def handle(self, line: str) -> bool:
        """Handle one line of input. Returns False when the shell should exit."""
        words = line.split()
        if not words:
            return True
        if words[0].lower() in EXIT_WORDS:
            return False
        if words[0].lower() in HELP_WORDS:
            self.show_help(words[1:])
            return True
        await self.run_line(line)
        return True

    async def run(self) -> None:
        """Run the prompt loop until `exit`, EOF or Ctrl-C."""
        logger.info("Starting shell.")
        try:
            while True:
                try:
                    line = await self.session.prompt_async()
                except (EOFError, KeyboardInterrupt):
                    logger.info("EOF or KeyboardInterrupt. Exiting shell.")
                    break
                if not await self.handle(line):
                    break
        finally:
            logger.info("Exiting shell.")
