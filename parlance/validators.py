# Parlance Command Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Input validators for Prompt Toolkit sessions driven by a Parlance command tree.

`CommandValidator` parses the buffer without executing anything and reports
failures at the offset where parsing stopped, so the cursor lands on the
offending token.
"""
from __future__ import annotations

from typing import Any, Sequence

from prompt_toolkit.document import Document
from prompt_toolkit.validation import ValidationError, Validator

from parlance.command import CommandSpec
from parlance.exceptions import ArgumentParseError, PermissionDeniedError


class CommandValidator(Validator):
    """
    Validator that rejects input the command tree cannot parse.

    Args:
        command (CommandSpec): Root of the command tree.
        source (Any): The command source input is validated for.
        ignored_words (Sequence[str]): First words that bypass validation, such
            as shell built-ins.
    """

    def __init__(
        self, command: CommandSpec, source: Any, ignored_words: Sequence[str] = ()
    ) -> None:
        self.command = command
        self.source = source
        self.ignored_words = {word.lower() for word in ignored_words}

    def validate(self, document: Document) -> None:
        text = document.text
        if not text.strip():
            return
        if text.split()[0].lower() in self.ignored_words:
            return
        try:
            self.command.parse(self.source, text)
        except ArgumentParseError as error:
            raise ValidationError(
                message=error.message,
                cursor_position=min(error.position, len(text)),
            ) from error
        except PermissionDeniedError as error:
            raise ValidationError(message=str(error), cursor_position=0) from error
