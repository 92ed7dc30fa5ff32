# Parlance Command Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Provides `CommandCompleter`, a Prompt Toolkit completer driven by a Parlance
command tree.

Completions come from `CommandSpec.complete`, so they always agree with what
the grammar would parse:
- Child command aliases
- Flag names and flag values
- Parameter values (choices, enum members, booleans, ...)

The completer inserts the longest common prefix when several completions share
one, and quotes completions that contain whitespace.
"""
from __future__ import annotations

import os
from typing import Any, Iterable, Sequence

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from parlance.command import CommandSpec


class CommandCompleter(Completer):
    """
    Prompt Toolkit completer for a Parlance command tree.

    Args:
        command (CommandSpec): Root of the command tree.
        source (Any): The command source completions are computed for.
        extra_words (Sequence[str]): Additional words offered for the first
            token, such as shell built-ins.
    """

    def __init__(
        self, command: CommandSpec, source: Any, extra_words: Sequence[str] = ()
    ) -> None:
        self.command = command
        self.source = source
        self.extra_words = tuple(extra_words)

    def get_completions(self, document: Document, complete_event) -> Iterable[Completion]:
        """
        Compute completions for the text before the cursor.

        Yields:
            Completion: One or more completions replacing the partial token.
        """
        text = document.text_before_cursor
        stream = self.command.input_tokenizer.tokenize_for_completion(text)
        partial = stream.remaining_tokens()[-1]
        suggestions = self.command.complete(self.source, text)
        if len(stream) == 1:
            suggestions.extend(
                word for word in self.extra_words if word.startswith(partial.text.lower())
            )
        yield from self._yield_lcp_completions(
            suggestions, partial.text, len(text) - partial.start
        )

    def _ensure_quote(self, text: str) -> str:
        """Quote `text` when it contains whitespace so it stays a single token."""
        if " " in text or "\t" in text:
            return f'"{text}"'
        return text

    def _yield_lcp_completions(
        self, suggestions: list[str], stub: str, replace_length: int
    ) -> Iterable[Completion]:
        """
        Yield completions using longest-common-prefix logic.

        - One match → insert it fully.
        - Several matches sharing a prefix longer than the stub → insert the
          prefix, and list every match in the menu.
        - Otherwise → list every match.
        """
        matches = list(dict.fromkeys(suggestions))
        if not matches:
            return

        lcp = os.path.commonprefix(matches)

        if len(matches) == 1:
            yield Completion(
                self._ensure_quote(matches[0]),
                start_position=-replace_length,
                display=matches[0],
            )
        elif len(lcp) > len(stub) and not lcp.startswith("-"):
            yield Completion(lcp, start_position=-replace_length, display=lcp)
            for match in matches:
                yield Completion(
                    self._ensure_quote(match), start_position=-replace_length, display=match
                )
        else:
            for match in matches:
                yield Completion(
                    self._ensure_quote(match), start_position=-replace_length, display=match
                )
