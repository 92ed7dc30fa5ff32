# Parlance Command Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Defines `CommandSpec`, a node of a command tree, and `CommandBuilder`, which
produces it.

A command ties together an optional `Flags` grammar, a root `Parameter` for
its own arguments, an optional executor, and child commands keyed by
case-insensitive aliases. Every invocation runs three phases:

1. Flag parse. Free flags stop at a leading child alias so the child's own
   grammar sees its arguments.
2. Permission check against the command's own permission. It is skipped when
   dispatching to a child and `require_permission_for_children` is false.
3. Dispatch. A leading child alias recurses into that child. Otherwise the
   command's own parameters are parsed, leftover tokens are rejected, and the
   executor runs.

When a matched child fails to parse, is denied, or fails to execute,
`ChildExceptionBehavior.RETHROW` raises the child's error unchanged.
`ChildExceptionBehavior.CONTINUE` rolls back and parses the tokens as this
command's own arguments, then runs this command's executor. If the fallback
parse fails too, the child's error is raised; when both are parse errors, the
one that progressed furthest into the input wins.

Executors may be plain functions or coroutines taking `(source, context)` and
returning a `CommandResult` (or `None`).

Example:
    spec = (
        CommandBuilder()
        .flags(FlagsBuilder().flag("q").build())
        .parameters(integer("amount"), optional_weak(remaining_joined_strings("note")))
        .executor(lambda source, context: CommandResult.success())
        .build()
    )
    result = await spec.process(source, "-q 5 hello world")
"""
from __future__ import annotations

from difflib import get_close_matches
from typing import Any, Awaitable, Callable, Iterable, Mapping, Sequence, Union

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from parlance.config import DEFAULT_SETTINGS, ParlanceSettings
from parlance.console import console as default_console
from parlance.context import ParsingContext, Transaction
from parlance.exceptions import (
    ArgumentParseError,
    CommandExecutionError,
    ParameterSpecError,
    ParlanceError,
    PermissionDeniedError,
)
from parlance.flags import Flags
from parlance.logger import logger
from parlance.parameter import Parameter, ParameterBuilder, deepest_error, seq
from parlance.policies import ChildExceptionBehavior
from parlance.protocols import has_permission
from parlance.result import CommandResult
from parlance.tokens import InputTokenizer, TokenStream
from parlance.utils import CaseInsensitiveDict, ensure_async

Executor = Callable[
    [Any, ParsingContext],
    Union[CommandResult, None, Awaitable[Union[CommandResult, None]]],
]


def _unique(values: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(values))


class CommandSpec:
    """
    Immutable command tree node. Build instances with `CommandBuilder`.

    Attributes:
        parameter (Parameter): Root parameter for this command's own arguments.
        flags (Flags | None): Flag grammar parsed before the parameters.
        executor (Executor | None): Called with `(source, context)` after a parse.
        permission (str | None): Permission a source needs to use this command.
        require_permission_for_children (bool): Check `permission` before
            dispatching to a child as well.
        child_exception_behavior (ChildExceptionBehavior): Child failure policy.
        input_tokenizer (InputTokenizer): Splits raw arguments into tokens.
    """

    def __init__(
        self,
        parameter: Parameter,
        children: Sequence[tuple[tuple[str, ...], CommandSpec]] = (),
        flags: Flags | None = None,
        executor: Executor | None = None,
        permission: str | None = None,
        require_permission_for_children: bool = True,
        child_exception_behavior: ChildExceptionBehavior = ChildExceptionBehavior.RETHROW,
        input_tokenizer: InputTokenizer = InputTokenizer.QUOTED_STRINGS,
        simple_description: str = "",
        extended_description: str = "",
    ) -> None:
        self.parameter = parameter
        self.flags = flags
        self.executor = executor
        self.permission = permission
        self.require_permission_for_children = require_permission_for_children
        self.child_exception_behavior = child_exception_behavior
        self.input_tokenizer = input_tokenizer
        self.simple_description = simple_description
        self.extended_description = extended_description
        self._child_entries: tuple[tuple[tuple[str, ...], CommandSpec], ...] = tuple(
            children
        )
        self._children: CaseInsensitiveDict = CaseInsensitiveDict()
        for aliases, child in self._child_entries:
            for alias in aliases:
                self._children[alias] = child

    @property
    def children(self) -> dict[str, CommandSpec]:
        """Alias → child mapping with lowercased aliases."""
        return dict(self._children)

    def get_child(self, alias: str) -> CommandSpec | None:
        return self._children.get(alias)

    def can_execute(self, source: Any) -> bool:
        return has_permission(source, self.permission)

    def check_permission(self, source: Any) -> None:
        if not self.can_execute(source):
            assert self.permission is not None
            raise PermissionDeniedError(self.permission)

    def _is_child_alias(self, token: str) -> bool:
        return token in self._children

    def _visible_aliases(self, source: Any) -> list[str]:
        return [
            aliases[0]
            for aliases, child in self._child_entries
            if child.can_execute(source)
        ]

    def parse(
        self,
        source: Any,
        arguments: str,
        context: ParsingContext | None = None,
    ) -> tuple[CommandSpec, ParsingContext]:
        """
        Parse `arguments` without executing anything.

        Returns:
            tuple[CommandSpec, ParsingContext]: The command that would run and
            the context populated for it.

        Raises:
            ArgumentParseError: If the arguments do not match the grammar.
            PermissionDeniedError: If the source lacks a required permission.
        """
        if context is None:
            context = ParsingContext()
        stream = self.input_tokenizer.tokenize(arguments)
        return self._resolve(source, stream, context), context

    def _enter(
        self, source: Any, stream: TokenStream, context: ParsingContext
    ) -> tuple[TokenStream, CommandSpec | None]:
        """Parse flags and pick the child to dispatch to, if any."""
        if self.flags is not None:
            stream = self.flags.parse(
                source,
                stream,
                context,
                stop_at=self._is_child_alias if self._children else None,
            )

        child = None
        if self._children and stream.remaining_tokens():
            child = self.get_child(stream.peek())

        if child is None:
            self.check_permission(source)
            if self.executor is None:
                raise self._missing_child_error(source, stream)
        elif self.require_permission_for_children:
            self.check_permission(source)
        return stream, child

    def _may_continue(self) -> bool:
        return (
            self.child_exception_behavior is ChildExceptionBehavior.CONTINUE
            and self.executor is not None
        )

    def _resolve(
        self, source: Any, stream: TokenStream, context: ParsingContext
    ) -> CommandSpec:
        stream, child = self._enter(source, stream, context)
        if child is None:
            self._parse_own(source, stream, context)
            return self

        child_error: ParlanceError | None = None
        with Transaction(stream, context) as tx:
            alias = stream.next()
            logger.debug("Dispatching to child command '%s'.", alias)
            try:
                target = child._resolve(source, stream, context)
            except (ArgumentParseError, PermissionDeniedError) as error:
                if not self._may_continue():
                    raise
                child_error = error
            else:
                tx.commit()
                return target

        self._fall_back(source, stream, context, alias, child_error)
        return self

    async def _dispatch(
        self, source: Any, stream: TokenStream, context: ParsingContext
    ) -> CommandResult:
        stream, child = self._enter(source, stream, context)
        if child is None:
            self._parse_own(source, stream, context)
            return await self.execute(source, context)

        child_error: ParlanceError | None = None
        with Transaction(stream, context) as tx:
            alias = stream.next()
            logger.debug("Dispatching to child command '%s'.", alias)
            try:
                result = await child._dispatch(source, stream, context)
            except (
                ArgumentParseError,
                PermissionDeniedError,
                CommandExecutionError,
            ) as error:
                if not self._may_continue():
                    raise
                child_error = error
            else:
                tx.commit()
                return result

        self._fall_back(source, stream, context, alias, child_error)
        return await self.execute(source, context)

    def _fall_back(
        self,
        source: Any,
        stream: TokenStream,
        context: ParsingContext,
        alias: str,
        child_error: ParlanceError | None,
    ) -> None:
        """Parse the tokens after a failed child as this command's own arguments."""
        assert child_error is not None
        logger.debug(
            "Child '%s' failed (%s), parsing as own arguments.", alias, child_error
        )
        try:
            self.check_permission(source)
            self._parse_own(source, stream, context)
        except ArgumentParseError as own_error:
            if isinstance(child_error, ArgumentParseError):
                raise deepest_error([child_error, own_error]) from own_error
            raise child_error from own_error
        except PermissionDeniedError as own_error:
            raise child_error from own_error

    def _parse_own(
        self, source: Any, stream: TokenStream, context: ParsingContext
    ) -> None:
        self.parameter.parse(source, stream, context)
        if stream.has_next():
            if not stream.remaining_tokens():
                stream.next()  # raises the pending TokenizeError
            raise stream.create_error("Too many arguments.")

    def _missing_child_error(
        self, source: Any, stream: TokenStream
    ) -> ArgumentParseError:
        aliases = self._visible_aliases(source)
        if not stream.remaining_tokens():
            return stream.create_error(
                f"Missing subcommand. Expected one of: {', '.join(aliases)}."
            )
        token = stream.peek()
        candidates = [alias for aliases, _ in self._child_entries for alias in aliases]
        suggestions = get_close_matches(token, candidates, n=3, cutoff=0.6)
        if suggestions:
            return stream.create_error(
                f"Unknown subcommand '{token}'. Did you mean: {', '.join(suggestions)}?"
            )
        return stream.create_error(
            f"Unknown subcommand '{token}'. Expected one of: {', '.join(aliases)}."
        )

    async def execute(self, source: Any, context: ParsingContext) -> CommandResult:
        """
        Run this command's executor against an already populated context.

        Raises:
            CommandExecutionError: If the executor raises or returns something
                other than a `CommandResult` or `None`.
        """
        if self.executor is None:
            raise CommandExecutionError("This command has no executor.")
        executor = ensure_async(self.executor)
        try:
            result = await executor(source, context)
        except CommandExecutionError:
            raise
        except Exception as error:
            logger.warning("[Command] Executor failed: %s", error)
            raise CommandExecutionError(
                f"An error occurred while executing the command: {error}"
            ) from error
        if result is None:
            return CommandResult.empty()
        if not isinstance(result, CommandResult):
            raise CommandExecutionError(
                f"Executor returned {type(result).__name__}, expected CommandResult."
            )
        return result

    async def process(self, source: Any, arguments: str) -> CommandResult:
        """
        Parse `arguments`, dispatching through children, and run the executor.

        Raises:
            ArgumentParseError: If the arguments do not match the grammar.
            PermissionDeniedError: If the source lacks a required permission.
            CommandExecutionError: If the executor fails.
        """
        stream = self.input_tokenizer.tokenize(arguments)
        return await self._dispatch(source, stream, ParsingContext())

    def complete(self, source: Any, arguments: str) -> list[str]:
        """Return completions for the last (possibly empty) token of `arguments`."""
        context = ParsingContext(is_completion=True)
        stream = self.input_tokenizer.tokenize_for_completion(arguments)
        return self._complete(source, stream, context)

    def _complete(
        self, source: Any, stream: TokenStream, context: ParsingContext
    ) -> list[str]:
        if self.flags is not None:
            stream, flag_completions = self.flags.complete(
                source,
                stream,
                context,
                stop_at=self._is_child_alias if self._children else None,
            )
            if flag_completions is not None:
                return _unique(flag_completions)

        completions: list[str] = []
        if self._children and stream.remaining_tokens():
            may_dispatch = self.can_execute(source) or not self.require_permission_for_children
            if stream.remaining() == 1:
                if may_dispatch:
                    partial = stream.peek().lower()
                    completions.extend(
                        alias
                        for alias in self._visible_aliases(source)
                        if alias.lower().startswith(partial)
                    )
            else:
                child = self.get_child(stream.peek())
                if child is not None:
                    if not may_dispatch:
                        return []
                    stream.next()
                    return child._complete(source, stream, context)

        if self.executor is not None and self.can_execute(source):
            completions.extend(self.parameter.complete(source, stream, context))
        return _unique(completions)

    def usage(self, source: Any) -> str:
        """Render a one-line usage string for `source`."""
        parts: list[str] = []
        if self.flags is not None:
            parts.append(self.flags.usage(source))
        alternatives: list[str] = []
        aliases = self._visible_aliases(source)
        if aliases:
            alternatives.append("|".join(aliases))
        if self.executor is not None:
            own = self.parameter.usage(source)
            if own:
                alternatives.append(own)
        parts.append("|".join(alternatives))
        return " ".join(part for part in parts if part)

    def render_help(
        self, source: Any, name: str = "", console: Console | None = None
    ) -> None:
        """
        Print formatted help for this command using Rich output.

        Includes usage, descriptions and the table of child commands.
        """
        console = console or default_console
        usage = self.usage(source)
        line = escape(" ".join(filter(None, [name, usage])))
        console.print(f"[bold]usage:[/bold] [usage]{line}[/]\n")
        if self.simple_description:
            console.print(self.simple_description)
        if self.extended_description:
            console.print(self.extended_description)
        if self.simple_description or self.extended_description:
            console.print()
        entries = [
            (aliases, child)
            for aliases, child in self._child_entries
            if child.can_execute(source)
        ]
        if entries:
            table = Table(title="Subcommands", show_header=True, header_style="bold")
            table.add_column("Command", style="command")
            table.add_column("Usage", style="usage")
            table.add_column("Description")
            for aliases, child in entries:
                table.add_row(
                    ", ".join(aliases),
                    escape(child.usage(source)),
                    escape(child.simple_description),
                )
            console.print(table)

    def __repr__(self) -> str:
        aliases = [aliases[0] for aliases, _ in self._child_entries]
        return (
            f"CommandSpec(children={aliases}, executor={self.executor is not None}, "
            f"permission={self.permission!r})"
        )


class CommandBuilder:
    """
    Accumulates a command definition and produces an immutable `CommandSpec`.

    Args:
        settings (ParlanceSettings | None): Source of default policies.
    """

    def __init__(self, settings: ParlanceSettings | None = None) -> None:
        settings = settings or DEFAULT_SETTINGS
        self._children: list[tuple[tuple[str, ...], CommandSpec]] = []
        self._aliases: set[str] = set()
        self._require_permission_for_children = settings.require_permission_for_children
        self._child_exception_behavior = settings.child_exception_behavior
        self._executor: Executor | None = None
        self._flags: Flags | None = None
        self._input_tokenizer = settings.input_tokenizer
        self._parameters: list[Parameter] = []
        self._permission: str | None = None
        self._simple_description = ""
        self._extended_description = ""

    def add_child(self, child: CommandSpec | CommandBuilder, *aliases: str) -> CommandBuilder:
        if isinstance(child, CommandBuilder):
            child = child.build()
        if not isinstance(child, CommandSpec):
            raise ParameterSpecError(
                f"A child must be a CommandSpec, got {type(child).__name__}."
            )
        if not aliases:
            raise ParameterSpecError("A child command requires at least one alias.")
        for alias in aliases:
            if not alias or any(char.isspace() for char in alias):
                raise ParameterSpecError(f"Invalid child alias '{alias}'.")
            if alias.lower() in self._aliases:
                raise ParameterSpecError(f"Duplicate child alias '{alias}'.")
        self._aliases.update(alias.lower() for alias in aliases)
        self._children.append((tuple(aliases), child))
        return self

    def add_children(
        self, children: Mapping[str | tuple[str, ...], CommandSpec | CommandBuilder]
    ) -> CommandBuilder:
        for aliases, child in children.items():
            if isinstance(aliases, str):
                aliases = (aliases,)
            self.add_child(child, *aliases)
        return self

    def require_permission_for_children(self, required: bool = True) -> CommandBuilder:
        self._require_permission_for_children = required
        return self

    def child_exception_behavior(
        self, behavior: ChildExceptionBehavior | str
    ) -> CommandBuilder:
        self._child_exception_behavior = ChildExceptionBehavior(behavior)
        return self

    def executor(self, executor: Executor) -> CommandBuilder:
        if not callable(executor):
            raise ParameterSpecError(f"Executor {executor!r} is not callable.")
        self._executor = executor
        return self

    def flags(self, flags: Flags) -> CommandBuilder:
        self._flags = flags
        return self

    def input_tokenizer(self, tokenizer: InputTokenizer | str) -> CommandBuilder:
        self._input_tokenizer = InputTokenizer(tokenizer)
        return self

    def parameters(self, *parameters: Parameter | ParameterBuilder) -> CommandBuilder:
        for parameter in parameters:
            if isinstance(parameter, ParameterBuilder):
                parameter = parameter.build()
            if not isinstance(parameter, Parameter):
                raise ParameterSpecError(
                    f"Expected a Parameter, got {type(parameter).__name__}."
                )
            self._parameters.append(parameter)
        return self

    def permission(self, permission: str | None) -> CommandBuilder:
        self._permission = permission
        return self

    def simple_description(self, description: str) -> CommandBuilder:
        self._simple_description = description
        return self

    def extended_description(self, description: str) -> CommandBuilder:
        self._extended_description = description
        return self

    def build(self) -> CommandSpec:
        if self._executor is None and not self._children:
            raise ParameterSpecError(
                "An executor is required when no child commands are registered."
            )
        if not self._parameters:
            parameter = ParameterBuilder().none().build()
        elif len(self._parameters) == 1:
            parameter = self._parameters[0]
        else:
            parameter = seq(*self._parameters)
        return CommandSpec(
            parameter=parameter,
            children=self._children,
            flags=self._flags,
            executor=self._executor,
            permission=self._permission,
            require_permission_for_children=self._require_permission_for_children,
            child_exception_behavior=self._child_exception_behavior,
            input_tokenizer=self._input_tokenizer,
            simple_description=self._simple_description,
            extended_description=self._extended_description,
        )
