# Parlance Command Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Defines structural protocols for the collaborators Parlance treats opaquely.

These runtime-checkable `Protocol` classes specify the expected interfaces for:
- Command sources (whoever typed the command) and their permission predicate
- Selector resolvers that turn `@`-prefixed tokens into domain entities
- Choice suppliers that feed pattern matching with candidates

Used to keep grammar objects free of global registries: every dynamic lookup
is injected at construction time.

Protocols:
- CommandSource: Object exposing `has_permission(permission) -> bool`.
- SelectorResolver: Callable `(selector, source) -> Iterable[entity]`.
- ChoicesSupplier: Callable `(prefix) -> Iterable[str]`.
"""
from __future__ import annotations

from typing import Any, Iterable, Protocol, runtime_checkable


@runtime_checkable
class CommandSource(Protocol):
    def has_permission(self, permission: str) -> bool: ...


@runtime_checkable
class SelectorResolver(Protocol):
    def __call__(self, selector: str, source: Any) -> Iterable[Any]: ...


@runtime_checkable
class ChoicesSupplier(Protocol):
    def __call__(self, prefix: str) -> Iterable[str]: ...


def has_permission(source: Any, permission: str | None) -> bool:
    """
    Evaluate the permission predicate for `source`.

    A `None` permission always passes. Sources that do not implement
    `CommandSource` are only granted `None` permissions.
    """
    if permission is None:
        return True
    if not isinstance(source, CommandSource):
        return False
    return bool(source.has_permission(permission))
