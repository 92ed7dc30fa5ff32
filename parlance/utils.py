# Parlance Command Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Small helpers shared across Parlance:

- `ensure_async` lets command trees accept plain or coroutine executors.
- `CaseInsensitiveDict` backs alias lookups for child commands and long flags.
- `setup_logging` configures Rich console or JSON logging for the shell.
"""
from __future__ import annotations

import functools
import inspect
import logging
import os
from typing import Any, Awaitable, Callable, Iterable, Mapping, TypeVar

import pythonjsonlogger.json
from rich.logging import RichHandler

T = TypeVar("T")

LOG_MODE_ENV_VAR = "PARLANCE_LOG_MODE"
LOG_MODES = ("cli", "json")
_JSON_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
_CONTAINER_MARKERS = ("docker", "kubepods", "containerd", "podman")


def ensure_async(function: Callable[..., T]) -> Callable[..., Awaitable[T]]:
    """Return `function` unchanged if it is a coroutine function, else an async wrapper."""
    if inspect.iscoroutinefunction(function):
        return function  # type: ignore
    if not callable(function):
        raise TypeError(f"{function!r} is not callable")

    @functools.wraps(function)
    async def async_wrapper(*args, **kwargs) -> T:
        return function(*args, **kwargs)

    return async_wrapper


class CaseInsensitiveDict(dict):
    """Dictionary keyed by lowercased strings. Lookups ignore case."""

    def __init__(self, items: Mapping[str, Any] | Iterable[tuple[str, Any]] = ()) -> None:
        super().__init__()
        pairs = items.items() if isinstance(items, Mapping) else items
        for key, value in pairs:
            self[key] = value

    @staticmethod
    def _fold(key: Any) -> Any:
        return key.lower() if isinstance(key, str) else key

    def __setitem__(self, key: str, value: Any) -> None:
        super().__setitem__(self._fold(key), value)

    def __getitem__(self, key: str) -> Any:
        return super().__getitem__(self._fold(key))

    def __contains__(self, key: object) -> bool:
        return super().__contains__(self._fold(key))

    def get(self, key: str, default: Any = None) -> Any:
        return super().get(self._fold(key), default)


def running_in_container() -> bool:
    try:
        with open("/proc/1/cgroup", "r", encoding="UTF-8") as cgroup:
            content = cgroup.read()
    except OSError:
        return False
    return any(marker in content for marker in _CONTAINER_MARKERS)


def resolve_log_mode(mode: str | None = None) -> str:
    """Pick the log mode: explicit, then `PARLANCE_LOG_MODE`, then container detection."""
    if not mode:
        mode = os.getenv(LOG_MODE_ENV_VAR) or (
            "json" if running_in_container() else "cli"
        )
    if mode not in LOG_MODES:
        raise ValueError(f"Invalid log mode: {mode}")
    return mode


def _console_handler(mode: str) -> logging.Handler:
    if mode == "json":
        handler: logging.Handler = logging.StreamHandler()
        handler.setFormatter(pythonjsonlogger.json.JsonFormatter(_JSON_FORMAT))
        return handler
    return RichHandler(
        rich_tracebacks=True,
        show_path=False,
        markup=False,
        log_time_format="[%Y-%m-%d %H:%M:%S]",
    )


def _file_handler(log_filename: str, as_json: bool) -> logging.Handler:
    handler = logging.FileHandler(log_filename, "a", "UTF-8")
    if as_json:
        handler.setFormatter(pythonjsonlogger.json.JsonFormatter(_JSON_FORMAT))
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(name)s] [%(levelname)s] %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
    return handler


def setup_logging(
    mode: str | None = None,
    log_filename: str | None = "parlance.log",
    json_log_to_file: bool = False,
    file_log_level: int = logging.DEBUG,
    console_log_level: int = logging.WARNING,
) -> None:
    """
    Configure root logging for the Parlance shell.

    Args:
        mode (str | None): "cli" for Rich console logs or "json" for structured
            logs. Falls back to `PARLANCE_LOG_MODE`, then to "json" inside a
            container and "cli" elsewhere.
        log_filename (str | None): File receiving debug logs. `None` disables it.
        json_log_to_file (bool): Write the file log as JSON instead of plain text.
        file_log_level (int): Level for the file handler.
        console_log_level (int): Level for the console handler.

    Raises:
        ValueError: If `mode` is not a known log mode.
    """
    mode = resolve_log_mode(mode)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.handlers.clear()

    console_handler = _console_handler(mode)
    console_handler.setLevel(console_log_level)
    root.addHandler(console_handler)

    if log_filename:
        file_handler = _file_handler(log_filename, json_log_to_file)
        file_handler.setLevel(file_log_level)
        root.addHandler(file_handler)

    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("parlance").debug("Logging initialized in '%s' mode.", mode)
