"""
Parlance Command Framework

Copyright (c) 2025 rtj.dev LLC.
Licensed under the MIT License. See LICENSE file for details.
"""

import asyncio
import sys
from argparse import ArgumentParser, Namespace
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from parlance.command import CommandBuilder, CommandSpec
from parlance.config import DEFAULT_SETTINGS, ParlanceSettings, find_settings_file, load_settings
from parlance.console import console
from parlance.context import ParsingContext
from parlance.flags import FlagsBuilder
from parlance.generic import (
    choices,
    duration,
    enum_value,
    integer,
    optional,
    optional_weak,
    remaining_joined_strings,
    string,
)
from parlance.parameter import ParameterBuilder
from parlance.result import CommandResult
from parlance.shell import CommandShell
from parlance.utils import setup_logging


@dataclass
class DemoSource:
    """A command source holding a fixed set of permissions."""

    name: str = "console"
    permissions: set[str] = field(default_factory=lambda: {"parlance.admin"})

    def has_permission(self, permission: str) -> bool:
        return permission in self.permissions


class Weather(Enum):
    CLEAR = "clear"
    RAIN = "rain"
    THUNDER = "thunder"


ITEMS = {"apple": "Apple", "apricot": "Apricot", "bread": "Bread", "stone": "Stone"}


def give(source: Any, context: ParsingContext) -> CommandResult:
    item = context.get_one_or_fail("item")
    amount = context.get_one("amount", 1)
    if not context.has_any("q"):
        console.print(f"Gave {amount} x {item} to {source.name}.")
        for note in context.get_all("note"):
            console.print(f"  note: {note}")
    return CommandResult.affected_items_of(amount)


def say(source: Any, context: ParsingContext) -> CommandResult:
    console.print(f"[{source.name}] {context.get_one_or_fail('message')}")
    return CommandResult.success()


def time_set(source: Any, context: ParsingContext) -> CommandResult:
    console.print(f"Time set to {context.get_one_or_fail('time')}.")
    return CommandResult.success()


def time_query(source: Any, context: ParsingContext) -> CommandResult:
    return CommandResult.query_result_of(6000)


async def weather(source: Any, context: ParsingContext) -> CommandResult:
    kind = context.get_one_or_fail("weather")
    console.print(f"Weather is now {kind.value}.")
    return CommandResult.success()


def reload(source: Any, context: ParsingContext) -> CommandResult:
    console.print("Reloaded.")
    return CommandResult.success()


def build_demo_tree(settings: ParlanceSettings = DEFAULT_SETTINGS) -> CommandSpec:
    give_spec = (
        CommandBuilder(settings)
        .simple_description("Give an item to yourself.")
        .flags(
            FlagsBuilder(settings)
            .flag("q", "quiet")
            .value_flag(ParameterBuilder("note").string().build(), "n", "note")
            .build()
        )
        .parameters(
            ParameterBuilder("item").choices(ITEMS).only_one().build(),
            optional(integer("amount"), default=1),
        )
        .executor(give)
        .build()
    )
    say_spec = (
        CommandBuilder(settings)
        .simple_description("Broadcast a message.")
        .parameters(remaining_joined_strings("message"))
        .executor(say)
        .build()
    )
    time_spec = (
        CommandBuilder(settings)
        .simple_description("Query or change the time.")
        .add_child(
            CommandBuilder(settings)
            .simple_description("Set the time to a duration after midnight.")
            .parameters(duration("time"))
            .executor(time_set),
            "set",
        )
        .add_child(
            CommandBuilder(settings)
            .simple_description("Query the current time.")
            .executor(time_query),
            "query",
        )
        .build()
    )
    weather_spec = (
        CommandBuilder(settings)
        .simple_description("Change the weather.")
        .parameters(enum_value("weather", Weather), optional_weak(string("world")))
        .executor(weather)
        .build()
    )
    admin_spec = (
        CommandBuilder(settings)
        .permission("parlance.admin")
        .simple_description("Administrative commands.")
        .add_child(
            CommandBuilder(settings)
            .simple_description("Reload the demo configuration.")
            .parameters(optional(choices("scope", {"all": "all", "config": "config"})))
            .executor(reload),
            "reload",
        )
        .build()
    )
    return (
        CommandBuilder(settings)
        .simple_description("Parlance demo commands.")
        .add_child(give_spec, "give", "g")
        .add_child(say_spec, "say")
        .add_child(time_spec, "time")
        .add_child(weather_spec, "weather")
        .add_child(admin_spec, "admin")
        .build()
    )


def get_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog="parlance", description="Interactive demo of the Parlance command engine."
    )
    parser.add_argument("--config", help="Path to a YAML or TOML settings file.")
    parser.add_argument(
        "--log-mode", choices=["cli", "json"], help="Console logging format."
    )
    parser.add_argument(
        "-c", "--command", help="Run a single command line and exit instead of prompting."
    )
    return parser


def get_settings(args: Namespace) -> ParlanceSettings:
    config_path = args.config or find_settings_file()
    if config_path:
        return load_settings(config_path)
    return DEFAULT_SETTINGS


def main() -> Any:
    args = get_parser().parse_args()
    settings = get_settings(args)
    setup_logging(
        mode=args.log_mode or settings.log_mode, log_filename=settings.log_filename
    )
    shell = CommandShell(build_demo_tree(settings), DemoSource())
    if args.command:
        result = asyncio.run(shell.run_line(args.command))
        return 0 if result is not None else 1
    return asyncio.run(shell.run())


if __name__ == "__main__":
    sys.exit(main())
