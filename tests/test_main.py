from datetime import timedelta

import pytest

from parlance.__main__ import (
    DemoSource,
    Weather,
    build_demo_tree,
    get_parser,
    get_settings,
)
from parlance.config import DEFAULT_SETTINGS
from parlance.exceptions import AmbiguousResultError, PermissionDeniedError
from parlance.policies import UnknownFlagBehavior
from parlance.result import CommandResult


@pytest.fixture
def tree():
    return build_demo_tree()


@pytest.mark.asyncio
async def test_give(tree):
    result = await tree.process(DemoSource(), "give apple 3")
    assert result == CommandResult.affected_items_of(3)

    result = await tree.process(DemoSource(), "g bread -q --note=fresh")
    assert result == CommandResult.affected_items_of(1)


def test_give_ambiguous_item(tree):
    with pytest.raises(AmbiguousResultError):
        tree.parse(DemoSource(), "give ap")


def test_give_context(tree):
    target, context = tree.parse(DemoSource(), "give st -n first -n second")
    assert target is tree.get_child("give")
    assert context.get_one("item") == "Stone"
    assert context.get_one("amount") == 1
    assert context.get_all("note") == ["first", "second"]


@pytest.mark.asyncio
async def test_time(tree):
    _, context = tree.parse(DemoSource(), "time set 1h30m")
    assert context.get_one("time") == timedelta(hours=1, minutes=30)
    result = await tree.process(DemoSource(), "time query")
    assert result.query_result == 6000


@pytest.mark.asyncio
async def test_weather(tree):
    _, context = tree.parse(DemoSource(), "weather ra overworld")
    assert context.get_one("weather") is Weather.RAIN
    assert context.get_one("world") == "overworld"
    assert await tree.process(DemoSource(), "weather thunder") == CommandResult.success()


@pytest.mark.asyncio
async def test_admin_requires_permission(tree):
    result = await tree.process(DemoSource(), "admin reload config")
    assert result == CommandResult.success()
    with pytest.raises(PermissionDeniedError):
        await tree.process(DemoSource(permissions=set()), "admin reload")


def test_completion(tree):
    assert tree.complete(DemoSource(), "") == ["give", "say", "time", "weather", "admin"]
    assert tree.complete(DemoSource(permissions=set()), "a") == []
    assert tree.complete(DemoSource(), "time ") == ["set", "query"]


def test_get_parser():
    args = get_parser().parse_args(["--log-mode", "json", "-c", "give apple"])
    assert args.log_mode == "json"
    assert args.command == "give apple"
    assert args.config is None


def test_get_settings(tmp_path, monkeypatch):
    monkeypatch.delenv("PARLANCE_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)
    assert get_settings(get_parser().parse_args([])) is DEFAULT_SETTINGS

    path = tmp_path / "custom.yaml"
    path.write_text("unknown_long_flag_behavior: ignore\n")
    settings = get_settings(get_parser().parse_args(["--config", str(path)]))
    assert settings.unknown_long_flag_behavior is UnknownFlagBehavior.IGNORE
