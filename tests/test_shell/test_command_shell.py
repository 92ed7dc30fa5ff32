from io import StringIO
from types import SimpleNamespace

import pytest
from rich.console import Console

from parlance.command import CommandBuilder
from parlance.console import parlance_theme
from parlance.generic import integer
from parlance.result import CommandResult
from parlance.shell import CommandShell


def explode(source, context):
    raise RuntimeError("kaboom")


@pytest.fixture
def output():
    return StringIO()


@pytest.fixture
def shell(output):
    give = (
        CommandBuilder()
        .simple_description("Give items.")
        .parameters(integer("amount"))
        .executor(lambda source, context: CommandResult.affected_items_of(context.get_one("amount")))
    )
    admin = CommandBuilder().permission("admin").executor(lambda source, context: None)
    command = (
        CommandBuilder()
        .add_child(give, "give")
        .add_child(admin, "admin")
        .add_child(CommandBuilder().executor(explode), "explode")
        .build()
    )
    console = Console(file=output, theme=parlance_theme, width=100, color_system=None)
    source = SimpleNamespace(has_permission=lambda permission: False)
    return CommandShell(command, source, console=console)


@pytest.mark.asyncio
async def test_run_line_returns_result(shell, output):
    result = await shell.run_line("give 3")
    assert result == CommandResult.affected_items_of(3)
    assert "affected items: 3" in output.getvalue()


@pytest.mark.asyncio
async def test_run_line_prints_caret_for_parse_errors(shell, output):
    assert await shell.run_line("give lots") is None
    lines = output.getvalue().splitlines()
    assert "Expected an integer, but input 'lots' was not." in lines[0]
    assert lines[1] == "give lots"
    assert lines[2] == "     ^"


@pytest.mark.asyncio
async def test_run_line_permission_denied(shell, output):
    assert await shell.run_line("admin") is None
    assert "You do not have permission" in output.getvalue()


@pytest.mark.asyncio
async def test_run_line_execution_error(shell, output):
    assert await shell.run_line("explode") is None
    assert "kaboom" in output.getvalue()


@pytest.mark.asyncio
async def test_handle_builtins(shell, output):
    assert await shell.handle("") is True
    assert await shell.handle("help give") is True
    assert "usage: give <amount>" in output.getvalue()
    assert "Give items." in output.getvalue()
    assert await shell.handle("EXIT") is False
    assert await shell.handle("quit") is False


@pytest.mark.asyncio
async def test_handle_unknown_help_path(shell, output):
    assert await shell.handle("help nowhere") is True
    assert "Unknown command 'nowhere'." in output.getvalue()
