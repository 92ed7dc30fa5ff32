from io import StringIO
from types import SimpleNamespace

from rich.console import Console

from parlance.command import CommandBuilder
from parlance.console import parlance_theme
from parlance.flags import FlagsBuilder
from parlance.generic import choices, integer, optional, remaining_joined_strings
from parlance.parameter import ParameterBuilder
from parlance.result import CommandResult

everyone = SimpleNamespace(has_permission=lambda permission: True)
nobody = SimpleNamespace(has_permission=lambda permission: False)


def done(source, context):
    return CommandResult.success()


def build_tree():
    give = (
        CommandBuilder()
        .simple_description("Give an item.")
        .flags(
            FlagsBuilder()
            .flag("q", "quiet")
            .value_flag(ParameterBuilder("note").string(), "n", "note")
            .build()
        )
        .parameters(
            ParameterBuilder("item").choices({"apple": 1, "apricot": 2}).only_one(),
            optional(integer("amount"), default=1),
        )
        .executor(done)
    )
    admin = (
        CommandBuilder()
        .permission("admin")
        .add_child(CommandBuilder().executor(done), "reload")
    )
    return (
        CommandBuilder()
        .add_child(give, "give", "g")
        .add_child(CommandBuilder().parameters(remaining_joined_strings("message")).executor(done), "say")
        .add_child(admin, "admin")
        .build()
    )


def test_complete_child_aliases():
    spec = build_tree()
    assert spec.complete(everyone, "") == ["give", "say", "admin"]
    assert spec.complete(everyone, "G") == ["give"]


def test_complete_hides_forbidden_children():
    spec = build_tree()
    assert spec.complete(nobody, "") == ["give", "say"]
    assert spec.complete(nobody, "admin ") == []
    assert spec.complete(everyone, "admin ") == ["reload"]


def test_complete_child_parameters():
    spec = build_tree()
    assert spec.complete(everyone, "give a") == ["apple", "apricot"]
    assert spec.complete(everyone, "g apr") == ["apricot"]


def test_complete_child_flags():
    spec = build_tree()
    assert spec.complete(everyone, "give apple -") == ["-q", "--quiet", "-n", "--note"]
    assert spec.complete(everyone, "give --q") == ["--quiet"]
    assert spec.complete(everyone, "give -q ap") == ["apple", "apricot"]


def test_complete_unterminated_quote():
    spec = build_tree()
    assert spec.complete(everyone, 'give "ap') == ["apple", "apricot"]


def test_usage():
    spec = build_tree()
    assert spec.usage(everyone) == "give|say|admin"
    assert spec.usage(nobody) == "give|say"
    give = spec.get_child("give")
    assert give.usage(everyone) == "[-q] [-n <note>] {apple|apricot} [<amount>]"


def test_usage_with_children_and_executor():
    spec = (
        CommandBuilder()
        .add_child(CommandBuilder().executor(done), "list")
        .parameters(integer("page"))
        .executor(done)
        .build()
    )
    assert spec.usage(everyone) == "list|<page>"


def test_render_help():
    output = StringIO()
    console = Console(file=output, theme=parlance_theme, width=120, color_system=None)
    spec = build_tree()
    spec.render_help(everyone, "demo", console=console)
    text = output.getvalue()
    assert "usage: demo give|say|admin" in text
    assert "give, g" in text
    assert "Give an item." in text
    assert "admin" in text


def test_render_help_hides_forbidden_children():
    output = StringIO()
    console = Console(file=output, theme=parlance_theme, width=120, color_system=None)
    build_tree().render_help(nobody, console=console)
    assert "admin" not in output.getvalue()
