from types import SimpleNamespace

import pytest
from prompt_toolkit.document import Document
from prompt_toolkit.validation import ValidationError

from parlance.command import CommandBuilder
from parlance.generic import integer
from parlance.result import CommandResult
from parlance.validators import CommandValidator


def done(source, context):
    return CommandResult.success()


@pytest.fixture
def command():
    admin = CommandBuilder().permission("admin").executor(done)
    give = CommandBuilder().parameters(integer("amount")).executor(done)
    return CommandBuilder().add_child(give, "give").add_child(admin, "admin").build()


@pytest.fixture
def validator(command):
    source = SimpleNamespace(has_permission=lambda permission: False)
    return CommandValidator(command, source, ignored_words=("help", "exit"))


@pytest.mark.asyncio
async def test_command_validator_accepts_valid_input(validator):
    await validator.validate_async(Document("give 5"))


def test_command_validator_accepts_empty_input(validator):
    validator.validate(Document(""))
    validator.validate(Document("   "))


def test_command_validator_rejects_invalid_input(validator):
    with pytest.raises(ValidationError) as excinfo:
        validator.validate(Document("give many"))
    assert excinfo.value.cursor_position == 5
    assert "many" in excinfo.value.message


def test_command_validator_clamps_cursor(validator):
    with pytest.raises(ValidationError) as excinfo:
        validator.validate(Document("give"))
    assert excinfo.value.cursor_position == 4


@pytest.mark.asyncio
async def test_command_validator_permission(validator):
    with pytest.raises(ValidationError) as excinfo:
        await validator.validate_async(Document("admin"))
    assert excinfo.value.cursor_position == 0


def test_command_validator_ignored_words(validator):
    validator.validate(Document("HELP give"))
    validator.validate(Document("exit"))
