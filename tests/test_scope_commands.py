"""
tests/test_scope_commands.py
Unit tests for src/agent/scope.py and src/agent/commands.py.
"""


def test_engineering_task_without_copy_ask_is_out_of_scope():
    from src.agent.scope import is_out_of_scope

    assert is_out_of_scope("fix bug in login flow", "") is True


def test_copy_ask_brings_engineering_task_back_in_scope():
    from src.agent.scope import is_out_of_scope

    assert is_out_of_scope("write copy for fix bug in login flow", "") is False


def test_scope_checks_description_too():
    from src.agent.scope import is_out_of_scope

    assert is_out_of_scope("Login work", "Please refactor the session module") is True
    assert is_out_of_scope("Login work", "Refactor the docs for the session module") is False


def test_plain_content_task_is_in_scope():
    from src.agent.scope import is_out_of_scope

    assert is_out_of_scope("Create LinkedIn post about X", "Announce the launch") is False


def test_copy_keywords_are_word_bounded():
    from src.agent.scope import is_out_of_scope

    # "contextual" and "texture" must not count as copywriting words.
    assert is_out_of_scope("Migrate contextual texture cache", "") is True


def test_is_agent_mentioned():
    from src.agent.commands import is_agent_mentioned

    assert is_agent_mentioned("@Agent show preferences") is True
    assert is_agent_mentioned("hey @ agent") is True
    assert is_agent_mentioned("looks good") is False


def test_parse_command_requires_mention():
    from src.agent.commands import parse_command

    assert parse_command("show preferences", agent_mentioned=False) is None


def test_parse_command_show_and_forget():
    from src.agent.commands import parse_command
    from src.agent.types import Command

    assert parse_command("@agent Show current preferences", True) is Command.SHOW_PREFERENCES
    assert parse_command("@agent show preferences please", True) is Command.SHOW_PREFERENCES
    assert parse_command("@agent forget all preferences", True) is Command.FORGET_PREFERENCES
    assert parse_command("@agent forget preferences", True) is Command.FORGET_PREFERENCES
    assert parse_command("@agent make it shorter", True) is None
