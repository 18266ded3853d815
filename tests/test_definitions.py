import pytest

from terminalai.definitions import (
    SKILL_NAMES,
    CommandRegistry,
    get_registry,
    load_command_definition,
    parse_command_conf,
)
from terminalai.errors import UnknownSkill
from terminalai.extractor import COMMON_PREFIXES


@pytest.mark.parametrize(
    "skill, words",
    [
        ("cp", ("copy", "cp")),
        ("grep", ("search", "grep")),
        ("find", ("find", "search")),
        ("ps", ("process", "ps")),
        ("resolve", ("package", "dependency")),
    ],
)
def test_each_skill_has_prompt_and_usage(skill, words):
    definition = load_command_definition(skill)
    assert definition.skill_name == skill
    assert definition.usage_text
    lowered = definition.system_prompt.lower()
    assert any(word in lowered for word in words)


def test_skill_prefixes_include_own_tool_and_auxiliaries():
    definition = get_registry().lookup("cp")
    assert definition.command_prefixes[0] == "cp"
    for prefix in COMMON_PREFIXES:
        assert prefix in definition.command_prefixes


def test_orchestrator_definition_uses_command_markers():
    definition = get_registry().lookup("tai")
    assert "COMMAND: " in definition.system_prompt


def test_lookup_unknown_skill():
    with pytest.raises(UnknownSkill) as excinfo:
        get_registry().lookup("unknown_command")
    assert "Unknown command: unknown_command" in str(excinfo.value)


def test_registry_is_read_only():
    registry = get_registry()
    assert sorted(registry.names()) == sorted(SKILL_NAMES)
    with pytest.raises(TypeError):
        registry.definitions["cp"] = None


def test_get_registry_is_cached():
    assert get_registry() is get_registry()


def test_parse_command_conf_sections():
    content = """
# Test Command Configuration

[SYSTEM_PROMPT]

This is the system prompt content.
It can have multiple lines.

[ARGUMENTS]

tool "<prompt>"

Examples:
  tool "do it"

[COMMANDS]
tool
  helper

[OTHER_SECTION]

This should be ignored.
"""
    system_prompt, usage, prefixes = parse_command_conf(content)
    assert system_prompt == "This is the system prompt content.\nIt can have multiple lines."
    assert usage == 'tool "<prompt>"\n\nExamples:\n  tool "do it"'
    assert prefixes == ["tool", "helper"]


def test_parse_command_conf_requires_system_prompt():
    with pytest.raises(ValueError):
        parse_command_conf("[ARGUMENTS]\nonly usage\n")


def test_custom_registry_lookup():
    definition = load_command_definition("ps")
    registry = CommandRegistry({"ps": definition})
    assert registry.lookup("ps") is definition
    assert "cp" not in registry
