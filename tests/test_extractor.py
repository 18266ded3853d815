from terminalai.definitions import get_registry
from terminalai.extractor import (
    DEFAULT_PREFIXES,
    extract_commands,
    is_command_line,
    parse_orchestration_response,
)


def test_single_command_surrounded_by_prose():
    response = "Sure! Here is what you need:\n\n   cp *.txt backup/   \n\nThis copies every text file."
    assert extract_commands(response) == ["cp *.txt backup/"]


def test_order_is_preserved():
    prefixes = get_registry().lookup("cp").command_prefixes
    response = "mkdir -p backup\ncp *.txt backup/"
    assert extract_commands(response, prefixes) == ["mkdir -p backup", "cp *.txt backup/"]


def test_markdown_fences_and_numbering_are_dropped():
    response = "```bash\ngrep -rn TODO src/\n```\n1. grep -c foo file"
    assert extract_commands(response) == ["grep -rn TODO src/"]


def test_no_commands_gives_empty_list():
    assert extract_commands("I am not sure what you mean.") == []
    assert extract_commands("") == []


def test_duplicates_are_kept():
    response = "ps aux\nps aux"
    assert extract_commands(response) == ["ps aux", "ps aux"]


def test_extraction_is_idempotent():
    response = "Run these:\nmkdir -p out\n  find . -name '*.py'\nthen\npip install rich\nps"
    first = extract_commands(response)
    assert extract_commands("\n".join(first)) == first


def test_prefix_needs_word_boundary():
    assert not is_command_line("cpio -o", DEFAULT_PREFIXES)
    assert is_command_line("ps", DEFAULT_PREFIXES)
    assert is_command_line("python -m pip install httpx", DEFAULT_PREFIXES)


def test_skill_prefixes_limit_vocabulary():
    prefixes = get_registry().lookup("find").command_prefixes
    response = "find . -type f -empty\ncp a b"
    assert extract_commands(response, prefixes) == ["find . -type f -empty"]


def test_orchestration_markers():
    response = (
        "Plan:\n"
        "COMMAND: mkdir -p backup_python\n"
        "COMMAND:    \n"
        "COMMAND: rm -rf /\n"
        "  COMMAND: grep -r \"TODO\" backup_python/\n"
        "mkdir ignored"
    )
    assert parse_orchestration_response(response) == [
        "mkdir -p backup_python",
        'grep -r "TODO" backup_python/',
    ]
