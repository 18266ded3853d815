import pytest

from terminalai.state import detect_state_error, suggest_followup


@pytest.mark.parametrize(
    "stderr, exit_code, expected",
    [
        ("bash: rsync: command not found", 127, "not installed"),
        ("", 127, "not installed"),
        ("cp: cannot stat 'a.txt': No such file or directory", 1, "path does not exist"),
        ("find: '/root': Permission denied", 1, "Permission denied"),
        ("cp: -r not specified; omitting directory 'src'", 1, "Add -r"),
        ("ERROR: No matching distribution found for reqests==1.0", 1, "not found"),
        ("ps: illegal option -- e", 1, "does not support"),
    ],
)
def test_detect_state_error(stderr, exit_code, expected):
    assert expected in detect_state_error(stderr, exit_code)


def test_unknown_error():
    assert detect_state_error("something odd happened", 1) is None


def test_suggest_followup():
    assert suggest_followup("cp src dst", "omitting directory 'src'") == ["cp -r src dst"]
    assert suggest_followup("rsync -a a b", "rsync: command not found") == ["command -v rsync"]
    assert suggest_followup("ls", "") == []
