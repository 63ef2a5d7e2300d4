"""Tests for the CLI completer."""

from prompt_toolkit.document import Document

from cli.completer import PeerLinkCompleter


def _complete(completer, text):
    return [c.text for c in completer.get_completions(Document(text), None)]


def test_command_completion(tmp_path):
    completer = PeerLinkCompleter(tmp_path)
    assert _complete(completer, "s") == ["share", "search"]
    assert _complete(completer, "do") == ["download"]


def test_share_completes_local_files(tmp_path):
    (tmp_path / "notes.txt").write_text("n")
    (tmp_path / "report.pdf").write_text("r")
    (tmp_path / "docs").mkdir()
    completer = PeerLinkCompleter(tmp_path)

    assert _complete(completer, "share ") == ["docs/", "notes.txt", "report.pdf"]
    assert _complete(completer, "share no") == ["notes.txt"]


def test_share_skips_already_typed(tmp_path):
    (tmp_path / "notes.txt").write_text("n")
    (tmp_path / "report.pdf").write_text("r")
    completer = PeerLinkCompleter(tmp_path)

    assert _complete(completer, "share notes.txt ") == ["report.pdf"]


def test_share_completes_inside_directory(tmp_path):
    (tmp_path / "docs").mkdir()
    (tmp_path / "docs" / "a.txt").write_text("a")
    completer = PeerLinkCompleter(tmp_path)

    assert _complete(completer, "share docs/") == ["docs/a.txt"]


def test_no_file_completion_for_other_commands(tmp_path):
    (tmp_path / "notes.txt").write_text("n")
    completer = PeerLinkCompleter(tmp_path)
    assert _complete(completer, "download ") == []
