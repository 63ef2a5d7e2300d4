"""Custom completer for PeerLink CLI with local file autocompletion."""

from pathlib import Path
from typing import Iterable

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from cli.constants import COMMANDS


class PeerLinkCompleter(Completer):
    """
    Custom completer that provides:
    - Command name completion for the first token
    - Local file path completion for the 'share' command
    """

    def __init__(self, base_dir: Path | None = None):
        self.base_dir = base_dir

    def get_completions(
        self, document: Document, complete_event
    ) -> Iterable[Completion]:
        text = document.text_before_cursor
        tokens = text.split()

        is_typing_new_token = text.endswith(" ") or not tokens

        if not tokens or (len(tokens) == 1 and not is_typing_new_token):
            yield from self._complete_commands(tokens[0] if tokens else "")
            return

        command = tokens[0].lower()
        if command != "share":
            return

        current_word = "" if is_typing_new_token else tokens[-1]
        already_typed = set(tokens[1:])
        if not is_typing_new_token:
            already_typed.discard(current_word)

        yield from self._complete_local_files(current_word, already_typed)

    def _complete_commands(self, partial: str) -> Iterable[Completion]:
        """Complete command names matching the partial input."""
        partial_lower = partial.lower()
        for cmd in COMMANDS:
            if cmd.startswith(partial_lower):
                yield Completion(cmd, start_position=-len(partial))

    def _complete_local_files(self, partial: str, exclude: set) -> Iterable[Completion]:
        """Complete regular files in the directory named by the partial path."""
        base = self.base_dir or Path.cwd()
        directory, _, prefix = partial.rpartition("/")
        search_dir = base / directory if directory else base

        if not search_dir.is_dir():
            return

        for item in sorted(search_dir.iterdir()):
            if not item.name.startswith(prefix):
                continue
            candidate = f"{directory}/{item.name}" if directory else item.name
            if item.is_dir():
                yield Completion(candidate + "/", start_position=-len(partial))
            elif item.is_file() and candidate not in exclude:
                yield Completion(candidate, start_position=-len(partial))
