"""Command parser for CLI input."""

import shlex

from cli.models import (
    CommandRequest,
    DownloadCommand,
    ListCommand,
    LoginCommand,
    LogoutCommand,
    PeersCommand,
    RegisterCommand,
    SearchCommand,
    ShareCommand,
)


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


def parse_command(input_line: str) -> CommandRequest:
    """Parse user input into a CommandRequest object.

    Args:
        input_line: Raw user input from REPL

    Returns:
        CommandRequest object

    Raises:
        ParseError: If command syntax is invalid
    """
    if not input_line.strip():
        raise ParseError("Empty command")

    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    if not tokens:
        raise ParseError("Empty command")

    command_name = tokens[0]

    if command_name == "register":
        return _parse_register(tokens[1:])
    elif command_name == "login":
        return _parse_login(tokens[1:])
    elif command_name == "share":
        return _parse_share(tokens[1:])
    elif command_name == "list":
        return _parse_list(tokens[1:])
    elif command_name == "search":
        return _parse_search(tokens[1:])
    elif command_name == "download":
        return _parse_download(tokens[1:])
    elif command_name == "peers":
        return _parse_no_args("peers", tokens[1:], PeersCommand)
    elif command_name == "logout":
        return _parse_no_args("logout", tokens[1:], LogoutCommand)
    else:
        raise ParseError(f"Unknown command: {command_name}")


def _parse_register(args: list[str]) -> RegisterCommand:
    """Parse 'register <username> <password>' command."""
    if len(args) != 2:
        raise ParseError("register requires exactly 2 arguments: <username> <password>")

    username, password = args
    return RegisterCommand(username=username, password=password)


def _parse_login(args: list[str]) -> LoginCommand:
    """Parse 'login <username> <password>' command."""
    if len(args) != 2:
        raise ParseError("login requires exactly 2 arguments: <username> <password>")

    username, password = args
    return LoginCommand(username=username, password=password)


def _parse_share(args: list[str]) -> ShareCommand:
    """Parse 'share <path> [path ...]' command."""
    if not args:
        raise ParseError("share requires at least one file path")

    return ShareCommand(paths=tuple(args))


def _parse_list(args: list[str]) -> ListCommand:
    """Parse 'list [owner]' command."""
    if len(args) > 1:
        raise ParseError("list takes at most 1 argument: [owner]")

    return ListCommand(owner=args[0] if args else "")


def _parse_search(args: list[str]) -> SearchCommand:
    """Parse 'search <text> [owner]' command."""
    if not args or len(args) > 2:
        raise ParseError("search requires 1 or 2 arguments: <text> [owner]")

    text = args[0]
    owner = args[1] if len(args) > 1 else ""
    return SearchCommand(text=text, owner=owner)


def _parse_download(args: list[str]) -> DownloadCommand:
    """Parse 'download <filename> [owner]' command."""
    if len(args) < 1 or len(args) > 2:
        raise ParseError("download requires 1 or 2 arguments: <filename> [owner]")

    filename = args[0]
    owner = args[1] if len(args) > 1 else None

    return DownloadCommand(filename=filename, owner=owner)


def _parse_no_args(name: str, args: list[str], command_type):
    if args:
        raise ParseError(f"{name} takes no arguments")
    return command_type()
