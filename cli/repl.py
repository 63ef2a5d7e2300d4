"""REPL with prompt_toolkit for user interaction."""

import os
import sys

from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.patch_stdout import patch_stdout

from cli.commands import (
    get_node,
    handle_download,
    handle_list,
    handle_login,
    handle_logout,
    handle_peers,
    handle_register,
    handle_search,
    handle_share,
    shutdown_node,
)
from cli.completer import PeerLinkCompleter
from cli.constants import (
    HELP_TEXT,
    LOGGED_IN_PROMPT_TEXT,
    LOGO,
    PROMPT_TEXT,
    STYLE,
    WELCOME_HELP,
    WELCOME_TITLE,
)
from cli.models import (
    DownloadCommand,
    ListCommand,
    LoginCommand,
    LogoutCommand,
    PeersCommand,
    RegisterCommand,
    SearchCommand,
    ShareCommand,
)
from cli.parser import ParseError, parse_command


def clear_screen() -> None:
    """Clear the terminal screen (cross-platform)."""
    if sys.platform == "win32":
        os.system("cls")
    else:
        os.system("clear")


def show_welcome() -> None:
    print(LOGO)
    print(WELCOME_TITLE)
    print(WELCOME_HELP)


async def dispatch_command(cmd_obj) -> str:
    """Dispatch parsed command to appropriate handler."""
    if isinstance(cmd_obj, RegisterCommand):
        return await handle_register(cmd_obj)
    elif isinstance(cmd_obj, LoginCommand):
        return await handle_login(cmd_obj)
    elif isinstance(cmd_obj, ShareCommand):
        return await handle_share(cmd_obj)
    elif isinstance(cmd_obj, ListCommand):
        return await handle_list(cmd_obj)
    elif isinstance(cmd_obj, SearchCommand):
        return await handle_search(cmd_obj)
    elif isinstance(cmd_obj, DownloadCommand):
        return await handle_download(cmd_obj)
    elif isinstance(cmd_obj, PeersCommand):
        return await handle_peers(cmd_obj)
    elif isinstance(cmd_obj, LogoutCommand):
        return await handle_logout(cmd_obj)
    else:
        return f"Unknown command type: {type(cmd_obj)}"


def _prompt_text() -> str:
    node = get_node()
    if node.logged_in:
        return LOGGED_IN_PROMPT_TEXT.format(username=node.username)
    return PROMPT_TEXT


async def repl_loop() -> None:
    """
    Start interactive REPL with prompt_toolkit.

    The prompt is awaited inside the event loop, so the transfer listener
    and heartbeats keep running while the user types.
    """
    history = InMemoryHistory()
    session: PromptSession = PromptSession(
        completer=PeerLinkCompleter(), history=history, style=STYLE
    )

    clear_screen()
    show_welcome()

    try:
        while True:
            try:
                with patch_stdout():
                    user_input = await session.prompt_async([("class:prompt", _prompt_text())])

                command = user_input.strip()
                if not command:
                    continue

                if command == "exit":
                    print("Goodbye!")
                    break

                if command == "help":
                    print(HELP_TEXT)
                    continue

                if command == "clear":
                    clear_screen()
                    show_welcome()
                    continue

                cmd_obj = parse_command(user_input)
                result = await dispatch_command(cmd_obj)
                print(result)

            except ParseError as e:
                print(f"Error: {e}")
            except KeyboardInterrupt:
                continue
            except EOFError:
                print("\nGoodbye!")
                break
    finally:
        await shutdown_node()
