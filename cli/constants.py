"""CLI constants and configuration."""

from prompt_toolkit.styles import Style

COMMANDS = ["register", "login", "share", "list", "search", "download", "peers", "logout", "clear", "exit", "help"]

STYLE = Style.from_dict(
    {
        "prompt": "#2EA44F bold",
        "command": "#0088ff bold",
    }
)

LEAF_GREEN = "\033[38;2;46;164;79m"
GREEN = "\033[32m"
RESET = "\033[0m"

LOGO = f"""{LEAF_GREEN}
 ██████╗ ███████╗███████╗██████╗ ██╗     ██╗███╗   ██╗██╗  ██╗
 ██╔══██╗██╔════╝██╔════╝██╔══██╗██║     ██║████╗  ██║██║ ██╔╝
 ██████╔╝█████╗  █████╗  ██████╔╝██║     ██║██╔██╗ ██║█████╔╝
 ██╔═══╝ ██╔══╝  ██╔══╝  ██╔══██╗██║     ██║██║╚██╗██║██╔═██╗
 ██║     ███████╗███████╗██║  ██║███████╗██║██║ ╚████║██║  ██╗
 ╚═╝     ╚══════╝╚══════╝╚═╝  ╚═╝╚══════╝╚═╝╚═╝  ╚═══╝╚═╝  ╚═╝
{RESET}"""

WELCOME_TITLE = "PeerLink CLI - Peer-to-peer File Sharing"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "peerlink> "
LOGGED_IN_PROMPT_TEXT = "peerlink({username})> "

HELP_TEXT = """Available commands:
  register <username> <password>      Create an account on the tracker
  login <username> <password>         Log in, publish the shared folder and start heartbeats
  share <path> [path ...]             Copy local files into the shared folder and republish
  list [owner]                        List files shared by live peers (optionally one owner)
  search <text> [owner]               Find files whose name contains text (case-sensitive)
  download <filename> [owner]         Fetch a file directly from a peer into the downloads folder
  peers                               List live peers
  logout                              Disconnect from the tracker
  clear                               Clear screen and redisplay welcome message
  help                                Show this help
  exit                                Log out and exit REPL

Examples:
  register alice mypassword123
  login alice mypassword123
  share ~/notes.txt report.pdf
  search report
  download report.pdf bob"""
