"""
Console Harness for Server Forms

Runs the command registry for a single player on stdin/stdout, without
the HTTP layer.

Usage:
    python main.py <player_name> [--op]
"""

import logging
import sys

from serverforms.bootstrap import ServerForms
from serverforms.utils.command_source import ConsoleCommandSource

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

EXIT_COMMANDS = {"quit", "exit", "stop"}


def print_separator(char="=", length=60):
    """Print a separator line"""
    print(char * length)


def main(argv=None):
    """Run console session"""
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        print("Usage: python main.py <player_name> [--op]")
        return 2

    player_name = argv[0]
    is_operator = "--op" in argv[1:]

    forms = ServerForms()
    if not forms.initialize():
        print("\nFailed to initialize. Check the log for details.")
        return 1

    identity = forms.identity_resolver.remember(player_name)
    source = ConsoleCommandSource(player_name, identity, is_operator=is_operator)

    print_separator()
    print(f"SERVER FORMS - CONSOLE ({player_name})")
    print_separator()
    print("Commands: /" + ", /".join(forms.commands.command_names()))
    print("Type 'quit', 'exit', or 'stop' to leave\n")

    try:
        while True:
            try:
                line = input("> ").strip()
            except EOFError:
                break

            if not line:
                continue
            if line.lower() in EXIT_COMMANDS:
                break

            # Bare text answers the current question, like chat input
            if not line.startswith("/") and forms.engine.active_session(identity) is not None:
                line = "/answer " + line

            forms.commands.dispatch(source, line)

    except KeyboardInterrupt:
        print("\n\nInterrupted by user (Ctrl+C)")

    finally:
        forms.shutdown()

    print_separator()
    print("Console session ended")
    print_separator()
    return 0


if __name__ == '__main__':
    sys.exit(main())
