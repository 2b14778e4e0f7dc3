"""
Interactive ATM shell

Reads one command per line from stdin and prints the result. With --serve
it starts the HTTP API instead.
"""

import argparse
import sys
from typing import List, Optional, TextIO

from .commands import ATMCommands
from .config import get_config
from .logging_config import setup_logging


EXIT_COMMANDS = {"exit", "quit"}

BANNER = "ATM ready. Type 'help' for a list of commands, 'exit' to quit."


def build_parser() -> argparse.ArgumentParser:
    config = get_config()
    parser = argparse.ArgumentParser(prog="atm-ledger", description="ATM ledger shell")
    parser.add_argument("--log-level", default=config.log_level,
                        help="DEBUG, INFO, WARNING, ERROR or CRITICAL")
    parser.add_argument("--log-format", default=config.log_format, choices=["json", "text"])
    parser.add_argument("--serve", action="store_true", help="Run the HTTP API instead of the shell")
    parser.add_argument("--host", default=config.api_host)
    parser.add_argument("--port", type=int, default=config.api_port)
    return parser


def run_shell(commands: ATMCommands, stdin: Optional[TextIO] = None,
              stdout: Optional[TextIO] = None, prompt: Optional[str] = None) -> None:
    """Read-eval-print loop until exit, quit or end of input"""
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    if prompt is None:
        prompt = get_config().prompt

    print(BANNER, file=stdout)
    while True:
        stdout.write(prompt)
        stdout.flush()
        line = stdin.readline()
        if not line:
            print(file=stdout)
            break
        line = line.strip()
        if line.lower() in EXIT_COMMANDS:
            break
        output = commands.execute(line)
        if output:
            print(output, file=stdout)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = get_config()
    setup_logging(args.log_level, args.log_format, config.log_file)

    if args.serve:
        from .api import run_server
        run_server(host=args.host, port=args.port)
        return 0

    try:
        run_shell(ATMCommands())
    except KeyboardInterrupt:
        print()
    return 0
