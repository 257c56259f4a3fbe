#!/usr/bin/env python3
"""
ELIZA - Main Entry Point
========================

This is the main entry point for the ELIZA responder.
It provides a command-line interface for talking to ELIZA
in various modes.

Usage:
    python main.py                    # Chat in the console
    python main.py --tui              # Start terminal UI
    python main.py --web              # Start web UI
    python main.py --test "Hello"     # Print replies and exit
    python main.py --help             # Show help
"""

import sys
import argparse
import importlib
import time
from pathlib import Path
from typing import List, Optional, TextIO

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from core.config import load_config, save_config, Config
from core.logging import setup_logging, get_logger
from core.exceptions import ElizaError
from services.conversation import Conversation, create_conversation

logger = get_logger("main")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="ELIZA - A Rogerian psychotherapist simulation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                       Chat in the console
  python main.py --language fr         Chat in French
  python main.py --tui                 Start terminal UI
  python main.py --web --port 9000     Start web UI on port 9000
  python main.py --test "I am tired"   Print ELIZA's reply and exit
        """
    )

    mode_group = parser.add_mutually_exclusive_group()
    mode_group.add_argument(
        "--web",
        action="store_true",
        help="Start web UI server"
    )
    mode_group.add_argument(
        "--tui",
        action="store_true",
        help="Start terminal UI"
    )
    mode_group.add_argument(
        "--test",
        nargs="+",
        metavar="MESSAGE",
        help="Send each MESSAGE as one turn of a single conversation and print the replies"
    )
    mode_group.add_argument(
        "--init-config",
        action="store_true",
        help="Write a default config.yaml to the configuration directory"
    )

    parser.add_argument(
        "--config",
        type=str,
        metavar="PATH",
        help="Path to configuration file"
    )
    parser.add_argument(
        "--language",
        type=str,
        help="Script language (us, fr)"
    )
    parser.add_argument(
        "--port",
        type=int,
        help="Port for web UI (default: from config, 8080)"
    )
    parser.add_argument(
        "--host",
        type=str,
        help="Host for web UI (default: from config, 127.0.0.1)"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode"
    )

    return parser.parse_args(argv)


def check_dependencies(web: bool = False, tui: bool = False) -> bool:
    """
    Check that the libraries the selected mode needs are installed.

    Args:
        web: Web UI requested
        tui: Terminal UI requested

    Returns:
        True if all dependencies are available
    """
    modules = {"yaml": "pyyaml"}
    if web:
        modules.update({"fastapi": "fastapi", "uvicorn": "uvicorn", "jinja2": "jinja2"})
    if tui:
        modules["textual"] = "textual"

    missing = []
    for module, package in modules.items():
        try:
            importlib.import_module(module)
        except ImportError:
            missing.append(package)

    if missing:
        print(f"Missing dependencies: {', '.join(missing)}", file=sys.stderr)
        print("Install with: pip install " + " ".join(missing), file=sys.stderr)
        return False

    return True


def run_console(
    config: Config,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None,
    crash_delay: float = 0.5
) -> None:
    """
    Run the interactive console conversation.

    Reads one line per turn until end of input, a quit word, or a
    parity error.
    """
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout

    conversation = create_conversation(
        config.engine.language,
        data_dir=config.engine.data_dir or None,
        default_reply=config.engine.default_reply,
    )
    messages = conversation.messages

    def say(line: str = "") -> None:
        stdout.write(line + "\n")
        stdout.flush()

    if config.ui.show_intro and messages.intro:
        say(messages.intro)
    say(f"ELIZA: {conversation.greet()}\n")

    prompt = f"{messages.prompt:<7}"
    while True:
        stdout.write(prompt)
        stdout.flush()

        line = stdin.readline()
        if not line:
            break

        text = line.strip()
        if not text:
            continue

        if conversation.is_quit(text):
            say(f"\nELIZA: {messages.goodbye}")
            break

        say(f"ELIZA: {conversation.respond(text)}\n")

        if conversation.has_parity_error():
            time.sleep(crash_delay)
            for crash_line in messages.crash:
                say(f"    {crash_line}")
            say()
            break


def run_test_messages(config: Config, texts: List[str], stdout: Optional[TextIO] = None) -> None:
    """Print the reply to each message, all in one conversation."""
    stdout = stdout or sys.stdout
    conversation: Conversation = create_conversation(
        config.engine.language,
        data_dir=config.engine.data_dir or None,
        default_reply=config.engine.default_reply,
    )

    for text in texts:
        reply = conversation.respond(text)
        stdout.write(f"You:   {text}\nELIZA: {reply}\n")
        if conversation.has_parity_error():
            break


def run_web_ui(config: Config, host: str, port: int, debug: bool) -> None:
    """Run the web UI server."""
    from ui.web.app import run_app

    print(f"\nStarting Web UI on http://{host}:{port}")
    print("Press Ctrl+C to stop\n")

    run_app(host=host, port=port, debug=debug, config=config)


def run_terminal_ui(config: Config) -> None:
    """Run the terminal UI."""
    from ui.terminal.app import run_tui

    run_tui(config=config)


def init_config(config: Config) -> None:
    """Write the current (default) configuration to disk."""
    save_config(config)
    print(f"✓ Configuration written to {Path(config.config_dir) / 'config.yaml'}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    if not check_dependencies(web=args.web, tui=args.tui):
        return 1

    try:
        config = load_config(args.config)

        if args.language:
            config.engine.language = args.language
        if args.debug:
            config.debug = True
        config.validate()

        # Console chat writes to stdout; keep log noise out of it
        # unless debugging.
        setup_logging(
            log_dir=config.logging.log_dir or None,
            log_level="DEBUG" if args.debug else config.logging.log_level,
            json_format=config.logging.json_format,
            console_output=args.debug or args.web
        )

        if args.web:
            mode = "web"
        elif args.tui:
            mode = "tui"
        elif args.test:
            mode = "test"
        elif args.init_config:
            mode = "init-config"
        else:
            mode = "console"
        logger.info(f"Starting {config.app_name} {config.version} "
                    f"({config.engine.language}, {mode} mode)")

        if args.web:
            run_web_ui(
                config,
                args.host or config.ui.web_host,
                args.port or config.ui.web_port,
                args.debug or config.ui.web_debug,
            )
        elif args.tui:
            run_terminal_ui(config)
        elif args.test:
            run_test_messages(config, args.test)
        elif args.init_config:
            init_config(config)
        else:
            run_console(config)

        return 0

    except ElizaError as e:
        print(f"\nError: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 0


if __name__ == "__main__":
    sys.exit(main())
