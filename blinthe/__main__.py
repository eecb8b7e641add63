"""Command-line entry point for the Blinthe dashboard core.

Usage:
    python -m blinthe [options] <command> [args]

Commands:
    login USERNAME        Sign in (prompts for the password)
    logout                Sign out and forget the stored session
    status                Show the signed-in user
    add PROMPT            Create a widget from a request
    list                  List widgets
    show WIDGET_ID        Print a widget as JSON
    remove WIDGET_ID      Delete a widget

Options:
    --data-file PATH      Storage file (default: BLINTHE_DATA_FILE or ~/.blinthe/storage.json)
    --provider NAME       perplexity, openai or anthropic (default: BLINTHE_LLM_PROVIDER or perplexity)
    --log-dir DIR         Also write logs to DIR
"""

import argparse
import asyncio
import getpass
import sys

from .config import DashboardConfig
from .errors import BlintheError, ValidationError
from .logging import get_logger, setup_logging
from .vault import EncryptedStore, FileStorage, SessionManager
from .widgets import LLMClient, LLMProvider, WidgetRepository, WidgetService

logger = get_logger("main")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="blinthe", description="Blinthe encrypted dashboard")
    parser.add_argument("--data-file", default="", help="Storage file path")
    parser.add_argument(
        "--provider",
        default="",
        choices=[p.value for p in LLMProvider],
        help="Default text-generation provider",
    )
    parser.add_argument("--log-dir", default="", help="Directory for log files")

    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="Sign in")
    login.add_argument("username")

    sub.add_parser("logout", help="Sign out")
    sub.add_parser("status", help="Show session status")

    add = sub.add_parser("add", help="Create a widget from a request")
    add.add_argument("prompt")
    add.add_argument("--api-key", default=None, help="API key for the provider")

    sub.add_parser("list", help="List widgets")

    show = sub.add_parser("show", help="Print a widget as JSON")
    show.add_argument("widget_id")

    remove = sub.add_parser("remove", help="Delete a widget")
    remove.add_argument("widget_id")

    return parser


def parse_args(argv: list[str] | None = None) -> tuple[argparse.Namespace, DashboardConfig]:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = DashboardConfig(
            data_file=args.data_file,
            default_provider=args.provider,
            log_dir=args.log_dir,
        )
    except ValidationError as e:
        parser.error(str(e))

    # --provider is checked by argparse; BLINTHE_LLM_PROVIDER is not
    providers = [p.value for p in LLMProvider]
    if config.default_provider not in providers:
        parser.error(
            f"BLINTHE_LLM_PROVIDER must be one of {', '.join(providers)}, "
            f"got {config.default_provider!r}"
        )
    return args, config


async def run(args: argparse.Namespace, config: DashboardConfig) -> int:
    logger.debug("Running %s against %s", args.command, config.data_path)
    storage = FileStorage(config.data_path)
    sessions = SessionManager(storage, timeout=config.session_timeout)

    if args.command == "login":
        password = getpass.getpass("Password: ")
        result = await sessions.authenticate(args.username, password)
        sessions.teardown()
        if not result.success:
            print(f"Login failed: {result.error}", file=sys.stderr)
            return 1
        print(f"Signed in as {args.username}")
        return 0

    if args.command == "logout":
        sessions.logout()
        print("Signed out")
        return 0

    if not sessions.init():
        print("Not signed in. Run: blinthe login USERNAME", file=sys.stderr)
        return 1

    try:
        if args.command == "status":
            session = sessions.session
            print(f"Signed in as {session.username} ({sessions.seconds_remaining():.0f}s left)")
            return 0

        store = EncryptedStore(storage, namespace=config.namespace)
        repository = WidgetRepository(store, getpass.getpass("Password: "))
        await repository.load_widgets()

        if args.command == "add":
            llm = LLMClient()
            try:
                service = WidgetService(
                    repository,
                    llm,
                    api_keys=config.api_keys,
                    default_provider=LLMProvider(config.default_provider),
                )
                widget = await service.create_from_prompt(args.prompt, api_key=args.api_key)
            finally:
                await llm.close()
            print(f"{widget.id}  {widget.title}")

        elif args.command == "list":
            if not repository.widgets:
                print("No widgets")
            for widget in repository.widgets:
                print(f"{widget.id}  {widget.display_logic.type:<8} {widget.title}")

        elif args.command == "show":
            exported = repository.export_widget(args.widget_id)
            if exported is None:
                print(f"Widget not found: {args.widget_id}", file=sys.stderr)
                return 1
            print(exported)

        elif args.command == "remove":
            await repository.delete_widget(args.widget_id)
            print(f"Removed {args.widget_id}")
    finally:
        sessions.teardown()

    return 0


def main(argv: list[str] | None = None) -> int:
    args, config = parse_args(argv)
    if config.log_dir:
        setup_logging(config.log_dir)

    try:
        return asyncio.run(run(args, config))
    except BlintheError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
