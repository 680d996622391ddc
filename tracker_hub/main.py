"""Command line entry point for Tracker Hub."""

import argparse
import asyncio
import json
import os
import sys

from .config import get_settings
from .models.tracker import RunTrigger
from .trackers.service import TrackerService, create_tracker_service
from .utils.errors import TrackerHubError, format_exception
from .utils.logging import configure_logging, get_logger

logger = get_logger(__name__)

API_KEY_FLAGS = {
    "firecrawl": "FIRECRAWL__API_KEY",
    "exa": "EXA__API_KEY",
    "jina": "JINA__API_KEY",
    "llm": "LLM__API_KEY",
}

STORAGE_NOTE = (
    "Trackers live in process memory unless STORAGE__BACKEND=supabase is set; "
    "without it, use `create --run` to create and run in one invocation."
)

# Commands that read trackers saved by an earlier invocation
STORED_COMMANDS = {"run", "show", "trigger", "list"}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="tracker-hub",
        description="Create and run content trackers",
        epilog=STORAGE_NOTE,
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level",
    )

    # Add API key arguments for each external service
    for service, env_var in API_KEY_FLAGS.items():
        parser.add_argument(
            f"--{service}-api-key",
            help=f"API key for {service} (overrides {env_var})",
        )

    commands = parser.add_subparsers(dest="command", required=True)

    create = commands.add_parser("create", help="Create a tracker from a prompt")
    create.add_argument("prompt", help="What to track, in plain language")
    create.add_argument("--name", help="Tracker name (derived from the prompt)")
    create.add_argument("--description", help="Tracker description")
    create.add_argument("--owner", help="Owner id")
    create.add_argument("--schedule", help="Cron schedule for the scheduler")
    create.add_argument(
        "--private", action="store_true", help="Hide the tracker from the public list"
    )
    create.add_argument(
        "--run", action="store_true", help="Run the tracker right after creating it"
    )

    run = commands.add_parser(
        "run", help="Run a tracker now", description=STORAGE_NOTE
    )
    run.add_argument("tracker_id")

    show = commands.add_parser(
        "show", help="Show a tracker with its latest results", description=STORAGE_NOTE
    )
    show.add_argument("tracker_id")
    show.add_argument("--viewer", help="Viewer id, needed for private trackers")

    trigger = commands.add_parser(
        "trigger", help="Deliver a scheduler trigger", description=STORAGE_NOTE
    )
    trigger.add_argument("tracker_id")
    trigger.add_argument("--reason", default="schedule", help="Trigger reason")

    commands.add_parser("list", help="List public trackers", description=STORAGE_NOTE)

    return parser.parse_args(argv)


def apply_overrides(args: argparse.Namespace) -> None:
    """Export command-line overrides as environment variables for settings."""
    if args.log_level:
        os.environ["LOG_LEVEL"] = args.log_level

    for service, env_var in API_KEY_FLAGS.items():
        api_key = getattr(args, f"{service}_api_key", None)
        if api_key:
            os.environ[env_var] = api_key

    get_settings.cache_clear()


async def execute(service: TrackerService, args: argparse.Namespace) -> dict:
    """Run one CLI command and return its JSON-serializable output."""
    if args.command == "create":
        tracker = await service.create_tracker(
            args.prompt,
            name=args.name,
            description=args.description,
            is_public=not args.private,
            owner_id=args.owner,
            schedule=args.schedule,
        )
        output = {"tracker": tracker.model_dump(mode="json")}
        if args.run:
            outcome = await service.run_tracker(tracker.id)
            output.update(outcome.model_dump(mode="json"))
        return output

    if args.command == "run":
        outcome = await service.run_tracker(args.tracker_id)
        return outcome.model_dump(mode="json")

    if args.command == "trigger":
        outcome = await service.handle_trigger(
            RunTrigger(tracker_id=args.tracker_id, reason=args.reason)
        )
        return outcome.model_dump(mode="json")

    if args.command == "show":
        feed = await service.get_tracker_with_results(
            args.tracker_id, viewer_id=args.viewer
        )
        return feed.model_dump(mode="json")

    if args.command == "list":
        trackers = await service.list_public_trackers()
        return {"trackers": [tracker.model_dump(mode="json") for tracker in trackers]}

    raise ValueError(f"Unknown command: {args.command}")


async def run_command(args: argparse.Namespace) -> int:
    settings = get_settings()
    if args.command in STORED_COMMANDS and settings.storage.backend == "memory":
        logger.warning(
            f"{args.command}: in-memory storage starts empty. {STORAGE_NOTE}"
        )

    service = None
    try:
        service = create_tracker_service(settings)
        output = await execute(service, args)
    except TrackerHubError as e:
        logger.error(f"{args.command} failed: {e}")
        print(json.dumps({"error": format_exception(e)}, indent=2))
        return 1
    finally:
        if service is not None:
            await service.close()

    print(json.dumps(output, indent=2))
    run = output.get("run") or {}
    return 1 if run.get("status") == "failed" else 0


def main(argv: list[str] | None = None) -> int:
    """Run the tracker-hub command line."""
    args = parse_args(argv)
    apply_overrides(args)

    configure_logging(get_settings().log_level)
    return asyncio.run(run_command(args))


if __name__ == "__main__":
    sys.exit(main())
