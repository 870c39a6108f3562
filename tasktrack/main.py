from __future__ import annotations

import argparse
import logging
import sys

from tasktrack.domain.errors import NotFoundOrUnauthorized, TaskTrackError, ValidationFailed
from tasktrack.domain.filters import TaskFilters
from tasktrack.infra.db import init_db
from tasktrack.infra.logging import setup_logging
from tasktrack.services.task_service import TaskService

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_NOT_FOUND = 2
EXIT_INVALID = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tasktrack")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("check", help="verify the database connection")

    tasks = commands.add_parser("tasks", help="list a user's tasks")
    tasks.add_argument("user_id", type=int)
    tasks.add_argument("--status", choices=["completed", "incomplete"], default=None)

    points = commands.add_parser("points", help="show a user's reward balance")
    points.add_argument("user_id", type=int)
    return parser


def _format_task(task) -> str:
    slots = len(task.time_slots)
    habit = " habit" if task.is_habit else ""
    deadline = task.deadline.isoformat(sep=" ") if task.deadline else "-"
    return (
        f"#{task.id} [{task.state}] {task.title} "
        f"({task.priority}, due {deadline}, {slots} slots{habit})"
    )


def run(argv: list[str] | None = None, service: TaskService | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        if args.command == "check":
            init_db()
            print("database ok")
            return EXIT_OK

        service = service or TaskService()
        if args.command == "tasks":
            filters = TaskFilters.from_query(args.status)
            for task in service.list_tasks(args.user_id, filters):
                print(_format_task(task))
        elif args.command == "points":
            print(service.get_points(args.user_id))
    except NotFoundOrUnauthorized as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_NOT_FOUND
    except ValidationFailed as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_INVALID
    except TaskTrackError as exc:
        logger.error("Command %s failed: %s", args.command, exc)
        return EXIT_FAILURE
    return EXIT_OK


def main() -> None:
    setup_logging()
    try:
        sys.exit(run())
    except Exception as exc:  # noqa: BLE001
        logger.exception("Unhandled error")
        print(f"error: {exc}", file=sys.stderr)
        sys.exit(EXIT_FAILURE)


if __name__ == "__main__":
    main()
