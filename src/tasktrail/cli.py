"""CLI commands for TaskTrail."""

import argparse
import asyncio
import getpass
import json
import logging
import sys

from tasktrail.config import load_config
from tasktrail.context import AppContext
from tasktrail.errors import TaskTrailError, ValidationError
from tasktrail.logging_setup import setup_logging
from tasktrail.models import Task, TaskPriority, TaskStatus, User
from tasktrail.utils import parse_task_title

logger = logging.getLogger(__name__)

SESSION_COMMANDS = ("login", "signup")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="tasktrail",
        description="TaskTrail - a task tracker for the terminal",
    )
    subparsers = parser.add_subparsers(dest="command")

    statuses = [s.value for s in TaskStatus]
    priorities = [p.value for p in TaskPriority]

    # ls command
    ls_parser = subparsers.add_parser("ls", help="List tasks")
    ls_parser.add_argument("--status", choices=statuses, help="Only tasks with this status")
    ls_parser.add_argument("--priority", choices=priorities, help="Only tasks with this priority")
    ls_parser.add_argument("--category", help="Only tasks in this category")
    ls_parser.add_argument("--search", help="Text contained in title or description")
    ls_parser.add_argument("--page", type=int, default=1, help="Page number (default: 1)")
    ls_parser.add_argument("--limit", type=int, help="Tasks per page")
    ls_parser.add_argument(
        "--json", action="store_true", dest="json_output", help="Output as JSON"
    )

    # add command
    add_parser = subparsers.add_parser("add", help="Create a task")
    add_parser.add_argument("title", help="Task title; a trailing #Category sets the category")
    add_parser.add_argument("--description", default="", help="Task description")
    add_parser.add_argument("--status", choices=statuses, help="Initial status")
    add_parser.add_argument("--priority", choices=priorities, help="Priority")
    add_parser.add_argument("--category", help="Category (overrides #Category)")
    add_parser.add_argument("--due", help="Due date (YYYY-MM-DD)")

    # edit command
    edit_parser = subparsers.add_parser("edit", help="Edit a task")
    edit_parser.add_argument(
        "--id", type=int, required=True, dest="task_id", help="Task ID to edit"
    )
    edit_parser.add_argument("--name", type=str, help="New title for the task")
    edit_parser.add_argument("--description", type=str, help="New description")
    edit_parser.add_argument("--category", type=str, help="New category")
    edit_parser.add_argument("--status", choices=statuses, help="New status")
    edit_parser.add_argument("--priority", choices=priorities, help="New priority")
    edit_parser.add_argument("--due", help="New due date (YYYY-MM-DD, empty to clear)")

    # mark command
    mark_parser = subparsers.add_parser("mark", help="Mark a task complete/incomplete")
    mark_parser.add_argument(
        "--id", type=int, required=True, dest="task_id", help="Task ID to mark"
    )
    mark_group = mark_parser.add_mutually_exclusive_group(required=True)
    mark_group.add_argument(
        "--complete", action="store_true", help="Mark task as completed"
    )
    mark_group.add_argument(
        "--incomplete", action="store_true", help="Mark task as not completed"
    )

    # rm command
    rm_parser = subparsers.add_parser("rm", help="Delete a task and its tags")
    rm_parser.add_argument(
        "--id", type=int, required=True, dest="task_id", help="Task ID to delete"
    )
    rm_parser.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")

    # tag commands
    tags_parser = subparsers.add_parser("tags", help="List the tags of a task")
    tags_parser.add_argument("--id", type=int, required=True, dest="task_id", help="Task ID")

    tag_add_parser = subparsers.add_parser("tag-add", help="Attach a tag to a task")
    tag_add_parser.add_argument("--id", type=int, required=True, dest="task_id", help="Task ID")
    tag_add_parser.add_argument("name", help="Tag name")
    tag_add_parser.add_argument("--color", default="gray", help="Tag color (default: gray)")

    tag_rm_parser = subparsers.add_parser("tag-rm", help="Remove a tag")
    tag_rm_parser.add_argument(
        "--tag-id", type=int, required=True, dest="tag_id", help="Tag ID to remove"
    )

    # session commands
    login_parser = subparsers.add_parser("login", help="Sign in")
    login_parser.add_argument("--email", required=True, help="Account email")
    login_parser.add_argument("--password", help="Password (prompted if omitted)")

    signup_parser = subparsers.add_parser("signup", help="Create an account")
    signup_parser.add_argument("--email", required=True, help="Account email")
    signup_parser.add_argument("--password", help="Password (prompted if omitted)")
    signup_parser.add_argument("--first-name", default="", dest="first_name")
    signup_parser.add_argument("--last-name", default="", dest="last_name")

    subparsers.add_parser("logout", help="Sign out")

    return parser


def task_to_json(task: Task) -> dict:
    """Serialize a task for --json output."""
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "status": task.status.value,
        "priority": task.priority.value,
        "category": task.category,
        "due_date": task.due_date.isoformat() if task.due_date else None,
        "completed": task.completed,
        "created_at": task.created_at.isoformat() if task.created_at else None,
        "updated_at": task.updated_at.isoformat() if task.updated_at else None,
    }


def task_form_data(task: Task) -> dict:
    """Form values for an existing task, as the edit form would submit them."""
    return {
        "title": task.title,
        "description": task.description,
        "status": task.status.value,
        "priority": task.priority.value,
        "category": task.category,
        "due_date": task.due_date.isoformat() if task.due_date else "",
        "completed": task.completed,
    }


def print_validation_errors(error: ValidationError) -> None:
    for field_name, message in error.errors.items():
        print(f"Error: {field_name}: {message}", file=sys.stderr)


def cmd_ls(ctx: AppContext, args: argparse.Namespace) -> int:
    """List one page of tasks."""
    store = ctx.task_store
    store.set_filters(
        status=args.status or "all",
        priority=args.priority or "all",
        category=args.category or "all",
        search_query=args.search or "",
    )
    changes = {"page": max(args.page, 1)}
    if args.limit is not None and args.limit > 0:
        changes["limit"] = args.limit
    store.set_pagination(**changes)

    asyncio.run(ctx.dashboard.load_tasks())
    if store.error:
        print(f"Error: {store.error}", file=sys.stderr)
        return 1

    tasks = store.tasks
    pagination = store.pagination
    if args.json_output:
        output = {
            "tasks": [task_to_json(t) for t in tasks],
            "page": pagination.page,
            "limit": pagination.limit,
            "total": pagination.total,
        }
        print(json.dumps(output, indent=2))
        return 0

    # Table output
    print(f"{'ID':<5} {'DONE':<5} {'STATUS':<12} {'PRIORITY':<9} {'CATEGORY':<12} {'DUE':<11} TITLE")
    for task in tasks:
        category = task.category if task.category else "-"
        # Truncate category if too long
        if len(category) > 10:
            category = category[:9] + "…"
        due = task.due_date.isoformat() if task.due_date else "-"
        done = "x" if task.completed else ""
        print(
            f"{task.id:<5} {done:<5} {task.status.value:<12} {task.priority.value:<9} "
            f"{category:<12} {due:<11} {task.title}"
        )
    print(f"Page {pagination.page} of {pagination.page_count} ({pagination.total} tasks)")
    return 0


def cmd_add(ctx: AppContext, args: argparse.Namespace) -> int:
    """Create a task from quick-add syntax and options."""
    title, explicit_category = parse_task_title(args.title)
    data = {
        "title": title,
        "description": args.description,
        "status": args.status,
        "priority": args.priority,
        "category": args.category or explicit_category,
        "due_date": args.due or "",
    }
    try:
        task = asyncio.run(ctx.dashboard.submit(data))
    except ValidationError as e:
        print_validation_errors(e)
        return 1
    print(f"Created task {task.id}.")
    return 0


def cmd_edit(ctx: AppContext, args: argparse.Namespace) -> int:
    """Edit a task's fields, keeping the ones not given."""
    overrides = {
        "title": args.name,
        "description": args.description,
        "category": args.category,
        "status": args.status,
        "priority": args.priority,
        "due_date": args.due,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if not overrides:
        print(
            "Error: At least one of --name, --description, --category, --status, "
            "--priority or --due is required.",
            file=sys.stderr,
        )
        return 1

    async def edit() -> Task:
        task = await ctx.gateway.get_task(args.task_id)
        data = task_form_data(task)
        data.update(overrides)
        return await ctx.dashboard.submit(data, editing=task)

    try:
        asyncio.run(edit())
    except ValidationError as e:
        print_validation_errors(e)
        return 1
    print(f"Updated task {args.task_id}.")
    return 0


def cmd_mark(ctx: AppContext, args: argparse.Namespace) -> int:
    """Mark a task as complete or incomplete."""
    completed = bool(args.complete)
    asyncio.run(ctx.gateway.update_task(args.task_id, {"completed": completed}))
    status_word = "completed" if completed else "not completed"
    print(f"Marked task {args.task_id} as {status_word}.")
    return 0


def cmd_rm(ctx: AppContext, args: argparse.Namespace) -> int:
    """Delete a task after confirmation."""

    async def confirm() -> bool:
        if args.yes:
            return True
        answer = await asyncio.to_thread(input, f"Delete task {args.task_id}? [y/N] ")
        return answer.strip().lower() in ("y", "yes")

    deleted = asyncio.run(ctx.dashboard.delete_task(args.task_id, confirm))
    if ctx.task_store.error:
        print(f"Error: {ctx.task_store.error}", file=sys.stderr)
        return 1
    if deleted:
        print(f"Deleted task {args.task_id}.")
    else:
        print("Cancelled.")
    return 0


def cmd_tags(ctx: AppContext, args: argparse.Namespace) -> int:
    tags = asyncio.run(ctx.dashboard.load_tags(args.task_id))
    for tag in tags:
        print(f"{tag.id:<5} {tag.color.value:<7} {tag.tag_name}")
    if not tags:
        print(f"Task {args.task_id} has no tags.")
    return 0


def cmd_tag_add(ctx: AppContext, args: argparse.Namespace) -> int:
    try:
        tag = asyncio.run(ctx.dashboard.add_tag(args.task_id, args.name, args.color))
    except ValidationError as e:
        print_validation_errors(e)
        return 1
    print(f"Added tag {tag.id} to task {args.task_id}.")
    return 0


def cmd_tag_rm(ctx: AppContext, args: argparse.Namespace) -> int:
    asyncio.run(ctx.dashboard.remove_tag(args.tag_id))
    print(f"Removed tag {args.tag_id}.")
    return 0


def _password(args: argparse.Namespace) -> str:
    return args.password or getpass.getpass("Password: ")


def cmd_login(ctx: AppContext, args: argparse.Namespace) -> int:
    user, _ = ctx.identity.login(args.email, _password(args))
    profile = User.from_record(user)
    ctx.user_store.set_user(profile)
    print(f"Signed in as {profile.name}.")
    return 0


def cmd_signup(ctx: AppContext, args: argparse.Namespace) -> int:
    user, _ = ctx.identity.signup(args.email, _password(args), args.first_name, args.last_name)
    profile = User.from_record(user)
    ctx.user_store.set_user(profile)
    print(f"Created account for {profile.email}.")
    return 0


def cmd_logout(ctx: AppContext, args: argparse.Namespace) -> int:
    asyncio.run(ctx.dashboard.logout())
    print("Signed out.")
    return 0


COMMANDS = {
    "ls": cmd_ls,
    "add": cmd_add,
    "edit": cmd_edit,
    "mark": cmd_mark,
    "rm": cmd_rm,
    "tags": cmd_tags,
    "tag-add": cmd_tag_add,
    "tag-rm": cmd_tag_rm,
    "login": cmd_login,
    "signup": cmd_signup,
    "logout": cmd_logout,
}


def run_command(ctx: AppContext, args: argparse.Namespace) -> int:
    """Dispatch a parsed command against a wired context.

    Every command except login and signup needs a restored session.
    """
    if args.command not in SESSION_COMMANDS and not ctx.restore_session():
        print("Error: Not signed in. Run 'tasktrail login' first.", file=sys.stderr)
        return 1
    try:
        return COMMANDS[args.command](ctx, args)
    except TaskTrailError as e:
        logger.debug("Command %s failed: %s", args.command, e)
        print(f"Error: {e}", file=sys.stderr)
        return 1


def run_cli(argv: list[str] | None = None) -> int | None:
    """Parse arguments and dispatch to command handlers.

    Returns:
        Exit code (0 for success, non-zero for error) if a command was handled,
        None if no command was specified (should launch TUI).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        return None

    config = load_config()
    setup_logging(config.log_path, file_level=config.log_level, console_level=logging.WARNING)
    try:
        ctx = AppContext.create(config)
    except TaskTrailError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return run_command(ctx, args)
