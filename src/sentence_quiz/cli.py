"""
Command-line interface for sentence-quiz.
"""
from __future__ import annotations

import argparse
import getpass
import logging
import sys
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from .batch import (
    BatchResult,
    ParseError,
    ValidationResult,
    execute_change_request,
    load_change_request,
    validate_change_request,
)
from .config import Settings, load_settings
from .db import SQLiteStore
from .engine import SyncEngine
from .exceptions import EntityNotFoundError, SentenceQuizError
from .exporter import export_category, write_export
from .identity import IdentityContext
from .models import Category, QuizMode, QuizState
from .quiz import QuizSession


def main(argv: Optional[list] = None) -> int:
    """Main entry point for the sentence-quiz CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return args.func(args)
    except ParseError as e:
        print(f"\n  [PARSE ERROR] {e}")
        if e.line:
            print(f"               Line: {e.line}")
        return 1
    except (SentenceQuizError, FileNotFoundError) as e:
        print(f"\n  [ERROR] {e}")
        return 1


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="sentence-quiz",
        description="Study sentence pairs grouped in categories",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s (sentence-quiz)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="YAML settings file (default: $SENTENCE_QUIZ_CONFIG)",
    )
    parser.add_argument(
        "--db",
        type=Path,
        help="SQLite database (overrides the settings file)",
    )
    parser.add_argument(
        "--user", "-u",
        type=str,
        help="Account id whose data is used",
    )
    parser.add_argument(
        "--password",
        type=str,
        help="Account password (prompted when accounts are configured)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log debug output",
    )

    subparsers = parser.add_subparsers(title="commands", dest="command")

    # validate command
    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate a change request file",
    )
    validate_parser.add_argument(
        "file",
        type=Path,
        help="YAML file containing change request",
    )
    validate_parser.set_defaults(func=cmd_validate)

    # apply command
    apply_parser = subparsers.add_parser(
        "apply",
        help="Apply changes from a request file",
    )
    apply_parser.add_argument(
        "file",
        type=Path,
        help="YAML file containing change request",
    )
    apply_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Describe changes without applying them",
    )
    apply_parser.add_argument(
        "--yes", "-y",
        action="store_true",
        help="Skip confirmation prompt",
    )
    apply_parser.set_defaults(func=cmd_apply)

    # list command
    list_parser = subparsers.add_parser(
        "list",
        help="List categories and their sentence counts",
    )
    list_parser.set_defaults(func=cmd_list)

    # export command
    export_parser = subparsers.add_parser(
        "export",
        help="Export a category as plain text",
    )
    export_parser.add_argument(
        "category",
        type=str,
        help="Category name",
    )
    export_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Write to a file instead of standard output",
    )
    export_parser.set_defaults(func=cmd_export)

    # quiz command
    quiz_parser = subparsers.add_parser(
        "quiz",
        help="Study a category interactively",
    )
    quiz_parser.add_argument(
        "category",
        type=str,
        help="Category name",
    )
    quiz_parser.add_argument(
        "--random",
        action="store_true",
        help="Shuffle the sentences",
    )
    quiz_parser.set_defaults(func=cmd_quiz)

    return parser


@contextmanager
def _open_engine(
    args: argparse.Namespace,
    user: Optional[str] = None,
) -> Generator[tuple[SyncEngine, IdentityContext], None, None]:
    """Open the store, log in, and yield an engine loaded for that user."""
    settings = load_settings(args.config)
    _configure_logging(args, settings)

    user = user or args.user
    if not user:
        raise SentenceQuizError("A user is required (--user)")

    with SQLiteStore(args.db or settings.database) as store:
        identity = IdentityContext(settings.accounts)
        engine = SyncEngine(store)
        engine.attach(identity)
        if settings.accounts:
            password = args.password
            if password is None:
                password = getpass.getpass(f"Password for {user}: ")
            identity.login(user, password)
        else:
            identity.switch(user)
        yield engine, identity


def _configure_logging(args: argparse.Namespace, settings: Settings) -> None:
    level = logging.DEBUG if args.verbose else settings.log_level
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _find_category(engine: SyncEngine, name: str) -> Category:
    category = engine.model.find_category_by_name(name)
    if category is None:
        raise EntityNotFoundError(f"Category not found: {name!r}")
    return category


def cmd_validate(args: argparse.Namespace) -> int:
    """Handle validate command."""
    print(f"\nValidating {args.file}...")

    request = load_change_request(args.file)

    print(f"  Owner: {request.owner}")
    print(f"  Changes: {len(request.changes)}")

    result = validate_change_request(request)

    print("\nValidation Results:")
    _print_validation_result(result)

    if result.is_valid:
        print("\nValidation passed!")
        return 0
    print(f"\nFound {result.error_count} error(s)")
    return 1


def cmd_apply(args: argparse.Namespace) -> int:
    """Handle apply command."""
    print(f"\nLoading {args.file}...")

    request = load_change_request(args.file)

    print(f"  Owner: {request.owner}")
    print(f"  Changes: {len(request.changes)}")
    if request.description:
        print(f"  Description: \"{request.description}\"")

    print("\nValidating...")
    validation = validate_change_request(request)

    if not validation.is_valid:
        print("\nValidation failed:")
        _print_validation_result(validation)
        print(f"\nFound {validation.error_count} error(s). Fix errors before applying.")
        return 1

    if args.dry_run:
        print("\n[DRY RUN] Simulating execution...")
    elif not args.yes:
        response = input(f"\nApply {len(request.changes)} changes for {request.owner}? [y/N] ")
        if response.lower() not in ("y", "yes"):
            print("Aborted.")
            return 1

    with _open_engine(args, user=args.user or request.owner) as (engine, identity):
        if identity.owner != request.owner:
            print(f"\n  [ERROR] Logged in as {identity.owner}, "
                  f"but the request is for {request.owner}")
            return 1

        print(f"\n{'Simulating' if args.dry_run else 'Applying'} changes...")
        result = execute_change_request(engine, request, dry_run=args.dry_run)

    _print_batch_result(result)

    if result.failure_count > 0:
        return 1
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    """Handle list command."""
    with _open_engine(args) as (engine, identity):
        categories = engine.model.categories()
        if not categories:
            print("No categories found.")
            return 0

        print(f"\nCategories for {identity.current.name}:\n")
        print(f"{'#':<4} {'Name':<30} {'Sentences':<10} {'Color'}")
        print("-" * 60)
        for position, category in enumerate(categories, start=1):
            name = (category.name[:27] + "...") if len(category.name) > 30 else category.name
            count = engine.model.sentence_count(category.id)
            print(f"{position:<4} {name:<30} {count:<10} {category.color}")
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    """Handle export command."""
    with _open_engine(args) as (engine, _identity):
        category = _find_category(engine, args.category)
        text = export_category(engine.model, category.id)

    if args.output:
        path = write_export(text, args.output)
        print(f"Exported '{category.name}' to {path}")
    else:
        sys.stdout.write(text)
    return 0


def cmd_quiz(args: argparse.Namespace) -> int:
    """Handle quiz command."""
    with _open_engine(args) as (engine, _identity):
        category = _find_category(engine, args.category)
        session = QuizSession(engine.snapshot)
        mode = QuizMode.RANDOM if args.random else QuizMode.SEQUENTIAL
        session.start(category.id, mode)

    print(f"\nQuiz: {category.name} ({mode.value}, {len(session.items)} sentences)")

    while session.state is not QuizState.COMPLETED:
        progress = session.progress
        print(f"\n[{progress.position}/{progress.total}] {session.prompt}")
        if _ask_quit("  Enter to reveal, q to quit: "):
            session.exit()
            print("Quiz exited.")
            return 0

        session.reveal()
        print(f"  -> {session.answer}")
        if _ask_quit("  Enter for next, q to quit: "):
            session.exit()
            print("Quiz exited.")
            return 0

        session.advance()

    print("\nQuiz completed!")
    return 0


def _ask_quit(prompt: str) -> bool:
    try:
        response = input(prompt)
    except EOFError:
        return True
    return response.strip().lower() == "q"


def _print_validation_result(result: ValidationResult) -> None:
    """Print validation errors."""
    for error in result.errors:
        print(f"  [ERROR] Change #{error.index + 1} ({error.operation}): {error.message}")
        if error.field:
            print(f"          Field: {error.field}")


def _print_batch_result(result: BatchResult) -> None:
    """Print batch execution result."""
    print()
    for change in result.changes:
        idx = change.index + 1
        status = "OK" if change.success else "FAILED"
        print(f"  [{idx}/{result.total_count}] {change.operation}: {status}")
        if change.message:
            print(f"         {change.message}")

    print("\nResults:")
    print(f"  Total:   {result.total_count}")
    print(f"  Success: {result.success_count}")
    print(f"  Failed:  {result.failure_count}")
    print(f"  Time:    {result.duration_seconds:.2f}s")


if __name__ == "__main__":
    sys.exit(main())
