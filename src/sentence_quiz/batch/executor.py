"""
Executor for batch change requests.

Applies changes through the synchronization engine, one intent at a time.
"""
from __future__ import annotations

import logging
import time
from typing import Any, List

from sentence_quiz.engine import SyncEngine
from sentence_quiz.exceptions import EntityNotFoundError, SentenceQuizError
from sentence_quiz.models import Category, ReorderResult, Sentence

from .schema import (
    BatchResult,
    Change,
    ChangeRequest,
    ChangeResult,
    OperationType,
)

logger = logging.getLogger(__name__)


def execute_change_request(
    engine: SyncEngine,
    request: ChangeRequest,
    dry_run: bool = False,
) -> BatchResult:
    """Execute a batch change request.

    The engine is (re)loaded for the request's owner first. A failing
    change is recorded and execution continues with the next one.

    Args:
        engine: Engine whose store receives the changes
        request: The change request to execute
        dry_run: If True, only describe each change without applying it

    Returns:
        BatchResult with details of each change
    """
    start_time = time.time()
    results: List[ChangeResult] = []

    if engine.owner != request.owner:
        engine.load_for_owner(request.owner)

    for i, change in enumerate(request.changes):
        if dry_run:
            result = _dry_run_change(change, i)
        else:
            result = _execute_change(engine, change, i, request.owner)
        results.append(result)

    success_count = sum(1 for r in results if r.success)
    failure_count = sum(1 for r in results if not r.success)
    duration = time.time() - start_time

    logger.info(
        "Batch for %r: %d/%d changes applied%s",
        request.owner, success_count, len(results),
        " (dry run)" if dry_run else "",
    )

    return BatchResult(
        owner=request.owner,
        total_count=len(results),
        success_count=success_count,
        failure_count=failure_count,
        changes=results,
        duration_seconds=duration,
        dry_run=dry_run,
    )


def _execute_change(
    engine: SyncEngine,
    change: Change,
    index: int,
    owner: str,
) -> ChangeResult:
    """Execute a single change operation.

    Returns:
        ChangeResult with success/failure status
    """
    op = change.operation
    params = change.params

    try:
        if op == OperationType.ADD_CATEGORY.value:
            category = engine.add_category(
                params["name"], owner, color=params.get("color"),
            )
            return _ok(change, index, f"Created category '{category.name}'",
                       created_id=category.id)

        if op == OperationType.RENAME_CATEGORY.value:
            category = _find_category(engine, params["category"])
            renamed = engine.rename_category(
                category.id, params["name"], color=params.get("color"),
            )
            return _ok(change, index,
                       f"Renamed '{category.name}' to '{renamed.name}'")

        if op == OperationType.DELETE_CATEGORY.value:
            category = _find_category(engine, params["category"])
            engine.delete_category(category.id)
            return _ok(change, index, f"Deleted category '{category.name}'")

        if op == OperationType.MOVE_CATEGORY.value:
            category = _find_category(engine, params["category"])
            target = _find_category(engine, change.target)
            return _reorder_result(
                change, index, engine.move_category(category.id, target.id),
                f"Moved '{category.name}' to the position of '{target.name}'",
            )

        if op == OperationType.ADD_SENTENCE.value:
            category = _find_category(engine, params["category"])
            sentence = engine.add_sentence(
                category.id, params["source"], params["target"], owner,
            )
            return _ok(change, index,
                       f"Added sentence {sentence.id} to '{category.name}'",
                       created_id=sentence.id)

        if op == OperationType.EDIT_SENTENCE.value:
            category = _find_category(engine, params["category"])
            sentence = _find_sentence(engine, category, params["sentence"])
            engine.edit_sentence(sentence.id, params["source"], params["target"])
            return _ok(change, index, f"Edited sentence {sentence.id}")

        if op == OperationType.DELETE_SENTENCE.value:
            category = _find_category(engine, params["category"])
            sentence = _find_sentence(engine, category, params["sentence"])
            engine.delete_sentence(sentence.id)
            return _ok(change, index, f"Deleted sentence {sentence.id}")

        if op == OperationType.MOVE_SENTENCE.value:
            category = _find_category(engine, params["category"])
            sentence = _find_sentence(engine, category, params["sentence"])
            target = _find_sentence(engine, category, change.target)
            return _reorder_result(
                change, index,
                engine.move_sentence(category.id, sentence.id, target.id),
                f"Moved sentence {sentence.id} to the position of {target.id}",
            )

        return ChangeResult(
            index=index,
            operation=op,
            success=False,
            message=f"Unknown operation: {op}",
            error=f"Unknown operation: {op}",
        )

    except SentenceQuizError as e:
        logger.warning("Change #%d (%s) failed: %s", index + 1, op, e)
        return ChangeResult(
            index=index,
            operation=op,
            success=False,
            message=str(e),
            error=type(e).__name__,
        )


def _dry_run_change(change: Change, index: int) -> ChangeResult:
    """Describe a change without applying it."""
    subject = change.params.get("name") or change.category or ""
    return ChangeResult(
        index=index,
        operation=change.operation,
        success=True,
        message=f"Would apply {change.operation} to '{subject}'",
    )


def _ok(
    change: Change,
    index: int,
    message: str,
    created_id: int | None = None,
) -> ChangeResult:
    return ChangeResult(
        index=index,
        operation=change.operation,
        success=True,
        message=message,
        created_id=created_id,
    )


def _reorder_result(
    change: Change,
    index: int,
    result: ReorderResult,
    message: str,
) -> ChangeResult:
    if result.ok:
        return _ok(change, index, message)
    return ChangeResult(
        index=index,
        operation=change.operation,
        success=False,
        message=(
            f"Order applied locally but only {len(result.persisted)} of "
            f"{len(result.order)} rows were saved"
        ),
        error=result.error,
    )


def _find_category(engine: SyncEngine, name: Any) -> Category:
    category = engine.model.find_category_by_name(str(name))
    if category is None:
        raise EntityNotFoundError(f"Category not found: {name!r}")
    return category


def _find_sentence(engine: SyncEngine, category: Category, ref: Any) -> Sentence:
    """Resolve a sentence by id, or by source text within the category."""
    if isinstance(ref, int) and not isinstance(ref, bool):
        sentence = engine.model.get_sentence(ref)
        if sentence.category_id != category.id:
            raise EntityNotFoundError(
                f"Sentence {ref!r} is not in category '{category.name}'"
            )
        return sentence

    text = str(ref).strip()
    for sentence in engine.model.sentences(category.id):
        if sentence.source == text:
            return sentence
    raise EntityNotFoundError(
        f"No sentence {text!r} in category '{category.name}'"
    )
