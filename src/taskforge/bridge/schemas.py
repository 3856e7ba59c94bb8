"""Per-operation schemas for documents recovered from model output.

Validation stops at the first offending field and raises ``ValidationError``
naming the field path and the violated constraint. Values are never coerced:
booleans are not integers, and floats are not truncated.
"""

from __future__ import annotations

from typing import Any

from taskforge.bridge.errors import ValidationError
from taskforge.bridge.models import (
    DEFAULT_PRIORITY,
    DEFAULT_STATUS,
    TASK_PRIORITIES,
    ComplexityEntry,
    ComplexityReport,
    OperationKind,
    Subtask,
    SubtaskSet,
    Task,
    TaskSet,
    TaskSetMetadata,
)

SUBTASK_TITLE_MIN_CHARS = 5
SUBTASK_DESCRIPTION_MIN_CHARS = 10
SUBTASK_DETAILS_MIN_CHARS = 20
COMPLEXITY_SCORE_RANGE = (1, 10)


def validate_document(
    kind: OperationKind,
    document: Any,
    *,
    expected_task_id: int | None = None,
) -> Any:
    """Validate ``document`` against the schema of ``kind`` and build typed data."""

    if kind is OperationKind.GENERATE_TASKS:
        return validate_task_set(document)
    if kind is OperationKind.EXPAND_TASK:
        return validate_subtask_set(document)
    if kind is OperationKind.ADD_TASK:
        return validate_task(document, path="task")
    if kind is OperationKind.ANALYZE_COMPLEXITY:
        return validate_complexity_report(document)
    if kind is OperationKind.UPDATE_TASK:
        task = validate_task(document, path="task")
        if expected_task_id is not None and task.id != expected_task_id:
            raise ValidationError("task.id", f"must equal {expected_task_id}")
        return task
    if kind is OperationKind.UPDATE_TASKS:
        return validate_task_list(document)
    if kind is OperationKind.UPDATE_SUBTASK:
        if not isinstance(document, str):
            raise ValidationError("result", "must be a string")
        return document
    raise ValueError(f"Unsupported operation: {kind!r}")


def validate_task_set(document: Any) -> TaskSet:
    raw = _require_object(document, "document")
    tasks = validate_task_list(raw)
    raw_metadata = _require_object(raw.get("metadata"), "metadata")
    metadata = TaskSetMetadata(
        project_name=_require_str(raw_metadata, "projectName", "metadata.projectName"),
        total_tasks=_require_number(raw_metadata, "totalTasks", "metadata.totalTasks"),
        source_file=_require_str(raw_metadata, "sourceFile", "metadata.sourceFile"),
        generated_at=_require_str(raw_metadata, "generatedAt", "metadata.generatedAt"),
    )
    return TaskSet(tasks=tasks, metadata=metadata)


def validate_task_list(document: Any) -> list[Task]:
    """Validate an object holding a ``tasks`` array."""

    raw = _require_object(document, "document")
    raw_tasks = raw.get("tasks")
    if not isinstance(raw_tasks, list):
        raise ValidationError("tasks", "must be an array")
    return [validate_task(item, path=f"tasks[{index}]") for index, item in enumerate(raw_tasks)]


def validate_task(document: Any, *, path: str = "task") -> Task:
    """Validate one task object and apply defaults."""

    raw = _require_object(document, path)
    return Task(
        id=_require_positive_int(raw, "id", f"{path}.id"),
        title=_require_str(raw, "title", f"{path}.title", min_chars=1),
        description=_require_str(raw, "description", f"{path}.description", min_chars=1),
        details=_optional_str(raw, "details", f"{path}.details"),
        test_strategy=_optional_str(raw, "testStrategy", f"{path}.testStrategy"),
        priority=_priority(raw, f"{path}.priority"),
        dependencies=_dependencies(raw, f"{path}.dependencies"),
        status=_optional_str(raw, "status", f"{path}.status", default=DEFAULT_STATUS),
    )


def validate_subtask_set(document: Any) -> SubtaskSet:
    raw = _require_object(document, "document")
    raw_subtasks = raw.get("subtasks")
    if not isinstance(raw_subtasks, list):
        raise ValidationError("subtasks", "must be an array")
    return SubtaskSet(
        subtasks=[
            validate_subtask(item, path=f"subtasks[{index}]")
            for index, item in enumerate(raw_subtasks)
        ],
    )


def validate_subtask(document: Any, *, path: str = "subtask") -> Subtask:
    raw = _require_object(document, path)
    return Subtask(
        id=_require_positive_int(raw, "id", f"{path}.id"),
        title=_require_str(raw, "title", f"{path}.title", min_chars=SUBTASK_TITLE_MIN_CHARS),
        description=_require_str(
            raw,
            "description",
            f"{path}.description",
            min_chars=SUBTASK_DESCRIPTION_MIN_CHARS,
        ),
        details=_require_str(
            raw,
            "details",
            f"{path}.details",
            min_chars=SUBTASK_DETAILS_MIN_CHARS,
        ),
        dependencies=_dependencies(raw, f"{path}.dependencies"),
        status=_optional_str(raw, "status", f"{path}.status", default=DEFAULT_STATUS),
        test_strategy=_optional_str(raw, "testStrategy", f"{path}.testStrategy"),
    )


def validate_complexity_report(document: Any) -> ComplexityReport:
    if not isinstance(document, list):
        raise ValidationError("document", "must be an array")

    entries: list[ComplexityEntry] = []
    low, high = COMPLEXITY_SCORE_RANGE
    for index, item in enumerate(document):
        path = f"[{index}]"
        raw = _require_object(item, path)
        task_id = _require_positive_int(raw, "taskId", f"{path}.taskId")
        task_title = _require_str(raw, "taskTitle", f"{path}.taskTitle")
        score = _require_int(raw, "complexityScore", f"{path}.complexityScore")
        if not low <= score <= high:
            raise ValidationError(f"{path}.complexityScore", f"must be between {low} and {high}")
        recommended = _require_int(raw, "recommendedSubtasks", f"{path}.recommendedSubtasks")
        if recommended < 0:
            raise ValidationError(f"{path}.recommendedSubtasks", "must be >= 0")
        entries.append(
            ComplexityEntry(
                task_id=task_id,
                task_title=task_title,
                complexity_score=score,
                recommended_subtasks=recommended,
                expansion_prompt=_require_str(raw, "expansionPrompt", f"{path}.expansionPrompt"),
                reasoning=_require_str(raw, "reasoning", f"{path}.reasoning"),
            ),
        )
    return ComplexityReport(entries=entries)


def _require_object(value: Any, path: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ValidationError(path, "must be an object")
    return value


def _require_str(raw: dict[str, Any], key: str, path: str, *, min_chars: int = 0) -> str:
    value = raw.get(key)
    if not isinstance(value, str):
        raise ValidationError(path, "must be a string")
    if len(value) < min_chars:
        if min_chars == 1:
            raise ValidationError(path, "must be a non-empty string")
        raise ValidationError(path, f"must be at least {min_chars} characters")
    return value


def _optional_str(raw: dict[str, Any], key: str, path: str, *, default: str = "") -> str:
    if key not in raw:
        return default
    value = raw[key]
    if not isinstance(value, str):
        raise ValidationError(path, "must be a string when provided")
    return value


def _require_int(raw: dict[str, Any], key: str, path: str) -> int:
    value = raw.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(path, "must be an integer")
    return value


def _require_positive_int(raw: dict[str, Any], key: str, path: str) -> int:
    value = _require_int(raw, key, path)
    if value <= 0:
        raise ValidationError(path, "must be a positive integer")
    return value


def _require_number(raw: dict[str, Any], key: str, path: str) -> int | float:
    value = raw.get(key)
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ValidationError(path, "must be a number")
    return value


def _priority(raw: dict[str, Any], path: str) -> str:
    if "priority" not in raw:
        return DEFAULT_PRIORITY
    value = raw["priority"]
    if value not in TASK_PRIORITIES:
        raise ValidationError(path, f"must be one of {', '.join(TASK_PRIORITIES)}")
    return value


def _dependencies(raw: dict[str, Any], path: str) -> list[int]:
    if "dependencies" not in raw:
        return []
    value = raw["dependencies"]
    if not isinstance(value, list):
        raise ValidationError(path, "must be an array")
    for index, item in enumerate(value):
        if isinstance(item, bool) or not isinstance(item, int) or item <= 0:
            raise ValidationError(f"{path}[{index}]", "must be a positive integer")
    return list(value)
