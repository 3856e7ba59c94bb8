"""Local stand-in for the AI CLI used by integration tests and smoke runs.

Speaks the same process contract as ``claude --print --output-format json``:
the system prompt arrives as the last positional argument, the user content
on stdin, and one JSON envelope is printed to stdout.
"""

from __future__ import annotations

import argparse
import json
import os
import re
import sys
import time
from datetime import UTC, datetime
from uuid import uuid4

ECHO_AGENT_VERSION = "1.0.0 (taskforge echo agent)"
ERROR_ENV = "TASKFORGE_ECHO_AGENT_ERROR"

_TASK_COUNT = re.compile(r"approximately (\d+) top-level development tasks")
_NEXT_ID = re.compile(r"IDs starting from (\d+)")
_SOURCE_FILE = re.compile(r'"sourceFile": "([^"]*)"')
_SUBTASK_COUNT = re.compile(r"into exactly (\d+) subtasks")
_NEXT_SUBTASK_ID = re.compile(r"starting with subtask id (\d+)")


def main(argv: list[str] | None = None) -> int:
    """Answer one prompt deterministically."""

    parser = argparse.ArgumentParser(prog="echo-agent")
    parser.add_argument("--version", action="store_true")
    parser.add_argument("--print", dest="print_mode", action="store_true")
    parser.add_argument("--output-format", default="text")
    parser.add_argument("system_prompt", nargs="?", default="")
    args = parser.parse_args(argv)

    if args.version:
        print(ECHO_AGENT_VERSION)
        return 0

    started = time.monotonic()
    user_content = sys.stdin.read()
    if os.getenv(ERROR_ENV):
        result = os.getenv(ERROR_ENV, "")
        is_error = True
    else:
        result = _answer(args.system_prompt, user_content)
        is_error = False

    if args.output_format != "json":
        print(result)
        return 0

    envelope = {
        "type": "result",
        "subtype": "error" if is_error else "success",
        "cost_usd": 0.0,
        "is_error": is_error,
        "duration_ms": round((time.monotonic() - started) * 1000, 3),
        "result": result,
        "session_id": str(uuid4()),
    }
    print(json.dumps(envelope, ensure_ascii=False))
    return 0


def _answer(system_prompt: str, user_content: str) -> str:
    task_count = _TASK_COUNT.search(system_prompt)
    if task_count is not None:
        return _fenced(
            "Here is the task breakdown for your PRD.",
            _task_set(
                count=int(task_count.group(1)),
                next_id=_int_match(_NEXT_ID, system_prompt, default=1),
                source_file=_str_match(_SOURCE_FILE, system_prompt, default="Unknown"),
                prd=user_content,
            ),
        )

    subtask_count = _SUBTASK_COUNT.search(system_prompt)
    if subtask_count is not None:
        return _fenced(
            "Here are the subtasks.",
            _subtask_set(
                count=int(subtask_count.group(1)),
                next_id=_int_match(_NEXT_SUBTASK_ID, system_prompt, default=1),
            ),
        )

    # Notes answer the request, which is the last paragraph of the input.
    paragraphs = [part for part in user_content.strip().split("\n\n") if part.strip()]
    summary = " ".join(paragraphs[-1].split())[:200] if paragraphs else ""
    return f"Echo agent notes: {summary}" if summary else "Echo agent notes."


def _task_set(*, count: int, next_id: int, source_file: str, prd: str) -> dict[str, object]:
    subject = " ".join(prd.split())[:60] or "the project"
    tasks = [
        {
            "id": task_id,
            "title": f"Task {task_id} for {subject}",
            "description": f"Implement part {index + 1} of {count} of {subject}.",
            "details": f"Deliver step {index + 1} with unit tests.",
            "testStrategy": "Run the unit tests for this step.",
            "dependencies": [task_id - 1] if index > 0 else [],
        }
        for index, task_id in enumerate(range(next_id, next_id + count))
    ]
    return {
        "tasks": tasks,
        "metadata": {
            "projectName": "PRD Implementation",
            "totalTasks": count,
            "sourceFile": source_file,
            "generatedAt": datetime.now(UTC).date().isoformat(),
        },
    }


def _subtask_set(*, count: int, next_id: int) -> dict[str, object]:
    return {
        "subtasks": [
            {
                "id": subtask_id,
                "title": f"Subtask {subtask_id}",
                "description": f"Implement subtask {subtask_id} of the parent task.",
                "details": f"Write the code and tests for subtask {subtask_id}.",
                "dependencies": [subtask_id - 1] if subtask_id > next_id else [],
            }
            for subtask_id in range(next_id, next_id + count)
        ],
    }


def _fenced(preamble: str, payload: dict[str, object]) -> str:
    return f"{preamble}\n\n```json\n{json.dumps(payload, indent=2)}\n```\n"


def _int_match(pattern: re.Pattern[str], text: str, *, default: int) -> int:
    match = pattern.search(text)
    return int(match.group(1)) if match is not None else default


def _str_match(pattern: re.Pattern[str], text: str, *, default: str) -> str:
    match = pattern.search(text)
    return match.group(1) if match is not None else default


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
