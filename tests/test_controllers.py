from __future__ import annotations

import json
from pathlib import Path

import allure
import pytest

from taskforge.bridge.controllers import (
    AddTaskCommand,
    AnalyzeComplexityCommand,
    BridgeCliController,
    UpdateTaskCommand,
    UpdateTasksCommand,
    load_tasks_file,
)
from taskforge.bridge.service import ClaudeCliBridge
from taskforge.config import BridgeSettings, Settings

pytestmark = [
    allure.epic("CLI Bridge"),
    allure.feature("Controllers"),
]


@pytest.fixture()
def tasks_file(tmp_path: Path) -> Path:
    path = tmp_path / "tasks.json"
    path.write_text(
        json.dumps(
            {
                "tasks": [
                    {"id": 1, "title": "Set up repo", "description": "Create skeleton."},
                    {"id": 2, "title": "Build API", "description": "Expose endpoints."},
                    {"id": 5, "title": "Ship", "description": "Deploy to production."},
                ],
            },
        ),
        "utf-8",
    )
    return path


@pytest.fixture()
def controller(fake_executor) -> BridgeCliController:
    return BridgeCliController(
        settings_factory=lambda: Settings(bridge=BridgeSettings(cli_mode=True)),
        bridge_factory=lambda _settings: ClaudeCliBridge(executor=fake_executor),
    )


def test_add_task_uses_next_free_id(controller, fake_executor, envelope, tasks_file) -> None:
    fake_executor.responses = [
        envelope(json.dumps({"id": 6, "title": "Add auth", "description": "JWT login."})),
    ]

    lines = controller.add_task(
        AddTaskCommand(
            tasks_path=tasks_file,
            prompt="Add authentication",
            dependencies=(2,),
            priority="high",
            research=False,
            output_path=None,
        ),
    )

    assert json.loads(lines[0])["id"] == 6
    assert "operation=add_task task_id=6" in lines[-1]
    system_prompt = fake_executor.operation_calls[0].args[-1]
    assert "id 6" in system_prompt
    assert "[2]" in system_prompt


def test_analyze_complexity_lists_tasks_to_expand(
    controller,
    fake_executor,
    envelope,
    tasks_file,
) -> None:
    report = [
        {
            "taskId": task_id,
            "taskTitle": title,
            "complexityScore": score,
            "recommendedSubtasks": 3,
            "expansionPrompt": "Split it.",
            "reasoning": "Because.",
        }
        for task_id, title, score in [(1, "Set up repo", 2), (2, "Build API", 8)]
    ]
    fake_executor.responses = [envelope(json.dumps(report))]

    lines = controller.analyze_complexity(
        AnalyzeComplexityCommand(
            tasks_path=tasks_file,
            threshold=5,
            research=True,
            output_path=None,
        ),
    )

    assert "Expand task 2 (Build API): score=8 subtasks=3" in lines
    assert not any(line.startswith("Expand task 1") for line in lines)
    assert "operation=analyze_complexity analyzed=2" in lines[-1]
    assert "research current technologies" in fake_executor.operation_calls[0].args[-1]


def test_update_task_writes_output_file(
    controller,
    fake_executor,
    envelope,
    tasks_file,
    tmp_path,
) -> None:
    fake_executor.responses = [
        envelope(json.dumps({"id": 2, "title": "Build GraphQL API", "description": "Expose it."})),
    ]
    output = tmp_path / "task-2.json"

    lines = controller.update_task(
        UpdateTaskCommand(
            tasks_path=tasks_file,
            task_id=2,
            prompt="Switch to GraphQL",
            research=False,
            output_path=output,
        ),
    )

    assert lines[0] == f"Wrote {output}"
    assert json.loads(output.read_text("utf-8"))["title"] == "Build GraphQL API"


def test_update_tasks_wraps_result(controller, fake_executor, envelope, tasks_file) -> None:
    rewritten = {
        "tasks": [
            {"id": 2, "title": "Build GraphQL API", "description": "Expose it."},
            {"id": 5, "title": "Ship", "description": "Deploy with canaries."},
        ],
    }
    fake_executor.responses = [envelope(f"Updated:\n```json\n{json.dumps(rewritten)}\n```")]

    lines = controller.update_tasks(
        UpdateTasksCommand(
            tasks_path=tasks_file,
            from_id=2,
            prompt="Switch to GraphQL",
            research=False,
            output_path=None,
        ),
    )

    assert [task["id"] for task in json.loads(lines[0])["tasks"]] == [2, 5]
    assert "extraction=fenced_block" in lines[-1]
    assert "Set up repo" not in fake_executor.operation_calls[0].input_payload


def test_update_tasks_rejects_id_past_the_end(controller, fake_executor, tasks_file) -> None:
    with pytest.raises(ValueError, match="No tasks with id >= 9"):
        controller.update_tasks(
            UpdateTasksCommand(
                tasks_path=tasks_file,
                from_id=9,
                prompt="Anything",
                research=False,
                output_path=None,
            ),
        )

    assert fake_executor.calls == []


def test_load_tasks_file_requires_tasks_array(tmp_path: Path) -> None:
    path = tmp_path / "tasks.json"
    path.write_text(json.dumps({"items": []}), "utf-8")

    with pytest.raises(TypeError, match="tasks must be an array"):
        load_tasks_file(path)


def test_load_tasks_file_rejects_non_object_entries(tmp_path: Path) -> None:
    path = tmp_path / "tasks.json"
    path.write_text(json.dumps({"tasks": [1]}), "utf-8")

    with pytest.raises(TypeError, match=r"tasks\[0\] must be an object"):
        load_tasks_file(path)
