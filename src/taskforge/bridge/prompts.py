"""Default prompt builders, one pure function per bridge operation.

Each builder returns a ``PromptPair``: the system prompt is passed to the
CLI as a positional argument and the user prompt is streamed on stdin.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from taskforge.bridge.models import (
    AddTaskOptions,
    AnalyzeComplexityOptions,
    ExpandTaskOptions,
    GenerateTasksOptions,
    OperationKind,
    Task,
    UpdateSubtaskOptions,
    UpdateTaskOptions,
    UpdateTasksOptions,
)


@dataclass(slots=True, frozen=True)
class PromptPair:
    """System and user prompt for one CLI invocation."""

    system_prompt: str
    user_prompt: str


_RESEARCH_ADDITION = """
Before answering, research current technologies, libraries and practices
relevant to the request. Identify technical risks the input does not mention,
prefer the most direct implementation path, and include concrete library
and version recommendations in the details you produce.
"""

_TASK_SHAPE = """\
{
  "id": number,
  "title": string,
  "description": string,
  "status": "pending",
  "dependencies": number[],
  "priority": "high" | "medium" | "low",
  "details": string,
  "testStrategy": string
}"""

_SUBTASK_SHAPE = """\
{
  "id": number,
  "title": string (at least 5 characters),
  "description": string (at least 10 characters),
  "dependencies": number[],
  "details": string (at least 20 characters),
  "status": "pending",
  "testStrategy": string
}"""

_JSON_ONLY = "Respond ONLY with valid JSON. Do not include explanations or markdown formatting."

GENERATE_TASKS_PROMPT = """\
You are an assistant that analyzes Product Requirements Documents (PRDs) and
produces a logically ordered, dependency-aware list of development tasks.
{research}
Analyze the PRD provided on standard input and
generate approximately {num_tasks} top-level development tasks.
Assign sequential IDs starting from {next_id}. Each task is one focused unit of work
with implementation details and a test strategy. A task may only depend on tasks
with lower IDs. Keep every explicit requirement of the PRD (libraries, schemas,
frameworks) and fill gaps with the most direct implementation path.

Each task follows this structure:
{task_shape}

{json_only}
Return an object of this form:
{{
  "tasks": [ ... ],
  "metadata": {{
    "projectName": "PRD Implementation",
    "totalTasks": {num_tasks},
    "sourceFile": "{prd_path}",
    "generatedAt": "YYYY-MM-DD"
  }}
}}
"""

EXPAND_TASK_PROMPT = """\
You are an assistant that breaks a development task into implementable subtasks.
{research}
Break the task into exactly {num_subtasks} subtasks.
Number the subtasks sequentially starting with subtask id {next_subtask_id}.
Subtask dependencies may only reference other new subtask IDs.

Each subtask follows this structure:
{subtask_shape}

{json_only}
Return an object of this form: {{"subtasks": [ ... ]}}
"""

ADD_TASK_PROMPT = """\
You are an assistant that turns a feature request into one well-specified development task.
{research}
Create exactly one task with id {new_task_id} and priority "{priority}".
Use dependencies {dependencies} unless the request clearly requires others
from the existing task list.

The task follows this structure:
{task_shape}

{json_only}
Return the task object itself.
"""

ANALYZE_COMPLEXITY_PROMPT = """\
You are an assistant that rates the implementation complexity of development tasks.
{research}
For every task on standard input, rate complexity from 1 (trivial) to 10 (very complex),
recommend how many subtasks it should be expanded into (tasks scoring {threshold} or more
usually need expansion), write a prompt that would guide that expansion, and explain
your reasoning.

{json_only}
Return a JSON array where each element has this structure:
{{
  "taskId": number,
  "taskTitle": string,
  "complexityScore": number (integer 1-10),
  "recommendedSubtasks": number,
  "expansionPrompt": string,
  "reasoning": string
}}
"""

UPDATE_SUBTASK_PROMPT = """\
You are an assistant that writes implementation notes for a subtask.
{research}
Using the parent task, the subtask and the request on standard input, write concise
plain-text notes to append to the subtask details. Do not repeat existing details.
Do not return JSON.
"""

UPDATE_TASK_PROMPT = """\
You are an assistant that revises a development task when requirements change.
{research}
Rewrite the task on standard input to reflect the new context. Keep its id ({task_id}),
keep the status unless the new context says otherwise, and keep the structure:
{task_shape}

{json_only}
Return the updated task object itself.
"""

UPDATE_TASKS_PROMPT = """\
You are an assistant that revises development tasks when the implementation direction changes.
{research}
Rewrite every task on standard input (IDs {from_id} and above) to reflect the new context.
Keep each task id, keep completed tasks unchanged, and keep the structure:
{task_shape}

{json_only}
Return an object of this form: {{"tasks": [ ... ]}}
"""


def build_generate_tasks_prompt(options: GenerateTasksOptions) -> PromptPair:
    system_prompt = GENERATE_TASKS_PROMPT.format(
        research=_research(options.research),
        num_tasks=options.num_tasks,
        next_id=options.next_id,
        prd_path=options.prd_path,
        task_shape=_TASK_SHAPE,
        json_only=_JSON_ONLY,
    )
    return PromptPair(system_prompt=system_prompt, user_prompt=options.prd_content)


def build_expand_task_prompt(options: ExpandTaskOptions) -> PromptPair:
    system_prompt = EXPAND_TASK_PROMPT.format(
        research=_research(options.research),
        num_subtasks=options.num_subtasks,
        next_subtask_id=options.next_subtask_id,
        subtask_shape=_SUBTASK_SHAPE,
        json_only=_JSON_ONLY,
    )
    user_prompt = f"Task to expand:\n{_dump(options.task.to_dict())}\n"
    if options.additional_context.strip():
        user_prompt += f"\nAdditional context:\n{options.additional_context.strip()}\n"
    return PromptPair(system_prompt=system_prompt, user_prompt=user_prompt)


def build_add_task_prompt(options: AddTaskOptions) -> PromptPair:
    system_prompt = ADD_TASK_PROMPT.format(
        research=_research(options.research),
        new_task_id=options.new_task_id,
        priority=options.priority,
        dependencies=json.dumps(list(options.dependencies)),
        task_shape=_TASK_SHAPE,
        json_only=_JSON_ONLY,
    )
    user_prompt = (
        f"Feature request:\n{options.prompt.strip()}\n\n"
        f"Existing tasks:\n{_dump(_task_summaries(options.existing_tasks))}\n"
    )
    return PromptPair(system_prompt=system_prompt, user_prompt=user_prompt)


def build_analyze_complexity_prompt(options: AnalyzeComplexityOptions) -> PromptPair:
    system_prompt = ANALYZE_COMPLEXITY_PROMPT.format(
        research=_research(options.research),
        threshold=options.threshold,
        json_only=_JSON_ONLY,
    )
    user_prompt = _dump({"tasks": [task.to_dict() for task in options.tasks]})
    return PromptPair(system_prompt=system_prompt, user_prompt=user_prompt)


def build_update_subtask_prompt(options: UpdateSubtaskOptions) -> PromptPair:
    system_prompt = UPDATE_SUBTASK_PROMPT.format(research=_research(options.research))
    user_prompt = (
        f"Parent task:\n{_dump(options.parent_task.to_dict())}\n\n"
        f"Subtask:\n{_dump(options.subtask.to_dict())}\n\n"
        f"Request:\n{options.prompt.strip()}\n"
    )
    return PromptPair(system_prompt=system_prompt, user_prompt=user_prompt)


def build_update_task_prompt(options: UpdateTaskOptions) -> PromptPair:
    system_prompt = UPDATE_TASK_PROMPT.format(
        research=_research(options.research),
        task_id=options.task.id,
        task_shape=_TASK_SHAPE,
        json_only=_JSON_ONLY,
    )
    user_prompt = (
        f"Task:\n{_dump(options.task.to_dict())}\n\n"
        f"New context:\n{options.prompt.strip()}\n"
    )
    return PromptPair(system_prompt=system_prompt, user_prompt=user_prompt)


def build_update_tasks_prompt(options: UpdateTasksOptions) -> PromptPair:
    system_prompt = UPDATE_TASKS_PROMPT.format(
        research=_research(options.research),
        from_id=options.from_id,
        task_shape=_TASK_SHAPE,
        json_only=_JSON_ONLY,
    )
    selected = [task.to_dict() for task in options.tasks if task.id >= options.from_id]
    user_prompt = (
        f"Tasks:\n{_dump({'tasks': selected})}\n\n"
        f"New context:\n{options.prompt.strip()}\n"
    )
    return PromptPair(system_prompt=system_prompt, user_prompt=user_prompt)


PROMPT_BUILDERS: dict[OperationKind, Callable[[Any], PromptPair]] = {
    OperationKind.GENERATE_TASKS: build_generate_tasks_prompt,
    OperationKind.EXPAND_TASK: build_expand_task_prompt,
    OperationKind.ADD_TASK: build_add_task_prompt,
    OperationKind.ANALYZE_COMPLEXITY: build_analyze_complexity_prompt,
    OperationKind.UPDATE_SUBTASK: build_update_subtask_prompt,
    OperationKind.UPDATE_TASK: build_update_task_prompt,
    OperationKind.UPDATE_TASKS: build_update_tasks_prompt,
}


def _research(enabled: bool) -> str:
    return _RESEARCH_ADDITION if enabled else ""


def _dump(payload: Any) -> str:
    return json.dumps(payload, ensure_ascii=False, indent=2)


def _task_summaries(tasks: Iterable[Task]) -> list[dict[str, Any]]:
    return [
        {"id": task.id, "title": task.title, "dependencies": list(task.dependencies)}
        for task in tasks
    ]
