"""Operation facade composing prompts with the CLI bridge pipeline.

One call runs: availability probe -> process -> envelope -> JSON extraction
-> schema validation. The first failure propagates unchanged.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from taskforge.bridge.availability import (
    DEFAULT_PROBE_TIMEOUT_MS,
    AvailabilityProbe,
    CommandRunner,
)
from taskforge.bridge.envelope import ResponseEnvelope, read_envelope
from taskforge.bridge.executor import ProcessExecutor
from taskforge.bridge.extraction import extract_json
from taskforge.bridge.models import (
    AddTaskOptions,
    AnalyzeComplexityOptions,
    ComplexityReport,
    ExpandTaskOptions,
    GenerateTasksOptions,
    OperationKind,
    OperationResult,
    SubtaskSet,
    Task,
    TaskSet,
    UpdateSubtaskOptions,
    UpdateTaskOptions,
    UpdateTasksOptions,
)
from taskforge.bridge.prompts import PROMPT_BUILDERS, PromptPair
from taskforge.bridge.schemas import validate_document
from taskforge.config import BridgeSettings

logger = logging.getLogger(__name__)

DEFAULT_OPERATION_TIMEOUT_MS = 120_000
CLI_OUTPUT_ARGS = ("--print", "--output-format", "json")


class ClaudeCliBridge:
    """Generate and refine tasks through a locally installed AI CLI.

    Instances are independent: each owns its executor, prompt builders and
    availability flag, so concurrent calls only share that flag.
    """

    def __init__(
        self,
        *,
        executor: CommandRunner | None = None,
        prompt_builders: Mapping[OperationKind, Callable[[Any], PromptPair]] | None = None,
        default_timeout_ms: int = DEFAULT_OPERATION_TIMEOUT_MS,
        operation_timeouts_ms: Mapping[OperationKind, int] | None = None,
        probe_timeout_ms: int = DEFAULT_PROBE_TIMEOUT_MS,
    ) -> None:
        self.executor = executor or ProcessExecutor()
        self.prompt_builders = dict(PROMPT_BUILDERS)
        if prompt_builders:
            self.prompt_builders.update(prompt_builders)
        self.default_timeout_ms = default_timeout_ms
        self.operation_timeouts_ms = dict(operation_timeouts_ms or {})
        self.availability = AvailabilityProbe(self.executor, deadline_ms=probe_timeout_ms)

    @classmethod
    def from_settings(cls, settings: BridgeSettings) -> ClaudeCliBridge:
        """Build a bridge from environment-derived settings."""

        return cls(
            executor=ProcessExecutor.from_command_line(settings.cli_path),
            default_timeout_ms=settings.default_timeout_ms,
            operation_timeouts_ms={
                OperationKind(name): value for name, value in settings.operation_timeouts_ms.items()
            },
            probe_timeout_ms=settings.probe_timeout_ms,
        )

    def check_availability(self) -> bool:
        return self.availability.check()

    def generate_tasks(self, options: GenerateTasksOptions) -> OperationResult[TaskSet]:
        """Break a PRD into a task set."""

        return self._run_json(OperationKind.GENERATE_TASKS, options, options.timeout_ms)

    def expand_task(self, options: ExpandTaskOptions) -> OperationResult[SubtaskSet]:
        """Break one task into subtasks."""

        return self._run_json(OperationKind.EXPAND_TASK, options, options.timeout_ms)

    def add_task(self, options: AddTaskOptions) -> OperationResult[Task]:
        """Create one task from a free-form request."""

        return self._run_json(OperationKind.ADD_TASK, options, options.timeout_ms)

    def analyze_complexity(
        self,
        options: AnalyzeComplexityOptions,
    ) -> OperationResult[ComplexityReport]:
        """Rate the complexity of each task."""

        return self._run_json(OperationKind.ANALYZE_COMPLEXITY, options, options.timeout_ms)

    def update_subtask(self, options: UpdateSubtaskOptions) -> OperationResult[str]:
        """Generate free-form notes for a subtask; no JSON is expected."""

        envelope = self._invoke(OperationKind.UPDATE_SUBTASK, options, options.timeout_ms)
        return self._result(OperationKind.UPDATE_SUBTASK, envelope.result or "", envelope)

    def update_task(self, options: UpdateTaskOptions) -> OperationResult[Task]:
        """Rewrite one task with new context, keeping its id."""

        return self._run_json(
            OperationKind.UPDATE_TASK,
            options,
            options.timeout_ms,
            expected_task_id=options.task.id,
        )

    def update_tasks(self, options: UpdateTasksOptions) -> OperationResult[list[Task]]:
        """Rewrite every task from ``options.from_id`` onward."""

        return self._run_json(OperationKind.UPDATE_TASKS, options, options.timeout_ms)

    def timeout_for(self, kind: OperationKind, override_ms: int | None = None) -> int:
        if override_ms is not None:
            return override_ms
        return self.operation_timeouts_ms.get(kind, self.default_timeout_ms)

    def _run_json(
        self,
        kind: OperationKind,
        options: Any,
        timeout_ms: int | None,
        *,
        expected_task_id: int | None = None,
    ) -> OperationResult[Any]:
        envelope = self._invoke(kind, options, timeout_ms)
        extracted = extract_json(envelope.result or "")
        data = validate_document(kind, extracted.value, expected_task_id=expected_task_id)
        return self._result(kind, data, envelope, extraction_strategy=extracted.strategy)

    def _invoke(
        self,
        kind: OperationKind,
        options: Any,
        timeout_ms: int | None,
    ) -> ResponseEnvelope:
        self.availability.check()
        prompts = self.prompt_builders[kind](options)
        deadline_ms = self.timeout_for(kind, timeout_ms)
        logger.debug("Running %s with deadline_ms=%s", kind.value, deadline_ms)
        raw_output = self.executor.execute(
            [*CLI_OUTPUT_ARGS, prompts.system_prompt],
            prompts.user_prompt,
            deadline_ms,
        )
        return read_envelope(raw_output)

    def _result(
        self,
        kind: OperationKind,
        data: Any,
        envelope: ResponseEnvelope,
        *,
        extraction_strategy: str | None = None,
    ) -> OperationResult[Any]:
        logger.info(
            "CLI operation completed: operation=%s cost_usd=%s duration_ms=%s session_id=%s",
            kind.value,
            envelope.cost_usd,
            envelope.duration_ms,
            envelope.session_id,
        )
        return OperationResult(
            operation=kind,
            data=data,
            cost_usd=envelope.cost_usd,
            duration_ms=envelope.duration_ms,
            session_id=envelope.session_id,
            extraction_strategy=extraction_strategy,
        )
