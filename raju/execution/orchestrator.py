#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Task orchestrator: Plan -> Execute -> Reflect, then persist an experience.

Every call to ``execute_task`` produces exactly one stored Experience, on
success and on failure alike. Failures are handled on two tiers:

- missing credentials and remote call failures abort the task; a failure
  experience is stored and the original error is re-raised
- any other error inside a phase is narrated into that phase's content and
  the trace continues

Each call owns its own ExecutionHandle, so concurrent calls never share a
"current" thought stream.
"""

import threading
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, List, Optional

from raju import config
from raju import secrets_manager
from raju.debug_logger import get_logger
from raju.exceptions import MissingCredentialError, RemoteCallError, StoreError
from raju.execution import planner, reflection
from raju.llm.provider_factory import get_provider
from raju.llm.providers.base import RemoteProvider
from raju.llm.retry import RetryHandler
from raju.memory.experience_store import ExperienceStore, get_experience_store
from raju.models.experience import (
    AgentMode,
    ExecutionMode,
    Experience,
    PhaseType,
    ReasoningPhase,
    ThoughtStream,
    new_task_id,
)


class ExecutionState(Enum):
    STARTED = "started"
    PLANNED = "planned"
    EXECUTED = "executed"
    REFLECTED = "reflected"
    PERSISTED_SUCCESS = "persisted_success"
    PERSISTED_FAILURE = "persisted_failure"


@dataclass
class ExecutionHandle:
    """Progress of one in-flight task execution."""
    task_id: str
    task_description: str
    mode: AgentMode
    thought_stream: ThoughtStream
    state: ExecutionState = ExecutionState.STARTED


def run_local_inference(task_description: str) -> str:
    """Offline execution. No on-device model is wired in yet."""
    return f"[OFFLINE MODE] Processing: {task_description}\n\nNote: Local GGUF model integration pending."


class TaskOrchestrator:
    """Runs tasks through the three-phase reasoning loop."""

    def __init__(
        self,
        store: Optional[ExperienceStore] = None,
        mode: Optional[AgentMode] = None,
        credential_lookup: Optional[Callable[[str], Optional[str]]] = None,
        success_predicate: Optional[Callable[[str], bool]] = None,
        local_executor: Optional[Callable[[str], str]] = None,
        provider_factory: Optional[Callable[[str], RemoteProvider]] = None,
        request_timeout: Optional[float] = None,
        on_phase: Optional[Callable[[str, ReasoningPhase], None]] = None,
    ):
        self.store = store or get_experience_store()
        self._mode = mode or AgentMode(type=ExecutionMode(config.DEFAULT_MODE))
        self._credential_lookup = credential_lookup or secrets_manager.get_api_key
        self._success_predicate = success_predicate or reflection.default_success_predicate
        self._local_executor = local_executor or run_local_inference
        self._provider_factory = provider_factory or get_provider
        self.request_timeout = request_timeout
        self._on_phase = on_phase

        self._active: Dict[str, ExecutionHandle] = {}
        self._active_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Mode and lifecycle
    # ------------------------------------------------------------------

    def initialize(self, mode: Optional[AgentMode] = None) -> None:
        if mode is not None:
            self.set_mode(mode)
        self.store.initialize()

    def set_mode(self, mode: AgentMode) -> None:
        self._mode = replace(mode)

    def get_mode(self) -> AgentMode:
        return replace(self._mode)

    def active_executions(self) -> List[ExecutionHandle]:
        with self._active_lock:
            return list(self._active.values())

    def get_thought_stream(self, task_id: str) -> Optional[ThoughtStream]:
        with self._active_lock:
            handle = self._active.get(task_id)
        return handle.thought_stream if handle else None

    # ------------------------------------------------------------------
    # Task execution
    # ------------------------------------------------------------------

    def execute_task(self, task_description: str, mode: Optional[AgentMode] = None) -> Experience:
        """Run the reasoning loop for one task and persist the outcome.

        Args:
            task_description: What the user asked for
            mode: Mode for this call only; defaults to the orchestrator's mode

        Returns:
            The stored Experience

        Raises:
            MissingCredentialError: cloud mode without a key for the provider
            RemoteCallError: the provider call failed
            StoreError: the experience could not be persisted
        """
        mode = replace(mode) if mode is not None else self.get_mode()
        task_id = new_task_id()
        handle = ExecutionHandle(
            task_id=task_id,
            task_description=task_description,
            mode=mode,
            thought_stream=ThoughtStream.start(task_id),
        )
        with self._active_lock:
            self._active[task_id] = handle
        get_logger().log_task_status(task_id, handle.state.value, {"mode": mode.type.value})

        try:
            plan_phase = self._plan_phase(task_description)
            self._advance(handle, plan_phase, ExecutionState.PLANNED)

            execute_phase = self._execute_phase(task_description, mode)
            self._advance(handle, execute_phase, ExecutionState.EXECUTED)

            reflect_phase = self._reflect_phase(task_description, execute_phase)
            self._advance(handle, reflect_phase, ExecutionState.REFLECTED)

            handle.thought_stream.finalize()
            experience = self._build_experience(
                handle,
                output=execute_phase.content,
                success=self._success_predicate(execute_phase.content),
            )
        except Exception as error:
            handle.thought_stream.finalize()
            failure = self._build_experience(
                handle,
                output=str(error),
                success=False,
                error_message=str(error),
            )
            self._persist_failure(handle, failure, error)
            raise
        else:
            self.store.store(experience)
            handle.state = ExecutionState.PERSISTED_SUCCESS
            get_logger().log_task_status(task_id, handle.state.value, {"success": experience.success})
            return experience
        finally:
            with self._active_lock:
                self._active.pop(task_id, None)

    def _advance(self, handle: ExecutionHandle, phase: ReasoningPhase, state: ExecutionState) -> None:
        handle.thought_stream.add_phase(phase)
        handle.state = state
        get_logger().log_phase(handle.task_id, phase.type.value, phase.content, phase.details)
        if self._on_phase is not None:
            try:
                self._on_phase(handle.task_id, phase)
            except Exception as e:
                # Progress display only; never let it fail the task
                get_logger().log_error("agent", e, {"task_id": handle.task_id, "callback": "on_phase"})

    def _build_experience(
        self,
        handle: ExecutionHandle,
        output: str,
        success: bool,
        error_message: Optional[str] = None,
    ) -> Experience:
        return Experience(
            id=f"exp_{handle.task_id}",
            task_description=handle.task_description,
            mode=handle.mode.type,
            model=handle.mode.active_model or config.DEFAULT_MODEL_LABEL,
            input=handle.task_description,
            output=output,
            reasoning=handle.thought_stream,
            success=success,
            timestamp=time.time(),
            error_message=error_message,
        )

    def _persist_failure(self, handle: ExecutionHandle, failure: Experience, error: Exception) -> None:
        get_logger().log_error("agent", error, {"task_id": handle.task_id, "state": handle.state.value})
        try:
            self.store.store(failure)
        except StoreError as store_error:
            # The task error is what the caller needs to see; the lost record is logged
            get_logger().log_error("agent", store_error, {"task_id": handle.task_id, "operation": "persist_failure"})
            return
        handle.state = ExecutionState.PERSISTED_FAILURE
        get_logger().log_task_status(handle.task_id, handle.state.value, {"error": str(error)})

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def _plan_phase(self, task_description: str) -> ReasoningPhase:
        started = time.time()
        try:
            return ReasoningPhase(
                type=PhaseType.PLAN,
                timestamp=started,
                content=planner.build_plan_text(task_description),
                details=planner.build_plan_details(task_description),
            )
        except Exception as e:
            return ReasoningPhase(
                type=PhaseType.PLAN,
                timestamp=started,
                content=f"Failed to create plan: {e}",
            )

    def _execute_phase(self, task_description: str, mode: AgentMode) -> ReasoningPhase:
        started = time.time()
        details = {"mode": mode.type.value}
        try:
            if mode.is_cloud:
                provider_name = (mode.active_provider or config.DEFAULT_PROVIDER).lower()
                details["provider"] = provider_name
                result = self._execute_cloud(task_description, provider_name, mode.active_model)
            else:
                result = self._local_executor(task_description)
        except (MissingCredentialError, RemoteCallError):
            raise
        except Exception as e:
            return ReasoningPhase(
                type=PhaseType.EXECUTE,
                timestamp=started,
                content=f"Execution failed: {e}",
            )

        details["duration"] = round(time.time() - started, 3)
        return ReasoningPhase(
            type=PhaseType.EXECUTE,
            timestamp=started,
            content=result,
            details=details,
        )

    def _execute_cloud(self, task_description: str, provider_name: str, model: Optional[str]) -> str:
        provider = self._provider_factory(provider_name)
        api_key = self._credential_lookup(provider_name)
        if not api_key:
            raise MissingCredentialError(provider_name)

        handler = RetryHandler(provider.get_retry_config())
        return handler.execute_with_retry(
            provider.complete,
            provider.classify_error,
            task_description,
            api_key,
            model=model,
            timeout=self.request_timeout,
        )

    def _reflect_phase(self, task_description: str, execute_phase: ReasoningPhase) -> ReasoningPhase:
        started = time.time()
        try:
            similar = self.store.find_similar(task_description)
            details = reflection.build_reflection_details(similar, execute_phase.content)
            return ReasoningPhase(
                type=PhaseType.REFLECT,
                timestamp=started,
                content=reflection.build_reflection_text(details["successRate"]),
                details=details,
            )
        except Exception as e:
            return ReasoningPhase(
                type=PhaseType.REFLECT,
                timestamp=started,
                content=f"Reflection failed: {e}",
            )
