"""Task execution: the Plan -> Execute -> Reflect loop."""

from raju.execution.orchestrator import (
    ExecutionHandle,
    ExecutionState,
    TaskOrchestrator,
    run_local_inference,
)

__all__ = [
    "ExecutionHandle",
    "ExecutionState",
    "TaskOrchestrator",
    "run_local_inference",
]
