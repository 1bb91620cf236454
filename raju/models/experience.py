#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Reasoning trace and experience models for raju."""

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class PhaseType(Enum):
    PLAN = "plan"
    EXECUTE = "execute"
    REFLECT = "reflect"


class ExecutionMode(Enum):
    """Where a task runs: on local resources or against a remote provider."""
    OFFLINE = "offline"
    CLOUD = "cloud"


def new_task_id() -> str:
    return f"task_{uuid.uuid4().hex[:12]}"


@dataclass
class AgentMode:
    """Operating strategy for a task execution."""
    type: ExecutionMode = ExecutionMode.OFFLINE
    active_model: Optional[str] = None
    active_provider: Optional[str] = None

    @property
    def is_cloud(self) -> bool:
        return self.type == ExecutionMode.CLOUD

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "active_model": self.active_model,
            "active_provider": self.active_provider,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AgentMode':
        return cls(
            type=ExecutionMode(data.get("type", ExecutionMode.OFFLINE.value)),
            active_model=data.get("active_model"),
            active_provider=data.get("active_provider"),
        )


@dataclass
class ReasoningPhase:
    """One step of a reasoning trace."""
    type: PhaseType
    timestamp: float
    content: str
    details: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": self.type.value,
            "timestamp": self.timestamp,
            "content": self.content,
        }
        if self.details is not None:
            data["details"] = dict(self.details)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReasoningPhase':
        return cls(
            type=PhaseType(data["type"]),
            timestamp=data["timestamp"],
            content=data.get("content", ""),
            details=data.get("details"),
        )


@dataclass
class ThoughtStream:
    """Ordered plan/execute/reflect trace of a single task execution."""
    id: str
    task_id: str
    phases: List[ReasoningPhase] = field(default_factory=list)
    start_time: float = field(default_factory=time.time)
    end_time: Optional[float] = None

    @classmethod
    def start(cls, task_id: str) -> 'ThoughtStream':
        return cls(id=f"thought_{task_id}", task_id=task_id)

    def add_phase(self, phase: ReasoningPhase) -> None:
        if self.end_time is not None:
            raise ValueError(f"Thought stream {self.id} is already finalized")
        self.phases.append(phase)

    def finalize(self) -> None:
        """Stamp the end time. Later calls keep the first stamp."""
        if self.end_time is None:
            self.end_time = time.time()

    @property
    def phase_types(self) -> List[PhaseType]:
        return [phase.type for phase in self.phases]

    def get_phase(self, phase_type: PhaseType) -> Optional[ReasoningPhase]:
        for phase in self.phases:
            if phase.type == phase_type:
                return phase
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "task_id": self.task_id,
            "phases": [phase.to_dict() for phase in self.phases],
            "start_time": self.start_time,
            "end_time": self.end_time,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ThoughtStream':
        return cls(
            id=data["id"],
            task_id=data["task_id"],
            phases=[ReasoningPhase.from_dict(p) for p in data.get("phases", [])],
            start_time=data["start_time"],
            end_time=data.get("end_time"),
        )


@dataclass
class Experience:
    """Durable record of one completed (or failed) task execution.

    ``embedding`` is reserved for a future similarity index and is never
    computed; search is plain substring containment.
    """
    id: str
    task_description: str
    mode: ExecutionMode
    model: str
    input: str
    output: str
    reasoning: ThoughtStream
    success: bool
    timestamp: float = field(default_factory=time.time)
    error_message: Optional[str] = None
    embedding: Optional[List[float]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "task_description": self.task_description,
            "mode": self.mode.value,
            "model": self.model,
            "input": self.input,
            "output": self.output,
            "reasoning": self.reasoning.to_dict(),
            "success": self.success,
            "timestamp": self.timestamp,
        }
        if self.error_message is not None:
            data["error_message"] = self.error_message
        if self.embedding is not None:
            data["embedding"] = list(self.embedding)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Experience':
        return cls(
            id=data["id"],
            task_description=data.get("task_description", ""),
            mode=ExecutionMode(data.get("mode", ExecutionMode.OFFLINE.value)),
            model=data.get("model", ""),
            input=data.get("input", ""),
            output=data.get("output", ""),
            reasoning=ThoughtStream.from_dict(data["reasoning"]),
            success=bool(data.get("success", False)),
            timestamp=data["timestamp"],
            error_message=data.get("error_message"),
            embedding=data.get("embedding"),
        )
