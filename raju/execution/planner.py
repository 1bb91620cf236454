#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Plan phase: a deterministic breakdown of a task description.

Classification is plain keyword matching on the lowercased text. The rules
are ordered; the first matching task type wins.
"""

from typing import Any, Dict, List, Tuple

TASK_TYPE_RULES: List[Tuple[str, Tuple[str, ...]]] = [
    ("question", ("question", "ask")),
    ("analysis", ("analyze", "analyse")),
    ("generation", ("generate", "create")),
    ("summarization", ("summarize", "summarise")),
]
DEFAULT_TASK_TYPE = "general"

TOOL_RULES: List[Tuple[str, Tuple[str, ...]]] = [
    ("file_system", ("file",)),
    ("clipboard", ("copy", "clipboard")),
]

LOW_COMPLEXITY_MAX_CHARS = 50
MEDIUM_COMPLEXITY_MAX_CHARS = 200

PLAN_STEPS = (
    "Analyze requirements",
    "Identify approach",
    "Execute steps",
    "Verify results",
)


def identify_task_type(task_description: str) -> str:
    lower = task_description.lower()
    for task_type, keywords in TASK_TYPE_RULES:
        if any(keyword in lower for keyword in keywords):
            return task_type
    return DEFAULT_TASK_TYPE


def estimate_complexity(task_description: str) -> str:
    length = len(task_description)
    if length < LOW_COMPLEXITY_MAX_CHARS:
        return "low"
    if length < MEDIUM_COMPLEXITY_MAX_CHARS:
        return "medium"
    return "high"


def identify_required_tools(task_description: str) -> List[str]:
    lower = task_description.lower()
    return [tool for tool, keywords in TOOL_RULES if any(keyword in lower for keyword in keywords)]


def build_plan_text(task_description: str) -> str:
    steps = "\n".join(f"{i}. {step}" for i, step in enumerate(PLAN_STEPS, start=1))
    return f'Plan for: "{task_description}"\n{steps}'


def build_plan_details(task_description: str) -> Dict[str, Any]:
    return {
        "taskType": identify_task_type(task_description),
        "complexity": estimate_complexity(task_description),
        "requiredTools": identify_required_tools(task_description),
    }
