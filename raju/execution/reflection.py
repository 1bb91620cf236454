#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Reflect phase helpers: compare an outcome with similar past experiences."""

from typing import Any, Dict, List, Sequence

from raju.models.experience import Experience

ERROR_MARKER = "error"


def output_has_error_marker(output: str) -> bool:
    """The success heuristic: a case-sensitive search for the word "error"."""
    return ERROR_MARKER in (output or "")


def default_success_predicate(output: str) -> bool:
    return not output_has_error_marker(output)


def similar_success_rate(similar: Sequence[Experience]) -> float:
    """Fraction of successful records, 0.0 when there are none."""
    if not similar:
        return 0.0
    return sum(1 for record in similar if record.success) / len(similar)


def identify_improvements(output: str) -> List[str]:
    if output_has_error_marker(output):
        return ["Handle error cases better", "Add retry logic"]
    return ["Task completed successfully"]


def build_reflection_text(success_rate: float) -> str:
    return f"Reflection: Task completed. Success rate for similar tasks: {success_rate * 100:.1f}%"


def build_reflection_details(similar: Sequence[Experience], output: str) -> Dict[str, Any]:
    return {
        "similarExperiences": len(similar),
        "successRate": similar_success_rate(similar),
        "improvements": identify_improvements(output),
    }
