import pytest

from raju.execution import planner, reflection
from raju.models import ExecutionMode, Experience, ThoughtStream


@pytest.mark.parametrize("task,expected", [
    ("Is this a question?", "question"),
    ("Please analyze the logs", "analysis"),
    ("Analyse the logs", "analysis"),
    ("Generate a report", "generation"),
    ("Create a todo list", "generation"),
    ("Summarize this article", "summarization"),
    ("Write a haiku", "general"),
    # Keyword matching is plain substring search
    ("Finish the task", "question"),
])
def test_identify_task_type(task, expected):
    assert planner.identify_task_type(task) == expected


def test_task_type_first_rule_wins():
    assert planner.identify_task_type("Ask me to summarize") == "question"


@pytest.mark.parametrize("length,expected", [
    (0, "low"),
    (49, "low"),
    (50, "medium"),
    (199, "medium"),
    (200, "high"),
])
def test_estimate_complexity_boundaries(length, expected):
    assert planner.estimate_complexity("x" * length) == expected


def test_identify_required_tools():
    assert planner.identify_required_tools("Read the FILE") == ["file_system"]
    assert planner.identify_required_tools("put it on the clipboard") == ["clipboard"]
    assert planner.identify_required_tools("hello") == []


def test_build_plan_text():
    assert planner.build_plan_text("Do X") == (
        'Plan for: "Do X"\n'
        "1. Analyze requirements\n"
        "2. Identify approach\n"
        "3. Execute steps\n"
        "4. Verify results"
    )


def _experience(task, success):
    return Experience(
        id=f"exp_{task}",
        task_description=task,
        mode=ExecutionMode.OFFLINE,
        model="default",
        input=task,
        output="",
        reasoning=ThoughtStream.start(task),
        success=success,
    )


def test_similar_success_rate():
    assert reflection.similar_success_rate([]) == 0.0
    records = [_experience("a", True), _experience("b", False), _experience("c", True), _experience("d", True)]
    assert reflection.similar_success_rate(records) == pytest.approx(0.75)


def test_identify_improvements():
    assert reflection.identify_improvements("an error happened") == [
        "Handle error cases better",
        "Add retry logic",
    ]
    assert reflection.identify_improvements("ERROR") == ["Task completed successfully"]


def test_reflection_text_formats_percentage():
    assert reflection.build_reflection_text(2 / 3) == (
        "Reflection: Task completed. Success rate for similar tasks: 66.7%"
    )


def test_default_success_predicate():
    assert reflection.default_success_predicate("all good") is True
    assert reflection.default_success_predicate("parse error") is False
    assert reflection.default_success_predicate("") is True
