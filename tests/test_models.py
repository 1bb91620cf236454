import pytest

from raju.models import (
    AgentMode,
    ExecutionMode,
    Experience,
    ModelAsset,
    PhaseType,
    ReasoningPhase,
    ThoughtStream,
    new_task_id,
)


def _stream(task_id="task_abc"):
    stream = ThoughtStream.start(task_id)
    stream.add_phase(ReasoningPhase(PhaseType.PLAN, 1.0, "plan", {"taskType": "general"}))
    stream.add_phase(ReasoningPhase(PhaseType.EXECUTE, 2.0, "done"))
    stream.add_phase(ReasoningPhase(PhaseType.REFLECT, 3.0, "reflection"))
    stream.finalize()
    return stream


def test_new_task_id_is_prefixed_and_unique():
    ids = {new_task_id() for _ in range(50)}
    assert len(ids) == 50
    assert all(task_id.startswith("task_") for task_id in ids)


def test_thought_stream_ids_follow_task_id():
    stream = ThoughtStream.start("task_123")
    assert stream.id == "thought_task_123"
    assert stream.task_id == "task_123"
    assert stream.end_time is None


def test_finalize_keeps_first_end_time():
    stream = ThoughtStream.start("task_1")
    stream.finalize()
    first = stream.end_time
    stream.finalize()
    assert stream.end_time == first
    assert stream.end_time >= stream.start_time


def test_add_phase_after_finalize_is_rejected():
    stream = ThoughtStream.start("task_1")
    stream.finalize()
    with pytest.raises(ValueError):
        stream.add_phase(ReasoningPhase(PhaseType.PLAN, 1.0, "late"))


def test_phase_lookup_helpers():
    stream = _stream()
    assert stream.phase_types == [PhaseType.PLAN, PhaseType.EXECUTE, PhaseType.REFLECT]
    assert stream.get_phase(PhaseType.EXECUTE).content == "done"


def test_experience_dict_uses_snake_case_and_enum_values():
    experience = Experience(
        id="exp_task_abc",
        task_description="Summarize notes",
        mode=ExecutionMode.CLOUD,
        model="gpt-4-turbo",
        input="Summarize notes",
        output="Summary",
        reasoning=_stream(),
        success=True,
        timestamp=10.0,
    )
    data = experience.to_dict()

    assert data["task_description"] == "Summarize notes"
    assert data["mode"] == "cloud"
    assert data["reasoning"]["phases"][0]["type"] == "plan"
    assert data["reasoning"]["phases"][0]["details"] == {"taskType": "general"}
    assert "details" not in data["reasoning"]["phases"][1]
    assert "error_message" not in data

    restored = Experience.from_dict(data)
    assert restored == experience


def test_experience_keeps_error_message():
    experience = Experience(
        id="exp_1",
        task_description="t",
        mode=ExecutionMode.OFFLINE,
        model="default",
        input="t",
        output="boom",
        reasoning=_stream(),
        success=False,
        error_message="boom",
    )
    assert Experience.from_dict(experience.to_dict()).error_message == "boom"


def test_agent_mode_defaults_and_dict():
    mode = AgentMode()
    assert mode.type == ExecutionMode.OFFLINE
    assert not mode.is_cloud

    cloud = AgentMode.from_dict({"type": "cloud", "active_provider": "gemini"})
    assert cloud.is_cloud
    assert cloud.active_provider == "gemini"
    assert cloud.to_dict() == {"type": "cloud", "active_model": None, "active_provider": "gemini"}


def test_agent_mode_rejects_unknown_type():
    with pytest.raises(ValueError):
        AgentMode.from_dict({"type": "hybrid"})


def test_model_asset_from_dict_defaults():
    asset = ModelAsset.from_dict({"id": "model_1", "name": "tiny", "local_path": "/tmp/tiny.gguf"})
    assert asset.format == "gguf"
    assert asset.is_active is False
    assert asset.checksum is None
    assert ModelAsset.from_dict(asset.to_dict()) == asset
