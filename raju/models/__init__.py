#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Data models for raju."""

from raju.models.experience import (
    AgentMode,
    ExecutionMode,
    Experience,
    PhaseType,
    ReasoningPhase,
    ThoughtStream,
    new_task_id,
)
from raju.models.asset import (
    DownloadProgress,
    FileIntegrityCheck,
    ModelAsset,
    StorageInfo,
)

__all__ = [
    "AgentMode",
    "ExecutionMode",
    "Experience",
    "PhaseType",
    "ReasoningPhase",
    "ThoughtStream",
    "new_task_id",
    "DownloadProgress",
    "FileIntegrityCheck",
    "ModelAsset",
    "StorageInfo",
]
