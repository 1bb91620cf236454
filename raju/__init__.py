#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""raju - Plan/Execute/Reflect task agent with a persistent experience memory."""

from raju.versioning import get_version

__version__ = get_version()

# Configuration
from raju.config import RAJU_DIR

# Core models
from raju.models import (
    AgentMode,
    ExecutionMode,
    Experience,
    PhaseType,
    ReasoningPhase,
    ThoughtStream,
    ModelAsset,
)

# Errors
from raju.exceptions import (
    RajuError,
    MissingCredentialError,
    RemoteCallError,
    StoreError,
    StorageUnavailableError,
    DownloadError,
    ModelNotFoundError,
)

# Memory
from raju.memory import ExperienceStore, KeyValueStorage, get_experience_store

# Execution
from raju.execution import TaskOrchestrator, ExecutionHandle, ExecutionState

# Assets
from raju.assets import ModelManager

__all__ = [
    "__version__",
    "RAJU_DIR",
    "AgentMode",
    "ExecutionMode",
    "Experience",
    "PhaseType",
    "ReasoningPhase",
    "ThoughtStream",
    "ModelAsset",
    "RajuError",
    "MissingCredentialError",
    "RemoteCallError",
    "StoreError",
    "StorageUnavailableError",
    "DownloadError",
    "ModelNotFoundError",
    "ExperienceStore",
    "KeyValueStorage",
    "get_experience_store",
    "TaskOrchestrator",
    "ExecutionHandle",
    "ExecutionState",
    "ModelManager",
]
