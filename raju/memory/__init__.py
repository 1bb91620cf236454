from raju.memory.storage import KeyValueStorage
from raju.memory.experience_store import (
    ExperienceStore,
    MemoryStats,
    SuccessRate,
    get_experience_store,
    reset_experience_store,
)

__all__ = [
    "KeyValueStorage",
    "ExperienceStore",
    "MemoryStats",
    "SuccessRate",
    "get_experience_store",
    "reset_experience_store",
]
