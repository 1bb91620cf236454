#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Downloadable model asset records."""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass
class ModelAsset:
    """A model file downloaded to local storage."""
    id: str
    name: str
    url: str
    file_size: int
    downloaded_at: float
    local_path: str
    format: str = "gguf"
    is_active: bool = False
    checksum: Optional[str] = None  # reserved; not verified

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ModelAsset':
        return cls(
            id=data["id"],
            name=data["name"],
            url=data.get("url", ""),
            file_size=int(data.get("file_size", 0)),
            downloaded_at=data.get("downloaded_at", 0.0),
            local_path=data["local_path"],
            format=data.get("format", "gguf"),
            is_active=bool(data.get("is_active", False)),
            checksum=data.get("checksum"),
        )


@dataclass
class DownloadProgress:
    total_bytes: int
    downloaded_bytes: int
    percentage: float
    speed: float  # bytes per second
    eta: float  # seconds remaining


@dataclass
class FileIntegrityCheck:
    file_size: int
    is_valid: bool
    error: Optional[str] = None
    expected_size: Optional[int] = None


@dataclass
class StorageInfo:
    total_space: int
    free_space: int
    used_space: int
