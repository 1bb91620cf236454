#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Download, verify and track local GGUF model files.

Model records live under the ``raju_models`` storage key; the files
themselves live in the models directory. Reads of the record list degrade
to an empty list, writes raise StoreError.
"""

import json
import os
import shutil
import threading
import time
import uuid
from pathlib import Path
from typing import Callable, List, Optional, Union

import requests

from raju import config
from raju.debug_logger import get_logger
from raju.exceptions import DownloadError, ModelNotFoundError, StorageUnavailableError, StoreError
from raju.memory.storage import KeyValueStorage
from raju.models.asset import DownloadProgress, FileIntegrityCheck, ModelAsset, StorageInfo


class ModelManager:
    """Manages downloaded model assets."""

    def __init__(
        self,
        storage: Optional[KeyValueStorage] = None,
        models_dir: Optional[Union[str, Path]] = None,
    ):
        self.storage = storage or KeyValueStorage()
        self.models_dir = Path(models_dir) if models_dir is not None else config.MODELS_DIR
        self._lock = threading.RLock()

    def initialize(self) -> None:
        """Create the models directory."""
        try:
            self.models_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            get_logger().log_error("models", e, {"operation": "initialize"})
            raise StorageUnavailableError(f"Failed to initialize models directory: {e}") from e

    def get_storage_info(self) -> StorageInfo:
        """Report total/free/used bytes of the volume holding the models directory."""
        self.initialize()
        usage = shutil.disk_usage(self.models_dir)
        return StorageInfo(total_space=usage.total, free_space=usage.free, used_space=usage.used)

    # ------------------------------------------------------------------
    # Downloads
    # ------------------------------------------------------------------

    def model_path(self, name: str) -> Path:
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            raise ValueError(f"Invalid model name: {name!r}")
        return self.models_dir / f"{name}{config.MODEL_FILE_EXTENSION}"

    def download_model(
        self,
        url: str,
        name: str,
        on_progress: Optional[Callable[[DownloadProgress], None]] = None,
    ) -> ModelAsset:
        """Stream a model file to the models directory and record it.

        A name that is already recorded is replaced: the verified file takes
        the old file's place and the new record inherits its active flag.

        Args:
            url: Where to fetch the model from
            name: File stem for the stored model
            on_progress: Called with a DownloadProgress after every chunk

        Returns:
            The new ModelAsset record

        Raises:
            DownloadError: not enough space, transfer failure or a file that
                fails the integrity check
            StoreError: the record could not be saved
        """
        path = self.model_path(name)
        storage = self.get_storage_info()
        if storage.free_space < config.MIN_FREE_SPACE_BYTES:
            raise DownloadError("Insufficient storage space")

        # Stream next to the target; an existing model file is only replaced by a verified one
        partial = path.with_name(f".{path.name}.{uuid.uuid4().hex[:8]}.part")
        get_logger().log("models", "DOWNLOAD_START", {"name": name, "url": url.split("?", 1)[0]})
        started = time.time()
        try:
            try:
                response = requests.get(url, stream=True, timeout=config.DOWNLOAD_TIMEOUT_SECONDS)
                try:
                    response.raise_for_status()
                    total = int(response.headers.get("Content-Length") or 0)
                    downloaded = 0
                    with open(partial, "wb") as f:
                        for chunk in response.iter_content(chunk_size=config.DOWNLOAD_CHUNK_SIZE):
                            if not chunk:
                                continue
                            f.write(chunk)
                            downloaded += len(chunk)
                            if on_progress is not None:
                                on_progress(_progress(total, downloaded, time.time() - started))
                finally:
                    response.close()
            except (requests.exceptions.RequestException, OSError) as e:
                get_logger().log_error("models", e, {"operation": "download", "name": name})
                raise DownloadError(f"Download failed: {e}") from e

            integrity = self.verify_file_integrity(partial)
            if not integrity.is_valid:
                raise DownloadError(f"File integrity check failed: {integrity.error}")

            try:
                os.replace(partial, path)
            except OSError as e:
                raise DownloadError(f"Download failed: {e}") from e
        except BaseException:
            _remove_quietly(partial)
            raise

        model = ModelAsset(
            id=f"model_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}",
            name=name,
            url=url,
            file_size=integrity.file_size,
            downloaded_at=time.time(),
            local_path=str(path),
        )
        with self._lock:
            models = self._load_models_strict()
            # A re-download of a known name takes over that record's file
            replaced = [m for m in models if m.name == name]
            model.is_active = any(m.is_active for m in replaced)
            models = [m for m in models if m.name != name]
            models.append(model)
            self._save_models(models, "save model record")

        get_logger().log("models", "DOWNLOAD_COMPLETE", {
            "id": model.id,
            "replaced": [m.id for m in replaced],
            "file_size": model.file_size,
            "elapsed_seconds": round(time.time() - started, 3),
        })
        return model

    def verify_file_integrity(self, file_path: Union[str, Path]) -> FileIntegrityCheck:
        path = Path(file_path)
        try:
            if not path.is_file():
                return FileIntegrityCheck(file_size=0, is_valid=False, error="File does not exist")
            size = path.stat().st_size
        except OSError as e:
            return FileIntegrityCheck(file_size=0, is_valid=False, error=str(e))

        if size < config.MIN_MODEL_FILE_BYTES:
            return FileIntegrityCheck(file_size=size, is_valid=False, error="File size too small")
        return FileIntegrityCheck(file_size=size, is_valid=True)

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def _load_models_strict(self) -> List[ModelAsset]:
        try:
            raw = self.storage.get_item(config.MODELS_STORAGE_KEY)
            if not raw:
                return []
            return [ModelAsset.from_dict(item) for item in json.loads(raw)]
        except (StorageUnavailableError, ValueError, KeyError, TypeError) as e:
            raise StoreError(f"Failed to read model records: {e}") from e

    def _save_models(self, models: List[ModelAsset], operation: str) -> None:
        try:
            self.storage.set_item(
                config.MODELS_STORAGE_KEY,
                json.dumps([model.to_dict() for model in models]),
            )
        except StorageUnavailableError as e:
            get_logger().log_error("models", e, {"operation": operation})
            raise StoreError(f"Failed to {operation}") from e

    def get_all_models(self) -> List[ModelAsset]:
        try:
            return self._load_models_strict()
        except StoreError as e:
            get_logger().log_error("models", e, {"operation": "get_all_models"})
            return []

    def get_model(self, model_id: str) -> Optional[ModelAsset]:
        for model in self.get_all_models():
            if model.id == model_id:
                return model
        return None

    def set_active_model(self, model_id: str) -> ModelAsset:
        """Mark one model active and every other model inactive."""
        with self._lock:
            models = self._load_models_strict()
            if not any(model.id == model_id for model in models):
                raise ModelNotFoundError(model_id)
            for model in models:
                model.is_active = model.id == model_id
            self._save_models(models, "set active model")
        get_logger().log("models", "MODEL_ACTIVATED", {"id": model_id})
        return next(model for model in models if model.is_active)

    def get_active_model(self) -> Optional[ModelAsset]:
        for model in self.get_all_models():
            if model.is_active:
                return model
        return None

    def delete_model(self, model_id: str) -> None:
        """Delete a model record and its file. A file already gone is only logged."""
        with self._lock:
            models = self._load_models_strict()
            model = next((m for m in models if m.id == model_id), None)
            if model is None:
                raise ModelNotFoundError(model_id)

            try:
                Path(model.local_path).unlink()
            except OSError as e:
                get_logger().log_error("models", e, {"operation": "delete_model_file", "id": model_id})

            self._save_models([m for m in models if m.id != model_id], "delete model")
        get_logger().log("models", "MODEL_DELETED", {"id": model_id})


def _progress(total: int, downloaded: int, elapsed: float) -> DownloadProgress:
    speed = downloaded / elapsed if elapsed > 0 else 0.0
    percentage = (downloaded / total) * 100 if total else 0.0
    eta = (total - downloaded) / speed if total and speed > 0 else 0.0
    return DownloadProgress(
        total_bytes=total,
        downloaded_bytes=downloaded,
        percentage=percentage,
        speed=speed,
        eta=max(eta, 0.0),
    )


def _remove_quietly(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        get_logger().log_error("models", e, {"operation": "remove_partial", "path": str(path)})
