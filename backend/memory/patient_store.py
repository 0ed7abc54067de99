from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import os
import re
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from .locks import KeyedLocks
from .records import PatientRecord

logger = logging.getLogger(__name__)

_SAFE_USER_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,128}$")


class StorageError(Exception):
    pass


class PatientRecordStore:
    """File-per-user JSON store for patient records.

    Saves always rewrite the whole record through a temp file in the same
    directory followed by ``os.replace``, so a crash mid-write leaves the
    previous record intact.
    """

    def __init__(self, data_dir: str) -> None:
        self._dir = Path(data_dir).expanduser().resolve()
        self._dir.mkdir(parents=True, exist_ok=True)
        self._locks = KeyedLocks()

    @property
    def path(self) -> str:
        return str(self._dir)

    def record_path(self, user_id: str) -> Path:
        if _SAFE_USER_ID_RE.fullmatch(user_id):
            return self._dir / f"{user_id}.json"
        digest = hashlib.sha256(user_id.encode("utf-8")).hexdigest()
        return self._dir / f"u_{digest}.json"

    @asynccontextmanager
    async def lock(self, user_id: str) -> AsyncIterator[None]:
        async with self._locks.hold(user_id):
            yield

    async def load(self, user_id: str) -> PatientRecord:
        return await asyncio.to_thread(self._load_sync, user_id)

    async def save(self, user_id: str, record: PatientRecord) -> None:
        await asyncio.to_thread(self._save_sync, user_id, record)

    def _load_sync(self, user_id: str) -> PatientRecord:
        path = self.record_path(user_id)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return PatientRecord()
        except OSError as exc:
            raise StorageError(f"Could not read record {path.name}: {exc}") from exc
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StorageError(f"Record {path.name} is not valid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise StorageError(f"Record {path.name} is not a JSON object.")
        try:
            return PatientRecord.from_dict(payload)
        except (TypeError, ValueError, OverflowError) as exc:
            raise StorageError(f"Record {path.name} holds unusable values: {exc}") from exc

    def _save_sync(self, user_id: str, record: PatientRecord) -> None:
        path = self.record_path(user_id)
        encoded = json.dumps(record.to_dict(), ensure_ascii=False, indent=2)
        tmp_name: str | None = None
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=f"{path.name}.tmp-", dir=str(self._dir))
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(encoded)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as exc:
            raise StorageError(f"Could not write record {path.name}: {exc}") from exc
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.warning("Could not remove temp file %s", tmp_name)
