"""Snapshot persistence for the local catalog.

The full resource sequence is serialized to one JSON file named after a
fixed storage key (``<snapshot_dir>/<storage_name>.json``). It is loaded
when a session starts and rewritten after every local mutation.

* **Atomic writes** -- ``save()`` writes to a temp file then calls
  ``os.replace()`` so readers never see partial data.
* **Forgiving reads** -- a missing file means "no snapshot"; an unreadable
  one is logged and treated the same, so startup falls back to a remote
  full load.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path

from pydantic import ValidationError

from .models import Resource

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Load, save and clear the catalog snapshot.

    Args:
        snapshot_dir: Directory where the snapshot file lives.
        storage_name: File stem of the snapshot.
    """

    def __init__(
        self, snapshot_dir: Path, storage_name: str = "resource_warehouse"
    ) -> None:
        self._snapshot_dir = snapshot_dir
        self.storage_name = storage_name

    @property
    def path(self) -> Path:
        return self._snapshot_dir / f"{self.storage_name}.json"

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> list[Resource] | None:
        """Read the snapshot.

        Returns:
            The stored records, or ``None`` if there is no usable snapshot.
        """
        path = self.path
        if not path.exists():
            return None
        try:
            with open(path, encoding="utf-8") as fh:
                raw = json.load(fh)
            if not isinstance(raw, list):
                raise ValueError("snapshot root is not a list")
            return [Resource.model_validate(item) for item in raw]
        except (OSError, ValueError, ValidationError) as exc:
            logger.error("Failed to load snapshot %s: %s", path, exc)
            return None

    def save(self, records: Iterable[Resource]) -> None:
        """Persist *records* atomically, creating the directory if needed."""
        self._snapshot_dir.mkdir(parents=True, exist_ok=True)
        payload = [record.to_document() for record in records]

        fd, tmp_path = tempfile.mkstemp(
            dir=str(self._snapshot_dir), suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

    def clear(self) -> None:
        """Delete the snapshot file. No-op if absent."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
