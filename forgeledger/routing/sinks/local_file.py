"""Local file sink: appends events to per-build JSON-lines files.

Layout: {base_path}/{quoted build_id}.jsonl

The build_id is percent-encoded with no safe characters, so an id
containing "/" or ".." still maps to exactly one file directly under
base_path.

Each line is the canonical JSON of one event, so files are stable
across runs and diffable.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from urllib.parse import quote

from forgeledger.core.hasher import canonical_json_bytes
from forgeledger.models.events import LedgerEvent, parse_event

logger = logging.getLogger(__name__)


class LocalFileSink:
    """Writes events to local JSON-lines files.

    Parameters
    ----------
    base_path:
        Root directory for event files.  Defaults to ``.forgeledger/events``.
    """

    def __init__(self, base_path: Path | str | None = None) -> None:
        self._base = Path(base_path) if base_path else Path(".forgeledger/events")
        self._base.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    @property
    def sink_name(self) -> str:
        return "local_file"

    def _path_for(self, build_id: str) -> Path:
        return self._base / f"{quote(build_id, safe='')}.jsonl"

    def accept(self, event: LedgerEvent) -> None:
        target = self._path_for(event.build_id)
        line = canonical_json_bytes(event.model_dump(mode="json")) + b"\n"
        with self._lock, target.open("ab") as fh:
            fh.write(line)
        logger.debug("LocalFileSink: wrote %s to %s", event.event_id, target)

    def read_events(self, build_id: str) -> list[LedgerEvent]:
        """Read back every event recorded for *build_id*, in write order."""
        target = self._path_for(build_id)
        if not target.exists():
            return []
        with target.open("r", encoding="utf-8") as fh:
            return [parse_event(json.loads(line)) for line in fh if line.strip()]
