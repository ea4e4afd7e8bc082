import asyncio
import json
import logging
import secrets
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path

from buildr.config import settings

logger = logging.getLogger(__name__)

RECOVERY_FILE = "recovery.json"
SESSION_FILE = "session.json"


class SnapshotStore:
    """Local JSON snapshots of the document and of the whole editing session.

    Storage problems are logged and otherwise ignored: a snapshot is a
    convenience, never a reason to fail a build.
    """

    def __init__(self, directory: Path | str):
        self.directory = Path(directory)

    def save_recovery(self, document: str, prompt: str = "") -> None:
        self._write(RECOVERY_FILE, {"code": document, "prompt": prompt, "timestamp": time.time()})

    def load_recovery(self, ttl_hours: float | None = None) -> dict | None:
        if ttl_hours is None:
            ttl_hours = settings.recovery_ttl_hours
        data = self._read(RECOVERY_FILE, ttl_hours)
        if not data or not data.get("code"):
            return None
        return data

    def save_session(self, state: dict) -> None:
        self._write(SESSION_FILE, {**state, "timestamp": time.time()})

    def load_session(self, ttl_hours: float | None = None) -> dict | None:
        if ttl_hours is None:
            ttl_hours = settings.session_ttl_hours
        return self._read(SESSION_FILE, ttl_hours)

    def clear(self) -> None:
        for name in (RECOVERY_FILE, SESSION_FILE):
            try:
                (self.directory / name).unlink(missing_ok=True)
            except OSError as e:
                logger.warning("Could not remove snapshot %s: %s", name, e)

    def _write(self, name: str, data: dict) -> None:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            path = self.directory / name
            tmp = path.with_suffix(".tmp")
            tmp.write_text(json.dumps(data), encoding="utf-8")
            tmp.replace(path)
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Snapshot %s not saved: %s", name, e)

    def _read(self, name: str, ttl_hours: float) -> dict | None:
        path = self.directory / name
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.warning("Snapshot %s unreadable: %s", name, e)
            return None
        if not isinstance(data, dict):
            return None
        if time.time() - data.get("timestamp", 0) > ttl_hours * 3600:
            return None
        return data


def new_session_id() -> str:
    return f"session_{int(time.time() * 1000)}_{secrets.token_hex(3)}"


@dataclass
class SessionContext:
    """Per-session state handed to the orchestrator and its collaborators."""

    snapshots: SnapshotStore
    session_id: str = field(default_factory=new_session_id)
    project_id: str | None = None

    @classmethod
    def start(cls, snapshot_dir: Path | str | None = None, project_id: str | None = None) -> "SessionContext":
        return cls(snapshots=SnapshotStore(snapshot_dir or settings.snapshot_dir), project_id=project_id)

    def reset(self) -> None:
        self.snapshots.clear()
        self.session_id = new_session_id()
        self.project_id = None


class DebouncedSaver:
    """Run ``save(document)`` once the document has been stable for ``delay`` seconds."""

    def __init__(self, save: Callable[[str], Awaitable[None]], delay: float | None = None):
        self._save = save
        self.delay = settings.save_debounce_seconds if delay is None else delay
        self._pending: asyncio.Task | None = None
        self.last_saved: str | None = None

    @property
    def pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def schedule(self, document: str) -> None:
        self.cancel()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop, save of %d chars skipped", len(document))
            return
        self._pending = loop.create_task(self._run(document))

    def cancel(self) -> None:
        if self.pending:
            self._pending.cancel()
        self._pending = None

    async def flush(self) -> None:
        """Wait for the pending save, if any."""
        if self._pending is not None:
            try:
                await self._pending
            except asyncio.CancelledError:
                pass

    async def _run(self, document: str) -> None:
        await asyncio.sleep(self.delay)
        try:
            await self._save(document)
            self.last_saved = document
        except Exception:
            logger.exception("Debounced save failed (%d chars)", len(document))
