from buildr.config import settings


class HistoryManager:
    """Linear undo/redo over document snapshots, capped at ``limit`` entries."""

    def __init__(self, limit: int | None = None):
        self.limit = settings.history_limit if limit is None else limit
        if self.limit < 0:
            raise ValueError(f"History limit must not be negative, got {limit}")
        self.snapshots: list[str] = []
        self.index = -1

    @property
    def current(self) -> str | None:
        if not self.snapshots:
            return None
        return self.snapshots[self.index]

    @property
    def can_undo(self) -> bool:
        return self.index > 0

    @property
    def can_redo(self) -> bool:
        return self.index < len(self.snapshots) - 1

    def push(self, document: str) -> None:
        if self.snapshots and self.snapshots[self.index] == document:
            return
        del self.snapshots[self.index + 1:]
        self.snapshots.append(document)
        self.index = len(self.snapshots) - 1
        if len(self.snapshots) > self.limit:
            self.snapshots.pop(0)
            self.index -= 1

    def undo(self) -> str | None:
        if not self.can_undo:
            return None
        self.index -= 1
        return self.snapshots[self.index]

    def redo(self) -> str | None:
        if not self.can_redo:
            return None
        self.index += 1
        return self.snapshots[self.index]

    def clear(self) -> None:
        self.snapshots = []
        self.index = -1

    def to_dict(self) -> dict:
        return {"snapshots": list(self.snapshots), "index": self.index}

    @classmethod
    def from_dict(cls, data: dict, limit: int | None = None) -> "HistoryManager":
        history = cls(limit)
        snapshots = list(data.get("snapshots", []))
        dropped = max(0, len(snapshots) - history.limit)
        history.snapshots = snapshots[dropped:]
        if history.snapshots:
            index = data.get("index", len(snapshots) - 1) - dropped
            history.index = max(0, min(index, len(history.snapshots) - 1))
        return history
