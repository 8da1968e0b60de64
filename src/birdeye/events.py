"""Event models shared across watcher components."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import FrozenSet, Iterable, Optional


class Op(str, Enum):
    """Kinds of filesystem operations a raw event can carry."""

    CREATE = "create"
    WRITE = "write"
    REMOVE = "remove"
    RENAME = "rename"
    MOVE = "move"
    CHMOD = "chmod"

    @property
    def is_relocation(self) -> bool:
        return self in (Op.RENAME, Op.MOVE)


# Order used when rendering several kinds carried by one event.
OP_ORDER = (Op.CREATE, Op.WRITE, Op.REMOVE, Op.RENAME, Op.MOVE, Op.CHMOD)


@dataclass(frozen=True)
class RawEvent:
    """A single notification delivered by the event source."""

    path: Path
    ops: FrozenSet[Op]
    previous_path: Optional[Path] = None

    @classmethod
    def of(cls, path: Path, *ops: Op, previous_path: Optional[Path] = None) -> "RawEvent":
        return cls(path=Path(path), ops=frozenset(ops), previous_path=previous_path)

    def has(self, op: Op) -> bool:
        return op in self.ops

    def intersects(self, kinds: Iterable[Op]) -> bool:
        return not self.ops.isdisjoint(kinds)

    def is_directory(self) -> bool:
        """Stat the path now; the answer is stale if the entry changed since the event fired."""

        return self.path.is_dir()

    def __str__(self) -> str:
        kinds = "|".join(op.value for op in OP_ORDER if op in self.ops)
        if self.previous_path is not None:
            return f"{kinds}: {self.previous_path} -> {self.path}"
        return f"{kinds}: {self.path}"
