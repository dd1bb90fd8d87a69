"""
Tuple Store — lifecycle of Thinking Tuple records.

Two backends composed read-through / write-through:
  - MemoryBackend: authoritative for the life of the process
  - FileBackend:   one JSON snapshot per tuple id, best-effort

A failed snapshot write never fails the logical operation; only resuming a
tuple from another process depends on it.
"""

from __future__ import annotations

import json
import logging
import os
import secrets
import tempfile
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .errors import InvalidArgumentError, NotFoundError
from .models import Slot, SlotAction, ThinkingTuple

logger = logging.getLogger(__name__)


# ── Backends ─────────────────────────────────────────────────

class TupleBackend:
    """Storage backend interface."""

    def load(self, tuple_id: str) -> ThinkingTuple | None:
        raise NotImplementedError

    def save(self, tup: ThinkingTuple) -> None:
        raise NotImplementedError

    def ids(self) -> list[str]:
        raise NotImplementedError


class MemoryBackend(TupleBackend):
    """Process-lifetime index of live tuples."""

    def __init__(self):
        self._tuples: dict[str, ThinkingTuple] = {}

    def load(self, tuple_id: str) -> ThinkingTuple | None:
        return self._tuples.get(tuple_id)

    def save(self, tup: ThinkingTuple) -> None:
        self._tuples[tup.id] = tup

    def ids(self) -> list[str]:
        return list(self._tuples.keys())

    def __contains__(self, tuple_id: str) -> bool:
        return tuple_id in self._tuples


class FileBackend(TupleBackend):
    """
    JSON snapshots under a state directory, one file per tuple id.

    Files are overwritten on every save (temp file + rename).
    """

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def path_for(self, tuple_id: str) -> Path:
        # Ids are generated by the store, but lookups come from callers.
        if not isinstance(tuple_id, str) or not tuple_id:
            raise InvalidArgumentError(f"Invalid tuple id: {tuple_id!r}")
        if "/" in tuple_id or "\\" in tuple_id or tuple_id.startswith("."):
            raise InvalidArgumentError(f"Invalid tuple id: {tuple_id!r}")
        return self.directory / f"{tuple_id}.json"

    def load(self, tuple_id: str) -> ThinkingTuple | None:
        path = self.path_for(tuple_id)
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return ThinkingTuple.from_dict(data)
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring unreadable snapshot {path}: {e}")
            return None

    def save(self, tup: ThinkingTuple) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        target = self.path_for(tup.id)
        fd, tmp = tempfile.mkstemp(dir=self.directory, prefix=f".{tup.id}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(tup.to_dict(), f, indent=2)
            os.replace(tmp, target)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def ids(self) -> list[str]:
        if not self.directory.is_dir():
            return []
        return sorted(p.stem for p in self.directory.glob("*.json"))


# ── Store ────────────────────────────────────────────────────

def coerce_content(content: str | list | tuple | None) -> list[str]:
    """A single string becomes a one-element list; None becomes empty."""
    if content is None:
        return []
    if isinstance(content, str):
        return [content]
    if isinstance(content, (list, tuple)):
        return [str(item) for item in content]
    raise InvalidArgumentError(
        f"Slot content must be a string or a list of strings, got {type(content).__name__}"
    )


def parse_slot(slot: str | Slot) -> Slot:
    try:
        return Slot(slot.lower() if isinstance(slot, str) else slot)
    except ValueError:
        valid = ", ".join(s.value for s in Slot)
        raise InvalidArgumentError(f"Invalid slot '{slot}'. Must be one of: {valid}") from None


def parse_action(action: str | SlotAction) -> SlotAction:
    try:
        return SlotAction(action.lower() if isinstance(action, str) else action)
    except ValueError:
        valid = ", ".join(a.value for a in SlotAction)
        raise InvalidArgumentError(f"Invalid action '{action}'. Must be one of: {valid}") from None


class TupleStore:
    """
    Creates, fetches and mutates Thinking Tuples.

    Usage:
        store = TupleStore(snapshots=FileBackend(".claude/state/runs"))
        tup = store.create("add auth")
        store.update_slot(tup.id, "constraints", "append", "OAuth only")
        with store.mutate(tup.id) as live:
            live.iteration += 1
    """

    def __init__(
        self,
        memory: MemoryBackend | None = None,
        snapshots: TupleBackend | None = None,
    ):
        self.memory = memory or MemoryBackend()
        self.snapshots = snapshots
        self._locks: dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    def create(
        self,
        task: str,
        constraints: str | list[str] | None = None,
        invariant: str | list[str] | None = None,
    ) -> ThinkingTuple:
        if not isinstance(task, str) or not task.strip():
            raise InvalidArgumentError("Tuple task must be a non-empty string")

        tup = ThinkingTuple(
            id=self._new_id(),
            task=task,
            constraints=coerce_content(constraints),
            invariant=coerce_content(invariant),
        )
        self.memory.save(tup)
        self._persist(tup)
        logger.info(f"Created tuple {tup.id}: {task[:60]}")
        return tup

    def find(self, tuple_id: str) -> ThinkingTuple | None:
        """Memory first, then the snapshot (installed into memory on hit)."""
        if not isinstance(tuple_id, str):
            return None
        tup = self.memory.load(tuple_id)
        if tup is not None or self.snapshots is None:
            return tup

        try:
            tup = self.snapshots.load(tuple_id)
        except InvalidArgumentError:
            return None
        if tup is not None:
            self.memory.save(tup)
            logger.debug(f"Reloaded tuple {tuple_id} from snapshot")
        return tup

    def get(self, tuple_id: str) -> ThinkingTuple:
        tup = self.find(tuple_id)
        if tup is None:
            raise NotFoundError(f"Tuple '{tuple_id}' not found. Use tuple_init to create one.")
        return tup

    def update_slot(
        self,
        tuple_id: str,
        slot: str | Slot,
        action: str | SlotAction,
        content: str | list[str] | None = None,
    ) -> ThinkingTuple:
        slot = parse_slot(slot)
        action = parse_action(action)
        items = coerce_content(content) if action != SlotAction.CLEAR else []

        with self.mutate(tuple_id) as tup:
            if action == SlotAction.APPEND:
                tup.set_slot(slot, tup.slot(slot) + items)
            else:
                tup.set_slot(slot, items)
        return tup

    @contextmanager
    def mutate(self, tuple_id: str) -> Iterator[ThinkingTuple]:
        """
        Read-modify-write-persist a tuple under its per-id lock.

        Unknown ids raise NotFoundError before a lock is allocated.

        `updated_at` is refreshed and the snapshot written on exit, unless
        the body raised.
        """
        self.get(tuple_id)
        with self._lock_for(tuple_id):
            tup = self.get(tuple_id)
            yield tup
            tup.touch()
            self._persist(tup)

    def ids(self) -> list[str]:
        known = set(self.memory.ids())
        if self.snapshots is not None:
            known.update(self.snapshots.ids())
        return sorted(known)

    def _persist(self, tup: ThinkingTuple) -> None:
        if self.snapshots is None:
            return
        try:
            self.snapshots.save(tup)
        except OSError as e:
            logger.warning(f"Snapshot of tuple {tup.id} failed, keeping in-memory state: {e}")

    def _lock_for(self, tuple_id: str) -> threading.RLock:
        with self._locks_guard:
            lock = self._locks.get(tuple_id)
            if lock is None:
                lock = self._locks[tuple_id] = threading.RLock()
            return lock

    def _new_id(self) -> str:
        while True:
            candidate = f"run-{int(time.time() * 1000)}-{secrets.token_hex(3)}"
            if candidate not in self.memory:
                if self.snapshots is None or self.snapshots.load(candidate) is None:
                    return candidate
