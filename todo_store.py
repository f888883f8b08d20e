import contextlib
import json
import logging
import os
import re
import threading
from dataclasses import dataclass, asdict, replace
from enum import Enum
from typing import Any, List, Optional, Union

logger = logging.getLogger("todo_app.store")

_ID_PREFIX = "todo-"
_ID_PATTERN = re.compile(r"^todo-(\d+)$")


@dataclass(frozen=True)
class Todo:
    id: str
    title: str
    completed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    INVALID_INDEX = "invalid_index"
    PERSISTENCE = "persistence_error"
    MALFORMED_INPUT = "malformed_input"


@dataclass(frozen=True)
class Ok:
    todo: Todo
    index: Optional[int] = None
    # False when the record was already completed and nothing was written
    changed: bool = True


@dataclass(frozen=True)
class Err:
    reason: ErrorKind


Result = Union[Ok, Err]


class PersistenceError(Exception):
    """Raised when the backing file could not be written."""

    reason = ErrorKind.PERSISTENCE


def _todo_from_dict(d: dict[str, Any]) -> Todo:
    # Graceful parsing if records are missing fields
    return Todo(
        id=str(d.get("id", "")),
        title=str(d.get("title", "")),
        completed=bool(d.get("completed", False)),
    )


def _id_suffix(todo_id: str) -> int:
    match = _ID_PATTERN.match(todo_id)
    return int(match.group(1)) if match else 0


def _parse_db(contents: bytes) -> tuple[list[Todo], int]:
    try:
        data = json.loads(contents.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        data = {}
    if not isinstance(data, dict):
        data = {}

    raw_todos = data.get("todos")
    if not isinstance(raw_todos, list):
        raw_todos = []
    todos = [_todo_from_dict(t) for t in raw_todos if isinstance(t, dict)]

    next_id = data.get("nextId")
    # bool is an int subclass; true/false is not a counter
    if not isinstance(next_id, int) or isinstance(next_id, bool):
        next_id = len(todos) + 1

    highest = max((_id_suffix(t.id) for t in todos), default=0)
    return todos, max(next_id, highest + 1, 1)


class TodoStore:
    """
    Ordered todo list backed by a JSON file.

    Every mutation builds the next list first, writes it to disk and only then
    swaps it into memory, so a failed write leaves the visible state untouched.
    All public operations are serialized on a per-store lock.
    """

    def __init__(self, path: str, todos: List[Todo], next_id: int) -> None:
        self._path = path
        self._todos: tuple[Todo, ...] = tuple(todos)
        self._next_id = next_id
        self._lock = threading.RLock()

    @classmethod
    def open(cls, path: str) -> "TodoStore":
        """
        Load the store from `path`, creating an empty one if the file is absent.

        Malformed contents load as an empty list. Filesystem errors other than
        a missing file propagate.
        """
        resolved = os.path.abspath(path)
        try:
            with open(resolved, "rb") as f:
                contents = f.read()
        except FileNotFoundError:
            folder = os.path.dirname(resolved)
            if folder:
                os.makedirs(folder, exist_ok=True)
            store = cls(resolved, [], 1)
            store._write(store._todos, store._next_id)
            logger.info("created todo store at %s", resolved)
            return store

        todos, next_id = _parse_db(contents)
        logger.info("loaded %d todo(s) from %s (next id %d)", len(todos), resolved, next_id)
        return cls(resolved, todos, next_id)

    @property
    def path(self) -> str:
        return self._path

    @property
    def next_id(self) -> int:
        return self._next_id

    def list(self) -> List[Todo]:
        with self._lock:
            return list(self._todos)

    def add(self, title: str) -> Todo:
        with self._lock:
            todo = Todo(id=f"{_ID_PREFIX}{self._next_id}", title=title, completed=False)
            self._commit(self._todos + (todo,), self._next_id + 1)
            logger.info("added %s", todo.id)
            return todo

    def complete_by_id(self, todo_id: str) -> Result:
        with self._lock:
            for i, t in enumerate(self._todos):
                if t.id == todo_id:
                    return self._complete_at(i)
            return Err(ErrorKind.NOT_FOUND)

    def complete_by_index(self, index: int) -> Result:
        """Complete the record at 1-based `index` in display order."""
        with self._lock:
            if index < 1 or index > len(self._todos):
                return Err(ErrorKind.INVALID_INDEX)
            result = self._complete_at(index - 1)
            return replace(result, index=index)

    def complete_by_title(self, query: str) -> Result:
        """
        Complete the first incomplete record whose title contains `query`,
        ignoring case. Completed records never match, so repeated calls walk
        through same-titled todos in order.
        """
        needle = query.casefold()
        with self._lock:
            for i, t in enumerate(self._todos):
                if not t.completed and needle in t.title.casefold():
                    return self._complete_at(i)
            return Err(ErrorKind.NOT_FOUND)

    def delete_by_id(self, todo_id: str) -> Result:
        with self._lock:
            found = None
            for t in self._todos:
                if t.id == todo_id:
                    found = t
                    break
            if found is None:
                return Err(ErrorKind.NOT_FOUND)

            remaining = tuple(t for t in self._todos if t.id != todo_id)
            self._commit(remaining, self._next_id)
            logger.info("deleted %s", todo_id)
            return Ok(found)

    def delete_completed(self) -> List[Todo]:
        with self._lock:
            removed = [t for t in self._todos if t.completed]
            remaining = tuple(t for t in self._todos if not t.completed)
            self._commit(remaining, self._next_id)
            logger.info("cleared %d completed todo(s)", len(removed))
            return removed

    def _complete_at(self, position: int) -> Ok:
        todo = self._todos[position]
        if todo.completed:
            # idempotent behavior
            return Ok(todo, changed=False)

        updated = replace(todo, completed=True)
        todos = self._todos[:position] + (updated,) + self._todos[position + 1:]
        self._commit(todos, self._next_id)
        logger.info("completed %s", updated.id)
        return Ok(updated)

    def _commit(self, todos: tuple[Todo, ...], next_id: int) -> None:
        self._write(todos, next_id)
        self._todos = todos
        self._next_id = next_id

    def _write(self, todos: tuple[Todo, ...], next_id: int) -> None:
        payload = {"todos": [t.to_dict() for t in todos], "nextId": next_id}
        tmp_path = self._path + ".tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self._path)
        except OSError as e:
            logger.error("failed to write %s: %s", self._path, e)
            with contextlib.suppress(OSError):
                os.remove(tmp_path)
            raise PersistenceError(f"could not write {self._path}: {e}") from e
