"""Path addressed JSON tree on top of a single SQL table.

Only leaves are stored, one row each, keyed by their full `/` separated path.
Reading a path gathers every row below it and rebuilds the nested dicts.
Empty dicts and `None` have no rows, so writing them removes the path.
"""

import json
import logging
from typing import Any
from uuid import uuid4

from databases import Database

from domain.errors import InvalidPath


logger = logging.getLogger(__name__)


type Path = str
type Leaf = tuple[Path, str]


CREATE_NODES_TABLE = """
CREATE TABLE IF NOT EXISTS Nodes (path VARCHAR(512) PRIMARY KEY, value TEXT NOT NULL)
"""


INSERT_NODE = "INSERT INTO Nodes(path, value) VALUES (:path, :value)"


SELECT_ALL = "SELECT path, value FROM Nodes ORDER BY path"


SELECT_SUBTREE = """
SELECT path, value FROM Nodes
WHERE path = :path OR substr(path, 1, :length) = :prefix
ORDER BY path
"""


DELETE_ALL = "DELETE FROM Nodes"


DELETE_NODE = "DELETE FROM Nodes WHERE path = :path"


DELETE_SUBTREE = """
DELETE FROM Nodes WHERE path = :path OR substr(path, 1, :length) = :prefix
"""


def split_path(path: Path) -> list[str]:
    path = path.strip("/")
    if not path:
        return []
    parts = path.split("/")
    for part in parts:
        if part in ("", ".", ".."):
            raise InvalidPath(f"Bad path segment {part!r} in {path!r}")
    return parts


def join_path(*parts: str) -> Path:
    return "/".join(p for part in parts for p in split_path(part))


def flatten(path: Path, value: Any) -> list[Leaf]:
    if value is None:
        return []
    if isinstance(value, dict):
        leaves: list[Leaf] = []
        for key, child in value.items():
            if not isinstance(key, str) or "/" in key or not key.strip():
                raise InvalidPath(f"Bad key {key!r} under {path!r}")
            leaves.extend(flatten(join_path(path, key), child))
        return leaves
    if not path:
        raise InvalidPath("Only a dict can be stored at the root.")
    return [(path, json.dumps(value))]


def unflatten(path: Path, rows: list[Leaf]) -> Any:
    tree: dict[str, Any] = {}
    for row_path, raw in rows:
        if row_path == path:
            return json.loads(raw)
        rel = row_path[len(path) :].strip("/") if path else row_path
        *parents, leaf = rel.split("/")
        node = tree
        for parent in parents:
            node = node.setdefault(parent, {})
        node[leaf] = json.loads(raw)
    return tree or None


def _subtree_values(path: Path) -> dict[str, Any]:
    prefix = f"{path}/"
    return {"path": path, "length": len(prefix), "prefix": prefix}


class KeyValueStore:
    """Hierarchical key-value store."""

    def __init__(self, db: Database) -> None:
        self.db = db

    async def create_table(self) -> None:
        await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
            query=CREATE_NODES_TABLE
        )

    def push_key(self) -> str:
        return uuid4().hex

    async def get(self, path: Path = "") -> Any:
        path = join_path(path)
        if path:
            rows = await self.db.fetch_all(  # pyright: ignore[reportUnknownMemberType]
                SELECT_SUBTREE, values=_subtree_values(path)
            )
        else:
            rows = await self.db.fetch_all(  # pyright: ignore[reportUnknownMemberType]
                SELECT_ALL
            )
        return unflatten(path, [(r["path"], r["value"]) for r in rows])

    async def set(self, path: Path, value: Any) -> None:
        path = join_path(path)
        leaves = flatten(path, value)
        async with self.db.transaction():
            await self._delete(path)
            # A leaf above us would shadow the new subtree.
            parts = split_path(path)
            for i in range(1, len(parts)):
                await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
                    DELETE_NODE, values={"path": "/".join(parts[:i])}
                )
            if leaves:
                await self.db.execute_many(  # pyright: ignore[reportUnknownMemberType]
                    INSERT_NODE, values=[{"path": p, "value": v} for p, v in leaves]
                )
        logger.debug("Set %s (%d leaves)", path or "/", len(leaves))

    async def update(self, path: Path, values: dict[str, Any]) -> None:
        for key in values:
            if "/" in key or not key.strip():
                raise InvalidPath(f"Bad key {key!r} under {path!r}")
        async with self.db.transaction():
            for key, value in values.items():
                await self.set(join_path(path, key), value)

    async def remove(self, path: Path) -> None:
        path = join_path(path)
        async with self.db.transaction():
            await self._delete(path)
        logger.debug("Removed %s", path or "/")

    async def _delete(self, path: Path) -> None:
        if path:
            await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
                DELETE_SUBTREE, values=_subtree_values(path)
            )
        else:
            await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
                DELETE_ALL
            )
