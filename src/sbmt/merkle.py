# merkle.py
# Fixed-depth Merkle tree persisted node-by-node in a key-value store.
#
# Guarantees: the stored tree always equals the all-default tree with update
# log entries [0 .. pointer] applied in order. Every mutation lands its path
# nodes, log entry and pointer in a single put_batch() call.
#
# Nodes never written are read as the precomputed default for their level,
# so an empty tree of any depth costs zero storage.
#
# Single writer per prefix. Callers serialize update/rollback themselves.

import logging

from pydantic import ValidationError

from sbmt.hashing import Hasher
from sbmt.keys import log_entry_key, log_pointer_key, node_key
from sbmt.models import PathResult, UpdateLogEntry
from sbmt.storage import Storage, StorageError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class TreeError(Exception):
    """Base class for tree-level failures. StorageError is not one of these."""


class InvalidIndex(TreeError, IndexError):
    """Raised when a leaf index falls outside [0, 2**depth)."""


class InsufficientHistory(TreeError):
    """Raised when a rollback reaches past the first update log entry."""


class RootNotFound(TreeError):
    """Raised when no state in the retained history has the requested root."""


# ---------------------------------------------------------------------------
# Pure path arithmetic
# ---------------------------------------------------------------------------


def _parent(hasher: Hasher, level: int, current: str, sibling: str, bit: int) -> str:
    if bit:
        return hasher.hash(level, sibling, current)
    return hasher.hash(level, current, sibling)


def compute_root(
    hasher: Hasher, leaf: str, path_elements: list[str], path_index: list[int]
) -> str:
    """Hash `leaf` up through its siblings. path_index[L] is 1 for a right child."""
    if len(path_elements) != len(path_index):
        raise ValueError(
            f"Path has {len(path_elements)} elements but {len(path_index)} index bits."
        )
    current = leaf
    for level, (sibling, bit) in enumerate(zip(path_elements, path_index)):
        current = _parent(hasher, level, current, sibling, bit)
    return current


def verify_path(hasher: Hasher, leaf: str, path: PathResult) -> bool:
    """
    Check that `leaf` sits on `path` under `path.root`.

    Stateless: needs only the hasher the tree was built with.
    """
    if len(path.path_elements) != len(path.path_index):
        return False
    return compute_root(hasher, leaf, path.path_elements, path.path_index) == path.root


# ---------------------------------------------------------------------------
# MerkleTree
# ---------------------------------------------------------------------------


class MerkleTree:
    """
    Storage-backed binary Merkle tree with an undo log.

    Level 0 holds 2**depth leaves; level `depth` holds the root.
    Node (L, i) = hasher.hash(L - 1, node(L - 1, 2i), node(L - 1, 2i + 1))

    Every update appends {index, old_element, new_element} to a log keyed by
    sequence number. rollback() replays old_element values backwards and moves
    the log pointer down; entries themselves are never deleted.

    Example:
        tree = MerkleTree("accounts", MemoryStorage(), Sha256Hasher(), 20, "0")
        tree.update(7, "42")
        proof = tree.path(7)
    """

    index_to_key = staticmethod(node_key)
    update_log_to_key = staticmethod(log_pointer_key)
    update_log_element_to_key = staticmethod(log_entry_key)

    def __init__(
        self,
        prefix: str,
        storage: Storage,
        hasher: Hasher,
        depth: int,
        default_value: str,
        *,
        skip_unchanged: bool = False,
    ) -> None:
        if not prefix:
            raise ValueError("Tree prefix must be a non-empty string.")
        if depth < 1:
            raise ValueError(f"Tree depth must be at least 1, got {depth}.")

        self.prefix = prefix
        self.storage = storage
        self.hasher = hasher
        self.depth = depth
        self.default_value = default_value
        self.skip_unchanged = skip_unchanged

        self._defaults: list[str] = [default_value]
        for level in range(depth):
            below = self._defaults[level]
            self._defaults.append(hasher.hash(level, below, below))

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def capacity(self) -> int:
        return 2 ** self.depth

    @property
    def empty_root(self) -> str:
        """Root of the tree with every leaf at default_value."""
        return self._defaults[self.depth]

    # ------------------------------------------------------------------
    # Storage access
    # ------------------------------------------------------------------

    def _check_index(self, index: int) -> None:
        if isinstance(index, bool) or not isinstance(index, int):
            raise InvalidIndex(f"Leaf index must be an int, got {type(index).__name__}.")
        if not 0 <= index < self.capacity:
            raise InvalidIndex(
                f"Leaf index {index} out of range for depth {self.depth} "
                f"(0 .. {self.capacity - 1})."
            )

    def _read_node(self, level: int, index: int) -> str:
        value = self.storage.get(node_key(self.prefix, level, index))
        return self._defaults[level] if value is None else value

    def _read_pointer(self) -> int:
        raw = self.storage.get(log_pointer_key(self.prefix))
        if raw is None:
            return -1
        try:
            return int(raw)
        except ValueError as exc:
            raise StorageError(f"Update log pointer is corrupt: {raw!r}") from exc

    def _path_writes(self, index: int, value: str) -> tuple[dict[str, str], str]:
        """Node writes that set leaf `index` to `value`, plus the resulting root."""
        writes = {node_key(self.prefix, 0, index): value}
        current = value
        node = index
        for level in range(self.depth):
            sibling = self._read_node(level, node ^ 1)
            current = _parent(self.hasher, level, current, sibling, node & 1)
            node >>= 1
            writes[node_key(self.prefix, level + 1, node)] = current
        return writes, current

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, index: int) -> str:
        """Current value of leaf `index`."""
        self._check_index(index)
        return self._read_node(0, index)

    def root(self) -> str:
        return self._read_node(self.depth, 0)

    def path(self, index: int) -> PathResult:
        """
        Sibling values from leaf to root and the root they hash up to.

        Read only. The root is recomputed from the path rather than read, so
        it reflects exactly the nodes returned.
        """
        self._check_index(index)

        current = self._read_node(0, index)
        path_elements: list[str] = []
        path_index: list[int] = []

        node = index
        for level in range(self.depth):
            bit = node & 1
            sibling = self._read_node(level, node ^ 1)
            path_elements.append(sibling)
            path_index.append(bit)
            current = _parent(self.hasher, level, current, sibling, bit)
            node >>= 1

        return PathResult(root=current, path_elements=path_elements, path_index=path_index)

    # ------------------------------------------------------------------
    # Update log
    # ------------------------------------------------------------------

    def update_log_index(self) -> int:
        """Sequence number of the last applied entry. -1 when nothing is applied."""
        return self._read_pointer()

    def update_log_entry(self, sequence_number: int) -> UpdateLogEntry:
        raw = None
        if sequence_number >= 0:
            raw = self.storage.get(log_entry_key(self.prefix, sequence_number))
        if raw is None:
            raise InsufficientHistory(f"No update log entry at {sequence_number}.")
        try:
            return UpdateLogEntry.model_validate_json(raw)
        except ValidationError as exc:
            raise StorageError(f"Update log entry {sequence_number} is corrupt.") from exc

    def history(self) -> list[UpdateLogEntry]:
        """Applied entries in commit order. Superseded entries are not included."""
        return [self.update_log_entry(seq) for seq in range(self._read_pointer() + 1)]

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def update(self, index: int, new_value: str) -> str:
        """
        Set leaf `index` to `new_value`, log the change, and return the new root.

        With skip_unchanged=True, writing the value a leaf already holds is a
        read: nothing is stored and no log entry is appended.
        """
        self._check_index(index)
        if not isinstance(new_value, str):
            raise TypeError(f"Leaf value must be a string, got {type(new_value).__name__}.")

        old_value = self._read_node(0, index)
        if self.skip_unchanged and old_value == new_value:
            logger.debug("%s: leaf %d unchanged, skipping update", self.prefix, index)
            return self.root()

        writes, root = self._path_writes(index, new_value)
        sequence_number = self._read_pointer() + 1
        entry = UpdateLogEntry(index=index, old_element=old_value, new_element=new_value)
        writes[log_entry_key(self.prefix, sequence_number)] = entry.model_dump_json()
        writes[log_pointer_key(self.prefix)] = str(sequence_number)

        self.storage.put_batch(writes)
        logger.debug(
            "%s: update #%d leaf %d %r -> %r, root %s",
            self.prefix, sequence_number, index, old_value, new_value, root,
        )
        return root

    def _undo(self, sequence_number: int) -> str:
        entry = self.update_log_entry(sequence_number)
        writes, root = self._path_writes(entry.index, entry.old_element)
        writes[log_pointer_key(self.prefix)] = str(sequence_number - 1)
        self.storage.put_batch(writes)
        logger.debug(
            "%s: undid #%d leaf %d back to %r", self.prefix, sequence_number,
            entry.index, entry.old_element,
        )
        return root

    def _redo(self, sequence_number: int) -> str:
        entry = self.update_log_entry(sequence_number)
        writes, root = self._path_writes(entry.index, entry.new_element)
        writes[log_pointer_key(self.prefix)] = str(sequence_number)
        self.storage.put_batch(writes)
        return root

    def rollback(self, count: int = 1) -> str:
        """
        Undo the `count` most recent updates and return the resulting root.

        Raises InsufficientHistory, before touching storage, if fewer than
        `count` entries are applied.
        """
        if count < 1:
            raise ValueError(f"Rollback count must be at least 1, got {count}.")

        pointer = self._read_pointer()
        if count > pointer + 1:
            raise InsufficientHistory(
                f"Cannot roll back {count} updates; only {pointer + 1} applied."
            )

        root = self.root()
        for sequence_number in range(pointer, pointer - count, -1):
            root = self._undo(sequence_number)
        return root

    def rollback_to_root(self, target_root: str) -> int:
        """
        Walk back through the log until the tree root equals `target_root`.

        Stops at the most recent matching state, which may be the current one
        or the empty tree. Returns the number of updates undone. On
        RootNotFound the undone updates are re-applied, leaving the tree as
        it was.
        """
        start = pointer = self._read_pointer()
        root = self.root()

        while root != target_root:
            if pointer < 0:
                for sequence_number in range(0, start + 1):
                    self._redo(sequence_number)
                raise RootNotFound(
                    f"Root {target_root} not found in {start + 1} retained updates."
                )
            root = self._undo(pointer)
            pointer -= 1

        logger.info(
            "%s: rolled back %d updates to root %s", self.prefix, start - pointer, root
        )
        return start - pointer
