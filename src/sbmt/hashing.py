# hashing.py
# Two-input compression functions used to combine sibling nodes.
#
# The tree only ever calls hash(domain, left, right). The domain is the level
# of the children being combined, so equal values at different heights never
# produce the same parent.

import hashlib
from typing import Protocol


class Hasher(Protocol):
    def hash(self, domain: int, left: str, right: str) -> str: ...


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _frame(element: str) -> bytes:
    """Length-prefixed UTF-8 encoding. Keeps (left, right) splits unambiguous."""
    data = element.encode("utf-8")
    return len(data).to_bytes(8, "big") + data


# ---------------------------------------------------------------------------
# Hashers
# ---------------------------------------------------------------------------


class HashlibHasher:
    """
    Domain-separated hasher over any hashlib algorithm.

    digest = H(domain || len(left) || left || len(right) || right)

    Output is the hex digest, so results can be fed back in as elements.
    """

    def __init__(self, algorithm: str = "sha256") -> None:
        # Fail at construction, not on the first hash call.
        hashlib.new(algorithm)
        self._algorithm = algorithm

    @property
    def algorithm(self) -> str:
        return self._algorithm

    def hash(self, domain: int, left: str, right: str) -> str:
        if domain < 0:
            raise ValueError(f"Hash domain must be non-negative, got {domain}.")
        h = hashlib.new(self._algorithm)
        h.update(domain.to_bytes(8, "big"))
        h.update(_frame(left))
        h.update(_frame(right))
        return h.hexdigest()


class Sha256Hasher(HashlibHasher):
    def __init__(self) -> None:
        super().__init__("sha256")
