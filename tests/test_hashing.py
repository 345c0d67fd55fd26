import hashlib

import pytest

from sbmt.hashing import HashlibHasher, Sha256Hasher

# ---------------------------------------------------------------------------
# Determinism and domain separation
# ---------------------------------------------------------------------------

def test_sha256_hasher_is_deterministic():
    assert Sha256Hasher().hash(0, "4", "4") == Sha256Hasher().hash(0, "4", "4")
    assert len(Sha256Hasher().hash(0, "4", "4")) == 64


def test_domain_separates_levels():
    hasher = Sha256Hasher()
    assert hasher.hash(0, "a", "b") != hasher.hash(1, "a", "b")


def test_order_matters():
    hasher = Sha256Hasher()
    assert hasher.hash(0, "a", "b") != hasher.hash(0, "b", "a")


def test_split_point_matters():
    hasher = Sha256Hasher()
    assert hasher.hash(0, "ab", "c") != hasher.hash(0, "a", "bc")


def test_encoding():
    expected = hashlib.sha256(
        (3).to_bytes(8, "big")
        + (1).to_bytes(8, "big") + b"x"
        + (2).to_bytes(8, "big") + b"yz"
    ).hexdigest()
    assert Sha256Hasher().hash(3, "x", "yz") == expected


def test_negative_domain():
    with pytest.raises(ValueError):
        Sha256Hasher().hash(-1, "a", "b")


# ---------------------------------------------------------------------------
# Algorithm selection
# ---------------------------------------------------------------------------

def test_other_algorithm():
    hasher = HashlibHasher("blake2b")
    assert hasher.algorithm == "blake2b"
    assert len(hasher.hash(0, "a", "b")) == 128
    assert hasher.hash(0, "a", "b") != Sha256Hasher().hash(0, "a", "b")


def test_unknown_algorithm():
    with pytest.raises(ValueError):
        HashlibHasher("not-a-hash")
