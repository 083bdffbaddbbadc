# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

from collections.abc import Iterable, Mapping
from enum import IntEnum
import hashlib
from hmac import compare_digest

from ..errors import ChecksumMismatchError


class NoMatchingDigestError(ValueError):
    pass


class ChecksumAlgo(IntEnum):
    """
    Checksum algorithms, ordered by priority (higher means better).
    """

    SHA256SUM = 1

    def to_hashlib(self) -> str:
        return _HASHLIB_NAMES[self]

    def __str__(self) -> str:
        return self.to_hashlib()


_HASHLIB_NAMES = {ChecksumAlgo.SHA256SUM: "sha256"}


def calculate_checksums(
    source: bytes, algorithms: Iterable[ChecksumAlgo] | None = None
) -> dict[ChecksumAlgo, str]:
    """
    Calculate the hex digests of ``source`` for the requested algorithms (default: all).
    """
    if algorithms is None:
        algorithms = list(ChecksumAlgo)
    return {algo: hashlib.new(str(algo), source).hexdigest() for algo in algorithms}


def sha256sum(source: bytes) -> str:
    return calculate_checksums(source, [ChecksumAlgo.SHA256SUM])[ChecksumAlgo.SHA256SUM]


def _best_matching_digest(
    digests_a: Mapping[ChecksumAlgo, str], digests_b: Mapping[ChecksumAlgo, str]
) -> tuple[ChecksumAlgo, str, str]:
    """
    Find the best checksum that is present in both.
    """
    if not digests_a or not digests_b:
        raise NoMatchingDigestError("Both digest mappings must contain at least one entry")

    common_algos = set(digests_a) & set(digests_b)
    if not common_algos:
        raise NoMatchingDigestError("No matching digest algorithms between the two mappings")

    best_algo = max(common_algos)
    return best_algo, digests_a[best_algo], digests_b[best_algo]


def verify_best_matching_digest(
    expected: Mapping[ChecksumAlgo, str],
    data: bytes,
    name: str | None = None,
    uri: str | None = None,
) -> bool:
    """
    Verify ``data`` against the best digest of ``expected``.

    Returns True if the digests match. Raises NoMatchingDigestError if ``expected``
    holds no supported digest. If ``name`` is set and a mismatch occurs, a
    ``ChecksumMismatchError`` is raised instead of returning False.
    """
    actual = calculate_checksums(data, expected.keys())
    alg, digest_exp, digest_act = _best_matching_digest(expected, actual)
    result = compare_digest(digest_exp.lower(), digest_act)
    if name and not result:
        raise ChecksumMismatchError(name, uri or "", str(alg), digest_exp, digest_act)
    return result
