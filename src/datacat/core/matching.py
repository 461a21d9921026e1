"""Path-boundary aware matching of storage keys against a key prefix.

Object stores list keys by plain string prefix, so a listing for
`ns/def/A` also returns `ns/def/AA/file.txt`. The matcher narrows a raw
listing down to keys that are true descendants of the prefix directory.
"""

from __future__ import annotations

from typing import Iterable

from datacat.core.prefix import SEPARATOR


class PrefixDirectoryMatcher:
    """
    Matcher that accepts a storage key only if it lives inside the prefix
    directory (or is the zero-depth placeholder equal to the prefix).
    """

    def __init__(self, prefix: str):
        """
        Create a matcher for one key prefix.

        Args:
            prefix: Canonical key prefix. A trailing separator is ignored.
        """
        self.prefix = prefix.rstrip(SEPARATOR)

    def matches(self, candidate: str) -> bool:
        """
        Check whether the candidate key is the prefix itself or lies below it.
        """
        if not candidate.startswith(self.prefix):
            return False
        remainder = candidate[len(self.prefix) :]
        return remainder == "" or remainder.startswith(SEPARATOR)


def match_prefix(prefix: str, candidate_keys: Iterable[str]) -> list[str]:
    """Return the candidate keys that are prefix-directory descendants, in order."""
    matcher = PrefixDirectoryMatcher(prefix)
    return [k for k in candidate_keys if matcher.matches(k)]
