"""
Change detection over lists of version keys.

A ChangeDetector remembers a baseline list of keys and answers whether a
new list differs from it. How two lists are compared is decided by a
key checker; two are provided:

- UnorderedKeyChecker (default): set membership, insensitive to ordering
- OrderedKeyChecker: pairwise comparison, sensitive to ordering
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Protocol


class ComparisonPolicy(str, Enum):
    """How a new key list is compared against the baseline."""

    UNORDERED = "unordered"
    ORDERED = "ordered"


class KeyChecker(Protocol):
    def matches(self, keys: Sequence[str]) -> bool:
        """Return True when `keys` are equivalent to the baseline."""
        ...


@dataclass(frozen=True)
class UnorderedKeyChecker:
    """Compares by length and set membership."""

    baseline: frozenset[str]
    length: int

    @classmethod
    def from_keys(cls, keys: Sequence[str]) -> "UnorderedKeyChecker":
        return cls(baseline=frozenset(keys), length=len(keys))

    def matches(self, keys: Sequence[str]) -> bool:
        if len(keys) != self.length:
            return False
        return all(key in self.baseline for key in keys)


@dataclass(frozen=True)
class OrderedKeyChecker:
    """Compares by length and position."""

    baseline: tuple[str, ...]

    @classmethod
    def from_keys(cls, keys: Sequence[str]) -> "OrderedKeyChecker":
        return cls(baseline=tuple(keys))

    def matches(self, keys: Sequence[str]) -> bool:
        if len(keys) != len(self.baseline):
            return False
        return all(old == new for old, new in zip(self.baseline, keys))


def key_checker_for(
    keys: Sequence[str],
    policy: ComparisonPolicy | str | None = None,
) -> KeyChecker:
    """Build a key checker for `keys`. A missing policy means unordered."""
    policy = ComparisonPolicy(policy) if policy is not None else ComparisonPolicy.UNORDERED
    if policy is ComparisonPolicy.ORDERED:
        return OrderedKeyChecker.from_keys(keys)
    return UnorderedKeyChecker.from_keys(keys)


class ChangeDetector:
    """Stateful comparison of successive key lists."""

    def __init__(
        self,
        initial_keys: Sequence[str],
        policy: ComparisonPolicy | str | None = None,
    ):
        self.policy = ComparisonPolicy(policy) if policy is not None else ComparisonPolicy.UNORDERED
        self._checker = key_checker_for(initial_keys, self.policy)

    @property
    def checker(self) -> KeyChecker:
        return self._checker

    def has_changed(self, keys: Sequence[str]) -> bool:
        """
        Compare `keys` against the baseline.

        The baseline only moves when a change is found, so a run of
        identical lists keeps comparing against the first of them.
        """
        if self._checker.matches(keys):
            return False

        self._checker = key_checker_for(keys, self.policy)
        return True
