"""
Collections of pull request summaries with built-in change detection.
"""

from __future__ import annotations

from collections.abc import Iterable

from .changes import ChangeDetector, ComparisonPolicy
from .models import PullRequestSummary


class PullRequestCollection:
    """
    Current snapshot of pull requests for one filter.

    The snapshot is replaced wholesale on every update; the bound
    ChangeDetector starts from the keys present at construction.
    """

    def __init__(
        self,
        items: Iterable[PullRequestSummary] = (),
        policy: ComparisonPolicy | str | None = None,
    ):
        self._items: tuple[PullRequestSummary, ...] = tuple(items)
        self._detector = ChangeDetector(self.version_keys(), policy)

    @property
    def items(self) -> tuple[PullRequestSummary, ...]:
        return self._items

    def __len__(self) -> int:
        return len(self._items)

    def version_keys(self) -> list[str]:
        return [item.version_key() for item in self._items]

    def update(self, items: Iterable[PullRequestSummary]) -> bool:
        """Replace the held pull requests and report whether they changed."""
        self._items = tuple(items)
        return self._detector.has_changed(self.version_keys())
