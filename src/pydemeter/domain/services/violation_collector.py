"""Merges per-file violation lists into one ordered sequence."""

from collections.abc import Iterable, Iterator

from pydemeter.domain.rules import Violation


class ViolationCollector:
    """
    Orders violations by (filename, line, column).

    Each file walk produces its own list; lists are only combined here, after
    every walk has finished. Ties keep the order the walks produced them in.
    """

    def collect(self, per_file: Iterable[Iterable[Violation]]) -> Iterator[Violation]:
        """Merge and sort. The result is a one-shot iterator over a fully built list."""
        merged: list[Violation] = []
        for violations in per_file:
            merged.extend(violations)
        merged.sort(key=lambda violation: violation.sort_key)
        return iter(merged)
