"""Visibility index: displayed ordinal -> underlying row index.

The index is always rebuilt from the authoritative hidden flags; it is never
patched in place. Front ends iterate it to draw rows and resolve an ordinal
back to a row index before applying any row-level command.
"""

from __future__ import annotations

from bisect import bisect_left
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass


def visible_count(hidden_flags: Iterable[bool]) -> int:
    return sum(1 for hidden in hidden_flags if not hidden)


@dataclass(frozen=True, slots=True)
class VisibilityIndex:
    indices: tuple[int, ...]
    show_hidden: bool = False

    @classmethod
    def build(cls, hidden_flags: Sequence[bool], *, show_hidden: bool) -> VisibilityIndex:
        if show_hidden:
            return cls(tuple(range(len(hidden_flags))), show_hidden=True)
        return cls(
            tuple(i for i, hidden in enumerate(hidden_flags) if not hidden),
            show_hidden=False,
        )

    @property
    def count(self) -> int:
        return len(self.indices)

    def __len__(self) -> int:
        return len(self.indices)

    def __iter__(self) -> Iterator[int]:
        return iter(self.indices)

    def resolve(self, ordinal: int) -> int:
        """Return the row index shown at display position ``ordinal``."""

        if not 0 <= ordinal < len(self.indices):
            raise IndexError(
                f"display ordinal {ordinal} out of range ({len(self.indices)} rows displayed)"
            )
        return self.indices[ordinal]

    def ordinal_of(self, index: int) -> int | None:
        """Return the display position of row ``index``, or ``None`` if not displayed."""

        pos = bisect_left(self.indices, index)
        if pos < len(self.indices) and self.indices[pos] == index:
            return pos
        return None


__all__ = ["VisibilityIndex", "visible_count"]
