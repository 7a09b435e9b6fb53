"""Removal statistics collected while pruning."""

from collections import Counter

from gltf_slim.utils.logging import (
    bold,
    bright_green,
    dim,
    format_count,
    is_quiet,
    print_section,
)


class RemovalStats:
    """Count of removed elements keyed by category name.

    Stages only ever write to it; it exists for reporting.
    """

    def __init__(self) -> None:
        self._removed: Counter[str] = Counter()

    def record(self, category: str, count: int = 1) -> None:
        """Add ``count`` removals for ``category``."""
        if count:
            self._removed[category] += count

    def update(self, other: "RemovalStats") -> None:
        """Fold another set of counts into this one."""
        self._removed.update(other._removed)

    def __getitem__(self, category: str) -> int:
        return self._removed[category]

    def __bool__(self) -> bool:
        return self.total > 0

    @property
    def total(self) -> int:
        return sum(self._removed.values())

    def as_dict(self) -> dict[str, int]:
        return dict(self._removed)

    def print_summary(self) -> None:
        """Print removed element counts per category."""
        if is_quiet():
            return
        print_section("Removed Elements", char="-", width=50)
        if not self._removed:
            print(f"  {dim('nothing removed')}")
            return
        for category, count in sorted(self._removed.items()):
            padding = 40 - len(category)
            print(f"  {category}{' ' * max(1, padding)}{bright_green(str(count))}")
        print(f"{dim('-' * 50)}")
        print(f"  {bold('Total')}  {format_count(self.total, 'element')}")
