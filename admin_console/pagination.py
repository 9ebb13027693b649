"""Page reconciliation after rows are removed from a paginated list."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PaginationState:
    current: int = 1
    page_size: int = 10
    total: int = 0

    def __post_init__(self) -> None:
        if self.current < 1:
            raise ValueError(f"current page must be >= 1 (got {self.current})")
        if self.page_size < 1:
            raise ValueError(f"page_size must be >= 1 (got {self.page_size})")
        if self.total < 0:
            raise ValueError(f"total must be >= 0 (got {self.total})")


def next_page_after_deletion(state: PaginationState, deleted_count: int = 1) -> int:
    """Return the page to reload after deleting ``deleted_count`` rows.

    Steps back one page only when the current page would be left empty;
    deletions from the middle of a long list keep the user where they are.
    """
    if deleted_count < 0:
        raise ValueError(f"deleted_count must be >= 0 (got {deleted_count})")
    new_total = state.total - deleted_count
    if new_total <= 0:
        return 1
    if state.current > 1 and (state.current - 1) * state.page_size >= new_total:
        return state.current - 1
    return state.current
