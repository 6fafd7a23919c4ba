"""Human-readable views of a buffer pool and of page contents."""

from __future__ import annotations

from .buffer import ReplacementStrategy
from .storage import PAGE_SIZE

_STRATEGY_NAMES = {
    ReplacementStrategy.FIFO: "FIFO",
    ReplacementStrategy.LRU: "LRU",
    ReplacementStrategy.CLOCK: "CLOCK",
    ReplacementStrategy.LFU: "LFU",
    ReplacementStrategy.LRU_K: "LRU-K",
}


def strategy_name(strategy) -> str:
    """Short name of a replacement strategy, or its number if unknown."""
    return _STRATEGY_NAMES.get(int(strategy), str(int(strategy)))


def pool_content(pool) -> str:
    """Frames of a pool as ``[page dirty fixcount]`` entries joined by commas."""
    return ",".join(
        f"[{page}{'x' if dirty else ' '}{fix}]"
        for page, dirty, fix in zip(pool.frame_contents(), pool.dirty_flags(), pool.fix_counts())
    )


def print_pool_content(pool) -> None:
    """Print the strategy, the frame count and the frames of a pool."""
    print(f"{{{strategy_name(pool.strategy)} {pool.num_pages}}}: {pool_content(pool)}")


def page_content(page) -> str:
    """Hex dump of a page: 8-byte groups, 64 bytes per line."""
    data = bytes(page.data).ljust(PAGE_SIZE, b"\0")[:PAGE_SIZE]
    parts = [f"[Page {page.page_num}]\n"]
    for position, byte in enumerate(data, start=1):
        parts.append(f"{byte:02X}")
        if position % 8 == 0:
            parts.append(" ")
        if position % 64 == 0:
            parts.append("\n")
    return "".join(parts)


def print_page_content(page) -> None:
    """Print the hex dump of a page."""
    print(page_content(page), end="")