"""A buffer pool that caches pages of a page file in a fixed number of frames."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum

from .errors import DBError, PageNotInPool, PinnedPagesInBuffer, ReadNonExistingPage
from .storage import PageFile

NO_PAGE = -1


class ReplacementStrategy(IntEnum):
    """How a frame is chosen for eviction when the pool is full."""

    FIFO = 0
    LRU = 1
    CLOCK = 2
    LFU = 3
    LRU_K = 4


@dataclass
class PageHandle:
    """A pinned page: its number and the frame's bytes, shared with the pool."""

    page_num: int = NO_PAGE
    data: bytearray = field(default_factory=bytearray)


@dataclass
class _Frame:
    page_num: int = NO_PAGE
    data: bytearray | None = None
    dirty: bool = False
    fix_count: int = 0
    last_used: int = 0
    history: list = field(default_factory=list)
    referenced: bool = False
    use_count: int = 0


def _page_number(page) -> int:
    return page.page_num if isinstance(page, PageHandle) else int(page)


class BufferPool:
    """A fixed number of page frames over one page file.

    ``strat_data`` is the K of the LRU-K strategy (2 when not given) and is
    ignored by the other strategies.
    """

    def __init__(self, page_file, num_pages, strategy=ReplacementStrategy.FIFO, strat_data=None):
        if num_pages <= 0:
            raise ValueError("a buffer pool needs at least one frame")
        self.page_file = page_file
        self.num_pages = num_pages
        self.strategy = ReplacementStrategy(strategy)
        self.strat_data = strat_data
        self._k = 2
        if self.strategy is ReplacementStrategy.LRU_K and strat_data is not None:
            self._k = int(strat_data)
            if self._k < 1:
                raise ValueError("LRU-K needs K of at least 1")
        self._file = PageFile(page_file)
        self._frames: list[_Frame] | None = [_Frame() for _ in range(num_pages)]
        self._reads = 0
        self._writes = 0
        self._tick = 0
        self._clock_hand = 0

    def __repr__(self) -> str:
        return (
            f"BufferPool({self.page_file!r}, num_pages={self.num_pages}, "
            f"strategy={self.strategy.name})"
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if not self.closed:
            self.shutdown()
        return False

    @property
    def closed(self) -> bool:
        return self._frames is None

    def _active(self) -> list[_Frame]:
        if self._frames is None:
            raise DBError(f"buffer pool for {self.page_file!r} is not open")
        return self._frames

    def _find(self, page_num) -> _Frame | None:
        return next((f for f in self._active() if f.page_num == page_num), None)

    def _frame_of(self, page) -> _Frame:
        page_num = _page_number(page)
        frame = self._find(page_num)
        if frame is None:
            raise PageNotInPool(f"page {page_num} is not in the buffer pool")
        return frame

    def _write_frame(self, frame: _Frame) -> None:
        self._file.write_block(frame.page_num, frame.data)
        frame.dirty = False
        self._writes += 1

    def _touch(self, frame: _Frame) -> None:
        frame.last_used = self._tick
        frame.history = (frame.history + [self._tick])[-self._k:]
        frame.referenced = True
        frame.use_count += 1

    def _lru_k_key(self, frame: _Frame):
        history = frame.history
        if len(history) < self._k:
            return (0, history[-1] if history else -1)
        return (1, history[0])

    def _choose_victim(self) -> _Frame:
        frames = self._active()
        unpinned = [f for f in frames if f.fix_count == 0]
        if not unpinned:
            raise PinnedPagesInBuffer("all pages in the buffer pool are pinned")
        if self.strategy is ReplacementStrategy.FIFO:
            count = len(frames)
            return next(
                frames[(self._reads + offset) % count]
                for offset in range(count)
                if frames[(self._reads + offset) % count].fix_count == 0
            )
        if self.strategy is ReplacementStrategy.LRU:
            return min(unpinned, key=lambda f: f.last_used)
        if self.strategy is ReplacementStrategy.LFU:
            return min(unpinned, key=lambda f: (f.use_count, f.last_used))
        if self.strategy is ReplacementStrategy.LRU_K:
            return min(unpinned, key=self._lru_k_key)
        while True:
            frame = frames[self._clock_hand]
            self._clock_hand = (self._clock_hand + 1) % len(frames)
            if frame.fix_count == 0:
                if not frame.referenced:
                    return frame
                frame.referenced = False

    def pin_page(self, page_num) -> PageHandle:
        """Pin page ``page_num``, loading it from disk if needed, and return its handle."""
        frames = self._active()
        if page_num < 0:
            raise ReadNonExistingPage(f"page {page_num} does not exist")
        self._tick += 1
        frame = self._find(page_num)
        if frame is not None:
            frame.fix_count += 1
            self._touch(frame)
            return PageHandle(page_num, frame.data)

        target = next((f for f in frames if f.page_num == NO_PAGE), None)
        if target is None:
            target = self._choose_victim()
        self._file.ensure_capacity(page_num + 1)
        data = bytearray(self._file.read_block(page_num))
        if target.dirty:
            self._write_frame(target)
        self._reads += 1

        target.page_num = page_num
        target.data = data
        target.dirty = False
        target.fix_count = 1
        target.history = []
        target.use_count = 0
        self._touch(target)
        return PageHandle(page_num, data)

    def mark_dirty(self, page) -> None:
        """Mark a page held by the pool as modified."""
        self._frame_of(page).dirty = True

    def unpin_page(self, page) -> None:
        """Release one pin on a page held by the pool."""
        frame = self._frame_of(page)
        if frame.fix_count > 0:
            frame.fix_count -= 1

    def force_page(self, page) -> None:
        """Write a page held by the pool back to disk."""
        self._write_frame(self._frame_of(page))

    def force_flush(self) -> None:
        """Write every unpinned dirty page back to disk."""
        for frame in self._active():
            if frame.page_num != NO_PAGE and frame.fix_count == 0 and frame.dirty:
                self._write_frame(frame)

    def shutdown(self) -> None:
        """Flush dirty pages and release the pool; fails while pages are pinned."""
        frames = self._active()
        self.force_flush()
        if any(f.fix_count > 0 for f in frames):
            raise PinnedPagesInBuffer("buffer pool still holds pinned pages")
        self._file.close()
        self._frames = None

    def frame_contents(self) -> list[int]:
        """Page number held by each frame, NO_PAGE for an empty frame."""
        return [f.page_num for f in self._active()]

    def dirty_flags(self) -> list[bool]:
        return [f.dirty for f in self._active()]

    def fix_counts(self) -> list[int]:
        return [max(f.fix_count, 0) for f in self._active()]

    def num_read_io(self) -> int:
        """Number of pages read from disk since the pool was created."""
        return self._reads

    def num_write_io(self) -> int:
        """Number of pages written to disk since the pool was created."""
        return self._writes