"""Page files: fixed-size blocks stored one after another on disk."""

from __future__ import annotations

import os

from .errors import FileHandleNotInit, FileNotFoundError_, ReadNonExistingPage, WriteFailed

PAGE_SIZE = 4096

_EMPTY_PAGE = bytes(PAGE_SIZE)


def create_page_file(file_name) -> None:
    """Create (or truncate) a page file holding a single zeroed page."""
    try:
        with open(file_name, "wb") as handle:
            handle.write(_EMPTY_PAGE)
    except OSError as exc:
        raise FileNotFoundError_(f"cannot create page file {file_name!r}") from exc


def destroy_page_file(file_name) -> None:
    """Remove a page file from disk."""
    try:
        os.remove(file_name)
    except OSError as exc:
        raise FileNotFoundError_(f"cannot remove page file {file_name!r}") from exc


def open_page_file(file_name) -> "PageFile":
    """Open an existing page file."""
    return PageFile(file_name)


def _as_page(data) -> bytes:
    page = bytes(data)
    if len(page) > PAGE_SIZE:
        raise ValueError(f"page data is {len(page)} bytes, larger than {PAGE_SIZE}")
    return page.ljust(PAGE_SIZE, b"\0")


class PageFile:
    """An open page file with a current page position."""

    def __init__(self, file_name):
        try:
            self._file = open(file_name, "r+b")
        except OSError as exc:
            raise FileNotFoundError_(f"page file {file_name!r} does not exist") from exc
        self.file_name = file_name
        self.cur_page_pos = 0
        self.total_num_pages = os.fstat(self._file.fileno()).st_size // PAGE_SIZE

    def __repr__(self) -> str:
        return (
            f"PageFile({self.file_name!r}, total_num_pages={self.total_num_pages}, "
            f"cur_page_pos={self.cur_page_pos})"
        )

    @property
    def closed(self) -> bool:
        return self._file is None

    def _handle(self):
        if self._file is None:
            raise FileHandleNotInit(f"page file {self.file_name!r} is not open")
        return self._file

    def close(self) -> None:
        """Close the underlying file; further use raises FileHandleNotInit."""
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def read_block(self, page_num) -> bytes:
        """Read page ``page_num`` and make it the current page."""
        handle = self._handle()
        if page_num < 0 or page_num >= self.total_num_pages:
            raise ReadNonExistingPage(f"page {page_num} does not exist")
        handle.seek(page_num * PAGE_SIZE)
        data = handle.read(PAGE_SIZE)
        if len(data) < PAGE_SIZE:
            raise ReadNonExistingPage(f"page {page_num} is incomplete")
        self.cur_page_pos = page_num
        return data

    def read_first_block(self) -> bytes:
        return self.read_block(0)

    def read_previous_block(self) -> bytes:
        return self.read_block(self.cur_page_pos - 1)

    def read_current_block(self) -> bytes:
        return self.read_block(self.cur_page_pos)

    def read_next_block(self) -> bytes:
        return self.read_block(self.cur_page_pos + 1)

    def read_last_block(self) -> bytes:
        return self.read_block(self.total_num_pages - 1)

    def write_block(self, page_num, data) -> None:
        """Write ``data`` (zero-padded to a full page) to page ``page_num``."""
        handle = self._handle()
        if page_num < 0 or page_num >= self.total_num_pages:
            raise ReadNonExistingPage(f"page {page_num} does not exist")
        page = _as_page(data)
        try:
            handle.seek(page_num * PAGE_SIZE)
            handle.write(page)
            handle.flush()
        except OSError as exc:
            raise WriteFailed(f"cannot write page {page_num}") from exc
        self.cur_page_pos = page_num

    def write_current_block(self, data) -> None:
        self.write_block(self.cur_page_pos, data)

    def append_empty_block(self) -> None:
        """Add one zeroed page at the end of the file."""
        handle = self._handle()
        try:
            handle.seek(0, os.SEEK_END)
            handle.write(_EMPTY_PAGE)
            handle.flush()
        except OSError as exc:
            raise WriteFailed("cannot append an empty page") from exc
        self.total_num_pages += 1

    def ensure_capacity(self, number_of_pages) -> None:
        """Append empty pages until the file holds at least ``number_of_pages``."""
        self._handle()
        while self.total_num_pages < number_of_pages:
            self.append_empty_block()