import pytest

from pagedb.buffer import NO_PAGE, BufferPool, PageHandle, ReplacementStrategy
from pagedb.bufstat import pool_content
from pagedb.errors import (
    DBError,
    FileNotFoundError_,
    PageNotInPool,
    PinnedPagesInBuffer,
    ReadNonExistingPage,
)
from pagedb.storage import PageFile, create_page_file


@pytest.fixture
def page_file(tmp_path):
    path = str(tmp_path / "testbuffer.bin")
    create_page_file(path)
    return path


def c_string(data) -> bytes:
    return bytes(data).split(b"\0", 1)[0]


def write_text(handle, text: str) -> None:
    raw = text.encode() + b"\0"
    handle.data[: len(raw)] = raw


def create_dummy_pages(path, num):
    pool = BufferPool(path, 3, ReplacementStrategy.FIFO)
    for i in range(num):
        h = pool.pin_page(i)
        write_text(h, f"Page-{h.page_num}")
        pool.mark_dirty(h)
        pool.unpin_page(h)
    pool.shutdown()


def check_dummy_pages(path, num):
    pool = BufferPool(path, 3, ReplacementStrategy.FIFO)
    for i in range(num):
        h = pool.pin_page(i)
        assert c_string(h.data) == f"Page-{h.page_num}".encode()
        pool.unpin_page(h)
    pool.shutdown()


def test_read_page(page_file):
    pool = BufferPool(page_file, 3, ReplacementStrategy.FIFO)
    h = pool.pin_page(0)
    h = pool.pin_page(0)
    assert pool.fix_counts()[0] == 2
    pool.mark_dirty(h)
    pool.unpin_page(h)
    pool.unpin_page(h)
    pool.force_page(h)
    assert pool.dirty_flags() == [False, False, False]
    assert pool.num_write_io() == 1
    pool.shutdown()
    assert pool.closed


def test_fifo(page_file):
    pool_contents = [
        "[0 0],[-1 0],[-1 0]",
        "[0 0],[1 0],[-1 0]",
        "[0 0],[1 0],[2 0]",
        "[3 0],[1 0],[2 0]",
        "[3 0],[4 0],[2 0]",
        "[3 0],[4 1],[2 0]",
        "[3 0],[4 1],[5x0]",
        "[6x0],[4 1],[5x0]",
        "[6x0],[4 1],[0x0]",
        "[6x0],[4 0],[0x0]",
        "[6 0],[4 0],[0 0]",
    ]
    requests = [0, 1, 2, 3, 4, 4, 5, 6, 0]
    num_lin_requests = 5
    num_change_requests = 3

    create_dummy_pages(page_file, 100)
    pool = BufferPool(page_file, 3, ReplacementStrategy.FIFO)

    for i in range(num_lin_requests):
        h = pool.pin_page(requests[i])
        pool.unpin_page(h)
        assert pool_content(pool) == pool_contents[i]

    i = num_lin_requests
    pool.pin_page(requests[i])
    assert pool_content(pool) == pool_contents[i]

    for i in range(num_lin_requests + 1, num_lin_requests + num_change_requests + 1):
        h = pool.pin_page(requests[i])
        pool.mark_dirty(h)
        pool.unpin_page(h)
        assert pool_content(pool) == pool_contents[i]

    i = num_lin_requests + num_change_requests + 1
    pool.unpin_page(PageHandle(4))
    assert pool_content(pool) == pool_contents[i]

    i += 1
    pool.force_flush()
    assert pool_content(pool) == pool_contents[i]

    assert pool.num_write_io() == 3
    assert pool.num_read_io() == 8
    pool.shutdown()


def test_lru(page_file):
    pool_contents = [
        "[0 0],[-1 0],[-1 0],[-1 0],[-1 0]",
        "[0 0],[1 0],[-1 0],[-1 0],[-1 0]",
        "[0 0],[1 0],[2 0],[-1 0],[-1 0]",
        "[0 0],[1 0],[2 0],[3 0],[-1 0]",
        "[0 0],[1 0],[2 0],[3 0],[4 0]",
        "[0 0],[1 0],[2 0],[3 0],[4 0]",
        "[0 0],[1 0],[2 0],[3 0],[4 0]",
        "[0 0],[1 0],[2 0],[3 0],[4 0]",
        "[0 0],[1 0],[2 0],[3 0],[4 0]",
        "[0 0],[1 0],[2 0],[3 0],[4 0]",
        "[0 0],[1 0],[2 0],[5 0],[4 0]",
        "[0 0],[1 0],[2 0],[5 0],[6 0]",
        "[7 0],[1 0],[2 0],[5 0],[6 0]",
        "[7 0],[1 0],[8 0],[5 0],[6 0]",
        "[7 0],[9 0],[8 0],[5 0],[6 0]",
    ]
    order_requests = [3, 4, 0, 2, 1]

    create_dummy_pages(page_file, 100)
    pool = BufferPool(page_file, 5, ReplacementStrategy.LRU)
    snapshot = 0

    for i in range(5):
        h = pool.pin_page(i)
        pool.unpin_page(h)
        assert pool_content(pool) == pool_contents[snapshot]
        snapshot += 1

    for page in order_requests:
        h = pool.pin_page(page)
        pool.unpin_page(h)
        assert pool_content(pool) == pool_contents[snapshot]
        snapshot += 1

    for i in range(5):
        h = pool.pin_page(5 + i)
        pool.unpin_page(h)
        assert pool_content(pool) == pool_contents[snapshot]
        snapshot += 1

    assert pool.num_write_io() == 0
    assert pool.num_read_io() == 10
    pool.shutdown()


def test_lru_k(page_file):
    pool_contents = [
        "[0 0],[-1 0],[-1 0],[-1 0],[-1 0]",
        "[0 0],[1 0],[-1 0],[-1 0],[-1 0]",
        "[0 0],[1 0],[2 0],[-1 0],[-1 0]",
        "[0 0],[1 0],[2 0],[3 0],[-1 0]",
        "[0 0],[1 0],[2 0],[3 0],[4 0]",
        "[0 0],[1 0],[2 0],[3 0],[4 0]",
        "[0 0],[1 0],[2 0],[3 0],[4 0]",
        "[0 0],[1 0],[2 0],[3 0],[4 0]",
        "[0 0],[1 0],[2 0],[3 0],[4 0]",
        "[0 0],[1 0],[2 0],[3 0],[4 0]",
    ]
    order_requests = [3, 4, 0, 2, 1]

    create_dummy_pages(page_file, 100)
    pool = BufferPool(page_file, 5, ReplacementStrategy.LRU_K)
    snapshot = 0

    for i in range(5):
        h = pool.pin_page(i)
        pool.unpin_page(h)
        assert pool_content(pool) == pool_contents[snapshot]
        snapshot += 1

    for page in order_requests:
        h = pool.pin_page(page)
        pool.unpin_page(h)
        assert pool_content(pool) == pool_contents[snapshot]
        snapshot += 1

    assert pool.num_write_io() == 0
    assert pool.num_read_io() == 5
    pool.shutdown()


def test_lru_k_evicts_page_with_single_reference_first(page_file):
    pool = BufferPool(page_file, 3, ReplacementStrategy.LRU_K, 2)
    for page in (0, 1, 2, 0):
        pool.unpin_page(pool.pin_page(page))
    pool.unpin_page(pool.pin_page(3))
    assert pool.frame_contents() == [0, 3, 2]
    pool.shutdown()


def test_clock_gives_second_chance(page_file):
    pool = BufferPool(page_file, 3, ReplacementStrategy.CLOCK)
    for page in (0, 1, 2, 3):
        pool.unpin_page(pool.pin_page(page))
    assert pool.frame_contents() == [3, 1, 2]
    pool.unpin_page(pool.pin_page(4))
    assert pool.frame_contents() == [3, 4, 2]
    pool.shutdown()


def test_lfu_evicts_least_used(page_file):
    pool = BufferPool(page_file, 2, ReplacementStrategy.LFU)
    for page in (0, 0, 1, 2):
        pool.unpin_page(pool.pin_page(page))
    assert pool.frame_contents() == [0, 2]
    pool.shutdown()


def test_evicted_dirty_page_is_written_to_disk(page_file):
    pool = BufferPool(page_file, 1, ReplacementStrategy.FIFO)
    h = pool.pin_page(0)
    write_text(h, "hello")
    pool.mark_dirty(h)
    pool.unpin_page(h)
    pool.unpin_page(pool.pin_page(1))
    assert pool.num_write_io() == 1
    assert pool.frame_contents() == [1]
    pool.shutdown()
    with PageFile(page_file) as pf:
        assert c_string(pf.read_block(0)) == b"hello"


def test_pin_returns_shared_buffer(page_file):
    pool = BufferPool(page_file, 2, ReplacementStrategy.FIFO)
    first = pool.pin_page(0)
    write_text(first, "shared")
    second = pool.pin_page(0)
    assert c_string(second.data) == b"shared"
    assert pool.fix_counts() == [2, 0]
    pool.unpin_page(first)
    pool.unpin_page(second)
    pool.shutdown()


def test_all_pinned_pool_refuses_new_page(page_file):
    pool = BufferPool(page_file, 3, ReplacementStrategy.LRU_K)
    for page in (0, 1, 2):
        pool.pin_page(page)
    with pytest.raises(PinnedPagesInBuffer):
        pool.pin_page(6)
    assert pool.frame_contents() == [0, 1, 2]


def test_negative_page_number(page_file):
    pool = BufferPool(page_file, 3, ReplacementStrategy.LRU_K)
    with pytest.raises(ReadNonExistingPage):
        pool.pin_page(-10)
    pool.shutdown()


def test_init_for_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError_):
        BufferPool(str(tmp_path / "unavailable.bin"), 3, ReplacementStrategy.LRU_K)


def test_use_after_shutdown(page_file):
    pool = BufferPool(page_file, 3, ReplacementStrategy.FIFO)
    pool.shutdown()
    with pytest.raises(DBError):
        pool.shutdown()
    with pytest.raises(DBError):
        pool.force_flush()
    with pytest.raises(DBError):
        pool.pin_page(1)


@pytest.mark.parametrize("operation", ["unpin_page", "force_page", "mark_dirty"])
def test_page_not_in_pool(page_file, operation):
    pool = BufferPool(page_file, 3, ReplacementStrategy.LRU_K)
    with pytest.raises(PageNotInPool):
        getattr(pool, operation)(PageHandle(NO_PAGE + 6))
    pool.shutdown()


def test_shutdown_with_pinned_page(page_file):
    pool = BufferPool(page_file, 3, ReplacementStrategy.FIFO)
    h = pool.pin_page(0)
    with pytest.raises(PinnedPagesInBuffer):
        pool.shutdown()
    assert not pool.closed
    pool.unpin_page(h)
    pool.shutdown()
    assert pool.closed


def test_context_manager_shuts_down(page_file):
    with BufferPool(page_file, 2, ReplacementStrategy.LRU) as pool:
        h = pool.pin_page(0)
        write_text(h, "ctx")
        pool.mark_dirty(h)
        pool.unpin_page(h)
    assert pool.closed
    assert pool.num_write_io() == 1
    with PageFile(page_file) as pf:
        assert c_string(pf.read_first_block()) == b"ctx"


def test_invalid_pool_size(page_file):
    with pytest.raises(ValueError):
        BufferPool(page_file, 0, ReplacementStrategy.FIFO)