"""Tables of fixed-width records kept in page files, and scans over them.

Page 0 of a table file is its header: the number of tuples, the first page
that may hold a free slot, the number of attributes and of key attributes,
then for every attribute its name (15 bytes, NUL-padded), data type and
length, and finally the key attribute numbers.  Records live on the pages
after the header, each page holding as many fixed-size slots as fit.
"""

from __future__ import annotations

import os
import struct
from contextlib import contextmanager

from .buffer import BufferPool, ReplacementStrategy
from .errors import DBError, NoMoreTuples, NoTupleWithGivenRid, ScanConditionNotFound
from .expr import eval_expr
from .storage import PAGE_SIZE, PageFile, create_page_file, destroy_page_file
from .tables import LIVE, RID, TOMBSTONE, DataType, Record, Schema, record_size

MAX_PAGES = 100
ATTR_NAME_LEN = 15
FIRST_DATA_PAGE = 1

_HEADER = struct.Struct("<iiii")
_ATTR = struct.Struct(f"<{ATTR_NAME_LEN}sii")

_open_tables: set = set()


def _encode_header(num_tuples, first_page, schema) -> bytes:
    parts = [_HEADER.pack(num_tuples, first_page, schema.num_attr, schema.key_size)]
    for name, dt, length in zip(schema.attr_names, schema.data_types, schema.type_lengths):
        encoded = name.encode("utf-8")
        if len(encoded) > ATTR_NAME_LEN:
            raise ValueError(f"attribute name {name!r} is longer than {ATTR_NAME_LEN} bytes")
        parts.append(_ATTR.pack(encoded, int(dt), length))
    parts.append(struct.pack(f"<{schema.key_size}i", *schema.key_attrs))
    header = b"".join(parts)
    if len(header) > PAGE_SIZE:
        raise ValueError("the schema does not fit in the table header page")
    return header


def _decode_header(page):
    num_tuples, first_page, num_attr, key_size = _HEADER.unpack_from(page, 0)
    attrs_end = _HEADER.size + num_attr * _ATTR.size
    if num_attr <= 0 or key_size < 0 or attrs_end + 4 * key_size > PAGE_SIZE:
        raise DBError("the file does not hold a table header")
    names, types, lengths = [], [], []
    for raw_name, dt, length in _ATTR.iter_unpack(bytes(page[_HEADER.size:attrs_end])):
        names.append(raw_name.split(b"\0", 1)[0].decode("utf-8", errors="replace"))
        types.append(dt)
        lengths.append(length)
    keys = struct.unpack_from(f"<{key_size}i", page, attrs_end)
    return Schema(names, types, lengths, keys), num_tuples, first_page


def init_record_manager(mgmt_data=None) -> None:
    """Prepare the record manager; it takes no management data."""
    if mgmt_data is not None:
        raise DBError("the record manager takes no management data")


def shutdown_record_manager() -> None:
    """Close every table that is still open."""
    for table in list(_open_tables):
        table.close()


def create_table(name, schema) -> None:
    """Create (or overwrite) the table file ``name`` for records of ``schema``."""
    if schema.num_attr <= 0:
        raise ValueError("a table needs at least one attribute")
    if record_size(schema) > PAGE_SIZE:
        raise ValueError("a record of this schema does not fit in a page")
    header = _encode_header(0, FIRST_DATA_PAGE, schema)
    create_page_file(name)
    with PageFile(name) as page_file:
        page_file.write_block(0, header)


def open_table(name) -> "Table":
    """Open the table stored in file ``name``."""
    return Table(name)


def delete_table(name) -> None:
    """Remove the table file ``name``."""
    destroy_page_file(name)


class Table:
    """An open table: its schema and a buffer pool over its file."""

    def __init__(self, name):
        self.name = name
        self._pool = BufferPool(name, MAX_PAGES, ReplacementStrategy.LRU)
        try:
            with self._pinned(0) as page:
                self.schema, self._num_tuples, self._first_page = _decode_header(page)
        except BaseException:
            self._pool.shutdown()
            raise
        self._record_size = record_size(self.schema)
        self._slots = PAGE_SIZE // self._record_size
        self._page_count = max(os.path.getsize(name) // PAGE_SIZE, FIRST_DATA_PAGE)
        _open_tables.add(self)

    def __repr__(self) -> str:
        return f"Table({self.name!r}, closed={self.closed})"

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    @property
    def closed(self) -> bool:
        return self._pool is None

    def _require_open(self) -> None:
        if self._pool is None:
            raise DBError(f"table {self.name!r} is closed")

    @contextmanager
    def _pinned(self, page_num):
        handle = self._pool.pin_page(page_num)
        try:
            yield handle.data
        finally:
            self._pool.unpin_page(handle)

    def close(self) -> None:
        """Store the header, flush dirty pages and release the buffer pool."""
        if self._pool is None:
            return
        header = _encode_header(self._num_tuples, self._first_page, self.schema)
        with self._pinned(0) as page:
            page[:len(header)] = header
            self._pool.mark_dirty(0)
        self._pool.shutdown()
        self._pool = None
        _open_tables.discard(self)

    def num_tuples(self) -> int:
        """Number of records stored in the table."""
        self._require_open()
        return self._num_tuples

    def _check_data(self, record) -> bytes:
        if len(record.data) != self._record_size:
            raise ValueError(
                f"record has {len(record.data)} bytes, the schema needs {self._record_size}"
            )
        return bytes(record.data)

    def _offset(self, rid) -> int:
        self._require_open()
        if not (FIRST_DATA_PAGE <= rid.page < self._page_count and 0 <= rid.slot < self._slots):
            raise NoTupleWithGivenRid(f"no record at {rid}")
        return rid.slot * self._record_size

    def _free_slot(self, page):
        size = self._record_size
        return next((slot for slot in range(self._slots) if page[slot * size] != LIVE), None)

    def insert_record(self, record) -> RID:
        """Store ``record`` in the first free slot; set and return its id."""
        self._require_open()
        data = self._check_data(record)
        size = self._record_size
        page_num = self._first_page
        while True:
            with self._pinned(page_num) as page:
                slot = self._free_slot(page)
                if slot is not None:
                    offset = slot * size
                    page[offset] = LIVE
                    page[offset + 1:offset + size] = data[1:]
                    self._pool.mark_dirty(page_num)
                    break
            page_num += 1
        self._page_count = max(self._page_count, page_num + 1)
        self._first_page = page_num
        self._num_tuples += 1
        record.id = RID(page_num, slot)
        return record.id

    def delete_record(self, rid) -> None:
        """Free the slot of the record at ``rid``."""
        offset = self._offset(rid)
        with self._pinned(rid.page) as page:
            if page[offset] != LIVE:
                raise NoTupleWithGivenRid(f"no record at {rid}")
            page[offset] = TOMBSTONE
            self._pool.mark_dirty(rid.page)
        self._num_tuples -= 1
        self._first_page = min(self._first_page, rid.page)

    def update_record(self, record) -> None:
        """Overwrite the stored record at ``record.id`` with ``record``."""
        data = self._check_data(record)
        offset = self._offset(record.id)
        with self._pinned(record.id.page) as page:
            if page[offset] != LIVE:
                raise NoTupleWithGivenRid(f"no record at {record.id}")
            page[offset + 1:offset + self._record_size] = data[1:]
            self._pool.mark_dirty(record.id.page)

    def get_record(self, rid) -> Record:
        """The record stored at ``rid``."""
        offset = self._offset(rid)
        with self._pinned(rid.page) as page:
            if page[offset] != LIVE:
                raise NoTupleWithGivenRid(f"no record at {rid}")
            data = bytearray(page[offset:offset + self._record_size])
        data[0] = TOMBSTONE
        return Record(rid, data)

    def start_scan(self, condition) -> "Scan":
        """Start a scan over the records for which ``condition`` holds."""
        if condition is None:
            raise ScanConditionNotFound("a scan needs a condition")
        self._require_open()
        return Scan(self, condition)

    def _live_records(self):
        size = self._record_size
        for page_num in range(FIRST_DATA_PAGE, self._page_count):
            self._require_open()
            with self._pinned(page_num) as page:
                snapshot = bytes(page)
            for slot in range(self._slots):
                offset = slot * size
                if snapshot[offset] == LIVE:
                    data = bytearray(snapshot[offset:offset + size])
                    data[0] = TOMBSTONE
                    yield Record(RID(page_num, slot), data)


class Scan:
    """The records of a table that satisfy a condition, in storage order."""

    def __init__(self, table, condition):
        self.table = table
        self.condition = condition
        self._records = self._matches()
        self._closed = False

    def _matches(self):
        schema = self.table.schema
        for record in self.table._live_records():
            result = eval_expr(record, schema, self.condition)
            if result.dt is not DataType.BOOL:
                raise DBError("the scan condition did not yield a boolean")
            if result.v:
                yield record

    def next(self) -> Record:
        """The next matching record; raises NoMoreTuples at the end."""
        if self._closed:
            raise DBError("the scan is closed")
        try:
            return next(self._records)
        except StopIteration:
            raise NoMoreTuples("no more tuples") from None

    def close(self) -> None:
        if self._closed:
            raise DBError("the scan is already closed")
        self._records.close()
        self._closed = True

    def __iter__(self):
        return self

    def __next__(self) -> Record:
        try:
            return self.next()
        except NoMoreTuples:
            raise StopIteration from None