# pagedb

A small paged database engine in plain Python, with no dependencies outside
the standard library. It is built in layers, and each layer can be used by
itself:

- `pagedb.storage`: page files made of 4096-byte blocks (`PAGE_SIZE`).
- `pagedb.buffer`: `BufferPool`, a fixed number of frames caching the pages
  of one page file, with FIFO, LRU, LRU-K, LFU and CLOCK replacement
  (`ReplacementStrategy`) and read/write I/O counters.
- `pagedb.bufstat`: text views of a pool's frames and hex dumps of pages.
- `pagedb.tables`: typed values (`Value`, `DataType`), record ids (`RID`),
  `Record`, `Schema`, and the fixed-width record layout.
- `pagedb.expr`: condition expressions (`Constant`, `AttrRef`, `Operator`)
  and their evaluation against a record.
- `pagedb.record`: tables stored in page files, with insert, update, delete,
  lookup by record id, and filtered scans.
- `pagedb.serializer`: values parsed from text and text forms of values,
  schemas, records and tables.

Every error is a subclass of `pagedb.errors.DBError` and carries an
`ErrorCode` in its `code` attribute; `error_message(error)` renders it as
`EC (<code>), "<message>"`.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Page files

```python
from pagedb.storage import create_page_file, open_page_file, destroy_page_file

create_page_file("data.bin")               # one zeroed page
with open_page_file("data.bin") as pf:
    first = pf.read_first_block()          # 4096 zero bytes
    pf.write_block(0, b"hello")            # zero-padded to a full page
    pf.ensure_capacity(4)                  # appends empty pages
    print(pf.total_num_pages, pf.cur_page_pos)
destroy_page_file("data.bin")
```

`PageFile` also has `read_block`, `read_previous_block`,
`read_current_block`, `read_next_block`, `read_last_block`,
`write_current_block` and `append_empty_block`. Reading or writing a page
outside the file raises `ReadNonExistingPage`; opening or removing a missing
file raises `FileNotFoundError_`; using a closed file raises
`FileHandleNotInit`.

## Buffer pool

```python
from pagedb.buffer import BufferPool, ReplacementStrategy
from pagedb.bufstat import pool_content, print_pool_content

with BufferPool("data.bin", 3, ReplacementStrategy.LRU, None) as pool:
    page = pool.pin_page(0)        # PageHandle(page_num, data)
    page.data[:5] = b"hello"       # the handle shares the frame's bytes
    pool.mark_dirty(page)
    pool.unpin_page(page)
    print(pool_content(pool))      # "[0x0],[-1 0],[-1 0]"
    print(pool.num_read_io(), pool.num_write_io())
```

The page file must already exist. Pinning a page past the end of the file
grows the file first. `mark_dirty`, `unpin_page` and `force_page` take a
`PageHandle` or a page number and raise `PageNotInPool` for a page the pool
does not hold. When every frame is pinned, pinning a new page raises
`PinnedPagesInBuffer`; so does `shutdown()` while pages are still pinned.
`force_flush()` writes back every unpinned dirty page. For LRU-K,
`strat_data` is K (2 when `None`).

`frame_contents()`, `dirty_flags()` and `fix_counts()` give the state of each
frame; `bufstat.page_content(page)` gives a hex dump of a page.

## Values and expressions

```python
from pagedb.expr import AttrRef, Constant, Operator, OpType, eval_expr, value_smaller
from pagedb.serializer import serialize_value, string_to_value

print(serialize_value(string_to_value("f5.3")))   # "5.300000"
print(value_smaller(string_to_value("i3"), string_to_value("i10")).v)  # True

cond = Operator(OpType.COMP_EQUAL, [Constant(string_to_value("i3")), AttrRef(2)])
```

`string_to_value` reads the type from the first letter: `i` (int), `f`
(float), `s` (string), `b` (bool, true when the next letter is `t`).
Comparing values of different types raises
`CompareValueOfDifferentDatatype`; boolean operators on non-boolean values
raise `BooleanExprArgIsNotBoolean`. Floats are held at single precision.

## Tables and scans

```python
from pagedb.expr import AttrRef, Constant, Operator, OpType
from pagedb.record import create_table, delete_table, init_record_manager, open_table
from pagedb.serializer import serialize_record, string_to_value
from pagedb.tables import DataType, create_record, create_schema, set_attr

init_record_manager(None)
schema = create_schema(["a", "b", "c"],
                       [DataType.INT, DataType.STRING, DataType.INT],
                       [0, 4, 0], [0])
create_table("people.tbl", schema)

with open_table("people.tbl") as table:
    record = create_record(schema)
    set_attr(record, schema, 0, string_to_value("i1"))
    set_attr(record, schema, 1, string_to_value("saaaa"))
    set_attr(record, schema, 2, string_to_value("i3"))
    rid = table.insert_record(record)

    cond = Operator(OpType.COMP_EQUAL, [Constant(string_to_value("i3")), AttrRef(2)])
    scan = table.start_scan(cond)
    for found in scan:
        print(serialize_record(found, schema))
    scan.close()

delete_table("people.tbl")
```

A table also has `get_record(rid)`, `update_record(record)`,
`delete_record(rid)` and `num_tuples()`. A missing record raises
`NoTupleWithGivenRid`; `Scan.next()` raises `NoMoreTuples` at the end, and
starting a scan without a condition raises `ScanConditionNotFound`.
`shutdown_record_manager()` closes every table still open.

Layout limits: integers and floats take 4 bytes, booleans 2, strings exactly
their declared length (longer strings are cut); attribute names are at most
15 bytes; a record and the whole schema header must each fit in one page.

## What it does not do

pagedb is a library only: it has no command-line tool and no server, and it
offers no query language, indexes, transactions, locking or recovery. The
`IM_*` codes in `ErrorCode` are defined but nothing in the package raises
them.