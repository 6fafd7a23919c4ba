"""Values, record ids, records and schemas, with the fixed-width record layout.

A record's bytes start with one status byte (``-`` for a free slot, ``+`` for
a stored tuple), followed by each attribute in schema order.  Integers and
floats take four bytes, booleans two, and a string exactly its declared
length, NUL-padded.  All numbers are little-endian.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum

from .errors import UnknownDatatype

TOMBSTONE = ord("-")
LIVE = ord("+")

_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1


class DataType(IntEnum):
    """Data types an attribute or a value can have."""

    INT = 0
    STRING = 1
    FLOAT = 2
    BOOL = 3


_FORMATS = {
    DataType.INT: "<i",
    DataType.FLOAT: "<f",
    DataType.BOOL: "<h",
}
_FIXED_SIZES = {dt: struct.calcsize(fmt) for dt, fmt in _FORMATS.items()}


def _to_float32(number) -> float:
    return struct.unpack("<f", struct.pack("<f", float(number)))[0]


def _normalise(dt: DataType, raw):
    if dt is DataType.INT:
        if isinstance(raw, float) or not isinstance(raw, int):
            raise TypeError(f"INT value must be an integer, not {raw!r}")
        number = int(raw)
        if not _INT_MIN <= number <= _INT_MAX:
            raise OverflowError(f"INT value {number} does not fit in 32 bits")
        return number
    if dt is DataType.FLOAT:
        return _to_float32(raw)
    if dt is DataType.STRING:
        if not isinstance(raw, str):
            raise TypeError(f"STRING value must be a str, not {raw!r}")
        return raw
    return bool(raw)


@dataclass(frozen=True)
class Value:
    """A typed value; floats are held at single precision like stored ones."""

    dt: DataType
    v: object

    def __post_init__(self):
        try:
            dt = DataType(self.dt)
        except ValueError as exc:
            raise UnknownDatatype(f"unknown data type {self.dt!r}") from exc
        object.__setattr__(self, "dt", dt)
        object.__setattr__(self, "v", _normalise(dt, self.v))


@dataclass(frozen=True)
class RID:
    """Where a record lives: its page and its slot on that page."""

    page: int = -1
    slot: int = -1


@dataclass
class Record:
    """A record id and the record's raw bytes."""

    id: RID = field(default_factory=RID)
    data: bytearray = field(default_factory=bytearray)


@dataclass
class Schema:
    """Attribute names, their data types and lengths, and the key attributes."""

    attr_names: list
    data_types: list
    type_lengths: list
    key_attrs: list = field(default_factory=list)

    def __post_init__(self):
        self.attr_names = list(self.attr_names)
        self.type_lengths = [int(length) for length in self.type_lengths]
        self.key_attrs = [int(key) for key in self.key_attrs]
        try:
            self.data_types = [DataType(dt) for dt in self.data_types]
        except ValueError as exc:
            raise UnknownDatatype(f"unknown data type in {self.data_types!r}") from exc
        if not len(self.attr_names) == len(self.data_types) == len(self.type_lengths):
            raise ValueError("attribute names, data types and lengths differ in number")
        for key in self.key_attrs:
            if not 0 <= key < len(self.attr_names):
                raise ValueError(f"key attribute {key} is not an attribute of the schema")
        for dt, length in zip(self.data_types, self.type_lengths):
            if dt is DataType.STRING and length < 0:
                raise ValueError("a string attribute cannot have a negative length")

    @property
    def num_attr(self) -> int:
        return len(self.attr_names)

    @property
    def key_size(self) -> int:
        return len(self.key_attrs)


def _attr_size(schema: Schema, attr_num: int) -> int:
    dt = schema.data_types[attr_num]
    if dt is DataType.STRING:
        return schema.type_lengths[attr_num]
    try:
        return _FIXED_SIZES[dt]
    except KeyError:
        raise UnknownDatatype(f"unknown data type {dt!r}") from None


def _check_attr(schema: Schema, attr_num: int) -> None:
    if not 0 <= attr_num < schema.num_attr:
        raise IndexError(f"attribute {attr_num} is not in a schema of {schema.num_attr}")


def record_size(schema) -> int:
    """Bytes taken by one record of ``schema``, status byte included."""
    return 1 + sum(_attr_size(schema, i) for i in range(schema.num_attr))


def attr_offset(schema, attr_num) -> int:
    """Byte offset of attribute ``attr_num`` within a record's bytes."""
    _check_attr(schema, attr_num)
    return 1 + sum(_attr_size(schema, i) for i in range(attr_num))


def create_schema(attr_names, data_types, type_lengths, keys) -> Schema:
    """Build a schema from parallel lists of names, types and lengths."""
    return Schema(attr_names, data_types, type_lengths, keys)


def create_record(schema) -> Record:
    """A new, zeroed record of ``schema`` marked as not stored."""
    data = bytearray(record_size(schema))
    data[0] = TOMBSTONE
    return Record(RID(), data)


def get_attr(record, schema, attr_num) -> Value:
    """Read attribute ``attr_num`` of ``record``."""
    offset = attr_offset(schema, attr_num)
    dt = schema.data_types[attr_num]
    if dt is DataType.STRING:
        length = schema.type_lengths[attr_num]
        raw = bytes(record.data[offset:offset + length]).split(b"\0", 1)[0]
        return Value(DataType.STRING, raw.decode("utf-8", errors="replace"))
    fmt = _FORMATS.get(dt)
    if fmt is None:
        raise UnknownDatatype(f"no reader for data type {dt!r}")
    (raw,) = struct.unpack_from(fmt, record.data, offset)
    return Value(dt, raw != 0 if dt is DataType.BOOL else raw)


def set_attr(record, schema, attr_num, value) -> None:
    """Store ``value`` as attribute ``attr_num`` of ``record``."""
    offset = attr_offset(schema, attr_num)
    dt = schema.data_types[attr_num]
    if value.dt is not dt:
        raise TypeError(
            f"attribute {attr_num} is {dt.name}, the value is {value.dt.name}"
        )
    if dt is DataType.STRING:
        length = schema.type_lengths[attr_num]
        encoded = value.v.encode("utf-8")[:length]
        record.data[offset:offset + length] = encoded.ljust(length, b"\0")
        return
    fmt = _FORMATS.get(dt)
    if fmt is None:
        raise UnknownDatatype(f"no writer for data type {dt!r}")
    raw = int(value.v) if dt is DataType.BOOL else value.v
    struct.pack_into(fmt, record.data, offset, raw)