"""Text forms of values, schemas, records and tables, and values from text."""

from __future__ import annotations

import re

from .expr import Constant
from .tables import DataType, Value, get_attr

_INT_PREFIX = re.compile(r"\s*[+-]?\d+")
_FLOAT_PREFIX = re.compile(
    r"\s*[+-]?(?:\d+\.?\d*(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)",
    re.IGNORECASE,
)


def _leading_int(text: str) -> int:
    match = _INT_PREFIX.match(text)
    return int(match.group()) if match else 0


def _leading_float(text: str) -> float:
    match = _FLOAT_PREFIX.match(text)
    return float(match.group()) if match else 0.0


def string_to_value(text) -> Value:
    """A value from text whose first letter (i, f, s, b) names its type."""
    kind, rest = text[:1], text[1:]
    if kind == "i":
        return Value(DataType.INT, _leading_int(rest))
    if kind == "f":
        return Value(DataType.FLOAT, _leading_float(rest))
    if kind == "s":
        return Value(DataType.STRING, rest)
    if kind == "b":
        return Value(DataType.BOOL, rest[:1] == "t")
    return Value(DataType.INT, -1)


def serialize_value(value) -> str:
    if value.dt is DataType.INT:
        return str(value.v)
    if value.dt is DataType.FLOAT:
        return f"{value.v:f}"
    if value.dt is DataType.STRING:
        return value.v
    return "true" if value.v else "false"


def _type_name(schema, attr_num) -> str:
    dt = schema.data_types[attr_num]
    if dt is DataType.STRING:
        return f"STRING[{schema.type_lengths[attr_num]}]"
    return dt.name


def serialize_schema(schema) -> str:
    attributes = ", ".join(
        f"{name}: {_type_name(schema, i)}" for i, name in enumerate(schema.attr_names)
    )
    keys = ", ".join(schema.attr_names[key] for key in schema.key_attrs)
    return f"Schema with <{schema.num_attr}> attributes ({attributes}) with keys: ({keys})\n"


def serialize_attr(record, schema, attr_num) -> str:
    """Attribute ``attr_num`` of ``record`` as ``name:value``."""
    value = get_attr(record, schema, attr_num)
    if value.dt is DataType.BOOL:
        text = "TRUE" if value.v else "FALSE"
    else:
        text = serialize_value(value)
    return f"{schema.attr_names[attr_num]}:{text}"


def serialize_record(record, schema) -> str:
    attributes = ",".join(serialize_attr(record, schema, i) for i in range(schema.num_attr))
    return f"[{record.id.page}-{record.id.slot}] ({attributes})"


def serialize_table_info(table) -> str:
    return (
        f"TABLE <{table.name}> with <{table.num_tuples()}> tuples:\n"
        + serialize_schema(table.schema)
    )


def serialize_table_content(table) -> str:
    """The attribute names, then every stored record on its own line."""
    lines = [", ".join(table.schema.attr_names)]
    scan = table.start_scan(Constant(Value(DataType.BOOL, True)))
    try:
        lines.extend(serialize_record(record, table.schema) for record in scan)
    finally:
        scan.close()
    return "\n".join(lines) + "\n"