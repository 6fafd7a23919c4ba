"""A small paged database engine: page files, a buffer pool, expressions and tables of records."""

__version__ = "0.1.0"

__all__ = ["errors", "storage", "buffer", "bufstat", "tables", "expr", "record", "serializer"]