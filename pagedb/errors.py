"""Error codes and exceptions shared by the storage, buffer and record layers."""

from __future__ import annotations

from enum import IntEnum


class ErrorCode(IntEnum):
    """Numeric codes that identify each kind of failure."""

    OK = 0
    FILE_NOT_FOUND = 1
    FILE_HANDLE_NOT_INIT = 2
    WRITE_FAILED = 3
    READ_NON_EXISTING_PAGE = 4
    ERROR = 5
    PINNED_PAGES_IN_BUFFER = 6
    RM_NO_TUPLE_WITH_GIVEN_RID = 7
    SCAN_CONDITION_NOT_FOUND = 8
    UNPIN_FAILED = 9

    RM_COMPARE_VALUE_OF_DIFFERENT_DATATYPE = 200
    RM_EXPR_RESULT_IS_NOT_BOOLEAN = 201
    RM_BOOLEAN_EXPR_ARG_IS_NOT_BOOLEAN = 202
    RM_NO_MORE_TUPLES = 203
    RM_NO_PRINT_FOR_DATATYPE = 204
    RM_UNKOWN_DATATYPE = 205

    IM_KEY_NOT_FOUND = 300
    IM_KEY_ALREADY_EXISTS = 301
    IM_N_TO_LAGE = 302
    IM_NO_MORE_ENTRIES = 303


class DBError(Exception):
    """Base class of every error raised by the package."""

    code: ErrorCode = ErrorCode.ERROR

    def __init__(self, message=None):
        if message is None:
            super().__init__()
        else:
            super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message if self.message is not None else self.code.name


class FileNotFoundError_(DBError):
    """A page file does not exist or cannot be opened."""

    code = ErrorCode.FILE_NOT_FOUND


class FileHandleNotInit(DBError):
    """A page file handle was used without being open."""

    code = ErrorCode.FILE_HANDLE_NOT_INIT


class WriteFailed(DBError):
    """Writing to a page file did not succeed."""

    code = ErrorCode.WRITE_FAILED


class ReadNonExistingPage(DBError):
    """A page outside the page file was requested."""

    code = ErrorCode.READ_NON_EXISTING_PAGE


class PageNotInPool(DBError):
    """A page that is not held by the buffer pool was referenced."""

    code = ErrorCode.ERROR


class PinnedPagesInBuffer(DBError):
    """The buffer pool still holds pinned pages."""

    code = ErrorCode.PINNED_PAGES_IN_BUFFER


class NoTupleWithGivenRid(DBError):
    """No record lives at the requested record id."""

    code = ErrorCode.RM_NO_TUPLE_WITH_GIVEN_RID


class ScanConditionNotFound(DBError):
    """A scan was started without a condition."""

    code = ErrorCode.SCAN_CONDITION_NOT_FOUND


class UnpinFailed(DBError):
    """A page could not be unpinned."""

    code = ErrorCode.UNPIN_FAILED


class CompareValueOfDifferentDatatype(DBError):
    """Two values of different data types were compared."""

    code = ErrorCode.RM_COMPARE_VALUE_OF_DIFFERENT_DATATYPE


class BooleanExprArgIsNotBoolean(DBError):
    """A boolean operator received a non-boolean argument."""

    code = ErrorCode.RM_BOOLEAN_EXPR_ARG_IS_NOT_BOOLEAN


class NoMoreTuples(DBError):
    """A scan has no further matching records."""

    code = ErrorCode.RM_NO_MORE_TUPLES


class UnknownDatatype(DBError):
    """A data type that the record layer cannot handle was used."""

    code = ErrorCode.RM_UNKOWN_DATATYPE


def error_message(error) -> str:
    """Describe an error or an error code as ``EC (<code>)`` with its message."""
    if isinstance(error, DBError):
        code, message = int(error.code), error.message
    else:
        code, message = int(error), None
    if message is not None:
        return f'EC ({code}), "{message}"\n'
    return f"EC ({code})\n"