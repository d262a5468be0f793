"""
Cell conversion for typed result accessors (Database -> Python direction).

Each converter takes a buffered Cell plus its Column and returns the
requested Python value. Converters assume the declared type was already
accepted by the classifier (see ``check``).

Conversion rules:
1. Native values of the matching kind pass through
2. Byte cells are parsed as literals of the requested type
3. NULL yields the zero value of the requested type
4. Any other kind raises UnconvertibleKindError
"""
import datetime
import json
import logging
import math
import re

import dateutil.parser
import numpy as np

from rowset.exceptions import ParseError, UnconvertibleKindError
from rowset.exceptions import UnsupportedConversionError
from rowset.options import RowsetOptions
from rowset.types import ZERO_TIME, Category, Cell, CellKind, Column, classify

logger = logging.getLogger(__name__)

INT64 = np.iinfo(np.int64)
INTP = np.iinfo(np.intp)
FLOAT32 = np.finfo(np.float32)

_INT_LITERAL = re.compile(r'[+-]?[0-9]+')
_TIME_FORMATS = ('%Y-%m-%d %H:%M:%S', '%Y-%m-%d %H:%M:%S.%f')

_DEFAULT_OPTIONS = RowsetOptions()


def check(column: Column, category: Category) -> None:
    """Raise UnsupportedConversionError if the column type is not in the category.
    """
    if not classify(column.type_name, category):
        raise UnsupportedConversionError(
            f'unsupported conversion: db({column.type_name}) => {category.value} '
            f'for column "{column.name}"',
            column=column.name, type_name=column.type_name, target=category.value)


def _unconvertible(cell: Cell, column: Column, target: str) -> UnconvertibleKindError:
    return UnconvertibleKindError(
        f'can not convert {cell.kind.value} cell in column "{column.name}" to {target}',
        column=column.name, type_name=column.type_name, target=target)


def _parse_error(text: str, column: Column, target: str, reason: str = 'invalid syntax') -> ParseError:
    return ParseError(
        f'parsing {text!r} in column "{column.name}" as {target}: {reason}',
        column=column.name, type_name=column.type_name, target=target)


def _ascii(cell: Cell, column: Column, target: str) -> str:
    try:
        return cell.value.decode('ascii')
    except UnicodeDecodeError as err:
        raise _parse_error(repr(cell.value), column, target, 'non-ASCII bytes') from err


def to_int64(cell: Cell, column: Column, options: RowsetOptions | None = None) -> int:
    """Convert a cell to a signed 64-bit integer value.
    """
    if cell.kind is CellKind.INTEGER:
        return int(cell.value)
    if cell.kind is CellKind.BYTES:
        text = _ascii(cell, column, 'int64')
        if not _INT_LITERAL.fullmatch(text):
            raise _parse_error(text, column, 'int64')
        value = int(text)
        if not INT64.min <= value <= INT64.max:
            raise _parse_error(text, column, 'int64', 'value out of range')
        return value
    if cell.kind is CellKind.NULL:
        return 0
    raise _unconvertible(cell, column, 'int64')


def to_int(cell: Cell, column: Column, options: RowsetOptions | None = None) -> int:
    """Convert a cell to an integer that fits the platform integer width.
    """
    value = to_int64(cell, column, options)
    if not INTP.min <= value <= INTP.max:
        raise _parse_error(str(value), column, 'int', 'value out of range')
    return value


def to_float64(cell: Cell, column: Column, options: RowsetOptions | None = None) -> float:
    """Convert a cell to a double precision float.
    """
    if cell.kind is CellKind.FLOAT:
        return float(cell.value)
    if cell.kind is CellKind.BYTES:
        text = _ascii(cell, column, 'float64')
        if not text or text != text.strip() or '_' in text:
            raise _parse_error(text, column, 'float64')
        try:
            return float(text)
        except ValueError as err:
            raise _parse_error(text, column, 'float64') from err
    if cell.kind is CellKind.NULL:
        return 0.0
    raise _unconvertible(cell, column, 'float64')


def to_float32(cell: Cell, column: Column, options: RowsetOptions | None = None) -> np.float32:
    """Convert a cell to a single precision float.

    Finite values outside the float32 range are rejected rather than
    rounded to infinity.
    """
    value = to_float64(cell, column, options)
    if math.isfinite(value) and abs(value) > FLOAT32.max:
        raise _parse_error(repr(value), column, 'float32', 'value out of range')
    return np.float32(value)


def to_string(cell: Cell, column: Column, options: RowsetOptions | None = None) -> str:
    """Convert a cell to text. Byte cells are decoded without loss.
    """
    options = options or _DEFAULT_OPTIONS
    if cell.kind is CellKind.TEXT:
        return cell.value
    if cell.kind is CellKind.BYTES:
        return cell.value.decode(options.encoding, 'surrogateescape')
    if cell.kind is CellKind.TIME_OF_DAY:
        return cell.value.isoformat()
    if cell.kind is CellKind.DOCUMENT:
        return json.dumps(cell.value)
    if cell.kind is CellKind.NULL:
        return ''
    raise _unconvertible(cell, column, 'string')


def _strptime(text: str, column: Column) -> datetime.datetime:
    for fmt in _TIME_FORMATS:
        try:
            return datetime.datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise _parse_error(text, column, 'datetime')


def parse_time(text: str, column: Column, options: RowsetOptions | None = None) -> datetime.datetime:
    """Parse a temporal literal according to the column's declared type.

    ISO 8601 literals are accepted for every temporal column. TIME columns
    also accept ``hh:mm:ss`` (dated 0001-01-01) and YEAR columns a bare year.
    Anything else yields ZERO_TIME, or ParseError with ``strict_time``.
    """
    options = options or _DEFAULT_OPTIONS
    try:
        return dateutil.parser.isoparse(text)
    except (ValueError, OverflowError):
        pass

    if column.type_name == 'TIME':
        return _strptime(f'0001-01-01 {text}', column)
    if column.type_name == 'YEAR':
        return _strptime(f'{text}-01-01 00:00:00', column)

    if options.strict_time:
        raise _parse_error(text, column, 'datetime', 'unrecognized temporal literal')
    logger.warning(f'Unrecognized {column.type_name} value {text!r} in column '
                   f'"{column.name}", returning zero time')
    return ZERO_TIME


def to_time(cell: Cell, column: Column, options: RowsetOptions | None = None) -> datetime.datetime:
    """Convert a cell to a datetime. Times of day are dated 0001-01-01.
    """
    options = options or _DEFAULT_OPTIONS
    if cell.kind is CellKind.TIMESTAMP:
        return cell.value
    if cell.kind is CellKind.TIME_OF_DAY:
        return datetime.datetime.combine(datetime.date.min, cell.value)
    if cell.kind is CellKind.NULL:
        return ZERO_TIME
    if cell.kind is CellKind.BYTES:
        return parse_time(cell.value.decode(options.encoding, 'replace'), column, options)
    if cell.kind is CellKind.TEXT:
        return parse_time(cell.value, column, options)
    raise _unconvertible(cell, column, 'datetime')


# Generic dispatch in priority order: first accepting category wins
GENERIC_CONVERTERS = (
    (Category.INTEGER, to_int64),
    (Category.FLOAT, to_float64),
    (Category.TEXT, to_string),
    (Category.TEMPORAL, to_time),
)
