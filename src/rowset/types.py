"""
Type handling for buffered result sets.

This module provides:
- Category: semantic coercion families for declared column types
- classify / categories_of: the declared type -> category lookup
- Column: column metadata captured from a result stream
- Cell: tagged raw value as delivered by the driver
- resolve_type_name: driver type codes -> declared type names
"""
import datetime
import decimal
import enum
import logging
import uuid
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Self

import numpy as np
from psycopg.postgres import types as pg_types

logger = logging.getLogger(__name__)

# Zero value returned for NULL and unrecognized temporal cells
ZERO_TIME = datetime.datetime.min


class Category(enum.Enum):
    """Semantic category a declared column type can be coerced into.
    """
    INTEGER = 'integer'
    FLOAT = 'float'
    TEXT = 'text'
    TEMPORAL = 'temporal'


# YEAR and TIME appear twice: each accessor applies its own conversion rule.
TYPE_CATEGORIES: MappingProxyType = MappingProxyType({
    Category.INTEGER: frozenset({
        'INT', 'TINYINT', 'SMALLINT', 'MEDIUMINT', 'BIGINT',
        'YEAR',  # integer year, e.g. 2021
    }),
    Category.FLOAT: frozenset({
        'FLOAT', 'DOUBLE', 'DECIMAL',
    }),
    Category.TEXT: frozenset({
        'CHAR', 'VARCHAR', 'TINYTEXT', 'TEXT', 'MEDIUMTEXT', 'LONGTEXT',
        'JSON',
        'TIME',  # hh:mm:ss
    }),
    Category.TEMPORAL: frozenset({
        'DATE', 'DATETIME', 'TIMESTAMP',
        'YEAR',  # yyyy -> yyyy-01-01 00:00:00
        'TIME',  # hh:mm:ss -> 0001-01-01 hh:mm:ss
    }),
})


def classify(type_name: str, category: Category) -> bool:
    """Return True if the declared type belongs to the category's accepted set.

    Lookup is case sensitive.

    >>> classify('BIGINT', Category.INTEGER)
    True
    >>> classify('YEAR', Category.TEMPORAL)
    True
    >>> classify('DOUBLE', Category.TEXT)
    False
    >>> classify('bigint', Category.INTEGER)
    False
    """
    return type_name in TYPE_CATEGORIES[category]


def categories_of(type_name: str) -> tuple[Category, ...]:
    """Return every category accepting the declared type, in priority order.

    >>> categories_of('TIME')
    (<Category.TEXT: 'text'>, <Category.TEMPORAL: 'temporal'>)
    >>> categories_of('BLOB')
    ()
    """
    return tuple(c for c in Category if classify(type_name, c))


@dataclass(frozen=True)
class Column:
    """Result column metadata: name and the database-reported type name.
    """
    name: str
    type_name: str

    @classmethod
    def coerce(cls, item: Any) -> Self:
        """Build a Column from a Column or a ``(name, type_name)`` pair.
        """
        if isinstance(item, cls):
            return item
        name, type_name = item
        return cls(str(name), type_name or '')


class CellKind(enum.Enum):
    """Runtime kind of a raw driver value.
    """
    NULL = 'null'
    INTEGER = 'integer'
    FLOAT = 'float'
    BYTES = 'bytes'
    TEXT = 'text'
    TIMESTAMP = 'timestamp'
    TIME_OF_DAY = 'time of day'
    DOCUMENT = 'document'
    OTHER = 'other'


@dataclass(frozen=True, slots=True)
class Cell:
    """A driver value tagged with its kind.

    Byte-like values are stored as ``bytes``, dates as midnight datetimes and
    UUIDs as their canonical text; everything else is kept exactly as the
    driver returned it. Decoded JSON (dict or list) is a DOCUMENT cell.
    """
    kind: CellKind
    value: Any = None

    @classmethod
    def of(cls, value: Any) -> Self:
        """Classify a raw driver value.

        >>> Cell.of(b'42').kind
        <CellKind.BYTES: 'bytes'>
        >>> Cell.of(datetime.date(2020, 5, 1)).value
        datetime.datetime(2020, 5, 1, 0, 0)
        """
        if value is None:
            return NULL
        if isinstance(value, int | np.integer):
            return cls(CellKind.INTEGER, value)
        if isinstance(value, float | decimal.Decimal | np.floating):
            return cls(CellKind.FLOAT, value)
        if isinstance(value, bytes | bytearray | memoryview):
            return cls(CellKind.BYTES, bytes(value))
        if isinstance(value, str):
            return cls(CellKind.TEXT, value)
        if isinstance(value, datetime.datetime):
            return cls(CellKind.TIMESTAMP, value)
        if isinstance(value, datetime.date):
            return cls(CellKind.TIMESTAMP, datetime.datetime.combine(value, datetime.time()))
        if isinstance(value, datetime.time):
            return cls(CellKind.TIME_OF_DAY, value)
        if isinstance(value, uuid.UUID):
            return cls(CellKind.TEXT, str(value))
        if isinstance(value, dict | list):
            return cls(CellKind.DOCUMENT, value)
        return cls(CellKind.OTHER, value)


NULL = Cell(CellKind.NULL)


# Type Resolution - driver type codes -> declared type names

_oid = lambda x: pg_types.get(x).oid

postgres_type_names: dict[int, str] = {}

for v, name in [('int2', 'SMALLINT'), ('int4', 'INT'), ('int8', 'BIGINT'),
                ('float4', 'FLOAT'), ('float8', 'DOUBLE'), ('numeric', 'DECIMAL')]:
    postgres_type_names[_oid(v)] = name

for v, name in [('bpchar', 'CHAR'), ('varchar', 'VARCHAR'), ('text', 'TEXT'),
                ('name', 'TEXT'), ('uuid', 'TEXT'), ('json', 'JSON'), ('jsonb', 'JSON')]:
    postgres_type_names[_oid(v)] = name

for v, name in [('date', 'DATE'), ('time', 'TIME'), ('timetz', 'TIME'),
                ('timestamp', 'TIMESTAMP'), ('timestamptz', 'TIMESTAMP')]:
    postgres_type_names[_oid(v)] = name


def resolve_type_name(dialect: str, type_code: Any) -> str:
    """Resolve a cursor description type code to a declared type name.

    Unknown PostgreSQL types resolve to their upper-cased catalog name;
    dialects that report no type code resolve to an empty string.
    """
    if isinstance(type_code, str):
        return type_code.split('(')[0].strip().upper()

    if dialect == 'postgresql' and type_code is not None:
        if type_code in postgres_type_names:
            return postgres_type_names[type_code]
        info = pg_types.get(type_code)
        if info is not None:
            return info.name.upper()
        logger.debug(f'Unknown PostgreSQL type code: {type_code}')

    return ''
