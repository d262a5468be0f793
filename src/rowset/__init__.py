"""
Buffered database result sets with typed accessors.

Results can be built either as:
- From a query: rs.select(cn, sql, *args)
- From an executed cursor or result stream: rs.load(cursor)

Rows are then read through the table cursor:

    table = rs.select(cn, 'SELECT id, name FROM users')
    while table.next():
        table.get_int64('id'), table.get_string('name')
"""
__version__ = '0.1.0'

from rowset.binding import Float32, Float64, Int64, Tag, column
from rowset.exceptions import InvalidTargetError, NoCurrentRowError, ParseError
from rowset.exceptions import RowsetError, StreamFailure, TypeConversionError
from rowset.exceptions import UnconvertibleKindError, UnknownColumnError
from rowset.exceptions import UnsupportedConversionError
from rowset.options import RowsetOptions
from rowset.query import select
from rowset.stream import CursorStream
from rowset.table import ResultTable, load
from rowset.types import ZERO_TIME, Category, Cell, CellKind, Column, classify
from rowset.utils import camel_to_underscore

__all__ = [
    'load',
    'select',
    'ResultTable',
    'CursorStream',
    'RowsetOptions',
    'Column',
    'Category',
    'Cell',
    'CellKind',
    'classify',
    'camel_to_underscore',
    'column',
    'Tag',
    'Int64',
    'Float32',
    'Float64',
    'ZERO_TIME',
    'RowsetError',
    'UnknownColumnError',
    'TypeConversionError',
    'UnsupportedConversionError',
    'ParseError',
    'UnconvertibleKindError',
    'InvalidTargetError',
    'NoCurrentRowError',
    'StreamFailure',
]
