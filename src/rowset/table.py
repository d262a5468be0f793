"""
Buffered result table with typed accessors.

ResultTable consumes a result stream once, keeps every row in memory and
serves all reads from the buffer. Reads apply to the row under the cursor,
which starts before the first row:

    table = ResultTable.load(stream)
    while table.next():
        user_id = table.get_int64('id')
        name = table.get_string('name')
"""
import datetime
import logging
from collections.abc import Callable, Iterator
from typing import Any, Self

import numpy as np
import pandas as pd

from rowset import binding, convert
from rowset.exceptions import NoCurrentRowError, RowsetError, StreamFailure
from rowset.exceptions import UnknownColumnError
from rowset.options import RowsetOptions, load_options
from rowset.stream import as_stream
from rowset.types import Category, Cell, Column, categories_of

logger = logging.getLogger(__name__)

Converter = Callable[[Cell, Column, RowsetOptions], Any]


class ResultTable:
    """In-memory result set with a single cursor.

    Not safe for concurrent cursor movement; share across threads only with
    external synchronization.
    """

    def __init__(self, columns: list[Column], rows: list[tuple[Cell, ...]],
                 options: RowsetOptions | None = None) -> None:
        self._columns = tuple(columns)
        self._rows = rows
        self._cursor = -1
        self.options = options or RowsetOptions()

        self._index: dict[str, int] = {}
        for i, col in enumerate(self._columns):
            if col.name in self._index:
                logger.debug(f'Duplicate column name {col.name!r}, '
                             f'position {i} shadows {self._index[col.name]}')
            self._index[col.name] = i

    @classmethod
    def load(cls, stream: Any, options: RowsetOptions | dict | None = None,
             **kwargs: Any) -> Self:
        """Buffer every row of a result stream or DB-API cursor.

        The stream is closed before returning, whether or not loading
        succeeded. Driver errors raise StreamFailure and no table is built.
        """
        options = load_options(options, **kwargs)
        stream = as_stream(stream, type_names=options.type_names)
        rows: list[tuple[Cell, ...]] = []
        try:
            try:
                columns = [Column.coerce(c) for c in stream.columns]
                if options.type_names:
                    columns = [Column(c.name, options.type_names.get(c.name, c.type_name))
                               for c in columns]
                width = len(columns)
                for raw in stream:
                    row = tuple(Cell.of(v) for v in raw)
                    if len(row) != width:
                        raise StreamFailure(
                            f'row {len(rows)} has {len(row)} values, expected {width}')
                    rows.append(row)
            except RowsetError:
                raise
            except Exception as exc:
                logger.error(f'Result stream failed after {len(rows)} rows: {exc}')
                raise StreamFailure(str(exc)) from exc
        finally:
            stream.close()

        logger.debug(f'Buffered {len(rows)} rows x {width} columns')
        return cls(columns, rows, options)

    # Metadata

    @property
    def columns(self) -> tuple[Column, ...]:
        return self._columns

    @property
    def names(self) -> list[str]:
        return [c.name for c in self._columns]

    @property
    def rowcount(self) -> int:
        return len(self._rows)

    @property
    def cursor(self) -> int:
        """Current row position; -1 before the first row.
        """
        return self._cursor

    def __len__(self) -> int:
        return len(self._rows)

    def __repr__(self) -> str:
        return (f'ResultTable(columns={self.names!r}, rows={len(self._rows)}, '
                f'cursor={self._cursor})')

    def has_column(self, name: str) -> bool:
        return name in self._index

    def name_at(self, n: int) -> str:
        """Column name at position n, or an empty string when out of range.
        """
        if 0 <= n < len(self._columns):
            return self._columns[n].name
        return ''

    # Navigation

    def next(self) -> bool:
        """Advance to the next row. Returns False once past the last row.
        """
        n = self._cursor + 1
        if 0 <= n < len(self._rows):
            self._cursor = n
            return True
        self._cursor = len(self._rows)
        return False

    def seek(self, r: int) -> bool:
        """Move to row r. An out-of-range r leaves the cursor unchanged.
        """
        if 0 <= r < len(self._rows):
            self._cursor = r
            return True
        return False

    def iterrows(self) -> Iterator[Self]:
        """Position the table on each row in turn, yielding the table.
        """
        for r in range(len(self._rows)):
            self._cursor = r
            yield self
        self._cursor = len(self._rows)

    # Cell access

    def _column(self, name: str) -> tuple[int, Column]:
        try:
            i = self._index[name]
        except KeyError:
            raise UnknownColumnError(name) from None
        return i, self._columns[i]

    def _cell(self, i: int) -> Cell:
        if not 0 <= self._cursor < len(self._rows):
            raise NoCurrentRowError(
                f'no current row (cursor={self._cursor}, rows={len(self._rows)}); '
                f'call next() or seek() first')
        return self._rows[self._cursor][i]

    def _convert(self, name: str, category: Category, converter: Converter) -> Any:
        i, col = self._column(name)
        convert.check(col, category)
        return converter(self._cell(i), col, self.options)

    # Typed getters

    def get_int(self, name: str) -> int:
        """Integer value narrowed to the platform integer width.
        """
        return self._convert(name, Category.INTEGER, convert.to_int)

    def get_int64(self, name: str) -> int:
        return self._convert(name, Category.INTEGER, convert.to_int64)

    def get_float32(self, name: str) -> np.float32:
        return self._convert(name, Category.FLOAT, convert.to_float32)

    def get_float64(self, name: str) -> float:
        return self._convert(name, Category.FLOAT, convert.to_float64)

    def get_string(self, name: str) -> str:
        return self._convert(name, Category.TEXT, convert.to_string)

    def get_time(self, name: str) -> datetime.datetime:
        """Temporal value; NULL yields ``ZERO_TIME``.
        """
        return self._convert(name, Category.TEMPORAL, convert.to_time)

    def get(self, name: str) -> Any:
        """Value converted by the first category accepting the column type.

        Columns whose type matches no category return the raw driver value.
        """
        i, col = self._column(name)
        categories = categories_of(col.type_name)
        for category, converter in convert.GENERIC_CONVERTERS:
            if category in categories:
                return converter(self._cell(i), col, self.options)
        return self._cell(i).value

    def to_map(self) -> dict[str, Any]:
        """Map every column name to ``get`` for the current row.

        On failure the raised error carries the entries built so far as
        ``err.partial``.
        """
        result: dict[str, Any] = {}
        for name in self._index:
            try:
                result[name] = self.get(name)
            except RowsetError as err:
                err.partial = result
                raise
        return result

    def get_struct(self, target: Any) -> None:
        """Fill the attributes of a record instance from the current row.

        Fields are matched to columns by tag, then by field name, then by the
        field name in underscore case. Unmatched fields are left as they are.
        """
        binding.bind(self, target)

    def to_frame(self) -> pd.DataFrame:
        """All rows as a DataFrame of ``get`` values.

        The cursor position is restored afterwards. Declared column types are
        kept in ``df.attrs['column_types']``.
        """
        saved = self._cursor
        try:
            records = [[self.get(name) for name in self._index] for _ in self.iterrows()]
        finally:
            self._cursor = saved
        df = pd.DataFrame.from_records(records, columns=list(self._index))
        df.attrs['column_types'] = {c.name: c.type_name for c in self._columns}
        return df


def load(stream: Any, options: RowsetOptions | dict | None = None, **kwargs: Any) -> ResultTable:
    """Buffer a result stream or executed DB-API cursor into a ResultTable.
    """
    return ResultTable.load(stream, options, **kwargs)
