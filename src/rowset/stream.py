"""
Result streams consumed by ResultTable.load.

A result stream exposes, once:
- ``columns``: ordered Column objects (or ``(name, type_name)`` pairs)
- iteration over raw rows (sequences aligned to ``columns``)
- ``close()``: release the underlying driver resources

CursorStream adapts an executed DB-API 2.0 cursor (PEP-249) to this
contract for psycopg and sqlite3.
"""
import logging
from collections.abc import Iterator, Sequence
from typing import Any, Protocol, runtime_checkable

from rowset.types import Column, resolve_type_name
from rowset.utils import get_dialect_name

logger = logging.getLogger(__name__)


@runtime_checkable
class ResultStream(Protocol):
    """Upstream contract for a single executed query result.
    """

    columns: Sequence[Column | tuple[str, str]]

    def __iter__(self) -> Iterator[Sequence[Any]]: ...

    def close(self) -> None: ...


def IterChunk(cursor: Any, size: int = 5000) -> Iterator[tuple]:
    """Iterate through cursor results in chunks.

    Driver errors propagate to the caller.
    """
    while True:
        chunked = cursor.fetchmany(size)
        if not chunked:
            break
        yield from chunked


class CursorStream:
    """Result stream over an executed DB-API cursor.

    Declared type names come from ``type_names`` when given, otherwise from
    the cursor description type codes for the cursor's dialect. SQLite
    reports no type codes, so its columns resolve to an empty type name
    unless overridden.
    """

    def __init__(self, cursor: Any, type_names: dict[str, str] | None = None,
                 chunk_size: int = 5000) -> None:
        self.cursor = cursor
        self.type_names = type_names or {}
        self.chunk_size = chunk_size
        self._columns: list[Column] | None = None

    @property
    def dialect(self) -> str:
        try:
            return get_dialect_name(self.cursor)
        except AttributeError as err:
            logger.debug(f'{err}, declared types limited to overrides')
            return ''

    @property
    def columns(self) -> list[Column]:
        """Columns from the cursor description.
        """
        if self._columns is None:
            self._columns = self._extract_columns()
        return self._columns

    def _extract_columns(self) -> list[Column]:
        if self.cursor.description is None:
            return []
        dialect = self.dialect
        result = []
        for desc in self.cursor.description:
            name = getattr(desc, 'name', None) or desc[0]
            if name in self.type_names:
                type_name = self.type_names[name]
            else:
                type_code = getattr(desc, 'type_code', None)
                if type_code is None and len(desc) > 1:
                    type_code = desc[1]
                type_name = resolve_type_name(dialect, type_code)
            result.append(Column(name, type_name))
        return result

    def __iter__(self) -> Iterator[tuple]:
        if self.cursor.description is None:
            return iter(())
        return IterChunk(self.cursor, self.chunk_size)

    def close(self) -> None:
        """Close cursor."""
        self.cursor.close()


def as_stream(source: Any, type_names: dict[str, str] | None = None) -> Any:
    """Return ``source`` as a result stream, wrapping DB-API cursors.
    """
    if hasattr(source, 'description') and hasattr(source, 'fetchmany'):
        return CursorStream(source, type_names=type_names)
    if isinstance(source, ResultStream):
        return source
    raise TypeError(f'{type(source).__name__} is neither a result stream nor a DB-API cursor')
