"""
Record binding: map result columns onto attributes of user records.

A record is a dataclass instance or an instance of a class with annotated
attributes. Each annotated field is bound through a closed table of field
kinds; fields of any other type are left untouched.

Column tags:

    @dataclass
    class User:
        name: str = column('user_name', default='')
        age: Annotated[int, Tag('user_age')] = 0
"""
import dataclasses
import datetime
import enum
import functools
import logging
import types
import typing
from dataclasses import dataclass
from typing import Any, Annotated, NewType

import numpy as np

from rowset.exceptions import InvalidTargetError
from rowset.utils import camel_to_underscore

logger = logging.getLogger(__name__)

TAG_KEY = 'column'

# Width markers for plain Python annotations
Int64 = NewType('Int64', int)
Float32 = NewType('Float32', float)
Float64 = NewType('Float64', float)


@dataclass(frozen=True)
class Tag:
    """Column name annotation for ``typing.Annotated`` fields.
    """
    name: str


def column(name: str, **kwargs: Any) -> Any:
    """Dataclass field bound to an explicitly named column.

    Accepts the same keyword arguments as ``dataclasses.field``.
    """
    metadata = dict(kwargs.pop('metadata', None) or {})
    metadata[TAG_KEY] = name
    return dataclasses.field(metadata=metadata, **kwargs)


class FieldKind(enum.Enum):
    """Field types the binder knows how to fill.
    """
    INT = 'int'
    INT64 = 'int64'
    FLOAT32 = 'float32'
    FLOAT64 = 'float64'
    STRING = 'string'
    TIME = 'time'


_KINDS: dict[Any, FieldKind] = {
    int: FieldKind.INT,
    Int64: FieldKind.INT64,
    np.int64: FieldKind.INT64,
    Float32: FieldKind.FLOAT32,
    np.float32: FieldKind.FLOAT32,
    float: FieldKind.FLOAT64,
    Float64: FieldKind.FLOAT64,
    np.float64: FieldKind.FLOAT64,
    str: FieldKind.STRING,
    datetime.datetime: FieldKind.TIME,
}

# Field kind -> ResultTable getter
GETTERS: dict[FieldKind, str] = {
    FieldKind.INT: 'get_int',
    FieldKind.INT64: 'get_int64',
    FieldKind.FLOAT32: 'get_float32',
    FieldKind.FLOAT64: 'get_float64',
    FieldKind.STRING: 'get_string',
    FieldKind.TIME: 'get_time',
}


@dataclass(frozen=True)
class RecordField:
    """Binding metadata for one record attribute.
    """
    name: str
    kind: FieldKind | None
    tag: str | None = None

    @property
    def keys(self) -> tuple[str, ...]:
        """Candidate column names in lookup order.
        """
        candidates = (self.tag, self.name, camel_to_underscore(self.name))
        return tuple(dict.fromkeys(k for k in candidates if k))


def _unwrap_optional(hint: Any) -> Any:
    origin = typing.get_origin(hint)
    if origin in {typing.Union, types.UnionType}:
        args = [a for a in typing.get_args(hint) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return hint


def field_kind(hint: Any) -> FieldKind | None:
    """Return the FieldKind for a type annotation, or None if unsupported.

    >>> field_kind(int)
    <FieldKind.INT: 'int'>
    >>> field_kind(float | None)
    <FieldKind.FLOAT64: 'float64'>
    >>> field_kind(bool) is None
    True
    """
    hint = _unwrap_optional(hint)
    try:
        return _KINDS.get(hint)
    except TypeError:
        # unhashable annotation
        return None


def _annotated_tag(hint: Any) -> str | None:
    for meta in getattr(hint, '__metadata__', ()):
        if isinstance(meta, Tag):
            return meta.name
    return None


def _hints(cls: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(cls, include_extras=True)
    except (NameError, TypeError) as err:
        logger.debug(f'Could not resolve annotations of {cls.__name__}: {err}')
        return {}


@functools.cache
def record_fields(cls: type) -> tuple[RecordField, ...]:
    """Collect binding metadata for a record class in declaration order.
    """
    hints = _hints(cls)

    if dataclasses.is_dataclass(cls):
        items = [(f.name, f.metadata.get(TAG_KEY)) for f in dataclasses.fields(cls)]
    else:
        items = [(name, None) for name, hint in hints.items()
                 if not name.startswith('_') and typing.get_origin(hint) is not typing.ClassVar]

    result = []
    for name, tag in items:
        hint = hints.get(name)
        if typing.get_origin(hint) is Annotated:
            tag = tag or _annotated_tag(hint)
            hint = typing.get_args(hint)[0]
        result.append(RecordField(name=name, kind=field_kind(hint), tag=tag))
    return tuple(result)


def is_record(target: Any) -> bool:
    """Return True if target is a record instance that get_struct can fill.
    """
    if isinstance(target, type):
        return False
    cls = type(target)
    if dataclasses.is_dataclass(cls):
        return True
    return bool(_hints(cls)) and hasattr(target, '__dict__')


def bind(table: Any, target: Any) -> None:
    """Assign the current row of ``table`` onto the record ``target``.

    Raises InvalidTargetError for non-record targets. Getter errors abort
    the binding; fields already assigned keep their new values.
    """
    if target is None:
        return
    if not is_record(target):
        raise InvalidTargetError(
            f'target must be a record instance, got {type(target).__name__}')

    for f in record_fields(type(target)):
        key = next((k for k in f.keys if table.has_column(k)), None)
        if key is None:
            logger.debug(f'No column for field {f.name} (tried {f.keys})')
            continue
        if f.kind is None:
            continue
        value = getattr(table, GETTERS[f.kind])(key)
        setattr(target, f.name, value)
