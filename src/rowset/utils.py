"""Low-level helpers with no internal dependencies.

These utilities work with plain strings and raw DBAPI objects and import
nothing from other rowset modules.
"""
import logging
from typing import Any

logger = logging.getLogger(__name__)


def _is_upper(ch: str) -> bool:
    return 'A' <= ch <= 'Z'


def camel_to_underscore(name: str) -> str:
    """Convert a camel-case identifier to underscore case.

    An uppercase letter starts a new word when the next character is not
    uppercase or the previous character is not uppercase.

    >>> camel_to_underscore('IDCard')
    'id_card'
    >>> camel_to_underscore('MediaID')
    'media_id'
    >>> camel_to_underscore('ABc')
    'a_bc'
    >>> camel_to_underscore('aABC')
    'a_abc'
    >>> camel_to_underscore('AA')
    'aa'
    >>> camel_to_underscore('media_id')
    'media_id'
    """
    out: list[str] = []
    last = len(name) - 1
    for i, ch in enumerate(name):
        if not _is_upper(ch):
            out.append(ch)
            continue
        hump = (i < last and not _is_upper(name[i + 1])) or \
               (i > 0 and not _is_upper(name[i - 1]))
        if hump and out and out[-1] != '_':
            out.append('_')
        out.append(ch.lower())
    return ''.join(out).strip('_')


def get_dialect_name(obj: Any) -> str:
    """Get dialect name for a raw DBAPI connection or cursor.

    An explicit string ``dialect`` attribute wins; otherwise the driver is
    recognized from the object's module.
    """
    dialect = getattr(obj, 'dialect', None)
    if isinstance(dialect, str):
        return dialect.lower()

    module = type(obj).__module__
    if module.startswith('psycopg'):
        return 'postgresql'
    if module.startswith('sqlite3'):
        return 'sqlite'

    raise AttributeError(f'Cannot determine dialect for {type(obj)}')
