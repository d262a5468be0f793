"""
Query execution into buffered result tables.

The connection is any DB-API 2.0 connection (psycopg, sqlite3). Connection
management, placeholders and transactions stay with the driver.
"""
import logging
import time
from functools import wraps
from typing import Any

from rowset.options import RowsetOptions, load_options
from rowset.table import ResultTable

logger = logging.getLogger(__name__)


def dumpsql(func):
    """Decorator for logging SQL queries and parameters."""
    @wraps(func)
    def wrapper(cn: Any, sql: str, *args: Any, **kwargs: Any):
        start = time.time()
        logger.debug(f'SQL:\n{sql}\nargs: {args}')
        try:
            return func(cn, sql, *args, **kwargs)
        except Exception:
            logger.error(f'Error with query:\nSQL:\n{sql}\nargs: {args}')
            raise
        finally:
            logger.debug(f'Query time: {time.time() - start:.4f}s')
    return wrapper


def _params(args: tuple) -> Any:
    """Driver parameters from positional args.

    A single list, tuple or dict argument is passed through as is.
    """
    if len(args) == 1 and isinstance(args[0], list | tuple | dict):
        return args[0]
    return args


@dumpsql
def select(cn: Any, sql: str, *args: Any, options: RowsetOptions | dict | None = None,
           **kwargs: Any) -> ResultTable:
    """Execute a query and buffer its full result.

    Keyword arguments other than ``options`` are option overrides, for
    example ``types={'id': 'BIGINT'}`` to declare column types that the
    driver does not report.
    """
    if 'types' in kwargs:
        kwargs['type_names'] = kwargs.pop('types')
    options = load_options(options, **kwargs)

    cursor = cn.cursor()
    try:
        if args:
            cursor.execute(sql, _params(args))
        else:
            cursor.execute(sql)
    except Exception:
        cursor.close()
        raise
    return ResultTable.load(cursor, options)
