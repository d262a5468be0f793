import codecs
from dataclasses import dataclass, field, fields
from typing import Any

__all__ = [
    'RowsetOptions',
    'load_options',
]


@dataclass
class RowsetOptions:
    """Options

    - strict_time: raise ParseError instead of returning the zero timestamp
      when a temporal cell matches no known pattern (default: False)
    - type_names: declared type overrides by column name, for drivers that
      do not report declared types (sqlite3)
    - encoding: codec used to decode byte cells in get_string and get_time
      (default: utf-8)
    """
    strict_time: bool = False
    type_names: dict[str, str] | None = field(default=None)
    encoding: str = 'utf-8'

    def __post_init__(self):
        try:
            codecs.lookup(self.encoding)
        except LookupError as err:
            raise ValueError(f'unknown encoding: {self.encoding}') from err
        if self.type_names is not None:
            self.type_names = {str(k): str(v) for k, v in self.type_names.items()}


def load_options(options: RowsetOptions | dict | None = None, **kwargs: Any) -> RowsetOptions:
    """Build RowsetOptions from an instance, a dict, or keyword arguments.

    Keyword arguments override values from ``options``. Unknown keys raise
    TypeError.
    """
    if options is None and not kwargs:
        return RowsetOptions()
    if isinstance(options, RowsetOptions):
        if not kwargs:
            return options
        options = {f.name: getattr(options, f.name) for f in fields(options)}
    merged = dict(options or {})
    merged.update(kwargs)
    return RowsetOptions(**merged)
