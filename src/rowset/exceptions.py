"""
Result-set specific exception classes.
"""


class RowsetError(Exception):
    """Base class for all rowset errors.
    """


class UnknownColumnError(RowsetError, LookupError):
    """Column name is not present in the current result set.
    """

    def __init__(self, column: str) -> None:
        self.column = column
        super().__init__(f'no column named "{column}"')


class TypeConversionError(RowsetError):
    """Error converting a buffered cell to a Python value.

    Carries the column name, its declared database type and the requested
    target so callers can report the failed conversion.
    """

    def __init__(self, message: str, column: str | None = None,
                 type_name: str | None = None, target: str | None = None) -> None:
        self.column = column
        self.type_name = type_name
        self.target = target
        super().__init__(message)


class UnsupportedConversionError(TypeConversionError):
    """Declared database type is not accepted by the requested category.
    """


class ParseError(TypeConversionError, ValueError):
    """Byte or text cell did not parse as the requested literal.
    """


class UnconvertibleKindError(TypeConversionError):
    """Cell kind has no conversion rule for the requested type.
    """


class InvalidTargetError(RowsetError, TypeError):
    """Target passed to get_struct is not a record instance.
    """


class NoCurrentRowError(RowsetError, IndexError):
    """Accessor invoked while the cursor is not positioned on a row.
    """


class StreamFailure(RowsetError):
    """Driver result stream failed while the table was being loaded.

    The driver exception is chained as ``__cause__`` and its message is kept
    verbatim.
    """
