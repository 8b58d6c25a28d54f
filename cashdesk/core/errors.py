"""Error types raised by the shift manager, the transaction ledger and the category book."""


class LedgerError(Exception):
    """Base class for errors surfaced to API callers."""


class ValidationError(LedgerError):
    """Bad input, e.g. a non-positive amount or an unknown transaction type."""


class ReadOnlyError(ValidationError):
    """A mutation was attempted while viewing a closed (historical) shift."""


class ConflictError(LedgerError):
    """The single-open-shift or unique-category invariant would be violated."""


class NotFoundError(LedgerError):
    """The referenced shift, transaction or category does not exist."""


class SchemaFallbackError(Exception):
    """Raised by the store when the live schema lacks a column the caller asked to write.

    Only the ledger catches this, retrying with the degraded representation. It is not
    a LedgerError and never reaches an HTTP response.
    """

    def __init__(self, table: str, column: str) -> None:
        """Record which table/column is missing."""
        super().__init__(f"{table}.{column} is not available in this database")
        self.table = table
        self.column = column
