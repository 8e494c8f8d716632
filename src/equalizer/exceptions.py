"""
Exception hierarchy for the equalizer.

Every error raised by the engine is terminal for the current reconciliation
call. Errors are split into caller-fixable ones (bad specs or data, mapped to
4xx by an API layer) and internal ones (implementation bugs, mapped to 5xx).
"""

from typing import Any


class EqualizerError(Exception):
    """Base exception for all equalizer errors."""

    caller_fixable = True


class InputError(EqualizerError):
    """Base exception for problems in the specs or data supplied by the caller."""

    pass


class InvalidSpecError(InputError):
    """Raised when a table spec payload is structurally invalid."""

    pass


class IncompatibleSchemasError(InputError):
    """Raised when the source and target specs are not equalizable."""

    def __init__(self, rule: str, message: str, source_value: Any = None, target_value: Any = None):
        """
        Args:
            rule: Name of the equalizability rule that failed
            message: Human readable description
            source_value: Conflicting value on the source spec
            target_value: Conflicting value on the target spec
        """
        super().__init__(message)
        self.rule = rule
        self.source_value = source_value
        self.target_value = target_value


class NoDataToReconcileError(InputError):
    """Raised when both the source and the target datasets are empty."""

    pass


class UnrecognizedFormatError(InputError):
    """Raised when a dataset is neither row-oriented nor columnar."""

    pass


class MalformedTableError(InputError):
    """Raised when a table's shape is inconsistent (ragged columns, bad rows)."""

    pass


class TypeMismatchError(InputError):
    """Raised when a value does not conform to its declared column type."""

    def __init__(self, message: str, row_index: int | None = None, column: str | None = None,
                 expected_type: str | None = None, value: Any = None):
        super().__init__(message)
        self.row_index = row_index
        self.column = column
        self.expected_type = expected_type
        self.value = value


class UnsupportedKeyValueTypeError(InputError):
    """Raised when a key column holds a value the row-key hasher cannot encode."""

    pass


class UnsupportedChangeControlTypeError(InputError):
    """Raised when the change control column type has no natural ordering."""

    pass


class MissingInputError(InputError):
    """Raised when a batch working directory or one of its input files does not exist."""

    pass


class InternalInvariantError(EqualizerError):
    """Raised when an internal consistency check fails. Indicates a bug."""

    caller_fixable = False


class EmptyDigestError(EqualizerError):
    """Raised when a row-key digest is requested before any value was hashed."""

    caller_fixable = False
