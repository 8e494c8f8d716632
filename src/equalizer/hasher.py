"""
Deterministic row-key hashing.

Key tuples are bucketed by a 64-bit digest before rows are matched. Each
value is encoded with a one-byte kind tag followed by a canonical payload and
folded into a running SHA-1 digest, so structurally equal tuples hash
identically in every process, and values of different kinds never share an
encoding (a null never collides with any string, 1 never collides with 1.0
or True).
"""

import hashlib
import struct
from typing import Any

from equalizer.exceptions import EmptyDigestError, UnsupportedKeyValueTypeError
from equalizer.specs import ColumnarTable, TableSpec, ValueKind, value_kind

TAG_NULL = b"\x00"
TAG_BOOL = b"\x01"
TAG_INT = b"\x02"
TAG_FLOAT = b"\x03"
TAG_STR = b"\x04"


class RowKeyHasher:
    """
    Accumulates key components into a 64-bit row-key digest.

    One instance is reused across rows; call reset() before each key tuple.

    Example:
        >>> hasher = RowKeyHasher()
        >>> hasher.reset()
        >>> hasher.update(42)
        >>> hasher.update("2020-01-01")
        >>> key_hash = hasher.digest()
    """

    def __init__(self):
        self._buffer = bytearray()
        self._state = hashlib.sha1()
        self._count = 0

    def reset(self) -> None:
        """Clear the accumulated state."""
        self._buffer.clear()
        self._state = hashlib.sha1()
        self._count = 0

    def update(self, value: Any) -> None:
        """
        Append one key component.

        Args:
            value: None, bool, int, float or str

        Raises:
            UnsupportedKeyValueTypeError: For any other value kind
        """
        self._buffer.clear()
        self._encode(value)
        self._state.update(self._buffer)
        self._count += 1

    def digest(self) -> int:
        """
        Return the low 64 bits of the accumulated digest.

        Raises:
            EmptyDigestError: If update() was not called since the last reset()
        """
        if self._count == 0:
            raise EmptyDigestError("row key is empty: no values were hashed")
        return int.from_bytes(self._state.digest()[-8:], "big")

    def _encode(self, value: Any) -> None:
        kind = value_kind(value)
        buffer = self._buffer
        if kind is ValueKind.NULL:
            buffer += TAG_NULL
        elif kind is ValueKind.BOOL:
            buffer += TAG_BOOL
            buffer += b"\x01" if value else b"\x00"
        elif kind is ValueKind.INT:
            payload = value.to_bytes((value.bit_length() + 8) // 8, "big", signed=True)
            buffer += TAG_INT
            buffer += struct.pack(">I", len(payload))
            buffer += payload
        elif kind is ValueKind.FLOAT:
            # -0.0 == 0.0, so both must hash alike
            if value == 0.0:
                value = 0.0
            buffer += TAG_FLOAT
            buffer += struct.pack(">d", value)
        elif kind is ValueKind.STR:
            payload = value.encode("utf-8")
            buffer += TAG_STR
            buffer += struct.pack(">Q", len(payload))
            buffer += payload
        else:
            raise UnsupportedKeyValueTypeError(
                f"unsupported key value type: {type(value).__name__} ({value!r})"
            )


def compute_row_key_hash(
    hasher: RowKeyHasher,
    spec: TableSpec,
    table: ColumnarTable,
    row_index: int,
) -> int:
    """
    Hash the key tuple of one row.

    Args:
        hasher: Reusable hasher (reset here)
        spec: Spec whose key_columns define the tuple order
        table: Canonical columnar table
        row_index: Row to hash

    Returns:
        64-bit row-key hash
    """
    hasher.reset()
    for key_column in spec.key_columns:
        hasher.update(spec.get_column_value(key_column, row_index, table))
    return hasher.digest()
