"""Table-driven fixed-width payload layouts.

A :class:`Layout` is an ordered list of :class:`Field` entries, each with a
``struct`` format code and a default used when the caller supplies fewer
values than the layout holds. All multi-byte fields are little-endian.

Control vector (21 bytes)::

    +---------+---------+--------+----------+------+-------+
    | lat stk | lon stk | rudder | throttle | gear | flaps |
    | f32     | f32     | f32    | f32      | u8   | f32   |
    +---------+---------+--------+----------+------+-------+

Position vector (28 bytes): seven f32 values.

Data row (36 bytes): one i32 row selector followed by eight f32 values.
"""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass
from typing import Sequence

from ..errors import ArgumentError

SENTINEL = -998.0  # "leave this field unchanged"

FLOAT32 = "f"
UINT8 = "B"
INT32 = "i"


@dataclass(frozen=True)
class Field:
    """One slot in a fixed-width layout."""

    name: str
    fmt: str = FLOAT32
    default: float | None = SENTINEL

    def coerce(self, value: float) -> float | int:
        """Convert a caller value to what ``struct`` expects for this field."""
        if self.fmt == FLOAT32:
            return float(value)
        if isinstance(value, float) and not math.isfinite(value):
            raise ArgumentError(f"{self.name} must be finite, got {value}")
        # Narrowing truncates toward zero
        number = int(value)
        if self.fmt == UINT8:
            return number & 0xFF
        return number


class Layout:
    """An ordered, fixed-size group of fields packed back to back."""

    def __init__(self, name: str, *fields: Field) -> None:
        self.name = name
        self.fields = fields
        self._struct = struct.Struct("<" + "".join(f.fmt for f in fields))

    @property
    def size(self) -> int:
        return self._struct.size

    @property
    def names(self) -> list[str]:
        return [f.name for f in self.fields]

    def __len__(self) -> int:
        return len(self.fields)

    def pack(self, values: Sequence[float]) -> bytes:
        """Pack ``values`` into bytes, filling unsupplied trailing fields.

        Raises:
            ArgumentError: If too many values are given, a required field is
                missing, or a value does not fit its field.
        """
        if len(values) > len(self.fields):
            raise ArgumentError(
                f"{self.name} takes at most {len(self.fields)} values, "
                f"got {len(values)}"
            )

        args = []
        for i, field in enumerate(self.fields):
            if i < len(values):
                args.append(field.coerce(values[i]))
            elif field.default is None:
                raise ArgumentError(f"{self.name} is missing field '{field.name}'")
            else:
                args.append(field.coerce(field.default))

        try:
            return self._struct.pack(*args)
        except (struct.error, OverflowError) as e:
            raise ArgumentError(f"{self.name} value out of range: {e}") from e

    def unpack(self, data: bytes) -> tuple:
        """Unpack exactly :attr:`size` bytes into a tuple of field values."""
        return self._struct.unpack(data)


CONTROLS_LAYOUT = Layout(
    "controls",
    Field("lateral_stick"),
    Field("longitudinal_stick"),
    Field("rudder"),
    Field("throttle"),
    Field("gear", UINT8, default=0),
    Field("flaps"),
)

POSITION_LAYOUT = Layout(
    "position",
    Field("latitude"),
    Field("longitude"),
    Field("altitude"),
    Field("roll"),
    Field("pitch"),
    Field("heading"),
    Field("gear"),
)

DATA_ROW_LAYOUT = Layout(
    "data row",
    Field("index", INT32, default=None),
    *(Field(f"value{i}", default=None) for i in range(1, 9)),
)
