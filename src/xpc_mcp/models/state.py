"""Named views over the fixed-arity control, position, and data vectors.

The wire order of each dataclass's fields comes from the matching
:class:`~xpc_mcp.protocol.fields.Layout`, so the two can never drift apart.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import ClassVar, Sequence

from ..errors import ArgumentError
from ..protocol.fields import (
    CONTROLS_LAYOUT,
    DATA_ROW_LAYOUT,
    POSITION_LAYOUT,
    SENTINEL,
    Layout,
)


class _LayoutState:
    """Mixin mapping dataclass attributes to layout field order."""

    LAYOUT: ClassVar[Layout]

    def to_values(self) -> list[float]:
        return [getattr(self, name) for name in self.LAYOUT.names]

    @classmethod
    def from_values(cls, values: Sequence[float]):
        if len(values) > len(cls.LAYOUT):
            raise ArgumentError(
                f"{cls.LAYOUT.name} takes at most {len(cls.LAYOUT)} values, "
                f"got {len(values)}"
            )
        return cls(**dict(zip(cls.LAYOUT.names, values)))

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ControlState(_LayoutState):
    """Control surface settings for one aircraft.

    Axes left at -998 are not changed by the simulator. Gear is 0 (up)
    or 1 (down).
    """

    LAYOUT: ClassVar[Layout] = CONTROLS_LAYOUT

    lateral_stick: float = SENTINEL
    longitudinal_stick: float = SENTINEL
    rudder: float = SENTINEL
    throttle: float = SENTINEL
    gear: int = 0
    flaps: float = SENTINEL


@dataclass
class PositionState(_LayoutState):
    """Aircraft position and attitude. Degrees, and meters above MSL."""

    LAYOUT: ClassVar[Layout] = POSITION_LAYOUT

    latitude: float = SENTINEL
    longitude: float = SENTINEL
    altitude: float = SENTINEL
    roll: float = SENTINEL
    pitch: float = SENTINEL
    heading: float = SENTINEL
    gear: float = SENTINEL


@dataclass
class DataRow:
    """One row of a DATA message: a row index and eight values."""

    index: int
    values: list[float] = field(default_factory=lambda: [SENTINEL] * 8)

    def to_values(self) -> list[float]:
        return [self.index, *self.values]

    @classmethod
    def from_values(cls, values: Sequence[float]) -> DataRow:
        if len(values) != len(DATA_ROW_LAYOUT):
            raise ArgumentError(
                f"Rows must contain exactly {len(DATA_ROW_LAYOUT)} items, "
                f"got {len(values)}"
            )
        return cls(index=int(values[0]), values=[float(v) for v in values[1:]])

    def to_dict(self) -> dict:
        return {"index": self.index, "values": list(self.values)}
