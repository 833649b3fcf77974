"""Measurement points, values, timestamps and buffers.

Each step of the measurement pipeline reads, produces or modifies timeseries
data points, each represented as a :class:`MeasurementPoint`. Points are
usually handled through a :class:`MeasurementBuffer` (transforms and outputs)
or a :class:`MeasurementAccumulator` (sources).
"""

from __future__ import annotations

import math
import time
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Union

_NANOS_PER_SEC = 1_000_000_000
_U64_MAX = 2**64 - 1

AttributeValue = Union[float, int, bool, str]


@dataclass(frozen=True, order=True)
class Timestamp:
    """A point in time, stored as nanoseconds since the Unix epoch."""

    nanos_since_epoch: int

    @classmethod
    def now(cls) -> Timestamp:
        """Returns the current system time."""
        return cls(time.time_ns())

    @classmethod
    def from_unix(cls, secs: int, nanos: int = 0) -> Timestamp:
        """Builds a timestamp from seconds and nanoseconds since the Unix epoch.

        Nanoseconds beyond one second carry over into the seconds.
        """
        if secs < 0 or nanos < 0:
            raise ValueError("seconds and nanoseconds since the epoch must not be negative")
        if not 0 <= nanos < 2**32:
            raise ValueError(f"nanoseconds out of range: {nanos}")
        return cls(secs * _NANOS_PER_SEC + nanos)

    def to_unix(self) -> tuple[int, int]:
        """Returns ``(seconds, subsecond_nanoseconds)`` since the Unix epoch."""
        if self.nanos_since_epoch < 0:
            raise ValueError("timestamp is earlier than the Unix epoch")
        return divmod(self.nanos_since_epoch, _NANOS_PER_SEC)


class MeasurementType(Enum):
    """The possible types of measured values."""

    F64 = "F64"
    U64 = "U64"

    def __str__(self) -> str:
        return self.value


def _check_u64(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"expected an unsigned integer, got {type(value).__name__}")
    if not 0 <= value <= _U64_MAX:
        raise ValueError(f"value out of range for an unsigned 64-bit integer: {value}")
    return value


@dataclass(frozen=True)
class MeasurementValue:
    """A measured value together with its measurement type."""

    measurement_type: MeasurementType
    value: float | int

    def __post_init__(self) -> None:
        if self.measurement_type is MeasurementType.U64:
            _check_u64(self.value)
        elif isinstance(self.value, bool) or not isinstance(self.value, (int, float)):
            raise TypeError(f"expected a float, got {type(self.value).__name__}")
        else:
            object.__setattr__(self, "value", float(self.value))

    @classmethod
    def u64(cls, value: int) -> MeasurementValue:
        """Wraps an unsigned 64-bit integer value."""
        return cls(MeasurementType.U64, value)

    @classmethod
    def f64(cls, value: float) -> MeasurementValue:
        """Wraps a floating-point value."""
        return cls(MeasurementType.F64, value)


def _check_attribute(value: Any) -> AttributeValue:
    if isinstance(value, (bool, str, float)):
        return value
    if isinstance(value, int):
        return _check_u64(value)
    raise TypeError(f"unsupported attribute type: {type(value).__name__}")


def _format_float(x: float) -> str:
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "inf" if x > 0 else "-inf"
    text = format(Decimal(repr(x)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_attribute(value: AttributeValue) -> str:
    """Formats an attribute value for display.

    Booleans are lower case, floats never use an exponent and drop a
    trailing ``.0``.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_float(value)
    raise TypeError(f"unsupported attribute type: {type(value).__name__}")


@dataclass
class MeasurementPoint:
    """A value that has been measured at a given point in time.

    ``resource`` is the object being measured and ``consumer`` what consumes
    it. Attributes are kept in insertion order; keys are not deduplicated.
    """

    timestamp: Timestamp
    metric: Any
    resource: Any
    consumer: Any
    value: MeasurementValue
    _attributes: list[tuple[str, AttributeValue]] = field(
        default_factory=list, init=False, repr=False
    )

    def __post_init__(self) -> None:
        if not isinstance(self.value, MeasurementValue):
            raise TypeError("value must be a MeasurementValue")

    def attributes(self) -> Iterator[tuple[str, AttributeValue]]:
        """Iterates on the ``(key, value)`` attributes of the point."""
        return iter(list(self._attributes))

    def attributes_keys(self) -> Iterator[str]:
        """Iterates on the attribute keys of the point."""
        return (key for key, _ in list(self._attributes))

    def attributes_len(self) -> int:
        """Returns the number of attributes attached to the point."""
        return len(self._attributes)

    def with_attr(self, key: str, value: AttributeValue) -> MeasurementPoint:
        """Attaches an attribute and returns the point."""
        if not isinstance(key, str):
            raise TypeError("attribute keys must be strings")
        self._attributes.append((key, _check_attribute(value)))
        return self

    def with_attrs(
        self,
        attributes: Mapping[str, AttributeValue] | Iterable[tuple[str, AttributeValue]],
    ) -> MeasurementPoint:
        """Attaches several attributes, from a mapping or ``(key, value)`` pairs."""
        pairs = attributes.items() if isinstance(attributes, Mapping) else attributes
        for key, value in pairs:
            self.with_attr(key, value)
        return self

    def __copy__(self) -> MeasurementPoint:
        clone = MeasurementPoint(
            self.timestamp, self.metric, self.resource, self.consumer, self.value
        )
        clone._attributes = list(self._attributes)
        return clone


class MeasurementBuffer:
    """A modifiable collection of measurement points."""

    def __init__(self, points: Iterable[MeasurementPoint] = ()) -> None:
        self._points: list[MeasurementPoint] = list(points)

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[MeasurementPoint]:
        return iter(self._points)

    def __repr__(self) -> str:
        return f"MeasurementBuffer(len={len(self._points)})"

    def __copy__(self) -> MeasurementBuffer:
        return MeasurementBuffer(self._points)

    def push(self, point: MeasurementPoint) -> None:
        """Adds a point; points are not deduplicated."""
        if not isinstance(point, MeasurementPoint):
            raise TypeError("only MeasurementPoint objects can be pushed")
        self._points.append(point)

    def clear(self) -> None:
        """Removes all the points."""
        self._points.clear()

    def as_accumulator(self) -> MeasurementAccumulator:
        """Returns an accumulator that pushes into this buffer."""
        return MeasurementAccumulator(self)


class MeasurementAccumulator:
    """A push-only view of a :class:`MeasurementBuffer`."""

    __slots__ = ("_buffer",)

    def __init__(self, buffer: MeasurementBuffer) -> None:
        self._buffer = buffer

    def push(self, point: MeasurementPoint) -> None:
        """Adds a point; points are not deduplicated."""
        self._buffer.push(point)