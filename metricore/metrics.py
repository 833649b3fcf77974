"""Metric definitions, identifiers and the metric registry.

A metric has a unique name, a description, a type of measured value and a
unit. Each registered metric receives a unique :class:`RawMetricId`;
a :class:`TypedMetricId` also records the type of the measured values.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, replace
from typing import Any, Protocol

from metricore.measurement import MeasurementType


@dataclass(frozen=True)
class Metric:
    """The complete definition of a metric."""

    name: str
    description: str
    value_type: MeasurementType
    unit: Any


class _HasUntypedId(Protocol):
    def untyped_id(self) -> RawMetricId: ...


@dataclass(frozen=True, order=True)
class RawMetricId:
    """A metric id without information about the type of the values."""

    id: int

    def untyped_id(self) -> RawMetricId:
        """Returns this id."""
        return self

    def as_u64(self) -> int:
        """Returns the numeric id."""
        return self.id

    @classmethod
    def from_u64(cls, value: int) -> RawMetricId:
        """Builds an id from its numeric value."""
        return cls(value)


@dataclass(frozen=True)
class TypedMetricId:
    """A metric id that also records the type of the measured values."""

    raw: RawMetricId
    value_type: MeasurementType

    def untyped_id(self) -> RawMetricId:
        """Returns the underlying raw id."""
        return self.raw

    @classmethod
    def try_from(
        cls,
        untyped: RawMetricId,
        value_type: MeasurementType,
        registry: MetricRegistry,
    ) -> TypedMetricId:
        """Checks that the registered metric has ``value_type`` and returns a typed id.

        Raises :class:`MetricTypeError` if the types differ, and ``KeyError``
        if the metric is not in the registry.
        """
        metric = registry.with_id(untyped)
        if metric is None:
            raise KeyError(f"the metric {untyped.id} does not exist in the registry")
        if metric.value_type != value_type:
            raise MetricTypeError(expected=value_type, actual=metric.value_type)
        return cls(untyped, value_type)


class MetricTypeError(TypeError):
    """Raised when the expected value type does not match the metric's type."""

    def __init__(self, expected: MeasurementType, actual: MeasurementType) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Incompatible metric type: expected {expected} but was {actual}")


class MetricCreationError(ValueError):
    """Raised when a metric with the same name has already been registered."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"This metric has already been registered: {key}")


class MetricRegistry:
    """A registry of metrics, indexed by id and by name."""

    def __init__(self) -> None:
        self._by_id: dict[RawMetricId, Metric] = {}
        self._by_name: dict[str, RawMetricId] = {}

    def __len__(self) -> int:
        return len(self._by_id)

    def __iter__(self) -> Iterator[tuple[RawMetricId, Metric]]:
        return iter(list(self._by_id.items()))

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def with_id(self, metric_id: _HasUntypedId) -> Metric | None:
        """Finds the metric that has the given (raw or typed) id."""
        return self._by_id.get(metric_id.untyped_id())

    def with_name(self, name: str) -> Metric | None:
        """Finds the metric that has the given name."""
        metric_id = self._by_name.get(name)
        return None if metric_id is None else self._by_id.get(metric_id)

    def register(self, metric: Metric) -> RawMetricId:
        """Registers a new metric and returns its new id.

        Raises :class:`MetricCreationError` if the name is already taken.
        """
        if metric.name in self._by_name:
            raise MetricCreationError(metric.name)
        return self._insert(metric)

    def register_infallible(self, metric: Metric, dedup_suffix: str) -> RawMetricId:
        """Registers a metric, renaming it if its name is already taken."""
        renamed = replace(metric, name=self._deduplicated_name(metric.name, dedup_suffix))
        return self.register(renamed)

    def extend_infallible(
        self, metrics: Iterable[Metric], dedup_suffix: str
    ) -> list[RawMetricId]:
        """Registers several metrics, renaming those whose names are taken."""
        return [self.register_infallible(metric, dedup_suffix) for metric in metrics]

    def _insert(self, metric: Metric) -> RawMetricId:
        metric_id = RawMetricId(len(self._by_name))
        self._by_name[metric.name] = metric_id
        self._by_id[metric_id] = metric
        return metric_id

    def _deduplicated_name(self, requested_name: str, resolution_suffix: str) -> str:
        if requested_name not in self._by_name:
            return requested_name
        name = f"{requested_name}_{resolution_suffix}"
        dedup = 0
        while name in self._by_name:
            dedup += 1
            name = f"{requested_name}_{resolution_suffix}__{dedup}"
        return name