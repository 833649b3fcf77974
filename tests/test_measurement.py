import copy
import time

import pytest

from metricore.measurement import (
    MeasurementAccumulator,
    MeasurementBuffer,
    MeasurementPoint,
    MeasurementType,
    MeasurementValue,
    Timestamp,
    format_attribute,
)


def make_point(value=None):
    return MeasurementPoint(
        Timestamp.from_unix(10, 5),
        metric=0,
        resource="cpu0",
        consumer="machine",
        value=value or MeasurementValue.u64(1234),
    )


def test_timestamp_round_trip():
    ts = Timestamp.from_unix(1_700_000_000, 123_456_789)
    assert ts.to_unix() == (1_700_000_000, 123_456_789)
    assert Timestamp.from_unix(*ts.to_unix()) == ts


def test_timestamp_nanos_carry():
    assert Timestamp.from_unix(1, 1_500_000_000).to_unix() == (2, 500_000_000)


def test_timestamp_negative_rejected():
    with pytest.raises(ValueError):
        Timestamp.from_unix(-1, 0)
    with pytest.raises(ValueError):
        Timestamp(-5).to_unix()


def test_timestamp_now_and_order():
    before = time.time_ns()
    ts = Timestamp.now()
    after = time.time_ns()
    assert before <= ts.nanos_since_epoch <= after
    assert Timestamp.from_unix(1, 0) < Timestamp.from_unix(1, 1)


def test_measurement_values():
    u = MeasurementValue.u64(42)
    f = MeasurementValue.f64(3)
    assert u.measurement_type is MeasurementType.U64
    assert u.value == 42
    assert f.measurement_type is MeasurementType.F64
    assert isinstance(f.value, float) and f.value == 3.0
    assert str(MeasurementType.F64) == "F64"


@pytest.mark.parametrize("bad", [-1, 2**64])
def test_u64_range(bad):
    with pytest.raises(ValueError):
        MeasurementValue.u64(bad)


def test_value_type_errors():
    with pytest.raises(TypeError):
        MeasurementValue.u64(1.5)
    with pytest.raises(TypeError):
        MeasurementValue.f64("x")
    assert MeasurementValue.u64(2**64 - 1).value == 2**64 - 1


def test_format_attribute_basic():
    assert format_attribute(True) == "true"
    assert format_attribute(False) == "false"
    assert format_attribute(1.0) == "1"
    assert format_attribute(1.5) == "1.5"
    assert format_attribute(7) == "7"
    assert format_attribute("abc") == "abc"


@pytest.mark.parametrize("x", [1e20, 1e-7, 123.456, -0.25, 987654321.978465132])
def test_format_float_no_exponent(x):
    text = format_attribute(x)
    assert "e" not in text.lower()
    assert float(text) == x


def test_format_integral_float_matches_int():
    assert format_attribute(1e20) == str(int(1e20))


def test_format_attribute_rejects_other_types():
    with pytest.raises(TypeError):
        format_attribute([1])


def test_point_attributes():
    p = make_point().with_attr("a", 1).with_attr("b", "x")
    assert p.attributes_len() == 2
    assert list(p.attributes()) == [("a", 1), ("b", "x")]
    assert list(p.attributes_keys()) == ["a", "b"]


def test_point_with_attrs_mapping_and_pairs():
    p = make_point().with_attrs({"k": True}).with_attrs([("f", 0.5), ("k", 3)])
    assert list(p.attributes()) == [("k", True), ("f", 0.5), ("k", 3)]
    assert p.attributes_len() == 3


def test_point_invalid_attribute():
    with pytest.raises(TypeError):
        make_point().with_attr("bad", None)
    with pytest.raises(ValueError):
        make_point().with_attr("neg", -3)


def test_point_requires_wrapped_value():
    with pytest.raises(TypeError):
        MeasurementPoint(Timestamp.now(), 0, "r", "c", 5)


def test_point_copy_is_independent():
    p = make_point().with_attr("a", 1)
    clone = copy.copy(p)
    clone.with_attr("b", 2)
    assert p.attributes_len() == 1
    assert clone.attributes_len() == 2
    assert clone.value == p.value


def test_buffer_push_iter_clear():
    buf = MeasurementBuffer()
    assert len(buf) == 0
    p1, p2 = make_point(), make_point(MeasurementValue.f64(2.5))
    buf.push(p1)
    buf.push(p1)
    buf.push(p2)
    assert len(buf) == 3
    assert list(buf) == [p1, p1, p2]
    buf.clear()
    assert len(buf) == 0 and list(buf) == []


def test_buffer_from_points_and_modify():
    buf = MeasurementBuffer([make_point()])
    for point in buf:
        point.value = MeasurementValue.u64(7)
    assert [p.value.value for p in buf] == [7]
    assert repr(buf) == "MeasurementBuffer(len=1)"


def test_buffer_rejects_non_points():
    with pytest.raises(TypeError):
        MeasurementBuffer().push("not a point")


def test_accumulator_pushes_into_buffer():
    buf = MeasurementBuffer()
    acc = buf.as_accumulator()
    assert isinstance(acc, MeasurementAccumulator)
    p = make_point()
    acc.push(p)
    acc.push(p)
    assert list(buf) == [p, p]
    assert not hasattr(acc, "clear")


def test_buffer_copy_is_independent():
    buf = MeasurementBuffer([make_point()])
    clone = copy.copy(buf)
    clone.push(make_point())
    assert len(buf) == 1
    assert len(clone) == 2