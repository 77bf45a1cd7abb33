import pytest

from thermoctl.sliding_tangent import SlidingTangent


def test_length_is_buffer_size():
    assert len(SlidingTangent(6)) == 6


def test_new_buffer_is_zero_filled():
    tangent = SlidingTangent(4)
    assert tangent.start_value() == 0.0
    assert tangent.slope(3.5) == 3.5


def test_init_fills_window():
    tangent = SlidingTangent(5)
    tangent.init(21.5)
    assert tangent.start_value() == 21.5
    assert tangent.average(21.5) == pytest.approx(21.5)


def test_average_over_full_window():
    tangent = SlidingTangent(3)
    tangent.average(3.0)
    tangent.average(6.0)
    assert tangent.average(9.0) == pytest.approx(6.0)


def test_start_value_is_oldest_in_window():
    tangent = SlidingTangent(3)
    readings = [1.0, 2.0, 4.0, 8.0, 16.0]
    for reading in readings:
        tangent.average(reading)
    assert tangent.start_value() == readings[-3]
    assert tangent.slope(readings[-1]) == readings[-1] - readings[-3]


def test_average_matches_mean_of_window():
    tangent = SlidingTangent(4)
    readings = [0.5, 1.5, 2.5, 3.5, 4.5, 5.5]
    for reading in readings:
        result = tangent.average(reading)
    assert result == pytest.approx(sum(readings[-4:]) / 4)


def test_size_one_tracks_last_reading():
    tangent = SlidingTangent(1)
    assert tangent.average(7.0) == 7.0
    assert tangent.start_value() == 7.0
    assert tangent.slope(7.0) == 0.0


@pytest.mark.parametrize("size", [0, -1])
def test_invalid_size_raises(size):
    with pytest.raises(ValueError):
        SlidingTangent(size)