import pytest

from masjid_engine.exceptions import ConfigurationError
from masjid_engine.services.qibla import (
    KAABA_LATITUDE,
    KAABA_LONGITUDE,
    cardinal_direction,
    format_distance,
    qibla_bearing,
    qibla_info,
)


def test_due_south_and_due_north_of_the_kaaba():
    assert qibla_bearing(0.0, KAABA_LONGITUDE) == pytest.approx(0.0, abs=1e-6)
    assert qibla_bearing(60.0, KAABA_LONGITUDE) == pytest.approx(180.0, abs=1e-6)


def test_sacramento_faces_north_north_east():
    info = qibla_info(38.5816, -121.4944)

    assert 0 < info.bearing < 45
    assert info.cardinal in ("N", "NNE", "NE")
    assert 11500 < info.distance_km < 14500
    assert info.distance_label.endswith(" miles")


def test_at_the_kaaba_distance_is_zero():
    info = qibla_info(KAABA_LATITUDE, KAABA_LONGITUDE)

    assert info.distance_km == 0.0
    assert info.distance_label == "0 ft"


@pytest.mark.parametrize(
    "bearing, expected",
    [(0, "N"), (11, "N"), (12, "NNE"), (90, "E"), (180, "S"), (270, "W"), (350, "N")],
)
def test_cardinal_direction(bearing, expected):
    assert cardinal_direction(bearing) == expected


def test_format_distance():
    assert format_distance(1.0) == "3281 ft"
    assert format_distance(13000) == "8,078 miles"


def test_invalid_coordinates_rejected():
    with pytest.raises(ConfigurationError):
        qibla_info(91.0, 0.0)
