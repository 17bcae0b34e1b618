import pytest

from upmotion.core.features import FeatureVector, estimate_step_frequency, extract_features
from upmotion.core.sample_buffer import JoinedSample, Vec3


def _sample(ts: int, accel: Vec3, gyro: Vec3 = Vec3(0.0, 0.0, 0.0)) -> JoinedSample:
    return JoinedSample(accel=accel, gyro=gyro, timestamp_ms=ts)


def test_empty_window_yields_zero_vector() -> None:
    assert extract_features([]) == FeatureVector()


def test_magnitude_and_direction_features() -> None:
    samples = [
        _sample(0, Vec3(3.0, 4.0, 0.0), Vec3(0.0, 0.0, 1.0)),
        _sample(100, Vec3(0.0, 0.0, -5.0), Vec3(0.0, 3.0, 0.0)),
    ]

    features = extract_features(samples)

    assert features.mean_accel_mag == pytest.approx(5.0)
    assert features.accel_variance == pytest.approx(0.0)
    assert features.mean_gyro_mag == pytest.approx(2.0)
    assert features.gyro_variance == pytest.approx(1.0)
    assert features.vertical_movement == pytest.approx(2.5)
    assert features.horizontal_movement == pytest.approx(2.5)
    assert features.movement_intensity == pytest.approx(0.5)
    assert features.step_frequency_hz == 0.0


def test_walking_window_features(walking_samples) -> None:
    features = extract_features(walking_samples)

    assert features.step_frequency_hz == pytest.approx(3 / 1.9)
    assert 0.3 < features.accel_variance < 0.8
    assert features.gyro_variance == pytest.approx(0.0, abs=1e-12)
    assert features.horizontal_movement == pytest.approx(0.72 ** 0.5)
    assert features.vertical_movement == pytest.approx(9.59)


def test_step_frequency_needs_three_samples() -> None:
    samples = [_sample(0, Vec3(0.0, 0.0, 1.0)), _sample(500, Vec3(0.0, 0.0, 2.0))]

    assert estimate_step_frequency(samples) == 0.0


def test_step_frequency_ignores_boundary_samples() -> None:
    samples = [
        _sample(0, Vec3(0.0, 0.0, 5.0)),
        _sample(500, Vec3(0.0, 0.0, 1.0)),
        _sample(1000, Vec3(0.0, 0.0, 5.0)),
    ]

    assert estimate_step_frequency(samples) == 0.0


def test_step_frequency_requires_threshold_and_strict_peak() -> None:
    below_threshold = [
        _sample(0, Vec3(0.0, 0.0, 0.1)),
        _sample(500, Vec3(0.0, 0.0, 0.4)),
        _sample(1000, Vec3(0.0, 0.0, 0.1)),
    ]
    plateau = [
        _sample(0, Vec3(0.0, 0.0, 1.0)),
        _sample(250, Vec3(0.0, 0.0, 2.0)),
        _sample(500, Vec3(0.0, 0.0, 2.0)),
        _sample(1000, Vec3(0.0, 0.0, 1.0)),
    ]
    single_peak = [
        _sample(0, Vec3(0.0, 0.0, 1.0)),
        _sample(1000, Vec3(0.0, 0.0, 2.0)),
        _sample(2000, Vec3(0.0, 0.0, 1.0)),
    ]

    assert estimate_step_frequency(below_threshold) == 0.0
    assert estimate_step_frequency(plateau) == 0.0
    assert estimate_step_frequency(single_peak) == pytest.approx(0.5)


def test_step_frequency_zero_when_span_is_zero() -> None:
    samples = [
        _sample(1000, Vec3(0.0, 0.0, 1.0)),
        _sample(1000, Vec3(0.0, 0.0, 2.0)),
        _sample(1000, Vec3(0.0, 0.0, 1.0)),
    ]

    assert estimate_step_frequency(samples) == 0.0


def test_extraction_is_deterministic(walking_samples) -> None:
    assert extract_features(walking_samples) == extract_features(list(walking_samples))


def test_feature_vector_as_dict() -> None:
    data = FeatureVector(step_frequency_hz=1.5).as_dict()

    assert data["step_frequency_hz"] == 1.5
    assert set(data) == {
        "mean_accel_mag",
        "accel_variance",
        "mean_gyro_mag",
        "gyro_variance",
        "step_frequency_hz",
        "movement_intensity",
        "vertical_movement",
        "horizontal_movement",
    }
