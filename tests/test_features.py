import numpy as np
import pytest

from helpers import make_draws
from lottery_ensemble.config import N_FEATURES
from lottery_ensemble.data import hit_column
from lottery_ensemble.errors import InvalidConfigurationError
from lottery_ensemble.features import (
    build_pooled_training_set,
    build_training_set,
    extract_features,
    feature_matrix,
    heuristic_score,
)

HIT = [5, 11, 12, 13, 14, 15]
MISS = [21, 22, 23, 24, 25, 26]


@pytest.fixture
def twenty_draws():
    # Number 5 comes out in draws 0, 3 and 9 (most recent first)
    return make_draws([HIT if i in (0, 3, 9) else MISS for i in range(20)])


def test_features_for_recent_number(twenty_draws):
    f = extract_features(5, twenty_draws, window_size=50, max_number=60)

    assert f.shape == (N_FEATURES,)
    assert f[0] == pytest.approx(3 / 50)
    assert f[1] == 0.0
    assert f[2] == pytest.approx(4.5 / 50)
    assert f[3] == 0.0
    assert f[4] == pytest.approx(13 / 20)
    assert f[5] == 1.0
    assert f[6] == pytest.approx(5 / 60)
    assert f[7] == 0.0
    assert f[8] == 1.0
    assert f[9] == pytest.approx(0.4)


def test_features_for_absent_number(twenty_draws):
    f = extract_features(40, twenty_draws, window_size=50, max_number=60)

    assert f[0] == 0.0
    assert f[1] == 1.0
    assert f[2] == 1.0
    assert f[3] == 1.0
    assert f[4] == 0.5
    assert f[5] == 0.0
    assert f[6] == pytest.approx(40 / 60)
    assert f[7] == pytest.approx(4 / 6)
    assert f[8] == 0.0
    assert f[9] == 0.0


def test_current_gap_counts_from_most_recent_hit():
    draws = make_draws([MISS, MISS, HIT, MISS, HIT] + [MISS] * 5)
    f = extract_features(5, draws, window_size=10)
    assert f[1] == pytest.approx(2 / 10)
    assert f[3] == pytest.approx(2 / 2)


def test_features_are_bounded(short_history):
    for number in (1, 17, 42, 60):
        f = extract_features(number, short_history)
        assert np.all(np.isfinite(f))
        bounded = np.delete(f, 3)
        assert np.all((bounded >= 0) & (bounded <= 1))
        assert f[3] >= 0


def test_empty_history_is_rejected():
    with pytest.raises(InvalidConfigurationError):
        extract_features(1, [])


def test_training_set_windows(short_history):
    X, y = build_training_set(short_history, 7, window_size=50, max_number=60)
    hits = hit_column(short_history, 7)

    assert X.shape == (len(short_history) - 51, N_FEATURES)
    assert y[0] == float(hits[49])
    assert y[-1] == float(hits[len(short_history) - 3])
    np.testing.assert_allclose(X[0], extract_features(7, short_history[50:], 50, 60))


def test_training_set_empty_when_history_is_short():
    draws = make_draws([HIT] * 30)
    X, y = build_training_set(draws, 5, window_size=50)
    assert X.shape == (0, N_FEATURES)
    assert len(y) == 0


def test_pooled_training_set_stacks_numbers(short_history):
    X, y = build_pooled_training_set(short_history, [1, 2, 3])
    single, _ = build_training_set(short_history, 1)
    assert len(X) == 3 * len(single)
    assert len(y) == len(X)


def test_feature_matrix_rows(short_history):
    M = feature_matrix(short_history, [3, 4])
    np.testing.assert_allclose(M[1], extract_features(4, short_history))


def test_heuristic_score_weights():
    f = np.zeros(N_FEATURES)
    f[0], f[3], f[4] = 0.2, 1.5, 0.5
    assert heuristic_score(f) == pytest.approx(0.4 * 1.5 + 0.3 * 0.2 + 0.3 * 0.5)
