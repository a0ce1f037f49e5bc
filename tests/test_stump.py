import numpy as np
import pytest

from dtforest import ConfigurationError, DataPoint, DataSet
from dtforest.dataset import FeatureEncoder, resolve_categorical_mask
from dtforest.stump import DecisionStump


def _seven_three_with_missing():
    """Ten known rows split 7/3 on feature 0 plus one row missing it."""
    numeric = np.array([[0.0], [1.0], [2.0], [3.0], [4.0], [5.0], [6.0],
                        [7.0], [8.0], [9.0], [np.nan]])
    targets = np.array([0] * 7 + [1] * 3 + [0])
    return DataSet(numeric, np.empty((11, 0), dtype=np.int64), targets, n_classes=2)


def test_missing_row_is_split_by_path_fractions():
    data = _seven_three_with_missing()
    paths = np.array([0] * 7 + [1] * 3 + [-1])
    fractions = data.path_fractions(paths, 2)
    assert np.allclose(fractions, [0.7, 0.3])
    left, right = data.partition(paths, fractions)
    assert len(left) == 8 and len(right) == 4
    assert left.weights[-1] == pytest.approx(0.7)
    assert right.weights[-1] == pytest.approx(0.3)
    assert left.total_weight() + right.total_weight() == pytest.approx(data.total_weight())


def test_stump_routes_missing_rows_fractionally():
    data = _seven_three_with_missing()
    stump = DecisionStump(min_result_split_size=1)
    splits = stump.train(data, {0})
    assert stump.splitting_attribute == 0
    assert 6.0 < stump.threshold < 7.0
    assert np.allclose(stump.path_ratio, [0.7, 0.3])
    assert [s.total_weight() for s in splits] == pytest.approx([7.7, 3.3])
    point = DataPoint(np.array([np.nan]), np.empty(0, dtype=np.int64))
    assert stump.which_path(point) == -1
    assert np.allclose(stump.classify(point), 0.7 * stump.results[0] + 0.3 * stump.results[1])


def test_split_needing_larger_paths_is_inadmissible():
    numeric = np.arange(6, dtype=float).reshape(-1, 1)
    data = DataSet(numeric, np.empty((6, 0), dtype=np.int64), [0, 0, 0, 1, 1, 1], n_classes=2)
    stump = DecisionStump(min_result_split_size=4)
    assert stump.train(data, {0}) is None
    assert stump.num_paths == 1
    assert np.allclose(stump.results[0], [0.5, 0.5])
    assert DecisionStump(min_result_split_size=3).train(data, {0}) is not None


def test_categorical_split_has_one_path_per_category():
    categorical = np.array([[0]] * 4 + [[1]] * 4 + [[2]] * 4 + [[-1]] * 2)
    targets = np.array([0] * 4 + [1] * 4 + [0] * 4 + [1] * 2)
    data = DataSet(np.empty((14, 0)), categorical, targets, n_categories=[3], n_classes=2)
    stump = DecisionStump(gain_method="entropy", min_result_split_size=2)
    splits = stump.train(data, {0})
    assert stump.num_paths == 3
    assert np.allclose(stump.path_ratio, [1 / 3, 1 / 3, 1 / 3])
    assert [len(s) for s in splits] == [6, 6, 6]


def test_gain_prefers_the_informative_feature():
    rng = np.random.default_rng(0)
    numeric = rng.uniform(size=(200, 3))
    targets = (numeric[:, 2] > 0.3).astype(int)
    data = DataSet(numeric, np.empty((200, 0), dtype=np.int64), targets, n_classes=2)
    for method in ("gini", "entropy", "gain_ratio"):
        stump = DecisionStump(gain_method=method)
        stump.train(data, {0, 1, 2})
        assert stump.splitting_attribute == 2


def test_selection_count_limits_candidates():
    rng = np.random.default_rng(0)
    numeric = rng.uniform(size=(100, 5))
    targets = (numeric[:, 0] > 0.5).astype(int)
    data = DataSet(numeric, np.empty((100, 0), dtype=np.int64), targets, n_classes=2)
    chosen = set()
    for seed in range(20):
        stump = DecisionStump(selection_count=1, rng=np.random.default_rng(seed))
        stump.train(data, range(5))
        chosen.add(stump.splitting_attribute)
    assert len(chosen) > 1


def test_parallel_search_matches_sequential_search():
    rng = np.random.default_rng(3)
    numeric = rng.uniform(size=(150, 6))
    categorical = rng.integers(0, 3, size=(150, 1))
    targets = ((numeric[:, 4] > 0.6) | (categorical[:, 0] == 2)).astype(int)
    data = DataSet(numeric, categorical, targets, n_categories=[3], n_classes=2)
    seq = DecisionStump(selection_count=5, random_thresholds=True, rng=np.random.default_rng(9))
    par = DecisionStump(selection_count=5, random_thresholds=True, rng=np.random.default_rng(9))
    seq_splits = seq.train(data, range(7))
    par_splits = par.train(data, range(7), parallel=True)
    assert par.splitting_attribute == seq.splitting_attribute
    assert par.threshold == seq.threshold
    assert [len(s) for s in par_splits] == [len(s) for s in seq_splits]
    assert np.allclose(par.results, seq.results)


def test_random_threshold_lies_inside_the_observed_range():
    numeric = np.linspace(2.0, 3.0, 50).reshape(-1, 1)
    targets = np.arange(50) % 2
    data = DataSet(numeric, np.empty((50, 0), dtype=np.int64), targets, n_classes=2)
    stump = DecisionStump(min_result_split_size=1, random_thresholds=True,
                          rng=np.random.default_rng(4))
    if stump.train(data, {0}) is not None:
        assert 2.0 <= stump.threshold <= 3.0


def test_regression_stump_splits_on_variance():
    numeric = np.linspace(0, 1, 40).reshape(-1, 1)
    targets = np.where(numeric[:, 0] > 0.5, 10.0, 0.0)
    data = DataSet(numeric, np.empty((40, 0), dtype=np.int64), targets)
    stump = DecisionStump(min_result_split_size=5)
    stump.train(data, {0})
    assert 0.45 < stump.threshold < 0.55
    assert stump.regress(DataPoint(np.array([0.9]), np.empty(0, dtype=np.int64))) == 10.0
    assert np.allclose(stump.regress_many(data), targets)


def test_clone_is_independent():
    data = _seven_three_with_missing()
    stump = DecisionStump(min_result_split_size=1)
    stump.train(data, {0})
    copy = stump.clone()
    copy.threshold = -1.0
    assert stump.threshold != -1.0


def test_stump_rejects_bad_configuration():
    with pytest.raises(ConfigurationError):
        DecisionStump(gain_method="misclassification")
    with pytest.raises(ConfigurationError):
        DecisionStump(min_result_split_size=0)


def test_random_split_proportions():
    data = _seven_three_with_missing()
    train, test = data.random_split(np.random.default_rng(0), 0.8, 0.2)
    assert len(train) + len(test) == len(data)
    assert len(test) == 2
    with pytest.raises(ValueError):
        data.random_split(np.random.default_rng(0), 0.8, 0.5)


def test_feature_encoder_puts_numeric_columns_first():
    X = np.array([['a', 1.0, None], ['b', 2.0, 'x'], ['a', np.nan, 'y']], dtype=object)
    mask = resolve_categorical_mask(3, ['c0', 'c2'], ['c0', 'c1', 'c2'])
    encoder = FeatureEncoder(mask).fit(X)
    numeric, categorical = encoder.transform(X)
    assert list(encoder.feature_order) == [1, 0, 2]
    assert encoder.n_categories == (2, 2)
    assert np.isnan(numeric[2, 0])
    assert categorical.tolist() == [[0, -1], [1, 0], [0, 1]]
    with pytest.raises(ValueError):
        resolve_categorical_mask(3, ['c0'])
