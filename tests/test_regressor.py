import numpy as np
import pytest

from dtforest import MDI, DataPoint, DataSet, DecisionTreeRegressor, ImportanceByUses


def _step(n=100):
    x = np.linspace(0.0, 1.0, n)
    return x.reshape(-1, 1), np.where(x > 0.5, 1.0, 0.0)


def test_regressor_fits_a_step():
    X, y = _step()
    regr = DecisionTreeRegressor().fit(X, y)
    assert regr.get_depth() == 1
    assert np.allclose(regr.predict([[0.2], [0.8]]), [0.0, 1.0])
    assert regr.regress(DataPoint(np.array([0.7]), np.empty(0, dtype=np.int64))) == 1.0


def test_regressor_mixes_paths_for_missing_values():
    X, y = _step()
    regr = DecisionTreeRegressor().fit(X, y)
    assert regr.predict(np.array([[np.nan]], dtype=object))[0] == pytest.approx(0.5)


def test_regressor_follows_a_linear_trend():
    rng = np.random.default_rng(0)
    X = rng.uniform(0, 1, size=(300, 2))
    y = 4.0 * X[:, 0] + rng.normal(scale=0.05, size=300)
    regr = DecisionTreeRegressor(min_samples=4, min_result_split_size=2, random_state=0).fit(X, y)
    assert regr.score(X, y) > 0.95
    assert 0 in regr.tree_.features_used()


def test_regressor_categorical_feature():
    X = np.array([[c] for c in ['lo'] * 12 + ['hi'] * 12], dtype=object)
    y = np.array([1.0] * 12 + [5.0] * 12)
    regr = DecisionTreeRegressor(categorical_features=[0]).fit(X, y)
    assert np.allclose(regr.predict(np.array([['hi'], ['lo']], dtype=object)), [5.0, 1.0])


def test_importance_of_a_single_tree():
    X, y = _step()
    regr = DecisionTreeRegressor().fit(np.column_stack([X[:, 0], np.zeros(len(X))]), y)
    data = regr._encode(np.column_stack([X[:, 0], np.zeros(len(X))]), targets=y)
    mdi = MDI().get_importance_stats(regr.tree_, data)
    # all the variance is removed by the single split on feature 0
    assert mdi[0] == pytest.approx(np.var(y))
    assert mdi[1] == 0.0
    uses = ImportanceByUses().get_importance_stats(regr.tree_, data)
    assert list(uses) == [1.0, 0.0]


def test_verbose_regressor_logs_its_summary(caplog):
    X, y = _step()
    with caplog.at_level("INFO", logger="dtforest"):
        DecisionTreeRegressor(verbose=1).fit(X, y)
    messages = [r.getMessage() for r in caplog.records if r.name == "dtforest.regressor"]
    assert messages == ["regression tree: 1 nodes, depth 1, fallback=False"]


def test_regressor_rejects_classification_data():
    data = DataSet(np.zeros((12, 1)), np.empty((12, 0), dtype=np.int64), np.zeros(12), n_classes=1)
    with pytest.raises(TypeError):
        DecisionTreeRegressor().train(data)
