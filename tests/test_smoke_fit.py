import numpy as np
from dtforest import (DecisionTreeClassifier, DecisionTreeRegressor, ERTreesClassifier,
                      ERTreesRegressor)


def _mixed_dataset(n=40):
    rng = np.random.default_rng(0)
    num = rng.uniform(0, 10, size=n)
    cat = np.where(num > 5, 'B', 'A')
    X = np.empty((n, 2), dtype=object)
    X[:, 0] = num
    X[:, 1] = cat
    return X, (num > 5).astype(int)


def test_classifier_smoke():
    X, y = _mixed_dataset()
    clf = DecisionTreeClassifier(categorical_features=[1], feature_names=['num', 'cat'],
                                 min_samples=2, min_result_split_size=1, random_state=0)
    clf.fit(X, y)
    assert clf.predict(X).shape == (len(X),)


def test_regressor_smoke():
    X, y = _mixed_dataset()
    regr = DecisionTreeRegressor(categorical_features=['cat'], feature_names=['num', 'cat'],
                                 min_samples=2, min_result_split_size=1, random_state=0)
    regr.fit(X, y.astype(float) * 2.0)
    assert regr.predict(X).shape == (len(X),)


def test_forest_smoke():
    X, y = _mixed_dataset()
    clf = ERTreesClassifier(forest_size=5, categorical_features=[1], random_state=0).fit(X, y)
    assert len(clf.trees_) == 5
    assert set(clf.predict(X)) <= {0, 1}
    regr = ERTreesRegressor(forest_size=5, categorical_features=[1], random_state=0)
    regr.fit(X, y.astype(float))
    assert regr.predict(X).shape == (len(X),)
