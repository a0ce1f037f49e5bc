import logging
from time import perf_counter

import numpy as np
from sklearn.datasets import load_iris
from sklearn.model_selection import train_test_split

from dtforest import DecisionTreeClassifier, ERTreesClassifier

logging.basicConfig(level=logging.INFO)

data = load_iris()
X = data.data.astype(object)
y = data.target
feats = list(data.feature_names)

# knock out some values to exercise fractional routing
rng = np.random.default_rng(42)
X[rng.uniform(size=X.shape) < 0.05] = None

X_tr, X_te, y_tr, y_te = train_test_split(X, y, test_size=0.3, random_state=42, stratify=y)

for method in ("none", "reduced_error", "error_based"):
    clf = DecisionTreeClassifier(min_samples=5, min_result_split_size=3, pruning_method=method,
                                 test_proportion=0.2, feature_names=feats, random_state=42)
    t0 = perf_counter(); clf.fit(X_tr, y_tr)
    print(f"{method:>13}: fit {perf_counter()-t0:.3f} s, nodes={clf.tree_.node_count}, "
          f"depth={clf.get_depth()}, acc={clf.score(X_te, y_te):.3f}")

forest = ERTreesClassifier(forest_size=100, feature_names=feats, random_state=42, parallel=True)
t0 = perf_counter(); forest.fit(X_tr, y_tr)
print(f"   ERTrees: fit {perf_counter()-t0:.3f} s, acc={forest.score(X_te, y_te):.3f}")

for i, stats in zip(forest.feature_order_, forest.evaluate_feature_importance(X_tr, y_tr)):
    print(f"{feats[i]:>20}: {stats.mean:.4f} +/- {stats.standard_deviation:.4f}")
