"""Decision tree regressor built from variance-reducing decision stumps.

Shares the construction machinery of :mod:`dtforest.tree`; regression trees
are grown but never post pruned.
"""
from __future__ import annotations

import logging

import numpy as np
from sklearn.base import RegressorMixin
from sklearn.utils.validation import check_is_fitted

from .dataset import DataPoint, DataSet
from .tree import _BaseDecisionTree, _seed_sequence

logger = logging.getLogger(__name__)


class DecisionTreeRegressor(RegressorMixin, _BaseDecisionTree):
    r"""
    DecisionTreeRegressor(max_depth=None, min_samples=10, min_result_split_size=10,
                          selection_count=None, random_thresholds=False,
                          max_numeric_thresholds=None, categorical_features=None,
                          feature_names=None, random_state=None, parallel=False, verbose=0)

    A regression tree with a scikit-learn style API.

    - **Split criterion**: weighted SSE reduction, scaled by the fraction of
      the node's weight with a known value for the candidate feature.
    - **Missing values**: rows missing the split feature follow every path
      with their weight scaled by the path ratios; predictions mix the paths
      the same way.
    - **Leaves**: a node predicts the weighted mean target of the path a
      point follows through its own stump.

    Parameters
    ----------
    max_depth : int or None, default=None
        Maximum node depth; ``None`` is unbounded.
    min_samples : int, default=10
        Minimum number of points needed to create a node.
    min_result_split_size : int, default=10
        Minimum number of points on every path of an admissible split.
    selection_count : int or None, default=None
        Random candidate features per node (all when ``None``).
    random_thresholds : bool, default=False
        Random numeric thresholds (extremely randomized trees).
    random_state : int, optional
        Seed for the stumps' randomness.
    parallel : bool, default=False
        Use the shared worker pool while growing the tree.
    verbose : int, default=0
        Log a training summary at INFO level instead of DEBUG.

    Attributes
    ----------
    tree_ : Tree
        The fitted tree.
    used_fallback_ : bool
        Whether the tree degenerated to a single stump.
    """

    def fit(self, X, y, sample_weight=None):
        numeric, categorical, y, w = self._prepare_fit(X, y, sample_weight)
        data = DataSet(numeric, categorical, np.asarray(y, dtype=float), w,
                       n_categories=self.encoder_.n_categories)
        return self.train(data)

    def train(self, data: DataSet, options=None, parallel: bool | None = None):
        """Fit on a prepared regression :class:`~dtforest.dataset.DataSet`."""
        if data.is_classification:
            raise TypeError("DecisionTreeRegressor needs real valued targets")
        self._check_train_size(data)
        options = set(range(data.num_features)) if options is None else set(options)
        parallel = bool(self.parallel if parallel is None else parallel)
        tree, fallback = self._train_tree(data, data, options, parallel,
                                          _seed_sequence(self.random_state))
        self.tree_ = tree
        self.used_fallback_ = fallback
        logger.log(self._summary_level, "regression tree: %d nodes, depth %d, fallback=%s",
                   tree.node_count, tree.depth, fallback)
        return self

    def regress(self, point: DataPoint) -> float:
        check_is_fitted(self, "tree_")
        return self.tree_.regress(point)

    def predict(self, X):
        check_is_fitted(self, "tree_")
        return self.tree_.predict_many(self._encode(X))[:, 0]
