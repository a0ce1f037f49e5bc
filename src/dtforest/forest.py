# -*- coding: utf-8 -*-
"""
dtforest.forest
===============

Extremely randomized tree ensembles.

Every member is an ordinary :class:`~dtforest.tree.DecisionTreeClassifier` or
:class:`~dtforest.regressor.DecisionTreeRegressor` configured for ensembles:
random numeric thresholds, a random subset of ``selection_count`` candidate
features at every node, ``min_samples = stop_size`` and no pruning.  Member
seeds are all drawn from the forest's ``random_state`` before training
starts, so a forest trained on the worker pool is identical to one trained in
the calling thread.

Classification aggregates the members' hard votes and regression averages
their predictions.  Feature importance is measured per member and
accumulated into one :class:`~dtforest.stats.OnlineStatistics` per feature.
"""
from __future__ import annotations

import logging
import math

import numpy as np
from sklearn.base import BaseEstimator, ClassifierMixin, RegressorMixin
from sklearn.utils.validation import check_is_fitted

from .concurrency import parallel_run
from .dataset import DataPoint, DataSet
from .exceptions import ConfigurationError, InsufficientDataError
from .importance import MDI, ImportanceByUses, TreeFeatureImportance
from .regressor import DecisionTreeRegressor
from .stats import OnlineStatistics
from .stump import GAIN_METHODS
from .tree import DecisionTreeClassifier, _EncodedInputMixin, _seed_sequence

logger = logging.getLogger(__name__)


def default_selection_count(num_features: int) -> int:
    """``round(sqrt(p))`` candidate features, at least one."""
    return max(int(round(math.sqrt(num_features))), 1)


class _BaseERTrees(_EncodedInputMixin, BaseEstimator):
    """Member construction, parallel training and importance aggregation."""

    _default_stop_size = 2

    def __init__(self, *, forest_size: int = 100, selection_count: int | None = None,
                 stop_size: int | None = None, use_default_selection_count: bool = True,
                 use_default_stop_size: bool = True, max_depth: int | None = None,
                 gain_method: str = "gini", min_result_split_size: int = 1,
                 random_thresholds: bool = True, categorical_features=None,
                 feature_names=None, random_state=None, parallel: bool = False,
                 verbose: int = 0):
        self.forest_size = forest_size
        self.selection_count = selection_count
        self.stop_size = stop_size
        self.use_default_selection_count = use_default_selection_count
        self.use_default_stop_size = use_default_stop_size
        self.max_depth = max_depth
        self.gain_method = gain_method
        self.min_result_split_size = min_result_split_size
        self.random_thresholds = random_thresholds
        self.categorical_features = categorical_features
        self.feature_names = feature_names
        self.random_state = random_state
        self.parallel = parallel
        self.verbose = verbose

    @property
    def forest_size(self):
        return self._forest_size

    @forest_size.setter
    def forest_size(self, value):
        if not isinstance(value, (int, np.integer)) or value < 1:
            raise ConfigurationError(f"Forest size must be positive, not {value!r}")
        self._forest_size = value

    @property
    def selection_count(self):
        return self._selection_count

    @selection_count.setter
    def selection_count(self, value):
        if value is not None and (not isinstance(value, (int, np.integer)) or value < 1):
            raise ConfigurationError(f"selection_count must be None or a positive integer, not {value!r}")
        self._selection_count = value

    @property
    def stop_size(self):
        return self._stop_size

    @stop_size.setter
    def stop_size(self, value):
        if value is not None and (not isinstance(value, (int, np.integer)) or value < 1):
            raise ConfigurationError(f"stop_size must be None or a positive integer, not {value!r}")
        self._stop_size = value

    @property
    def max_depth(self):
        return self._max_depth

    @max_depth.setter
    def max_depth(self, value):
        if value is not None and (not isinstance(value, (int, np.integer)) or value < 0):
            raise ConfigurationError(f"The maximum depth must be a non-negative integer, not {value!r}")
        self._max_depth = value

    @property
    def min_result_split_size(self):
        return self._min_result_split_size

    @min_result_split_size.setter
    def min_result_split_size(self, value):
        if not isinstance(value, (int, np.integer)) or value < 1:
            raise ConfigurationError(f"min_result_split_size must be a positive integer, not {value!r}")
        self._min_result_split_size = value

    @property
    def gain_method(self):
        return self._gain_method

    @gain_method.setter
    def gain_method(self, value):
        if value not in GAIN_METHODS:
            raise ConfigurationError(f"gain_method must be one of {GAIN_METHODS}, not {value!r}")
        self._gain_method = value

    # ------------------------------------------------------------------
    # Member factory
    # ------------------------------------------------------------------
    def _default_selection_count(self, num_features: int) -> int | None:
        return default_selection_count(num_features)

    def _resolved_selection_count(self, num_features: int) -> int | None:
        if self.use_default_selection_count:
            return self._default_selection_count(num_features)
        if self.selection_count is None:
            return None
        return int(self.selection_count)

    def _resolved_stop_size(self) -> int:
        if self.use_default_stop_size:
            return self._default_stop_size
        if self.stop_size is None:
            raise ConfigurationError("stop_size is required when use_default_stop_size is False")
        return int(self.stop_size)

    def _member_kwargs(self, num_features: int, seed) -> dict:
        return dict(max_depth=self.max_depth, min_samples=self._resolved_stop_size(),
                    gain_method=self.gain_method,
                    min_result_split_size=self.min_result_split_size,
                    selection_count=self._resolved_selection_count(num_features),
                    random_thresholds=self.random_thresholds, random_state=seed,
                    parallel=False)

    def _make_member(self, num_features: int, seed):
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------
    def train(self, data: DataSet, options=None, parallel: bool | None = None):
        """Train ``forest_size`` members on a prepared :class:`~dtforest.dataset.DataSet`.

        Parameters
        ----------
        data : DataSet
        options : iterable of int, optional
            Features the members may split on; all features by default.
        parallel : bool, optional
            Overrides the ``parallel`` parameter.  Parallel training splits
            the member list into contiguous blocks over the worker pool.
        """
        self._check_task(data)
        stop_size = self._resolved_stop_size()
        if len(data) < stop_size:
            raise InsufficientDataError(
                f"There are only {len(data)} data points in the sample set, at least "
                f"{stop_size} are needed to make a forest")
        parallel = bool(self.parallel if parallel is None else parallel)
        n = int(self.forest_size)
        seeds = _seed_sequence(self.random_state).spawn(n)
        members = [self._make_member(data.num_features, seeds[i]) for i in range(n)]
        options = None if options is None else set(options)

        def train_range(start: int, end: int) -> None:
            for i in range(start, end):
                members[i].train(data, options=options, parallel=False)

        logger.debug("training %d trees (parallel=%s) on %d points", n, parallel, len(data))
        parallel_run(parallel, n, train_range)
        self.trees_ = members
        self.n_fallback_trees_ = sum(1 for m in members if m.used_fallback_)
        logger.log(self._summary_level, "forest of %d trees, mean depth %.2f, %d fell back to a "
                   "single stump", n, np.mean([m.tree_.depth for m in members]),
                   self.n_fallback_trees_)
        return self

    def _check_task(self, data: DataSet) -> None:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Feature importance
    # ------------------------------------------------------------------
    def _default_importance(self) -> TreeFeatureImportance:
        return ImportanceByUses()

    def feature_importance_stats(self, data: DataSet,
                                 importance: TreeFeatureImportance | None = None) -> list:
        """Per feature distribution of a per tree importance measure.

        Returns
        -------
        list of OnlineStatistics
            One entry per data-set feature (numeric features first), holding
            the mean and variance of the measure over the members.
        """
        check_is_fitted(self, "trees_")
        importance = importance or self._default_importance()
        stats = [OnlineStatistics() for _ in range(data.num_features)]
        for member in self.trees_:
            scores = importance.get_importance_stats(member.tree_, data)
            for f, s in zip(stats, scores):
                f.add(s)
        return stats

    def evaluate_feature_importance(self, X, y, sample_weight=None,
                                    importance: TreeFeatureImportance | None = None) -> list:
        """:meth:`feature_importance_stats` on raw arrays.

        The list follows the internal feature order; ``feature_order_[i]`` is
        the input column of entry ``i``.
        """
        check_is_fitted(self, "trees_")
        return self.feature_importance_stats(self._encode(X, targets=y, weights=sample_weight),
                                             importance)


class ERTreesClassifier(ClassifierMixin, _BaseERTrees):
    """
    Forest of extremely randomized classification trees.

    Parameters
    ----------
    forest_size : int, default=100
        Number of trees.
    selection_count : int or None, default=None
        Candidate features per node when ``use_default_selection_count`` is
        False; ``None`` examines every feature.
    stop_size : int or None, default=None
        Minimum number of points to create a node when
        ``use_default_stop_size`` is False.
    use_default_selection_count : bool, default=True
        Use ``max(round(sqrt(n_features)), 1)`` candidate features.
    use_default_stop_size : bool, default=True
        Use a stop size of 2.
    max_depth : int or None, default=None
    gain_method : {"gini", "entropy", "gain_ratio"}, default="gini"
    min_result_split_size : int, default=1
    random_thresholds : bool, default=True
    categorical_features, feature_names
        As for :class:`~dtforest.tree.DecisionTreeClassifier`.
    random_state : int or None, default=None
        Seed from which every member's seed is drawn.
    parallel : bool, default=False
        Train the members on the shared worker pool.
    verbose : int, default=0
        Log a training summary at INFO level instead of DEBUG.  Members
        always log at DEBUG.

    Attributes
    ----------
    trees_ : list of DecisionTreeClassifier
    classes_ : ndarray
    """

    def _make_member(self, num_features: int, seed) -> DecisionTreeClassifier:
        return DecisionTreeClassifier(pruning_method="none", test_proportion=0.0,
                                      **self._member_kwargs(num_features, seed))

    def _check_task(self, data: DataSet) -> None:
        if not data.is_classification:
            raise TypeError("ERTreesClassifier needs classification data")
        if getattr(self, "classes_", None) is None or len(self.classes_) != data.n_classes:
            self.classes_ = np.arange(data.n_classes)

    def _default_importance(self) -> TreeFeatureImportance:
        return MDI("gini")

    def fit(self, X, y, sample_weight=None):
        numeric, categorical, y, w = self._prepare_fit(X, y, sample_weight)
        self.classes_, y_idx = np.unique(y, return_inverse=True)
        data = DataSet(numeric, categorical, y_idx, w, n_categories=self.encoder_.n_categories,
                       n_classes=len(self.classes_))
        return self.train(data)

    def _votes(self, data: DataSet) -> np.ndarray:
        votes = np.zeros((len(data), len(self.classes_)), dtype=float)
        rows = np.arange(len(data))
        for member in self.trees_:
            winners = np.argmax(member.tree_.predict_many(data), axis=1)
            votes[rows, winners] += 1.0
        return votes

    def classify(self, point: DataPoint) -> np.ndarray:
        """Share of member votes per class for one encoded point."""
        check_is_fitted(self, "trees_")
        votes = np.zeros(len(self.classes_), dtype=float)
        for member in self.trees_:
            votes[int(np.argmax(member.tree_.classify(point)))] += 1.0
        return votes / votes.sum()

    def predict_proba(self, X):
        """Normalized histogram of the members' votes, shape (n_samples, n_classes)."""
        check_is_fitted(self, "trees_")
        votes = self._votes(self._encode(X))
        return votes / votes.sum(axis=1, keepdims=True)

    def predict(self, X):
        check_is_fitted(self, "trees_")
        return self.classes_[np.argmax(self._votes(self._encode(X)), axis=1)]


class ERTreesRegressor(RegressorMixin, _BaseERTrees):
    """
    Forest of extremely randomized regression trees.

    Takes the parameters of :class:`ERTreesClassifier`.  The default
    heuristics examine every feature at each node and use a stop size of 5;
    the prediction is the mean of the members' predictions.
    """

    _default_stop_size = 5

    def _default_selection_count(self, num_features: int) -> int | None:
        return max(int(num_features), 1)

    def _make_member(self, num_features: int, seed) -> DecisionTreeRegressor:
        return DecisionTreeRegressor(**self._member_kwargs(num_features, seed))

    def _check_task(self, data: DataSet) -> None:
        if data.is_classification:
            raise TypeError("ERTreesRegressor needs real valued targets")

    def fit(self, X, y, sample_weight=None):
        numeric, categorical, y, w = self._prepare_fit(X, y, sample_weight)
        data = DataSet(numeric, categorical, np.asarray(y, dtype=float), w,
                       n_categories=self.encoder_.n_categories)
        return self.train(data)

    def regress(self, point: DataPoint) -> float:
        check_is_fitted(self, "trees_")
        return float(np.mean([member.tree_.regress(point) for member in self.trees_]))

    def predict(self, X):
        check_is_fitted(self, "trees_")
        data = self._encode(X)
        return np.mean([member.tree_.predict_many(data)[:, 0] for member in self.trees_], axis=0)
