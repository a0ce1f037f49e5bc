# -*- coding: utf-8 -*-
"""
dtforest.tree
=============

Decision trees grown from :class:`~dtforest.stump.DecisionStump` splits.

The tree is stored as an arena of :class:`TreeNode` entries addressed by
integer ids.  Every node keeps its parent id and the path it hangs from, so
the pruners can disable a path or graft a descendant in place of a node by
rewiring ids instead of rebuilding objects.

Construction is recursive and can fan out over a thread pool.  At depth ``d``
with ``c`` logical cores the node itself searches its split in parallel while
``2**d < 2c`` and hands its children to the shared pool once
``2**(d+1) >= 2c``, so split level parallelism is used near the root and node
level parallelism deeper down.  All frames of one build share a
:class:`~dtforest.concurrency.ModifiableCountDownLatch`; every child result is
written into the slot of its path number, which keeps the resulting tree
independent of the order in which subtrees finish.

The module also provides :class:`DecisionTreeClassifier`, a scikit-learn style
estimator with optional reduced-error or error-based post pruning on a held
out part of the training data.
"""
from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from typing import Iterator

import numpy as np
from sklearn.base import BaseEstimator, ClassifierMixin
from sklearn.utils.validation import check_is_fitted

from .concurrency import (ModifiableCountDownLatch, child_parallel, get_executor,
                          me_parallel)
from .dataset import DataPoint, DataSet, FeatureEncoder, resolve_categorical_mask
from .exceptions import (ConcurrencyInterruptedError, ConfigurationError, FitFailure,
                         InsufficientDataError, ModelMismatchError)
from .pruning import PruningMethod, prune
from .stump import GAIN_METHODS, DecisionStump

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Node arena
# -----------------------------------------------------------------------------
@dataclass
class TreeNode:
    """One entry of the :class:`Tree` arena.

    A node whose child slots are all ``None`` is a leaf and predicts with its
    own stump alone.
    """
    stump: DecisionStump
    depth: int
    n_samples: int = 0
    parent: int | None = None
    path: int = -1
    children: list = field(default_factory=list)

    @property
    def is_leaf(self) -> bool:
        return all(c is None for c in self.children)


class Tree:
    """Fitted decision tree stored as a node arena."""

    def __init__(self, nodes: list[TreeNode], root: int = 0):
        self.nodes = nodes
        self.root = root

    @classmethod
    def single(cls, stump: DecisionStump, n_samples: int = 0) -> "Tree":
        return cls([TreeNode(stump, 0, n_samples, children=[None] * stump.num_paths)])

    @classmethod
    def _from_growing(cls, root: "_GrowingNode") -> "Tree":
        nodes: list[TreeNode] = []
        stack = [(root, None, -1)]
        while stack:
            g, parent, path = stack.pop()
            nid = len(nodes)
            nodes.append(TreeNode(g.stump, g.depth, g.n_samples, parent, path,
                                  [None] * len(g.paths)))
            if parent is not None:
                nodes[parent].children[path] = nid
            for p in range(len(g.paths) - 1, -1, -1):
                if g.paths[p] is not None:
                    stack.append((g.paths[p], nid, p))
        return cls(nodes, 0)

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------
    def stump(self, node: int) -> DecisionStump:
        return self.nodes[node].stump

    def children_count(self, node: int) -> int:
        return len(self.nodes[node].children)

    def get_child(self, node: int, path: int) -> int | None:
        return self.nodes[node].children[path]

    def is_leaf(self, node: int) -> bool:
        return self.nodes[node].is_leaf

    def is_path_disabled(self, node: int, path: int) -> bool:
        return self.nodes[node].children[path] is None

    def disable_path(self, node: int, path: int) -> None:
        self.nodes[node].children[path] = None

    def set_path(self, node: int, path: int, child: int) -> None:
        """Hang ``child`` (any node of the tree) from ``path`` of ``node``."""
        self.nodes[node].children[path] = child
        self.nodes[child].parent = node
        self.nodes[child].path = path

    def iter_nodes(self, start: int | None = None) -> Iterator[int]:
        """Ids of the nodes reachable from ``start`` (default root), in pre-order."""
        stack = [self.root if start is None else start]
        while stack:
            nid = stack.pop()
            yield nid
            stack.extend(c for c in reversed(self.nodes[nid].children) if c is not None)

    @property
    def node_count(self) -> int:
        return sum(1 for _ in self.iter_nodes())

    @property
    def leaf_count(self) -> int:
        return sum(1 for n in self.iter_nodes() if self.nodes[n].is_leaf)

    def depth_of(self, node: int) -> int:
        """Number of split levels below and including ``node``."""
        n = self.nodes[node]
        if n.stump.num_paths <= 1:
            return 0
        below = [self.depth_of(c) for c in n.children if c is not None]
        return 1 + max(below, default=0)

    @property
    def depth(self) -> int:
        return self.depth_of(self.root)

    @property
    def max_node_depth(self) -> int:
        return max(self.nodes[n].depth for n in self.iter_nodes())

    def features_used(self) -> set[int]:
        return {self.nodes[n].stump.splitting_attribute for n in self.iter_nodes()
                if self.nodes[n].stump.splitting_attribute is not None}

    def compact(self) -> None:
        """Drop unreachable nodes and renumber the rest in pre-order."""
        order = list(self.iter_nodes())
        new_id = {old: i for i, old in enumerate(order)}
        nodes = []
        for old in order:
            n = self.nodes[old]
            parent = None if old == self.root else new_id[n.parent]
            depth = 0 if parent is None else nodes[parent].depth + 1
            nodes.append(TreeNode(n.stump, depth, n.n_samples, parent,
                                  -1 if parent is None else n.path,
                                  [None if c is None else new_id[c] for c in n.children]))
        self.nodes = nodes
        self.root = 0

    # ------------------------------------------------------------------
    # Prediction
    # ------------------------------------------------------------------
    @property
    def num_numeric(self) -> int:
        return self.nodes[self.root].stump.num_numeric

    @property
    def num_categorical(self) -> int:
        return self.nodes[self.root].stump.num_categorical

    def check_shape(self, num_numeric: int, num_categorical: int) -> None:
        if num_numeric != self.num_numeric or num_categorical != self.num_categorical:
            raise ModelMismatchError(
                f"Tree expected {self.num_numeric} numeric and {self.num_categorical} categorical "
                f"features, instead received data with {num_numeric} and {num_categorical} "
                f"features respectively")

    def _predict_point(self, node: int, point: DataPoint) -> np.ndarray:
        n = self.nodes[node]
        if n.is_leaf:
            return n.stump.classify(point)
        path = n.stump.which_path(point)
        if path >= 0:
            child = n.children[path]
            return n.stump.results[path] if child is None else self._predict_point(child, point)
        # missing split value: mix every path by its training weight
        out = np.zeros_like(n.stump.results[0])
        for p, child in enumerate(n.children):
            ratio = n.stump.path_ratio[p]
            if ratio <= 0:
                continue
            out += ratio * (n.stump.results[p] if child is None else self._predict_point(child, point))
        return out

    def classify(self, point: DataPoint, start: int | None = None) -> np.ndarray:
        """Class probabilities of ``point``."""
        self.check_shape(point.num_numeric, point.num_categorical)
        return self._predict_point(self.root if start is None else start, point)

    def regress(self, point: DataPoint, start: int | None = None) -> float:
        self.check_shape(point.num_numeric, point.num_categorical)
        return float(self._predict_point(self.root if start is None else start, point)[0])

    def predict_many(self, data: DataSet, start: int | None = None) -> np.ndarray:
        """Vectorized prediction of every row of ``data`` from node ``start``.

        Returns class probabilities of shape (n, n_classes), or shape (n, 1)
        holding the predicted value for regression trees.
        """
        self.check_shape(data.num_numeric, data.num_categorical)
        return self._predict_rows(self.root if start is None else start, data)

    def _predict_rows(self, node: int, data: DataSet) -> np.ndarray:
        n = self.nodes[node]
        stump = n.stump
        if n.is_leaf or len(data) == 0:
            return stump.classify_many(data)
        paths = stump.which_paths(data)
        out = np.zeros((len(data), stump.results.shape[1]), dtype=float)
        missing = np.flatnonzero(paths < 0)
        miss_data = data.subset(missing) if missing.size else None
        for p, child in enumerate(n.children):
            rows = np.flatnonzero(paths == p)
            if rows.size:
                out[rows] = (stump.results[p] if child is None
                             else self._predict_rows(child, data.subset(rows)))
            ratio = stump.path_ratio[p]
            if miss_data is not None and ratio > 0:
                out[missing] += ratio * (stump.results[p] if child is None
                                         else self._predict_rows(child, miss_data))
        return out


class _GrowingNode:
    """Node under construction; child slots are filled by (possibly concurrent) subtasks."""
    __slots__ = ("stump", "depth", "n_samples", "paths")

    def __init__(self, stump: DecisionStump, depth: int, n_samples: int, num_paths: int):
        self.stump = stump
        self.depth = depth
        self.n_samples = n_samples
        self.paths: list = [None] * num_paths


def _seed_sequence(random_state) -> np.random.SeedSequence:
    if isinstance(random_state, np.random.SeedSequence):
        # fresh copy, spawning mutates the sequence and refits must repeat
        return np.random.SeedSequence(random_state.entropy, spawn_key=random_state.spawn_key,
                                      pool_size=random_state.pool_size)
    if isinstance(random_state, np.random.Generator):
        return np.random.SeedSequence(int(random_state.integers(2**63)))
    return np.random.SeedSequence(random_state)


# -----------------------------------------------------------------------------
# Estimators
# -----------------------------------------------------------------------------
class _EncodedInputMixin:
    """Turns user arrays into :class:`DataSet` objects with a fitted :class:`FeatureEncoder`.

    Expects ``feature_names`` and ``categorical_features`` attributes.
    """

    def _prepare_fit(self, X, y, sample_weight):
        X = np.asarray(X, dtype=object)
        if X.ndim != 2:
            raise ValueError("X must be a 2-D array")
        y = np.asarray(y)
        if y.shape[0] != X.shape[0]:
            raise ValueError("X and y must have the same number of rows")
        if sample_weight is None:
            w = np.ones(len(y), dtype=float)
        else:
            w = np.asarray(sample_weight, dtype=float)
            if len(w) != len(y):
                raise ValueError("sample_weight must have the same length as y")
        n_features = X.shape[1]
        if self.feature_names is not None and len(self.feature_names) != n_features:
            raise ValueError("feature_names length must match X.shape[1]")
        is_cat = resolve_categorical_mask(n_features, self.categorical_features, self.feature_names)
        self.encoder_ = FeatureEncoder(is_cat).fit(X)
        self.n_features_in_ = n_features
        numeric, categorical = self.encoder_.transform(X)
        return numeric, categorical, y, w

    def _encode(self, X, targets=None, weights=None) -> DataSet:
        X = np.asarray(X, dtype=object)
        if X.ndim == 1:
            X = X.reshape(1, -1)
        if X.shape[1] != self.n_features_in_:
            raise ModelMismatchError(
                f"Model expected {self.n_features_in_} features, instead received data with "
                f"{X.shape[1]} features")
        numeric, categorical = self.encoder_.transform(X)
        n_classes = self._n_outputs_classes
        if targets is None:
            targets = np.zeros(X.shape[0])
        elif n_classes is not None:
            targets = self._class_indices(targets)
        return DataSet(numeric, categorical, targets, weights,
                       n_categories=self.encoder_.n_categories, n_classes=n_classes)

    def _class_indices(self, y) -> np.ndarray:
        y = np.asarray(y)
        idx = np.clip(np.searchsorted(self.classes_, y), 0, len(self.classes_) - 1)
        if not np.all(self.classes_[idx] == y):
            raise ValueError("y contains labels that were not seen during fit")
        return idx

    @property
    def _n_outputs_classes(self):
        classes = getattr(self, "classes_", None)
        return None if classes is None else len(classes)

    @property
    def _summary_level(self) -> int:
        # training summaries are promoted to INFO when verbose
        return logging.INFO if self.verbose else logging.DEBUG

    @property
    def feature_order_(self) -> np.ndarray:
        """Input column of each internal feature index (numeric columns first)."""
        check_is_fitted(self, "encoder_")
        return self.encoder_.feature_order


class _BaseDecisionTree(_EncodedInputMixin, BaseEstimator):
    """Shared configuration, tree construction and prediction plumbing."""

    def __init__(self, *, max_depth: int | None = None, min_samples: int = 10,
                 gain_method: str = "gini", min_result_split_size: int = 10,
                 selection_count: int | None = None, random_thresholds: bool = False,
                 max_numeric_thresholds: int | None = None, categorical_features=None,
                 feature_names=None, random_state=None, parallel: bool = False,
                 verbose: int = 0):
        self.max_depth = max_depth
        self.min_samples = min_samples
        self.gain_method = gain_method
        self.min_result_split_size = min_result_split_size
        self.selection_count = selection_count
        self.random_thresholds = random_thresholds
        self.max_numeric_thresholds = max_numeric_thresholds
        self.categorical_features = categorical_features
        self.feature_names = feature_names
        self.random_state = random_state
        self.parallel = parallel
        self.verbose = verbose

    # ------------------------------------------------------------------
    # Validated hyperparameters
    # ------------------------------------------------------------------
    @property
    def max_depth(self):
        return self._max_depth

    @max_depth.setter
    def max_depth(self, value):
        if value is not None and (not isinstance(value, (int, np.integer)) or value < 0):
            raise ConfigurationError(f"The maximum depth must be a non-negative integer, not {value!r}")
        self._max_depth = value

    @property
    def min_samples(self):
        return self._min_samples

    @min_samples.setter
    def min_samples(self, value):
        if not isinstance(value, (int, np.integer)) or value < 1:
            raise ConfigurationError(f"min_samples must be a positive integer, not {value!r}")
        self._min_samples = value

    @property
    def gain_method(self):
        return self._gain_method

    @gain_method.setter
    def gain_method(self, value):
        if value not in GAIN_METHODS:
            raise ConfigurationError(f"gain_method must be one of {GAIN_METHODS}, not {value!r}")
        self._gain_method = value

    @property
    def min_result_split_size(self):
        return self._min_result_split_size

    @min_result_split_size.setter
    def min_result_split_size(self, value):
        if not isinstance(value, (int, np.integer)) or value < 1:
            raise ConfigurationError(f"min_result_split_size must be a positive integer, not {value!r}")
        self._min_result_split_size = value

    @property
    def selection_count(self):
        return self._selection_count

    @selection_count.setter
    def selection_count(self, value):
        if value is not None and (not isinstance(value, (int, np.integer)) or value < 1):
            raise ConfigurationError(f"selection_count must be None or a positive integer, not {value!r}")
        self._selection_count = value

    @property
    def _depth_limit(self) -> int:
        return sys.maxsize if self.max_depth is None else int(self.max_depth)

    def _new_stump(self, seed: np.random.SeedSequence) -> DecisionStump:
        return DecisionStump(gain_method=self.gain_method,
                             min_result_split_size=int(self.min_result_split_size),
                             selection_count=self.selection_count,
                             random_thresholds=bool(self.random_thresholds),
                             max_numeric_thresholds=self.max_numeric_thresholds,
                             rng=np.random.default_rng(seed))

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    def _make_node(self, data: DataSet, options: set, depth: int, parallel: bool,
                   latch: ModifiableCountDownLatch, executor, seed: np.random.SeedSequence):
        """Grow the subtree for ``data``; returns ``None`` when no node should exist."""
        try:
            if (depth > self._depth_limit or not options or len(data) < self.min_samples
                    or data.is_empty()):
                return None
            stump = self._new_stump(seed)
            splits = stump.train(data, options, parallel=parallel and me_parallel(depth))
            if splits is None:
                # a single path only repeats what the parent's path predicts
                return _GrowingNode(stump, depth, len(data), 1) if depth == 0 else None
            node = _GrowingNode(stump, depth, len(data), len(splits))
            child_seeds = seed.spawn(len(splits))
            dispatch = child_parallel(depth)
            for i, split in enumerate(splits):
                latch.count_up()
                args = (node, i, split, set(options), depth + 1, parallel, latch, executor,
                        child_seeds[i])
                if dispatch:
                    try:
                        executor.submit(self._grow_child, *args)
                    except BaseException:
                        latch.count_down()
                        raise
                else:
                    self._grow_child(*args)
            return node
        finally:
            latch.count_down()

    def _grow_child(self, node: _GrowingNode, path: int, data: DataSet, options: set, depth: int,
                    parallel: bool, latch: ModifiableCountDownLatch, executor, seed) -> None:
        try:
            node.paths[path] = self._make_node(data, options, depth, parallel, latch, executor, seed)
        except Exception as exc:
            latch.record_failure(exc)

    def _grow(self, data: DataSet, options: set, parallel: bool,
              seed: np.random.SeedSequence) -> Tree:
        """Build a tree over ``data``.

        Raises
        ------
        FitFailure
            If no root node could be grown.
        ConcurrencyInterruptedError
            If waiting for the worker tasks was interrupted.
        """
        latch = ModifiableCountDownLatch(1)
        root = self._make_node(data, options, 0, parallel, latch, get_executor(parallel), seed)
        latch.await_()
        if latch.failures:
            raise latch.failures[0]
        if root is None:
            raise FitFailure(f"no tree could be grown from {len(data)} points")
        return Tree._from_growing(root)

    def _fallback_tree(self, data: DataSet, options: set, parallel: bool, seed) -> Tree:
        stump = self._new_stump(seed)
        stump.train(data, options, parallel=parallel)
        return Tree.single(stump, len(data))

    def _train_tree(self, train: DataSet, full: DataSet, options: set, parallel: bool,
                    seed: np.random.SeedSequence) -> tuple[Tree, bool]:
        """Grow a tree, falling back to a single stump on :class:`FitFailure`.

        Returns the tree and whether the fallback was used.
        """
        grow_seed, fallback_seed = seed.spawn(2)
        try:
            return self._grow(train, options, parallel, grow_seed), False
        except ConcurrencyInterruptedError:
            logger.error("tree construction was interrupted, using a single stump", exc_info=True)
        except FitFailure as exc:
            logger.warning("%s, using a single stump", exc)
        return self._fallback_tree(full, options, parallel, fallback_seed), True

    def _check_train_size(self, data: DataSet) -> None:
        if len(data) < self.min_samples:
            raise InsufficientDataError(
                f"There are only {len(data)} data points in the sample set, at least "
                f"{self.min_samples} are needed to make a tree")

    def get_depth(self) -> int:
        check_is_fitted(self, "tree_")
        return self.tree_.depth

    def get_n_leaves(self) -> int:
        check_is_fitted(self, "tree_")
        return self.tree_.leaf_count


class DecisionTreeClassifier(ClassifierMixin, _BaseDecisionTree):
    """
    Decision tree classifier built from decision stumps.

    Each node holds a :class:`~dtforest.stump.DecisionStump`; numeric features
    are split on a threshold and categorical features get one path per
    category.  Missing values are routed fractionally during training,
    pruning and prediction.  After growing, the tree can be post pruned on a
    held out fraction of the training data.

    Parameters
    ----------
    max_depth : int or None, default=None
        Maximum depth of any node (the root has depth 0).  ``None`` means
        unbounded.
    min_samples : int, default=10
        Minimum number of points a node needs before it is created.
    pruning_method : {"none", "reduced_error", "error_based"} or PruningMethod, default="reduced_error"
        Post pruning algorithm.
    test_proportion : float, default=0.1
        Share of the training data set aside for pruning.  ``0`` disables
        pruning; ``1`` prunes on the training data itself.
    alpha : float, default=0.25
        Confidence level of the error-based pruning upper bound.
    gain_method : {"gini", "entropy", "gain_ratio"}, default="gini"
        Impurity measure used by the stumps.
    min_result_split_size : int, default=10
        Minimum number of points on every path of an admissible split.
    selection_count : int or None, default=None
        Number of random candidate features examined at each node.
    random_thresholds : bool, default=False
        Use random numeric thresholds (extremely randomized trees).
    max_numeric_thresholds : int or None, default=None
        Cap on evaluated thresholds per numeric feature.
    categorical_features : list[int | str] or None, default=None
        Indices or names of categorical columns.
    feature_names : list[str] or None, default=None
        Column names, required when ``categorical_features`` uses names.
    random_state : int or None, default=None
        Seed for the pruning split and the stumps' randomness.
    parallel : bool, default=False
        Train with the shared worker pool.
    verbose : int, default=0
        Log a training summary at INFO level instead of DEBUG.

    Attributes
    ----------
    tree_ : Tree
        The fitted tree.
    classes_ : ndarray
        Class labels.
    pruned_nodes_ : int
        Number of nodes removed or replaced by pruning.
    used_fallback_ : bool
        Whether the tree degenerated to a single stump.
    """

    def __init__(self, *, max_depth: int | None = None, min_samples: int = 10,
                 pruning_method="reduced_error", test_proportion: float = 0.1,
                 alpha: float = 0.25, gain_method: str = "gini",
                 min_result_split_size: int = 10, selection_count: int | None = None,
                 random_thresholds: bool = False, max_numeric_thresholds: int | None = None,
                 categorical_features=None, feature_names=None, random_state=None,
                 parallel: bool = False, verbose: int = 0):
        super().__init__(max_depth=max_depth, min_samples=min_samples, gain_method=gain_method,
                         min_result_split_size=min_result_split_size,
                         selection_count=selection_count, random_thresholds=random_thresholds,
                         max_numeric_thresholds=max_numeric_thresholds,
                         categorical_features=categorical_features, feature_names=feature_names,
                         random_state=random_state, parallel=parallel, verbose=verbose)
        self.pruning_method = pruning_method
        self.test_proportion = test_proportion
        self.alpha = alpha

    @property
    def pruning_method(self):
        return self._pruning_method

    @pruning_method.setter
    def pruning_method(self, value):
        PruningMethod.coerce(value)
        self._pruning_method = value

    @property
    def test_proportion(self):
        return self._test_proportion

    @test_proportion.setter
    def test_proportion(self, value):
        try:
            ok = 0.0 <= float(value) <= 1.0
        except (TypeError, ValueError):
            ok = False
        if not ok:
            raise ConfigurationError(f"Proportion must be in the range [0, 1], not {value!r}")
        self._test_proportion = value

    @property
    def alpha(self):
        return self._alpha

    @alpha.setter
    def alpha(self, value):
        try:
            ok = 0.0 < float(value) < 1.0
        except (TypeError, ValueError):
            ok = False
        if not ok:
            raise ConfigurationError(f"alpha must be in the open interval (0, 1), not {value!r}")
        self._alpha = value

    def fit(self, X, y, sample_weight=None):
        numeric, categorical, y, w = self._prepare_fit(X, y, sample_weight)
        self.classes_, y_idx = np.unique(y, return_inverse=True)
        data = DataSet(numeric, categorical, y_idx, w, n_categories=self.encoder_.n_categories,
                       n_classes=len(self.classes_))
        return self.train(data)

    def train(self, data: DataSet, options=None, parallel: bool | None = None):
        """Fit the tree on a prepared :class:`~dtforest.dataset.DataSet`.

        Parameters
        ----------
        data : DataSet
            Classification data.
        options : iterable of int, optional
            Features the tree may split on; all features by default.
        parallel : bool, optional
            Overrides the ``parallel`` parameter.

        Raises
        ------
        InsufficientDataError
            If ``data`` has fewer than ``min_samples`` points.
        """
        if not data.is_classification:
            raise TypeError("DecisionTreeClassifier needs classification data")
        self._check_train_size(data)
        if getattr(self, "classes_", None) is None or len(self.classes_) != data.n_classes:
            self.classes_ = np.arange(data.n_classes)
        options = set(range(data.num_features)) if options is None else set(options)
        parallel = bool(self.parallel if parallel is None else parallel)
        method = PruningMethod.coerce(self.pruning_method)
        seed = _seed_sequence(self.random_state)
        split_seed, tree_seed = seed.spawn(2)

        train, test = data, None
        if method is not PruningMethod.NONE and float(self.test_proportion) != 0.0:
            if float(self.test_proportion) < 1.0:
                p = float(self.test_proportion)
                train, test = data.random_split(np.random.default_rng(split_seed), 1.0 - p, p)
            else:
                test = data

        tree, fallback = self._train_tree(train, data, options, parallel, tree_seed)
        self.pruned_nodes_ = 0
        if not fallback and test is not None:
            self.pruned_nodes_ = prune(tree, method, test, float(self.alpha))
        tree.compact()
        self.tree_ = tree
        self.used_fallback_ = fallback
        logger.log(self._summary_level,
                   "classification tree: %d nodes, depth %d, %d pruned (%s), fallback=%s",
                   tree.node_count, tree.depth, self.pruned_nodes_, method.value, fallback)
        return self

    def classify(self, point: DataPoint) -> np.ndarray:
        """Class probabilities (over ``classes_`` indices) of one encoded point."""
        check_is_fitted(self, "tree_")
        return self.tree_.classify(point)

    def predict_proba(self, X):
        """
        Predict class probabilities for the provided samples.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Input samples.  Missing values may be represented by ``None`` or
            ``numpy.nan``.

        Returns
        -------
        ndarray of shape (n_samples, n_classes)

        Raises
        ------
        NotFittedError
            If the estimator has not been fitted.
        ModelMismatchError
            If ``X`` does not have the number of columns seen in ``fit``.
        """
        check_is_fitted(self, "tree_")
        proba = self.tree_.predict_many(self._encode(X))
        row_sum = proba.sum(axis=1, keepdims=True)
        row_sum[row_sum == 0] = 1.0
        return proba / row_sum

    def predict(self, X):
        return self.classes_[np.argmax(self.predict_proba(X), axis=1)]
