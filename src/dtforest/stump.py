# -*- coding: utf-8 -*-
"""
dtforest.stump
==============

A one level decision rule ("stump") used as the split oracle of the tree
builder.  Given a weighted subset of a :class:`~dtforest.dataset.DataSet`
and a set of candidate features, the stump picks the most informative
admissible split and partitions the data along it:

* numeric features give binary splits ``x <= threshold`` / ``x > threshold``;
* categorical features give one path per category;
* rows missing the chosen feature are sent down every path with their weight
  scaled by the share of known weight that followed that path.

Each path keeps the class distribution (or mean target) of the data that
reached it, so a trained stump is itself a predictor.  Extra-trees style
randomization is available through ``selection_count`` (random subset of
candidate features per node) and ``random_thresholds`` (uniform random cut
point instead of the exhaustive search).
"""
from __future__ import annotations

import copy
import logging

import numpy as np

from .concurrency import get_worker_pool
from .dataset import DataPoint, DataSet
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

GAIN_METHODS = ("gini", "entropy", "gain_ratio")

_EPS = 1e-12


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def _normalize_rows(dist: np.ndarray) -> np.ndarray:
    tot = dist.sum(axis=-1, keepdims=True)
    with np.errstate(invalid="ignore", divide="ignore"):
        p = np.where(tot > 0, dist / np.where(tot > 0, tot, 1.0), 0.0)
    return p


def _entropy(dist: np.ndarray) -> np.ndarray:
    p = _normalize_rows(dist)
    with np.errstate(invalid="ignore", divide="ignore"):
        logs = np.where(p > 0, np.log2(np.where(p > 0, p, 1.0)), 0.0)
    return -(p * logs).sum(axis=-1)


def _gini(dist: np.ndarray) -> np.ndarray:
    p = _normalize_rows(dist)
    return 1.0 - (p * p).sum(axis=-1)


def _split_info(child_weights: np.ndarray) -> np.ndarray:
    return _entropy(child_weights)


def _class_gain(parent: np.ndarray, children: np.ndarray, method: str) -> np.ndarray:
    """Impurity decrease of ``m`` candidate splits.

    ``parent`` has shape (C,) and ``children`` shape (m, K, C).
    """
    cw = children.sum(axis=-1)                       # (m, K)
    wk = cw.sum(axis=-1)                             # (m,)
    wk_safe = np.where(wk > 0, wk, 1.0)
    if method == "gini":
        imp = _gini
    else:
        imp = _entropy
    gain = imp(parent) - (cw * imp(children)).sum(axis=-1) / wk_safe
    if method == "gain_ratio":
        si = _split_info(cw)
        gain = np.where(si > 0, gain / np.where(si > 0, si, 1.0), 0.0)
    return gain


def _sse(stats: np.ndarray) -> np.ndarray:
    """Weighted SSE from ``[..., (w, w*y, w*y^2)]`` sufficient statistics."""
    w, wy, wy2 = stats[..., 0], stats[..., 1], stats[..., 2]
    with np.errstate(invalid="ignore", divide="ignore"):
        return np.where(w > 0, wy2 - wy * wy / np.where(w > 0, w, 1.0), 0.0)


def _reg_gain(parent: np.ndarray, children: np.ndarray) -> np.ndarray:
    wk = children[..., 0].sum(axis=-1)
    wk_safe = np.where(wk > 0, wk, 1.0)
    return (_sse(parent) - _sse(children).sum(axis=-1)) / wk_safe


# -----------------------------------------------------------------------------
# Stump
# -----------------------------------------------------------------------------
class DecisionStump:
    """Single split decision rule.

    Parameters
    ----------
    gain_method : {"gini", "entropy", "gain_ratio"}, default="gini"
        Impurity measure for classification.  Regression always uses the
        weighted variance reduction.
    min_result_split_size : int, default=10
        Minimum number of points each non-empty path must receive for a split
        to be admissible.
    selection_count : int or None, default=None
        If set, only this many randomly chosen candidate features are
        examined at each call of :meth:`train`.
    random_thresholds : bool, default=False
        Draw the numeric threshold uniformly between the observed minimum and
        maximum instead of searching all midpoints.
    max_numeric_thresholds : int or None, default=None
        Cap on the number of midpoints evaluated per numeric feature
        (evenly spaced subsample of the sorted boundaries).
    rng : numpy.random.Generator, optional
        Source of randomness for feature subsampling and random thresholds.

    Attributes
    ----------
    splitting_attribute : int or None
        Global feature index used by the split, ``None`` for a single path.
    threshold : float or None
        Numeric threshold, ``None`` for categorical splits.
    num_paths : int
        Number of output paths.
    path_ratio : ndarray of shape (num_paths,)
        Share of known training weight that followed each path.
    results : ndarray
        Per path class probabilities (classification) or mean value
        (regression).
    """

    def __init__(self, gain_method: str = "gini", min_result_split_size: int = 10,
                 selection_count: int | None = None, random_thresholds: bool = False,
                 max_numeric_thresholds: int | None = None, rng=None):
        if gain_method not in GAIN_METHODS:
            raise ConfigurationError(f"gain_method must be one of {GAIN_METHODS}, not {gain_method!r}")
        if min_result_split_size < 1:
            raise ConfigurationError("min_result_split_size must be at least 1")
        if selection_count is not None and selection_count < 1:
            raise ConfigurationError("selection_count must be positive")
        self.gain_method = gain_method
        self.min_result_split_size = int(min_result_split_size)
        self.selection_count = selection_count
        self.random_thresholds = bool(random_thresholds)
        self.max_numeric_thresholds = max_numeric_thresholds
        self.rng = rng if rng is not None else np.random.default_rng()

        self.splitting_attribute: int | None = None
        self.threshold: float | None = None
        self.num_paths = 1
        self.path_ratio = np.ones(1)
        self.results: np.ndarray | None = None
        self.num_numeric = 0
        self.num_categorical = 0
        self.n_classes: int | None = None

    def clone(self) -> "DecisionStump":
        return copy.deepcopy(self)

    @property
    def is_trained(self) -> bool:
        return self.results is not None

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------
    def train(self, data: DataSet, options, parallel: bool = False) -> list[DataSet] | None:
        """Fit the split on ``data`` using the features in ``options``.

        Returns
        -------
        list of DataSet or None
            One subset per path (missing rows distributed fractionally), or
            ``None`` if no admissible split was found, in which case the stump
            has a single path predicting the overall distribution of ``data``.
        """
        self.num_numeric = data.num_numeric
        self.num_categorical = data.num_categorical
        self.n_classes = data.n_classes

        candidates = sorted(int(f) for f in options)
        if self.selection_count is not None and self.selection_count < len(candidates):
            candidates = sorted(int(f) for f in
                                self.rng.choice(candidates, self.selection_count, replace=False))
        # one draw per candidate, taken up front so parallel search is reproducible
        draws = self.rng.random(len(candidates))

        if parallel and len(candidates) > 1:
            # the builder only asks for this on the calling thread, never on a pool worker
            scored = list(get_worker_pool().map(lambda fu: self._evaluate(data, fu[0], fu[1]),
                                                zip(candidates, draws)))
        else:
            scored = [self._evaluate(data, f, u) for f, u in zip(candidates, draws)]

        best_gain, best_feat, best_thr = _EPS, None, None
        for feat, res in zip(candidates, scored):
            if res is None:
                continue
            gain, thr = res
            if gain > best_gain:
                best_gain, best_feat, best_thr = gain, feat, thr

        if best_feat is None:
            self._make_single_path(data)
            return None

        self.splitting_attribute = best_feat
        self.threshold = best_thr
        if best_feat < data.num_numeric:
            self.num_paths = 2
        else:
            self.num_paths = data.n_categories[best_feat - data.num_numeric]
        paths = self.which_paths(data)
        self.path_ratio = data.path_fractions(paths, self.num_paths)
        splits = data.partition(paths, self.path_ratio)
        fallback = self._summarize(data)
        self.results = np.stack([self._summarize(s) if s.total_weight() > 0 else fallback
                                 for s in splits])
        logger.debug("split on feature %d (gain=%.6g, paths=%d, n=%d)",
                     best_feat, best_gain, self.num_paths, len(data))
        return splits

    def _make_single_path(self, data: DataSet) -> None:
        self.splitting_attribute = None
        self.threshold = None
        self.num_paths = 1
        self.path_ratio = np.ones(1)
        self.results = self._summarize(data)[np.newaxis]

    def _summarize(self, data: DataSet) -> np.ndarray:
        if data.is_classification:
            dist = data.class_distribution()
            tot = dist.sum()
            if tot <= 0:
                return np.full(data.n_classes, 1.0 / data.n_classes)
            return dist / tot
        tot = data.total_weight()
        if tot <= 0:
            return np.zeros(1)
        return np.array([float((data.weights * data.targets).sum() / tot)])

    def _target_stats(self, data: DataSet, mask: np.ndarray) -> np.ndarray:
        """Per row sufficient statistics of the targets, shape (n_known, C or 3)."""
        w = data.weights[mask]
        y = data.targets[mask]
        if data.is_classification:
            M = np.zeros((y.shape[0], data.n_classes), dtype=float)
            M[np.arange(y.shape[0]), y] = w
            return M
        return np.column_stack([w, w * y, w * y * y])

    def _gain(self, data: DataSet, parent: np.ndarray, children: np.ndarray) -> np.ndarray:
        if data.is_classification:
            return _class_gain(parent, children, self.gain_method)
        return _reg_gain(parent, children)

    def _evaluate(self, data: DataSet, feature: int, draw: float):
        """Best ``(gain, threshold)`` for one feature, or ``None`` if inadmissible."""
        missing = data.missing_mask(feature)
        known = ~missing
        total = data.total_weight()
        w_known = float(data.weights[known].sum())
        if total <= 0 or w_known <= 0:
            return None
        frac_known = w_known / total
        stats = self._target_stats(data, known)
        parent = stats.sum(axis=0)
        col = data.column(feature)[known]
        min_size = self.min_result_split_size

        if feature < data.num_numeric:
            order = np.argsort(col, kind="mergesort")
            v = col[order]
            S = stats[order].cumsum(axis=0)
            if self.random_thresholds:
                lo, hi = v[0], v[-1]
                if lo >= hi:
                    return None
                thr = float(lo + draw * (hi - lo))
                i = int(np.searchsorted(v, thr, side="right")) - 1
                if i < 0 or i >= v.shape[0] - 1:
                    return None
                bd = np.array([i])
            else:
                bd = np.flatnonzero(v[:-1] != v[1:])
                if self.max_numeric_thresholds is not None and bd.size > self.max_numeric_thresholds:
                    bd = bd[np.linspace(0, bd.size - 1, num=self.max_numeric_thresholds, dtype=int)]
            n_left = bd + 1
            ok = (n_left >= min_size) & (v.shape[0] - n_left >= min_size)
            bd = bd[ok]
            if bd.size == 0:
                return None
            left = S[bd]
            children = np.stack([left, parent - left], axis=1)
            gains = self._gain(data, parent, children) * frac_known
            k = int(np.argmax(gains))
            if self.random_thresholds:
                return float(gains[k]), thr
            i = bd[k]
            return float(gains[k]), float(0.5 * (v[i] + v[i + 1]))

        K = data.n_categories[feature - data.num_numeric]
        if K < 2:
            return None
        codes = col.astype(np.int64)
        counts = np.bincount(codes, minlength=K)
        nonempty = counts > 0
        if nonempty.sum() < 2 or np.any(counts[nonempty] < min_size):
            return None
        children = np.zeros((K, stats.shape[1]), dtype=float)
        np.add.at(children, codes, stats)
        gain = self._gain(data, parent, children[np.newaxis])[0] * frac_known
        return float(gain), None

    # ------------------------------------------------------------------
    # Routing and prediction
    # ------------------------------------------------------------------
    def which_path(self, point: DataPoint) -> int:
        """Path index for ``point``, or ``-1`` if the split value is missing."""
        f = self.splitting_attribute
        if f is None:
            return 0
        if f < self.num_numeric:
            v = point.numeric[f]
            if np.isnan(v):
                return -1
            return 0 if v <= self.threshold else 1
        c = int(point.categorical[f - self.num_numeric])
        if c < 0 or c >= self.num_paths:
            return -1
        return c

    def which_paths(self, data: DataSet) -> np.ndarray:
        """Vectorized :meth:`which_path` over every row of ``data``."""
        f = self.splitting_attribute
        if f is None:
            return np.zeros(len(data), dtype=np.int64)
        if f < self.num_numeric:
            col = data.numeric[:, f]
            with np.errstate(invalid="ignore"):
                paths = np.where(col <= self.threshold, 0, 1)
            paths[np.isnan(col)] = -1
            return paths.astype(np.int64)
        col = data.categorical[:, f - self.num_numeric].astype(np.int64)
        return np.where((col < 0) | (col >= self.num_paths), -1, col)

    def _result_for(self, path: int) -> np.ndarray:
        if path < 0:
            return self.path_ratio @ self.results
        return self.results[path]

    def classify(self, point: DataPoint) -> np.ndarray:
        """Class probabilities of the path ``point`` follows."""
        return self._result_for(self.which_path(point))

    def classify_many(self, data: DataSet) -> np.ndarray:
        paths = self.which_paths(data)
        out = self.results[np.where(paths < 0, 0, paths)]
        if np.any(paths < 0):
            out[paths < 0] = self.path_ratio @ self.results
        return out

    def regress(self, point: DataPoint) -> float:
        return float(self._result_for(self.which_path(point))[0])

    def regress_many(self, data: DataSet) -> np.ndarray:
        return self.classify_many(data)[:, 0]
