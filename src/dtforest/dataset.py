# -*- coding: utf-8 -*-
"""
dtforest.dataset
================

The weighted data-set container consumed by the stump, the tree builder and
the pruners.

A :class:`DataSet` stores numeric and categorical features in two separate
matrices.  Numeric features take the global indices ``0..num_numeric-1`` and
categorical features follow them, so a single integer identifies any feature.
Missing numeric values are ``NaN`` and missing categorical values are ``-1``.

:class:`FeatureEncoder` turns the mixed ``object`` arrays accepted by the
estimators (numbers, strings, ``None``/``NaN``) into that layout.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, Sequence

import numpy as np


def _isnan_scalar(v: Any) -> bool:
    if v is None:
        return True
    try:
        return bool(np.isnan(v))
    except (TypeError, ValueError):
        return False


def _as_matrix(a, n: int, dtype) -> np.ndarray:
    a = np.asarray(a, dtype=dtype)
    if a.ndim == 2:
        return a
    if a.size == 0:
        return a.reshape(n, 0)
    return a.reshape(n, -1)


@dataclass(frozen=True)
class DataPoint:
    """A single query: numeric values (NaN = missing) and category codes (-1 = missing)."""
    numeric: np.ndarray
    categorical: np.ndarray

    @property
    def num_numeric(self) -> int:
        return int(self.numeric.shape[0])

    @property
    def num_categorical(self) -> int:
        return int(self.categorical.shape[0])


class DataSet:
    """Weighted, labeled collection of points.

    Parameters
    ----------
    numeric : array-like of shape (n_samples, n_numeric)
    categorical : array-like of shape (n_samples, n_categorical)
        Integer category codes, ``-1`` marks a missing value.
    targets : array-like of shape (n_samples,)
        Class indices in ``0..n_classes-1`` for classification, real values
        for regression.
    weights : array-like of shape (n_samples,), optional
        Defaults to all ones.
    n_categories : sequence of int, optional
        Number of categories of each categorical feature.  Inferred from the
        codes when omitted.
    n_classes : int or None
        Number of classes; ``None`` means the targets are real valued.
    """

    def __init__(self, numeric, categorical, targets, weights=None,
                 n_categories: Sequence[int] | None = None, n_classes: int | None = None):
        targets = np.asarray(targets)
        n = targets.shape[0]
        self.numeric = _as_matrix(numeric, n, float)
        self.categorical = _as_matrix(categorical, n, np.int64)
        self.n_classes = None if n_classes is None else int(n_classes)
        if self.n_classes is None:
            self.targets = targets.astype(float)
        else:
            self.targets = targets.astype(np.int64)
        if weights is None:
            self.weights = np.ones(n, dtype=float)
        else:
            self.weights = np.asarray(weights, dtype=float)
            if self.weights.shape[0] != n:
                raise ValueError("weights must have the same length as targets")
        if n_categories is None:
            if self.categorical.size:
                n_categories = (self.categorical.max(axis=0) + 1).clip(min=1)
            else:
                n_categories = np.ones(self.categorical.shape[1], dtype=int)
        self.n_categories = tuple(int(c) for c in n_categories)
        if len(self.n_categories) != self.categorical.shape[1]:
            raise ValueError("n_categories must have one entry per categorical feature")

    # ------------------------------------------------------------------
    # Shape
    # ------------------------------------------------------------------
    def __len__(self) -> int:
        return int(self.targets.shape[0])

    def is_empty(self) -> bool:
        return len(self) == 0

    @property
    def num_numeric(self) -> int:
        return int(self.numeric.shape[1])

    @property
    def num_categorical(self) -> int:
        return int(self.categorical.shape[1])

    @property
    def num_features(self) -> int:
        return self.num_numeric + self.num_categorical

    @property
    def is_classification(self) -> bool:
        return self.n_classes is not None

    def is_categorical_feature(self, feature: int) -> bool:
        return feature >= self.num_numeric

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------
    def get_data_point(self, i: int) -> DataPoint:
        return DataPoint(self.numeric[i], self.categorical[i])

    def __iter__(self) -> Iterator[tuple[DataPoint, Any, float]]:
        """Yield ``(point, target, weight)`` triples."""
        for i in range(len(self)):
            yield self.get_data_point(i), self.targets[i], float(self.weights[i])

    def column(self, feature: int) -> np.ndarray:
        if feature < self.num_numeric:
            return self.numeric[:, feature]
        return self.categorical[:, feature - self.num_numeric]

    def missing_mask(self, feature: int) -> np.ndarray:
        if feature < self.num_numeric:
            return np.isnan(self.numeric[:, feature])
        return self.categorical[:, feature - self.num_numeric] < 0

    def total_weight(self) -> float:
        return float(self.weights.sum())

    def class_distribution(self) -> np.ndarray:
        """Weighted count of each class."""
        if not self.is_classification:
            raise TypeError("class_distribution is only defined for classification data")
        return np.bincount(self.targets, weights=self.weights, minlength=self.n_classes).astype(float)

    # ------------------------------------------------------------------
    # Derived sets
    # ------------------------------------------------------------------
    def subset(self, indices, weights=None) -> "DataSet":
        """Rows ``indices`` (with replacement weights if given) as a new set."""
        indices = np.asarray(indices, dtype=np.int64)
        w = self.weights[indices] if weights is None else np.asarray(weights, dtype=float)
        return DataSet(self.numeric[indices], self.categorical[indices], self.targets[indices], w,
                       n_categories=self.n_categories, n_classes=self.n_classes)

    def empty_clone(self) -> "DataSet":
        return self.subset(np.empty(0, dtype=np.int64))

    def random_split(self, rng: np.random.Generator, *proportions: float) -> list["DataSet"]:
        """Shuffle the rows and cut them into consecutive blocks of the given proportions."""
        if not proportions or any(p < 0 for p in proportions) or sum(proportions) > 1.0 + 1e-9:
            raise ValueError(f"invalid split proportions {proportions}")
        perm = rng.permutation(len(self))
        out = []
        start = 0
        acc = 0.0
        for p in proportions:
            acc += p
            end = min(len(self), int(round(acc * len(self))))
            out.append(self.subset(perm[start:end]))
            start = end
        return out

    def path_fractions(self, paths: np.ndarray, num_paths: int) -> np.ndarray:
        """Share of the non-missing weight that followed each path."""
        known = paths >= 0
        fracs = np.bincount(paths[known], weights=self.weights[known], minlength=num_paths)
        return fracs / (fracs.sum() + 1e-15)

    def partition(self, paths: np.ndarray, fractions: Sequence[float]) -> list["DataSet"]:
        """Split the rows by ``paths``; rows with path ``-1`` go to every path.

        A row that misses the routing feature appears in the subset of each
        path ``p`` with its weight scaled by ``fractions[p]``.  Paths with a
        zero fraction do not receive missing rows.
        """
        paths = np.asarray(paths)
        missing = np.flatnonzero(paths < 0)
        out = []
        for p, frac in enumerate(fractions):
            own = np.flatnonzero(paths == p)
            if missing.size and frac > 0:
                idx = np.concatenate([own, missing])
                w = np.concatenate([self.weights[own], self.weights[missing] * frac])
                out.append(self.subset(idx, w))
            else:
                out.append(self.subset(own))
        return out


# -----------------------------------------------------------------------------
# Encoding of user arrays
# -----------------------------------------------------------------------------
class FeatureEncoder:
    """Maps the columns of a mixed array onto a :class:`DataSet` layout.

    Parameters
    ----------
    is_categorical : sequence of bool
        One flag per input column.
    """

    def __init__(self, is_categorical: Sequence[bool]):
        self.is_categorical = np.asarray(is_categorical, dtype=bool)
        self.numeric_columns = np.flatnonzero(~self.is_categorical)
        self.categorical_columns = np.flatnonzero(self.is_categorical)
        self.categories_: list[dict] = []

    @property
    def n_features(self) -> int:
        return int(self.is_categorical.shape[0])

    @property
    def feature_order(self) -> np.ndarray:
        """Input column of each :class:`DataSet` feature index."""
        return np.concatenate([self.numeric_columns, self.categorical_columns])

    def fit(self, X) -> "FeatureEncoder":
        X = np.asarray(X, dtype=object).reshape(len(X), -1)
        self.categories_ = []
        for j in self.categorical_columns:
            seen: dict = {}
            for v in X[:, j]:
                if not _isnan_scalar(v) and v not in seen:
                    seen[v] = len(seen)
            self.categories_.append(seen)
        return self

    def transform(self, X) -> tuple[np.ndarray, np.ndarray]:
        X = np.asarray(X, dtype=object)
        if X.ndim == 1:
            X = X.reshape(1, -1)
        n = X.shape[0]
        numeric = np.empty((n, self.numeric_columns.size), dtype=float)
        for k, j in enumerate(self.numeric_columns):
            numeric[:, k] = [np.nan if _isnan_scalar(v) else float(v) for v in X[:, j]]
        categorical = np.empty((n, self.categorical_columns.size), dtype=np.int64)
        for k, j in enumerate(self.categorical_columns):
            codes = self.categories_[k]
            categorical[:, k] = [-1 if _isnan_scalar(v) else codes.get(v, -1) for v in X[:, j]]
        return numeric, categorical

    @property
    def n_categories(self) -> tuple[int, ...]:
        return tuple(max(1, len(c)) for c in self.categories_)


def resolve_categorical_mask(n_features: int, categorical_features=None,
                             feature_names=None) -> np.ndarray:
    """Boolean mask of categorical columns from indices or names."""
    is_cat = np.zeros(n_features, dtype=bool)
    if categorical_features is None:
        return is_cat
    seq = list(categorical_features)
    if len(seq) and isinstance(seq[0], str):
        if feature_names is None:
            raise ValueError("feature_names must be provided when categorical_features are given by name.")
        name_to_idx = {n: i for i, n in enumerate(feature_names)}
        for name in seq:
            if name not in name_to_idx:
                raise ValueError(f"unknown feature name {name!r}")
            is_cat[name_to_idx[name]] = True
    else:
        for j in seq:
            is_cat[int(j)] = True
    return is_cat
