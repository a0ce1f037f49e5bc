# -*- coding: utf-8 -*-
"""
dtforest.importance
===================

Per-tree feature importance measures.  Each measure maps a fitted
:class:`~dtforest.tree.Tree` and a :class:`~dtforest.dataset.DataSet` to one
score per feature, numeric features first and categorical features after
them (the data-set feature order).  The forest accumulates these scores over
its members with :class:`~dtforest.stats.OnlineStatistics`.
"""
from __future__ import annotations

import numpy as np

from .dataset import DataSet
from .stump import _entropy, _gini


class TreeFeatureImportance:
    """Base class of the importance measures."""

    def get_importance_stats(self, tree, data: DataSet) -> np.ndarray:
        raise NotImplementedError


class ImportanceByUses(TreeFeatureImportance):
    """Counts how often each feature is used to split.

    Parameters
    ----------
    weight_by_depth : bool, default=True
        Count a use at depth ``d`` as ``1 / (d + 1)`` so splits near the root
        weigh more.
    """

    def __init__(self, weight_by_depth: bool = True):
        self.weight_by_depth = weight_by_depth

    def get_importance_stats(self, tree, data: DataSet) -> np.ndarray:
        out = np.zeros(data.num_features)
        for nid in tree.iter_nodes():
            node = tree.nodes[nid]
            f = node.stump.splitting_attribute
            if f is None:
                continue
            out[f] += 1.0 / (node.depth + 1) if self.weight_by_depth else 1.0
        return out


class MDI(TreeFeatureImportance):
    """Mean decrease in impurity measured on ``data``.

    The data is routed through the tree (rows missing a split feature follow
    every path fractionally); each node credits its split feature with the
    weighted impurity decrease it achieves, divided by the total weight.

    Parameters
    ----------
    impurity : {"gini", "entropy"}, default="gini"
        Impurity for classification data.  Regression data always uses the
        weighted variance.
    """

    def __init__(self, impurity: str = "gini"):
        if impurity not in ("gini", "entropy"):
            raise ValueError(f"impurity must be 'gini' or 'entropy', not {impurity!r}")
        self.impurity = impurity

    def _weighted_impurity(self, data: DataSet) -> float:
        w = data.total_weight()
        if w <= 0:
            return 0.0
        if data.is_classification:
            dist = data.class_distribution()
            imp = _gini(dist) if self.impurity == "gini" else _entropy(dist)
            return float(imp) * w
        mean = float((data.weights * data.targets).sum() / w)
        return float((data.weights * (data.targets - mean) ** 2).sum())

    def get_importance_stats(self, tree, data: DataSet) -> np.ndarray:
        out = np.zeros(data.num_features)
        total = data.total_weight()
        if total <= 0:
            return out
        stack = [(tree.root, data)]
        while stack:
            nid, subset = stack.pop()
            stump = tree.stump(nid)
            f = stump.splitting_attribute
            if f is None or subset.total_weight() <= 0:
                continue
            paths = stump.which_paths(subset)
            splits = subset.partition(paths, subset.path_fractions(paths, stump.num_paths))
            decrease = self._weighted_impurity(subset) - sum(self._weighted_impurity(s) for s in splits)
            out[f] += decrease / total
            for p, child in enumerate(tree.nodes[nid].children):
                if child is not None:
                    stack.append((child, splits[p]))
        return out
