# -*- coding: utf-8 -*-
"""
dtforest.pruning
================

Post pruning of a fitted :class:`~dtforest.tree.Tree` with a held out
evaluation set.  Both algorithms work bottom up and send evaluation points
that miss a node's split feature down every path, weighted by each path's
share of the known evaluation weight at that node.

Reduced-error pruning
    A node that is (or became) a leaf is removed when its parent's local rule
    classifies the node's evaluation points at least as well as the node's own
    rule.  Ties prune, preferring smaller trees.

Error-based pruning
    C4.5 style pessimistic pruning.  Each candidate (keep the subtree,
    collapse the node to a leaf, or graft the child that received most of the
    evaluation points in place of the node) is scored by the upper limit of a
    one-sided binomial confidence interval on its error count, computed
    exactly with the inverse regularized incomplete beta function.  The root
    is never replaced by one of its children.
"""
from __future__ import annotations

import enum
import logging
import math
from typing import TYPE_CHECKING

import numpy as np

from .exceptions import ConfigurationError
from .stats import binomial_upper_bound

if TYPE_CHECKING:
    from .dataset import DataSet
    from .tree import Tree

logger = logging.getLogger(__name__)


class PruningMethod(enum.Enum):
    """Post pruning algorithm applied after a tree is grown."""
    NONE = "none"
    REDUCED_ERROR = "reduced_error"
    ERROR_BASED = "error_based"

    @classmethod
    def coerce(cls, value) -> "PruningMethod":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ConfigurationError(
                f"pruning_method must be one of {[m.value for m in cls]}, not {value!r}") from None


class PruneAction(enum.Enum):
    KEEP = "keep"
    COLLAPSE = "collapse"
    REPLACE_WITH_CHILD = "replace_with_child"


def choose_action(pruned_score: float, subtree_score: float, max_child_score: float,
                  is_root: bool) -> PruneAction:
    """Pick the error-based pruning action with the smallest pessimistic score.

    Grafting the max child needs a strictly smaller score than both
    alternatives and is not available at the root; collapsing needs a strictly
    smaller score than keeping the subtree.
    """
    if not is_root and max_child_score < pruned_score and max_child_score < subtree_score:
        return PruneAction.REPLACE_WITH_CHILD
    if pruned_score < subtree_score:
        return PruneAction.COLLAPSE
    return PruneAction.KEEP


def prune(tree: "Tree", method, test_set: "DataSet | None", alpha: float = 0.25) -> int:
    """Prune ``tree`` in place.

    Parameters
    ----------
    tree : Tree
        Fitted classification tree.
    method : PruningMethod or str
    test_set : DataSet or None
        Evaluation data.  Nothing happens when it is ``None`` or empty.
    alpha : float, default=0.25
        Confidence of the error-based upper bound.

    Returns
    -------
    int
        Reduced error: number of pruned nodes.  Error based: number of nodes
        collapsed or replaced.
    """
    method = PruningMethod.coerce(method)
    if method is PruningMethod.NONE or test_set is None or test_set.is_empty():
        return 0
    if not 0.0 < alpha < 1.0:
        raise ConfigurationError(f"alpha must be in the open interval (0, 1), not {alpha!r}")
    if method is PruningMethod.REDUCED_ERROR:
        changed = _prune_reduced_error(tree, None, -1, tree.root, test_set)
    else:
        counter = [0]
        _prune_error_based(tree, None, -1, tree.root, test_set, alpha, counter)
        changed = counter[0]
    tree.compact()
    logger.debug("%s pruning: %d nodes changed, %d nodes left", method.value, changed,
                 tree.node_count)
    return changed


def _split_evaluation(tree: "Tree", node: int, test_set: "DataSet") -> list:
    """Partition ``test_set`` along the paths of ``node`` (missing rows fractionally)."""
    stump = tree.stump(node)
    paths = stump.which_paths(test_set)
    fracs = test_set.path_fractions(paths, stump.num_paths)
    return test_set.partition(paths, fracs)


def _weighted_correct(probas: np.ndarray, data: "DataSet") -> float:
    hits = np.argmax(probas, axis=1) == data.targets
    return float(data.weights[hits].sum())


def _prune_reduced_error(tree: "Tree", parent: int | None, path_followed: int,
                         current: int | None, test_set: "DataSet") -> int:
    if current is None:
        return 0
    nodes_pruned = 0
    if not tree.is_leaf(current):
        splits = _split_evaluation(tree, current, test_set)
        # backwards, disabling a path does not renumber its siblings
        for i in range(len(splits) - 1, -1, -1):
            nodes_pruned += _prune_reduced_error(tree, current, i, tree.get_child(current, i),
                                                 splits[i])

    if tree.is_leaf(current) and parent is not None:
        child_correct = _weighted_correct(tree.stump(current).classify_many(test_set), test_set)
        parent_correct = _weighted_correct(tree.stump(parent).classify_many(test_set), test_set)
        if parent_correct >= child_correct:
            tree.disable_path(parent, path_followed)
            return nodes_pruned + 1
    return nodes_pruned


def _prune_error_based(tree: "Tree", parent: int | None, path_followed: int,
                       current: int | None, test_set: "DataSet", alpha: float,
                       counter: list) -> float:
    """Prune the subtree at ``current`` and return its pessimistic error count."""
    if current is None or test_set.is_empty():
        return 0.0
    stump = tree.stump(current)
    local_wrong = np.argmax(stump.classify_many(test_set), axis=1) != test_set.targets
    local_errors = float(test_set.weights[local_wrong].sum())
    total = test_set.total_weight()
    if tree.is_leaf(current):
        return binomial_upper_bound(total, alpha, local_errors)

    splits = _split_evaluation(tree, current, test_set)

    subtree_score = 0.0
    max_child, max_child_count = -1, 0
    for path, split in enumerate(splits):
        if tree.is_path_disabled(current, path):
            # the path predicts the node's own result for it
            if not split.is_empty():
                wrong = np.argmax(stump.results[path]) != split.targets
                subtree_score += binomial_upper_bound(split.total_weight(), alpha,
                                                      float(split.weights[wrong].sum()))
            continue
        subtree_score += _prune_error_based(tree, current, path, tree.get_child(current, path),
                                            split, alpha, counter)
        if len(split) > max_child_count:
            max_child_count = len(split)
            max_child = path

    pruned_score = binomial_upper_bound(total, alpha, local_errors)

    max_child_node = None if max_child < 0 else tree.get_child(current, max_child)
    if max_child_node is None:
        max_child_score = math.inf
    else:
        # error of the max child's subtree over every point that reached this node
        other_errors = 0.0
        for split in splits:
            if split.is_empty():
                continue
            probas = tree.predict_many(split, start=max_child_node)
            wrong = np.argmax(probas, axis=1) != split.targets
            other_errors += float(split.weights[wrong].sum())
        max_child_score = binomial_upper_bound(total, alpha, other_errors)

    action = choose_action(pruned_score, subtree_score, max_child_score, is_root=parent is None)
    if action is PruneAction.REPLACE_WITH_CHILD:
        tree.set_path(parent, path_followed, max_child_node)
        counter[0] += 1
        # the raised subtree now sees every point that reached this node
        return _prune_error_based(tree, parent, path_followed, max_child_node, test_set, alpha,
                                  counter)
    if action is PruneAction.COLLAPSE:
        for i in range(tree.children_count(current)):
            tree.disable_path(current, i)
        counter[0] += 1
        return pruned_score
    return subtree_score
