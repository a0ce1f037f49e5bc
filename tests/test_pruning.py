import copy

import numpy as np
import pytest

from dtforest import ConfigurationError, DataSet, DecisionTreeClassifier, PruningMethod
from dtforest.pruning import PruneAction, _prune_error_based, choose_action, prune
from dtforest.stats import binomial_upper_bound
from dtforest.stump import DecisionStump
from dtforest.tree import Tree, TreeNode


def _noisy_dataset(n=400, seed=5, missing=0.0):
    rng = np.random.default_rng(seed)
    numeric = rng.uniform(0, 1, size=(n, 3))
    noise = rng.uniform(size=n) < 0.2
    targets = ((numeric[:, 0] > 0.4) ^ noise).astype(int)
    if missing:
        numeric[rng.uniform(size=n) < missing, 0] = np.nan
    return DataSet(numeric, np.empty((n, 0), dtype=np.int64), targets, n_classes=2)


def _grown_tree(data, seed=0):
    clf = DecisionTreeClassifier(min_samples=2, min_result_split_size=1, pruning_method="none",
                                 random_state=seed)
    return clf.train(data).tree_


def _weighted_error(tree, data):
    wrong = np.argmax(tree.predict_many(data), axis=1) != data.targets
    return float(data.weights[wrong].sum())


def test_choose_action_prefers_grafting_the_max_child():
    assert choose_action(0.40, 0.55, 0.30, is_root=False) is PruneAction.REPLACE_WITH_CHILD


def test_choose_action_never_grafts_at_the_root():
    assert choose_action(0.40, 0.55, 0.30, is_root=True) is PruneAction.COLLAPSE


@pytest.mark.parametrize("scores, expected", [
    ((0.50, 0.40, 0.45), PruneAction.KEEP),
    ((0.30, 0.55, 0.30), PruneAction.COLLAPSE),
    ((0.40, 0.40, 0.50), PruneAction.KEEP),
    ((0.60, 0.50, 0.20), PruneAction.REPLACE_WITH_CHILD),
])
def test_choose_action_takes_the_strict_minimum(scores, expected):
    assert choose_action(*scores, is_root=False) is expected


def test_reduced_error_pruning_never_increases_error_or_size():
    data = _noisy_dataset()
    evaluation = _noisy_dataset(seed=11)
    tree = _grown_tree(data)
    before_error, before_size = _weighted_error(tree, evaluation), tree.node_count
    pruned = copy.deepcopy(tree)
    removed = prune(pruned, PruningMethod.REDUCED_ERROR, evaluation)
    assert removed > 0
    assert _weighted_error(pruned, evaluation) <= before_error
    assert pruned.node_count < before_size


def test_reduced_error_pruning_is_idempotent():
    data = _noisy_dataset()
    evaluation = _noisy_dataset(seed=11)
    tree = _grown_tree(data)
    prune(tree, "reduced_error", evaluation)
    nodes = tree.node_count
    assert prune(tree, "reduced_error", evaluation) == 0
    assert tree.node_count == nodes


def test_error_based_pruning_shrinks_and_keeps_the_root():
    data = _noisy_dataset()
    evaluation = _noisy_dataset(seed=11)
    tree = _grown_tree(data)
    root_stump = tree.stump(tree.root)
    before = tree.node_count
    changed = prune(tree, PruningMethod.ERROR_BASED, evaluation, alpha=0.25)
    assert changed > 0
    assert tree.node_count < before
    assert tree.stump(tree.root) is root_stump
    assert tree.predict_many(data).shape == (len(data), 2)


def test_error_based_leaf_score_is_the_binomial_bound():
    numeric = np.linspace(0, 1, 20).reshape(-1, 1)
    targets = np.array([0] * 17 + [1] * 3)
    data = DataSet(numeric, np.empty((20, 0), dtype=np.int64), targets, n_classes=2)
    tree = DecisionTreeClassifier(min_samples=2, min_result_split_size=20,
                                  pruning_method="none").train(data).tree_
    assert tree.node_count == 1
    score = _prune_error_based(tree, None, -1, tree.root, data, 0.25, [0])
    assert score == pytest.approx(binomial_upper_bound(20, 0.25, 3.0))


def test_pruning_without_evaluation_data_is_a_no_op():
    data = _noisy_dataset()
    tree = _grown_tree(data)
    before = tree.node_count
    assert prune(tree, "reduced_error", None) == 0
    assert prune(tree, "error_based", data.empty_clone()) == 0
    assert prune(tree, "none", data) == 0
    assert tree.node_count == before


def test_pruning_rejects_bad_arguments():
    data = _noisy_dataset()
    tree = _grown_tree(data)
    with pytest.raises(ConfigurationError):
        prune(tree, "error_based", data, alpha=1.5)
    with pytest.raises(ConfigurationError):
        prune(tree, "aggressive", data)


def test_classifier_prunes_on_a_holdout():
    data = _noisy_dataset()
    clf = DecisionTreeClassifier(min_samples=2, min_result_split_size=1, test_proportion=0.3,
                                 random_state=0).train(data)
    unpruned = DecisionTreeClassifier(min_samples=2, min_result_split_size=1,
                                      pruning_method="none", random_state=0).train(data)
    assert clf.pruned_nodes_ > 0
    assert clf.tree_.node_count < unpruned.tree_.node_count


def _structure(tree):
    return [(n.stump.splitting_attribute, n.stump.threshold, list(n.children))
            for n in tree.nodes]


@pytest.mark.parametrize("missing", [0.0, 0.15])
def test_error_based_pruning_is_idempotent(missing):
    data = _noisy_dataset(missing=missing)
    evaluation = _noisy_dataset(seed=11, missing=missing)
    tree = _grown_tree(data)
    assert prune(tree, "error_based", evaluation) > 0
    pruned = _structure(tree)
    assert prune(tree, "error_based", evaluation) == 0
    assert _structure(tree) == pruned


def _split_on(feature, threshold, results):
    stump = DecisionStump(min_result_split_size=1)
    stump.splitting_attribute = feature
    stump.threshold = threshold
    stump.num_paths = 2
    stump.path_ratio = np.array([0.5, 0.5])
    stump.results = np.array(results, dtype=float)
    stump.num_numeric, stump.num_categorical, stump.n_classes = 3, 0, 2
    return stump


def _graft_scenario():
    """Root on x0; its right child splits uselessly on x1 above a perfect split on x2."""
    left = [[0.25, 0.5, 0.25 + 0.5 * (i % 2)] for i in range(20)]
    through = [[0.75, 0.5, 0.25 + 0.5 * (i % 2)] for i in range(40)]
    aside = [[0.75, 0.9, 0.25 + 0.5 * (i % 2)] for i in range(10)]
    numeric = np.array(left + through + aside)
    targets = np.where(numeric[:, 0] > 0.5, (numeric[:, 2] > 0.5).astype(int), 0)
    evaluation = DataSet(numeric, np.empty((70, 0), dtype=np.int64), targets, n_classes=2)

    root = _split_on(0, 0.5, [[1.0, 0.0], [0.5, 0.5]])
    useless = _split_on(1, 0.8, [[0.5, 0.5], [0.5, 0.5]])
    perfect = _split_on(2, 0.5, [[1.0, 0.0], [0.0, 1.0]])
    tree = Tree([TreeNode(root, 0, 70, None, -1, [None, 1]),
                 TreeNode(useless, 1, 50, 0, 1, [2, None]),
                 TreeNode(perfect, 2, 40, 1, 0, [None, None])])
    return tree, evaluation, perfect


def test_error_based_pruning_grafts_the_max_child():
    tree, evaluation, perfect = _graft_scenario()
    assert _weighted_error(tree, evaluation) == 5.0
    assert prune(tree, PruningMethod.ERROR_BASED, evaluation, alpha=0.25) == 1
    assert tree.node_count == 2
    grafted = tree.get_child(tree.root, 1)
    assert tree.stump(grafted) is perfect
    assert tree.nodes[grafted].depth == 1
    assert tree.nodes[grafted].parent == tree.root
    assert tree.is_path_disabled(tree.root, 0)
    assert _weighted_error(tree, evaluation) == 0.0
    assert prune(tree, PruningMethod.ERROR_BASED, evaluation, alpha=0.25) == 0
