import numpy as np
import pytest
from sklearn.base import clone
from c45py import C45Classifier, FeatureNode, InvalidInputError, NotFittedError, Prediction


def _fitted(tennis, tennis_params, **kw):
    X, y = tennis
    return C45Classifier(**tennis_params, **kw).fit(X, y)


def test_classify_follows_branches(tennis, tennis_params):
    clf = _fitted(tennis, tennis_params)
    assert clf.classify([0, 1, 0, 0]) == Prediction(0, "no", -1.0)
    assert clf.classify([0, 1, 1, 0]) == Prediction(1, "yes", -1.0)
    assert clf.classify([1, 0, 0, 1]).klass == 1
    assert clf.classify([2, 1, 0, 0]).klass == 1
    assert clf.classify([2, 1, 0, 1]).klass == 0


def test_discrete_values_are_floored(tennis, tennis_params):
    clf = _fitted(tennis, tennis_params)
    assert clf.classify([1.7, 0, 0, 0]).klass == 1


def test_unseen_value_at_root_falls_back_to_majority(tennis, tennis_params):
    clf = _fitted(tennis, tennis_params)
    pred = clf.classify([5, 0, 0, 0])
    assert pred.klass == int(np.argmax(clf.root_.counts)) == 1
    assert pred.confidence == -1.0


def test_unseen_value_at_inner_node_uses_that_node(tennis, tennis_params):
    clf = _fitted(tennis, tennis_params)
    # sunny node holds counts [3, 2]
    pred = clf.classify([0, 0, 3, 0])
    assert pred == Prediction(0, "no", -1.0)


def test_missing_value_falls_back(tennis, tennis_params):
    clf = _fitted(tennis, tennis_params)
    assert clf.classify([np.nan, 0, 0, 0]).klass == 1
    assert clf.classify([2, 1, 0, None]).klass == int(np.argmax(clf.root_.branches[2].counts))


def test_fallback_is_deterministic_for_random_trees():
    rng = np.random.default_rng(5)
    X = rng.integers(0, 3, size=(50, 3))
    y = rng.integers(0, 3, size=50)
    clf = C45Classifier(n_classes=3, value_counts=[3, 3, 3]).fit(X, y)
    z = np.zeros(3)
    z[clf.root_.feature] = 9
    for _ in range(3):
        assert clf.classify(z) == Prediction(int(np.argmax(clf.root_.counts)),
                                             str(int(np.argmax(clf.root_.counts))), -1.0)


def test_malformed_tree_returns_sentinel(tennis, tennis_params):
    clf = _fitted(tennis, tennis_params)
    loop = FeatureNode(feature=0, counts=np.array([1, 1]))
    loop.branches[0] = loop
    good_root = clf.root_
    clf.root_ = loop
    assert clf.classify([0, 0, 0, 0]) == Prediction(-1, None, -1.0)
    clf.root_ = good_root
    assert clf.classify([0, 0, 0, 0]).klass == 0


def test_predict_and_batch(tennis, tennis_params):
    X, y = tennis
    clf = _fitted(tennis, tennis_params)
    preds = clf.predict(X)
    assert preds.shape == y.shape
    assert (preds == y).all()
    batch = clf.classify_batch(X[:3])
    assert [p.klass for p in batch] == y[:3].tolist()


def test_sklearn_compatibility(tennis, tennis_params):
    X, y = tennis
    clf = C45Classifier(max_depth=1, **tennis_params)
    params = clf.get_params()
    assert params["max_depth"] == 1
    twin = clone(clf).fit(X, y)
    assert twin.classes_.tolist() == [0, 1]
    assert 0.0 < twin.score(X, y) < 1.0


def test_classifier_not_fitted_raises():
    clf = C45Classifier()
    with pytest.raises(NotFittedError):
        clf.predict([[1, 0]])
    with pytest.raises(NotFittedError):
        clf.classify([1, 0])
    with pytest.raises(NotFittedError):
        clf.train()
    with pytest.raises(NotFittedError):
        clf.export_rules()


@pytest.mark.parametrize("X, y, kw", [
    ([[0, 1], [1, 0]], [0], {}),                          # length mismatch
    ([[0, 1], [1, 0]], [0, 2], {"n_classes": 2}),         # label out of range
    ([[0, 1], [1, 0]], [0, -1], {}),                      # negative label
    ([[0, 1], [1, 0]], [0.5, 1.0], {}),                   # non-integer labels
    ([[0, 1], [1, 0]], ["a", "b"], {}),                   # non-numeric labels
    (np.zeros((2, 0)), [0, 1], {}),                       # no feature columns
    ([["a", 1], ["b", 0]], [0, 1], {}),                   # non-numeric features
    ([[np.nan, 1], [1, 0]], [0, 1], {}),                  # missing training value
    ([[0, 1], [1, 0]], [0, 1], {"max_depth": -2}),
    ([[0, 1], [1, 0]], [0, 1], {"max_depth": 1.5}),
    ([[0, 1], [1, 0]], [0, 1], {"value_counts": [2]}),
    ([[0, 1], [1, 0]], [0, 1], {"value_counts": [2, 0]}),
    ([[0, 1], [1, 0]], [0, 1], {"continuous": [True]}),
    ([[0, 1], [1, 0]], [0, 1], {"continuous": [5]}),
    ([[0, 1], [1, 0]], [0, 1], {"entropy_base": "local"}),
    ([[0, 1], [1, 0]], [0, 1], {"feature_names": ["a"]}),
    ([[0, 1], [1, 0]], [0, 1], {"class_names": ["a", "b", "c"]}),
])
def test_invalid_input_raises(X, y, kw):
    with pytest.raises(InvalidInputError):
        C45Classifier(**kw).fit(X, y)


def test_query_vector_width_is_checked(tennis, tennis_params):
    clf = _fitted(tennis, tennis_params)
    with pytest.raises(InvalidInputError):
        clf.classify([0, 1])


def test_ragged_query_rows_are_rejected(tennis, tennis_params):
    clf = _fitted(tennis, tennis_params)
    with pytest.raises(InvalidInputError):
        clf.predict([[0, 1, 0, 0], [0, 1]])
    with pytest.raises(InvalidInputError):
        clf.predict_rule([[0, 1, 0, 0], [0, 1]])
    with pytest.raises(InvalidInputError):
        clf.classify_batch([[0, 1]])


def test_out_of_range_discrete_values_are_logged(caplog):
    X = np.array([[0], [1], [2], [1]])
    y = np.array([0, 1, 1, 1])
    with caplog.at_level("WARNING", logger="c45py.tree"):
        C45Classifier().fit(X, y)
    assert "cannot reach any branch" in caplog.text


def test_verbose_logs_summary(tennis, tennis_params, caplog):
    with caplog.at_level("INFO", logger="c45py.tree"):
        _fitted(tennis, tennis_params, verbose=1)
    assert "leaves=5" in caplog.text


def test_classifier_rule_export(tennis, tennis_params):
    X, _ = tennis
    clf = _fitted(tennis, tennis_params)
    rules = clf.predict_rule(X)
    assert len(rules) == len(X)
    assert rules[0] == "outlook == 0 AND humidity == 0"
    assert clf.predict_rule([[5, 0, 0, 0]]) == ["outlook UNSEEN"]
    tree_rules = clf.export_rules()
    assert len(tree_rules) == 5
    assert all("=>" in r for r in tree_rules)
    assert "outlook == 1 => yes" in tree_rules


def test_rules_for_leaf_root():
    clf = C45Classifier(n_classes=2).fit([[0], [1]], [1, 1])
    assert clf.export_rules() == ["<root> => 1"]
    assert clf.predict_rule([[0]]) == ["<root>"]


def test_continuous_rules():
    X = np.array([[65.0], [70.0], [75.0], [80.0], [85.0]])
    y = np.array([0, 0, 1, 1, 1])
    clf = C45Classifier(continuous=[0], feature_names=["temp"]).fit(X, y)
    assert clf.export_rules() == ["temp <= 72.5000 => 0", "temp > 72.5000 => 1"]
    assert clf.classify([71.0]).klass == 0
    assert clf.classify([73.0]).klass == 1


def test_print_tree_order(capsys):
    X = np.array([[65.0], [70.0], [75.0], [80.0], [85.0]])
    y = np.array([0, 0, 1, 1, 1])
    C45Classifier(continuous=[0], feature_names=["temp"]).fit(X, y).print_tree()
    assert capsys.readouterr().out.splitlines() == [
        "if temp <= 72.5000:",
        "  Predict 0 | counts=[2, 0]",
        "if temp > 72.5000:",
        "  Predict 1 | counts=[0, 3]",
        "else:",
        "  Predict 1 | counts=[2, 3]",
    ]


def test_print_tree(tennis, tennis_params, capsys):
    clf = _fitted(tennis, tennis_params)
    clf.print_tree()
    out = capsys.readouterr().out
    assert "if outlook == 1:" in out
    assert "Predict yes | counts=[0, 4]" in out


def test_classifier_graphviz_export(tennis, tennis_params, tmp_path):
    pytest.importorskip("graphviz")
    clf = _fitted(tennis, tennis_params)
    source = clf.export_graphviz()
    assert "digraph" in source
    out_path = clf.export_graphviz(str(tmp_path / "tree"), format="dot")
    assert out_path.endswith(".dot")
    assert (tmp_path / "tree.dot").exists()


def test_prune_collapses_weak_split():
    X = np.array([[0]] * 7 + [[1]] * 3)
    y = np.array([0] * 6 + [1] + [0, 0, 1])
    clf = C45Classifier(n_classes=2).fit(X, y)
    assert isinstance(clf.root_, FeatureNode)
    old_root = clf.root_
    clf.prune(cf=0.25)
    assert clf.get_n_leaves() == 1
    assert clf.root_.predicted_class == 0
    assert clf.root_.counts.tolist() == [8, 2]
    # the previous tree is left as it was
    assert len(old_root.branches) == 2


def test_prune_keeps_pure_tree(tennis, tennis_params):
    X, y = tennis
    clf = _fitted(tennis, tennis_params).prune()
    assert clf.get_n_leaves() == 5
    assert clf.score(X, y) == 1.0


def test_prune_rejects_bad_cf(tennis, tennis_params):
    clf = _fitted(tennis, tennis_params)
    with pytest.raises(InvalidInputError):
        clf.prune(cf=1.5)
