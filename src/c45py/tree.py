# -*- coding: utf-8 -*-
"""
c45py.tree
==========

This module implements a C4.5-style decision tree classifier after Quinlan.
Discrete features split multiway, one branch per value; continuous features
are binarized around a threshold that is searched afresh at every node.
Splits are chosen by information gain and the tree grows top down until a
branch is pure, empty, or the depth constraint is reached.

Classification walks the tree from the root.  When a query value has no
branch at a node (a value never seen there during training, or a missing
value) the walk stops and the majority class of that node is returned.

Besides training and prediction the classifier offers an optional
pessimistic post-pruning pass, rule tracing, rule export, pretty printing of
the tree and Graphviz export.
"""

from __future__ import annotations
import logging
from dataclasses import replace
from typing import NamedTuple, Optional

import numpy as np
from sklearn.base import BaseEstimator, ClassifierMixin

from .criteria import branch_mask, find_threshold, frequency, gain, label_entropy
from .exceptions import InvalidInputError, NotFittedError
from .nodes import FeatureNode, LeafNode, Node, iter_nodes, n_leaves, tree_depth

logger = logging.getLogger(__name__)

_ENTROPY_BASES = ("global", "subset")


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def _z_from_cf(cf: float) -> float:
    """
    Approximate a one-sided z-score from a confidence factor.

    For a handful of commonly used confidence factors the z-score is
    tabulated explicitly; for others a simple linear approximation is used.
    """
    table = {0.25: 1.150, 0.20: 1.282, 0.10: 1.645, 0.05: 1.960, 0.01: 2.576}
    if cf in table:
        return table[cf]
    # simple linear approximation between known points
    return max(0.5, 1.150 + (0.25 - cf) * 3.2)


def _error_rate(counts: np.ndarray) -> tuple[float, float]:
    N = float(counts.sum())
    if N <= 0:
        return 1.0, 0.0
    return 1.0 - counts.max() / N, N


def _pessimistic(err_rate: float, N: float, z: float) -> float:
    if N <= 0:
        return 1.0
    se = np.sqrt(err_rate * max(1.0 - err_rate, 0.0) / max(N, 1.0))
    return min(1.0, err_rate + z * se)


class Prediction(NamedTuple):
    """Result of classifying one feature vector.

    ``confidence`` is always ``-1.0``: no posterior is computed along the
    path.  ``klass == -1`` marks a walk that never reached a leaf.
    """
    klass: int
    label: Optional[str]
    confidence: float


_EXHAUSTED = Prediction(-1, None, -1.0)


# -----------------------------------------------------------------------------
# Classifier
# -----------------------------------------------------------------------------
class C45Classifier(ClassifierMixin, BaseEstimator):
    """
    Decision tree classifier inspired by Quinlan's C4.5.

    The tree is grown by information gain.  Each interior node splits on one
    feature: discrete features fan out into one branch per value
    ``0 .. value_counts[f] - 1``, continuous features into two branches
    (``x <= threshold`` and ``x > threshold``).  Branches that receive no
    training rows are left out of the tree.

    Parameters
    ----------
    n_classes : int or None, default=None
        Number of classes ``k``.  Labels must be integers in ``[0, k)``.  If
        ``None`` it is inferred as ``max(y) + 1``.
    continuous : sequence of bool or sequence of int, default=None
        Either a boolean mask of length ``n_features`` or the indices of the
        continuous columns.  All other features are discrete.
    value_counts : sequence of int, default=None
        Number of distinct values of each discrete feature.  Defaults to 2
        for every feature.  Entries for continuous features are forced to 2.
    max_depth : int, default=0
        Maximum number of splitting levels.  ``0`` bounds the depth by the
        number of features, ``-1`` leaves it unconstrained (the tree grows
        until every branch is pure or cannot be partitioned further) and a
        positive value is used as is.
    entropy_base : {"global", "subset"}, default="global"
        Entropy the weighted branch entropies are subtracted from.
        ``"global"`` uses the entropy of the full training labels at every
        node; ``"subset"`` uses the entropy of the node's own rows.  The
        chosen splits are the same under both settings; only the reported
        gains differ.
    feature_names : list[str] or None, default=None
        Names used by the printing and export helpers.
    class_names : list[str] or None, default=None
        Class labels returned by :meth:`classify` and used in exports.
    verbose : int, default=0
        If positive, log a summary of the induced tree at INFO level.

    Attributes
    ----------
    root_ : FeatureNode or LeafNode
        Root of the induced tree.
    n_features_ : int
    n_classes_ : int
    classes_ : ndarray of shape (n_classes,)
        ``arange(n_classes)``.
    continuous_ : ndarray of bool
    value_counts_ : ndarray of int
    max_depth_ : int or None
        Normalized depth bound; ``None`` means unconstrained.
    entropy_0_ : float
        Entropy of the training labels.
    """

    def __init__(
        self,
        *,
        n_classes: int | None = None,
        continuous=None,
        value_counts=None,
        max_depth: int = 0,
        entropy_base: str = "global",
        feature_names: list[str] | None = None,
        class_names: list[str] | None = None,
        verbose: int = 0,
    ):
        self.n_classes = n_classes
        self.continuous = continuous
        self.value_counts = value_counts
        self.max_depth = max_depth
        self.entropy_base = entropy_base
        self.feature_names = feature_names
        self.class_names = class_names
        self.verbose = verbose

    def fit(self, X, y):
        """
        Validate the training data, record its metadata and build the tree.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Numeric feature matrix.  Discrete features hold integer codes.
        y : array-like of shape (n_samples,)
            Class indices in ``[0, n_classes)``.

        Returns
        -------
        self

        Raises
        ------
        InvalidInputError
            If the data or the metadata parameters are malformed.
        """
        X, y = self._check_training_data(X, y)
        n_features = X.shape[1]
        self.n_features_ = n_features
        self.n_classes_ = self._resolve_n_classes(y)
        self.classes_ = np.arange(self.n_classes_)
        self.continuous_ = self._resolve_continuous(n_features)
        self.value_counts_ = self._resolve_value_counts(n_features)
        self.max_depth_ = self._resolve_max_depth(n_features)
        if self.entropy_base not in _ENTROPY_BASES:
            raise InvalidInputError(
                f"entropy_base must be one of {_ENTROPY_BASES}, got {self.entropy_base!r}")
        self.feature_names_ = self._resolve_names(
            self.feature_names, n_features, "feature_names", lambda i: f"f{i}")
        self.class_names_ = self._resolve_names(
            self.class_names, self.n_classes_, "class_names", str)
        self._warn_unreachable_values(X)

        self.entropy_0_ = label_entropy(y, self.n_classes_)
        self.X_, self.y_ = X, y
        return self.train()

    def train(self):
        """
        (Re)build the tree from the data stored by :meth:`fit`.

        Every call induces the whole tree again; the result is the same for
        the same data and parameters.
        """
        if getattr(self, "X_", None) is None:
            raise NotFittedError("Estimator not fitted. Call fit(...) first.")
        self.root_ = self._build_tree(self.X_, self.y_, (), 0)
        self.depth_ = tree_depth(self.root_)
        if self.verbose:
            logger.info("Induced tree: depth=%d, leaves=%d, entropy_0=%.4f",
                        self.depth_, n_leaves(self.root_), self.entropy_0_)
        return self

    def classify(self, z) -> Prediction:
        """
        Classify a single feature vector.

        Returns
        -------
        Prediction
            ``(klass, label, confidence)``.  When the vector's value at some
            node has no branch, the majority class of that node is returned.
            ``confidence`` is always ``-1.0``.

        Raises
        ------
        NotFittedError
            If the estimator has not been fitted.
        InvalidInputError
            If ``z`` does not have one value per feature.
        """
        self._check_fitted()
        z = self._check_vector(z)
        node = self.root_
        for _ in range(max(self.n_features_, self.depth_) + 1):
            if isinstance(node, LeafNode):
                return self._prediction(node.predicted_class)
            child = node.branches.get(self._branch_of(node, z[node.feature]))
            if child is None:
                logger.debug("No branch for %s=%r at %s; falling back to node majority",
                             self.feature_names_[node.feature], z[node.feature], node.path)
                return self._prediction(node.majority_class)
            node = child
        logger.warning("Classification did not reach a leaf within %d steps",
                       max(self.n_features_, self.depth_) + 1)
        return _EXHAUSTED

    def classify_batch(self, X) -> list[Prediction]:
        """Classify every row of ``X``."""
        self._check_fitted()
        X = self._check_matrix(X)
        return [self.classify(x) for x in X]

    def predict(self, X):
        """
        Predict class indices for the provided samples.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)

        Returns
        -------
        ndarray of shape (n_samples,)
        """
        return np.array([p.klass for p in self.classify_batch(X)], dtype=int)

    def get_depth(self) -> int:
        """Largest number of splitting nodes on any root-to-leaf path."""
        self._check_fitted()
        return tree_depth(self.root_)

    def get_n_leaves(self) -> int:
        self._check_fitted()
        return n_leaves(self.root_)

    def prune(self, cf: float = 0.25):
        """
        Pessimistic post-pruning of the induced tree.

        Working bottom-up, a splitting node is collapsed into a leaf that
        predicts its majority class whenever the pessimistic error of that
        leaf is no worse than the sample-weighted pessimistic error of its
        subtree.  The pruned tree is built from new nodes; the previous root
        is left untouched.

        Parameters
        ----------
        cf : float, default=0.25
            Confidence factor in (0, 1).  Smaller values inflate the error
            estimate of small leaves more and therefore prune more.

        Returns
        -------
        self
        """
        self._check_fitted()
        if not 0.0 < cf < 1.0:
            raise InvalidInputError("cf must lie in the open interval (0, 1)")
        z = _z_from_cf(cf)
        before = n_leaves(self.root_)
        self.root_, _, _ = self._prune_tree(self.root_, z)
        self.depth_ = tree_depth(self.root_)
        logger.debug("Pruning with cf=%.3f: %d -> %d leaves", cf, before, n_leaves(self.root_))
        return self

    def predict_rule(self, X) -> list[str]:
        """
        Return the decision rule (antecedent) followed by each input instance.

        A walk that stops on an unseen value ends with ``"<feature> UNSEEN"``.
        """
        self._check_fitted()
        X = self._check_matrix(X)
        return [self._trace_rule(self._check_vector(x)) for x in X]

    def export_rules(self) -> list[str]:
        """
        Export every root-to-leaf rule as ``"<antecedent> => <class>"``.
        """
        self._check_fitted()
        return self._collect_rules(self.root_)

    def export_graphviz(self, filename: str | None = None, *, format: str = "dot") -> str:
        """
        Export the tree structure in Graphviz format.

        Parameters
        ----------
        filename : str or None, default=None
            Basename of the output file (the extension is determined by
            ``format``).  If None, the DOT source is returned and no file is
            written.
        format : str, default="dot"
            ``'dot'`` writes the DOT source directly; other formats
            (``'png'``, ``'pdf'``, ``'svg'``) invoke the system ``dot``
            command and fall back to a ``.dot`` file if it is unavailable.

        Returns
        -------
        str
            Path to the written file, or the DOT source if filename is None.
        """
        self._check_fitted()
        try:
            import graphviz
        except ImportError:
            raise RuntimeError("Graphviz is required for export_graphviz but not installed.")
        dot = graphviz.Digraph(format=format)
        self._add_graph_nodes(dot, self.root_)

        if filename is None:
            return dot.source
        if format.lower() == "dot":
            path = f"{filename}.dot"
            dot.save(path)
            return path
        try:
            dot.render(filename, cleanup=True)
            return f"{filename}.{format}"
        except graphviz.ExecutableNotFound:
            logger.warning("Graphviz 'dot' executable not found; writing DOT source instead")
            fallback_path = f"{filename}.dot"
            dot.save(fallback_path)
            return fallback_path

    def print_tree(self):
        """Pretty-print the decision tree to ``stdout``."""
        self._check_fitted()
        self._print_node(self.root_)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------
    def _check_training_data(self, X, y):
        try:
            X = np.asarray(X, dtype=float)
        except (TypeError, ValueError) as e:
            raise InvalidInputError("X must be a numeric matrix") from e
        if X.ndim != 2:
            raise InvalidInputError(f"X must be 2-dimensional, got {X.ndim} dimension(s)")
        if X.shape[1] < 1:
            raise InvalidInputError("X must have at least one feature column")
        if X.shape[0] < 1:
            raise InvalidInputError("X must have at least one row")
        if np.isnan(X).any():
            raise InvalidInputError("X must not contain missing values")

        y = np.asarray(y)
        if y.ndim != 1 or len(y) != X.shape[0]:
            raise InvalidInputError(
                f"y must hold one label per row of X ({X.shape[0]} rows, got shape {y.shape})")
        if y.dtype.kind == "f":
            if not np.all(np.mod(y, 1) == 0):
                raise InvalidInputError("labels must be integer class indices")
        elif y.dtype.kind not in "iu":
            raise InvalidInputError("labels must be integer class indices")
        return X, y.astype(int)

    def _resolve_n_classes(self, y) -> int:
        k = int(y.max()) + 1 if self.n_classes is None else int(self.n_classes)
        if k < 1:
            raise InvalidInputError("n_classes must be at least 1")
        if y.min() < 0 or y.max() >= k:
            raise InvalidInputError(f"labels must lie in [0, {k})")
        return k

    def _resolve_continuous(self, n_features: int) -> np.ndarray:
        mask = np.zeros(n_features, dtype=bool)
        if self.continuous is None:
            return mask
        flags = list(self.continuous)
        if flags and all(isinstance(v, (bool, np.bool_)) for v in flags):
            if len(flags) != n_features:
                raise InvalidInputError("continuous mask length must match X.shape[1]")
            return np.array(flags, dtype=bool)
        for i in flags:
            if not 0 <= int(i) < n_features:
                raise InvalidInputError(f"continuous feature index {i} out of range")
            mask[int(i)] = True
        return mask

    def _resolve_value_counts(self, n_features: int) -> np.ndarray:
        if self.value_counts is None:
            return np.full(n_features, 2, dtype=int)
        vc = np.asarray(self.value_counts, dtype=int).copy()
        if vc.shape != (n_features,):
            raise InvalidInputError("value_counts length must match X.shape[1]")
        if (vc < 1).any():
            raise InvalidInputError("value_counts must be positive")
        vc[self.continuous_] = 2
        return vc

    def _resolve_max_depth(self, n_features: int) -> int | None:
        d = self.max_depth
        if d is None:
            return None
        try:
            depth = int(d)
        except (TypeError, ValueError):
            depth = None
        if depth is None or depth != d or depth < -1:
            raise InvalidInputError(f"max_depth must be an integer >= -1, got {d!r}")
        if depth == -1:
            return None
        return n_features if depth == 0 else depth

    @staticmethod
    def _resolve_names(names, size: int, what: str, default) -> list[str]:
        if names is None:
            return [default(i) for i in range(size)]
        if len(names) != size:
            raise InvalidInputError(f"{what} length must be {size}")
        return [str(n) for n in names]

    def _warn_unreachable_values(self, X):
        for j in np.flatnonzero(~self.continuous_):
            col = X[:, j]
            bad = (col != np.floor(col)) | (col < 0) | (col >= self.value_counts_[j])
            if bad.any():
                logger.warning(
                    "Feature %s: %d training value(s) outside the branch values 0..%d "
                    "cannot reach any branch", self.feature_names_[j], int(bad.sum()),
                    self.value_counts_[j] - 1)

    def _check_fitted(self):
        if getattr(self, "root_", None) is None:
            raise NotFittedError("Estimator not fitted. Call fit(...) first.")

    def _check_matrix(self, X) -> np.ndarray:
        try:
            X = np.asarray(X, dtype=float)
        except (TypeError, ValueError) as e:
            raise InvalidInputError("query rows must form a numeric matrix") from e
        if X.ndim == 1:
            X = X.reshape(1, -1)
        if X.ndim != 2 or X.shape[1] != self.n_features_:
            raise InvalidInputError(
                f"expected rows of {self.n_features_} features, got shape {X.shape}")
        return X

    def _check_vector(self, z) -> np.ndarray:
        try:
            z = np.asarray(z, dtype=float).ravel()
        except (TypeError, ValueError) as e:
            raise InvalidInputError("query vector must be numeric") from e
        if z.shape[0] != self.n_features_:
            raise InvalidInputError(
                f"expected a vector of {self.n_features_} features, got {z.shape[0]}")
        return z

    # ------------------------------------------------------------------
    # Tree construction (information gain)
    # ------------------------------------------------------------------
    def _build_tree(self, X, y, path: tuple, depth: int) -> Node:
        """
        Build the subtree for the rows ``(X, y)``.

        Nodes are grown depth first from an explicit work stack, so the
        depth of the tree is not limited by the interpreter's recursion
        limit.

        Parameters
        ----------
        X : ndarray of shape (n_samples, n_features)
            Training rows reaching this node.
        y : ndarray of shape (n_samples,)
            Their labels.
        path : tuple of (feature, branch) pairs
            Splits taken from the root to this node.
        depth : int
            Number of splitting nodes above this one.

        Returns
        -------
        FeatureNode or LeafNode
        """
        root, children = self._grow_node(X, y, path, depth)
        pending = list(reversed(children))
        while pending:
            parent, b, X_b, y_b, path_b, depth_b = pending.pop()
            parent.branches[b], children = self._grow_node(X_b, y_b, path_b, depth_b)
            pending.extend(reversed(children))
        return root

    def _grow_node(self, X, y, path: tuple, depth: int):
        """
        Create the node for ``(X, y)``.

        Returns the node and the branches still to be grown, as
        ``(parent, branch, X, y, path, depth)`` tuples.  Their slots in
        ``parent.branches`` are reserved so branches keep their value order.
        """
        k = self.n_classes_
        counts = np.bincount(y, minlength=k)
        if np.count_nonzero(counts) == 1:
            return LeafNode(int(np.argmax(counts)), counts), []

        feat, thr, node_counts = self._best_split(X, y)
        node = FeatureNode(feature=feat, counts=node_counts, path=path, threshold=thr)
        cont = bool(self.continuous_[feat])
        last_level = self.max_depth_ is not None and depth >= self.max_depth_ - 1
        pending = []

        for b in range(self.value_counts_[feat]):
            if last_level:
                _, cnt, _ = frequency(X, y, feat, b, k, cont, thr)
                node.branches[b] = LeafNode(int(np.argmax(cnt)), cnt)
                continue
            mask = branch_mask(X[:, feat], b, cont, thr)
            n_sel = int(mask.sum())
            if n_sel == 0:
                continue
            y_b = y[mask]
            cnt = np.bincount(y_b, minlength=k)
            # a branch holding every row of the node cannot be partitioned further
            if np.count_nonzero(cnt) == 1 or n_sel == len(y):
                logger.debug("Leaf at %s: class %d, counts=%s",
                             path + ((feat, b),), int(np.argmax(cnt)), cnt.tolist())
                node.branches[b] = LeafNode(int(np.argmax(cnt)), cnt)
            else:
                node.branches[b] = None
                pending.append((node, b, X[mask], y_b, path + ((feat, b),), depth + 1))
        return node, pending

    def _best_split(self, X, y):
        """Return ``(feature, threshold, counts)`` of the highest-gain split."""
        k = self.n_classes_
        e0 = self.entropy_0_ if self.entropy_base == "global" else label_entropy(y, k)
        best_gain, best_feat, best_thr, best_counts = -np.inf, None, None, None
        for f in range(self.n_features_):
            cont = bool(self.continuous_[f])
            thr = find_threshold(X, y, f, k, e0) if cont else None
            g, cnt = gain(X, y, f, self.value_counts_[f], k, e0, cont, thr)
            if g > best_gain:
                best_gain, best_feat, best_thr, best_counts = g, f, thr, cnt
        logger.debug("Split %d rows on %s (gain=%.4f, threshold=%s)",
                     len(y), self.feature_names_[best_feat], best_gain, best_thr)
        return best_feat, best_thr, best_counts

    # ------------------------------------------------------------------
    # Prediction
    # ------------------------------------------------------------------
    def _branch_of(self, node: FeatureNode, val: float) -> int | None:
        if np.isnan(val):
            return None
        if self.continuous_[node.feature]:
            return 0 if val <= node.threshold else 1
        if not np.isfinite(val):
            return None
        return int(np.floor(val))

    def _prediction(self, klass: int) -> Prediction:
        return Prediction(klass, self.class_names_[klass], -1.0)

    # ------------------------------------------------------------------
    # Pruning
    # ------------------------------------------------------------------
    def _prune_tree(self, root: Node, z: float):
        """
        Return ``(new_root, pessimistic_error, n_samples)`` for ``root``.

        Nodes are visited children first (reversed pre-order) without
        recursion.
        """
        order = list(iter_nodes(root))
        done = {}
        for node in reversed(order):
            if isinstance(node, LeafNode):
                err_leaf, N = _error_rate(node.counts)
                done[id(node)] = node, _pessimistic(err_leaf, N, z), N
                continue

            branches = {}
            total_N = 0.0
            pess_sum = 0.0
            for b, ch in node.branches.items():
                branches[b], pess, n_ch = done[id(ch)]
                pess_sum += pess * n_ch
                total_N += n_ch
            pess_subtree = pess_sum / max(total_N, 1.0)

            err_leaf, N_here = _error_rate(node.counts)
            pess_leaf = _pessimistic(err_leaf, N_here, z)

            if pess_leaf <= pess_subtree:
                done[id(node)] = LeafNode(node.majority_class, node.counts.copy()), pess_leaf, N_here
            else:
                done[id(node)] = replace(node, branches=branches), pess_subtree, total_N
        return done[id(root)]

    # ------------------------------------------------------------------
    # Rule tracing / Graphviz / printing helpers
    # ------------------------------------------------------------------
    def _condition(self, node: FeatureNode, branch: int) -> str:
        name = self.feature_names_[node.feature]
        if self.continuous_[node.feature]:
            op = "<=" if branch == 0 else ">"
            return f"{name} {op} {node.threshold:.4f}"
        return f"{name} == {branch}"

    def _trace_rule(self, x) -> str:
        parts = []
        node = self.root_
        while isinstance(node, FeatureNode):
            b = self._branch_of(node, x[node.feature])
            if b not in node.branches:
                parts.append(f"{self.feature_names_[node.feature]} UNSEEN")
                break
            parts.append(self._condition(node, b))
            node = node.branches[b]
        return " AND ".join(parts) if parts else "<root>"

    def _collect_rules(self, root: Node) -> list[str]:
        rules: list[str] = []
        stack = [(root, ())]
        while stack:
            node, parts = stack.pop()
            if isinstance(node, LeafNode):
                body = " AND ".join(parts) if parts else "<root>"
                rules.append(f"{body} => {self.class_names_[node.predicted_class]}")
                continue
            for b, ch in sorted(node.branches.items(), reverse=True):
                stack.append((ch, parts + (self._condition(node, b),)))
        return rules

    def _add_graph_nodes(self, dot, root: Node):
        stack = [(root, "n")]
        while stack:
            node, name = stack.pop()
            if isinstance(node, LeafNode):
                dot.node(name, f"class={self.class_names_[node.predicted_class]}\n{node.counts.tolist()}",
                         shape="box", style="filled", color="lightgrey")
                continue
            label = f"{self.feature_names_[node.feature]}\n{node.counts.tolist()}"
            dot.node(name, label, shape="ellipse", style="filled", color="lightblue")
            for b, ch in sorted(node.branches.items(), reverse=True):
                ch_id = f"{name}_{b}"
                edge = (("<=" if b == 0 else ">") + f" {node.threshold:.4f}"
                        if self.continuous_[node.feature] else f"= {b}")
                dot.edge(name, ch_id, label=edge)
                stack.append((ch, ch_id))

    def _print_node(self, root: Node):
        # stack items are either (node, indent) or a line ready to print
        stack = [(root, "")]
        while stack:
            item = stack.pop()
            if isinstance(item, str):
                print(item)
                continue
            node, indent = item
            if isinstance(node, LeafNode):
                print(f"{indent}Predict {self.class_names_[node.predicted_class]} "
                      f"| counts={node.counts.tolist()}")
                continue
            stack.append(f"{indent}  Predict {self.class_names_[node.majority_class]} "
                         f"| counts={node.counts.tolist()}")
            stack.append(f"{indent}else:")
            for b, ch in sorted(node.branches.items(), reverse=True):
                stack.append((ch, indent + "  "))
                stack.append(f"{indent}if {self._condition(node, b)}:")
