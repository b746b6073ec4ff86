# -*- coding: utf-8 -*-
"""
c45py.criteria
==============

Split evaluation for the C4.5 inducer: class-frequency distributions, Shannon
entropy, information gain and the threshold search used to binarize
continuous features.

Every function here is a pure function of its arguments.  In particular the
threshold of a continuous feature is passed in explicitly rather than read
from shared state, so the same feature can carry a different threshold at
every node of the tree.
"""

from __future__ import annotations
import numpy as np


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def entropy(p) -> float:
    """Shannon entropy (base 2) of a class-probability vector.

    Uses the convention ``0 * log2(0) = 0``.  An all-zero vector (no rows)
    has entropy 0.
    """
    p = np.asarray(p, dtype=float)
    p = p[p > 0]
    return float(-np.sum(p * np.log2(p)))


def label_entropy(y: np.ndarray, n_classes: int) -> float:
    """Entropy of the label distribution of ``y``."""
    if len(y) == 0:
        return 0.0
    counts = np.bincount(y, minlength=n_classes)
    return entropy(counts / len(y))


def branch_mask(column: np.ndarray, value: int, continuous: bool,
                threshold: float | None = None) -> np.ndarray:
    """Boolean mask of the rows of ``column`` that fall into branch ``value``.

    For a continuous feature branch 0 holds ``x <= threshold`` and branch 1
    holds ``x > threshold``; for a discrete feature the branch holds
    ``x == value`` exactly.
    """
    if continuous:
        if value == 0:
            return column <= threshold
        return column > threshold
    return column == value


# -----------------------------------------------------------------------------
# Gain evaluation
# -----------------------------------------------------------------------------
def frequency(X: np.ndarray, y: np.ndarray, feature: int, value: int,
              n_classes: int, continuous: bool = False,
              threshold: float | None = None):
    """
    Class distribution of the rows selected by one branch of ``feature``.

    Parameters
    ----------
    X : ndarray of shape (n_rows, n_features)
        Feature rows of the current subset.
    y : ndarray of shape (n_rows,)
        Class indices in ``[0, n_classes)``.
    feature : int
        Column being split on.
    value : int
        Branch value (discrete value, or 0/1 for continuous below/above).
    n_classes : int
        Number of classes ``k``.
    continuous : bool, default=False
        Whether ``feature`` is binarized around ``threshold``.
    threshold : float or None
        Split point for a continuous feature.

    Returns
    -------
    fraction : float
        Selected rows over the rows in the subset.
    counts : ndarray of shape (n_classes,)
        Number of selected rows per class.
    probs : ndarray of shape (n_classes,)
        ``counts`` normalized by the selected count; all zeros when the
        branch selects no rows.
    """
    mask = branch_mask(X[:, feature], value, continuous, threshold)
    counts = np.bincount(y[mask], minlength=n_classes)
    selected = int(counts.sum())
    if selected == 0:
        return 0.0, counts, np.zeros(n_classes, dtype=float)
    return selected / len(y), counts, counts / selected


def gain(X: np.ndarray, y: np.ndarray, feature: int, value_count: int,
         n_classes: int, entropy_0: float, continuous: bool = False,
         threshold: float | None = None):
    """
    Information gain of splitting the subset ``(X, y)`` on ``feature``.

    The gain is ``entropy_0 - sum_v fraction_v * entropy(probs_v)`` over the
    ``value_count`` branches.  ``entropy_0`` is supplied by the caller: the
    classifier passes either the entropy of the full training labels or the
    entropy of the current subset (see ``C45Classifier.entropy_base``).

    Returns
    -------
    gain : float
    counts : ndarray of shape (n_classes,)
        Class counts summed over all branches.
    """
    total = np.zeros(n_classes, dtype=int)
    weighted = 0.0
    for v in range(value_count):
        frac, counts, probs = frequency(X, y, feature, v, n_classes,
                                        continuous, threshold)
        weighted += frac * entropy(probs)
        total += counts
    return entropy_0 - weighted, total


# -----------------------------------------------------------------------------
# Threshold selection
# -----------------------------------------------------------------------------
def _row_entropy(P: np.ndarray) -> np.ndarray:
    logs = np.log2(P, out=np.zeros_like(P), where=P > 0)
    return -(P * logs).sum(axis=1)


def find_threshold(X: np.ndarray, y: np.ndarray, feature: int,
                   n_classes: int, entropy_0: float) -> float:
    """
    Binary split point of a continuous feature that maximizes information gain.

    Candidates are the midpoints between adjacent distinct sorted values of
    the column.  The gain of every candidate is ``gain`` with that midpoint
    as threshold, evaluated at once from cumulative class counts over the
    sorted column.  The first maximum wins, so ties resolve to the lowest
    midpoint.  A column with a single distinct value returns that value
    (every row goes to branch 0).
    """
    order = np.argsort(X[:, feature], kind="mergesort")
    v = X[order, feature]
    bd = np.nonzero(v[:-1] != v[1:])[0]
    if bd.size == 0:
        return float(v[0])

    M = np.zeros((len(y), n_classes), dtype=float)
    M[np.arange(len(y)), y[order]] = 1.0
    SW = M.cumsum(axis=0); total = SW[-1]
    left = SW[bd]; right = total - left
    n_left = left.sum(axis=1); n_right = right.sum(axis=1)
    weighted = (n_left / len(y) * _row_entropy(left / n_left[:, None])
                + n_right / len(y) * _row_entropy(right / n_right[:, None]))
    i = int(np.argmax(entropy_0 - weighted))
    return float(0.5 * (v[bd[i]] + v[bd[i] + 1]))
