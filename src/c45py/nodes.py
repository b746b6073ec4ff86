"""Node types of an induced C4.5 tree.

A tree is built from exactly two node variants: ``FeatureNode`` for interior
splits and ``LeafNode`` for terminal predictions.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Tuple, Union
import numpy as np

# ----------------------------- Nodes -----------------------------

@dataclass
class LeafNode:
    predicted_class: int
    counts: np.ndarray  # class counts of the training rows reaching this leaf

    @property
    def n_samples(self) -> int:
        return int(self.counts.sum())


@dataclass
class FeatureNode:
    feature: int
    counts: np.ndarray  # class counts at this node, used for fallback
    path: Tuple[Tuple[int, int], ...] = ()  # (feature, branch) pairs from the root
    threshold: Optional[float] = None  # set only when ``feature`` is continuous
    branches: Dict[int, "Node"] = field(default_factory=dict)

    @property
    def n_samples(self) -> int:
        return int(self.counts.sum())

    @property
    def majority_class(self) -> int:
        return int(np.argmax(self.counts))


Node = Union[FeatureNode, LeafNode]


def iter_nodes(root: Node) -> Iterator[Node]:
    """Yield every node below ``root`` in pre-order, parents before children."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        if isinstance(node, FeatureNode):
            stack.extend(reversed(list(node.branches.values())))


def tree_depth(node: Node) -> int:
    """Largest number of FeatureNodes on any path from ``node`` to a leaf."""
    best = 0
    stack = [(node, 0)]
    while stack:
        node, above = stack.pop()
        if isinstance(node, LeafNode):
            best = max(best, above)
        elif not node.branches:
            best = max(best, above + 1)
        else:
            stack.extend((ch, above + 1) for ch in node.branches.values())
    return best


def n_leaves(node: Node) -> int:
    return sum(isinstance(n, LeafNode) for n in iter_nodes(node))
