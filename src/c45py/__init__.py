# c45py/__init__.py
"""
c45py: C4.5-style decision tree induction in Python (scikit-learn style).

Exports:
    - C45Classifier
    - Prediction
    - FeatureNode, LeafNode
    - InvalidInputError, NotFittedError
"""
from .exceptions import InvalidInputError, NotFittedError
from .nodes import FeatureNode, LeafNode
from .tree import C45Classifier, Prediction

__all__ = [
    "C45Classifier",
    "Prediction",
    "FeatureNode",
    "LeafNode",
    "InvalidInputError",
    "NotFittedError",
]
__version__ = "0.1.0"
