import numpy as np
import pytest

# outlook (sunny, overcast, rain), temperature (hot, mild, cool),
# humidity (high, normal), wind (weak, strong); label 1 = play
TENNIS_X = np.array([
    [0, 0, 0, 0],
    [0, 0, 0, 1],
    [1, 0, 0, 0],
    [2, 1, 0, 0],
    [2, 2, 1, 0],
    [2, 2, 1, 1],
    [1, 2, 1, 1],
    [0, 1, 0, 0],
    [0, 2, 1, 0],
    [2, 1, 1, 0],
    [0, 1, 1, 1],
    [1, 1, 0, 1],
    [1, 0, 1, 0],
    [2, 1, 0, 1],
])
TENNIS_Y = np.array([0, 0, 1, 1, 1, 0, 1, 0, 1, 1, 1, 1, 1, 0])
TENNIS_FEATURES = ["outlook", "temperature", "humidity", "wind"]


@pytest.fixture
def tennis():
    """Return the classic 14-row play-tennis dataset and its metadata."""
    return TENNIS_X.copy(), TENNIS_Y.copy()


@pytest.fixture
def tennis_params():
    return dict(n_classes=2, value_counts=[3, 3, 2, 2],
                feature_names=TENNIS_FEATURES, class_names=["no", "yes"])
