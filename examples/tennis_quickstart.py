import logging
import numpy as np
from c45py import C45Classifier

logging.basicConfig(level=logging.INFO)

feats = ["outlook", "temperature", "humidity", "wind", "humidity_pct"]
# outlook: sunny/overcast/rain, temperature: hot/mild/cool,
# humidity: high/normal, wind: weak/strong; humidity_pct is continuous
X = np.array([
    [0, 0, 0, 0, 85], [0, 0, 0, 1, 90], [1, 0, 0, 0, 86], [2, 1, 0, 0, 96],
    [2, 2, 1, 0, 80], [2, 2, 1, 1, 70], [1, 2, 1, 1, 65], [0, 1, 0, 0, 95],
    [0, 2, 1, 0, 70], [2, 1, 1, 0, 80], [0, 1, 1, 1, 70], [1, 1, 0, 1, 90],
    [1, 0, 1, 0, 75], [2, 1, 0, 1, 91],
], dtype=float)
y = np.array([0, 0, 1, 1, 1, 0, 1, 0, 1, 1, 1, 1, 1, 0])

clf = C45Classifier(
    n_classes=2, continuous=[4], value_counts=[3, 3, 2, 2, 2],
    feature_names=feats, class_names=["No", "Yes"], verbose=1,
)
clf.fit(X, y)
clf.print_tree()
print("training accuracy:", clf.score(X, y))

for z in ([0, 1, 0, 1, 88], [1, 0, 0, 0, 60], [7, 0, 0, 0, 60]):
    print(z, "->", clf.classify(z), "|", clf.predict_rule([z])[0])

try:
    print(clf.export_graphviz())
except RuntimeError as e:
    print(f"Skipping Graphviz export: {e}")
