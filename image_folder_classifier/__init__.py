"""
Transfer-learning image classifier for folders of labeled images.

Scans an assets folder, assembles and splits a shuffled dataset, trains a
classification head on a pretrained backbone and reports predictions on the
held-out test rows.
"""

__version__ = "0.1.0"
