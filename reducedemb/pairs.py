# reducedemb/pairs.py
import numpy as np
from reducedemb.threshold import DistanceSplit, find_best_threshold, best_amount_false


class PairSamples:
    """Labelled embedding pairs stacked into arrays, with per-dimension squared differences."""

    def __init__(self, is_same, emb1, emb2):
        self.is_same = np.asarray(is_same, dtype=bool)
        self.emb1 = np.asarray(emb1)
        self.emb2 = np.asarray(emb2)

        if self.emb1.shape != self.emb2.shape or self.emb1.ndim != 2:
            raise ValueError(f"Embedding arrays must share a 2D shape, got {self.emb1.shape} and {self.emb2.shape}")
        if self.is_same.shape[0] != self.emb1.shape[0]:
            raise ValueError("One label is needed per pair.")

        diff = self.emb1.astype(np.float64) - self.emb2.astype(np.float64)
        self.sq_diff = diff * diff

    @classmethod
    def from_pairs(cls, pairs, n_dims=None):
        if not pairs:
            n_dims = n_dims or 0
            empty = np.empty((0, n_dims), dtype=np.float32)
            return cls(np.empty(0, dtype=bool), empty, empty)

        is_same = [p[0] for p in pairs]
        emb1 = np.vstack([np.asarray(p[1], dtype=np.float32) for p in pairs])
        emb2 = np.vstack([np.asarray(p[2], dtype=np.float32) for p in pairs])
        return cls(is_same, emb1, emb2)

    def __len__(self):
        return self.is_same.shape[0]

    @property
    def n_dims(self):
        return self.emb1.shape[1]

    def distances(self, indices=None):
        # Sum of squared differences over the selected dimensions
        if indices is None:
            return self.sq_diff.sum(axis=1)
        indices = np.asarray(list(indices), dtype=np.int64)
        return self.sq_diff[:, indices].sum(axis=1)

    def split(self, indices=None):
        return DistanceSplit.from_labels(self.is_same, self.distances(indices))

    def same_diff(self, indices=None):
        d = self.distances(indices)
        return d[self.is_same], d[~self.is_same]

    def evaluate(self, indices=None):
        """Best threshold and confusion matrix over the selected dimensions."""
        return find_best_threshold(*self.same_diff(indices))

    def amount_false(self, indices=None):
        return best_amount_false(*self.same_diff(indices))

    def iter_pairs(self):
        for same, a, b in zip(self.is_same, self.emb1, self.emb2):
            yield bool(same), a, b
