"""
This module implements the search for the distance threshold that minimizes
the number of misclassified face pairs.

Key concepts:
- Candidate thresholds: every observed distance of both populations. The
  error count only changes at observed values, so the optimum over the reals
  is always one of them.
- Tie-break: the smallest candidate reaching the minimum error is returned.

The search sorts both populations once and counts with binary search, which
gives the same result as rescanning all distances for every candidate.
"""

import numpy as np
from reducedemb.metrics import ConfusionMatrix


def _error_curve(same, diff):
    same = np.sort(np.asarray(same).ravel())
    diff = np.sort(np.asarray(diff).ravel())

    candidates = np.unique(np.concatenate([same, diff]))
    if candidates.size == 0:
        raise ValueError("No distances given, cannot search a threshold.")

    # Number of distances <= candidate in each population
    tp = np.searchsorted(same, candidates, side="right")
    fp = np.searchsorted(diff, candidates, side="right")
    errors = (same.size - tp) + fp

    return candidates, errors


def find_best_threshold(same, diff):
    """
    Find the threshold minimizing false negatives plus false positives.

    Args:
        same: Distances of same-person pairs
        diff: Distances of different-person pairs

    Returns:
        tuple: (threshold, confusion_matrix) at the first candidate reaching
               the minimum error

    Raises:
        ValueError: If both populations are empty
    """
    candidates, errors = _error_curve(same, diff)
    best = candidates[int(np.argmin(errors))]

    threshold = best.item()
    return threshold, ConfusionMatrix.from_distances(threshold, same, diff)


def best_amount_false(same, diff):
    """Error count (fn + fp) at the optimal threshold."""
    _, errors = _error_curve(same, diff)
    return int(errors.min())


def threshold_rates(same, diff):
    """
    Rate-based report of the optimal threshold.

    Returns:
        tuple: (threshold, false_discovery_rate, false_omission_rate)
    """
    threshold, cm = find_best_threshold(same, diff)
    return threshold, cm.false_discovery_rate(), cm.false_omission_rate()


class DistanceSplit:
    """
    Pair distances split by label, scored at the optimal threshold.

    Attributes:
        same: Distances of same-person pairs
        diff: Distances of different-person pairs
    """

    def __init__(self, same=None, diff=None):
        self.same = list(same) if same is not None else []
        self.diff = list(diff) if diff is not None else []

    @classmethod
    def from_labels(cls, is_same, distances):
        """Split an array of distances with a boolean label array."""
        is_same = np.asarray(is_same, dtype=bool)
        distances = np.asarray(distances)
        return cls(same=distances[is_same].tolist(), diff=distances[~is_same].tolist())

    def best_threshold(self):
        return find_best_threshold(self.same, self.diff)

    def best_amount_false(self):
        return best_amount_false(self.same, self.diff)

    def rates(self):
        return threshold_rates(self.same, self.diff)

    def summary(self):
        """Row with threshold, false positives and false negatives at the optimum."""
        threshold, cm = self.best_threshold()
        return {"threshold": threshold, "fp": cm.fp, "fn": cm.fn}

    def relative_summary(self):
        """Row with threshold, false discovery rate and false omission rate at the optimum."""
        threshold, fdr, for_ = self.rates()
        return {"threshold": threshold, "fdr": fdr, "for": for_}
