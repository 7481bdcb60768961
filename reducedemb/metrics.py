"""
This module provides the confusion matrix used to score a distance threshold
on labelled face pairs.

A pair is classified as "same person" when its distance is less than or equal
to the threshold. Counting is vectorized with numpy; rates with a zero
denominator are reported as NaN.
"""

import numpy as np


class ConfusionMatrix:
    """
    Confusion matrix of one threshold over two distance populations.

    Attributes:
        tp: Same-person pairs with distance <= threshold
        fn: Same-person pairs with distance > threshold
        tn: Different-person pairs with distance > threshold
        fp: Different-person pairs with distance <= threshold
    """

    def __init__(self, tp, fn, tn, fp):
        self.tp = int(tp)
        self.fn = int(fn)
        self.tn = int(tn)
        self.fp = int(fp)

    @classmethod
    def from_distances(cls, threshold, same, diff):
        """
        Build the confusion matrix for a threshold.

        Args:
            threshold: Distance cutoff
            same: Distances of same-person pairs
            diff: Distances of different-person pairs

        Returns:
            ConfusionMatrix: Counts at the given threshold
        """
        same = np.asarray(same)
        diff = np.asarray(diff)

        tp = int(np.count_nonzero(same <= threshold))
        tn = int(np.count_nonzero(diff > threshold))

        return cls(tp=tp, fn=same.size - tp, tn=tn, fp=diff.size - tn)

    def amount_false(self):
        return self.fn + self.fp

    def amount_correct(self):
        return self.tp + self.tn

    def false_discovery_rate(self):
        """Fraction of pairs classified as same person that are wrong (NaN if none)."""
        if self.fp + self.tp == 0:
            return float("nan")
        return self.fp / (self.fp + self.tp)

    def false_omission_rate(self):
        """Fraction of pairs classified as different people that are wrong (NaN if none)."""
        if self.fn + self.tn == 0:
            return float("nan")
        return self.fn / (self.fn + self.tn)

    def to_dict(self):
        return {"tp": self.tp, "fn": self.fn, "tn": self.tn, "fp": self.fp}

    def __eq__(self, other):
        if not isinstance(other, ConfusionMatrix):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"ConfusionMatrix(tp={self.tp}, fn={self.fn}, tn={self.tn}, fp={self.fp})"
