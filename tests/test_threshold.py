"""Tests for the optimal threshold search."""

import math

import numpy as np
import pytest

from reducedemb.metrics import ConfusionMatrix
from reducedemb.threshold import (
    DistanceSplit, best_amount_false, find_best_threshold, threshold_rates
)


def naive_search(same, diff):
    """Scan every observed distance and keep the first minimum."""
    candidates = sorted(set(list(same) + list(diff)))
    errors = [ConfusionMatrix.from_distances(t, same, diff).amount_false() for t in candidates]
    best = errors.index(min(errors))
    return candidates[best], errors[best], candidates, errors


class TestFindBestThreshold:
    def test_worked_example(self):
        # thresholds 1 and 4 both give two errors
        threshold, cm = find_best_threshold([1, 4, 9], [2, 5, 8])
        assert threshold == 1
        assert cm == ConfusionMatrix(tp=1, fn=2, tn=3, fp=0)
        assert best_amount_false([1, 4, 9], [2, 5, 8]) == 2

    def test_worked_example_is_minimum_over_candidates(self):
        _, _, candidates, errors = naive_search([1, 4, 9], [2, 5, 8])
        assert candidates == [1, 2, 4, 5, 8, 9]
        assert errors == [2, 3, 2, 3, 4, 3]

    def test_ties_go_to_smallest_candidate(self):
        # thresholds 1 and 3 both give one error
        threshold, cm = find_best_threshold([1, 3], [2])
        assert threshold == 1
        assert cm.amount_false() == 1

    def test_matches_naive_scan(self):
        rng = np.random.RandomState(7)
        for _ in range(20):
            same = rng.randint(0, 30, size=rng.randint(1, 25)).astype(float)
            diff = rng.randint(10, 50, size=rng.randint(1, 25)).astype(float)
            threshold, cm = find_best_threshold(same, diff)
            naive_threshold, naive_false, candidates, errors = naive_search(same, diff)

            assert threshold == naive_threshold
            assert threshold in candidates
            assert cm.amount_false() == naive_false
            assert all(cm.amount_false() <= e for e in errors)

    def test_single_population(self):
        threshold, cm = find_best_threshold([3.0, 1.0], [])
        assert threshold == 3.0
        assert cm.amount_false() == 0

    def test_integer_distances(self):
        threshold, _ = find_best_threshold(np.array([10, 20]), np.array([40, 50]))
        assert threshold == 20
        assert isinstance(threshold, int)

    def test_empty_raises(self):
        with pytest.raises(ValueError):
            find_best_threshold([], [])


class TestThresholdRates:
    def test_rates_at_best_threshold(self):
        threshold, fdr, for_ = threshold_rates([1, 4, 9], [2, 5, 8])
        assert threshold == 1
        assert fdr == 0.0
        assert for_ == pytest.approx(0.4)

    def test_rates_nan_when_no_negative_classification(self):
        # Best threshold classifies everything as same person
        _, fdr, for_ = threshold_rates([1, 2], [])
        assert fdr == 0.0
        assert math.isnan(for_)


class TestDistanceSplit:
    def test_split_by_label(self):
        split = DistanceSplit.from_labels([True, False, True, False, True, False], [1, 2, 4, 5, 9, 8])

        assert split.same == [1, 4, 9]
        assert split.diff == [2, 5, 8]
        assert split.best_amount_false() == 2
        assert split.summary() == {"threshold": 1, "fp": 0, "fn": 2}

    def test_from_labels(self):
        split = DistanceSplit.from_labels([True, False, True], [0.5, 2.0, 0.7])
        assert split.same == [0.5, 0.7]
        assert split.diff == [2.0]
        threshold, cm = split.best_threshold()
        assert threshold == 0.7
        assert cm.amount_false() == 0

    def test_relative_summary(self):
        row = DistanceSplit([1, 4, 9], [2, 5, 8]).relative_summary()
        assert row["threshold"] == 1
        assert row["fdr"] == 0.0
        assert row["for"] == pytest.approx(0.4)
