"""Tests for the dimension subset search strategies."""

from itertools import combinations

import numpy as np
import pytest

from conftest import INFORMATIVE, N_DIMS
from reducedemb.pairs import PairSamples
from reducedemb.subsets import (
    best_elements_full, best_elements_greedy, heatmap, heatmap_scores,
    random_dims, random_dims_full, truncate_embeddings
)


class TestPairSamples:
    def test_distance_over_subset(self):
        samples = PairSamples.from_pairs([(True, [0.0, 1.0, 2.0], [1.0, 1.0, 0.0])])
        assert samples.distances().tolist() == [5.0]
        assert samples.distances([0]).tolist() == [1.0]
        assert samples.distances([1]).tolist() == [0.0]
        assert samples.distances([]).tolist() == [0.0]

    def test_same_diff_split(self, samples):
        same, diff = samples.same_diff()
        assert len(same) == 30
        assert len(diff) == 30

    def test_shape_mismatch_raises(self):
        with pytest.raises(ValueError):
            PairSamples([True], np.zeros((1, 3)), np.zeros((1, 4)))

    def test_informative_dims_separate_perfectly(self, samples):
        _, cm = samples.evaluate(INFORMATIVE)
        assert cm.amount_false() == 0


class TestTruncation:
    def test_rows_from_full_length_down(self, samples):
        df = truncate_embeddings(samples, verbose=False)
        assert df["embedding_dimensions"].tolist() == list(range(N_DIMS, 0, -1))
        assert list(df.columns) == ["embedding_dimensions", "threshold", "fp", "fn"]

    def test_matches_prefix_evaluation(self, samples):
        df = truncate_embeddings(samples, verbose=False)
        row = df[df["embedding_dimensions"] == 3].iloc[0]
        threshold, cm = samples.evaluate(range(3))
        assert row["threshold"] == pytest.approx(threshold)
        assert (row["fp"], row["fn"]) == (cm.fp, cm.fn)

    def test_relative_with_roc(self, samples):
        df = truncate_embeddings(samples, relative=True, with_roc=True, verbose=False)
        assert list(df.columns) == ["embedding_dimensions", "threshold", "fdr", "for", "auc", "eer"]
        assert df["auc"].between(0, 1).all()


class TestRandomDims:
    def test_trials_are_reported_individually(self, samples):
        df = random_dims(samples, 3, rng=np.random.default_rng(0))
        assert len(df) == 100
        assert (df["amount_dimensions"] == 3).all()
        for indices in df["indices"]:
            assert len(set(indices)) == 3
            assert all(0 <= i < N_DIMS for i in indices)

    def test_seeded_generator_is_reproducible(self, samples):
        a = random_dims(samples, 4, n_trials=10, rng=np.random.default_rng(42))
        b = random_dims(samples, 4, n_trials=10, rng=np.random.default_rng(42))
        assert a["indices"].tolist() == b["indices"].tolist()
        assert a["fp"].tolist() == b["fp"].tolist()

    def test_bad_amount(self, samples):
        with pytest.raises(ValueError):
            random_dims(samples, N_DIMS + 1)

    def test_full_covers_every_size_descending(self, samples):
        df = random_dims_full(samples, n_trials=3, rng=np.random.default_rng(1), verbose=False)
        assert len(df) == 3 * N_DIMS
        assert df["amount_dimensions"].tolist() == [k for k in range(N_DIMS, 0, -1) for _ in range(3)]
        assert all(len(ind) == k for ind, k in zip(df["indices"], df["amount_dimensions"]))


class TestBestElementsFull:
    def test_best_of_every_size(self, samples):
        amount_dim = 6
        df = best_elements_full(samples, amount_dim, verbose=False)
        assert df["amount_dimensions"].tolist() == list(range(amount_dim + 1))

        for k, indices, amount_false in zip(df["amount_dimensions"], df["indices"], df["amount_false"]):
            errors = [(list(c), samples.amount_false(c)) for c in combinations(range(amount_dim), k)]
            best = min(e for _, e in errors)
            first = next(c for c, e in errors if e == best)
            assert amount_false == best
            assert indices == first

    def test_empty_subset_classifies_all_as_same(self, samples):
        df = best_elements_full(samples, 2, verbose=False)
        row = df.iloc[0]
        assert row["indices"] == []
        # all distances are 0: every different-person pair is a false positive
        assert row["amount_false"] == 30

    def test_finds_informative_pair(self, samples):
        df = best_elements_full(samples, N_DIMS, verbose=False)
        row = df[df["amount_dimensions"] == 2].iloc[0]
        assert row["amount_false"] == 0
        assert row["indices"] == INFORMATIVE


class TestGreedy:
    def test_fixed_subset_grows_by_one(self, samples):
        steps, _ = best_elements_greedy(samples, N_DIMS, verbose=False)
        assert len(steps) == N_DIMS

        previous = []
        for step, indices in zip(steps["step"], steps["indices"]):
            assert len(indices) == step
            assert indices[:-1] == previous
            assert len(set(indices)) == step
            previous = indices

    def test_first_pick_is_best_single_dimension(self, samples):
        steps, single = best_elements_greedy(samples, N_DIMS, target_size=2, verbose=False)
        assert single["index"].tolist() == list(range(N_DIMS))

        best = single["amount_false"].min()
        first = single[single["amount_false"] == best]["index"].iloc[0]
        assert steps["indices"].iloc[0] == [first]
        assert steps["amount_false"].iloc[0] == best
        assert first in INFORMATIVE

    def test_second_pick_completes_informative_pair(self, samples):
        steps, _ = best_elements_greedy(samples, N_DIMS, target_size=2, verbose=False)
        assert sorted(steps["indices"].iloc[1]) == INFORMATIVE
        assert steps["amount_false"].iloc[1] == 0

    def test_target_size_bounds(self, samples):
        with pytest.raises(ValueError):
            best_elements_greedy(samples, 4, target_size=5, verbose=False)


class TestHeatmap:
    def test_raw_scores_sign(self):
        samples = PairSamples.from_pairs([
            (True, [0.0, 0.0], [1.0, 0.0]),
            (False, [0.0, 0.0], [0.0, 3.0]),
        ])
        assert heatmap_scores(samples, 2).tolist() == [-1.0, 9.0]

    def test_normalized_to_unit_interval(self, samples):
        values = heatmap(samples, N_DIMS)["neg_impact"]
        assert values.between(0, 1).all()
        assert values.min() == 0.0
        assert values.max() == 1.0

    def test_informative_dims_rank_highest(self, samples):
        df = heatmap(samples, N_DIMS)
        top = df.sort_values("neg_impact", ascending=False)["idx"].iloc[:2]
        assert sorted(top.tolist()) == INFORMATIVE

    def test_degenerate_scores(self):
        samples = PairSamples.from_pairs([(True, [1.0, 1.0], [1.0, 1.0])])
        assert heatmap(samples, 2)["neg_impact"].tolist() == [0.0, 0.0]
