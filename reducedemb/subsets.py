"""
This module implements the search for embedding dimensions that keep face
verification accurate.

Every strategy restricts the squared Euclidean distance of each pair to a
subset of dimensions and scores it with the optimal threshold search:
- truncation: keep the first k dimensions, k from the full size down to 1
- random sampling: k random dimensions, repeated over independent trials
- exhaustive: every k-combination of the first amount_dim dimensions
- greedy forward selection: add the single best dimension at each step
- heatmap: per-dimension separation score normalized to [0, 1]

Results are returned as pandas DataFrames, one row per data point.
"""

import sys
from itertools import combinations

import numpy as np
import pandas as pd
from tqdm import tqdm
import config
from reducedemb.verification import compute_roc_summary


def truncate_embeddings(samples, relative=False, with_roc=False, verbose=config.VERBOSE):
    """
    Evaluate every prefix of the embedding, from full length down to 1.

    Args:
        samples: PairSamples
        relative: Report false discovery/omission rates instead of counts
        with_roc: Add ROC-AUC and EER columns
        verbose: Whether to show a progress bar

    Returns:
        pd.DataFrame: Columns embedding_dimensions, threshold and either
                      fp/fn or fdr/for (plus auc/eer with with_roc)
    """
    rows = []
    for k in tqdm(range(samples.n_dims, 0, -1), disable=not verbose):
        split = samples.split(range(k))
        row = {"embedding_dimensions": k}
        row.update(split.relative_summary() if relative else split.summary())

        if with_roc:
            roc = compute_roc_summary(split.same, split.diff)
            row["auc"] = roc["auc"]
            row["eer"] = roc["eer"]

        rows.append(row)

    return pd.DataFrame(rows)


def _random_trials(samples, amount_dimensions, n_trials, rng):
    rows = []
    for _ in range(n_trials):
        indices = rng.permutation(samples.n_dims)[:amount_dimensions]
        row = {"amount_dimensions": amount_dimensions, "indices": indices.tolist()}
        row.update(samples.split(indices).summary())
        rows.append(row)
    return rows


def random_dims(samples, amount_dimensions, n_trials=config.RANDOM_TRIALS, rng=None):
    """
    Score random subsets of a fixed size.

    Each trial draws a uniformly random permutation of all dimensions and
    keeps its first amount_dimensions indices. Every trial is reported.

    Args:
        samples: PairSamples
        amount_dimensions: Subset size
        n_trials: Number of independent trials
        rng: numpy Generator; a fresh one seeded from config.RANDOM_STATE if None

    Returns:
        pd.DataFrame: One row per trial with indices, threshold, fp, fn
    """
    if not 0 < amount_dimensions <= samples.n_dims:
        raise ValueError(f"amount_dimensions must be in [1, {samples.n_dims}], got {amount_dimensions}")
    if rng is None:
        rng = np.random.default_rng(config.RANDOM_STATE)

    return pd.DataFrame(_random_trials(samples, amount_dimensions, n_trials, rng))


def random_dims_full(samples, n_trials=config.RANDOM_TRIALS, rng=None, verbose=config.VERBOSE):
    """Random subsets for every size, from the full length down to 1."""
    if rng is None:
        rng = np.random.default_rng(config.RANDOM_STATE)

    rows = []
    for k in tqdm(range(samples.n_dims, 0, -1), disable=not verbose):
        rows.extend(_random_trials(samples, k, n_trials, rng))
    return pd.DataFrame(rows)


def best_elements_full(samples, amount_dim, verbose=config.VERBOSE):
    """
    Exhaustively search the best subset of every size.

    All k-combinations of range(amount_dim) are scored for k = 0..amount_dim.
    A combination replaces the current best only with strictly fewer errors,
    so ties go to the first combination in lexicographic order.

    Combinations grow as C(amount_dim, k): only usable for small amount_dim.

    Args:
        samples: PairSamples
        amount_dim: Number of leading dimensions to choose from
        verbose: Whether to print the best subset of each size

    Returns:
        pd.DataFrame: One row per size with indices and amount_false
    """
    if not 0 <= amount_dim <= samples.n_dims:
        raise ValueError(f"amount_dim must be in [0, {samples.n_dims}], got {amount_dim}")

    rows = []
    for k in range(amount_dim + 1):
        best_perm, best_false = None, None

        for perm in tqdm(combinations(range(amount_dim), k), disable=not verbose):
            amount_false = samples.amount_false(perm)
            if best_false is None or amount_false < best_false:
                best_perm, best_false = list(perm), amount_false

        if verbose:
            print(f"Best perm with {k} elements: {best_perm} with a total amount of errors of {best_false}", file=sys.stderr)

        rows.append({"amount_dimensions": k, "indices": best_perm, "amount_false": best_false})

    return pd.DataFrame(rows)


def best_elements_greedy(samples, amount_dim, target_size=None, verbose=config.VERBOSE):
    """
    Greedy forward selection of dimensions.

    At each step every unused index of range(amount_dim), in ascending order,
    is tried on top of the already fixed indices; the one with strictly the
    fewest errors is fixed. Earlier choices are never revisited.

    Args:
        samples: PairSamples
        amount_dim: Number of leading dimensions to choose from
        target_size: Number of steps, defaults to amount_dim
        verbose: Whether to print every step

    Returns:
        tuple: (steps, single) where steps has one row per step with the
               fixed indices and amount_false, and single holds the error of
               every dimension on its own (the first step)
    """
    if not 0 < amount_dim <= samples.n_dims:
        raise ValueError(f"amount_dim must be in [1, {samples.n_dims}], got {amount_dim}")
    if target_size is None:
        target_size = amount_dim
    if not 0 < target_size <= amount_dim:
        raise ValueError(f"target_size must be in [1, {amount_dim}], got {target_size}")

    fixed = []
    steps, single = [], []

    for i in range(1, target_size + 1):
        best_idx, best_false = None, None

        for to_add in range(amount_dim):
            if to_add in fixed:
                continue

            amount_false = samples.amount_false(fixed + [to_add])
            if best_false is None or amount_false < best_false:
                best_idx, best_false = to_add, amount_false

            if i == 1:
                single.append({"index": to_add, "amount_false": amount_false})
                if verbose:
                    print(f"Perm with 1 elements: {to_add} with a total amount of errors of {amount_false}", file=sys.stderr)

        fixed.append(best_idx)
        steps.append({"step": i, "indices": list(fixed), "amount_false": best_false})

        if verbose:
            print(f"Best perm with {i} elements: {fixed} with a total amount of errors of {best_false}", file=sys.stderr)

    return pd.DataFrame(steps), pd.DataFrame(single)


def heatmap_scores(samples, amount_dim):
    """
    Raw separation score of each of the first amount_dim dimensions.

    Squared differences of different-person pairs add to the score, those of
    same-person pairs subtract from it.
    """
    if not 0 < amount_dim <= samples.n_dims:
        raise ValueError(f"amount_dim must be in [1, {samples.n_dims}], got {amount_dim}")

    sign = np.where(samples.is_same, -1.0, 1.0)
    return (sign[:, None] * samples.sq_diff[:, :amount_dim]).sum(axis=0)


def heatmap(samples, amount_dim):
    """
    Per-dimension separation score min-max normalized to [0, 1].

    A higher value marks a dimension that separates same and different
    people better.

    Returns:
        pd.DataFrame: Columns idx and neg_impact
    """
    scores = heatmap_scores(samples, amount_dim)

    lo, hi = scores.min(), scores.max()
    if hi > lo:
        normalized = (scores - lo) / (hi - lo)
    else:
        # All dimensions score the same
        normalized = np.zeros_like(scores)

    return pd.DataFrame({"idx": np.arange(amount_dim), "neg_impact": normalized})
