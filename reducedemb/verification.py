"""
This module summarizes face verification quality independently of a single
threshold.

Key concepts:
- Genuine pairs: Two images of the same person (should have a small distance)
- Impostor pairs: Two images of different people (should have a large distance)
- Equal Error Rate (EER): The point where false accept rate equals false reject rate
- ROC-AUC: Area under the ROC curve measuring verification performance

Distances are negated into similarity scores so that the ROC curve treats a
higher score as "same person".
"""

import sys

import numpy as np
import pandas as pd
from sklearn.metrics import roc_curve, auc


def calculate_eer(fpr, tpr, thresholds):
    """
    Calculate the Equal Error Rate (EER) from ROC curve data.

    Args:
        fpr: False positive rates at different thresholds
        tpr: True positive rates at different thresholds
        thresholds: Threshold values corresponding to FPR/TPR points

    Returns:
        tuple: (eer, threshold) where eer is the equal error rate and
               threshold is the operating point that achieves this EER
    """
    # False negative rate is complement of true positive rate
    fnr = 1 - tpr

    # Find the point where FNR and FPR are closest (ideally equal)
    idx = np.nanargmin(np.absolute(fnr - fpr))

    return fpr[idx], thresholds[idx]


def compute_roc_summary(same, diff):
    """
    Compute ROC-AUC and EER of two distance populations.

    Args:
        same: Distances of genuine pairs
        diff: Distances of impostor pairs

    Returns:
        dict: auc, eer and the distance threshold at the EER
              (NaN values if one population is empty)
    """
    same = np.asarray(same, dtype=np.float64)
    diff = np.asarray(diff, dtype=np.float64)

    if same.size == 0 or diff.size == 0:
        return {"auc": float("nan"), "eer": float("nan"), "eer_threshold": float("nan")}

    y_true = np.r_[np.ones_like(same), np.zeros_like(diff)]
    scores = -np.r_[same, diff]

    fpr, tpr, thresholds = roc_curve(y_true, scores)
    roc_auc = auc(fpr, tpr)
    eer, best_th = calculate_eer(fpr, tpr, thresholds)

    return {"auc": float(roc_auc), "eer": float(eer), "eer_threshold": float(-best_th)}


def run_verification_study(samples, subsets, verbose=True):
    """
    Compare ROC-AUC and EER of several dimension subsets.

    Args:
        samples: PairSamples
        subsets: Dictionary of name -> list of indices (None = all dimensions)
        verbose: Whether to print each result

    Returns:
        pd.DataFrame: One row per subset with n_dims, auc, eer, eer_threshold
    """
    rows = []
    for name, indices in subsets.items():
        same, diff = samples.same_diff(indices)
        res = compute_roc_summary(same, diff)

        n_dims = samples.n_dims if indices is None else len(indices)
        rows.append({"subset": name, "n_dims": n_dims, **res})

        if verbose:
            print(f"{name} ({n_dims} dim): AUC={res['auc']:.4f}, EER={res['eer']:.4f}", file=sys.stderr)

    return pd.DataFrame(rows)
