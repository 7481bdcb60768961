# reducedemb/quantization.py
import json
import sys

import numpy as np
import pandas as pd
import config
from reducedemb.threshold import DistanceSplit


def quantize_int(emb, scale, dtype=np.int32):
    # Truncate toward zero, saturating at the bounds of dtype
    info = np.iinfo(dtype)
    scaled = np.trunc(np.asarray(emb, dtype=np.float64) * scale)
    return np.clip(scaled, info.min, info.max).astype(dtype)


def integer_distances(q1, q2, indices=None):
    if indices is not None:
        q1 = q1[:, indices]
        q2 = q2[:, indices]
    d = q1.astype(np.int64) - q2.astype(np.int64)
    return (d * d).sum(axis=1)


def quantize_sweep(samples, scales=config.QUANT_SCALES, verbose=config.VERBOSE):
    """
    Score integer quantized embeddings for a range of scales.

    Every value is multiplied by the scale and truncated to int32; distances
    are then computed on integers.

    Args:
        samples: PairSamples
        scales: Iterable of integer scales
        verbose: Whether to print the float baseline

    Returns:
        tuple: (baseline, df) with the float32 threshold/fp/fn and one row
               per scale with min/max quantized value, threshold, fp, fn
    """
    baseline = samples.split().summary()
    if verbose:
        print(f"Original f32->{baseline['threshold']};{baseline['fp']};{baseline['fn']}", file=sys.stderr)

    rows = []
    for scale in scales:
        q1 = quantize_int(samples.emb1, scale)
        q2 = quantize_int(samples.emb2, scale)

        row = {
            "scale": float(scale),
            "min_value": int(min(q1.min(), q2.min())),
            "max_value": int(max(q1.max(), q2.max()))
        }
        row.update(DistanceSplit.from_labels(samples.is_same, integer_distances(q1, q2)).summary())
        rows.append(row)

    return baseline, pd.DataFrame(rows)


def proposed_subset(samples, indices=None, scale=config.PROPOSED_SCALE):
    """
    Score the proposed compact representation.

    Embeddings are scaled, cast to int8 and only the proposed dimensions are
    used for the distance.

    Returns:
        dict: threshold, fp, fn
    """
    if indices is None:
        indices = config.PROPOSED_INDICES

    q1 = quantize_int(samples.emb1, scale, dtype=np.int8)
    q2 = quantize_int(samples.emb2, scale, dtype=np.int8)

    dist = integer_distances(q1, q2, indices=np.asarray(indices))
    return DistanceSplit.from_labels(samples.is_same, dist).summary()


def extract_embeddings(samples, full_path=config.FULL_EMBEDDINGS_FILE,
                       quantized_path=config.QUANTIZED_EMBEDDINGS_FILE,
                       indices=None, scale=config.PROPOSED_SCALE):
    """
    Write every pair sample to two JSON-lines files.

    The first holds [is_same, emb1, emb2] at full precision, the second the
    same pairs quantized to int8 and restricted to the proposed dimensions.

    Returns:
        int: Number of pairs written
    """
    if indices is None:
        indices = config.PROPOSED_INDICES
    indices = np.asarray(indices)

    q1 = quantize_int(samples.emb1, scale, dtype=np.int8)[:, indices]
    q2 = quantize_int(samples.emb2, scale, dtype=np.int8)[:, indices]

    with open(full_path, "w") as full, open(quantized_path, "w") as comp:
        for i, (same, emb1, emb2) in enumerate(samples.iter_pairs()):
            full.write(json.dumps([same, emb1.tolist(), emb2.tolist()]) + "\n")
            comp.write(json.dumps([same, q1[i].tolist(), q2[i].tolist()]) + "\n")

    return len(samples)
