"""Shared test fixtures for reducedemb tests."""

import json

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pytest

from reducedemb.pairs import PairSamples
from reducedemb.pipeline import DetectedFace, FacePipeline, Landmarks


N_DIMS = 8
INFORMATIVE = [2, 5]


def make_face(nose, marker=0.0):
    """Face with the given nose position; marker ends up in the embedding."""
    nx, ny = nose
    return DetectedFace(
        Landmarks((nx - 20, ny - 20), (nx + 20, ny - 20), (nx, ny), (nx - 15, ny + 20), (nx + 15, ny + 20)),
        score=marker,
    )


class FakePipeline(FacePipeline):
    """Pipeline returning fixed faces; the embedding encodes the chosen nose."""

    def __init__(self, faces=None, fail_on=None, n_dims=N_DIMS):
        self.faces = faces if faces is not None else [make_face((125, 125))]
        self.fail_on = fail_on
        self.n_dims = n_dims
        self.detect_calls = 0
        self.embed_calls = 0

    def detect(self, image):
        self.detect_calls += 1
        if self.fail_on == "detect":
            raise RuntimeError("detector crashed")
        return list(self.faces)

    def align(self, image, landmarks):
        if self.fail_on == "align":
            raise ValueError("bad landmarks")
        return np.asarray(landmarks.nose, dtype=np.float32)

    def embed(self, aligned):
        self.embed_calls += 1
        if self.fail_on == "embed":
            raise RuntimeError("network failed")
        emb = np.zeros(self.n_dims, dtype=np.float32)
        emb[0], emb[1] = aligned[0] / 250.0, aligned[1] / 250.0
        return emb


@pytest.fixture
def fake_pipeline():
    return FakePipeline()


@pytest.fixture
def blank_image_loader():
    def loader(path):
        return np.zeros((250, 250, 3), dtype=np.uint8)
    return loader


@pytest.fixture
def synthetic_pairs():
    """
    60 labelled pairs of 8-dim embeddings.

    Dimensions 2 and 5 separate same from different people, the other
    dimensions are identical noise for both labels.
    """
    rng = np.random.RandomState(0)
    pairs = []
    for i in range(60):
        same = i % 2 == 0
        emb1 = rng.randn(N_DIMS).astype(np.float32)
        emb2 = emb1 + rng.randn(N_DIMS).astype(np.float32) * 1.5
        for d in INFORMATIVE:
            emb2[d] = emb1[d] + (rng.randn() * 0.1 if same else 2.0 + rng.rand())
        pairs.append((same, emb1, emb2))
    return pairs


@pytest.fixture
def samples(synthetic_pairs):
    return PairSamples.from_pairs(synthetic_pairs)


@pytest.fixture
def cache_file(tmp_path):
    """Write a cache file from a dict and return its path."""
    def write(data, name="cache.json"):
        path = tmp_path / name
        path.write_text(json.dumps(data))
        return path
    return write
