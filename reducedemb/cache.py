"""
This module implements the embedding cache.

Embeddings are expensive to compute, so every image path is embedded once and
the result is kept in a JSON file mapping the path to its embedding. The file
is rewritten in full after every insertion, through a temporary file that
replaces it once complete.

- A missing or unreadable cache file starts an empty cache.
- A cache file with malformed content, or not UTF-8 encoded, raises
  CacheDeserializeError.
- Images without any detected face are skipped, nothing is stored.
"""

import json
import os
import sys
import tempfile

import numpy as np
from tqdm import tqdm
import config
from reducedemb.pipeline import load_image, most_centered_face

CACHED = "cached"
ADDED = "added"
NO_FACE = "no_face"


class CacheDeserializeError(ValueError):
    """The persisted cache exists but its content is not a valid cache."""


class FacePipelineError(RuntimeError):
    """Loading, detection, alignment or embedding of an image failed."""

    def __init__(self, image_id, cause):
        super().__init__(f"Face pipeline failed for {image_id}: {cause}")
        self.image_id = image_id
        self.cause = cause


def _parse_cache(text, path):
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise CacheDeserializeError(f"Malformed cache file {path}: {e}") from e

    if not isinstance(data, dict):
        raise CacheDeserializeError(f"Malformed cache file {path}: expected an object")

    emb = {}
    for key, values in data.items():
        if not isinstance(values, list) or not all(
                isinstance(v, (int, float)) and not isinstance(v, bool) for v in values):
            raise CacheDeserializeError(f"Malformed cache file {path}: entry '{key}' is not a list of numbers")
        emb[key] = np.asarray(values, dtype=np.float32)
    return emb


class EmbeddingCache:
    """
    Persistent memoization of image path -> embedding.

    Attributes:
        path: Cache file, or None to keep the cache in memory only
        emb: Dictionary of image path to float32 embedding
        amount_computed: Number of face pipeline runs done by this instance
    """

    def __init__(self, path=None, emb=None, verbose=config.VERBOSE):
        self.path = path
        self.emb = emb if emb is not None else {}
        self.amount_computed = 0
        self.verbose = verbose

    @classmethod
    def load(cls, path=None, verbose=config.VERBOSE):
        """
        Load the cache from a file.

        Args:
            path: Cache file; if missing or unreadable the cache starts empty
            verbose: Whether to print diagnostics

        Returns:
            EmbeddingCache: The loaded cache

        Raises:
            CacheDeserializeError: If the file is readable but malformed
        """
        emb = {}
        if path is not None:
            try:
                with open(path, "rb") as f:
                    raw = f.read()
            except OSError:
                raw = None

            if raw is not None:
                try:
                    text = raw.decode("utf-8")
                except UnicodeDecodeError as e:
                    raise CacheDeserializeError(f"Malformed cache file {path}: {e}") from e
                emb = _parse_cache(text, path)

        if verbose:
            print(f"Loaded {len(emb)} embeddings from cache", file=sys.stderr)

        return cls(path=path, emb=emb, verbose=verbose)

    def __len__(self):
        return len(self.emb)

    def __contains__(self, image_id):
        return str(image_id) in self.emb

    def get(self, image_id):
        """Cached embedding of image_id, or None."""
        return self.emb.get(str(image_id))

    def add(self, image_id, embedding):
        self.emb[str(image_id)] = np.asarray(embedding, dtype=np.float32).ravel()
        self.save()

    def save(self):
        """Rewrite the whole mapping to the cache file, if one is configured."""
        if self.path is None:
            return

        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)

        # Write next to the cache and swap, an interrupted dump leaves the old file intact
        data = {key: value.tolist() for key, value in self.emb.items()}
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".cache-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp_path, self.path)
        except BaseException:
            os.remove(tmp_path)
            raise

    def ensure(self, image_id, pipeline, image_loader=load_image):
        """
        Compute and store the embedding of an image unless already cached.

        If several faces are detected the one closest to the image center is
        used. If no face is detected nothing is stored.

        Args:
            image_id: Image path, used as cache key
            pipeline: FacePipeline with detect/align/embed
            image_loader: Callable loading the image array from image_id

        Returns:
            str: CACHED, ADDED or NO_FACE

        Raises:
            FacePipelineError: If any step of the pipeline fails
        """
        image_id = str(image_id)
        if image_id in self.emb:
            return CACHED

        self.amount_computed += 1
        try:
            img = image_loader(image_id)
            faces = pipeline.detect(img)

            if len(faces) == 0:
                if self.verbose:
                    print(f"Ignored {image_id}, 0 faces found", file=sys.stderr)
                return NO_FACE

            face = faces[most_centered_face(faces, np.shape(img))]
            aligned = pipeline.align(img, face.landmarks)
            embedding = pipeline.embed(aligned)
        except Exception as e:
            raise FacePipelineError(image_id, e) from e

        self.add(image_id, embedding)
        return ADDED

    def cache_images(self, image_ids, pipeline, image_loader=load_image):
        """
        Ensure every image is cached, isolating failures per image.

        Args:
            image_ids: Iterable of image paths
            pipeline: FacePipeline with detect/align/embed
            image_loader: Callable loading the image array from an image path

        Returns:
            dict: Outcome counts (CACHED, ADDED, NO_FACE, "failed") and the
                  list of FacePipelineError under "errors"
        """
        summary = {CACHED: 0, ADDED: 0, NO_FACE: 0, "failed": 0, "errors": []}

        for image_id in tqdm(list(image_ids), disable=not self.verbose):
            try:
                outcome = self.ensure(image_id, pipeline, image_loader=image_loader)
            except FacePipelineError as e:
                print(f"Failed {image_id}: {e.cause}", file=sys.stderr)
                summary["failed"] += 1
                summary["errors"].append(e)
                continue
            summary[outcome] += 1

        if self.verbose:
            print(f"Cached: {summary[ADDED]} new, {summary[CACHED]} already cached, "
                  f"{summary[NO_FACE]} without face, {summary['failed']} failed", file=sys.stderr)

        return summary
