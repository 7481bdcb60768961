"""
This module handles the pair files of the two supported verification
datasets.

- LFW: Labeled Faces in the Wild, tab separated pairs file
- CPLFW: Cross-Pose LFW, one image per line, consecutive lines form a pair

Both expose the same provider interface:
- images(): every image path that needs an embedding, in pair order
- pairs(cache): (is_same, emb1, emb2) for every pair whose images are cached
"""

import csv
import enum
import os

import config


class DatasetKind(enum.Enum):
    LFW = "lfw"
    CPLFW = "cplfw"


class PairDataset:
    """
    Labelled image pairs of a verification dataset.

    Attributes:
        kind: DatasetKind of the pair file format
        pairs_list: List of (is_same, path1, path2)
    """

    def __init__(self, kind, pairs_list):
        self.kind = kind
        self.pairs_list = pairs_list

    @property
    def name(self):
        return self.kind.value

    def __len__(self):
        return len(self.pairs_list)

    def images(self):
        ret = []
        for _, path1, path2 in self.pairs_list:
            ret.append(path1)
            ret.append(path2)
        return ret

    def pairs(self, cache):
        """
        Look up both embeddings of every pair.

        Pairs with an image missing from the cache (e.g. no face detected)
        are left out.

        Args:
            cache: EmbeddingCache

        Returns:
            list: (is_same, emb1, emb2) tuples
        """
        ret = []
        for same_person, path1, path2 in self.pairs_list:
            emb1 = cache.get(path1)
            emb2 = cache.get(path2)
            if emb1 is not None and emb2 is not None:
                ret.append((same_person, emb1, emb2))
        return ret

    def default_cache_path(self):
        return config.CACHE_FILE_TEMPLATE.format(name=self.name)


def lfw_image_path(basepath, name, number):
    return os.path.join(basepath, name, f"{name}_{int(number):04d}.jpg")


def read_lfw_pairs(pairs_file, basepath):
    """
    Parse an LFW pairs file.

    The first line holds the fold sizes and is skipped. Rows with three
    fields (name, n1, n2) are pairs of the same person, rows with four fields
    (name1, n1, name2, n2) pairs of different people.

    Args:
        pairs_file: Path of the tab separated pairs file
        basepath: Folder containing one subfolder per person

    Returns:
        PairDataset: Dataset of kind LFW
    """
    pairs_list = []
    with open(pairs_file, newline="") as f:
        reader = csv.reader(f, delimiter="\t")
        next(reader, None)

        for row in reader:
            row = [field.strip() for field in row if field.strip()]
            if len(row) == 3:
                name, nr, nr2 = row
                pairs_list.append((True, lfw_image_path(basepath, name, nr), lfw_image_path(basepath, name, nr2)))
            elif len(row) == 4:
                name, nr, name2, nr2 = row
                pairs_list.append((False, lfw_image_path(basepath, name, nr), lfw_image_path(basepath, name2, nr2)))
            elif row:
                raise ValueError(f"Unexpected LFW pairs row: {row}")

    return PairDataset(DatasetKind.LFW, pairs_list)


def read_cplfw_pairs(pairs_file, basepath):
    """
    Parse a CPLFW pairs file.

    Every line is "<image> <label>"; two consecutive lines form one pair and
    the label of the first line (1 = same person) labels the pair.
    """
    pairs_list = []
    prev = None
    with open(pairs_file) as f:
        for line in f:
            fields = line.split()
            if not fields:
                continue

            if prev is None:
                prev = (len(fields) > 1 and fields[1] == "1", fields[0])
            else:
                same, name = prev
                pairs_list.append((same, os.path.join(basepath, name), os.path.join(basepath, fields[0])))
                prev = None

    return PairDataset(DatasetKind.CPLFW, pairs_list)


def load_dataset(kind, basepath, pairs_file=None):
    """
    Load the pairs of a dataset.

    Args:
        kind: DatasetKind
        basepath: Root folder of the dataset images
        pairs_file: Pairs file, defaults to the one configured for the kind

    Returns:
        PairDataset: Parsed dataset
    """
    if kind is DatasetKind.LFW:
        return read_lfw_pairs(pairs_file or config.LFW_PAIRS_FILE, basepath)
    if kind is DatasetKind.CPLFW:
        return read_cplfw_pairs(pairs_file or config.CPLFW_PAIRS_FILE, basepath)
    raise ValueError(f"Unknown dataset kind: {kind}")
