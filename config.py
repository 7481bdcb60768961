# config.py
import os

RANDOM_STATE = None
VERBOSE = True

EMBEDDING_SIZE = 512
RANDOM_TRIALS = 100

QUANT_SCALES = range(1, 200)
PROPOSED_SCALE = 70.0
PROPOSED_INDICES = [
    7, 9, 11, 21, 23, 30, 33, 35, 60, 61, 68, 84, 87, 92, 100, 120, 133, 134,
    136, 156, 163, 165, 167, 172, 180, 193, 202, 208, 209, 210, 211, 220, 241,
    249, 262, 264, 265, 268, 276, 279, 280, 281, 283, 294, 308, 322, 324, 325,
    327, 338, 354, 360, 364, 366, 371, 382, 408, 420, 421, 427, 433, 458, 464,
    469, 470, 478, 479, 485, 488, 490
]

# ArcFace 5-point template (112x112): left eye, right eye, nose, mouth corners
ALIGN_SIZE = 112
ARCFACE_TEMPLATE = [
    [38.2946, 51.6963],
    [73.5318, 51.5014],
    [56.0252, 71.7366],
    [41.5493, 92.3655],
    [70.7299, 92.2041]
]

DATASETS = {
    'easy': 'lfw',
    'hard': 'cplfw'
}

FACE_PIPELINE = os.environ.get("REDUCEDEMB_PIPELINE")

PLOT_STYLE = 'seaborn-v0_8-whitegrid'
PLOT_DPI = 150
PLOT_FIGSIZE_SMALL = (8, 6)
PLOT_FIGSIZE_MEDIUM = (12, 8)
PLOT_COLORMAP = 'viridis'

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
DATA_PATH = os.path.join(BASE_DIR, "data")
OUTPUT_PATH = os.path.join(BASE_DIR, "results", "figures")
METRICS_PATH = os.path.join(BASE_DIR, "results", "metrics")

LFW_PAIRS_FILE = os.path.join(DATA_PATH, "lfw-pairs.txt")
CPLFW_PAIRS_FILE = os.path.join(DATA_PATH, "pairs_CPLFW.txt")
CACHE_FILE_TEMPLATE = os.path.join(DATA_PATH, "cache-{name}-250x250.json")
FULL_EMBEDDINGS_FILE = "embeddings_full.json"
QUANTIZED_EMBEDDINGS_FILE = "embeddings_70.json"

for path in [DATA_PATH, OUTPUT_PATH, METRICS_PATH]:
    os.makedirs(path, exist_ok=True)
