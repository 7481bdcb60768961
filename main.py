# main.py
import argparse
import sys

import numpy as np

import config
from reducedemb.cache import EmbeddingCache, CacheDeserializeError
from reducedemb.datasets import DatasetKind, load_dataset
from reducedemb.pairs import PairSamples
from reducedemb.pipeline import load_pipeline
from reducedemb.quantization import quantize_sweep, proposed_subset, extract_embeddings
from reducedemb.subsets import (
    truncate_embeddings, random_dims, random_dims_full,
    best_elements_full, best_elements_greedy, heatmap
)
from reducedemb.verification import run_verification_study
from reducedemb.utils import (
    print_report, save_report, plot_truncation_curve, plot_dimension_heatmap,
    plot_greedy_errors, plot_distance_distribution
)

ACTIONS = [
    "cache", "extract-embeddings", "truncate-embedding-size", "truncate-embedding-size-relative",
    "random-dimensions", "random-dimensions-full", "best-elements-full", "best-elements-greedy",
    "heatmap", "quantize", "proposed-fixed-subset"
]
AMOUNT_ACTIONS = ["random-dimensions", "best-elements-full", "best-elements-greedy", "heatmap"]


def build_parser():
    parser = argparse.ArgumentParser(
        description="Evaluate face verification with reduced embeddings."
    )
    parser.add_argument("--data", choices=sorted(config.DATASETS), required=True,
                        help="easy = LFW, hard = CPLFW")
    parser.add_argument("--lfwpath", help="folder of the LFW images (one subfolder per person)")
    parser.add_argument("--cplfwpath", help="folder of the CPLFW images")
    parser.add_argument("--pairs-file", help="pairs file, defaults to the one in data/")
    parser.add_argument("--action", choices=ACTIONS, required=True)
    parser.add_argument("--amount", type=int, help="number of dimensions used by the action")
    parser.add_argument("--cache-file", help="embedding cache, defaults to data/cache-<dataset>-250x250.json")
    parser.add_argument("--pipeline", default=config.FACE_PIPELINE,
                        help="face pipeline factory as module:function (cache action)")
    parser.add_argument("--seed", type=int, default=config.RANDOM_STATE)
    parser.add_argument("--trials", type=int, default=config.RANDOM_TRIALS)
    parser.add_argument("--plot", action="store_true", help="save figures to results/figures")
    parser.add_argument("--roc", action="store_true", help="add ROC-AUC and EER to the report")
    parser.add_argument("--quiet", action="store_true")
    return parser


def report(df, name, args):
    print_report(df)
    path = save_report(df, name)
    if not args.quiet:
        print(f"Report salvato: {path}", file=sys.stderr)


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    verbose = not args.quiet

    kind = DatasetKind(config.DATASETS[args.data])
    basepath = args.lfwpath if kind is DatasetKind.LFW else args.cplfwpath
    if basepath is None:
        parser.error(f"Expected --{'lfwpath' if kind is DatasetKind.LFW else 'cplfwpath'} argument")

    if args.action in AMOUNT_ACTIONS and args.amount is None:
        parser.error("Expected a number how many dimensions should be used: --amount <number>")

    dataset = load_dataset(kind, basepath, pairs_file=args.pairs_file)

    try:
        cache = EmbeddingCache.load(args.cache_file or dataset.default_cache_path(), verbose=verbose)
    except CacheDeserializeError as e:
        print(f"Errore: {e}", file=sys.stderr)
        return 1

    # 1. CACHE
    if args.action == "cache":
        if not args.pipeline:
            parser.error("Expected --pipeline module:factory argument for the cache action")
        pipeline = load_pipeline(args.pipeline)
        summary = cache.cache_images(dataset.images(), pipeline)
        return 1 if summary["failed"] else 0

    # 2. EVALUATION
    samples = PairSamples.from_pairs(dataset.pairs(cache))
    if len(samples) == 0:
        print("Nessuna coppia con embedding in cache, eseguire prima --action cache", file=sys.stderr)
        return 1

    if verbose:
        n_same = int(samples.is_same.sum())
        print(f"{len(samples)} coppie ({n_same} stessa persona, {len(samples) - n_same} persone diverse), "
              f"{samples.n_dims} dimensioni", file=sys.stderr)

    if args.action in AMOUNT_ACTIONS:
        # best-elements-full also reports the empty subset
        lowest = 0 if args.action == "best-elements-full" else 1
        if not lowest <= args.amount <= samples.n_dims:
            parser.error(f"--amount must be between {lowest} and {samples.n_dims} for {args.action}, got {args.amount}")

    rng = np.random.default_rng(args.seed)
    name = f"{args.action}_{dataset.name}"
    action = args.action

    if action == "extract-embeddings":
        n = extract_embeddings(samples)
        print(f"{n} coppie scritte in {config.FULL_EMBEDDINGS_FILE} e {config.QUANTIZED_EMBEDDINGS_FILE}", file=sys.stderr)

    elif action in ("truncate-embedding-size", "truncate-embedding-size-relative"):
        relative = action.endswith("relative")
        df = truncate_embeddings(samples, relative=relative, with_roc=args.roc, verbose=verbose)
        report(df, name, args)
        if args.plot:
            plot_truncation_curve(df, dataset.name)

    elif action == "random-dimensions":
        report(random_dims(samples, args.amount, n_trials=args.trials, rng=rng), name, args)

    elif action == "random-dimensions-full":
        report(random_dims_full(samples, n_trials=args.trials, rng=rng, verbose=verbose), name, args)

    elif action == "best-elements-full":
        report(best_elements_full(samples, args.amount, verbose=verbose), name, args)

    elif action == "best-elements-greedy":
        steps, _ = best_elements_greedy(samples, args.amount, verbose=verbose)
        report(steps, name, args)
        if args.plot:
            plot_greedy_errors(steps, dataset.name)

    elif action == "heatmap":
        df = heatmap(samples, args.amount)
        report(df, name, args)
        if args.plot:
            plot_dimension_heatmap(df, dataset.name)

    elif action == "quantize":
        _, df = quantize_sweep(samples, verbose=verbose)
        report(df, name, args)

    elif action == "proposed-fixed-subset":
        res = proposed_subset(samples)
        print(f"{res['threshold']};{res['fp']};{res['fn']}")
        if args.roc:
            subsets = {"full": None, "proposed": config.PROPOSED_INDICES}
            report(run_verification_study(samples, subsets, verbose=verbose), name, args)
        if args.plot:
            same, diff = samples.same_diff()
            threshold, _ = samples.evaluate()
            plot_distance_distribution(same, diff, dataset.name, threshold=threshold)

    return 0


if __name__ == "__main__":
    sys.exit(main())
