# reducedemb/utils.py
import os
import sys

import numpy as np
import matplotlib.pyplot as plt
import seaborn as sns
import config


def print_report(df, file=None):
    """Print a report as ';' separated lines, header first."""
    df.to_csv(file if file is not None else sys.stdout, sep=';', index=False)


def save_report(df, name, metrics_path=None):
    """Save a report as CSV in the metrics folder and return its path."""
    metrics_path = metrics_path or config.METRICS_PATH
    os.makedirs(metrics_path, exist_ok=True)
    path = os.path.join(metrics_path, f"{name}.csv")
    df.to_csv(path, sep=';', index=False)
    return path


def plot_truncation_curve(df, name, output_path=None):
    """Errors at the optimal threshold vs number of kept dimensions."""
    output_path = output_path or config.OUTPUT_PATH
    plt.style.use(config.PLOT_STYLE)
    plt.figure(figsize=config.PLOT_FIGSIZE_MEDIUM)

    if 'fp' in df.columns:
        plt.plot(df['embedding_dimensions'], df['fp'], color='tab:blue', lw=2, label='False Positives')
        plt.plot(df['embedding_dimensions'], df['fn'], color='tab:orange', lw=2, label='False Negatives')
        plt.ylabel("Errori alla soglia ottimale")
    else:
        plt.plot(df['embedding_dimensions'], df['fdr'], color='tab:blue', lw=2, label='False Discovery Rate')
        plt.plot(df['embedding_dimensions'], df['for'], color='tab:orange', lw=2, label='False Omission Rate')
        plt.ylabel("Rate alla soglia ottimale")

    plt.xlabel("Numero di Dimensioni")
    plt.title(f"Troncamento Embedding ({name})")
    plt.legend(loc="upper right")
    plt.grid(True)

    path = os.path.join(output_path, f"truncation_{name}.png")
    plt.savefig(path, dpi=config.PLOT_DPI, bbox_inches='tight')
    plt.close()
    return path


def plot_dimension_heatmap(df, name, output_path=None, n_cols=32):
    """Normalized per-dimension scores laid out as a grid."""
    output_path = output_path or config.OUTPUT_PATH
    values = df['neg_impact'].to_numpy()

    # Pad the last row so that the scores fill a rectangular grid
    n_cols = min(n_cols, len(values))
    n_rows = int(np.ceil(len(values) / n_cols))
    grid = np.full(n_rows * n_cols, np.nan)
    grid[:len(values)] = values
    grid = grid.reshape(n_rows, n_cols)

    plt.figure(figsize=(max(8, n_cols * 0.4), max(2, n_rows * 0.4)))
    sns.heatmap(grid, cmap=config.PLOT_COLORMAP, vmin=0, vmax=1, cbar_kws={'label': 'neg_impact'})
    plt.title(f"Separazione per Dimensione ({name})")
    plt.xlabel("Colonna")
    plt.ylabel("Riga")

    path = os.path.join(output_path, f"heatmap_{name}.png")
    plt.savefig(path, bbox_inches='tight')
    plt.close()
    return path


def plot_greedy_errors(df, name, output_path=None):
    """Error count after each greedy selection step."""
    output_path = output_path or config.OUTPUT_PATH
    plt.figure(figsize=config.PLOT_FIGSIZE_SMALL)
    plt.plot(df['step'], df['amount_false'], marker='o', linestyle='--', color='tab:blue')
    plt.xlabel("Dimensioni Selezionate")
    plt.ylabel("Errori (FP + FN)")
    plt.title(f"Greedy Forward Selection ({name})")
    plt.grid(True)

    path = os.path.join(output_path, f"greedy_{name}.png")
    plt.savefig(path, bbox_inches='tight')
    plt.close()
    return path


def plot_distance_distribution(same, diff, name, threshold=None, output_path=None):
    """Histogram of genuine vs impostor distances with the chosen threshold."""
    output_path = output_path or config.OUTPUT_PATH
    plt.figure(figsize=config.PLOT_FIGSIZE_SMALL)
    sns.histplot(same, color='tab:green', label='Stessa persona', stat='density', alpha=0.5)
    sns.histplot(diff, color='tab:red', label='Persone diverse', stat='density', alpha=0.5)
    if threshold is not None:
        plt.axvline(threshold, color='k', linestyle='--', label=f'Soglia = {threshold:.3f}')
    plt.xlabel("Distanza Euclidea al quadrato")
    plt.title(f"Distribuzione Distanze ({name})")
    plt.legend()

    path = os.path.join(output_path, f"distances_{name}.png")
    plt.savefig(path, bbox_inches='tight')
    plt.close()
    return path
