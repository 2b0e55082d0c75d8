#!/usr/bin/env python3
"""
Country clustering report driver.

Loads the country statistics table, z-scores it, prints PCA loadings and the
Hopkins statistic, then sweeps PAM over a range of K and prints the elbow,
silhouette and (optionally) gap tables. Picking K and the variables to keep
is left to whoever reads the output; re-run with --features and --k to get
the final clustering.

Usage:
    python scripts/run_country_clustering.py data/Country-data.csv
    python scripts/run_country_clustering.py data/Country-data.csv --metric manhattan --gap
    python scripts/run_country_clustering.py data/Country-data.csv \
        --features life_expec income imports health --k 3 --output clusters.json

Defaults for metric, K range, iteration cap, seed and worker count come from
COUNTRY_MEDOIDS_* environment variables (see country_medoids.config).
"""

import argparse
import json
import os
import sys
from pathlib import Path

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from country_medoids.algorithms import (
    gap_first_se_max,
    gap_global_max,
    hopkins_statistic,
    pam,
    build_dissimilarity_matrix,
    pca_svd_project,
    run_sweep,
    silhouette_report,
    top_loadings,
)
from country_medoids.config import config
from country_medoids.data import load_country_data
from country_medoids.utils.logging_config import get_logger, setup_logging

setup_logging()
logger = get_logger(__name__)


def report_pca(dataset) -> None:
    """Log explained variance and the leading loadings of each component."""
    _, meta = pca_svd_project(dataset.values, dataset.values.shape[1])
    cumulative = 0.0
    for j, ratio in enumerate(meta["explained_variance_ratio"]):
        cumulative += ratio
        leaders = ", ".join(
            f"{name}={loading:+.2f}"
            for name, loading in top_loadings(meta, dataset.feature_names, component=j, n=3)
        )
        logger.info("PC%d: %.1f%% (cum %.1f%%) %s", j + 1, 100 * ratio, 100 * cumulative, leaders)


def report_sweep(result) -> None:
    logger.info("%4s %14s %12s %10s", "K", "within_cost", "silhouette", "converged")
    for k, item in sorted(result.by_k.items()):
        logger.info(
            "%4d %14.4f %12.4f %10s",
            k,
            item.total_cost,
            item.silhouette.average,
            item.clustering.converged,
        )
    if result.gap is not None:
        logger.info("%4s %10s %10s", "K", "gap", "s_k")
        for k, g, s in zip(result.gap.k_values, result.gap.gap, result.gap.sk):
            logger.info("%4d %10.4f %10.4f", k, g, s)
        logger.info(
            "Gap readings: first-SE-max K=%d, global-max K=%d",
            gap_first_se_max(result.gap),
            gap_global_max(result.gap),
        )


def final_clustering(dataset, k: int, metric: str, max_iter: int) -> dict:
    dist = build_dissimilarity_matrix(dataset.values, metric, n_clusters=k, labels=dataset.names)
    clustering = pam(dist, k, max_iter=max_iter)
    sil = silhouette_report(clustering, dist)
    logger.info("K=%d medoids: %s", k, ", ".join(clustering.medoid_labels(dataset.names)))
    for c in range(k):
        members = [dataset.names[i] for i in clustering.members(c)]
        logger.info(
            "cluster %d (n=%d, silhouette=%.3f): %s",
            c,
            len(members),
            sil.per_cluster[c],
            ", ".join(members[:10]) + (" ..." if len(members) > 10 else ""),
        )
    return {
        "k": k,
        "metric": metric,
        "medoids": clustering.medoid_labels(dataset.names),
        "total_cost": clustering.total_cost,
        "average_silhouette": sil.average,
        "per_cluster_silhouette": {str(c): v for c, v in sil.per_cluster.items()},
        "assignment": {
            name: dataset.names[m] for name, m in zip(dataset.names, clustering.assignment)
        },
        "silhouette": {name: float(v) for name, v in zip(dataset.names, sil.values)},
    }


def main():
    analysis = config.analysis
    parser = argparse.ArgumentParser(description="PAM clustering report for country statistics")
    parser.add_argument("data", nargs="?", default=analysis.data_path, help="CSV file (default: COUNTRY_MEDOIDS_DATA_PATH)")
    parser.add_argument("--id-column", default="country", help="Column with country names")
    parser.add_argument("--features", nargs="+", default=None, help="Feature columns to keep")
    parser.add_argument("--metric", default=analysis.metric, choices=["euclidean", "manhattan"])
    parser.add_argument("--k-min", type=int, default=analysis.k_min)
    parser.add_argument("--k-max", type=int, default=analysis.k_max)
    parser.add_argument("--k", type=int, default=None, help="Produce the final clustering for this K")
    parser.add_argument("--gap", action="store_true", help="Also compute the gap statistic")
    parser.add_argument("--references", type=int, default=50, help="Reference sets for the gap statistic")
    parser.add_argument("--output", default=None, help="Write the final clustering as JSON")
    args = parser.parse_args()

    if not args.data:
        parser.error("a data file is required (argument or COUNTRY_MEDOIDS_DATA_PATH)")

    dataset = load_country_data(args.data, id_column=args.id_column)
    if args.features:
        dataset = dataset.select(args.features)
    dataset = dataset.standardized()
    logger.info("%d countries, features: %s", len(dataset), ", ".join(dataset.feature_names))

    report_pca(dataset)
    logger.info("Hopkins statistic: %.3f", hopkins_statistic(dataset.values, seed=analysis.seed))

    sweep_cfg = analysis.to_sweep_config(
        metric=args.metric,
        k_min=args.k_min,
        k_max=args.k_max,
        compute_gap=args.gap,
        n_references=args.references,
    )
    result = run_sweep(dataset.values, sweep_cfg, labels=dataset.names)
    report_sweep(result)

    if args.k is not None:
        summary = final_clustering(dataset, args.k, args.metric, analysis.max_iter)
        if args.output:
            Path(args.output).write_text(json.dumps(summary, indent=2), encoding="utf-8")
            logger.info("Wrote %s", args.output)


if __name__ == "__main__":
    main()
