"""
Recommend Pipeline Orchestrator

Main entry point for running the pipeline end to end:
1. Data loading and customer id densification
2. Dataset statistics
3. Diagnostic plots
4. Model initialization (rating and similarity matrices)
5. Model training (spectral analysis / completion)
6. Prediction of the test set, one file per model

"""

import argparse
import logging
import os
import sys
import time
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from . import config
from .data_io import Dataset, load_dataset
from .errors import ConfigurationError, DataLoadError, DecompositionError
from .evaluate import evaluate_rmse
from .model import ModelKind, RecommendationModel
from .plot import plot_data_freq, plot_initial_matrix
from .serialize import dump_predictions, prediction_path

logger = logging.getLogger(__name__)

LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def resolve_data_path(data_path: Optional[str] = None) -> Path:
    """
    Find the data folder.

    Order: explicit argument, $DATA_PATH, $RECOMMEND_HOME/data.

    Raises:
        ConfigurationError: If none of them is set
    """
    if data_path:
        return Path(data_path)

    env_path = os.getenv(config.DATA_PATH)
    if env_path:
        return Path(env_path)

    logger.warning(f"${config.DATA_PATH} not set, using ${config.RECOMMEND_HOME}/data/ as default.")
    home = os.getenv(config.RECOMMEND_HOME)
    if not home:
        raise ConfigurationError(f"${config.RECOMMEND_HOME} not set.")
    return Path(home) / "data"


def build_models(kinds: Optional[Iterable[ModelKind]] = None) -> List[RecommendationModel]:
    """Create one fresh model per kind (all kinds by default)."""
    if kinds is None:
        kinds = list(ModelKind)
    return [kind.create() for kind in kinds]


def log_dataset_statistics(dataset: Dataset) -> Dict:
    metadata = dataset.metadata
    num_trans = int(metadata.trans_freq.sum())
    num_tests = int(metadata.test_freq.sum())

    logger.info("Retrieved metadata")
    logger.info(f"Total # customers: {metadata.num_customers}, # movies: {metadata.num_movies}")
    logger.info(f"Total # of transactions: {num_trans}, # of tests: {num_tests}")
    logger.info(f"  Train: {metadata.num_train}, Cross valid: {metadata.num_cross_valid}")
    if metadata.anomalies:
        logger.warning(f"{len(metadata.anomalies)} test customers never appear in training")

    return {
        'num_customers': metadata.num_customers,
        'num_movies': metadata.num_movies,
        'num_transactions': num_trans,
        'num_tests': num_tests,
        'num_train': metadata.num_train,
        'num_cross_valid': metadata.num_cross_valid,
        'num_anomalies': len(metadata.anomalies),
    }


def run_model(model: RecommendationModel, dataset: Dataset, output_dir: Path) -> Dict:
    """init -> train -> evaluate -> predict the test set -> write <ModelName>.txt"""
    start = time.time()
    logger.info(f"[4/6] {model.name}: building rating and similarity matrices...")
    model.init(dataset)

    logger.info(f"[5/6] {model.name}: training...")
    model.train()

    rmse = evaluate_rmse(model, dataset.cross_valid)
    logger.info(f"{model.name}: cross-validation RMSE {rmse:.4f}")

    logger.info(f"[6/6] {model.name}: predicting {len(dataset.test)} test transactions...")
    predictions = model.predict_all(dataset.test)
    output_path = prediction_path(output_dir, model.name)
    dump_predictions(predictions, output_path)

    return {
        'model_info': model.get_model_info(),
        'cross_valid_rmse': rmse,
        'predictions_path': str(output_path),
        'elapsed_sec': time.time() - start,
    }


def run_pipeline(data_path: Optional[str] = None,
                 output_dir: Optional[str] = None,
                 models: Optional[List[RecommendationModel]] = None,
                 make_plots: bool = True) -> Dict:
    """
    Run the complete pipeline from CSV files to prediction files.

    Args:
        data_path: Folder with train.csv, movie_titles.csv, test.csv
            (resolved from the environment if None)
        output_dir: Where plots and predictions go (uses default if None)
        models: Models to run, in order (all kinds if None)
        make_plots: Whether to draw the diagnostic plots

    Returns:
        Dict with pipeline results:
        - dataset: Dict of dataset statistics
        - models: Dict of model name -> per-model results
        - total_time_sec: float

    Raises:
        ConfigurationError: If the data folder cannot be resolved
        DataLoadError: If a data file is missing or malformed
        DecompositionError: If a similarity matrix cannot be eigendecomposed
    """
    start_time = time.time()
    data_path = resolve_data_path(data_path)
    output_dir = Path(output_dir) if output_dir else config.OUTPUT_CONFIG['output_dir']
    if models is None:
        models = build_models()

    logger.info("=" * 60)
    logger.info("STARTING RECOMMEND PIPELINE")
    logger.info("=" * 60)

    logger.info(f"[1/6] Loading data from {data_path}...")
    phase_start = time.time()
    dataset = load_dataset(data_path)
    logger.info(f"  Loaded in {time.time() - phase_start:.2f}s")

    logger.info("[2/6] Computing dataset statistics...")
    dataset_stats = log_dataset_statistics(dataset)

    if make_plots:
        logger.info(f"[3/6] Plotting to {output_dir}...")
        phase_start = time.time()
        plot_data_freq(dataset.metadata, output_dir)
        plot_initial_matrix(dataset, output_dir)
        logger.info(f"  Plotted in {time.time() - phase_start:.2f}s")
    else:
        logger.info("[3/6] Plotting disabled")

    logger.info(f"Running {len(models)} model(s)...")
    model_results = {}
    for model in models:
        model_results[model.name] = run_model(model, dataset, output_dir)

    total_time = time.time() - start_time
    logger.info("=" * 60)
    logger.info("PIPELINE COMPLETED SUCCESSFULLY")
    logger.info("=" * 60)
    logger.info(f"Total time: {total_time:.2f} seconds")

    return {
        'dataset': dataset_stats,
        'models': model_results,
        'total_time_sec': total_time,
    }


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Run the recommend pipeline')
    parser.add_argument('--data-path', type=str, default=None,
                        help=f'Data folder (default: ${config.DATA_PATH} or ${config.RECOMMEND_HOME}/data)')
    parser.add_argument('--output-dir', type=str, default=None,
                        help='Folder for plots and prediction files')
    parser.add_argument('--model', action='append', default=None,
                        choices=[kind.value for kind in ModelKind],
                        help='Model to run (repeatable, default: all)')
    parser.add_argument('--no-plots', action='store_true', help='Skip the diagnostic plots')
    parser.add_argument('--log-level', type=str.upper, default=config.LOG_LEVEL.upper(),
                        choices=LOG_LEVELS,
                        help='Logging level (default: $LOG_LEVEL or DEBUG)')
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the pipeline from the command line.

    Usage:
        python -m recommend.pipeline --data-path data/
        python -m recommend.pipeline --model spectral_clustering --no-plots
    """
    args = parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
    )
    logging.getLogger('matplotlib').setLevel(logging.WARNING)

    kinds = [ModelKind(value) for value in args.model] if args.model else None
    try:
        run_pipeline(
            data_path=args.data_path,
            output_dir=args.output_dir,
            models=build_models(kinds),
            make_plots=not args.no_plots,
        )
    except (ConfigurationError, DataLoadError) as e:
        logger.error(f"error running pipeline: {e}")
        return 1
    except DecompositionError as e:
        logger.error(f"spectral analysis failed: {e}")
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
