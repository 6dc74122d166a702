"""CLI entry-point for building the train/test applicant feature tables."""

from __future__ import annotations

import argparse
import logging

from creditfeatures.config import Config
from creditfeatures.observability.logging import configure_context, configure_logging
from creditfeatures.pipelines.data_workflow import (
    load_fitted_params,
    persist_results,
    run_feature_workflow,
)
from creditfeatures.validation import ValidationRunner

LOGGER = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Engineer applicant features: fit on the training table, replay on the test table.",
    )
    parser.add_argument(
        "--config",
        type=str,
        default="configs/features.yaml",
        help="Path to the feature configuration YAML.",
    )
    parser.add_argument(
        "--params",
        type=str,
        default=None,
        help="Apply previously fitted parameters from this JSON file instead of fitting.",
    )
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default=None,
        help="Override the logging format from the configuration.",
    )
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    config = Config.from_yaml(args.config)
    if args.log_format is not None:
        config.logging.json = args.log_format == "json"
    configure_logging(config.logging)
    configure_context(run_mode="apply" if args.params else "fit")

    params = load_fitted_params(args.params) if args.params else None
    validator = ValidationRunner(config.validation)
    result = run_feature_workflow(config, validator=validator, params=params)
    persist_results(result, config, save_fitted=params is None)
    LOGGER.info("Feature tables persisted under %s", config.paths.output_dir)


if __name__ == "__main__":
    main()
