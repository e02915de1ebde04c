"""
Command line batch scoring of a CSV file.
"""

import argparse
import logging
import sys
from typing import List, Optional

import pandas as pd

from .predict import CardioPredictor
from .scoring import ModelType
from ..utils.artifacts import load_context, load_settings
from ..utils.errors import CardioPredictError, UnknownModelType

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Predict cardiovascular disease (0/1) for patient records in a CSV file"
    )
    parser.add_argument("input", type=str, help="CSV file with one patient record per row")
    parser.add_argument("--model-type", type=str, default=ModelType.BOOSTING.value,
                        help="boosting (default), logistic-regression or random-forest")
    parser.add_argument("--model-dir", type=str, default=None,
                        help="Directory holding the fitted models (overrides configuration)")
    parser.add_argument("--config", type=str, default=None, help="Path to prediction configuration file")
    parser.add_argument("--output", type=str, default=None,
                        help="Write records with predictions to this CSV instead of stdout")
    parser.add_argument("--column", type=str, default="prediction", help="Name of the prediction column")
    parser.add_argument("--log-level", type=str, default="INFO", help="Logging level")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))

    try:
        model_type = ModelType.parse(args.model_type)
    except UnknownModelType as e:
        parser.error(str(e))

    try:
        settings = load_settings(args.config, model_dir=args.model_dir)
        predictor = CardioPredictor(load_context(settings))

        records = pd.read_csv(args.input)
        result = predictor.predict_frame(records, model_type=model_type, column=args.column)
    except (CardioPredictError, FileNotFoundError) as e:
        logger.error(f"Batch scoring failed: {e}")
        return 1

    if args.output:
        result.to_csv(args.output, index=False)
        logger.info(f"Wrote {len(result)} predictions to {args.output}")
    else:
        result.to_csv(sys.stdout, index=False)
    return 0


if __name__ == "__main__":
    sys.exit(main())
