"""
Score new rows with a model saved by ``python -m ridgereg.run``.

The artefacts live in ``<results-dir>/<name>/``; ``model.joblib`` holds the
fitted :class:`~ridgereg.estimator.RidgeFit`, including the standardisation and
category tables captured at fit time, so input rows only need the raw
covariate columns.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional, Sequence

import pandas as pd
from joblib import load

from .estimator import RidgeFit
from .run import RESULTS_DIR


def load_artifacts(name: str, results_dir: Path = RESULTS_DIR) -> RidgeFit:
    """Load the fitted model stored under ``results_dir / name``."""
    model_path = Path(results_dir) / name / "model.joblib"
    if not model_path.exists():
        raise FileNotFoundError(
            f"Missing trained model for '{name}'. Run `python -m ridgereg.run --name {name} ...` first."
        )
    fit = load(model_path)
    if not isinstance(fit, RidgeFit):
        raise TypeError(f"{model_path} does not contain a RidgeFit (found {type(fit).__name__}).")
    return fit


def score_frame(fit: RidgeFit, df: pd.DataFrame) -> pd.DataFrame:
    """Return ``df`` with an extra ``<response>_pred`` column."""
    out = df.copy()
    out[f"{fit.response}_pred"] = fit.predict(df)
    return out


def main(
    name: str,
    input_csv: str,
    output_csv: Optional[str] = None,
    results_dir: Path = RESULTS_DIR,
) -> Path:
    fit = load_artifacts(name, results_dir)
    df = pd.read_csv(input_csv, skipinitialspace=True)
    scored = score_frame(fit, df)

    if output_csv is None:
        output_path = Path(results_dir) / name / "manual_inference.csv"
    else:
        output_path = Path(output_csv)
        if output_path.exists() and output_path.is_dir():
            output_path = output_path / f"{name}_inference_predictions.csv"

    output_path.parent.mkdir(parents=True, exist_ok=True)
    scored.to_csv(output_path, index=False)
    print(f"[{name}] Scored {len(scored)} rows (λ={fit.lam:g}). Wrote predictions to {output_path}")
    return output_path


def _cli(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Predict with a saved ridge regression model.")
    parser.add_argument("--name", required=True, help="Result directory name used when fitting.")
    parser.add_argument("--input", dest="input_csv", required=True, help="CSV file with covariate columns.")
    parser.add_argument(
        "--output",
        dest="output_csv",
        default=None,
        help="Output CSV path or directory. If omitted, writes manual_inference.csv under the model dir.",
    )
    parser.add_argument(
        "--results-dir",
        default=str(RESULTS_DIR),
        help=f"Directory holding fitted models (default: {RESULTS_DIR}).",
    )
    args = parser.parse_args(argv)
    main(
        name=args.name,
        input_csv=args.input_csv,
        output_csv=args.output_csv,
        results_dir=Path(args.results_dir),
    )


if __name__ == "__main__":
    _cli()
