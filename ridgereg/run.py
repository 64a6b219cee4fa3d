import argparse
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd
from joblib import dump
from sklearn.metrics import mean_absolute_error, mean_squared_error, r2_score

from .design import parse_formula
from .encoding import CategoryEncoding
from .estimator import RidgeFit, fit_ridge


OUTPUT_DIR = Path(__file__).resolve().parent
RESULTS_DIR = OUTPUT_DIR / "results"
DEFAULT_LAMBDA = 1.0


@dataclass
class FitReport:
    """In-sample diagnostics for one fitted model."""

    name: str
    fit: RidgeFit = field(repr=False)
    rmse: float
    r2: float
    mae: float
    n_dropped: int = 0

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "n_dropped": self.n_dropped,
            "train_rmse": self.rmse,
            "train_r2": self.r2,
            "train_mae": self.mae,
            **self.fit.to_dict(),
        }


def load_table(path: Path) -> pd.DataFrame:
    """Read an observation set from CSV."""
    return pd.read_csv(path, skipinitialspace=True)


def drop_incomplete_rows(df: pd.DataFrame, columns: Sequence[str]) -> pd.DataFrame:
    """Remove rows with a missing value in any of ``columns``."""
    return df.dropna(subset=list(columns))


def regression_metrics(y_true: np.ndarray, y_pred: np.ndarray) -> dict:
    return {
        "rmse": float(np.sqrt(mean_squared_error(y_true, y_pred))),
        "r2": float(r2_score(y_true, y_pred)) if len(y_true) > 1 else float("nan"),
        "mae": float(mean_absolute_error(y_true, y_pred)),
    }


def describe_top_attributes(fit: RidgeFit, top_k: int = 5) -> str:
    """Generate a short textual interpretation of the strongest covariates."""
    coefs = fit.coefficient_series(standardized=True).drop(labels=fit.column_names[0])
    if coefs.empty:
        return f"No covariates; {fit.response} is predicted by the intercept alone."
    lines = [f"Top covariates for {fit.response} (|standardized beta|):"]
    for feat in coefs.abs().sort_values(ascending=False).index[:top_k]:
        direction = "increases" if coefs[feat] > 0 else "decreases"
        lines.append(f"  - {feat}: {direction} predicted {fit.response} ({coefs[feat]:+.4g})")
    return "\n".join(lines)


def save_artifacts(result_dir: Path, report: FitReport) -> Path:
    """Persist the fitted model plus JSON summaries for ``ridgereg.inference``."""
    result_dir.mkdir(parents=True, exist_ok=True)

    model_path = result_dir / "model.joblib"
    dump(report.fit, model_path)

    coefficients_path = result_dir / "coefficients.json"
    with coefficients_path.open("w", encoding="utf-8") as handle:
        json.dump({str(k): v for k, v in report.fit.coefficients().items()}, handle, indent=2)

    summary_path = result_dir / "summary.json"
    with summary_path.open("w", encoding="utf-8") as handle:
        json.dump(report.to_dict(), handle, indent=2)
    return model_path


def run_fit(
    data_path: Path,
    response: str,
    lam: float = DEFAULT_LAMBDA,
    covariates: Optional[List[str]] = None,
    encoding: Optional[CategoryEncoding] = None,
    name: Optional[str] = None,
    results_dir: Path = RESULTS_DIR,
    drop_missing: bool = False,
    save_predictions: bool = False,
) -> FitReport:
    """Fit one ridge model on a CSV file, print diagnostics and persist artefacts."""
    df = load_table(data_path)
    n_dropped = 0
    if drop_missing:
        used = [response] + (covariates if covariates is not None else [c for c in df.columns if c != response])
        before = len(df)
        df = drop_incomplete_rows(df, [c for c in used if c in df.columns])
        n_dropped = before - len(df)

    fit = fit_ridge(df, response, lam=lam, covariates=covariates, encoding=encoding)
    train_preds = fit.predict(df)
    y = df[response].to_numpy(dtype=float)
    metrics = regression_metrics(y, train_preds)

    name = name or f"{response}_lambda_{lam:g}"
    report = FitReport(name=name, fit=fit, n_dropped=n_dropped, **metrics)

    print(f"\n=== {name} ===")
    print(f"Observations: {fit.n_obs} (dropped {n_dropped}) | covariates: {len(fit.covariates)} | λ={fit.lam:g}")
    print(f"Train RMSE: {report.rmse:.4f} | R²: {report.r2:.4f} | MAE: {report.mae:.4f}")
    print(describe_top_attributes(fit))

    result_dir = Path(results_dir) / name
    model_path = save_artifacts(result_dir, report)
    print(f"Saved fitted model to {model_path}")

    if save_predictions:
        pred_path = result_dir / "train_predictions.csv"
        pd.DataFrame(
            {f"{response}_actual": y, f"{response}_pred": train_preds},
            index=df.index,
        ).to_csv(pred_path, index=True)
        print(f"Saved training predictions to {pred_path}")

    return report


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fit a ridge regression model on a CSV file.")
    parser.add_argument("--data", required=True, help="CSV file with one observation per row.")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--response", help="Name of the response column.")
    target.add_argument(
        "--formula",
        help="R-style model formula, e.g. 'medv ~ crim + rm' or 'medv ~ .'.",
    )
    parser.add_argument(
        "--covariates",
        nargs="+",
        default=None,
        help="Covariates in design-matrix order (default: every other column). Ignored with --formula.",
    )
    parser.add_argument(
        "--lambda",
        type=float,
        default=DEFAULT_LAMBDA,
        dest="lam",
        help=f"Penalty strength (default: {DEFAULT_LAMBDA}).",
    )
    parser.add_argument(
        "--encoding",
        type=str,
        default=None,
        help="JSON file mapping categorical columns to {category: code} tables.",
    )
    parser.add_argument("--name", type=str, default=None, help="Result directory name.")
    parser.add_argument(
        "--results-dir",
        type=str,
        default=str(RESULTS_DIR),
        help=f"Where model artefacts are written (default: {RESULTS_DIR}).",
    )
    parser.add_argument(
        "--drop-missing",
        action="store_true",
        help="Drop rows with missing values in the modelled columns before fitting.",
    )
    parser.add_argument(
        "--save-predictions",
        action="store_true",
        help="Persist in-sample predictions (actual vs. predicted) to CSV.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    if args.formula:
        response, covariates = parse_formula(args.formula)
    else:
        response, covariates = args.response, args.covariates
    encoding = CategoryEncoding.from_json(Path(args.encoding)) if args.encoding else None
    run_fit(
        data_path=Path(args.data),
        response=response,
        lam=args.lam,
        covariates=covariates,
        encoding=encoding,
        name=args.name,
        results_dir=Path(args.results_dir),
        drop_missing=args.drop_missing,
        save_predictions=args.save_predictions,
    )


if __name__ == "__main__":
    main()
