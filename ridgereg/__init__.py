"""
Ridge regression with an unpenalised intercept and fit-time standardisation.

Use ``python -m ridgereg.run`` to fit a model from a CSV file and
``python -m ridgereg.inference`` to score new rows with the saved artefacts.
"""

from .design import INTERCEPT
from .encoding import CategoryEncoding
from .errors import InvalidInputError, RidgeRegError, SingularSystemError
from .estimator import RidgeFit, fit_ridge, fit_ridge_formula, predict_ridge

__all__ = [
    "INTERCEPT",
    "CategoryEncoding",
    "InvalidInputError",
    "RidgeRegError",
    "SingularSystemError",
    "RidgeFit",
    "fit_ridge",
    "fit_ridge_formula",
    "predict_ridge",
]
