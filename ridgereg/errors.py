"""Exceptions raised by the ridge estimator."""

import numpy as np


class RidgeRegError(Exception):
    """Base class for every error raised by ``ridgereg``."""


class InvalidInputError(RidgeRegError, ValueError):
    """Observation set, response or covariate list is malformed."""


class SingularSystemError(RidgeRegError, np.linalg.LinAlgError):
    """The unpenalised normal equations have no unique solution (lambda = 0)."""
