"""Unit tests for observation-set handling."""

import numpy as np
import pandas as pd
import pytest

from ridgereg.design import (
    add_intercept,
    numeric_matrix,
    parse_formula,
    resolve_covariates,
    to_frame,
)
from ridgereg.errors import InvalidInputError


class TestToFrame:
    """Accepted observation-set shapes."""

    def test_dataframe_passthrough(self):
        df = pd.DataFrame({"a": [1.0]})
        assert to_frame(df) is df

    def test_column_mapping(self):
        df = to_frame({"a": [1, 2, 3], "b": [4.0, 5.0, 6.0]})
        assert df.shape == (3, 2)
        assert list(df.columns) == ["a", "b"]

    def test_single_record(self):
        df = to_frame({"a": 1.0, "b": 2.0})
        assert df.shape == (1, 2)

    def test_records(self):
        df = to_frame([{"a": 1.0, "b": 2.0}, {"a": 3.0, "b": 4.0}])
        np.testing.assert_array_equal(df["b"].to_numpy(), [2.0, 4.0])

    def test_ragged_columns(self):
        with pytest.raises(InvalidInputError, match="columns"):
            to_frame({"a": [1, 2, 3], "b": [1, 2]})

    def test_non_mapping_rows(self):
        with pytest.raises(InvalidInputError, match="mappings"):
            to_frame([{"a": 1.0}, [2.0]])

    def test_unsupported_type(self):
        with pytest.raises(InvalidInputError):
            to_frame("a,b\n1,2")


class TestParseFormula:
    """R-style formula subset."""

    def test_terms(self):
        assert parse_formula("medv ~ crim + rm") == ("medv", ["crim", "rm"])

    def test_whitespace_is_ignored(self):
        assert parse_formula("  medv~crim+   rm ") == ("medv", ["crim", "rm"])

    def test_dot(self):
        assert parse_formula("dep_delay ~ .") == ("dep_delay", None)

    def test_backticks(self):
        assert parse_formula("`arr delay` ~ `wind speed` + visib") == ("arr delay", ["wind speed", "visib"])

    @pytest.mark.parametrize(
        "formula",
        ["medv", "medv ~ crim ~ rm", " ~ crim", "medv ~ crim + ", "medv ~ ", "medv ~ . + crim"],
    )
    def test_malformed(self, formula):
        with pytest.raises(InvalidInputError):
            parse_formula(formula)


class TestResolveCovariates:
    """Covariate selection and ordering."""

    def test_default_is_every_other_column(self):
        assert resolve_covariates(["a", "y", "b"], "y") == ["a", "b"]

    def test_explicit_order(self):
        assert resolve_covariates(["a", "y", "b"], "y", ["b", "a"]) == ["b", "a"]

    def test_single_name_string(self):
        assert resolve_covariates(["a", "y"], "y", "a") == ["a"]

    def test_duplicates(self):
        with pytest.raises(InvalidInputError, match="Duplicate"):
            resolve_covariates(["a", "y"], "y", ["a", "a"])

    def test_reserved_intercept_name(self):
        with pytest.raises(InvalidInputError, match="reserved"):
            resolve_covariates(["(Intercept)", "y"], "y")


class TestNumericMatrix:
    """Cell-level validation."""

    def test_column_order(self):
        df = pd.DataFrame({"a": [1, 2], "b": [3.0, 4.0]})
        np.testing.assert_array_equal(numeric_matrix(df, ["b", "a"]), [[3.0, 1.0], [4.0, 2.0]])

    def test_object_column_of_numbers(self):
        df = pd.DataFrame({"a": pd.Series([1, 2.5, 3], dtype=object)})
        np.testing.assert_array_equal(numeric_matrix(df, ["a"])[:, 0], [1.0, 2.5, 3.0])

    def test_nullable_integer_with_missing(self):
        df = pd.DataFrame({"a": pd.array([1, None, 3], dtype="Int64")})
        with pytest.raises(InvalidInputError, match="missing"):
            numeric_matrix(df, ["a"])

    def test_boolean_column(self):
        df = pd.DataFrame({"a": [True, False]})
        with pytest.raises(InvalidInputError, match="bool"):
            numeric_matrix(df, ["a"])

    def test_infinite_value(self):
        df = pd.DataFrame({"a": [1.0, np.inf]})
        with pytest.raises(InvalidInputError, match="non-finite"):
            numeric_matrix(df, ["a"])

    def test_none_in_object_column(self):
        df = pd.DataFrame({"a": pd.Series([1.0, None, "x"], dtype=object)})
        with pytest.raises(InvalidInputError, match="'x'"):
            numeric_matrix(df, ["a"])

    def test_duplicate_column_labels(self):
        df = pd.DataFrame([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]], columns=["a", "a", "b"])
        with pytest.raises(InvalidInputError, match="duplicate column labels: a"):
            numeric_matrix(df, ["a", "b"])
        np.testing.assert_array_equal(numeric_matrix(df, ["b"])[:, 0], [3.0, 6.0])


def test_add_intercept():
    Z = np.array([[2.0], [3.0]])
    np.testing.assert_array_equal(add_intercept(Z), [[1.0, 2.0], [1.0, 3.0]])
    assert add_intercept(np.empty((2, 0))).shape == (2, 1)
