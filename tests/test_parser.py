"""
Testes do leitor de arquivos .lp.
"""

import os

import numpy as np
import pytest

from solver_lp.core.exceptions import LPParseError
from solver_lp.core.problem import ObjectiveSense, ConstraintSense
from solver_lp.utils.parser import parse_file_to_problem, parse_lp_string

DATA_DIR = os.path.join(os.path.dirname(__file__), "..", "data")


def test_production_file_is_read_completely():
    problem = parse_file_to_problem(os.path.join(DATA_DIR, "exemplo_producao.lp"))

    assert problem.name == "exemplo_producao"
    assert problem.objective_sense == ObjectiveSense.MAX
    assert problem.variable_names == ["x1", "x2"]
    assert problem.constraint_names == ["recurso_a", "recurso_b"]
    np.testing.assert_array_equal(problem.objective_coeffs, [2, 3])
    np.testing.assert_array_equal(problem.constraint_matrix, [[1, 1], [1, 0]])
    np.testing.assert_array_equal(problem.rhs_vector, [4, 3])
    assert problem.constraint_senses == [ConstraintSense.LEQ, ConstraintSense.LEQ]
    np.testing.assert_array_equal(problem.lower_bounds, [0, 0])
    assert np.all(np.isposinf(problem.upper_bounds))


def test_bounds_file_is_read_completely():
    problem = parse_file_to_problem(os.path.join(DATA_DIR, "exemplo_limites.lp"))

    assert problem.objective_sense == ObjectiveSense.MIN
    assert problem.constraint_senses == [ConstraintSense.GEQ, ConstraintSense.LEQ, ConstraintSense.EQ]
    np.testing.assert_array_equal(problem.rhs_vector, [-5, 4, 1])
    np.testing.assert_array_equal(problem.lower_bounds, [-np.inf, -3, 0])
    np.testing.assert_array_equal(problem.upper_bounds, [np.inf, 2, 6])


def test_all_bound_forms():
    text = """
    min
      a + b + c + d + e + f + g
    st
      a + b + c + d + e + f + g >= 1
    bounds
      a free
      b <= 4
      4.5 >= c
      d >= -2
      -1 <= e <= 3
      5 >= f >= 1
      g = 2
    end
    """
    problem = parse_lp_string(text)

    np.testing.assert_array_equal(problem.lower_bounds, [-np.inf, 0, 0, -2, -1, 1, 2])
    np.testing.assert_array_equal(problem.upper_bounds, [np.inf, 4, 4.5, np.inf, 3, 5, 2])


def test_infinite_bound_tokens():
    problem = parse_lp_string("min\n x + y\nbounds\n -inf <= x <= +inf\n y >= -Infinity\nend")

    np.testing.assert_array_equal(problem.lower_bounds, [-np.inf, -np.inf])
    np.testing.assert_array_equal(problem.upper_bounds, [np.inf, np.inf])
    assert problem.num_constraints == 0


def test_unnamed_constraints_get_positional_names():
    problem = parse_lp_string("max\n x\nst\n x <= 1\n cap: x + y <= 2\n y >= 0\nend")

    assert problem.constraint_names == ["c0", "cap", "c2"]


def test_constraint_spread_over_several_lines():
    text = "min\n x\nsubject to\n soma: x + y\n   + z\n   <= 3\nend"

    problem = parse_lp_string(text)

    assert problem.constraint_names == ["soma"]
    np.testing.assert_array_equal(problem.constraint_matrix, [[1, 1, 1]])
    np.testing.assert_array_equal(problem.rhs_vector, [3])


def test_coefficients_in_every_notation():
    problem = parse_lp_string("max\n 3x + 2.5e1 y - z - 0.5 w\nend")

    np.testing.assert_array_equal(problem.objective_coeffs, [3, 25, -1, -0.5])


def test_repeated_variable_accumulates():
    problem = parse_lp_string("min\n x + y\nst\n x + 2 y + 3 x - y <= 5\nend")

    np.testing.assert_array_equal(problem.constraint_matrix, [[4, 1]])


def test_negative_right_hand_side_and_comments():
    text = "\\ cabeçalho\nmin \\ objetivo\n x\nst\n x - y >= -3 \\ comentário no fim\nend"

    problem = parse_lp_string(text)

    np.testing.assert_array_equal(problem.rhs_vector, [-3])
    np.testing.assert_array_equal(problem.constraint_matrix, [[1, -1]])


def test_variables_are_ordered_by_first_appearance():
    problem = parse_lp_string("max\n 2 b + a\nst\n z + a <= 1\nend")

    assert problem.variable_names == ["b", "a", "z"]
    np.testing.assert_array_equal(problem.objective_coeffs, [2, 1, 0])
    np.testing.assert_array_equal(problem.constraint_matrix, [[0, 1, 1]])


def test_bounds_directly_after_objective():
    problem = parse_lp_string("min\n x\nbounds\n x >= 3\nend")

    assert problem.num_constraints == 0
    np.testing.assert_array_equal(problem.lower_bounds, [3])


def test_content_after_end_is_ignored():
    problem = parse_lp_string("min\n x\nend\nisto não é LP")

    assert problem.variable_names == ["x"]


@pytest.mark.parametrize("text", [
    "",
    "maximum\n x\nend",
    "obj: max\n x\nend",
    "min\n x\nst\n x + y <=\nbounds\n x <= 1\nend",
    "min\n x\nst\n x + y\nend",
    "min\n x\nst\n a: x <= 1\n a: x >= 0\nend",
    "min\n x\nst\n c1: x <= 1\n x >= 0\nend",
    "min\n x\nst\n 2 3 x <= 1\nend",
    "min\n x + 5\nend",
    "min\n x <= 3\nend",
    "min\n x\nst\n x <= y\nend",
    "min\n x\nst\n x <= 1 2\nend",
    "min\n x\nbounds\n q <= 3\nend",
    "min\n x\nbounds\n q free\nend",
    "min\n x\nbounds\n x <= abc\nend",
    "min\n x\nbounds\n 1 <= x >= 0\nend",
    "min\n x\nbounds\n b: x <= 1\nend",
    "end\n",
    "\\ vazio\nend\n",
    "min\n x\nst\n x <= 1\nsubject to\n x >= 0\nend",
    "min\n x\nst\n x <= 1\n max\nend",
    "min\n x\n max\nend",
])
def test_malformed_input_is_rejected(text):
    with pytest.raises(LPParseError):
        parse_lp_string(text)


def test_parse_error_reports_line_number():
    with pytest.raises(LPParseError) as excinfo:
        parse_lp_string("min\n x\nst\n 2 3 x <= 1\nend")

    assert excinfo.value.line_no == 4
    assert str(excinfo.value).startswith("linha 4:")


def test_parse_error_is_a_value_error():
    with pytest.raises(ValueError):
        parse_lp_string("maximum\n x\nend")


def test_read_from_file(tmp_path):
    path = tmp_path / "pequeno.lp"
    path.write_text("min\n x + y\nst\n x + y >= 2\nend\n")

    problem = parse_file_to_problem(str(path))

    assert problem.name == "pequeno"
    assert problem.constraint_senses == [ConstraintSense.GEQ]


def test_repeated_section_keyword_is_not_read_as_variables():
    with pytest.raises(LPParseError) as excinfo:
        parse_lp_string("min\n x\nst\n x <= 1\nsubject to\n x >= 0\nend")

    assert excinfo.value.line_no == 5
    assert "subject to" in str(excinfo.value)
