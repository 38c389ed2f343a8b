import numpy as np
import pytest

from solver_lp.core.problem import Problem, ObjectiveSense, ConstraintSense


def small_problem(**overrides):
    fields = dict(
        name="pequeno",
        objective_sense=ObjectiveSense.MAX,
        objective_coeffs=np.array([2.0, 3.0]),
        constraint_matrix=np.array([[1.0, 1.0], [1.0, 0.0]]),
        rhs_vector=np.array([4.0, 3.0]),
        constraint_senses=[ConstraintSense.LEQ, ConstraintSense.LEQ],
    )
    fields.update(overrides)
    return Problem(**fields)


def test_defaults_are_filled_in():
    problem = small_problem()

    assert problem.variable_names == ["x0", "x1"]
    assert problem.constraint_names == ["c0", "c1"]
    np.testing.assert_array_equal(problem.lower_bounds, [0, 0])
    assert np.all(np.isposinf(problem.upper_bounds))
    assert problem.num_variables == 2
    assert problem.num_constraints == 2


@pytest.mark.parametrize("overrides", [
    {'constraint_matrix': np.ones((2, 3))},
    {'constraint_senses': [ConstraintSense.LEQ]},
    {'variable_names': ["a"]},
    {'constraint_names': ["r0", "r1", "r2"]},
    {'lower_bounds': np.zeros(3)},
    {'solution_values': np.zeros(1)},
])
def test_inconsistent_dimensions_are_rejected(overrides):
    with pytest.raises(ValueError):
        small_problem(**overrides)


def test_standard_form_detection():
    assert not small_problem().is_standard_form()

    standard = small_problem(objective_sense=ObjectiveSense.MIN,
                             constraint_senses=[ConstraintSense.EQ, ConstraintSense.EQ])
    assert standard.is_standard_form()

    shifted = standard.copy()
    shifted.lower_bounds[0] = 1.0
    assert not shifted.is_standard_form()
    assert standard.lower_bounds[0] == 0.0


def test_objective_value_sums_basic_columns_and_offset():
    problem = small_problem(objective_offset=1.5, solution_values=np.array([0.0, 4.0]))

    assert problem.objective_value([1]) == pytest.approx(13.5)


def test_objective_value_requires_solution():
    with pytest.raises(ValueError):
        small_problem().objective_value([0])


def test_string_representation():
    problem = small_problem(variable_names=["a", "b"], lower_bounds=np.array([-np.inf, 1.0]),
                            upper_bounds=np.array([np.inf, 5.0]))

    text = str(problem)

    assert text.startswith("Maximize: 2.0 a + 3.0 b")
    assert "Subject To:" in text
    assert "  c0: a + b <= 4.0" in text
    assert "  a free" in text
    assert "  1.0 <= b <= 5.0" in text
