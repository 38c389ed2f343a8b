# solver.py
# Orquestra o processo completo: normalização -> Simplex em duas fases -> recuperação da solução.

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from solver_lp.core.exceptions import InfeasibleError, IterationLimitError, UnboundedError
from solver_lp.core.problem import Problem, ObjectiveSense
from solver_lp.lp_solver.normalizer import StandardFormNormalizer
from solver_lp.lp_solver.simplex import PricingRule, RevisedSimplexSolver, SimplexResult, TOLERANCE


class SolveStatus(Enum):
    OPTIMAL = "Optimal"
    INFEASIBLE = "Infeasible"
    UNBOUNDED = "Unbounded"
    ITERATION_LIMIT = "IterationLimit"


@dataclass
class Solution:
    """
    Resultado de uma resolução, expresso nas variáveis do problema original.
    objective_value e variables só são preenchidos quando status == OPTIMAL.
    """
    status: SolveStatus
    objective_value: Optional[float] = None
    variables: Dict[str, float] = field(default_factory=dict)
    standard_form: Optional[Problem] = None
    basis: List[int] = field(default_factory=list)
    iterations: Dict[int, int] = field(default_factory=dict)
    simplex_result: Optional[SimplexResult] = None
    message: str = ""

    @property
    def is_optimal(self) -> bool:
        return self.status == SolveStatus.OPTIMAL

    def __str__(self):
        if not self.is_optimal:
            return f"Status: {self.status.value}" + (f" ({self.message})" if self.message else "")
        lines = [f"Status: {self.status.value}", f"Objective: {self.objective_value:.6f}"]
        lines.extend(f"  {name} = {value:.6f}" for name, value in self.variables.items())
        return "\n".join(lines)


class LPSolver:
    """
    Resolve um Problem no formato geral.

    Chaves de configuração aceitas:
        pricing_rule (str): "dantzig" (padrão) ou "bland".
        max_iterations (int): limite de pivoteamentos por fase; None desliga.
        tolerance (float): tolerância de custos reduzidos e do teste da razão.
        record_history (bool): guarda o estado de cada iteração no resultado.
    """

    def __init__(self, config: Dict[str, Any] = None):
        self.config = config if config else {}
        self.pricing_rule = PricingRule(self.config.get('pricing_rule', PricingRule.DANTZIG.value))
        self.max_iterations = self.config.get('max_iterations')
        self.tolerance = self.config.get('tolerance', TOLERANCE)
        self.record_history = self.config.get('record_history', False)

    def solve(self, problem: Problem) -> Solution:
        # 1. Forma padrão (MalformedBoundsError é propagado: é um defeito da entrada)
        normalizer = StandardFormNormalizer(problem)
        standard = normalizer.normalize()

        # 2. Simplex em duas fases
        simplex = RevisedSimplexSolver(
            standard,
            pricing_rule=self.pricing_rule,
            max_iterations=self.max_iterations,
            tolerance=self.tolerance,
            record_history=self.record_history,
        )
        try:
            result = simplex.solve()
        except InfeasibleError as e:
            return Solution(SolveStatus.INFEASIBLE, standard_form=standard,
                            iterations=dict(simplex.iterations), message=str(e))
        except UnboundedError as e:
            return Solution(SolveStatus.UNBOUNDED, standard_form=standard,
                            iterations=dict(simplex.iterations), message=str(e))
        except IterationLimitError as e:
            logging.warning(str(e))
            return Solution(SolveStatus.ITERATION_LIMIT, standard_form=standard,
                            iterations=dict(simplex.iterations), message=str(e))

        # 3. Volta para as variáveis e para o sentido originais
        objective = result.objective_value
        if normalizer.objective_flipped:
            objective = -objective
        original_values = normalizer.recover(result.values)
        variables = {name: float(value) for name, value in zip(problem.variable_names, original_values)}

        sense = "MAX" if problem.objective_sense == ObjectiveSense.MAX else "MIN"
        logging.info(f"Solução ótima de '{problem.name}' ({sense}): objetivo = {objective:.6f}.")
        return Solution(
            SolveStatus.OPTIMAL,
            objective_value=objective,
            variables=variables,
            standard_form=standard,
            basis=result.basis,
            iterations=result.iterations,
            simplex_result=result,
        )


def solve_problem(problem: Problem, config: Dict[str, Any] = None) -> Solution:
    return LPSolver(config).solve(problem)
