import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from scipy import linalg

from solver_lp.core.exceptions import (
    InfeasibleError,
    IterationLimitError,
    SingularBasisError,
    UnboundedError,
)
from solver_lp.core.problem import Problem

TOLERANCE = 1e-9
FEASIBILITY_TOLERANCE = 1e-7


class PricingRule(Enum):
    """
    Regra de escolha da variável que entra na base.

    DANTZIG: custo reduzido mais negativo (empate -> menor índice de coluna).
             Pode ciclar em problemas degenerados.
    BLAND:   menor índice com custo reduzido negativo; no teste da razão o
             empate vai para a variável básica de menor índice. Não cicla.
    """
    DANTZIG = "dantzig"
    BLAND = "bland"


@dataclass
class IterationRecord:
    phase: int
    iteration: int
    basis: Tuple[int, ...]
    basic_values: np.ndarray
    entering: Optional[int] = None
    leaving_row: Optional[int] = None


@dataclass
class SimplexResult:
    """
    Resultado de uma resolução ótima.

    Atributos:
        basis (List[int]): Base ótima; a posição i corresponde à linha i do sistema da Fase 2.
        values (np.ndarray): Valor de cada coluna do problema na forma padrão.
        objective_value (float): Valor do objetivo (já com o termo constante).
        reduced_costs (np.ndarray): Custos reduzidos finais (zero nas colunas básicas).
        iterations (Dict[int, int]): Número de pivoteamentos por fase.
        dropped_rows (List[int]): Linhas redundantes removidas após a Fase 1.
        history (List[IterationRecord]): Preenchido apenas com record_history=True.
    """
    basis: List[int]
    values: np.ndarray
    objective_value: float
    reduced_costs: np.ndarray
    iterations: Dict[int, int] = field(default_factory=dict)
    dropped_rows: List[int] = field(default_factory=list)
    history: List[IterationRecord] = field(default_factory=list)


class RevisedSimplexSolver:
    """
    Simplex revisado em duas fases sobre um Problem na forma padrão.

    A inversa da base é recalculada a cada iteração (matrizes densas), sem
    atualização de fatoração.
    """

    def __init__(self, problem: Problem, pricing_rule: PricingRule = PricingRule.DANTZIG,
                 max_iterations: Optional[int] = None, tolerance: float = TOLERANCE,
                 record_history: bool = False):
        if not problem.is_standard_form():
            raise ValueError(f"O problema '{problem.name}' não está na forma padrão; normalize-o antes.")
        self.problem = problem
        self.pricing_rule = PricingRule(pricing_rule)
        self.max_iterations = max_iterations
        self.tolerance = tolerance
        self.record_history = record_history
        self.iterations: Dict[int, int] = {1: 0, 2: 0}
        self.history: List[IterationRecord] = []

    def solve(self) -> SimplexResult:
        A = self.problem.constraint_matrix
        b = self.problem.rhs_vector
        c = self.problem.objective_coeffs
        m, n = A.shape

        # Equilibra as linhas pelo maior coeficiente: as tolerâncias absolutas
        # passam a valer na mesma escala para todas as restrições
        row_scale = np.max(np.abs(A), axis=1) if n else np.ones(m)
        row_scale[row_scale == 0.0] = 1.0
        A = A / row_scale[:, None]
        b = b / row_scale

        # --- FASE 1: uma artificial por linha, formando uma identidade à esquerda ---
        logging.info(f"Simplex: iniciando Fase 1 ({m} artificiais, regra {self.pricing_rule.value}).")
        aux_A = np.hstack([np.eye(m), A])
        aux_c = np.hstack([np.ones(m), np.zeros(n)])
        basis, aux_values, _ = self._run_phase(1, aux_A, b, aux_c, list(range(m)))

        aux_objective = float(aux_c[basis] @ aux_values[basis])
        artificial_positive = any(col < m and aux_values[col] > FEASIBILITY_TOLERANCE for col in basis)
        if aux_objective > FEASIBILITY_TOLERANCE or artificial_positive:
            logging.info(f"Simplex: Fase 1 terminou com soma das artificiais {aux_objective:.6g}. Problema inviável.")
            raise InfeasibleError(f"O problema '{self.problem.name}' é inviável "
                                  f"(soma das artificiais = {aux_objective:.6g}).")

        basis, kept_rows = self._drive_out_artificials(aux_A, basis, m)
        dropped_rows = [i for i in range(m) if i not in kept_rows]
        phase2_basis = [col - m for col in basis]
        logging.info(f"Simplex: Fase 1 ótima após {self.iterations[1]} iterações. Base viável: {phase2_basis}.")

        # --- FASE 2: objetivo original a partir da base viável ---
        basis, values, reduced_costs = self._run_phase(2, A[kept_rows, :], b[kept_rows], c, phase2_basis)
        logging.info(f"Simplex: Fase 2 ótima após {self.iterations[2]} iterações.")

        self.problem.solution_values = values
        return SimplexResult(
            basis=basis,
            values=values,
            objective_value=objective_value(self.problem, basis),
            reduced_costs=reduced_costs,
            iterations=dict(self.iterations),
            dropped_rows=dropped_rows,
            history=self.history,
        )

    def _run_phase(self, phase: int, A: np.ndarray, b: np.ndarray, c: np.ndarray,
                   basis: List[int]) -> Tuple[List[int], np.ndarray, np.ndarray]:
        basis = list(basis)
        n = A.shape[1]
        iteration = 0

        while True:
            # 1-2. Inversa da base, valores básicos e vetor de preços
            A_B_inv = self._invert_basis(A, basis)
            b_tilde = A_B_inv @ b
            pi = c[basis] @ A_B_inv

            # 3. Custos reduzidos das colunas não-básicas (em ordem crescente de índice)
            is_basic = np.zeros(n, dtype=bool)
            is_basic[basis] = True
            non_basic = np.flatnonzero(~is_basic)
            reduced = c[non_basic] - pi @ A[:, non_basic]

            # 4. Teste de otimalidade
            entering_pos = self._select_entering(reduced)
            if entering_pos is None:
                self._record(phase, iteration, basis, b_tilde)
                values = np.zeros(n)
                values[basis] = np.where(b_tilde <= 0.0, 0.0, b_tilde)
                reduced_costs = np.zeros(n)
                reduced_costs[non_basic] = reduced
                self.iterations[phase] = iteration
                return basis, values, reduced_costs

            # 5-7. Coluna que entra, coluna pivô e teste da razão
            entering = int(non_basic[entering_pos])
            w = A_B_inv @ A[:, entering]
            leaving_row = self._select_leaving(b_tilde, w, basis)
            self._record(phase, iteration, basis, b_tilde, entering, leaving_row)
            if leaving_row is None:
                logging.info(f"Simplex: coluna {entering} não tem linha limitante na Fase {phase}. Problema ilimitado.")
                raise UnboundedError(entering, direction=-w, phase=phase)

            # 8. Troca de base
            if self.max_iterations is not None and iteration >= self.max_iterations:
                raise IterationLimitError(self.max_iterations, phase)
            logging.debug(f"Fase {phase}, it {iteration}: entra {entering} "
                          f"(c~ = {reduced[entering_pos]:.6g}), sai {basis[leaving_row]} da linha {leaving_row}.")
            basis[leaving_row] = entering
            iteration += 1

    def _select_entering(self, reduced: np.ndarray) -> Optional[int]:
        negative = reduced < -self.tolerance
        if not np.any(negative):
            return None
        if self.pricing_rule == PricingRule.BLAND:
            return int(np.argmax(negative))
        # argmin devolve a primeira ocorrência: empate vai para o menor índice
        return int(np.argmin(reduced))

    def _select_leaving(self, b_tilde: np.ndarray, w: np.ndarray, basis: Sequence[int]) -> Optional[int]:
        eligible = w > self.tolerance
        if not np.any(eligible):
            return None
        ratios = np.full(len(w), np.inf)
        ratios[eligible] = np.maximum(b_tilde[eligible], 0.0) / w[eligible]
        if self.pricing_rule == PricingRule.BLAND:
            ties = np.flatnonzero(ratios <= ratios.min() + self.tolerance)
            return int(min(ties, key=lambda row: basis[row]))
        return int(np.argmin(ratios))

    def _invert_basis(self, A: np.ndarray, basis: Sequence[int]) -> np.ndarray:
        if len(basis) == 0:
            return np.zeros((0, 0))
        try:
            return linalg.inv(A[:, basis])
        except linalg.LinAlgError as e:
            raise SingularBasisError(f"Base singular {list(basis)}: {e}") from e

    def _drive_out_artificials(self, aux_A: np.ndarray, basis: List[int],
                               m: int) -> Tuple[List[int], List[int]]:
        """
        Tira da base as artificiais que ficaram em nível zero ao fim da Fase 1.
        Se a linha de A_B^-1 A correspondente for nula, a restrição da
        artificial é combinação das outras e é descartada na Fase 2.
        """
        basis = list(basis)
        redundant_positions = []
        for pos in range(len(basis)):
            if basis[pos] >= m:
                continue
            A_B_inv = self._invert_basis(aux_A, basis)
            row = A_B_inv[pos, :] @ aux_A[:, m:]
            candidates = [j for j in np.flatnonzero(np.abs(row) > self.tolerance) if (j + m) not in basis]
            if candidates:
                logging.debug(f"Simplex: artificial {basis[pos]} sai da base em pivô degenerado; entra {candidates[0]}.")
                basis[pos] = int(candidates[0]) + m
            else:
                redundant_positions.append(pos)

        dropped = {basis[pos] for pos in redundant_positions}
        for row in sorted(dropped):
            logging.info(f"Simplex: restrição '{self.problem.constraint_names[row]}' é redundante e foi descartada.")
        kept_rows = [i for i in range(m) if i not in dropped]
        basis = [col for pos, col in enumerate(basis) if pos not in redundant_positions]
        return basis, kept_rows

    def _record(self, phase, iteration, basis, b_tilde, entering=None, leaving_row=None):
        self.iterations[phase] = iteration
        if self.record_history:
            self.history.append(IterationRecord(phase, iteration, tuple(basis), b_tilde.copy(),
                                                entering, leaving_row))


def objective_value(problem: Problem, basis: Sequence[int]) -> float:
    """Valor do objetivo de um problema já resolvido, somado sobre as colunas básicas."""
    return problem.objective_value(basis)


def solve(problem: Problem, **kwargs) -> SimplexResult:
    """Atalho para RevisedSimplexSolver(problem, **kwargs).solve()."""
    return RevisedSimplexSolver(problem, **kwargs).solve()
