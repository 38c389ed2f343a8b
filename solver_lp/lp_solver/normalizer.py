# Conversão de um problema LP no formato geral para a forma padrão:
#   minimize c^T x  s.a.  A x = b,  b >= 0,  x >= 0

import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from solver_lp.core.exceptions import MalformedBoundsError
from solver_lp.core.problem import Problem, ObjectiveSense, ConstraintSense


@dataclass
class VariableMapping:
    """
    Como recuperar o valor de uma variável original a partir da forma padrão:

        x = offset + scale * (x[plus_column] - x[minus_column])

    minus_column só existe para variáveis livres (divididas em x' - x'').
    """
    name: str
    plus_column: int
    minus_column: Optional[int] = None
    offset: float = 0.0
    scale: float = 1.0

    def value(self, values: np.ndarray) -> float:
        raw = values[self.plus_column]
        if self.minus_column is not None:
            raw -= values[self.minus_column]
        return self.offset + self.scale * raw


class StandardFormNormalizer:
    """
    Reescreve um Problem qualquer em um Problem equivalente na forma padrão.

    Cada passo devolve um Problem novo; o problema de entrada nunca é alterado.
    Ordem dos passos (cada um assume os invariantes dos anteriores):
        1. objetivo de MAX para MIN
        2. eliminação dos limites das variáveis
        3. lado direito não-negativo
        4. folgas/excessos para transformar tudo em igualdade
    """

    def __init__(self, problem: Problem):
        self.problem = problem
        self.variable_map: List[VariableMapping] = []
        self.objective_flipped = False
        self.bound_constraints_added = 0

    def normalize(self) -> Problem:
        logging.info(f"Normalizando '{self.problem.name}': {self.problem.num_constraints} restrições, "
                     f"{self.problem.num_variables} variáveis.")
        standard = self._normalize_goal(self.problem)
        standard = self._eliminate_bounds(standard)
        standard = self._normalize_rhs_signs(standard)
        standard = self._insert_slacks(standard)
        logging.info(f"Forma padrão: {standard.num_constraints} restrições, {standard.num_variables} variáveis "
                     f"({self.bound_constraints_added} restrições de limite adicionadas).")
        return standard

    def recover(self, values: np.ndarray) -> np.ndarray:
        """Traduz valores da forma padrão para as variáveis do problema original."""
        return np.array([mapping.value(values) for mapping in self.variable_map])

    def _normalize_goal(self, problem: Problem) -> Problem:
        # 1. Todo problema passa a ser de minimização
        coeffs = problem.objective_coeffs.copy()
        offset = problem.objective_offset
        if problem.objective_sense == ObjectiveSense.MAX:
            logging.debug("Normalizador: objetivo de maximização negado.")
            coeffs = -coeffs
            offset = -offset
            self.objective_flipped = True
        return self._rebuild(problem, objective_sense=ObjectiveSense.MIN, objective_coeffs=coeffs,
                             objective_offset=offset)

    def _eliminate_bounds(self, problem: Problem) -> Problem:
        # 2. Todas as variáveis passam a valer em [0, +inf)
        num_rows = problem.num_constraints
        rhs = problem.rhs_vector.copy()
        offset = problem.objective_offset
        columns, costs, names = [], [], []
        new_rows = []  # (coluna, sentido, rhs, nome)
        self.variable_map = []

        for j in range(problem.num_variables):
            lb, ub = problem.lower_bounds[j], problem.upper_bounds[j]
            name = problem.variable_names[j]
            column = problem.constraint_matrix[:, j]
            cost = problem.objective_coeffs[j]
            k = len(columns)

            if np.isnan(lb) or np.isnan(ub) or lb > ub or np.isposinf(lb) or np.isneginf(ub):
                raise MalformedBoundsError(name, lb, ub)

            if lb == 0 and np.isposinf(ub):
                columns.append(column.copy()); costs.append(cost); names.append(name)
                self.variable_map.append(VariableMapping(name, k))

            elif np.isneginf(lb) and np.isposinf(ub):
                # Variável livre: x = x' - x''
                columns.append(column.copy()); costs.append(cost); names.append(f"{name}'")
                columns.append(-column); costs.append(-cost); names.append(f"{name}''")
                self.variable_map.append(VariableMapping(name, k, minus_column=k + 1))
                logging.debug(f"Normalizador: variável livre '{name}' dividida em duas colunas.")

            elif np.isneginf(lb):
                # Só limite superior: x = ub - x'
                rhs -= column * ub
                offset += cost * ub
                columns.append(-column); costs.append(-cost); names.append(name)
                self.variable_map.append(VariableMapping(name, k, offset=ub, scale=-1.0))
                logging.debug(f"Normalizador: variável '{name}' espelhada em torno de {ub}.")

            elif lb < 0:
                # x = x' + lb; o limite superior, se existir, vira restrição sobre x'
                rhs -= column * lb
                offset += cost * lb
                columns.append(column.copy()); costs.append(cost); names.append(name)
                self.variable_map.append(VariableMapping(name, k, offset=lb))
                if not np.isposinf(ub):
                    new_rows.append((k, ConstraintSense.LEQ, ub - lb, f"ub_{name}"))
                logging.debug(f"Normalizador: variável '{name}' deslocada por {lb}.")

            else:
                columns.append(column.copy()); costs.append(cost); names.append(name)
                self.variable_map.append(VariableMapping(name, k))
                if lb > 0:
                    new_rows.append((k, ConstraintSense.GEQ, lb, f"lb_{name}"))
                if not np.isposinf(ub):
                    new_rows.append((k, ConstraintSense.LEQ, ub, f"ub_{name}"))

        num_cols = len(columns)
        A = np.column_stack(columns) if columns else np.zeros((num_rows, 0))
        A = A.reshape(num_rows, num_cols)
        senses = list(problem.constraint_senses)
        constraint_names = list(problem.constraint_names)
        if new_rows:
            bound_block = np.zeros((len(new_rows), num_cols))
            for r, (col, sense, value, row_name) in enumerate(new_rows):
                bound_block[r, col] = 1.0
                senses.append(sense)
                constraint_names.append(row_name)
            A = np.vstack([A, bound_block])
            rhs = np.hstack([rhs, [row[2] for row in new_rows]])
        self.bound_constraints_added = len(new_rows)

        return self._rebuild(
            problem,
            objective_coeffs=np.array(costs, dtype=float),
            constraint_matrix=A,
            rhs_vector=rhs,
            constraint_senses=senses,
            variable_names=names,
            constraint_names=constraint_names,
            lower_bounds=np.zeros(num_cols),
            upper_bounds=np.full(num_cols, np.inf),
            objective_offset=offset,
        )

    def _normalize_rhs_signs(self, problem: Problem) -> Problem:
        # 3. Linhas com b_i < 0 são multiplicadas por -1
        A = problem.constraint_matrix.copy()
        rhs = problem.rhs_vector.copy()
        senses = list(problem.constraint_senses)
        for i in np.flatnonzero(rhs < 0):
            A[i, :] = -A[i, :]
            rhs[i] = -rhs[i]
            senses[i] = senses[i].flipped()
            logging.debug(f"Normalizador: restrição '{problem.constraint_names[i]}' multiplicada por -1.")
        return self._rebuild(problem, constraint_matrix=A, rhs_vector=rhs, constraint_senses=senses)

    def _insert_slacks(self, problem: Problem) -> Problem:
        # 4. Uma coluna de folga (+1) ou excesso (-1) por desigualdade
        senses = problem.constraint_senses
        inequality_rows = [i for i, s in enumerate(senses) if s != ConstraintSense.EQ]
        if not inequality_rows:
            return self._rebuild(problem)

        A = problem.constraint_matrix
        slack_block = np.zeros((problem.num_constraints, len(inequality_rows)))
        names = list(problem.variable_names)
        for k, i in enumerate(inequality_rows):
            if senses[i] == ConstraintSense.LEQ:
                slack_block[i, k] = 1.0
                names.append(f"s_{i}")
            else:
                slack_block[i, k] = -1.0
                names.append(f"e_{i}")

        num_cols = problem.num_variables + len(inequality_rows)
        return self._rebuild(
            problem,
            objective_coeffs=np.hstack([problem.objective_coeffs, np.zeros(len(inequality_rows))]),
            constraint_matrix=np.hstack([A, slack_block]),
            constraint_senses=[ConstraintSense.EQ] * problem.num_constraints,
            variable_names=names,
            lower_bounds=np.zeros(num_cols),
            upper_bounds=np.full(num_cols, np.inf),
        )

    @staticmethod
    def _rebuild(problem: Problem, **changes) -> Problem:
        fields = dict(
            name=problem.name,
            objective_sense=problem.objective_sense,
            objective_coeffs=problem.objective_coeffs.copy(),
            constraint_matrix=problem.constraint_matrix.copy(),
            rhs_vector=problem.rhs_vector.copy(),
            constraint_senses=list(problem.constraint_senses),
            variable_names=list(problem.variable_names),
            constraint_names=list(problem.constraint_names),
            lower_bounds=problem.lower_bounds.copy(),
            upper_bounds=problem.upper_bounds.copy(),
            objective_offset=problem.objective_offset,
        )
        fields.update(changes)
        return Problem(**fields)


def normalize(problem: Problem) -> Problem:
    """Devolve um novo Problem, equivalente ao original, na forma padrão."""
    return StandardFormNormalizer(problem).normalize()
