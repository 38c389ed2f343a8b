"""
Define a estrutura de dados central para representar um problema de Programação Linear.
"""
import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

import numpy as np

class ObjectiveSense(Enum):
    """Define o sentido da otimização (maximizar ou minimizar)."""
    MAX = "max"
    MIN = "min"

class ConstraintSense(Enum):
    """Define o sentido de uma restrição (<=, =, >=)."""
    LEQ = "<="
    EQ = "="
    GEQ = ">="

    def flipped(self) -> "ConstraintSense":
        """Sentido obtido ao multiplicar a restrição por -1."""
        if self == ConstraintSense.LEQ:
            return ConstraintSense.GEQ
        if self == ConstraintSense.GEQ:
            return ConstraintSense.LEQ
        return ConstraintSense.EQ

@dataclass
class Problem:
    """
    Representa um problema de Programação Linear no formato geral:

    minimize/maximize c^T * x + objective_offset
    sujeito a:
        A * x (<=, =, >=) b
        lb <= x <= ub

    Atributos:
        name (str): Nome do problema.
        objective_sense (ObjectiveSense): Sentido da função objetivo.
        objective_coeffs (np.ndarray): Vetor de custos 'c'.
        constraint_matrix (np.ndarray): Matriz de restrições 'A' (densa).
        rhs_vector (np.ndarray): Vetor 'b' do lado direito das restrições.
        constraint_senses (List[ConstraintSense]): Sentido de cada restrição.
        variable_names (List[str]): Nomes das variáveis de decisão.
        constraint_names (List[str]): Nomes das restrições.
        lower_bounds (np.ndarray): Limites inferiores das variáveis.
        upper_bounds (np.ndarray): Limites superiores das variáveis.
        objective_offset (float): Termo constante do objetivo (surge ao deslocar variáveis).
        solution_values (np.ndarray): Valores das variáveis, preenchido apenas após a resolução.
    """
    name: str
    objective_sense: ObjectiveSense
    objective_coeffs: np.ndarray
    constraint_matrix: np.ndarray
    rhs_vector: np.ndarray
    constraint_senses: List[ConstraintSense]

    # Usamos 'field' para permitir valores padrão mais complexos
    variable_names: List[str] = field(default_factory=list)
    constraint_names: List[str] = field(default_factory=list)
    lower_bounds: np.ndarray = field(default_factory=lambda: np.array([]))
    upper_bounds: np.ndarray = field(default_factory=lambda: np.array([]))
    objective_offset: float = 0.0
    solution_values: Optional[np.ndarray] = None

    def __post_init__(self):
        """Validações pós-inicialização para garantir a consistência dos dados."""
        self.objective_coeffs = np.asarray(self.objective_coeffs, dtype=float)
        self.rhs_vector = np.asarray(self.rhs_vector, dtype=float)
        num_vars = len(self.objective_coeffs)
        num_constraints = len(self.rhs_vector)

        self.constraint_matrix = np.asarray(self.constraint_matrix, dtype=float)
        if self.constraint_matrix.size == 0:
            self.constraint_matrix = self.constraint_matrix.reshape(num_constraints, num_vars)
        if self.constraint_matrix.shape != (num_constraints, num_vars):
            raise ValueError(
                f"Dimensões da matriz de restrição A são inconsistentes: {self.constraint_matrix.shape} "
                f"!= {(num_constraints, num_vars)}."
            )

        self.constraint_senses = list(self.constraint_senses)
        if len(self.constraint_senses) != num_constraints:
            raise ValueError("Número de 'senses' de restrição é inconsistente.")

        # Inicializa nomes e limites se não forem fornecidos
        if not self.variable_names:
            self.variable_names = [f"x{i}" for i in range(num_vars)]
        if not self.constraint_names:
            self.constraint_names = [f"c{i}" for i in range(num_constraints)]
        self.variable_names = list(self.variable_names)
        self.constraint_names = list(self.constraint_names)

        self.lower_bounds = np.asarray(self.lower_bounds, dtype=float)
        self.upper_bounds = np.asarray(self.upper_bounds, dtype=float)
        if self.lower_bounds.size == 0:
            self.lower_bounds = np.zeros(num_vars)
        if self.upper_bounds.size == 0:
            self.upper_bounds = np.full(num_vars, np.inf)

        if len(self.variable_names) != num_vars:
            raise ValueError("Número de nomes de variáveis é inconsistente.")
        if len(self.constraint_names) != num_constraints:
            raise ValueError("Número de nomes de restrições é inconsistente.")
        if self.lower_bounds.shape != (num_vars,) or self.upper_bounds.shape != (num_vars,):
            raise ValueError("Vetores de limites das variáveis são inconsistentes.")
        if self.solution_values is not None:
            self.solution_values = np.asarray(self.solution_values, dtype=float)
            if self.solution_values.shape != (num_vars,):
                raise ValueError("Vetor de solução é inconsistente.")

    @property
    def num_variables(self) -> int:
        return len(self.objective_coeffs)

    @property
    def num_constraints(self) -> int:
        return len(self.rhs_vector)

    def is_standard_form(self) -> bool:
        """
        Um problema está na forma padrão se minimiza, tem apenas igualdades,
        lado direito não-negativo e todas as variáveis em [0, +inf).
        """
        return (
            self.objective_sense == ObjectiveSense.MIN
            and all(s == ConstraintSense.EQ for s in self.constraint_senses)
            and bool(np.all(self.rhs_vector >= 0))
            and bool(np.all(self.lower_bounds == 0))
            and bool(np.all(np.isposinf(self.upper_bounds)))
        )

    def objective_value(self, basis: Sequence[int]) -> float:
        """
        Soma objective[i] * solution_values[i] sobre as colunas básicas.
        Variáveis não-básicas valem zero e não contribuem.
        """
        if self.solution_values is None:
            raise ValueError(f"O problema '{self.name}' ainda não foi resolvido.")
        value = sum(self.objective_coeffs[i] * self.solution_values[i] for i in basis)
        return float(value) + self.objective_offset

    def copy(self) -> "Problem":
        return copy.deepcopy(self)

    def __str__(self):
        """Gera uma representação matemática legível do problema."""
        parts = []

        # 1. Função Objetivo
        obj_sense_str = "Maximize" if self.objective_sense == ObjectiveSense.MAX else "Minimize"
        obj_expr = self._format_linear_expression(self.objective_coeffs)
        if self.objective_offset:
            obj_expr = f"{obj_expr} + {self.objective_offset}" if obj_expr else f"{self.objective_offset}"
        parts.append(f"{obj_sense_str}: {obj_expr}")
        parts.append("\nSubject To:")

        # 2. Restrições
        for i in range(self.num_constraints):
            lhs = self._format_linear_expression(self.constraint_matrix[i, :])
            sense_str = self.constraint_senses[i].value
            parts.append(f"  {self.constraint_names[i]}: {lhs or '0'} {sense_str} {self.rhs_vector[i]}")

        # 3. Limites (Bounds)
        bound_lines = []
        for i, name in enumerate(self.variable_names):
            lb = self.lower_bounds[i]
            ub = self.upper_bounds[i]

            # Não imprime o bound padrão de x >= 0, é implicito
            if lb == 0 and ub == float('inf'):
                continue
            if np.isneginf(lb) and np.isposinf(ub):
                bound_lines.append(f"  {name} free")
            else:
                bound_lines.append(f"  {lb} <= {name} <= {ub}")
        if bound_lines:
            parts.append("\nBounds:")
            parts.extend(bound_lines)

        return "\n".join(parts)

    def _format_linear_expression(self, coeffs: np.ndarray) -> str:
        terms = []
        # Constrói a string termo a termo
        for j, coeff in enumerate(coeffs):
            if coeff == 0:
                continue
            is_first_term = not terms
            sign = ""
            if coeff > 0 and not is_first_term:
                sign = "+ "
            elif coeff < 0:
                sign = "- "

            abs_coeff = abs(coeff)
            term_str = f"{abs_coeff} {self.variable_names[j]}"
            if abs_coeff == 1:
                term_str = self.variable_names[j]

            terms.append(f"{sign}{term_str}")
        return " ".join(terms)
