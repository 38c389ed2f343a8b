# Arquivo: solver_lp/utils/parser.py
#
# Leitor de arquivos .lp (formato no estilo CPLEX):
#
#   \ comentário até o fim da linha
#   max | min
#     obj: 2 x1 + 3 x2
#   subject to
#     c1: x1 + x2 <= 4
#     x1 <= 3
#   bounds
#     -5 <= x3 <= 5
#     x4 free
#   end

import logging
import os
import re
from enum import Enum
from typing import Dict, List, Optional

import numpy as np
from scipy.sparse import csr_matrix

from solver_lp.core.exceptions import LPParseError
from solver_lp.core.problem import Problem, ObjectiveSense, ConstraintSense

NAME_PATTERN = r"[a-zA-Z!\"#$%&()/,;?`'{}|~_][a-zA-Z0-9!\"#$%&()/,.;?`'{}|~_]*"
_NAME_RE = re.compile(NAME_PATTERN + r"$")
_TOKEN_RE = re.compile(
    r"\s*(?:(?P<op><=|>=|=<|=>|<|>|=)"
    r"|(?P<sign>[+-])"
    r"|(?P<number>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)"
    r"|(?P<name>" + NAME_PATTERN + r"))"
)
_OPERATOR_SPLIT_RE = re.compile(r"(<=|>=|=<|=>|<|>|=)")

SENSE_MAP = {
    "<=": ConstraintSense.LEQ, "=<": ConstraintSense.LEQ, "<": ConstraintSense.LEQ,
    ">=": ConstraintSense.GEQ, "=>": ConstraintSense.GEQ, ">": ConstraintSense.GEQ,
    "=": ConstraintSense.EQ,
}
OBJECTIVE_KEYWORDS = {
    "max": ObjectiveSense.MAX, "maximize": ObjectiveSense.MAX, "maximise": ObjectiveSense.MAX,
    "min": ObjectiveSense.MIN, "minimize": ObjectiveSense.MIN, "minimise": ObjectiveSense.MIN,
}
CONSTRAINT_KEYWORDS = {"subject to", "such that", "s.t.", "st.", "st"}
BOUNDS_KEYWORDS = {"bounds", "bound"}
POSITIVE_INFINITY = {"inf", "+inf", "infinity", "+infinity"}
NEGATIVE_INFINITY = {"-inf", "-infinity"}


class _Section(Enum):
    START = 0
    OBJECTIVE = 1
    CONSTRAINTS = 2
    BOUNDS = 3
    END = 4


class _LinearRow:
    """Uma combinação linear em construção (objetivo ou restrição), possivelmente em várias linhas."""

    def __init__(self, name: str):
        self.name = name
        self.coeffs: Dict[str, float] = {}
        self.sense: Optional[ConstraintSense] = None
        self.rhs: Optional[float] = None
        self.sign = 1.0
        self.pending_coeff: Optional[float] = None

    @property
    def is_empty(self) -> bool:
        return not self.coeffs and self.sense is None and self.pending_coeff is None and self.sign == 1.0

    @property
    def is_complete(self) -> bool:
        return self.rhs is not None


class LPReader:
    """
    Lê a definição textual de um LP e monta um objeto Problem.
    As variáveis são numeradas na ordem em que aparecem pela primeira vez.
    """

    def __init__(self, name: str = "lp"):
        self.name = name
        self.section = _Section.START
        self.objective_sense: Optional[ObjectiveSense] = None
        self.objective: Optional[_LinearRow] = None
        self.constraints: List[_LinearRow] = []
        self.constraint_names = set()
        self.current: Optional[_LinearRow] = None
        self.var_index: Dict[str, int] = {}
        self.lower: Dict[str, float] = {}
        self.upper: Dict[str, float] = {}

    def read(self, text: str) -> Problem:
        line_no = 0
        for line_no, raw_line in enumerate(text.splitlines(), start=1):
            if self.section == _Section.END:
                break
            self._read_line(raw_line, line_no)

        if self.section == _Section.START:
            raise LPParseError(line_no, "função objetivo não encontrada")
        if self._constraint_pending():
            raise LPParseError(line_no, "restrição incompleta no fim do arquivo")
        if self.section == _Section.OBJECTIVE:
            self._finish_objective(line_no)
        return self._build_problem()

    def _read_line(self, raw_line: str, line_no: int):
        logging.debug(f"LP linha {line_no}: {raw_line}")
        line = raw_line.split('\\', 1)[0].strip()

        if ':' in line:
            name_part, line = line.split(':', 1)
            name_part, line = name_part.strip(), line.strip()
            if self.section == _Section.START:
                raise LPParseError(line_no, "':' inesperado antes da seção do objetivo")
            if self.section == _Section.BOUNDS:
                raise LPParseError(line_no, "':' inesperado na seção de limites")
            if not _NAME_RE.match(name_part):
                raise LPParseError(line_no, f"nome inválido '{name_part}'")
            self.current.name = name_part

        if not line:
            return
        keyword = " ".join(line.lower().split())

        if keyword == "end":
            if self.section == _Section.START:
                raise LPParseError(line_no, "função objetivo não encontrada")
            if self._constraint_pending():
                raise LPParseError(line_no, "restrição incompleta")
            if self.section == _Section.OBJECTIVE:
                self._finish_objective(line_no)
            self.section = _Section.END

        elif self.section == _Section.START:
            if keyword not in OBJECTIVE_KEYWORDS:
                raise LPParseError(line_no, f"palavra-chave não reconhecida '{keyword}'")
            self.objective_sense = OBJECTIVE_KEYWORDS[keyword]
            self.current = _LinearRow("obj")
            self.section = _Section.OBJECTIVE

        elif self.section == _Section.OBJECTIVE:
            if keyword in CONSTRAINT_KEYWORDS:
                self._finish_objective(line_no)
                self.current = _LinearRow(f"c{len(self.constraints)}")
                self.section = _Section.CONSTRAINTS
            elif keyword in BOUNDS_KEYWORDS:
                self._finish_objective(line_no)
                self.section = _Section.BOUNDS
            elif keyword in OBJECTIVE_KEYWORDS:
                raise LPParseError(line_no, f"palavra-chave '{keyword}' fora de lugar")
            else:
                self._parse_linear_combination(line, self.current, line_no, allow_sense=False)

        elif self.section == _Section.CONSTRAINTS:
            if keyword in BOUNDS_KEYWORDS:
                if self._constraint_pending():
                    raise LPParseError(line_no, "restrição incompleta")
                self.section = _Section.BOUNDS
            elif keyword in CONSTRAINT_KEYWORDS or keyword in OBJECTIVE_KEYWORDS:
                raise LPParseError(line_no, f"palavra-chave '{keyword}' fora de lugar")
            else:
                self._parse_linear_combination(line, self.current, line_no, allow_sense=True)
                if self.current.is_complete:
                    self._finish_constraint(line_no)

        elif self.section == _Section.BOUNDS:
            self._parse_bound(line, line_no)

    def _constraint_pending(self) -> bool:
        return (self.section == _Section.CONSTRAINTS
                and not (self.current.is_empty or self.current.is_complete))

    def _finish_objective(self, line_no: int):
        if self.current.pending_coeff is not None:
            raise LPParseError(line_no, "termos constantes no objetivo não são suportados")
        self.objective = self.current
        self.current = None

    def _finish_constraint(self, line_no: int):
        row = self.current
        if row.name in self.constraint_names:
            hint = " (talvez uma restrição anterior tenha recebido esse nome automaticamente)" if row.name.startswith('c') else ""
            raise LPParseError(line_no, f"nome de restrição ambíguo '{row.name}'{hint}")
        self.constraint_names.add(row.name)
        self.constraints.append(row)
        self.current = _LinearRow(f"c{len(self.constraints)}")

    def _parse_linear_combination(self, expr: str, row: _LinearRow, line_no: int, allow_sense: bool):
        pos = 0
        expr = expr.rstrip()
        while pos < len(expr):
            match = _TOKEN_RE.match(expr, pos)
            if match is None or match.end() == pos:
                raise LPParseError(line_no, f"símbolo inesperado '{expr[pos:].strip()}'")
            pos = match.end()
            if row.is_complete:
                raise LPParseError(line_no, f"conteúdo após o lado direito: '{match.group(0).strip()}'")

            if match.group('op'):
                if not allow_sense:
                    raise LPParseError(line_no, f"operador '{match.group('op')}' inesperado no objetivo")
                if row.sense is not None:
                    raise LPParseError(line_no, f"'{match.group('op')}' ilegal: sentido já definido")
                if row.pending_coeff is not None:
                    raise LPParseError(line_no, "coeficiente sem variável")
                row.sense = SENSE_MAP[match.group('op')]
                row.sign = 1.0

            elif match.group('sign'):
                if row.pending_coeff is not None:
                    raise LPParseError(line_no, "coeficiente sem variável")
                if match.group('sign') == '-':
                    row.sign = -row.sign

            elif match.group('number'):
                value = float(match.group('number'))
                if row.sense is not None:
                    row.rhs = row.sign * value
                    row.sign = 1.0
                elif row.pending_coeff is not None:
                    raise LPParseError(line_no, f"sinal ausente antes de '{match.group('number')}'")
                else:
                    row.pending_coeff = value

            else:
                var_name = match.group('name')
                if row.sense is not None:
                    raise LPParseError(line_no, f"variável '{var_name}' no lado direito não é suportada")
                coeff = row.sign * (row.pending_coeff if row.pending_coeff is not None else 1.0)
                if var_name not in self.var_index:
                    self.var_index[var_name] = len(self.var_index)
                row.coeffs[var_name] = row.coeffs.get(var_name, 0.0) + coeff
                row.sign = 1.0
                row.pending_coeff = None

    def _parse_bound(self, expr: str, line_no: int):
        tokens = expr.split()
        if len(tokens) == 2 and tokens[1].lower() == "free":
            var_name = self._known_variable(tokens[0], line_no)
            self.lower[var_name] = -np.inf
            self.upper[var_name] = np.inf
            return

        parts = [p.strip() for p in _OPERATOR_SPLIT_RE.split(expr)]
        if len(parts) == 3:
            # Limite de um lado: "x <= 4" ou "4 >= x"
            left, op, right = parts
            sense = SENSE_MAP[op]
            if left in self.var_index:
                self._apply_bound(left, sense, self._parse_bound_value(right, line_no))
            elif right in self.var_index:
                self._apply_bound(right, sense.flipped(), self._parse_bound_value(left, line_no))
            else:
                raise LPParseError(line_no, f"nem '{left}' nem '{right}' é uma variável conhecida")
        elif len(parts) == 5:
            # Limite de dois lados: "l <= x <= u" ou "u >= x >= l"
            first, op1, middle, op2, last = parts
            sense = SENSE_MAP[op1]
            if sense != SENSE_MAP[op2] or sense == ConstraintSense.EQ:
                raise LPParseError(line_no, f"limite de dois lados inválido '{expr}'")
            var_name = self._known_variable(middle, line_no)
            first_value = self._parse_bound_value(first, line_no)
            last_value = self._parse_bound_value(last, line_no)
            if sense == ConstraintSense.LEQ:
                self.lower[var_name], self.upper[var_name] = first_value, last_value
            else:
                self.lower[var_name], self.upper[var_name] = last_value, first_value
        else:
            raise LPParseError(line_no, f"expressão de limite inválida '{expr}'")

    def _apply_bound(self, var_name: str, sense: ConstraintSense, value: float):
        if sense == ConstraintSense.LEQ:
            self.upper[var_name] = value
        elif sense == ConstraintSense.GEQ:
            self.lower[var_name] = value
        else:
            self.lower[var_name] = value
            self.upper[var_name] = value

    def _known_variable(self, var_name: str, line_no: int) -> str:
        if var_name not in self.var_index:
            raise LPParseError(line_no, f"variável desconhecida '{var_name}'")
        return var_name

    @staticmethod
    def _parse_bound_value(text: str, line_no: int) -> float:
        lowered = text.lower()
        if lowered in POSITIVE_INFINITY:
            return np.inf
        if lowered in NEGATIVE_INFINITY:
            return -np.inf
        try:
            return float(text)
        except ValueError:
            raise LPParseError(line_no, f"'{text}' não é um limite válido") from None

    def _build_problem(self) -> Problem:
        # 1. Lista ordenada de variáveis (ordem de primeira aparição)
        all_vars = sorted(self.var_index, key=self.var_index.get)
        num_vars = len(all_vars)

        # 2. Vetor de custos 'c'
        c = np.zeros(num_vars)
        for var, coeff in self.objective.coeffs.items():
            c[self.var_index[var]] = coeff

        # 3. Matriz 'A', vetor 'b' e sentidos das restrições
        num_constraints = len(self.constraints)
        b = np.zeros(num_constraints)
        rows, cols, data = [], [], []
        for i, row in enumerate(self.constraints):
            b[i] = row.rhs
            for var, coeff in row.coeffs.items():
                rows.append(i); cols.append(self.var_index[var]); data.append(coeff)
        A = csr_matrix((data, (rows, cols)), shape=(num_constraints, num_vars))

        # 4. Limites: padrão [0, +inf)
        lower_bounds = np.array([self.lower.get(var, 0.0) for var in all_vars], dtype=float)
        upper_bounds = np.array([self.upper.get(var, np.inf) for var in all_vars], dtype=float)

        logging.info(f"LP '{self.name}' lido: {num_constraints} restrições, {num_vars} variáveis.")
        return Problem(
            name=self.name,
            objective_sense=self.objective_sense,
            objective_coeffs=c,
            constraint_matrix=A.toarray(),
            rhs_vector=b,
            constraint_senses=[row.sense for row in self.constraints],
            variable_names=all_vars,
            constraint_names=[row.name for row in self.constraints],
            lower_bounds=lower_bounds,
            upper_bounds=upper_bounds,
        )


def parse_lp_string(text: str, name: str = "lp") -> Problem:
    """Converte o texto de um LP em um objeto Problem."""
    return LPReader(name).read(text)


def parse_file_to_problem(file_path: str) -> Problem:
    """
    Lê um arquivo .lp com a definição de um problema LP
    e o converte em um objeto Problem.
    """
    name = os.path.splitext(os.path.basename(file_path))[0]
    with open(file_path, 'r', encoding='utf-8') as f:
        return parse_lp_string(f.read(), name)
