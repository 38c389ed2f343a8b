"""
Hierarquia de erros do solver LP.

Inviabilidade e ilimitação são resultados esperados da otimização; o motor
Simplex os sinaliza por exceção e a camada de orquestração (solver.py) os
converte em um status da solução.
"""
from typing import Optional

import numpy as np


class SolverError(Exception):
    """Classe base para os erros do solver."""


class MalformedBoundsError(SolverError):
    """O normalizador encontrou uma combinação de limites que não sabe eliminar."""

    def __init__(self, variable_name: str, lower: float, upper: float):
        self.variable_name = variable_name
        self.lower = lower
        self.upper = upper
        super().__init__(f"Limites inválidos para a variável '{variable_name}': [{lower}, {upper}].")


class InfeasibleError(SolverError):
    """A Fase 1 provou que nenhum ponto satisfaz todas as restrições."""

    def __init__(self, message: str = "O problema é inviável."):
        super().__init__(message)


class UnboundedError(SolverError):
    """
    O teste da razão não encontrou linha limitante para a coluna que entra.

    Atributos:
        entering_column (int): Índice da coluna que entraria na base.
        direction (np.ndarray): Variação das variáveis básicas por unidade da
            coluna que entra (-A_B^-1 * A_j), na ordem da base.
        phase (int): Fase do Simplex em que a ilimitação foi detectada.
    """

    def __init__(self, entering_column: int, direction: Optional[np.ndarray] = None, phase: int = 2):
        self.entering_column = entering_column
        self.direction = direction
        self.phase = phase
        super().__init__(f"O problema é ilimitado (coluna {entering_column}, fase {phase}).")


class IterationLimitError(SolverError):
    """O limite de iterações configurado foi atingido antes de uma decisão."""

    def __init__(self, limit: int, phase: int):
        self.limit = limit
        self.phase = phase
        super().__init__(f"Limite de {limit} iterações atingido na fase {phase}.")


class SingularBasisError(SolverError):
    """
    Falha fatal: a matriz da base não pôde ser invertida.
    Indica um defeito de implementação, não uma propriedade do LP.
    """


class LPParseError(ValueError):
    """Erro de sintaxe em um arquivo LP."""

    def __init__(self, line_no: int, message: str):
        self.line_no = line_no
        super().__init__(f"linha {line_no}: {message}")
