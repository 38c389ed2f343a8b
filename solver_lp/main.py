# main.py
# O ponto de entrada principal para executar o solver LP.

import argparse
import logging
import sys

from solver_lp.core.exceptions import LPParseError, MalformedBoundsError
from solver_lp.lp_solver.normalizer import normalize
from solver_lp.solver import LPSolver, SolveStatus
from solver_lp.utils.logger_config import setup_logger
from solver_lp.utils.parser import parse_file_to_problem

EXIT_CODES = {
    SolveStatus.OPTIMAL: 0,
    SolveStatus.INFEASIBLE: 2,
    SolveStatus.UNBOUNDED: 3,
    SolveStatus.ITERATION_LIMIT: 4,
}
EXIT_INPUT_ERROR = 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Um solver de Programação Linear (Simplex revisado em duas fases).",
        formatter_class=argparse.RawTextHelpFormatter
    )

    parser.add_argument(
        "problem_file",
        type=str,
        help="Caminho para o arquivo do problema no formato .lp."
    )

    parser.add_argument(
        "--pricing",
        type=str,
        default="dantzig",
        choices=["dantzig", "bland"],
        help="Regra de escolha da variável que entra na base.\n"
             "'bland' evita ciclagem em problemas degenerados."
    )

    parser.add_argument(
        "--max-iterations",
        type=int,
        default=None,
        help="Número máximo de pivoteamentos por fase. Sem limite por padrão."
    )

    parser.add_argument(
        "--show-standard-form",
        action="store_true",
        help="Imprime o problema depois de convertido para a forma padrão."
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Mostra o log de cada iteração do Simplex."
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logger(logging.DEBUG if args.debug else logging.INFO)

    try:
        problem = parse_file_to_problem(args.problem_file)
        if args.show_standard_form:
            print(normalize(problem))
            print()

        solver_config = {
            'pricing_rule': args.pricing,
            'max_iterations': args.max_iterations,
        }
        solution = LPSolver(config=solver_config).solve(problem)
    except FileNotFoundError:
        print(f"ERRO: O arquivo '{args.problem_file}' não foi encontrado.", file=sys.stderr)
        return EXIT_INPUT_ERROR
    except (OSError, UnicodeDecodeError) as e:
        print(f"ERRO: Não foi possível ler '{args.problem_file}': {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR
    except (LPParseError, MalformedBoundsError) as e:
        print(f"ERRO: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    print(solution)
    return EXIT_CODES[solution.status]


if __name__ == "__main__":
    sys.exit(main())
