import argparse
import os
import sys
import time
import numpy as np
from dataclasses import dataclass, replace
from typing import Optional, List, Dict, Any

from dense import expand
from errors import ProblemReadError, ProblemIOError, SolverError
from parse_csc import parse_csc
from results import RESULTS_DIR, save_result
from solve import TIME_LIMIT_SECONDS, solve_problem

PROBLEM_EXTENSIONS = (".txt", ".csc")
DEFAULT_INPUT_PATH = "test"
# Largest rows*cols printed by --dense
DENSE_PRINT_LIMIT = 400


@dataclass(frozen=True)
class FileOutcome:
    path: str
    status: str  # 'ok', 'failed' or 'skipped'
    error: Optional[str] = None
    objective_value: Optional[float] = None


@dataclass(frozen=True)
class BatchSummary:
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0

    def add(self, outcome: FileOutcome) -> "BatchSummary":
        if outcome.status == 'skipped':
            return replace(self, skipped=self.skipped + 1)
        if outcome.status == 'ok':
            return replace(self, processed=self.processed + 1, succeeded=self.succeeded + 1)
        return replace(self, processed=self.processed + 1, failed=self.failed + 1)


def is_problem_file(path: str) -> bool:
    return os.path.splitext(path)[1] in PROBLEM_EXTENSIONS


def _record(path: str, status: str, **fields) -> Dict[str, Any]:
    record = {
        "problem_name": os.path.splitext(os.path.basename(path))[0],
        "path": str(path),
        "status": status,
        "rows": None,
        "cols": None,
        "nnz": None,
        "parse_time_seconds": None,
        "objective_value": None,
        "solve_time_seconds": None,
        "model_status": None,
        "primal_residual": None,
        "error": None,
    }
    record.update(fields)
    return record


def _failed(path: str, error: str, results_dir: Optional[str], **fields) -> FileOutcome:
    _save(_record(path, 'failed', error=error, **fields), results_dir)
    return FileOutcome(path=path, status='failed', error=error)


def _print_dense(problem):
    if problem.rows * problem.cols <= DENSE_PRINT_LIMIT:
        print("Dense A (row-major):")
        print(np.array2string(expand(problem).T, precision=6, suppress_small=True))
    else:
        print(f"Skipping dense print, {problem.rows}x{problem.cols} exceeds {DENSE_PRINT_LIMIT} entries.")


def process_problem_file(path: str, results_dir: Optional[str] = None, solve: bool = True,
                         time_limit: float = TIME_LIMIT_SECONDS, show_dense: bool = False) -> FileOutcome:
    """Parse (and optionally solve) one problem file. Never raises for a bad problem file."""
    path = str(path)
    if not is_problem_file(path):
        print(f"Skipping non-problem file: {path}")
        return FileOutcome(path=path, status='skipped')

    start_time = time.time()
    try:
        problem = parse_csc(path)
    except ProblemReadError as e:
        print(f"Error: {e}")
        return _failed(path, str(e), results_dir, parse_time_seconds=time.time() - start_time)
    except Exception as e:
        error = f"{path}: unexpected error while parsing: {e!r}"
        print(f"Error: {error}")
        return _failed(path, error, results_dir, parse_time_seconds=time.time() - start_time)
    parse_time = time.time() - start_time

    sizes = {"rows": problem.rows, "cols": problem.cols, "nnz": problem.nnz}

    try:
        if show_dense:
            _print_dense(problem)

        if not solve:
            _save(_record(path, 'ok', parse_time_seconds=parse_time, **sizes), results_dir)
            return FileOutcome(path=path, status='ok')

        print(f"Solving problem: {path}")
        result = solve_problem(problem, time_limit=time_limit)
    except SolverError as e:
        print(f"Error: {path}: {e}")
        return _failed(path, str(e), results_dir, parse_time_seconds=parse_time, **sizes)
    except Exception as e:
        error = f"{path}: unexpected error while solving: {e!r}"
        print(f"Error: {error}")
        return _failed(path, error, results_dir, parse_time_seconds=parse_time, **sizes)

    print(f"Elapsed time: {result['solve_time_seconds'] * 1000.0:.3f} ms")
    status = 'ok' if result['success'] else 'failed'
    error = None
    if result['success']:
        print(f"Objective value: {result['objective_value']:.10g}")
    else:
        error = f"HiGHS did not reach optimality: {result['message']}"
        print(error)

    _save(_record(path, status,
                  parse_time_seconds=parse_time,
                  objective_value=result['objective_value'],
                  solve_time_seconds=result['solve_time_seconds'],
                  model_status=result['message'],
                  primal_residual=result['primal_residual'],
                  error=error,
                  **sizes), results_dir)
    return FileOutcome(path=path, status=status, error=error, objective_value=result['objective_value'])


def _save(record: Dict[str, Any], results_dir: Optional[str]):
    if results_dir is None:
        return
    try:
        result_filepath = save_result(record, results_dir)
        print(f"Results saved to {result_filepath}")
    except OSError as e:
        print(f"Error writing results for {record['path']}: {e}")


def list_problem_paths(input_path: str) -> List[str]:
    """Regular files of a directory in name order, or the single file given."""
    if os.path.isdir(input_path):
        return [os.path.join(input_path, name) for name in sorted(os.listdir(input_path))
                if os.path.isfile(os.path.join(input_path, name))]
    if os.path.isfile(input_path):
        return [str(input_path)]
    raise ProblemIOError("Path is not a valid file or directory", source=str(input_path))


def run_batch(input_path: str, results_dir: Optional[str] = None, solve: bool = True,
              time_limit: float = TIME_LIMIT_SECONDS, show_dense: bool = False) -> BatchSummary:
    summary = BatchSummary()
    paths = list_problem_paths(input_path)
    for i, path in enumerate(paths):
        print(f"--- Processing file {i + 1}/{len(paths)}: {path} ---")
        outcome = process_problem_file(path, results_dir=results_dir, solve=solve,
                                       time_limit=time_limit, show_dense=show_dense)
        summary = summary.add(outcome)
    return summary


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Read CSC linear programs, validate them and benchmark HiGHS simplex on them."
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=DEFAULT_INPUT_PATH,
        help="A problem file or a directory of problem files (.txt or .csc).",
    )
    parser.add_argument(
        "--results-dir",
        default=RESULTS_DIR,
        help="Directory for per-file JSON result records.",
    )
    parser.add_argument(
        "--no-save",
        action="store_true",
        help="Do not write result records.",
    )
    parser.add_argument(
        "--time-limit",
        type=float,
        default=TIME_LIMIT_SECONDS,
        help="HiGHS time limit per problem, in seconds.",
    )
    parser.add_argument(
        "--parse-only",
        action="store_true",
        help="Only parse and validate; do not call the solver.",
    )
    parser.add_argument(
        "--dense",
        action="store_true",
        help=f"Print the dense matrix of problems with at most {DENSE_PRINT_LIMIT} entries.",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    print(f"Processing path: {args.path}")
    print("---------------------------------")

    try:
        summary = run_batch(
            args.path,
            results_dir=None if args.no_save else args.results_dir,
            solve=not args.parse_only,
            time_limit=args.time_limit,
            show_dense=args.dense,
        )
    except ProblemIOError as e:
        print(f"Fatal Error: {e}", file=sys.stderr)
        return 1

    print("---------------------------------")
    print("Test run complete.")
    print(f"Processed: {summary.processed} files")
    print(f"Succeeded: {summary.succeeded} files")
    print(f"Failed:    {summary.failed} files")
    print(f"Skipped:   {summary.skipped} files")

    return 1 if summary.failed > 0 else 0


if __name__ == "__main__":
    sys.exit(main())
