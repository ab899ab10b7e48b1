import time
import highspy
import numpy as np
from typing import Dict, Any

from errors import SolverError
from lp_model import SparseProblem

TIME_LIMIT_SECONDS = 20.0
# HiGHS stores matrix starts and indices as 32-bit ints
HIGHS_INT_MAX = int(np.iinfo(np.int32).max)


def build_highs_lp(problem: SparseProblem) -> highspy.HighsLp:
    """Lower a SparseProblem into a HiGHS model: min c^T x, A x = b, x >= 0."""
    if max(problem.rows, problem.cols, problem.nnz) > HIGHS_INT_MAX:
        raise SolverError(
            f"Problem too large for HiGHS: rows={problem.rows} cols={problem.cols} nnz={problem.nnz} "
            f"exceeds {HIGHS_INT_MAX}")

    lp = highspy.HighsLp()
    lp.num_col_ = problem.cols
    lp.num_row_ = problem.rows

    lp.col_cost_ = np.asarray(problem.c, dtype=np.float64)
    lp.col_lower_ = np.zeros(problem.cols, dtype=np.float64)
    lp.col_upper_ = np.full(problem.cols, highspy.kHighsInf, dtype=np.float64)

    # Equality rows: b <= A x <= b
    lp.row_lower_ = np.asarray(problem.b, dtype=np.float64)
    lp.row_upper_ = np.asarray(problem.b, dtype=np.float64)

    lp.a_matrix_.format_ = highspy.MatrixFormat.kColwise
    lp.a_matrix_.start_ = np.asarray(problem.col_ptr, dtype=np.int32)
    lp.a_matrix_.index_ = np.asarray(problem.row_idx, dtype=np.int32)
    lp.a_matrix_.value_ = np.asarray(problem.values, dtype=np.float64)
    return lp


def _new_model(time_limit: float) -> highspy.Highs:
    model = highspy.Highs()
    model.setOptionValue("time_limit", float(time_limit))
    model.setOptionValue("solver", "simplex")
    model.setOptionValue("presolve", "off")
    model.setOptionValue("threads", 1)
    model.setOptionValue("log_to_console", False)
    model.setOptionValue("output_flag", False)
    return model


def solve_problem(problem: SparseProblem, time_limit: float = TIME_LIMIT_SECONDS) -> Dict[str, Any]:
    """Solve the LP with HiGHS simplex and return status, objective and timing."""
    model = _new_model(time_limit)

    status = model.passModel(build_highs_lp(problem))
    if status == highspy.HighsStatus.kError:
        model.clear()
        raise SolverError(f"Failed to pass model to HiGHS (status {status})")

    start_time = time.time()
    model.run()
    solve_time = time.time() - start_time

    info = model.getInfo()
    model_status = model.getModelStatus()
    success = model_status == highspy.HighsModelStatus.kOptimal

    objective_value = None
    primal_residual = None
    if success:
        objective_value = info.objective_function_value
        x = np.asarray(model.getSolution().col_value, dtype=np.float64)
        residual = problem.to_scipy() @ x - problem.b
        primal_residual = float(np.max(np.abs(residual))) if residual.size else 0.0

    result_dict = {
        'success': success,
        'status': model_status,
        'message': model.modelStatusToString(model_status),
        'objective_value': objective_value,
        'solve_time_seconds': solve_time,
        'primal_residual': primal_residual,
    }

    model.clear()
    return result_dict
