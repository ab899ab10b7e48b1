import os
import json
import numpy as np
import pandas as pd
from typing import Dict, Any

RESULTS_DIR = "data/runtime-benchmark"
RESULT_SUFFIX = "_results.json"

NUMERIC_COLUMNS = [
    'rows', 'cols', 'nnz',
    'parse_time_seconds', 'solve_time_seconds',
    'objective_value', 'primal_residual',
]


def save_result(record: Dict[str, Any], results_dir: str = RESULTS_DIR) -> str:
    """Write one result record as <problem_name>_results.json and return its path."""
    os.makedirs(results_dir, exist_ok=True)
    result_filepath = os.path.join(results_dir, f"{record['problem_name']}{RESULT_SUFFIX}")
    with open(result_filepath, 'w') as f:
        json.dump(record, f, indent=4)
    return result_filepath


def load_results(results_dir: str = RESULTS_DIR) -> pd.DataFrame:
    """Loads all JSON result files from the specified directory into a pandas DataFrame."""
    all_results = []
    if not os.path.isdir(results_dir):
        print(f"Results directory not found: {results_dir}")
        return pd.DataFrame()

    for filename in sorted(os.listdir(results_dir)):
        if not filename.endswith(RESULT_SUFFIX):
            continue
        filepath = os.path.join(results_dir, filename)
        try:
            with open(filepath, 'r') as f:
                all_results.append(json.load(f))
        except json.JSONDecodeError:
            print(f"Warning: could not decode JSON from file: {filename}")
        except OSError as e:
            print(f"Warning: error reading file {filename}: {e}")

    if not all_results:
        return pd.DataFrame()

    df = pd.DataFrame(all_results)

    # Missing keys come back as NaN; 'coerce' turns anything non-numeric into NaN too
    for col in NUMERIC_COLUMNS:
        if col not in df.columns:
            df[col] = np.nan
        df[col] = pd.to_numeric(df[col], errors='coerce')

    cells = df['rows'] * df['cols']
    df['density'] = np.where(cells > 0, df['nnz'] / cells.where(cells > 0), np.nan)
    df['succeeded'] = df.get('status', pd.Series(index=df.index, dtype=object)) == 'ok'

    return df
