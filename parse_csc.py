import io
import time
import numpy as np
from dataclasses import dataclass, field
from typing import Iterator, Optional, TextIO, Tuple, Dict

from errors import ProblemReadError, ProblemIOError, FormatError, TruncatedInputError
from lp_model import SparseProblem

MATRIX_FORMAT = 'csc'
VECTOR_FORMAT = 'dense'
INT64_MIN = int(np.iinfo(np.int64).min)
INT64_MAX = int(np.iinfo(np.int64).max)


def _iter_tokens(stream: TextIO) -> Iterator[str]:
    """Yield whitespace-delimited tokens, reading the stream one line at a time."""
    for line in stream:
        yield from line.split()


@dataclass
class _TokenReader:
    """Pulls typed tokens off a stream and remembers which block is being read."""
    tokens: Iterator[str]
    block: str = 'matrix'
    consumed: int = 0

    def next_token(self, what: str) -> str:
        try:
            token = next(self.tokens)
        except StopIteration:
            raise TruncatedInputError(
                f"Input ended while reading {what} (after {self.consumed} tokens)", block=self.block) from None
        self.consumed += 1
        return token

    def next_int(self, what: str) -> int:
        token = self.next_token(what)
        try:
            value = int(token)
        except ValueError:
            raise FormatError(f"Expected an integer for {what}, got '{token}'", block=self.block) from None
        if not INT64_MIN <= value <= INT64_MAX:
            raise FormatError(f"Integer {what}={token} does not fit in 64 bits", block=self.block)
        return value

    def next_float(self, what: str) -> float:
        token = self.next_token(what)
        try:
            return float(token)
        except ValueError:
            raise FormatError(f"Expected a number for {what}, got '{token}'", block=self.block) from None

    # Declared counts are not trusted for allocation; the input runs out first.
    def read_ints(self, count: int, what: str) -> np.ndarray:
        out = [self.next_int(f"{what}[{k}]") for k in range(count)]
        return np.array(out, dtype=np.int64)

    def read_floats(self, count: int, what: str) -> np.ndarray:
        out = [self.next_float(f"{what}[{k}]") for k in range(count)]
        return np.array(out, dtype=np.float64)

    def has_more(self) -> bool:
        for _ in self.tokens:
            return True
        return False


@dataclass
class _ParserState:
    """Everything decoded so far, handed to SparseProblem once all blocks are read."""
    names: Dict[str, str] = field(default_factory=dict)
    rows: int = 0
    cols: int = 0
    nnz: int = 0
    col_ptr: Optional[np.ndarray] = None
    row_idx: Optional[np.ndarray] = None
    values: Optional[np.ndarray] = None
    b: Optional[np.ndarray] = None
    c: Optional[np.ndarray] = None


def _read_dimension(reader: _TokenReader, what: str) -> int:
    n = reader.next_int(what)
    if n < 0:
        raise FormatError(f"{what} must be non-negative, got {n}", block=reader.block)
    return n


def _parse_matrix_block(reader: _TokenReader, state: _ParserState):
    """Parses `<name> csc <rows> <cols> <nnz>` followed by col_ptr, row_idx and values."""
    reader.block = 'matrix'
    state.names['matrix'] = reader.next_token("matrix name")
    fmt = reader.next_token("matrix format")
    if fmt != MATRIX_FORMAT:
        raise FormatError(f"Expected A with '{MATRIX_FORMAT}' format, got '{fmt}'", block=reader.block)

    state.rows = _read_dimension(reader, "rows")
    state.cols = _read_dimension(reader, "cols")
    state.nnz = _read_dimension(reader, "nnz")

    state.col_ptr = reader.read_ints(state.cols + 1, "col_ptr")
    state.row_idx = reader.read_ints(state.nnz, "row_idx")
    state.values = reader.read_floats(state.nnz, "values")


def _parse_vector_block(reader: _TokenReader, block: str, expected: int, dim_name: str) -> Tuple[str, np.ndarray]:
    """Parses `<name> dense <n>` followed by n values; n must equal the matching matrix dimension."""
    reader.block = block
    name = reader.next_token(f"{block} name")
    fmt = reader.next_token(f"{block} format")
    declared = reader.next_int(f"{block} length")
    if fmt != VECTOR_FORMAT or declared != expected:
        raise FormatError(
            f"Expected {block} with '{VECTOR_FORMAT}' format and {expected} entries ({dim_name}), "
            f"got '{fmt}' with {declared}", block=block)
    return name, reader.read_floats(expected, block)


def _build_problem(state: _ParserState) -> SparseProblem:
    return SparseProblem(
        rows=state.rows,
        cols=state.cols,
        nnz=state.nnz,
        col_ptr=state.col_ptr,
        row_idx=state.row_idx,
        values=state.values,
        b=state.b,
        c=state.c,
        matrix_name=state.names.get('matrix'),
        rhs_name=state.names.get('rhs'),
        cost_name=state.names.get('cost'),
    )


def parse_stream(stream: TextIO, source: Optional[str] = None) -> SparseProblem:
    """Parse a CSC problem from an open text stream. Does not close the stream."""
    source = source or getattr(stream, 'name', None) or '<stream>'
    reader = _TokenReader(_iter_tokens(stream))
    state = _ParserState()

    try:
        _parse_matrix_block(reader, state)
        state.names['rhs'], state.b = _parse_vector_block(reader, 'rhs', state.rows, "rows")
        state.names['cost'], state.c = _parse_vector_block(reader, 'cost', state.cols, "cols")
        if reader.has_more():
            print(f"Warning: {source}: ignoring trailing tokens after the cost block.")
        return _build_problem(state)
    except ProblemReadError as e:
        raise e.with_context(source=source, block=reader.block)
    except (OSError, UnicodeDecodeError) as e:
        raise ProblemIOError(f"Could not read input: {e}", source=source, block=reader.block) from e


def parse_text(text: str, source: str = '<string>') -> SparseProblem:
    """Parse a CSC problem held in memory."""
    return parse_stream(io.StringIO(text), source=source)


def parse_csc(path: str) -> SparseProblem:
    """Parse a CSC problem file and return a validated SparseProblem."""
    parse_start_time = time.time()
    print(f"Starting CSC parsing for file: {path}")

    try:
        f = open(path, 'r', encoding='ascii')
    except OSError as e:
        raise ProblemIOError(f"Could not open file: {e.strerror or e}", source=str(path)) from e

    with f:
        problem = parse_stream(f, source=str(path))

    print(f"Parsed {problem.rows}x{problem.cols} matrix with {problem.nnz} nonzeros "
          f"in {time.time() - parse_start_time:.4f} seconds")
    return problem
