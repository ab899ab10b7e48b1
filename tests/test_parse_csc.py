"""
Tests for reading the CSC text format
"""
import io
import numpy as np
import pytest

from errors import (ProblemReadError, ProblemIOError, FormatError,
                    TruncatedInputError, StructuralValidationError)
from parse_csc import parse_csc, parse_stream, parse_text


def test_example_problem(example_text):
    p = parse_text(example_text)

    assert (p.rows, p.cols, p.nnz) == (2, 2, 2)
    np.testing.assert_equal(p.col_ptr, [0, 1, 2])
    np.testing.assert_equal(p.row_idx, [0, 1])
    np.testing.assert_allclose(p.values, [3.0, 4.0])
    np.testing.assert_allclose(p.b, [1.0, 1.0])
    np.testing.assert_allclose(p.c, [2.0, 2.0])
    assert (p.matrix_name, p.rhs_name, p.cost_name) == ('p', 'q', 'q')


def test_parse_file(write_problem, wider_text):
    path = write_problem("wide.csc", wider_text)
    p = parse_csc(path)

    assert p.shape == (3, 4)
    assert len(p.col_ptr) == p.cols + 1
    assert p.col_ptr[0] == 0
    assert p.col_ptr[-1] == p.nnz
    assert np.all(np.diff(p.col_ptr) >= 0)
    assert np.all((p.row_idx >= 0) & (p.row_idx < p.rows))
    np.testing.assert_allclose(p.c, [1.0, 0.0, -1.0, 2.5])


def test_tokens_ignore_line_layout(example_text):
    one_line = " ".join(example_text.split())
    messy = example_text.replace(" ", "\n\t ")
    for text in (one_line, messy):
        p = parse_text(text)
        np.testing.assert_allclose(p.values, [3.0, 4.0])
        np.testing.assert_allclose(p.c, [2.0, 2.0])


def test_parse_stream_reports_source(example_text):
    stream = io.StringIO(example_text.replace("csc", "csr", 1))
    with pytest.raises(FormatError) as exc:
        parse_stream(stream, source="in-memory")
    assert exc.value.source == "in-memory"


@pytest.mark.parametrize("tag", ["csr", "coo", "CSC", "dense"])
def test_reject_non_csc_matrix(example_text, tag):
    with pytest.raises(FormatError) as exc:
        parse_text(example_text.replace("csc", tag, 1))
    assert exc.value.block == 'matrix'
    assert not isinstance(exc.value, TruncatedInputError)


def test_reject_rhs_length_mismatch(example_text):
    text = example_text.replace("q dense 2\n1.0 1.0", "q dense 3\n1.0 1.0 1.0")
    with pytest.raises(FormatError) as exc:
        parse_text(text)
    assert exc.value.block == 'rhs'


def test_reject_cost_length_mismatch(example_text):
    text = example_text.replace("q dense 2\n2.0 2.0", "q dense 1\n2.0")
    with pytest.raises(FormatError) as exc:
        parse_text(text)
    assert exc.value.block == 'cost'


def test_reject_non_dense_vector(example_text):
    text = example_text.replace("q dense 2\n1.0 1.0", "q sparse 2\n1.0 1.0")
    with pytest.raises(FormatError) as exc:
        parse_text(text)
    assert exc.value.block == 'rhs'


def test_truncated_cost_block(example_text):
    truncated = example_text[:example_text.rindex(" ")]
    with pytest.raises(TruncatedInputError) as exc:
        parse_text(truncated)
    assert exc.value.block == 'cost'


@pytest.mark.parametrize("cut, block", [
    ("p csc 2 2", 'matrix'),
    ("p csc 2 2 2\n0 1 2\n0 1\n3.0", 'matrix'),
    ("p csc 2 2 2\n0 1 2\n0 1\n3.0 4.0\nq dense", 'rhs'),
    ("p csc 2 2 2\n0 1 2\n0 1\n3.0 4.0\nq dense 2\n1.0", 'rhs'),
    ("", 'matrix'),
])
def test_truncated_blocks(cut, block):
    with pytest.raises(TruncatedInputError) as exc:
        parse_text(cut)
    assert exc.value.block == block


@pytest.mark.parametrize("text", [
    "p csc two 2 2\n0 1 2\n0 1\n3.0 4.0\nq dense 2\n1 1\nq dense 2\n2 2",
    "p csc 2 2 2\n0 1 2.5\n0 1\n3.0 4.0\nq dense 2\n1 1\nq dense 2\n2 2",
    "p csc 2 2 2\n0 1 2\n0 1\n3.0 four\nq dense 2\n1 1\nq dense 2\n2 2",
    "p csc -1 2 2\n0 1 2\n0 1\n3.0 4.0\nq dense 2\n1 1\nq dense 2\n2 2",
])
def test_reject_bad_tokens(text):
    with pytest.raises(FormatError):
        parse_text(text)


@pytest.mark.parametrize("text, fragment", [
    # row index out of range
    ("p csc 2 2 2\n0 1 2\n0 2\n3.0 4.0\nq dense 2\n1 1\nq dense 2\n2 2", "row_idx[1]"),
    ("p csc 2 2 2\n0 1 2\n-1 1\n3.0 4.0\nq dense 2\n1 1\nq dense 2\n2 2", "row_idx[0]"),
    # col_ptr decreasing
    ("p csc 2 3 2\n0 2 1 2\n0 1\n3.0 4.0\nq dense 2\n1 1\nq dense 3\n2 2 2", "non-decreasing"),
    # col_ptr does not start at zero / end at nnz
    ("p csc 2 2 2\n1 1 2\n0 1\n3.0 4.0\nq dense 2\n1 1\nq dense 2\n2 2", "col_ptr[0]"),
    ("p csc 2 2 2\n0 1 1\n0 1\n3.0 4.0\nq dense 2\n1 1\nq dense 2\n2 2", "col_ptr[2]"),
    # non-finite values
    ("p csc 2 2 2\n0 1 2\n0 1\n3.0 nan\nq dense 2\n1 1\nq dense 2\n2 2", "values[1]"),
    ("p csc 2 2 2\n0 1 2\n0 1\ninf 4.0\nq dense 2\n1 1\nq dense 2\n2 2", "values[0]"),
])
def test_structural_validation(text, fragment):
    with pytest.raises(StructuralValidationError) as exc:
        parse_text(text)
    assert fragment in str(exc.value)
    assert exc.value.source == '<string>'


def test_trailing_tokens_ignored(example_text, capsys):
    p = parse_text(example_text + "\nextra 1 2 3")
    np.testing.assert_allclose(p.c, [2.0, 2.0])
    assert "trailing tokens" in capsys.readouterr().out


def test_missing_file(tmp_path):
    path = str(tmp_path / "nope.csc")
    with pytest.raises(ProblemIOError) as exc:
        parse_csc(path)
    assert exc.value.source == path


def test_directory_is_io_error(tmp_path):
    with pytest.raises(ProblemIOError):
        parse_csc(str(tmp_path))


def test_error_is_one_line(write_problem, example_text):
    path = write_problem("bad.txt", example_text.replace("csc", "csr", 1))
    with pytest.raises(ProblemReadError) as exc:
        parse_csc(path)
    message = str(exc.value)
    assert "\n" not in message
    assert message.startswith(path)
    assert "[matrix]" in message


def test_empty_problem():
    p = parse_text("A csc 0 0 0\n0\nb dense 0\nc dense 0\n")
    assert (p.rows, p.cols, p.nnz) == (0, 0, 0)
    np.testing.assert_equal(p.col_ptr, [0])


def test_huge_declared_count_is_truncation():
    # the count is never used to preallocate; the input runs out first
    with pytest.raises(TruncatedInputError) as exc:
        parse_text("p csc 2 99999999999999 2\n0 1")
    assert exc.value.block == 'matrix'


@pytest.mark.parametrize("text, fragment", [
    ("p csc 2 2 99999999999999999999999\n0 1 2\n0 1\n3.0 4.0", "nnz"),
    ("p csc 2 2 2\n0 1 2\n0 99999999999999999999\n3.0 4.0\nq dense 2\n1 1\nq dense 2\n2 2", "row_idx[1]"),
    ("p csc 2 2 2\n0 1 2\n0 1\n3.0 4.0\nq dense -99999999999999999999\n1 1", "rhs length"),
])
def test_integers_beyond_int64(text, fragment):
    with pytest.raises(FormatError) as exc:
        parse_text(text)
    assert not isinstance(exc.value, TruncatedInputError)
    assert fragment in str(exc.value)
    assert "64 bits" in str(exc.value)
