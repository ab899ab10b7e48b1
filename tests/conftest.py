import pytest

EXAMPLE_TEXT = "p csc 2 2 2\n0 1 2\n0 1\n3.0 4.0\nq dense 2\n1.0 1.0\nq dense 2\n2.0 2.0"

# 3x4 with an empty column and an unsorted column
WIDER_TEXT = """A csc 3 4 5
0 2 2 4 5
2 0 1 2 1
1.5 -2.0 4.0 0.5 7.0
b dense 3
1.0 2.0 3.0
c dense 4
1.0 0.0 -1.0 2.5
"""


@pytest.fixture
def example_text():
    return EXAMPLE_TEXT


@pytest.fixture
def wider_text():
    return WIDER_TEXT


@pytest.fixture
def write_problem(tmp_path):
    """Write text to a file under tmp_path and return its path as a string."""
    def _write(name, text):
        path = tmp_path / name
        path.write_text(text)
        return str(path)
    return _write
