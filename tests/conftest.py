import sys
from pathlib import Path

import pytest

# Repository root holds the flat modules
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from tree_height import Node  # noqa: E402


@pytest.fixture
def abcd_tree():
    d = Node("D")
    b = Node("B", left=d)
    c = Node("C")
    a = Node("A", left=b, right=c)
    return {"A": a, "B": b, "C": c, "D": d}


@pytest.fixture
def config_path(tmp_path):
    return str(tmp_path / "height_config.json")
