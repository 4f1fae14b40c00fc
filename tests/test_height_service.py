import json
import os
import sys

import pytest

from height_service import HeightCalculator, main, parse_values
from shared_utils import CyclicTreeError, TreeDepthExceeded, load_event_log
from tree_height import Node
from tree_helpers import chain


def write_config(path, **overrides):
    with open(path, "w") as f:
        json.dump(overrides, f)


@pytest.mark.parametrize("strategy", ["recursive", "iterative", "checked"])
def test_compute_each_strategy(config_path, strategy, abcd_tree):
    write_config(config_path, strategy=strategy)
    calculator = HeightCalculator(config_path)
    assert calculator.compute(abcd_tree["A"]) == 2
    assert calculator.compute(None) == -1

    stats = calculator.get_stats()
    assert stats["strategy"] == strategy
    assert stats["computations"] == 2
    assert stats["max_height_seen"] == 2
    assert stats["errors"] == 0


def test_recursive_strategy_too_deep(config_path):
    calculator = HeightCalculator(config_path)
    with pytest.raises(TreeDepthExceeded):
        calculator.compute(chain(sys.getrecursionlimit() + 100))
    assert calculator.get_stats()["errors"] == 1


def test_checked_strategy_guards(config_path):
    write_config(config_path, strategy="checked", max_depth=2)
    calculator = HeightCalculator(config_path)
    with pytest.raises(TreeDepthExceeded):
        calculator.compute(chain(4))

    root = Node(1)
    root.right = root
    with pytest.raises(CyclicTreeError):
        calculator.compute(root)
    assert calculator.get_stats()["errors"] == 2


def test_events_logged(config_path, tmp_path, abcd_tree):
    log_dir = str(tmp_path / "events")
    write_config(config_path, strategy="checked", max_depth=1,
                 logging={"enable_tick_logging": True})
    calculator = HeightCalculator(config_path, log_dir=log_dir)

    assert calculator.compute(abcd_tree["B"]) == 1
    with pytest.raises(TreeDepthExceeded):
        calculator.compute(abcd_tree["A"])
    calculator.close()

    df = load_event_log(calculator.event_logger.csv_filename)
    assert list(df["event_type"]) == ["HEIGHT_COMPUTED", "HEIGHT_ERROR"]
    assert df.loc[0, "height"] == 1
    assert json.loads(df.loc[1, "additional_data"])["error_type"] == "TreeDepthExceeded"
    assert os.path.exists(calculator.event_logger.json_filename)
    assert calculator.get_stats()["events_logged"] == 2


def test_no_logger_by_default(config_path):
    calculator = HeightCalculator(config_path)
    assert calculator.event_logger is None
    assert "events_logged" not in calculator.get_stats()


def test_display_stats(config_path, capsys, abcd_tree):
    calculator = HeightCalculator(config_path)
    calculator.compute(abcd_tree["A"])
    calculator.display_stats()
    out = capsys.readouterr().out
    assert "Computations" in out
    assert "Max Height" in out


def test_parse_values():
    assert parse_values(["1", "null", "None", "x", "2.5"]) == [1, None, None, "x", 2.5]


def test_main_sample_tree(config_path, capsys):
    assert main(["--config", config_path]) == 0
    out = capsys.readouterr().out
    assert "20 30 40 50 60 70 80" in out
    assert "Height of the tree (edges): 2" in out


def test_main_with_values_and_strategy(config_path, capsys):
    assert main(["--config", config_path, "--strategy", "iterative", "1", "2", "null", "3"]) == 0
    assert "Height of the tree (edges): 2" in capsys.readouterr().out
    with open(config_path) as f:
        assert json.load(f)["strategy"] == "iterative"


def test_main_depth_guard_error(config_path, capsys):
    code = main(["--config", config_path, "--strategy", "checked", "--max-depth", "1",
                 "1", "2", "null", "3"])
    assert code == 1
    assert "Error" in capsys.readouterr().err


def test_main_bad_config(config_path, capsys):
    write_config(config_path, strategy="bogus")
    assert main(["--config", config_path]) == 1
    assert "Config error" in capsys.readouterr().err


def test_display_recent_events(config_path, tmp_path, capsys, abcd_tree):
    write_config(config_path, logging={"enable_tick_logging": True})
    calculator = HeightCalculator(config_path, log_dir=str(tmp_path / "events"))
    calculator.compute(abcd_tree["A"])
    calculator.display_stats()
    out = capsys.readouterr().out
    assert "Recent Events" in out
    assert "HEIGHT_COMPUTED" in out
    calculator.close()


@pytest.mark.parametrize("config", [
    {"logging": True},
    {"strategy": "checked", "detect_cycles": "false"},
])
def test_main_rejects_mistyped_config(config_path, capsys, config):
    write_config(config_path, **config)
    assert main(["--config", config_path]) == 1
    assert "Config error" in capsys.readouterr().err
