import json
import sys
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.table import Table

from shared_utils import (
    EventLogger, HeightConfig, HighResolutionClock,
    TreeDepthExceeded, TreeError
)
from tree_height import Node, build_tree, checked_height, height, height_iterative, inorder

SAMPLE_TREE = [50, 30, 70, 20, 40, 60, 80]


class HeightCalculator:
    def __init__(self, config_file: str = "height_config.json", log_dir: Optional[str] = None):
        self.config = HeightConfig(config_file)

        self.event_logger = None
        if self.config.tick_logging_enabled:
            self.event_logger = EventLogger("HEIGHT", log_dir or self.config.log_directory)

        self.console = Console()
        self.stats = {
            'computations': 0,
            'errors': 0,
            'max_height_seen': None,
            'total_latency_us': 0.0
        }

    def _dispatch(self, root: Optional[Node]) -> int:
        strategy = self.config.strategy
        if strategy == "iterative":
            return height_iterative(root)
        if strategy == "checked":
            return checked_height(root, max_depth=self.config.max_depth,
                                  detect_cycles=self.config.detect_cycles)
        try:
            return height(root)
        except RecursionError as e:
            raise TreeDepthExceeded(
                "Tree too deep for recursive strategy, use iterative or checked"
            ) from e

    def compute(self, root: Optional[Node]) -> int:
        """Compute the height of root with the configured strategy"""
        start = HighResolutionClock.start_timer()
        try:
            result = self._dispatch(root)
        except TreeError as e:
            self.stats['errors'] += 1
            if self.event_logger:
                self.event_logger.log_event(
                    event_type="HEIGHT_ERROR",
                    strategy=self.config.strategy,
                    latency_us=HighResolutionClock.elapsed_us(start),
                    error=str(e),
                    error_type=type(e).__name__
                )
            raise

        latency_us = HighResolutionClock.elapsed_us(start)
        self.stats['computations'] += 1
        self.stats['total_latency_us'] += latency_us
        if self.stats['max_height_seen'] is None or result > self.stats['max_height_seen']:
            self.stats['max_height_seen'] = result

        if self.event_logger:
            self.event_logger.log_event(
                event_type="HEIGHT_COMPUTED",
                strategy=self.config.strategy,
                height=result,
                latency_us=latency_us,
                empty=root is None
            )
        return result

    def get_stats(self) -> Dict[str, Any]:
        stats = dict(self.stats)
        stats['strategy'] = self.config.strategy
        if self.event_logger:
            stats['events_logged'] = self.event_logger.get_stats()['total_events']
        return stats

    def display_stats(self):
        stats = self.get_stats()
        table = Table(title=f"Height Calculator - {stats['strategy'].title()}")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green")

        table.add_row("Computations", str(stats['computations']))
        table.add_row("Errors", str(stats['errors']))
        table.add_row("Max Height", "-" if stats['max_height_seen'] is None else str(stats['max_height_seen']))
        if stats['computations']:
            table.add_row("Avg Latency", f"{stats['total_latency_us'] / stats['computations']:.1f}us")
        if 'events_logged' in stats:
            table.add_row("Events Logged", str(stats['events_logged']))

        self.console.print(table)

        if self.event_logger:
            recent = self.event_logger.get_recent_events(5)
            if recent:
                event_table = Table(title="Recent Events")
                event_table.add_column("Time", style="cyan")
                event_table.add_column("Event", style="green")
                event_table.add_column("Height", style="green")
                event_table.add_column("Latency", style="yellow")

                for event in recent:
                    event_table.add_row(
                        event.timestamp_human,
                        event.event_type,
                        "-" if event.height is None else str(event.height),
                        "-" if event.latency_us is None else f"{event.latency_us:.1f}us"
                    )

                self.console.print(event_table)

    def close(self):
        if self.event_logger:
            self.event_logger.close()


def parse_values(raw: List[str]) -> List:
    """Parse CLI level-order tokens, null/None marking absent children"""
    values = []
    for token in raw:
        if token.lower() in ("null", "none", "-"):
            values.append(None)
            continue
        try:
            values.append(json.loads(token))
        except json.JSONDecodeError:
            values.append(token)
    return values


def main(argv: Optional[List[str]] = None) -> int:
    import argparse

    parser = argparse.ArgumentParser(description="Binary tree height calculator")
    parser.add_argument("values", nargs="*", help="Level-order node values, null for an absent child")
    parser.add_argument("--config", default="height_config.json", help="Config file")
    parser.add_argument("--strategy", choices=['recursive', 'iterative', 'checked'], help="Traversal strategy")
    parser.add_argument("--max-depth", type=int, help="Depth guard for the checked strategy")
    parser.add_argument("--stats", action="store_true", help="Print the stats table")

    args = parser.parse_args(argv)

    try:
        calculator = HeightCalculator(args.config)
    except TreeError as e:
        print(f" Config error: {e}", file=sys.stderr)
        return 1

    try:
        if args.strategy:
            calculator.config.set_strategy(args.strategy)
        if args.max_depth is not None:
            calculator.config.set_max_depth(args.max_depth)

        values = parse_values(args.values) if args.values else SAMPLE_TREE
        root = build_tree(values)

        print("In-order traversal of tree:")
        print(" ".join(str(v) for v in inorder(root)))
        h = calculator.compute(root)
        print(f"Height of the tree (edges): {h}")

        if args.stats:
            calculator.display_stats()
    except TreeError as e:
        print(f" Error: {e}", file=sys.stderr)
        return 1
    finally:
        calculator.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
