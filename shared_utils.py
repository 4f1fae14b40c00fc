
import time
import json
import csv
import os
from datetime import datetime
from dataclasses import dataclass, asdict, field
from typing import Dict, List, Any, Optional
import threading
from collections import deque

import pandas as pd


class TreeError(Exception):
    """Base class for errors raised while measuring a tree"""


class CyclicTreeError(TreeError):
    """A node was reached twice, so the structure is not a tree"""


class TreeDepthExceeded(TreeError):
    """The tree is deeper than the configured or interpreter limit"""


class ConfigError(TreeError):
    """Invalid height calculator configuration"""


STRATEGIES = ("recursive", "iterative", "checked")

EVENT_FIELDS = [
    'timestamp_ns', 'timestamp_human', 'component', 'event_type',
    'strategy', 'height', 'latency_us', 'additional_data'
]


@dataclass
class HeightEvent:
    """Represents a single height computation event"""
    timestamp_ns: int
    timestamp_human: str
    component: str
    event_type: str
    strategy: Optional[str]
    height: Optional[int]
    latency_us: Optional[float]
    additional_data: Dict[str, Any] = field(default_factory=dict)


class EventLogger:
    """Event logging with CSV and JSON output"""

    def __init__(self, component_name: str, log_dir: str = "logs"):
        self.component_name = component_name
        self.log_dir = log_dir
        self.event_buffer = deque(maxlen=10000)  # Keep last 10k events in memory
        self.lock = threading.Lock()

        os.makedirs(log_dir, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        self.csv_filename = os.path.join(log_dir, f"{component_name}_{timestamp}.csv")
        self.json_filename = os.path.join(log_dir, f"{component_name}_{timestamp}.json")

        self.init_csv()
        self.json_buffer = []

    def init_csv(self):
        """Initialize CSV file with headers"""
        with open(self.csv_filename, 'w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow(EVENT_FIELDS)

    def log_event(self, event_type: str, strategy: str = None, height: int = None,
                  latency_us: float = None, **additional_data) -> HeightEvent:
        """Log an event"""
        event = HeightEvent(
            timestamp_ns=HighResolutionClock.get_timestamp_ns(),
            timestamp_human=datetime.now().isoformat(),
            component=self.component_name,
            event_type=event_type,
            strategy=strategy,
            height=height,
            latency_us=latency_us,
            additional_data=additional_data
        )

        with self.lock:
            self.event_buffer.append(event)
            # CSV is written immediately, JSON on flush()
            self._write_csv_event(event)
            self.json_buffer.append(asdict(event))

        return event

    def _write_csv_event(self, event: HeightEvent):
        with open(self.csv_filename, 'a', newline='') as f:
            writer = csv.writer(f)
            writer.writerow([
                event.timestamp_ns,
                event.timestamp_human,
                event.component,
                event.event_type,
                event.strategy,
                event.height,
                event.latency_us,
                json.dumps(event.additional_data) if event.additional_data else ''
            ])

    def flush(self):
        """Append buffered events to the JSON log"""
        with self.lock:
            buffer_copy = self.json_buffer.copy()
            self.json_buffer.clear()

        if not buffer_copy:
            return

        existing_data = []
        if os.path.exists(self.json_filename):
            with open(self.json_filename, 'r') as f:
                existing_data = json.load(f)

        existing_data.extend(buffer_copy)

        with open(self.json_filename, 'w') as f:
            json.dump(existing_data, f, indent=2)

    def close(self):
        self.flush()

    def get_recent_events(self, count: int = 100) -> List[HeightEvent]:
        """Get recent events from memory buffer"""
        with self.lock:
            return list(self.event_buffer)[-count:]

    def get_stats(self) -> Dict[str, Any]:
        with self.lock:
            return {
                'component': self.component_name,
                'total_events': len(self.event_buffer),
                'csv_file': self.csv_filename,
                'json_file': self.json_filename,
                'pending_json': len(self.json_buffer)
            }


def load_event_log(csv_path: str) -> pd.DataFrame:
    """Load an event CSV written by EventLogger, ordered by timestamp"""
    df = pd.read_csv(csv_path)
    return df.sort_values(by='timestamp_ns', kind='stable').reset_index(drop=True)


class HeightConfig:
    """Height calculator configuration backed by a JSON file"""

    DEFAULTS = {
        "strategy": "recursive",  # recursive, iterative or checked
        "detect_cycles": True,
        "max_depth": None,
        "logging": {
            "enable_tick_logging": False,
            "log_directory": "logs"
        }
    }

    def __init__(self, config_file: str = "height_config.json"):
        self.config_file = config_file
        self.load_config()

    def load_config(self):
        """Load configuration, creating the default file if missing"""
        if os.path.exists(self.config_file):
            with open(self.config_file, 'r') as f:
                try:
                    loaded = json.load(f)
                except json.JSONDecodeError as e:
                    raise ConfigError(f"{self.config_file} is not valid JSON: {e}") from e
            if not isinstance(loaded, dict):
                raise ConfigError(f"{self.config_file} must contain a JSON object")
            self.config = self._merge_defaults(loaded)
        else:
            self.create_default_config()
        self.validate()

    def _merge_defaults(self, loaded: Dict[str, Any]) -> Dict[str, Any]:
        config = json.loads(json.dumps(self.DEFAULTS))
        logging_section = loaded.get("logging")
        if logging_section is None:
            logging_section = {}
        if not isinstance(logging_section, dict):
            raise ConfigError(f"logging must be a JSON object, got {logging_section!r}")
        config.update({k: v for k, v in loaded.items() if k != "logging"})
        config["logging"].update(logging_section)
        return config

    def create_default_config(self):
        self.config = json.loads(json.dumps(self.DEFAULTS))
        self.save_config()

    def save_config(self):
        """Save configuration to file"""
        with open(self.config_file, 'w') as f:
            json.dump(self.config, f, indent=2)

    def validate(self):
        if self.config["strategy"] not in STRATEGIES:
            raise ConfigError(
                f"Unknown strategy {self.config['strategy']!r}, expected one of {', '.join(STRATEGIES)}"
            )
        max_depth = self.config["max_depth"]
        if max_depth is not None and (not isinstance(max_depth, int) or isinstance(max_depth, bool) or max_depth < 0):
            raise ConfigError(f"max_depth must be a non-negative integer or null, got {max_depth!r}")
        for name, value in (("detect_cycles", self.config["detect_cycles"]),
                            ("logging.enable_tick_logging", self.config["logging"]["enable_tick_logging"])):
            if not isinstance(value, bool):
                raise ConfigError(f"{name} must be true or false, got {value!r}")

    @property
    def strategy(self) -> str:
        return self.config["strategy"]

    @property
    def max_depth(self) -> Optional[int]:
        return self.config["max_depth"]

    @property
    def detect_cycles(self) -> bool:
        return self.config["detect_cycles"]

    @property
    def tick_logging_enabled(self) -> bool:
        return self.config["logging"]["enable_tick_logging"]

    @property
    def log_directory(self) -> str:
        return self.config["logging"]["log_directory"]

    def set_strategy(self, strategy: str):
        """Switch the traversal strategy and persist it"""
        if strategy not in STRATEGIES:
            raise ConfigError(f"Unknown strategy {strategy!r}")
        self.config["strategy"] = strategy
        self.save_config()
        print(f" Switched to {strategy} strategy")

    def set_max_depth(self, max_depth: Optional[int]):
        previous = self.config["max_depth"]
        self.config["max_depth"] = max_depth
        try:
            self.validate()
        except ConfigError:
            self.config["max_depth"] = previous
            raise
        self.save_config()


class HighResolutionClock:
    """High-resolution timestamp utilities"""

    @staticmethod
    def get_timestamp_ns() -> int:
        """Wall clock timestamp in nanoseconds"""
        return time.time_ns()

    @staticmethod
    def start_timer() -> int:
        return time.perf_counter_ns()

    @staticmethod
    def elapsed_us(start_ns: int) -> float:
        """Microseconds elapsed since a start_timer() reading"""
        return (time.perf_counter_ns() - start_ns) / 1000
