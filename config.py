# ========================= config.py =========================
import json
from dataclasses import dataclass, field, fields, is_dataclass
from typing import Optional

DEFAULT_DIVISIONS = 480
TIME_BASES = ("seconds", "beats")

@dataclass
class QuantizationConfig:
    divisions: Optional[int] = None   # None -> source ppq, else DEFAULT_DIVISIONS
    tolerance: int = 2                # absolute, in division units
    time_base: str = "seconds"        # or "beats"
    snap_to_grid: bool = True         # snap onsets and offsets before notating
    granularity: int = 8              # grid steps per quarter note; 8 -> 32nd

@dataclass
class TimelineConfig:
    # precision and epsilon matter for Timeline callers that pass seconds or
    # beats; the partitioner hands it integer division units, where they are inert
    precision: int = 6                # fractional digits kept when merging instants
    epsilon: float = 1e-6
    include_all_tracks: bool = True
    merge_tracks: bool = False

@dataclass
class OutputConfig:
    part_id: str = "P1"
    part_name: str = "Music"
    musicxml_version: str = "3.1"
    indent: str = "  "

@dataclass
class LoggingConfig:
    level: str = "INFO"
    log_dir: str = "logs"
    log_file: str = "converter.log"
    max_bytes: int = 2 * 1024 * 1024
    backup_count: int = 3

@dataclass
class ConverterConfig:
    quantize: QuantizationConfig = field(default_factory=QuantizationConfig)
    timeline: TimelineConfig = field(default_factory=TimelineConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> "ConverterConfig":
        q = self.quantize
        if q.divisions is not None and int(q.divisions) <= 0:
            raise ValueError(f"divisions must be positive, got {q.divisions}")
        if q.tolerance < 0:
            raise ValueError(f"tolerance must be non-negative, got {q.tolerance}")
        if int(q.granularity) <= 0:
            raise ValueError(f"granularity must be positive, got {q.granularity}")
        if q.time_base not in TIME_BASES:
            raise ValueError(f"Unknown time base: {q.time_base}")
        if self.timeline.precision < 0:
            raise ValueError(f"precision must be non-negative, got {self.timeline.precision}")
        return self

    def resolve_divisions(self, ppq: Optional[int] = None) -> int:
        if self.quantize.divisions:
            return int(self.quantize.divisions)
        return int(ppq) if ppq and ppq > 0 else DEFAULT_DIVISIONS

    def grid_units(self, divisions: int) -> Optional[int]:
        """Snap step in division units, or None when snapping is off."""
        if not self.quantize.snap_to_grid:
            return None
        return max(1, divisions // int(self.quantize.granularity))


def _apply(section, values: dict, name: str):
    known = {f.name: f for f in fields(section)}
    for key, value in values.items():
        if key not in known:
            raise ValueError(f"Unknown config key: {name}.{key}")
        current = getattr(section, key)
        if is_dataclass(current):
            if not isinstance(value, dict):
                raise ValueError(f"Config section {name}.{key} must be an object")
            _apply(current, value, f"{name}.{key}")
        else:
            setattr(section, key, value)


def config_from_dict(obj: dict) -> ConverterConfig:
    cfg = ConverterConfig()
    _apply(cfg, obj, "config")
    return cfg.validate()


def load_config(path: Optional[str] = None) -> ConverterConfig:
    """JSON 設定檔；沒給路徑就用預設值。"""
    if not path:
        return ConverterConfig()
    with open(path, "r", encoding="utf-8") as f:
        obj = json.load(f)
    if not isinstance(obj, dict):
        raise ValueError("Config file must contain a JSON object")
    return config_from_dict(obj)
