# score/converter.py
import logging
import os
import time
from typing import List, Optional
from config import ConverterConfig
from midi.parser import parse_midi_file
from notes.model import Performance
from notes.selection import select_notes
from score.model import Measure
from score.partitioner import MeasurePartitioner
from score.serializer import serialize

log = logging.getLogger(__name__)


def build_measures(perf: Performance, cfg: Optional[ConverterConfig] = None) -> List[Measure]:
    cfg = cfg or ConverterConfig()
    divisions = cfg.resolve_divisions(perf.ppq)
    notated, boundaries = select_notes(perf, cfg.timeline)
    if not notated:
        log.warning("No notes in any track; writing a single whole-measure rest")
    partitioner = MeasurePartitioner(
        divisions,
        tolerance=cfg.quantize.tolerance,
        grid=cfg.grid_units(divisions),
        precision=cfg.timeline.precision,
        epsilon=cfg.timeline.epsilon,
    )
    return partitioner.partition(notated, boundaries)


def convert_performance(perf: Performance, cfg: Optional[ConverterConfig] = None) -> str:
    """Performance -> MusicXML text. No I/O, no shared state."""
    cfg = (cfg or ConverterConfig()).validate()
    divisions = cfg.resolve_divisions(perf.ppq)

    t0 = time.perf_counter()
    measures = build_measures(perf, cfg)
    t1 = time.perf_counter()
    xml = serialize(measures, divisions, cfg.output)
    t2 = time.perf_counter()

    log.debug("Converted %d notes into %d measures (divisions=%d); partition %.1f ms, serialize %.1f ms",
              len(perf.notes), len(measures), divisions, (t1 - t0) * 1000, (t2 - t1) * 1000)
    return xml


def convert_file(src: str, dst: str, cfg: Optional[ConverterConfig] = None) -> str:
    cfg = (cfg or ConverterConfig()).validate()
    perf = parse_midi_file(src, time_base=cfg.quantize.time_base)
    xml = convert_performance(perf, cfg)
    parent = os.path.dirname(os.path.abspath(dst))
    os.makedirs(parent, exist_ok=True)
    with open(dst, "w", encoding="utf-8") as f:
        f.write(xml)
    log.info("Wrote %s", dst)
    return xml
