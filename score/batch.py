# score/batch.py
import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional
from config import ConverterConfig
from score.converter import convert_file
from score.validator import validate_document

log = logging.getLogger(__name__)

MIDI_EXTENSIONS = ('.mid', '.midi')


@dataclass
class BatchResult:
    midi_path: str
    output_path: Optional[str] = None
    success: bool = False
    error: Optional[str] = None
    problems: List[str] = field(default_factory=list)


def find_midi_files(directory: str) -> List[str]:
    found = []
    for base, _dirs, files in os.walk(directory):
        for name in files:
            if name.lower().endswith(MIDI_EXTENSIONS):
                found.append(os.path.join(base, name))
    return sorted(found)


def convert_batch(paths: List[str], out_dir: str, cfg: Optional[ConverterConfig] = None) -> List[BatchResult]:
    """Convert each file on its own; one bad file does not stop the rest."""
    cfg = cfg or ConverterConfig()
    os.makedirs(out_dir, exist_ok=True)
    results: List[BatchResult] = []
    for path in paths:
        stem = os.path.splitext(os.path.basename(path))[0]
        out = os.path.join(out_dir, stem + ".musicxml")
        try:
            xml = convert_file(path, out, cfg)
        except Exception as e:
            log.error("Conversion failed for %s: %s", path, e)
            results.append(BatchResult(midi_path=path, error=str(e)))
            continue
        problems = validate_document(xml, cfg.quantize.tolerance)
        for p in problems:
            log.warning("%s: %s", out, p)
        results.append(BatchResult(midi_path=path, output_path=out, success=True, problems=problems))
    ok = sum(1 for r in results if r.success)
    log.info("Batch finished: %d/%d converted", ok, len(results))
    return results
