# main.py
import sys, os
sys.path.append(os.path.dirname(__file__))  # 確保能找到 config.py

import argparse
import logging
from typing import List, Optional
from config import ConverterConfig, TIME_BASES, load_config
from score.batch import convert_batch, find_midi_files
from score.converter import convert_file
from utils.crashlog import setup_crashlog, log_exception, log_dir, set_log_dir

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

def _init_logging(cfg: ConverterConfig):
    if logging.getLogger().handlers:
        return
    level = getattr(logging, str(cfg.logging.level).upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT, encoding="utf-8")
    try:
        from logging.handlers import RotatingFileHandler
        fh = RotatingFileHandler(os.path.join(log_dir(), cfg.logging.log_file),
                                 maxBytes=cfg.logging.max_bytes,
                                 backupCount=cfg.logging.backup_count, encoding="utf-8")
        fh.setLevel(level)
        fh.setFormatter(logging.Formatter(LOG_FORMAT))
        logging.getLogger().addHandler(fh)
    except OSError as e:
        logging.warning("File logging disabled: %s", e)

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Convert MIDI performances to MusicXML scores.")
    ap.add_argument('source', help="MIDI file, or a directory of MIDI files")
    ap.add_argument('dest', help="MusicXML file, or an output directory when source is a directory")
    ap.add_argument('--config', help="JSON config file")
    ap.add_argument('--divisions', type=int, help="divisions per quarter note (default: source ppq)")
    ap.add_argument('--tolerance', type=int, help="quantization tolerance in divisions")
    ap.add_argument('--granularity', type=int, help="snap grid steps per quarter note (default 8, a 32nd)")
    ap.add_argument('--no-snap', action='store_true', help="keep exact onsets and offsets")
    ap.add_argument('--time-base', choices=TIME_BASES)
    ap.add_argument('--merge-tracks', action='store_true', help="notate every track in the single part")
    ap.add_argument('--log-level')
    ap.add_argument('--log-dir')
    return ap

def _config_from_args(args) -> ConverterConfig:
    cfg = load_config(args.config)
    if args.divisions is not None:
        cfg.quantize.divisions = args.divisions
    if args.tolerance is not None:
        cfg.quantize.tolerance = args.tolerance
    if args.granularity is not None:
        cfg.quantize.granularity = args.granularity
    if args.no_snap:
        cfg.quantize.snap_to_grid = False
    if args.time_base:
        cfg.quantize.time_base = args.time_base
    if args.merge_tracks:
        cfg.timeline.merge_tracks = True
    if args.log_level:
        cfg.logging.level = args.log_level
    if args.log_dir:
        cfg.logging.log_dir = args.log_dir
    return cfg.validate()

def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        cfg = _config_from_args(args)
    except (OSError, ValueError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    set_log_dir(cfg.logging.log_dir)
    setup_crashlog()
    _init_logging(cfg)

    if os.path.isdir(args.source):
        paths = find_midi_files(args.source)
        if not paths:
            print(f"No MIDI files found in {args.source}", file=sys.stderr)
            return 1
        results = convert_batch(paths, args.dest, cfg)
        failed = [r for r in results if not r.success]
        for r in failed:
            print(f"FAILED {r.midi_path}: {r.error}", file=sys.stderr)
        return 1 if failed else 0

    try:
        convert_file(args.source, args.dest, cfg)
    except Exception as e:
        report = log_exception("convert_file", e)
        logging.error("Conversion failed: %s", e, exc_info=True)
        print(f"Conversion failed: {e} (details in {report})", file=sys.stderr)
        return 1
    return 0

if __name__ == '__main__':
    sys.exit(main())
