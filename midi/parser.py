# midi/parser.py
import logging
import mido
from bisect import bisect_right
from collections import deque
from typing import Dict, List, Tuple
from notes.model import NoteEvent, Performance, Track

DEFAULT_TEMPO = 500000  # 120 bpm
DEFAULT_PPQ = 480

log = logging.getLogger(__name__)


class MidiParseError(ValueError):
    pass


class TempoMap:
    """Tick -> seconds using every set_tempo in the file."""
    def __init__(self, changes: List[Tuple[int, int]], tpb: int):
        self.tpb = tpb
        self.ticks: List[int] = [0]
        self.tempos: List[int] = [DEFAULT_TEMPO]
        self.seconds: List[float] = [0.0]
        for tick, tempo in sorted(changes, key=lambda c: c[0]):
            if tick == self.ticks[-1]:
                self.tempos[-1] = tempo
                continue
            self.seconds.append(self.to_seconds(tick))
            self.ticks.append(tick)
            self.tempos.append(tempo)

    def to_seconds(self, tick: int) -> float:
        i = bisect_right(self.ticks, tick) - 1
        return self.seconds[i] + mido.tick2second(tick - self.ticks[i], self.tpb, self.tempos[i])


def _collect_tempo_changes(mid: mido.MidiFile) -> List[Tuple[int, int]]:
    changes = []
    for track in mid.tracks:
        tick = 0
        for msg in track:
            tick += msg.time
            if msg.is_meta and msg.type == 'set_tempo':
                changes.append((tick, msg.tempo))
    return changes


def _track_notes(track: mido.MidiTrack, convert) -> List[NoteEvent]:
    tick = 0
    active: Dict[Tuple[int, int], deque] = {}
    spans: List[Tuple[int, int, int, int, int]] = []  # (start, end, pitch, vel, ch)

    for msg in track:
        tick += msg.time
        if msg.is_meta:
            continue
        if msg.type == 'note_on' and msg.velocity > 0:
            active.setdefault((msg.channel, msg.note), deque()).append((tick, msg.velocity))
        elif msg.type == 'note_off' or (msg.type == 'note_on' and msg.velocity == 0):
            queue = active.get((msg.channel, msg.note))
            if queue:
                st, vel = queue.popleft()
                spans.append((st, tick, msg.note, vel, msg.channel))
    # close dangling
    for (ch, p), queue in active.items():
        for st, vel in queue:
            spans.append((st, tick, p, vel, ch))

    notes: List[NoteEvent] = []
    for st, end, pitch, vel, ch in spans:
        start_t, end_t = convert(st), convert(end)
        if end_t <= start_t:
            continue
        notes.append(NoteEvent(pitch=pitch, start=start_t, duration=end_t - start_t, velocity=vel, channel=ch))
    notes.sort(key=lambda n: (n.start, n.pitch))
    return notes


def parse_midi_file(path: str, time_base: str = "seconds") -> Performance:
    try:
        mid = mido.MidiFile(path)
    except (OSError, EOFError, ValueError, KeyError, IndexError) as e:
        raise MidiParseError(f"Failed to read MIDI file {path}: {e}") from e

    tpb = mid.ticks_per_beat or DEFAULT_PPQ
    if time_base == "beats":
        convert = lambda tick: tick / tpb
    elif time_base == "seconds":
        convert = TempoMap(_collect_tempo_changes(mid), tpb).to_seconds
    else:
        raise ValueError(f"Unknown time base: {time_base}")

    tracks: List[Track] = []
    for i, trk in enumerate(mid.tracks):
        tracks.append(Track(notes=_track_notes(trk, convert), name=trk.name or f"Track {i + 1}"))

    log.debug("Parsed %s: %d tracks, %d notes, ppq=%d",
              path, len(tracks), sum(len(t) for t in tracks), tpb)
    return Performance(tracks=tracks, ppq=tpb, time_base=time_base)
