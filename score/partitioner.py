# score/partitioner.py
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from notes.model import NoteEvent
from score.model import Measure, NoteFragment, RestFragment
from score.pitch import encode_pitch
from score.quantizer import DEFAULT_TOLERANCE, quantize
from timeline.scheduler import Timeline

log = logging.getLogger(__name__)

BEATS_PER_MEASURE = 4   # fixed 4/4


@dataclass(frozen=True)
class UnitNote:
    """A NoteEvent moved onto the integer division grid."""
    index: int
    pitch: int
    start: int
    duration: int

    @property
    def end(self) -> int:
        return self.start + self.duration


def to_units(notes: Sequence[NoteEvent], divisions: int, grid: Optional[int] = None) -> List[UnitNote]:
    # rounding happens here once; fragments only ever split these integers
    out: List[UnitNote] = []
    for i, n in enumerate(notes):
        if grid:
            # onset and offset snap to the grid, a note keeps at least one step
            start = round(n.start * divisions / grid) * grid
            end = max(round(n.end * divisions / grid) * grid, start + grid)
            out.append(UnitNote(index=i, pitch=n.pitch, start=start, duration=end - start))
            continue
        dur = round(n.duration * divisions)
        if dur <= 0:
            log.debug("Dropping note %d (pitch %d): shorter than one division", i, n.pitch)
            continue
        out.append(UnitNote(index=i, pitch=n.pitch, start=round(n.start * divisions), duration=dur))
    return out


def merge_instants(values: Iterable[int], divisions: int, tolerance: int) -> Dict[int, int]:
    """Map every instant onto a representative so that no two distinct
    representatives (origin included) lie within `tolerance` of each other.

    An instant close to a beat goes to the beat; otherwise it joins the
    previous representative when close enough, or starts a new one.
    """
    mapping: Dict[int, int] = {}
    anchor = 0
    for v in sorted(set(values)):
        beat = round(v / divisions) * divisions
        if abs(v - beat) <= tolerance:
            anchor = mapping[v] = max(beat, anchor)
        elif v - anchor <= tolerance:
            mapping[v] = anchor
        else:
            anchor = mapping[v] = v
    return mapping


def _moved(units: List[UnitNote], mapping: Dict[int, int]) -> List[UnitNote]:
    out: List[UnitNote] = []
    for u in units:
        start, end = mapping[u.start], mapping[u.end]
        if end <= start:
            log.debug("Dropping note %d (pitch %d): collapses within tolerance", u.index, u.pitch)
            continue
        out.append(UnitNote(index=u.index, pitch=u.pitch, start=start, duration=end - start))
    return out


class _Pass:
    """State carried through the single forward pass."""
    def __init__(self, divisions: int, tolerance: int):
        self.divisions = divisions
        self.tolerance = tolerance
        self.capacity = divisions * BEATS_PER_MEASURE
        self.sealed: List[Measure] = []
        self.current = Measure(number=1, capacity=self.capacity, divisions=divisions)
        self.open_ties: Dict[int, NoteFragment] = {}   # note index -> last fragment with tie_start

    def room(self) -> int:
        if self.current.is_full:
            self.seal_and_open()
        return self.current.remaining

    def seal_and_open(self):
        log.debug("Sealing measure %d (%d/%d)", self.current.number, self.current.filled, self.capacity)
        self.sealed.append(self.current)
        self.current = Measure(number=self.current.number + 1, capacity=self.capacity)

    def rests(self, units: int):
        left = units
        while left > 0:
            d = quantize(min(left, self.room()), self.divisions, self.tolerance)
            self.current.append(RestFragment(duration=d))
            left -= d.units

    def notes(self, t0: int, units: int, sounding: List[UnitNote]):
        left = units
        while left > 0:
            d = quantize(min(left, self.room()), self.divisions, self.tolerance)
            chunk_end = t0 + units - left + d.units
            for j, n in enumerate(sounding):
                frag = NoteFragment(
                    pitch=encode_pitch(n.pitch),
                    duration=d,
                    source=n.index,
                    chord=j > 0,
                    tie_start=chunk_end < n.end,
                    tie_stop=self.open_ties.pop(n.index, None) is not None,
                )
                if frag.tie_start:
                    self.open_ties[n.index] = frag
                self.current.append(frag)
            left -= d.units

    def pad(self):
        """Fill the last measure: an empty one gets a whole rest, otherwise
        the broken beat is closed and every remaining beat gets its own rest."""
        if self.current.filled == 0:
            self.rests(self.capacity)
            return
        partial = -self.current.filled % self.divisions
        if 0 < partial <= self.tolerance and partial < self.current.remaining:
            # too short for a rest of its own; the next beat's rest takes it
            partial += self.divisions
        if partial:
            self.rests(min(partial, self.current.remaining))
        while self.current.remaining > 0:
            self.rests(min(self.divisions, self.current.remaining))

    def finish(self) -> List[Measure]:
        if not self.current.is_full:
            self.pad()
        self.sealed.append(self.current)
        return self.sealed


class MeasurePartitioner:
    def __init__(self, divisions: int, tolerance: int = DEFAULT_TOLERANCE, grid: Optional[int] = None,
                 precision: int = 6, epsilon: float = 1e-6):
        if divisions <= 0:
            raise ValueError(f"divisions must be positive, got {divisions}")
        if grid is not None and grid <= 0:
            raise ValueError(f"grid must be positive, got {grid}")
        self.divisions = divisions
        self.tolerance = tolerance
        self.grid = grid
        self.precision = precision
        self.epsilon = epsilon

    def normalize(self, notes: Sequence[NoteEvent],
                  boundary_notes: Iterable[NoteEvent] = ()) -> Tuple[List[UnitNote], List[UnitNote]]:
        """Notes in division units, with instants closer than `tolerance`
        merged. Every fragment is cut from these lengths."""
        units = to_units(notes, self.divisions, self.grid)
        extra = to_units(list(boundary_notes), self.divisions, self.grid)
        mapping = merge_instants((v for u in units + extra for v in (u.start, u.end)),
                                 self.divisions, self.tolerance)
        return _moved(units, mapping), _moved(extra, mapping)

    def partition(self, notes: Sequence[NoteEvent], boundary_notes: Iterable[NoteEvent] = ()) -> List[Measure]:
        """Lay the notes out in full 4/4 measures.

        `boundary_notes` only add timeline instants (other tracks); they are
        never written.
        """
        units, extra = self.normalize(notes, boundary_notes)
        timeline = Timeline(units, extra, precision=self.precision, epsilon=self.epsilon)
        state = _Pass(self.divisions, self.tolerance)

        for t0, t1, sounding, _starting in timeline.walk(origin=0):
            dur = int(t1 - t0)
            if not sounding:
                state.rests(dur)
            else:
                # held notes continue through a tie, they are not struck again
                chord = sorted(sounding, key=lambda n: (n.pitch, n.index))
                state.notes(int(t0), dur, chord)

        if state.open_ties:
            log.warning("Unclosed ties for notes %s", sorted(state.open_ties))
        return state.finish()
