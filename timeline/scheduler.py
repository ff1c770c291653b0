# timeline/scheduler.py
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple
from notes.model import NoteEvent

Interval = Tuple[float, float, List[NoteEvent], List[NoteEvent]]

class Timeline:
    """Distinct boundary instants of a set of notes.

    Every start and every end goes in, normalized to `precision` fractional
    digits so that instants closer than that collapse into one key.
    Notated notes and boundary notes may differ: the boundaries can come from
    all tracks while only one track is written out.
    """
    def __init__(self, notes: Iterable[NoteEvent], boundary_notes: Iterable[NoteEvent] = (),
                 precision: int = 6, epsilon: float = 1e-6):
        self.notes = sorted(notes, key=lambda n: (n.start, n.pitch))
        self.precision = precision
        self.epsilon = epsilon
        keys = set()
        for n in list(self.notes) + list(boundary_notes):
            keys.add(round(n.start, precision))
            keys.add(round(n.end, precision))
        self.instants: List[float] = sorted(keys)

    def __len__(self) -> int:
        return len(self.instants)

    def intervals(self, origin: Optional[float] = None) -> Iterator[Tuple[float, float]]:
        pts = self.instants
        if origin is not None and pts and origin < pts[0] - self.epsilon:
            pts = [origin] + pts
        for i in range(len(pts) - 1):
            yield pts[i], pts[i + 1]

    def sounding_at(self, t0: float) -> List[NoteEvent]:
        eps = self.epsilon
        return [n for n in self.notes if n.start <= t0 + eps and n.end > t0 + eps]

    def starting_at(self, t0: float, sounding: Optional[Sequence[NoteEvent]] = None) -> List[NoteEvent]:
        pool = self.notes if sounding is None else sounding
        return [n for n in pool if abs(n.start - t0) < self.epsilon]

    def walk(self, origin: Optional[float] = None) -> Iterator[Interval]:
        """Yield (t0, t1, sounding, starting) for each interval, in order.

        Same answers as sounding_at/starting_at, but advances a pointer over
        the sorted notes instead of rescanning them per interval.
        """
        eps = self.epsilon
        i = 0
        active: List[NoteEvent] = []
        for t0, t1 in self.intervals(origin):
            while i < len(self.notes) and self.notes[i].start <= t0 + eps:
                active.append(self.notes[i])
                i += 1
            active = [n for n in active if n.end > t0 + eps]
            starting = [n for n in active if abs(n.start - t0) < eps]
            yield t0, t1, list(active), starting
