# notes/model.py
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

@dataclass(frozen=True)
class NoteEvent:
    pitch: int          # MIDI note number
    start: float        # seconds, beats or ticks
    duration: float     # same unit as start
    velocity: int = 64
    channel: int = 0

    def __post_init__(self):
        if self.duration <= 0:
            raise ValueError(f"Note duration must be positive, got {self.duration}")
        if self.start < 0:
            raise ValueError(f"Note start must be non-negative, got {self.start}")

    @property
    def end(self) -> float:
        return self.start + self.duration


@dataclass
class Track:
    notes: List[NoteEvent] = field(default_factory=list)
    name: str = ""

    def __len__(self) -> int:
        return len(self.notes)


@dataclass
class Performance:
    """Decoded performance: ordered tracks plus the source header's ppq."""
    tracks: List[Track] = field(default_factory=list)
    ppq: Optional[int] = None
    time_base: str = "seconds"

    @property
    def notes(self) -> List[NoteEvent]:
        return [n for t in self.tracks for n in t.notes]

    def is_empty(self) -> bool:
        return not any(t.notes for t in self.tracks)

    @classmethod
    def from_notes(cls, *tracks: Iterable[Tuple[int, float, float]],
                   ppq: Optional[int] = None, time_base: str = "seconds") -> "Performance":
        """Each track is an iterable of (pitch, start, duration)."""
        built = [Track(notes=[NoteEvent(pitch=p, start=s, duration=d) for p, s, d in t]) for t in tracks]
        return cls(tracks=built, ppq=ppq, time_base=time_base)
