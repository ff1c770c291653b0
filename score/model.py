# score/model.py
from dataclasses import dataclass, field
from typing import List, Optional, Union
from score.pitch import Pitch

NOTE_TYPES = ('whole', 'half', 'quarter', 'eighth', '16th', '32nd')

@dataclass(frozen=True)
class NotatedDuration:
    type: str
    units: int          # in divisions
    dotted: bool = False
    fallback: bool = False


@dataclass
class NoteFragment:
    pitch: Pitch
    duration: NotatedDuration
    source: int             # index of the originating NoteEvent
    chord: bool = False
    tie_start: bool = False
    tie_stop: bool = False

    @property
    def units(self) -> int:
        return self.duration.units

    @property
    def tied(self) -> bool:
        return self.tie_start or self.tie_stop


@dataclass
class RestFragment:
    duration: NotatedDuration
    chord = False   # rests never join a chord

    @property
    def units(self) -> int:
        return self.duration.units


Fragment = Union[NoteFragment, RestFragment]


@dataclass
class Measure:
    number: int
    capacity: int
    contents: List[Fragment] = field(default_factory=list)
    filled: int = 0
    divisions: Optional[int] = None     # only measure 1 carries the attributes block

    @property
    def remaining(self) -> int:
        return self.capacity - self.filled

    @property
    def is_full(self) -> bool:
        return self.filled >= self.capacity

    def append(self, frag: Fragment):
        if not frag.chord:
            if self.filled + frag.units > self.capacity:
                raise ValueError(f"Measure {self.number} overflow: {self.filled}+{frag.units}>{self.capacity}")
            self.filled += frag.units
        self.contents.append(frag)
