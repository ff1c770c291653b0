# score/pitch.py
from dataclasses import dataclass

CHROMATIC_NAMES = ['C', 'C#', 'D', 'D#', 'E', 'F', 'F#', 'G', 'G#', 'A', 'A#', 'B']

@dataclass(frozen=True)
class Pitch:
    step: str       # A-G
    alter: int      # -1 / 0 / +1
    octave: int

    def __str__(self) -> str:
        acc = {1: '#', -1: 'b'}.get(self.alter, '')
        return f"{self.step}{acc}{self.octave}"


def encode_pitch(midi: int) -> Pitch:
    """MIDI note number -> notated pitch, sharps only. 60 -> C4."""
    if not 0 <= midi <= 127:
        raise ValueError(f"MIDI pitch out of range 0-127: {midi}")
    name = CHROMATIC_NAMES[midi % 12]
    alter = 1 if name.endswith('#') else 0
    return Pitch(step=name[0], alter=alter, octave=midi // 12 - 1)
