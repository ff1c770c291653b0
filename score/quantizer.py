# score/quantizer.py
import logging
from functools import lru_cache
from typing import List, Tuple
from score.model import NotatedDuration

log = logging.getLogger(__name__)

# (type, numerator, denominator) relative to one quarter note
NOTE_TABLE = (
    ('whole', 4, 1),
    ('half', 2, 1),
    ('quarter', 1, 1),
    ('eighth', 1, 2),
    ('16th', 1, 4),
    ('32nd', 1, 8),
)

DEFAULT_TOLERANCE = 2


@lru_cache(maxsize=32)
def duration_table(divisions: int) -> Tuple[Tuple[str, int, bool], ...]:
    """Longest first, dotted before plain at each type.

    Entries that do not land on a whole number of divisions are left out.
    """
    out: List[Tuple[str, int, bool]] = []
    for name, num, den in NOTE_TABLE:
        if (divisions * num * 3) % (den * 2) == 0:
            out.append((name, divisions * num * 3 // (den * 2), True))
        if (divisions * num) % den == 0:
            out.append((name, divisions * num // den, False))
    return tuple(out)


def leftover_allowance(divisions: int, tolerance: int = DEFAULT_TOLERANCE) -> int:
    """Widest remainder a chunk may keep instead of splitting it off.

    This is a second, wider tolerance next to the ±`tolerance` match: a
    remainder of at most this many units cannot be notated on its own, so it
    stays in the chunk (58 units at divisions=480). Input snapped to a
    32nd grid never leaves such a remainder.
    """
    shortest = duration_table(divisions)[-1][1]
    return max(0, shortest - tolerance - 1)


def quantize(units: int, divisions: int, tolerance: int = DEFAULT_TOLERANCE) -> NotatedDuration:
    """Closest notated value for `units`.

    A match within tolerance consumes all of `units`. Otherwise the longest
    entry shorter than `units` comes back as a chunk and the caller quantizes
    the remainder again; a remainder within `leftover_allowance` stays in the
    chunk. Anything shorter than the shortest entry falls back to a quarter
    that carries the leftover units.
    """
    if units <= 0:
        raise ValueError(f"Cannot quantize non-positive duration: {units}")
    table = duration_table(divisions)
    for name, value, dotted in table:
        if abs(units - value) <= tolerance:
            return NotatedDuration(type=name, units=units, dotted=dotted)
    allowance = leftover_allowance(divisions, tolerance)
    for name, value, dotted in table:
        if value < units:
            if units - value <= allowance:
                return NotatedDuration(type=name, units=units, dotted=dotted)
            return NotatedDuration(type=name, units=value, dotted=dotted)
    log.warning("Unquantizable duration %d (divisions=%d); notating as quarter", units, divisions)
    return NotatedDuration(type='quarter', units=units, fallback=True)


def fits(units: int, name: str, dotted: bool, divisions: int, tolerance: int = DEFAULT_TOLERANCE) -> bool:
    """Whether quantize() could have written `units` as this type."""
    for entry, value, is_dotted in duration_table(divisions):
        if entry == name and is_dotted == dotted:
            return value - tolerance <= units <= value + max(tolerance, leftover_allowance(divisions, tolerance))
    return False


def split_duration(units: int, divisions: int, tolerance: int = DEFAULT_TOLERANCE) -> List[NotatedDuration]:
    """Quantize repeatedly until `units` is used up."""
    parts: List[NotatedDuration] = []
    left = units
    while left > 0:
        d = quantize(left, divisions, tolerance)
        parts.append(d)
        left -= d.units
    return parts
