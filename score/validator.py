# score/validator.py
import xml.etree.ElementTree as ET
from collections import defaultdict
from typing import Dict, List
from score.model import NOTE_TYPES
from score.quantizer import DEFAULT_TOLERANCE, fits


def _pitch_key(note: ET.Element) -> str:
    p = note.find('pitch')
    if p is None:
        return ''
    return f"{p.findtext('step')}{p.findtext('alter', '0')}/{p.findtext('octave')}"


def validate_document(xml_text: str, tolerance: int = DEFAULT_TOLERANCE) -> List[str]:
    """Structural check of a converter output; returns the problems found.

    `tolerance` is the quantization tolerance the document was written with;
    each <duration> must be one the quantizer could give its <type>.
    """
    errors: List[str] = []
    try:
        root = ET.fromstring(xml_text.encode('utf-8'))
    except ET.ParseError as e:
        return [f"Not well-formed XML: {e}"]

    if root.tag != 'score-partwise':
        return [f"Root element is <{root.tag}>, expected <score-partwise>"]
    if not root.get('version'):
        errors.append("Missing version on <score-partwise>")

    listed = root.findall('part-list/score-part')
    parts = root.findall('part')
    if len(listed) != 1 or len(parts) != 1:
        errors.append(f"Expected exactly one part, found {len(listed)} listed and {len(parts)} present")
        if not parts:
            return errors
    part = parts[0]
    if listed and listed[0].get('id') != part.get('id'):
        errors.append("Part id does not match the part list")

    measures = part.findall('measure')
    if not measures:
        return errors + ["Part has no measures"]

    divisions_text = measures[0].findtext('attributes/divisions')
    if not divisions_text or not divisions_text.isdigit() or int(divisions_text) <= 0:
        return errors + ["First measure does not declare divisions"]
    divisions = int(divisions_text)
    capacity = divisions * 4

    open_ties: Dict[str, int] = defaultdict(int)
    for expected, m in enumerate(measures, start=1):
        if m.get('number') != str(expected):
            errors.append(f"Measure {expected} is numbered {m.get('number')!r}")
        filled = 0
        for note in m.findall('note'):
            t = note.findtext('type')
            if t not in NOTE_TYPES:
                errors.append(f"Measure {expected}: unknown note type {t!r}")
            dur = note.findtext('duration')
            if not dur or not dur.isdigit():
                errors.append(f"Measure {expected}: bad duration {dur!r}")
                continue
            dotted = note.find('dot') is not None
            if t in NOTE_TYPES and not fits(int(dur), t, dotted, divisions, tolerance):
                label = f"dotted {t}" if dotted else t
                errors.append(f"Measure {expected}: duration {dur} does not fit a {label}")
            if note.find('chord') is None:
                filled += int(dur)
            key = _pitch_key(note)
            for tie in note.findall('tie'):
                if tie.get('type') == 'stop':
                    if open_ties[key] <= 0:
                        errors.append(f"Measure {expected}: tie stop without start on {key}")
                    else:
                        open_ties[key] -= 1
            for tie in note.findall('tie'):
                if tie.get('type') == 'start':
                    open_ties[key] += 1
        if filled != capacity:
            errors.append(f"Measure {expected} holds {filled} of {capacity} divisions")

    for key, count in open_ties.items():
        if count:
            errors.append(f"{count} unclosed tie(s) on {key}")
    return errors
