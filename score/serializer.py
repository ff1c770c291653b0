# score/serializer.py
import xml.etree.ElementTree as ET
from typing import List, Optional
from config import OutputConfig
from score.model import Fragment, Measure, NoteFragment

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8" standalone="no"?>'
DOCTYPE = ('<!DOCTYPE score-partwise PUBLIC "-//Recordare//DTD MusicXML {version} Partwise//EN" '
           '"http://www.musicxml.org/dtds/partwise.dtd">')


def _text(parent: ET.Element, tag: str, value) -> ET.Element:
    el = ET.SubElement(parent, tag)
    el.text = str(value)
    return el


def _attributes(measure_el: ET.Element, divisions: int):
    attrs = ET.SubElement(measure_el, 'attributes')
    _text(attrs, 'divisions', divisions)
    key = ET.SubElement(attrs, 'key')
    _text(key, 'fifths', 0)
    time = ET.SubElement(attrs, 'time')
    _text(time, 'beats', 4)
    _text(time, 'beat-type', 4)
    clef = ET.SubElement(attrs, 'clef')
    _text(clef, 'sign', 'G')
    _text(clef, 'line', 2)


def _note(measure_el: ET.Element, frag: Fragment):
    # element order follows the MusicXML <note> content model
    note = ET.SubElement(measure_el, 'note')
    if isinstance(frag, NoteFragment):
        if frag.chord:
            ET.SubElement(note, 'chord')
        pitch = ET.SubElement(note, 'pitch')
        _text(pitch, 'step', frag.pitch.step)
        if frag.pitch.alter:
            _text(pitch, 'alter', frag.pitch.alter)
        _text(pitch, 'octave', frag.pitch.octave)
    else:
        ET.SubElement(note, 'rest')
    _text(note, 'duration', frag.units)
    if isinstance(frag, NoteFragment):
        # playback ties
        if frag.tie_stop:
            ET.SubElement(note, 'tie', type='stop')
        if frag.tie_start:
            ET.SubElement(note, 'tie', type='start')
    _text(note, 'type', frag.duration.type)
    if frag.duration.dotted:
        ET.SubElement(note, 'dot')
    if isinstance(frag, NoteFragment) and frag.tied:
        # display ties
        notations = ET.SubElement(note, 'notations')
        if frag.tie_stop:
            ET.SubElement(notations, 'tied', type='stop')
        if frag.tie_start:
            ET.SubElement(notations, 'tied', type='start')


def build_tree(measures: List[Measure], divisions: int, cfg: Optional[OutputConfig] = None) -> ET.Element:
    cfg = cfg or OutputConfig()
    root = ET.Element('score-partwise', version=cfg.musicxml_version)
    part_list = ET.SubElement(root, 'part-list')
    score_part = ET.SubElement(part_list, 'score-part', id=cfg.part_id)
    _text(score_part, 'part-name', cfg.part_name)

    part = ET.SubElement(root, 'part', id=cfg.part_id)
    for m in measures:
        m_el = ET.SubElement(part, 'measure', number=str(m.number))
        if m.number == 1:
            _attributes(m_el, m.divisions or divisions)
        for frag in m.contents:
            _note(m_el, frag)
    return root


def serialize(measures: List[Measure], divisions: int, cfg: Optional[OutputConfig] = None) -> str:
    """Sealed measures -> MusicXML text. Same input, same bytes."""
    cfg = cfg or OutputConfig()
    root = build_tree(measures, divisions, cfg)
    if cfg.indent:
        ET.indent(root, space=cfg.indent)
    body = ET.tostring(root, encoding='unicode')
    return '\n'.join([XML_DECLARATION, DOCTYPE.format(version=cfg.musicxml_version), body]) + '\n'
