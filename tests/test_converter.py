import logging
from config import ConverterConfig, config_from_dict
from notes.model import NoteEvent, Performance, Track
from score.converter import build_measures, convert_file, convert_performance
from score.model import NoteFragment
from score.validator import validate_document


def test_empty_performance_gives_fallback_document(caplog):
    with caplog.at_level(logging.WARNING):
        xml = convert_performance(Performance(tracks=[Track()]))
    assert "No notes" in caplog.text
    assert xml.count('<measure ') == 1
    assert '<duration>1920</duration>' in xml
    assert '<type>whole</type>' in xml
    assert validate_document(xml) == []
    assert convert_performance(Performance()) == xml


def test_divisions_follow_source_ppq():
    perf = Performance.from_notes([(60, 0.0, 1.0)], ppq=96)
    xml = convert_performance(perf)
    assert '<divisions>96</divisions>' in xml
    assert '<duration>96</duration>' in xml


def test_configured_divisions_win():
    perf = Performance.from_notes([(60, 0.0, 1.0)], ppq=96)
    cfg = config_from_dict({"quantize": {"divisions": 240}})
    assert '<divisions>240</divisions>' in convert_performance(perf, cfg)


def test_first_nonempty_track_is_notated():
    perf = Performance.from_notes([], [(60, 0.0, 2.0)], [(40, 1.0, 1.0)])
    measures = build_measures(perf)
    pitches = {str(f.pitch) for f in measures[0].contents if isinstance(f, NoteFragment)}
    assert pitches == {'C4'}
    # the other track's note still splits the line
    assert [f.units for f in measures[0].contents[:2]] == [480, 480]


def test_track_boundaries_can_be_ignored():
    perf = Performance.from_notes([(60, 0.0, 2.0)], [(40, 1.0, 1.0)])
    cfg = config_from_dict({"timeline": {"include_all_tracks": False}})
    first = build_measures(perf, cfg)[0].contents[0]
    assert first.duration.type == 'half' and not first.tied


def test_merge_tracks_notates_everything():
    perf = Performance.from_notes([(60, 0.0, 2.0)], [(40, 1.0, 1.0)])
    cfg = config_from_dict({"timeline": {"merge_tracks": True}})
    frags = build_measures(perf, cfg)[0].contents
    assert [(str(f.pitch), f.chord) for f in frags[1:3]] == [('E2', False), ('C4', True)]


def test_pure_and_repeatable():
    perf = Performance(tracks=[Track(notes=[NoteEvent(67, 0.25, 0.5), NoteEvent(60, 0.0, 3.0)])])
    assert convert_performance(perf) == convert_performance(perf)


def test_convert_file_writes_valid_document(midi_file, tmp_path):
    src = midi_file([[(60, 0, 480), (64, 480, 960), (67, 480, 1440)]])
    dst = tmp_path / "out" / "song.musicxml"
    cfg = ConverterConfig()
    cfg.quantize.time_base = "beats"
    xml = convert_file(src, str(dst), cfg)
    assert dst.read_text(encoding="utf-8") == xml
    assert validate_document(xml) == []
    assert '<type>quarter</type>' in xml


def _note_units(measures):
    return sum(f.units for m in measures for f in m.contents if isinstance(f, NoteFragment))


def test_onsets_a_few_ms_apart_are_one_chord():
    perf = Performance.from_notes([(60, 0.0, 1.0), (64, 0.004, 1.0), (67, 0.01, 0.995)])
    frags = build_measures(perf)[0].contents[:3]
    assert [(str(f.pitch), f.chord, f.units, f.tied) for f in frags] == [
        ('C4', False, 480, False), ('E4', True, 480, False), ('G4', True, 480, False)]
    assert validate_document(convert_performance(perf)) == []


def test_snap_can_be_turned_off():
    perf = Performance.from_notes([(60, 0.0, 1.3)])
    assert _note_units(build_measures(perf)) == 600
    cfg = config_from_dict({"quantize": {"snap_to_grid": False}})
    assert _note_units(build_measures(perf, cfg)) == 624


def test_granularity_sets_the_grid():
    perf = Performance.from_notes([(60, 0.0, 1.3)])
    cfg = config_from_dict({"quantize": {"granularity": 4}})
    assert _note_units(build_measures(perf, cfg)) == 600
    cfg = config_from_dict({"quantize": {"granularity": 2}})
    assert _note_units(build_measures(perf, cfg)) == 720
