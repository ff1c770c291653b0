# tests/conftest.py
import mido
import pytest


def write_midi(path, tracks, ticks_per_beat=480, tempo=None):
    """tracks: list of [(pitch, start_tick, dur_tick), ...]"""
    mid = mido.MidiFile(type=1, ticks_per_beat=ticks_per_beat)
    for i, notes in enumerate(tracks):
        trk = mido.MidiTrack()
        trk.append(mido.MetaMessage('track_name', name=f"T{i + 1}", time=0))
        if i == 0 and tempo is not None:
            trk.append(mido.MetaMessage('set_tempo', tempo=tempo, time=0))
        events = []
        for pitch, start, dur in notes:
            events.append((start, 1, mido.Message('note_on', note=pitch, velocity=80)))
            events.append((start + dur, 0, mido.Message('note_off', note=pitch, velocity=0)))
        events.sort(key=lambda e: (e[0], e[1]))
        now = 0
        for tick, _, msg in events:
            trk.append(msg.copy(time=tick - now))
            now = tick
        mid.tracks.append(trk)
    mid.save(str(path))
    return str(path)


@pytest.fixture
def midi_file(tmp_path):
    def _make(tracks, name="song.mid", **kw):
        return write_midi(tmp_path / name, tracks, **kw)
    return _make
