# notes/selection.py
from typing import List, Tuple
from notes.model import NoteEvent, Performance
from config import TimelineConfig

def select_notes(perf: Performance, cfg: TimelineConfig) -> Tuple[List[NoteEvent], List[NoteEvent]]:
    """Return (notated notes, timeline notes).

    Only one part is written, so by default the first track that has notes is
    notated; instants still come from every track so boundaries in the other
    tracks split the notated line as well.
    """
    if cfg.merge_tracks:
        notated = perf.notes
    else:
        notated = next((list(t.notes) for t in perf.tracks if t.notes), [])
    timeline = perf.notes if cfg.include_all_tracks else list(notated)
    return notated, timeline
