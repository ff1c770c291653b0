import pytest
from score.pitch import Pitch, encode_pitch


@pytest.mark.parametrize("midi, step, alter, octave", [
    (60, 'C', 0, 4),
    (61, 'C', 1, 4),
    (69, 'A', 0, 4),
    (70, 'A', 1, 4),
    (71, 'B', 0, 4),
    (0, 'C', 0, -1),
    (127, 'G', 0, 9),
])
def test_encode_pitch(midi, step, alter, octave):
    assert encode_pitch(midi) == Pitch(step=step, alter=alter, octave=octave)


def test_sharps_only():
    alters = {encode_pitch(p).alter for p in range(128)}
    assert alters == {0, 1}


def test_str():
    assert str(encode_pitch(66)) == "F#4"
    assert str(encode_pitch(48)) == "C3"


@pytest.mark.parametrize("bad", [-1, 128, 300])
def test_out_of_range(bad):
    with pytest.raises(ValueError):
        encode_pitch(bad)
