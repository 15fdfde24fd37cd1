"""
Tests for the request model and the operation presets.
"""

from pathlib import Path

import pytest

from mediacore.errors import Busy, InvalidRequest, MediaError, NotFound, ProbeTimeout
from mediacore.models import JobRequest, MediaInfo, Operation, Quality
from mediacore.presets import OPERATION_PRESETS, PRESETS_BY_OPERATION


class TestJobRequest:

    def test_create_from_strings(self):
        request = JobRequest.create("extract-audio", "/in/a.mov", "/out/a.wav", quality="low")
        assert request.operation is Operation.EXTRACT_AUDIO
        assert request.inputs == [Path("/in/a.mov")]
        assert request.output == Path("/out/a.wav")
        assert request.quality is Quality.LOW
        assert request.primary_input == Path("/in/a.mov")

    def test_unknown_operation(self):
        with pytest.raises(ValueError):
            JobRequest.create("transmogrify", "a.mov", "b.mp4")

    @pytest.mark.parametrize("operation,fmt,output,expected", [
        ("convert", "WEBM", "x.mp4", "webm"),
        ("convert", None, "x.mov", "mov"),
        ("convert", None, "x", "mp4"),
        ("compress", "gif", "x.gif", "mp4"),
    ])
    def test_target_format(self, operation, fmt, output, expected):
        request = JobRequest.create(operation, "a.mov", output, format=fmt)
        assert request.target_format() == expected

    def test_target_audio_format(self):
        assert JobRequest.create("extract-audio", "a", "x.aac").target_audio_format() == "aac"
        assert JobRequest.create("extract-audio", "a", "x.ogg").target_audio_format() == "mp3"
        assert JobRequest.create("extract-audio", "a", "x.ogg",
                                 audio_format="wav").target_audio_format() == "wav"


def test_media_info_to_dict():
    info = MediaInfo(12.0, "1 MB", "800000", "h264", "640x360", 25.0)
    assert info.to_dict()["resolution"] == "640x360"


def test_errors_keep_builtin_ancestry():
    assert isinstance(NotFound("x"), FileNotFoundError)
    assert isinstance(InvalidRequest("x"), ValueError)
    assert isinstance(Busy(), RuntimeError)
    assert isinstance(ProbeTimeout("x", 30), TimeoutError)
    assert all(issubclass(e, MediaError) for e in (NotFound, InvalidRequest, Busy, ProbeTimeout))


def test_every_operation_has_a_preset():
    assert set(PRESETS_BY_OPERATION) == set(Operation)
    for preset in OPERATION_PRESETS:
        assert preset.default_format in preset.formats
