"""
Tests for mediacore.command_builder: flag generation only, no processes.
"""

from pathlib import Path

import pytest

from mediacore.command_builder import (
    GIF_FILTER,
    build_command,
    build_probe_command,
    command_as_string,
    quality_flags,
)
from mediacore.errors import InvalidRequest
from mediacore.models import JobRequest, Operation, Quality

FFMPEG = "/opt/ffmpeg"


def _flag(cmd, name):
    return cmd[cmd.index(name) + 1]


class TestCommandShape:

    def test_progress_reporting_and_overwrite(self):
        request = JobRequest.create("convert", "/in/a.mov", "/out/a.mp4", format="mp4")
        cmd = build_command(request, FFMPEG)

        assert cmd[0] == FFMPEG
        assert cmd[1:3] == ["-i", "/in/a.mov"]
        assert _flag(cmd, "-progress") == "pipe:1"
        assert "-nostats" in cmd
        assert cmd[-2:] == ["-y", "/out/a.mp4"]

    def test_empty_output_rejected(self):
        request = JobRequest.create("convert", "/in/a.mov", "", format="mp4")
        with pytest.raises(InvalidRequest):
            build_command(request, FFMPEG)

    def test_no_inputs_rejected(self):
        request = JobRequest(Operation.MERGE, [], Path("/out/m.mp4"))
        with pytest.raises(InvalidRequest):
            build_command(request, FFMPEG)


class TestConvert:

    def test_default_quality_is_medium(self):
        cmd = build_command(JobRequest.create("convert", "a.mov", "a.mp4", format="mp4"), FFMPEG)
        assert _flag(cmd, "-b:v") == "1000k"
        assert _flag(cmd, "-b:a") == "192k"

    @pytest.mark.parametrize("quality,video,audio", [
        ("low", "500k", "128k"),
        ("high", "2000k", "320k"),
    ])
    def test_quality_tiers(self, quality, video, audio):
        request = JobRequest.create("convert", "a.mov", "a.mp4", format="mp4", quality=quality)
        cmd = build_command(request, FFMPEG)
        assert _flag(cmd, "-b:v") == video
        assert _flag(cmd, "-b:a") == audio

    def test_webm_selects_vp9_and_vorbis(self):
        cmd = build_command(JobRequest.create("convert", "a.mov", "a.webm", format="webm"), FFMPEG)
        assert _flag(cmd, "-c:v") == "libvpx-vp9"
        assert _flag(cmd, "-c:a") == "libvorbis"

    def test_gif_uses_palette_filter_and_ignores_overrides(self):
        request = JobRequest.create(
            "convert", "a.mov", "a.gif", format="gif", resolution="640x480", fps=24,
        )
        cmd = build_command(request, FFMPEG)
        assert _flag(cmd, "-vf") == GIF_FILTER
        assert "-r" not in cmd
        assert cmd.count("-vf") == 1

    def test_resolution_and_fps_overrides(self):
        request = JobRequest.create(
            "convert", "a.mov", "a.mp4", format="mp4", resolution="1280x720", fps=25,
        )
        cmd = build_command(request, FFMPEG)
        assert _flag(cmd, "-vf") == "scale=1280:720"
        assert _flag(cmd, "-r") == "25"

    def test_format_falls_back_to_output_suffix(self):
        cmd = build_command(JobRequest.create("convert", "a.mov", "a.webm"), FFMPEG)
        assert "libvpx-vp9" in cmd

    def test_unsupported_format(self):
        request = JobRequest.create("convert", "a.mov", "a.mkv", format="mkv")
        with pytest.raises(InvalidRequest):
            build_command(request, FFMPEG)

    def test_bad_resolution(self):
        request = JobRequest.create("convert", "a.mov", "a.mp4", format="mp4", resolution="big")
        with pytest.raises(InvalidRequest):
            build_command(request, FFMPEG)


class TestOtherOperations:

    def test_compress_is_mp4_at_tier(self):
        request = JobRequest.create("compress", "a.mov", "a_small.mp4", quality="low")
        cmd = build_command(request, FFMPEG)
        assert _flag(cmd, "-b:v") == "500k"
        assert "libvpx-vp9" not in cmd

    def test_thumbnail_seeks_before_input(self):
        request = JobRequest.create("thumbnail", "a.mov", "a.jpg", time_offset=12.5)
        cmd = build_command(request, FFMPEG)
        assert cmd.index("-ss") < cmd.index("-i")
        assert _flag(cmd, "-ss") == "12.5"
        assert _flag(cmd, "-frames:v") == "1"

    def test_thumbnail_negative_offset(self):
        request = JobRequest.create("thumbnail", "a.mov", "a.jpg", time_offset=-1)
        with pytest.raises(InvalidRequest):
            build_command(request, FFMPEG)

    @pytest.mark.parametrize("fmt,codec", [
        ("mp3", "libmp3lame"),
        ("wav", "pcm_s16le"),
        ("aac", "aac"),
    ])
    def test_extract_audio_codecs(self, fmt, codec):
        request = JobRequest.create("extract-audio", "a.mov", f"a.{fmt}", audio_format=fmt)
        cmd = build_command(request, FFMPEG)
        assert "-vn" in cmd
        assert _flag(cmd, "-c:a") == codec

    def test_extract_audio_bitrate_only_with_quality(self):
        plain = build_command(JobRequest.create("extract-audio", "a.mov", "a.mp3"), FFMPEG)
        tiered = build_command(
            JobRequest.create("extract-audio", "a.mov", "a.mp3", quality="high"), FFMPEG,
        )
        assert "-b:a" not in plain
        assert _flag(tiered, "-b:a") == "320k"

    def test_merge_concatenates_in_order(self):
        request = JobRequest.create("merge", ["one.mp4", "two.mp4", "three.mp4"], "all.mp4")
        cmd = build_command(request, FFMPEG)

        inputs = [cmd[i + 1] for i, arg in enumerate(cmd) if arg == "-i"]
        assert inputs == ["one.mp4", "two.mp4", "three.mp4"]
        assert _flag(cmd, "-filter_complex") == (
            "[0:v][0:a][1:v][1:a][2:v][2:a]concat=n=3:v=1:a=1[outv][outa]"
        )
        assert cmd.count("-map") == 2


def test_quality_flags():
    assert quality_flags(Quality.MEDIUM) == ["-b:v", "1000k", "-b:a", "192k"]


def test_probe_command_requests_json():
    cmd = build_probe_command(Path("/in/a.mov"), "/opt/ffprobe")
    assert cmd[0] == "/opt/ffprobe"
    assert _flag(cmd, "-print_format") == "json"
    assert "-show_streams" in cmd and "-show_format" in cmd
    assert cmd[-1] == "/in/a.mov"


def test_command_as_string_quotes_spaces():
    assert command_as_string(["ffmpeg", "-i", "my clip.mov"]) == "ffmpeg -i 'my clip.mov'"
