"""
mediacore.command_builder
~~~~~~~~~~~~~~~~~~~~~~~~~
Builds ffmpeg CLI commands as plain list[str].

Keeping command construction separate means you can:
  - log / print the exact command before running it
  - paste it straight into a terminal for debugging
  - unit-test flag generation without running any process

Nothing in here touches the filesystem.
"""

from __future__ import annotations

import re
import shlex
from pathlib import Path

from mediacore.errors import InvalidRequest
from mediacore.models import (
    AUDIO_FORMATS, VIDEO_FORMATS, JobRequest, Operation, Quality,
)
from mediacore.paths import FFMPEG_BIN, FFPROBE_BIN

# (video bitrate, audio bitrate)
QUALITY_BITRATES: dict[Quality, tuple[str, str]] = {
    Quality.LOW:    ("500k",  "128k"),
    Quality.MEDIUM: ("1000k", "192k"),
    Quality.HIGH:   ("2000k", "320k"),
}

GIF_FILTER = "fps=10,scale=320:-1:flags=lanczos"
WEBM_CODECS = ("libvpx-vp9", "libvorbis")

AUDIO_CODECS: dict[str, str] = {
    "mp3": "libmp3lame",
    "wav": "pcm_s16le",
    "aac": "aac",
}

_RESOLUTION = re.compile(r"^(\d+)x(\d+)$")


# ── Public API ────────────────────────────────────────────────────────────────

def build_command(request: JobRequest, ffmpeg: Path | str = FFMPEG_BIN) -> list[str]:
    """Dispatch on the request's operation."""
    if not request.inputs:
        raise InvalidRequest("At least one input file is required")

    builders = {
        Operation.CONVERT:       build_convert_command,
        Operation.COMPRESS:      build_compress_command,
        Operation.THUMBNAIL:     build_thumbnail_command,
        Operation.EXTRACT_AUDIO: build_extract_audio_command,
        Operation.MERGE:         build_merge_command,
    }
    return builders[request.operation](request, ffmpeg)


def build_convert_command(request: JobRequest, ffmpeg: Path | str = FFMPEG_BIN) -> list[str]:
    """
    Build the full ffmpeg command for converting one file.

    The command structure is:
        ffmpeg
          -i <input>
          -nostats               ← suppress human-readable stats on stderr
          -progress pipe:1       ← machine-readable key=value progress on stdout
          <quality flags>        ← -b:v / -b:a from the tier
          <overrides>            ← scale / rate, when given
          <format flags>         ← gif filter chain, webm codecs
          -y                     ← overwrite output without prompting
          <output>

    Example output:
        ['/path/to/ffmpeg', '-i', '/rushes/clip.mov',
         '-nostats', '-progress', 'pipe:1',
         '-b:v', '1000k', '-b:a', '192k',
         '-y', '/out/clip.mp4']
    """
    fmt = request.target_format()
    if fmt not in VIDEO_FORMATS:
        raise InvalidRequest(f"Unsupported output format: {fmt}")

    flags = quality_flags(request.quality or Quality.MEDIUM)

    if fmt == "gif":
        flags += ["-vf", GIF_FILTER]
    else:
        flags += _override_flags(request)
        if fmt == "webm":
            flags += ["-c:v", WEBM_CODECS[0], "-c:a", WEBM_CODECS[1]]

    return _wrap(ffmpeg, [request.primary_input], flags, request.output)


def build_compress_command(request: JobRequest, ffmpeg: Path | str = FFMPEG_BIN) -> list[str]:
    """Compression is an mp4 convert at the requested tier."""
    return build_convert_command(request, ffmpeg)


def build_thumbnail_command(request: JobRequest, ffmpeg: Path | str = FFMPEG_BIN) -> list[str]:
    offset = request.time_offset
    if offset is None or offset < 0:
        raise InvalidRequest(f"Invalid thumbnail time offset: {offset}")

    flags = ["-frames:v", "1"]
    if request.resolution:
        flags += ["-vf", _scale_filter(request.resolution)]

    # -ss before -i seeks the input instead of decoding up to the offset
    return _wrap(
        ffmpeg, [request.primary_input], flags, request.output,
        pre_input=["-ss", f"{offset:g}"],
    )


def build_extract_audio_command(request: JobRequest, ffmpeg: Path | str = FFMPEG_BIN) -> list[str]:
    fmt = request.target_audio_format()
    if fmt not in AUDIO_FORMATS:
        raise InvalidRequest(f"Unsupported audio format: {fmt}")

    flags = ["-vn", "-c:a", AUDIO_CODECS[fmt]]
    if request.quality is not None:
        flags += ["-b:a", QUALITY_BITRATES[request.quality][1]]
    return _wrap(ffmpeg, [request.primary_input], flags, request.output)


def build_merge_command(request: JobRequest, ffmpeg: Path | str = FFMPEG_BIN) -> list[str]:
    """
    Concatenate every input, in order, into one output:

        ffmpeg -i a.mp4 -i b.mp4 ... -filter_complex
            "[0:v][0:a][1:v][1:a]concat=n=2:v=1:a=1[outv][outa]"
            -map [outv] -map [outa] -y out.mp4
    """
    if not request.inputs:
        raise InvalidRequest("Merge needs at least one input file")

    count = len(request.inputs)
    pads = "".join(f"[{i}:v][{i}:a]" for i in range(count))
    flags = [
        "-filter_complex", f"{pads}concat=n={count}:v=1:a=1[outv][outa]",
        "-map", "[outv]",
        "-map", "[outa]",
    ]
    if request.quality is not None:
        flags += quality_flags(request.quality)
    return _wrap(ffmpeg, request.inputs, flags, request.output)


def build_probe_command(input_file: Path, ffprobe: Path | str = FFPROBE_BIN) -> list[str]:
    return [
        str(ffprobe),
        "-v", "quiet",            # suppress banner
        "-print_format", "json",  # machine-readable output
        "-show_format",           # duration, bitrate, etc.
        "-show_streams",          # per-stream codec info
        str(input_file),
    ]


def quality_flags(quality: Quality) -> list[str]:
    video, audio = QUALITY_BITRATES[quality]
    return ["-b:v", video, "-b:a", audio]


def command_as_string(cmd: list[str]) -> str:
    """Human-readable version of the command for logging."""
    return " ".join(shlex.quote(c) for c in cmd)


# ── Internal helpers ──────────────────────────────────────────────────────────

def _wrap(
    ffmpeg: Path | str,
    inputs: list[Path],
    flags: list[str],
    output: Path,
    pre_input: list[str] | None = None,
) -> list[str]:
    if not str(output).strip() or str(output) == ".":
        raise InvalidRequest("Output path must not be empty")

    cmd = [str(ffmpeg)]
    for path in inputs:
        cmd += [*(pre_input or []), "-i", str(path)]
    return [
        *cmd,
        "-nostats",
        "-progress", "pipe:1",
        *flags,
        "-y",
        str(output),
    ]


def _override_flags(request: JobRequest) -> list[str]:
    flags: list[str] = []
    if request.resolution:
        flags += ["-vf", _scale_filter(request.resolution)]
    if request.fps:
        if request.fps <= 0:
            raise InvalidRequest(f"Invalid frame rate: {request.fps}")
        flags += ["-r", f"{request.fps:g}"]
    return flags


def _scale_filter(resolution: str) -> str:
    m = _RESOLUTION.match(resolution.strip().lower())
    if not m:
        raise InvalidRequest(f"Resolution must look like 1280x720, got {resolution!r}")
    return f"scale={m.group(1)}:{m.group(2)}"
