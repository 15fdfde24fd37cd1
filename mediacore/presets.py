# mediacore/presets.py

from __future__ import annotations

from dataclasses import dataclass, field

from mediacore.models import AUDIO_FORMATS, VIDEO_FORMATS, Operation, Quality


@dataclass(frozen=True)
class OperationPreset:
    """Which form controls make sense for one operation."""
    display_name: str
    operation: Operation
    formats: tuple[str, ...]
    default_format: str
    uses_quality: bool = False
    uses_overrides: bool = False   # resolution / fps
    uses_offset: bool = False
    multi_input: bool = False
    qualities: list[str] = field(default_factory=lambda: [q.value for q in Quality])


OPERATION_PRESETS: list[OperationPreset] = [
    OperationPreset(
        display_name="Convert",
        operation=Operation.CONVERT,
        formats=VIDEO_FORMATS,
        default_format="mp4",
        uses_quality=True,
        uses_overrides=True,
    ),
    OperationPreset(
        display_name="Compress",
        operation=Operation.COMPRESS,
        formats=("mp4",),
        default_format="mp4",
        uses_quality=True,
    ),
    OperationPreset(
        display_name="Thumbnail",
        operation=Operation.THUMBNAIL,
        formats=("jpg", "png"),
        default_format="jpg",
        uses_overrides=True,
        uses_offset=True,
    ),
    OperationPreset(
        display_name="Extract Audio",
        operation=Operation.EXTRACT_AUDIO,
        formats=AUDIO_FORMATS,
        default_format="mp3",
    ),
    OperationPreset(
        display_name="Merge",
        operation=Operation.MERGE,
        formats=("mp4", "mov", "avi"),
        default_format="mp4",
        multi_input=True,
    ),
]

PRESETS_BY_OPERATION = {p.operation: p for p in OPERATION_PRESETS}
