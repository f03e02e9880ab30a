import argparse
import enum
import os
import platform
import re
import shlex
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional, Sequence, Tuple

DEFAULT_PREFIX = "GX"
DEFAULT_EXTENSION = "MP4"
DEFAULT_FFMPEG = "ffmpeg"
DEFAULT_VIDEO_CODEC = "libx264"
DEFAULT_AUDIO_CODEC = "aac"

SCALING_PATTERN = re.compile(r"(\d+):(\d+)", re.ASCII)

ENV_FFMPEG = "SEGMENTS2VIDEO_FFMPEG"
ENV_IDLE_INHIBITOR = "SEGMENTS2VIDEO_IDLE_INHIBITOR"
ENV_VIDEO_CODEC = "SEGMENTS2VIDEO_VIDEO_CODEC"
ENV_AUDIO_CODEC = "SEGMENTS2VIDEO_AUDIO_CODEC"
ENV_PREFIX = "SEGMENTS2VIDEO_PREFIX"
ENV_TYPE = "SEGMENTS2VIDEO_TYPE"

EXAMPLES = """\
examples:
  # build the ffmpeg input file from video IDs 10, 20, and 30
  segments2video -d -s 2560:1440 -o output.mp4 10 20 30

  # read the ffmpeg input file instead of building it from video IDs
  segments2video -d -s 2560:1440 -i input.txt -o output.mp4
"""


class UsageError(ValueError):
    pass


class OverwritePolicy(enum.Enum):
    REFUSE = "-n"
    ALWAYS = "-y"

    @property
    def ffmpeg_flag(self) -> str:
        return self.value


def parse_scaling(scaling: str) -> Tuple[int, int]:
    match = SCALING_PATTERN.fullmatch(scaling or "")
    if match is None:
        raise UsageError(f"Invalid scaling: '{scaling}'. Expected WIDTH:HEIGHT, e.g. 1920:1080.")
    width, height = int(match.group(1)), int(match.group(2))
    if width <= 0 or height <= 0:
        raise UsageError(f"Invalid scaling: '{scaling}'. Width and height must be positive.")
    return width, height


@dataclass(frozen=True)
class RunConfiguration:
    scaling: str
    output: Path
    overwrite: OverwritePolicy = OverwritePolicy.REFUSE
    prefix: str = DEFAULT_PREFIX
    extension: str = DEFAULT_EXTENSION
    debug: bool = False
    wait_for_upload: bool = True
    input_file: Optional[Path] = None
    segment_ids: Tuple[int, ...] = field(default_factory=tuple)

    def __post_init__(self):
        parse_scaling(self.scaling)
        if not str(self.output).strip():
            raise UsageError("Missing output file name.")
        if any(segment_id < 0 for segment_id in self.segment_ids):
            raise UsageError("Video IDs must be non-negative.")

    @property
    def scale_dimensions(self) -> Tuple[int, int]:
        return parse_scaling(self.scaling)


@dataclass(frozen=True)
class EncoderSettings:
    ffmpeg: str = DEFAULT_FFMPEG
    idle_inhibitor: Tuple[str, ...] = ("caffeinate", "-i")
    video_codec: str = DEFAULT_VIDEO_CODEC
    audio_codec: str = DEFAULT_AUDIO_CODEC


def default_idle_inhibitor(system: Optional[str] = None) -> Tuple[str, ...]:
    if (system or platform.system()) == "Darwin":
        return ("caffeinate", "-i")
    return ("systemd-inhibit", "--what=idle:sleep")


def load_encoder_settings(environ: Optional[Mapping[str, str]] = None) -> EncoderSettings:
    environ = os.environ if environ is None else environ
    inhibitor = environ.get(ENV_IDLE_INHIBITOR, "").strip()
    return EncoderSettings(
        ffmpeg=environ.get(ENV_FFMPEG) or DEFAULT_FFMPEG,
        idle_inhibitor=tuple(shlex.split(inhibitor)) if inhibitor else default_idle_inhibitor(),
        video_codec=environ.get(ENV_VIDEO_CODEC) or DEFAULT_VIDEO_CODEC,
        audio_codec=environ.get(ENV_AUDIO_CODEC) or DEFAULT_AUDIO_CODEC,
    )


def video_id(value: str) -> int:
    try:
        segment_id = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid video ID: '{value}'")
    if segment_id < 0:
        raise argparse.ArgumentTypeError(f"video ID must be non-negative: '{value}'")
    return segment_id


def build_parser(environ: Optional[Mapping[str, str]] = None) -> argparse.ArgumentParser:
    environ = os.environ if environ is None else environ
    parser = argparse.ArgumentParser(
        prog="segments2video",
        description="Combine the chapter files of one or more camera videos into a single scaled video.",
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-d", "--debug", action="store_true", help="output debug information"
    )
    parser.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="overwrite output file if it already exists",
    )
    parser.add_argument(
        "-n",
        "--no-wait",
        action="store_true",
        help="don't wait for the upload to YouTube",
    )
    parser.add_argument(
        "-i",
        "--input",
        type=Path,
        metavar="fn",
        help="input file to use when calling ffmpeg (ignored if empty or absent)",
    )
    parser.add_argument(
        "-o", "--output", type=Path, metavar="fn", help="output combined file to fn"
    )
    parser.add_argument(
        "-p",
        "--prefix",
        metavar="pfx",
        default=environ.get(ENV_PREFIX) or DEFAULT_PREFIX,
        help="use pfx as prefix for file names (default: %(default)s)",
    )
    parser.add_argument(
        "-s", "--scale", metavar="w:h", help="scale video to w width and h height pixels"
    )
    parser.add_argument(
        "-t",
        "--type",
        metavar="type",
        default=environ.get(ENV_TYPE) or DEFAULT_EXTENSION,
        help="use type as extension for file names (default: %(default)s)",
    )
    parser.add_argument(
        "video",
        type=video_id,
        nargs="*",
        help="number of one or more videos to look for",
    )
    return parser


def parse_args(
    argv: Sequence[str], environ: Optional[Mapping[str, str]] = None
) -> RunConfiguration:
    parser = build_parser(environ)
    if not argv:
        parser.print_usage(sys.stderr)
        parser.exit(2, f"{parser.prog}: error: no arguments given\n")
    args = parser.parse_args(list(argv))
    if not args.scale or not args.output:
        parser.error("missing scaling (-s) and/or output file name (-o)")
    try:
        return RunConfiguration(
            scaling=args.scale,
            output=args.output,
            overwrite=OverwritePolicy.ALWAYS if args.force else OverwritePolicy.REFUSE,
            prefix=args.prefix,
            extension=args.type,
            debug=args.debug,
            wait_for_upload=not args.no_wait,
            input_file=args.input,
            segment_ids=tuple(args.video),
        )
    except UsageError as e:
        parser.error(str(e))


def describe(config: RunConfiguration) -> List[str]:
    lines = [
        f"Scaling set to '{config.scaling}'.",
        f"Output file set to '{config.output}'.",
        f"Overwrite option set to '{config.overwrite.ffmpeg_flag}'.",
        f"File prefix set to '{config.prefix}'.",
        f"File type set to '{config.extension}'.",
    ]
    if config.input_file is not None:
        lines.append(f"Input file set to '{config.input_file}'.")
    if not config.wait_for_upload:
        lines.append("No wait mode turned on.")
    return lines
