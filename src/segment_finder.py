#!/usr/bin/env python3
"""Find the files a camera split a recording into and build a concat manifest.

GoPro names chapter files ``<prefix><encoding><chapter><id>.<ext>``, for
example ``GX019876.MP4`` and ``GX029876.MP4`` for the first two chapters of
video 9876.
"""
import argparse
import logging
import os
import pathlib
import re
import tempfile
from typing import Iterable, List, Optional, Sequence, Union

from natsort import natsorted

GOPRO_VIDEO_ID_FORMAT = "{:04d}"
MANIFEST_LINE_FORMAT = "file '{}'\n"

_MANIFEST_LINE = re.compile(r"^file '(.*)'$")


def format_segment_id(segment_id: int) -> str:
    if segment_id < 0:
        raise ValueError(f"Video ID must be non-negative, got {segment_id}.")
    return GOPRO_VIDEO_ID_FORMAT.format(segment_id)


def segment_pattern(segment_id: int, prefix: str, extension: str) -> "re.Pattern[str]":
    return re.compile(
        re.escape(prefix)
        + ".."
        + re.escape(format_segment_id(segment_id))
        + r"\."
        + re.escape(extension),
        re.DOTALL,
    )


class LocalDirectory:
    """Directory listing used to look up segment files."""

    def __init__(self, path: Union[pathlib.Path, str] = "."):
        self.path = pathlib.Path(path)

    def names(self) -> List[str]:
        return [entry.name for entry in self.path.iterdir()]

    def is_file(self, name: str) -> bool:
        return (self.path / name).is_file()

    def resolve(self, name: str) -> pathlib.Path:
        return (self.path / name).resolve()


def find_segment_files(
    segment_id: int, prefix: str, extension: str, directory: LocalDirectory
) -> List[pathlib.Path]:
    pattern = segment_pattern(segment_id, prefix, extension)
    matches = [
        name
        for name in directory.names()
        if not name.startswith(".") and pattern.fullmatch(name)
    ]
    return [
        directory.resolve(name) for name in natsorted(matches) if directory.is_file(name)
    ]


def build_manifest(
    segment_ids: Iterable[int],
    prefix: str,
    extension: str,
    directory: Optional[LocalDirectory] = None,
) -> List[pathlib.Path]:
    """Collect segment files for each video ID, in the order the IDs are given.

    Repeated IDs are scanned again and contribute their files again. An ID
    without any matching file contributes nothing.
    """
    directory = directory or LocalDirectory()
    manifest: List[pathlib.Path] = []
    for segment_id in segment_ids:
        logging.debug(f"Checking video ID '{format_segment_id(segment_id)}'.")
        for path in find_segment_files(segment_id, prefix, extension, directory):
            logging.debug(f"Adding file '{path}' to manifest.")
            manifest.append(path)
    return manifest


def format_manifest_line(path: Union[pathlib.Path, str]) -> str:
    posix_path = pathlib.PurePath(path).as_posix()
    # ffmpeg's concat demuxer cannot read an unescaped quote inside a quoted path
    if "'" in posix_path:
        logging.warning(f"Path contains a single quote and may not be readable by ffmpeg: {posix_path}")
    return MANIFEST_LINE_FORMAT.format(posix_path)


def serialize_manifest(paths: Sequence[Union[pathlib.Path, str]]) -> str:
    return "".join(format_manifest_line(path) for path in paths)


def parse_manifest(text: str) -> List[str]:
    paths = []
    for line in text.splitlines():
        if not line.strip():
            continue
        match = _MANIFEST_LINE.match(line)
        if match is None:
            raise ValueError(f"Not a concat manifest line: {line!r}")
        paths.append(match.group(1))
    return paths


def write_manifest(paths: Sequence[Union[pathlib.Path, str]]) -> pathlib.Path:
    # surrogateescape writes undecodable file name bytes back out unchanged
    with tempfile.NamedTemporaryFile(
        mode="w",
        suffix=".txt",
        prefix="concat_",
        delete=False,
        encoding="utf-8",
        errors="surrogateescape",
    ) as manifest_file:
        try:
            manifest_file.write(serialize_manifest(paths))
        except BaseException:
            manifest_file.close()
            os.remove(manifest_file.name)
            raise
    logging.debug(f"Wrote manifest '{manifest_file.name}' with {len(paths)} entries.")
    return pathlib.Path(manifest_file.name)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    parser = argparse.ArgumentParser(
        description="Print the concat manifest for one or more video IDs."
    )
    parser.add_argument("video", type=int, nargs="+", help="Video IDs to look for")
    parser.add_argument("-p", "--prefix", default="GX", help="File name prefix")
    parser.add_argument("-t", "--type", default="MP4", help="File extension")
    args = parser.parse_args()
    print(serialize_manifest(build_manifest(args.video, args.prefix, args.type)), end="")
