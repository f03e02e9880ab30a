#!/usr/bin/env python3
"""Combine the chapter files of camera videos into one scaled video with ffmpeg."""
import logging
import pathlib
import sys
from typing import Optional, Sequence

from dotenv import find_dotenv, load_dotenv

from check import MissingDependencyError, check_dependencies, usable_input_file
from ffmpeg_encoder import FFmpegEncoder
from run_config import RunConfiguration, describe, load_encoder_settings, parse_args
from segment_finder import LocalDirectory, build_manifest, write_manifest

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def acquire_manifest(config: RunConfiguration, directory: Optional[LocalDirectory] = None):
    """Return the manifest path and whether this run owns (and must delete) it."""
    if usable_input_file(config.input_file):
        logging.debug(f"Custom input file mode turned on, using '{config.input_file}'.")
        return pathlib.Path(config.input_file), False
    manifest = build_manifest(config.segment_ids, config.prefix, config.extension, directory)
    manifest_path = write_manifest(manifest)
    logging.debug(f"Building input file '{manifest_path}'.")
    return manifest_path, True


def cleanup(manifest_path: pathlib.Path, owned: bool):
    if owned:
        logging.debug(f"Deleting temp file '{manifest_path}'.")
        manifest_path.unlink(missing_ok=True)


def show_manifest(manifest_path: pathlib.Path):
    logging.debug(f"=== Contents of '{manifest_path}' ===")
    # echoed byte for byte, ffmpeg accepts paths in any encoding
    sys.stdout.flush()
    sys.stdout.buffer.write(manifest_path.read_bytes())
    sys.stdout.buffer.flush()
    logging.debug(f"=== End contents of '{manifest_path}' ===")


def run(
    config: RunConfiguration,
    encoder: Optional[FFmpegEncoder] = None,
    directory: Optional[LocalDirectory] = None,
) -> int:
    encoder = encoder or FFmpegEncoder(load_encoder_settings(), verbose=config.debug)
    for line in describe(config):
        logging.debug(line)

    try:
        check_dependencies(encoder.required_commands(wait=config.wait_for_upload))
    except MissingDependencyError as e:
        logging.error(str(e))
        return EXIT_FAILURE

    manifest_path, owned = acquire_manifest(config, directory)
    try:
        if manifest_path.stat().st_size == 0:
            logging.warning("No files to process. Exiting.")
            return EXIT_OK

        if config.debug:
            show_manifest(manifest_path)

        logging.debug(f"Combining video into '{config.output}'.")
        if not encoder.encode(manifest_path, config.scaling, config.overwrite, config.output):
            logging.error(f"Failed to combine videos into '{config.output}'.")
            return EXIT_FAILURE
    finally:
        cleanup(manifest_path, owned)

    print(f"The videos have been combined into '{config.output}'.")

    if config.wait_for_upload:
        encoder.wait_for_upload()
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv(find_dotenv(usecwd=True))
    config = parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.DEBUG if config.debug else logging.INFO,
        stream=sys.stderr,
        format="%(message)s",
    )
    logging.debug("Debug mode turned on.")
    try:
        return run(config)
    except KeyboardInterrupt:
        logging.error("Interrupted.")
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
