import logging
import pathlib
import subprocess
from typing import List, Optional, Union

import ffmpeg

from run_config import EncoderSettings, OverwritePolicy

# long enough to outlast any upload, short enough for BSD sleep
UPLOAD_WAIT_SECONDS = "2147483647"


class FFmpegEncoder:
    """Runs ffmpeg's concat demuxer under an idle-prevention wrapper."""

    def __init__(self, settings: Optional[EncoderSettings] = None, verbose: bool = False):
        self.settings = settings or EncoderSettings()
        self.verbose = verbose

    @property
    def command_prefix(self) -> List[str]:
        return [*self.settings.idle_inhibitor, self.settings.ffmpeg]

    def required_commands(self, wait: bool = False) -> List[str]:
        commands = [self.settings.ffmpeg]
        if self.settings.idle_inhibitor:
            commands.append(self.settings.idle_inhibitor[0])
        if wait:
            commands.append("sleep")
        return commands

    def build_stream(
        self,
        manifest_path: Union[pathlib.Path, str],
        scaling: str,
        overwrite: OverwritePolicy,
        output_path: Union[pathlib.Path, str],
    ):
        return (
            ffmpeg.input(str(manifest_path), f="concat", safe=0)
            .output(
                str(output_path),
                vf=f"scale={scaling}",
                vcodec=self.settings.video_codec,
                acodec=self.settings.audio_codec,
            )
            .global_args("-hide_banner", overwrite.ffmpeg_flag)
        )

    def command(self, manifest_path, scaling, overwrite, output_path) -> List[str]:
        stream = self.build_stream(manifest_path, scaling, overwrite, output_path)
        return ffmpeg.compile(stream, cmd=self.command_prefix)

    def encode(
        self,
        manifest_path: Union[pathlib.Path, str],
        scaling: str,
        overwrite: OverwritePolicy,
        output_path: Union[pathlib.Path, str],
    ) -> bool:
        stream = self.build_stream(manifest_path, scaling, overwrite, output_path)
        logging.debug(
            f"Running FFmpeg (in: {manifest_path}, out: {output_path}, "
            f"scaling: {scaling}, overwrite: {overwrite.ffmpeg_flag})."
        )
        logging.debug(f"Running ffmpeg command: {' '.join(ffmpeg.compile(stream, cmd=self.command_prefix))}")
        try:
            ffmpeg.run(stream, cmd=self.command_prefix, capture_stderr=not self.verbose)
        except ffmpeg.Error as e:
            if e.stderr:
                logging.error(e.stderr.decode("utf-8", "replace").rstrip())
            logging.error(f"Concatenation error: {e}")
            return False
        return True

    def wait_for_upload(self):
        print("Please upload the video to YouTube and then type CTRL+C once it has completed.")
        try:
            subprocess.run([*self.settings.idle_inhibitor, "sleep", UPLOAD_WAIT_SECONDS])
        except KeyboardInterrupt:
            logging.info("Upload wait ended.")
