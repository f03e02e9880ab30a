"""Tests for argument parsing and environment settings."""

import dataclasses
from pathlib import Path

import pytest

import run_config
from run_config import OverwritePolicy, RunConfiguration, UsageError


def parse(*argv, **environ):
    return run_config.parse_args(list(argv), environ=environ)


def test_parse_args_defaults():
    config = parse("-s", "1920:1080", "-o", "out.mp4", "10", "20", "30")
    assert config == RunConfiguration(
        scaling="1920:1080",
        output=Path("out.mp4"),
        overwrite=OverwritePolicy.REFUSE,
        prefix="GX",
        extension="MP4",
        debug=False,
        wait_for_upload=True,
        input_file=None,
        segment_ids=(10, 20, 30),
    )
    assert config.scale_dimensions == (1920, 1080)


def test_parse_args_all_flags():
    config = parse(
        "-d", "-f", "-n", "-i", "list.txt", "-o", "out.mp4", "-p", "GH", "-s", "2560:1440", "-t", "mov"
    )
    assert config.debug is True
    assert config.overwrite is OverwritePolicy.ALWAYS
    assert config.wait_for_upload is False
    assert config.input_file == Path("list.txt")
    assert config.prefix == "GH"
    assert config.extension == "mov"
    assert config.segment_ids == ()


def test_parse_args_keeps_duplicate_ids():
    assert parse("-s", "1:1", "-o", "o.mp4", "5", "5", "0007").segment_ids == (5, 5, 7)


def test_environment_overrides_prefix_and_type():
    config = parse("-s", "1:1", "-o", "o.mp4", "1", SEGMENTS2VIDEO_PREFIX="GH", SEGMENTS2VIDEO_TYPE="LRV")
    assert config.prefix == "GH"
    assert config.extension == "LRV"
    config = parse("-s", "1:1", "-o", "o.mp4", "-p", "GX", "1", SEGMENTS2VIDEO_PREFIX="GH")
    assert config.prefix == "GX"


@pytest.mark.parametrize(
    "argv",
    [
        [],
        ["-o", "out.mp4", "1"],
        ["-s", "1920:1080", "1"],
        ["-s", "1920x1080", "-o", "out.mp4", "1"],
        ["-s", "1920:1080px", "-o", "out.mp4", "1"],
        ["-s", "0:1080", "-o", "out.mp4", "1"],
        ["-s", "\u0661\u0669\u0662\u0660:\u0661\u0660\u0668\u0660", "-o", "out.mp4", "1"],
        ["-s", "1920:1080", "-o", "out.mp4", "-1"],
        ["-s", "1920:1080", "-o", "out.mp4", "ten"],
        ["-x"],
    ],
)
def test_parse_args_usage_errors(argv, capsys):
    with pytest.raises(SystemExit) as excinfo:
        run_config.parse_args(argv, environ={})
    assert excinfo.value.code == 2
    assert "usage:" in capsys.readouterr().err


def test_help_exits_cleanly(capsys):
    with pytest.raises(SystemExit) as excinfo:
        run_config.parse_args(["-h"], environ={})
    assert excinfo.value.code == 0
    out = capsys.readouterr().out
    assert "-s w:h" in out
    assert "segments2video -d -s 2560:1440 -o output.mp4 10 20 30" in out


def test_overwrite_flags_are_distinct():
    assert OverwritePolicy.ALWAYS.ffmpeg_flag == "-y"
    assert OverwritePolicy.REFUSE.ffmpeg_flag == "-n"


def test_run_configuration_is_immutable():
    config = RunConfiguration(scaling="640:480", output=Path("o.mp4"))
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.scaling = "1:1"


@pytest.mark.parametrize(
    "scaling", ["", "1920", "1920:", ":1080", "-1:1080", "1920:1080:1", "\uff11\uff19\uff12\uff10:1080"]
)
def test_run_configuration_rejects_bad_scaling(scaling):
    with pytest.raises(UsageError):
        RunConfiguration(scaling=scaling, output=Path("o.mp4"))


def test_run_configuration_rejects_negative_ids():
    with pytest.raises(UsageError):
        RunConfiguration(scaling="1:1", output=Path("o.mp4"), segment_ids=(1, -2))


def test_load_encoder_settings_defaults(monkeypatch):
    monkeypatch.setattr(run_config.platform, "system", lambda: "Darwin")
    settings = run_config.load_encoder_settings({})
    assert settings == run_config.EncoderSettings(
        ffmpeg="ffmpeg", idle_inhibitor=("caffeinate", "-i"), video_codec="libx264", audio_codec="aac"
    )


def test_load_encoder_settings_linux_default(monkeypatch):
    monkeypatch.setattr(run_config.platform, "system", lambda: "Linux")
    settings = run_config.load_encoder_settings({})
    assert settings.idle_inhibitor == ("systemd-inhibit", "--what=idle:sleep")


def test_load_encoder_settings_from_environment():
    settings = run_config.load_encoder_settings(
        {
            "SEGMENTS2VIDEO_FFMPEG": "/opt/bin/ffmpeg",
            "SEGMENTS2VIDEO_IDLE_INHIBITOR": "caffeinate -dims",
            "SEGMENTS2VIDEO_VIDEO_CODEC": "libx265",
            "SEGMENTS2VIDEO_AUDIO_CODEC": "copy",
        }
    )
    assert settings.ffmpeg == "/opt/bin/ffmpeg"
    assert settings.idle_inhibitor == ("caffeinate", "-dims")
    assert settings.video_codec == "libx265"
    assert settings.audio_codec == "copy"


def test_describe_mentions_resolved_options():
    config = RunConfiguration(
        scaling="640:480", output=Path("o.mp4"), input_file=Path("in.txt"), wait_for_upload=False
    )
    lines = run_config.describe(config)
    assert "Overwrite option set to '-n'." in lines
    assert "Input file set to 'in.txt'." in lines
    assert "No wait mode turned on." in lines
