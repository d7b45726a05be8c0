"""Test the command-line entry point.

Tests for pixelmatch.cli:
    - Exit codes: 0 identical, 66 different, 65 input error, 2 usage error
    - Diff PNG written when a third path is given
    - Flags override the YAML config
    - Malformed config, directories and unwritable diff paths are input errors
    - --log-file writes log records

Run:
    pytest tests/test_cli.py -v
"""

import json

import numpy as np
import pytest
from PIL import Image

from conftest import BLACK, WHITE, solid
from pixelmatch import cli

pytestmark = pytest.mark.usefixtures("clean_logging")


@pytest.fixture
def images(tmp_path):
    """a.png black 6x6, b.png with one white pixel at (2, 3), c.png 6x7."""
    expected = solid(6, 6, BLACK)
    actual = expected.copy()
    actual[3, 2] = WHITE
    Image.fromarray(expected).save(tmp_path / "a.png")
    Image.fromarray(actual).save(tmp_path / "b.png")
    Image.fromarray(solid(6, 7, BLACK)).save(tmp_path / "c.png")
    return tmp_path


def test_identical_exit_zero(images, capsys):
    code = cli.main([str(images / "a.png"), str(images / "a.png")])
    out = capsys.readouterr().out
    assert code == cli.EXIT_OK
    assert "different pixels: 0" in out
    assert "error: 0.0%" in out


def test_different_exit_66(images, capsys):
    diff = images / "diff.png"
    code = cli.main([str(images / "a.png"), str(images / "b.png"), str(diff)])
    out = capsys.readouterr().out
    assert code == cli.EXIT_DIFFERENT
    assert "different pixels: 1" in out
    assert "matched in" in out

    with Image.open(diff) as img:
        rgba = np.asarray(img.convert("RGBA"))
    assert rgba.shape == (6, 6, 4)
    assert rgba[3, 2].tolist() == [255, 0, 0, 255]


def test_size_mismatch_exit_65(images, capsys):
    diff = images / "diff.png"
    code = cli.main([str(images / "a.png"), str(images / "c.png"), str(diff)])
    assert code == cli.EXIT_INPUT_ERROR
    assert "Image dimensions do not match" in capsys.readouterr().err
    assert not diff.exists()


def test_missing_file_exit_65(images):
    assert cli.main([str(images / "a.png"), str(images / "missing.png")]) == cli.EXIT_INPUT_ERROR


def test_unreadable_file_exit_65(images):
    bad = images / "bad.png"
    bad.write_bytes(b"not a png")
    assert cli.main([str(images / "a.png"), str(bad)]) == cli.EXIT_INPUT_ERROR


def test_invalid_threshold_exit_65(images):
    assert cli.main([str(images / "a.png"), str(images / "b.png"), "-t", "3"]) == cli.EXIT_INPUT_ERROR


def test_usage_error_exit_2(images):
    with pytest.raises(SystemExit) as exc:
        cli.main([str(images / "a.png"), "--diff-color", "1,2"])
    assert exc.value.code == 2


def test_flags_override_config(images):
    config = images / "opts.yaml"
    config.write_text("schema: pixelmatch.v1\ndiff_color: [0, 0, 255]\ndiff_mask: true\n", encoding="utf-8")
    diff = images / "diff.png"

    code = cli.main([
        str(images / "a.png"), str(images / "b.png"), str(diff),
        "--config", str(config), "--diff-color", "0,255,0",
    ])

    assert code == cli.EXIT_DIFFERENT
    with Image.open(diff) as img:
        rgba = np.asarray(img.convert("RGBA"))
    assert rgba[3, 2].tolist() == [0, 255, 0, 255]
    assert rgba[0, 0].tolist() == [0, 0, 0, 0]


def test_bad_config_exit_65(images):
    config = images / "opts.yaml"
    config.write_text("schema: other\n", encoding="utf-8")
    code = cli.main([str(images / "a.png"), str(images / "b.png"), "--config", str(config)])
    assert code == cli.EXIT_INPUT_ERROR


def test_malformed_config_exit_65(images):
    config = images / "opts.yaml"
    config.write_text("schema: pixelmatch.v1\nthreshold: [unclosed\n", encoding="utf-8")
    code = cli.main([str(images / "a.png"), str(images / "a.png"), "--config", str(config)])
    assert code == cli.EXIT_INPUT_ERROR


def test_directory_as_image_exit_65(images, capsys):
    code = cli.main([str(images / "a.png"), str(images)])
    assert code == cli.EXIT_INPUT_ERROR
    assert "error:" in capsys.readouterr().err


def test_unwritable_diff_exit_65(images):
    # a directory already sits where the diff image should go
    diff = images / "diff.png"
    diff.mkdir()
    code = cli.main([str(images / "a.png"), str(images / "b.png"), str(diff)])
    assert code == cli.EXIT_INPUT_ERROR
    assert diff.is_dir()


def test_unknown_log_level_is_usage_error(images):
    with pytest.raises(SystemExit) as exc:
        cli.main([str(images / "a.png"), str(images / "a.png"), "--log-level", "loud"])
    assert exc.value.code == 2


def test_log_file(images):
    log_file = images / "logs" / "run.jsonl"
    code = cli.main([
        str(images / "a.png"), str(images / "b.png"),
        "--log-level", "info", "--log-file", str(log_file), "--log-json",
    ])
    assert code == cli.EXIT_DIFFERENT

    records = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
    summary = [r for r in records if r["msg"].startswith("Compared")]
    assert len(summary) == 1
    assert summary[0]["app"] == "pixelmatch"
    assert "1 different" in summary[0]["msg"]


def test_rgb_parser():
    assert cli._rgb("1,2,3") == (1, 2, 3)
