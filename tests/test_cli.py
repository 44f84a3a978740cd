from __future__ import annotations

import json
import subprocess
from pathlib import Path

import pytest

from clipvault import cli
from clipvault.core.errors import ExternalToolFailure
from clipvault.ingest.probe import StreamGeometry
from tests.conftest import mp4_bytes


@pytest.fixture()
def sample_file(tmp_path) -> Path:
    path = tmp_path / "sample.mp4"
    path.write_bytes(mp4_bytes())
    return path


def test_probe_prints_geometry_and_key(sample_file, monkeypatch, capsys):
    monkeypatch.setattr(cli, "probe_media", lambda path: StreamGeometry(1080, 1920, "9:16", "video"))

    cli.main(["probe", "--file", str(sample_file)])

    payload = json.loads(capsys.readouterr().out)
    assert payload["content_type"] == "video/mp4"
    assert payload["orientation"] == "portrait"
    assert payload["sample_key"].startswith("portrait/")


def test_probe_failure_exits_with_code_3(sample_file, monkeypatch):
    def failing(path):
        raise ExternalToolFailure("ffprobe", "bad input", returncode=1)

    monkeypatch.setattr(cli, "probe_media", failing)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["probe", "--file", str(sample_file)])
    assert excinfo.value.code == 3


def test_missing_file_exits_with_code_2(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["probe", "--file", str(tmp_path / "nope.mp4")])
    assert excinfo.value.code == 2


def test_remux_moves_output(sample_file, tmp_path, monkeypatch):
    def fake_remux(path: Path) -> Path:
        output = path.with_name(path.name + ".processing")
        output.write_bytes(b"remuxed")
        return output

    monkeypatch.setattr(cli, "remux_for_fast_start", fake_remux)
    target = tmp_path / "out.mp4"

    cli.main(["remux", "--file", str(sample_file), "--output", str(target)])

    assert target.read_bytes() == b"remuxed"
    assert not (tmp_path / "sample.mp4.processing").exists()


def test_environment_check_reports_missing_tools(monkeypatch, capsys):
    def runner(command, **kwargs):
        if command[0] == "ffmpeg":
            raise FileNotFoundError(command[0])
        return subprocess.CompletedProcess(command, 0)

    monkeypatch.setattr(cli.subprocess, "run", runner)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--check"])
    assert excinfo.value.code == 1
    assert "missing" in capsys.readouterr().out


def test_no_command_prints_help():
    with pytest.raises(SystemExit) as excinfo:
        cli.main([])
    assert excinfo.value.code == 1
