"""Tests for CLI functionality."""

from pathlib import Path
from typing import List
from unittest.mock import patch

import pytest

from samples import make_png
from doc2any.cli import DEFAULT_CONFIG, load_config, main, parse_args, validate_config
from doc2any.file_converter import SourceDescriptor
from doc2any.ocr_adapter import OCRResult


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / "config.toml"
    path.write_text(
        f'output_dir = "{tmp_path / "out"}"\n'
        f'stats_file = "{tmp_path / "stats.json"}"\n'
        'log_level = "ERROR"\n'
    )
    return path


def run_main(argv: List[str]) -> int:
    with patch("doc2any.cli.setup_logging"):
        try:
            main(argv)
        except SystemExit as e:
            return int(e.code or 0)
    return 0


def test_validate_config() -> None:
    """Test configuration validation."""
    validate_config({"log_level": "debug", "output_dir": "out", "show_progress": True})

    with pytest.raises(ValueError, match="Invalid log level"):
        validate_config({"log_level": "LOUD"})
    with pytest.raises(ValueError, match="Unknown config fields"):
        validate_config({"api_key": "x"})
    with pytest.raises(ValueError):
        validate_config({"output_dir": 3})
    with pytest.raises(ValueError):
        validate_config({"show_progress": "yes"})
    with pytest.raises(ValueError):
        validate_config({"ocr_language": " "})


def test_load_config(config_path: Path) -> None:
    config = load_config(str(config_path))
    assert config["log_level"] == "ERROR"
    assert config["ocr_language"] == DEFAULT_CONFIG["ocr_language"]
    assert load_config(None) == DEFAULT_CONFIG
    with pytest.raises(FileNotFoundError):
        load_config(str(config_path.parent / "missing.toml"))


def test_parse_args() -> None:
    args = parse_args(["--log-level", "debug", "convert", "a.csv", "-t", "docx", "-o", "out"])
    assert args.command == "convert"
    assert args.log_level == "DEBUG"
    assert (args.input, args.target, args.output_dir) == ("a.csv", "docx", "out")


def test_convert_command(tmp_path: Path, config_path: Path, capsys: pytest.CaptureFixture) -> None:
    source = tmp_path / "report.csv"
    source.write_bytes(b'"a,b",c\n1,2,3')

    code = run_main(["-c", str(config_path), "convert", str(source), "-t", "xlsx"])

    assert code == 0
    output = tmp_path / "out" / "report_converted.xlsx"
    assert output.exists()
    assert output.read_bytes().startswith(b"PK")
    assert "Saved" in capsys.readouterr().out


def test_convert_rejects_pair(tmp_path: Path, config_path: Path, capsys: pytest.CaptureFixture) -> None:
    source = tmp_path / "notes.txt"
    source.write_text("hello")

    code = run_main(["-c", str(config_path), "convert", str(source), "-t", "png"])

    assert code == 1
    assert "Error: Cannot convert .txt to PNG" in capsys.readouterr().err


def test_missing_input(tmp_path: Path, config_path: Path, capsys: pytest.CaptureFixture) -> None:
    code = run_main(["-c", str(config_path), "convert", str(tmp_path / "nope.pdf"), "-t", "txt"])
    assert code == 1
    assert "Error:" in capsys.readouterr().err


def test_formats_command(capsys: pytest.CaptureFixture) -> None:
    assert run_main(["formats", "slides.pptx"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "Output formats for .pptx:"
    assert [line.strip() for line in lines[1:]] == ["pdf", "docx", "txt", "csv"]

    assert run_main(["formats", "movie.mp4"]) == 1


def test_stats_command(tmp_path: Path, config_path: Path, capsys: pytest.CaptureFixture) -> None:
    source = tmp_path / "notes.txt"
    source.write_text("hello")
    run_main(["-c", str(config_path), "convert", str(source), "-t", "pdf"])
    capsys.readouterr()

    assert run_main(["-c", str(config_path), "stats"]) == 0
    assert "Files converted: 1" in capsys.readouterr().out

    assert run_main(["-c", str(config_path), "stats", "--reset"]) == 0
    assert "Files converted: 0" in capsys.readouterr().out


def test_ocr_command(tmp_path: Path, config_path: Path) -> None:
    image = tmp_path / "scan.png"
    image.write_bytes(make_png(40, 30))
    scan = SourceDescriptor.from_path(image)

    with patch("doc2any.cli.OCRAdapter") as adapter_class:
        adapter_class.return_value.recognize.return_value = OCRResult("Total due", 91.0, scan)
        code = run_main(["-c", str(config_path), "ocr", str(image), "-l", "deu"])
        adapter_class.assert_called_once_with(language="deu")

    assert code == 0
    assert (tmp_path / "out" / "scan_ocr.txt").read_text() == "Total due"


def test_ocr_command_with_target(tmp_path: Path, config_path: Path) -> None:
    image = tmp_path / "scan.png"
    image.write_bytes(make_png(40, 30))
    scan = SourceDescriptor.from_path(image)

    with patch("doc2any.cli.OCRAdapter") as adapter_class:
        adapter_class.return_value.recognize.return_value = OCRResult("Total due", 91.0, scan)
        code = run_main(["-c", str(config_path), "ocr", str(image), "-t", "docx"])

    assert code == 0
    assert (tmp_path / "out" / "scan_ocr_converted.docx").exists()
