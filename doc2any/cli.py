"""Command line interface for the Doc2Any converter."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import tomli

from .conversion_pipeline import ConversionPipeline
from .conversion_stats import DEFAULT_STATS_PATH, ConversionStats, format_size
from .errors import ConversionError
from .file_converter import ConversionResult, SourceDescriptor
from .formats import extension_of, is_valid_input, valid_targets
from .logging_config import setup_logging
from .ocr_adapter import DEFAULT_LANGUAGE, OCRAdapter
from .progress_manager import ProgressManager

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

DEFAULT_CONFIG: Dict[str, Any] = {
    "output_dir": ".",
    "log_level": "WARNING",
    "log_dir": ".doc2any",
    "log_file": None,
    "stats_file": str(DEFAULT_STATS_PATH),
    "ocr_language": DEFAULT_LANGUAGE,
    "show_progress": False,
}


def validate_config(config: Dict) -> None:
    """Validate configuration.

    Args:
        config: Configuration dictionary

    Raises:
        ValueError: If configuration is invalid
    """
    unknown_fields = set(config.keys()) - set(DEFAULT_CONFIG.keys())
    if unknown_fields:
        raise ValueError(f"Unknown config fields: {unknown_fields}")

    if "log_level" in config:
        if str(config["log_level"]).upper() not in VALID_LOG_LEVELS:
            raise ValueError(
                f"Invalid log level: {config['log_level']}. "
                f"Must be one of: {', '.join(sorted(VALID_LOG_LEVELS))}"
            )

    for key in ("output_dir", "log_dir", "stats_file"):
        if key in config and not isinstance(config[key], str):
            raise ValueError(f"{key} must be a string path")

    if config.get("log_file") is not None and not isinstance(config["log_file"], str):
        raise ValueError("log_file must be a file name")

    if "ocr_language" in config:
        language = config["ocr_language"]
        if not isinstance(language, str) or not language.strip():
            raise ValueError("ocr_language must be a non-empty language code")

    if "show_progress" in config and not isinstance(config["show_progress"], bool):
        raise ValueError("show_progress must be a boolean value")


def load_config(config_path: Optional[str]) -> Dict[str, Any]:
    """Read and validate a TOML config file, merged over the defaults.

    Args:
        config_path: Path to the config file, or None for defaults only

    Returns:
        Merged configuration

    Raises:
        FileNotFoundError: If the config file does not exist
        ValueError: If the configuration is invalid
    """
    config = dict(DEFAULT_CONFIG)
    if config_path is None:
        return config

    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with open(path, "rb") as f:
        file_config = tomli.load(f)
    validate_config(file_config)
    config.update(file_config)
    return config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="doc2any", description="Convert documents and images between formats."
    )
    parser.add_argument("-c", "--config", help="Path to TOML config file")
    parser.add_argument(
        "--log-level",
        choices=sorted(VALID_LOG_LEVELS),
        type=str.upper,
        help="Override the configured log level",
    )
    parser.add_argument(
        "--progress", action="store_true", help="Show a progress bar while converting"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    convert = subparsers.add_parser("convert", help="Convert a file to another format")
    convert.add_argument("input", help="File to convert")
    convert.add_argument("-t", "--to", dest="target", required=True, help="Output format")
    convert.add_argument("-o", "--output-dir", help="Directory for the converted file")

    ocr = subparsers.add_parser("ocr", help="Extract text from a scanned image")
    ocr.add_argument("input", help="Image to read")
    ocr.add_argument("-l", "--lang", dest="language", help="Tesseract language code")
    ocr.add_argument(
        "-t", "--to", dest="target", help="Convert the recognized text to this format"
    )
    ocr.add_argument("-o", "--output-dir", help="Directory for the output file")

    formats = subparsers.add_parser("formats", help="List output formats for a file")
    formats.add_argument("input", help="File name or path")

    stats = subparsers.add_parser("stats", help="Show conversion statistics")
    stats.add_argument("--reset", action="store_true", help="Reset the counters")
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed arguments
    """
    return build_parser().parse_args(argv)


def _print_result(result: ConversionResult, out_path: Path) -> None:
    for notice in result.notices:
        print(f"Note: {notice}")
    print(f"Saved {out_path} ({format_size(result.size)})")


def _convert_source(
    source: SourceDescriptor, target: str, output_dir: Path, config: Dict[str, Any]
) -> int:
    pipeline = ConversionPipeline(stats=ConversionStats(config["stats_file"]))
    with ProgressManager(show_bar=config["show_progress"], desc=source.filename) as progress:
        outcome = pipeline.convert(source, target, progress)
    result = outcome.get("result")
    if not outcome["success"] or result is None:
        print(f"Error: {outcome['error']}", file=sys.stderr)
        return 1

    out_path = result.save(output_dir)
    _print_result(result, out_path)
    result.release()
    return 0


def run_convert(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    source = SourceDescriptor.from_path(Path(args.input))
    output_dir = Path(args.output_dir or config["output_dir"])
    return _convert_source(source, args.target, output_dir, config)


def run_ocr(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    adapter = OCRAdapter(language=args.language or config["ocr_language"])
    source = SourceDescriptor.from_path(Path(args.input))
    output_dir = Path(args.output_dir or config["output_dir"])

    with ProgressManager(show_bar=config["show_progress"], desc="OCR") as progress:
        ocr_result = adapter.recognize(source, progress)
    print(f"Recognized {len(ocr_result.text)} characters (confidence {ocr_result.confidence:.1f}%)")

    text_source = ocr_result.to_source()
    if args.target:
        return _convert_source(text_source, args.target, output_dir, config)

    output_dir.mkdir(parents=True, exist_ok=True)
    out_path = output_dir / text_source.filename
    out_path.write_bytes(text_source.data)
    print(f"Saved {out_path}")
    return 0


def run_formats(args: argparse.Namespace) -> int:
    extension = extension_of(args.input)
    if not is_valid_input(extension):
        print(f"Error: Unsupported file type: .{extension}", file=sys.stderr)
        return 1
    print(f"Output formats for .{extension}:")
    for target in valid_targets(extension):
        print(f"  {target.value}")
    return 0


def run_stats(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    stats = ConversionStats(config["stats_file"])
    if args.reset:
        stats.reset()
    print(stats.format_stats())
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    try:
        args = parse_args(argv)
        config = load_config(args.config)

        # Command line flags override the config file
        if args.log_level:
            config["log_level"] = args.log_level
        if args.progress:
            config["show_progress"] = True

        setup_logging(config["log_level"], config["log_dir"], config["log_file"])

        if args.command == "convert":
            exit_code = run_convert(args, config)
        elif args.command == "ocr":
            exit_code = run_ocr(args, config)
        elif args.command == "formats":
            exit_code = run_formats(args)
        else:
            exit_code = run_stats(args, config)

    except ConversionError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
