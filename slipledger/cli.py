"""Command-line interface for slip parsing, scanning, and benchmarking.

Provides subcommands for parsing recognized text, scanning single slip
images or whole folders (exported to CSV), and benchmarking the parser
against labeled samples.
"""

import argparse
import csv
import json
import sys
import time
from pathlib import Path

from slipledger.benchmark.evaluator import SlipEvaluator, load_samples
from slipledger.errors import SlipLedgerError
from slipledger.extraction.slip_parser import parse_slip_text
from slipledger.ocr.slip_processor import SlipProcessor
from slipledger.utils.config import AppConfig, load_config
from slipledger.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

_SUPPORTED_EXTENSIONS = ("*.png", "*.jpg", "*.jpeg", "*.webp", "*.tiff", "*.tif")
_META_COLUMNS = [
    "filename",
    "status",
    "processing_time_s",
    "confidence",
    "error",
]
_FIELD_COLUMNS = ["amount", "date", "inferred_type", "note"]


def _find_images(input_dir: Path) -> list[Path]:
    """Find all supported slip images in a directory, sorted by name."""
    files: list[Path] = []
    for ext in _SUPPORTED_EXTENSIONS:
        files.extend(input_dir.glob(ext))
        files.extend(input_dir.glob(ext.upper()))
    return sorted(set(files))


def parse_text(text: str, config: AppConfig | None = None) -> dict[str, object]:
    """Parse recognized slip text into a JSON-ready dictionary."""
    config = config or load_config()
    return parse_slip_text(
        text,
        placeholder=config.parser.placeholder_note,
        note_max_length=config.parser.note_max_length,
    ).to_dict()


def scan_single(file_path: Path, processor: SlipProcessor) -> dict[str, object]:
    """Scan one slip image and return its parsed fields.

    Args:
        file_path: Path to the slip image.
        processor: Slip processor to run the image through.

    Returns:
        Dictionary with the filename and parsed fields.
    """
    scan = processor.scan(file_path, file_path.name)
    return {"filename": file_path.name, **scan.parse_result.to_dict()}


def process_folder(
    input_dir: Path,
    output_csv: Path,
    verbose: bool = False,
    processor: SlipProcessor | None = None,
) -> dict[str, int]:
    """Scan all slip images in a folder and export the results to CSV.

    A failing image is recorded as a failed row; the remaining images
    are still processed.

    Args:
        input_dir: Directory containing slip images.
        output_csv: Path for the output CSV file.
        verbose: Whether to print per-file progress.
        processor: Slip processor to use; built from the config if omitted.

    Returns:
        Summary dict with total, successful, and failed counts.
    """
    files = _find_images(input_dir)
    if not files:
        logger.warning("No slip images found in %s", input_dir)
        return {"total": 0, "successful": 0, "failed": 0}

    logger.info("Found %d slip images to process", len(files))
    owned = processor is None
    processor = processor or SlipProcessor(load_config())

    results: list[dict[str, object]] = []
    successful = 0
    failed = 0

    try:
        for i, file_path in enumerate(files, 1):
            if verbose:
                print(f"Processing [{i}/{len(files)}]: {file_path.name}")

            start_time = time.time()
            try:
                row = scan_single(file_path, processor)
            except SlipLedgerError as exc:
                logger.error("Failed to process %s: %s", file_path.name, exc)
                results.append({"filename": file_path.name, "status": "failed", "error": str(exc)})
                failed += 1
                continue

            row.pop("raw_text", None)
            row["status"] = "success"
            row["error"] = None
            row["processing_time_s"] = round(time.time() - start_time, 2)
            results.append(row)
            successful += 1
    finally:
        if owned:
            processor.close()

    _write_csv(results, output_csv)
    logger.info("Results written to %s", output_csv)

    summary = {"total": len(files), "successful": successful, "failed": failed}
    _print_summary(summary, output_csv)
    return summary


def _write_csv(results: list[dict[str, object]], output_path: Path) -> None:
    """Write scan results to a CSV file with meta columns first."""
    if not results:
        return

    columns = _META_COLUMNS + _FIELD_COLUMNS
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=columns, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(results)


def _print_summary(summary: dict[str, int], output_csv: Path) -> None:
    """Print batch processing summary to stdout."""
    print(f"\n{'=' * 50}")
    print("Slip Batch Complete")
    print(f"{'=' * 50}")
    print(f"Total:      {summary['total']}")
    print(f"Successful: {summary['successful']}")
    print(f"Failed:     {summary['failed']}")
    print(f"Output:     {output_csv}")


def _emit_json(payload: object, output: Path | None) -> None:
    output_str = json.dumps(payload, indent=2, ensure_ascii=False)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(output_str, encoding="utf-8")
        print(f"Output written to {output}")
    else:
        print(output_str)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Bank transfer slip parser and scanner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-c", "--config", type=Path, help="YAML configuration file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    parse_parser = subparsers.add_parser("parse", help="Parse recognized slip text")
    parse_parser.add_argument(
        "text_file", type=Path, nargs="?", help="Text file (default: stdin)"
    )
    parse_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    scan_parser = subparsers.add_parser("scan", help="Scan a single slip image")
    scan_parser.add_argument("file", type=Path, help="Slip image to scan")
    scan_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    batch_parser = subparsers.add_parser("batch", help="Scan a folder of slip images")
    batch_parser.add_argument("input_dir", type=Path, help="Input directory with slips")
    batch_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("slips.csv"),
        help="Output CSV file (default: slips.csv)",
    )
    batch_parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    bench_parser = subparsers.add_parser(
        "benchmark", help="Score the parser against labeled text samples"
    )
    bench_parser.add_argument("samples", type=Path, help="Labeled samples JSON file")
    bench_parser.add_argument("-o", "--output", type=Path, help="Report output file")

    return parser


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    config = load_config(args.config)
    setup_logging(config.log_level)

    if args.command == "parse":
        if args.text_file is not None:
            if not args.text_file.exists():
                print(f"Error: {args.text_file} does not exist", file=sys.stderr)
                sys.exit(1)
            text = args.text_file.read_text(encoding="utf-8")
        else:
            text = sys.stdin.read()
        _emit_json(parse_text(text, config), args.output)
    elif args.command == "scan":
        if not args.file.exists():
            print(f"Error: {args.file} does not exist", file=sys.stderr)
            sys.exit(1)
        processor = SlipProcessor(config)
        try:
            result = scan_single(args.file, processor)
        except SlipLedgerError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            sys.exit(1)
        finally:
            processor.close()
        _emit_json(result, args.output)
    elif args.command == "batch":
        if not args.input_dir.is_dir():
            print(f"Error: {args.input_dir} is not a directory", file=sys.stderr)
            sys.exit(1)
        processor = SlipProcessor(config)
        try:
            process_folder(args.input_dir, args.output, args.verbose, processor)
        finally:
            processor.close()
    elif args.command == "benchmark":
        if not args.samples.exists():
            print(f"Error: {args.samples} does not exist", file=sys.stderr)
            sys.exit(1)
        evaluator = SlipEvaluator()
        result = evaluator.evaluate_samples(load_samples(args.samples))
        print(evaluator.generate_report(result, args.output))
    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    main()
