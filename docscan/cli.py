"""Command-line interface for single and batch document extraction.

Subcommands extract one photo to JSON, process a folder of photos into
a CSV file, or re-run parsing on previously recognized text.
"""

import argparse
import csv
import json
import sys
from pathlib import Path

from docscan.extraction.pipeline import ExtractionPipeline
from docscan.models import DocumentType, ExtractionResult, RawImage
from docscan.utils.config import load_config
from docscan.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

_SUPPORTED_EXTENSIONS = (
    "*.png",
    "*.jpg",
    "*.jpeg",
    "*.webp",
    "*.tiff",
    "*.tif",
    "*.bmp",
)
_MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".tif": "image/tiff",
    ".tiff": "image/tiff",
    ".bmp": "image/bmp",
}
_META_COLUMNS = [
    "filename",
    "document_type",
    "success",
    "confidence",
    "processing_time_ms",
    "error_kind",
    "error",
]
_DOCUMENT_TYPE_CHOICES = [dt.value for dt in DocumentType]


def _find_images(input_dir: Path) -> list[Path]:
    """Find all supported image files in a directory.

    Args:
        input_dir: Directory to scan.

    Returns:
        Sorted list of image paths.
    """
    files: list[Path] = []
    for ext in _SUPPORTED_EXTENSIONS:
        files.extend(input_dir.glob(ext))
        files.extend(input_dir.glob(ext.upper()))
    return sorted(set(files))


def _load_image(path: Path) -> RawImage:
    mime_type = _MIME_TYPES.get(path.suffix.lower(), "application/octet-stream")
    return RawImage(data=path.read_bytes(), mime_type=mime_type)


def _result_row(filename: str, result: ExtractionResult) -> dict[str, object]:
    """Flatten a result into one CSV row."""
    row: dict[str, object] = {
        "filename": filename,
        "document_type": result.document_type.value,
        "success": result.success,
        "confidence": result.confidence,
        "processing_time_ms": result.processing_time_ms,
        "error_kind": result.error_kind.value if result.error_kind else None,
        "error": result.error,
    }
    if result.fields is not None:
        row.update(result.fields.to_dict())
    return row


def process_folder(
    input_dir: Path,
    output_csv: Path,
    document_type: DocumentType,
    verbose: bool = False,
    pipeline: ExtractionPipeline | None = None,
) -> dict[str, int]:
    """Extract every image in a folder and write the results to CSV.

    Args:
        input_dir: Directory containing photos.
        output_csv: Path for the output CSV file.
        document_type: Kind of document shown in every photo.
        verbose: Whether to print per-file progress.
        pipeline: Pipeline to use; built from the default config if omitted.

    Returns:
        Counts of total, successful and manual-review documents.
    """
    files = _find_images(input_dir)
    if not files:
        logger.warning("No images found in %s", input_dir)
        return {"total": 0, "successful": 0, "manual_review": 0}

    pipeline = pipeline or ExtractionPipeline(load_config())
    logger.info("Found %d images to process", len(files))

    rows: list[dict[str, object]] = []
    successful = 0
    for i, file_path in enumerate(files, 1):
        if verbose:
            print(f"Processing [{i}/{len(files)}]: {file_path.name}")
        result = pipeline.extract(_load_image(file_path), document_type)
        rows.append(_result_row(file_path.name, result))
        if result.success:
            successful += 1

    _write_csv(rows, output_csv)
    logger.info("Results written to %s", output_csv)

    summary = {
        "total": len(files),
        "successful": successful,
        "manual_review": len(files) - successful,
    }
    _print_summary(summary, output_csv)
    return summary


def _write_csv(rows: list[dict[str, object]], output_path: Path) -> None:
    """Write result rows to CSV, metadata columns first."""
    if not rows:
        return

    all_keys: set[str] = set()
    for r in rows:
        all_keys.update(r.keys())

    field_columns = sorted(all_keys - set(_META_COLUMNS))
    columns = [c for c in _META_COLUMNS if c in all_keys] + field_columns

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=columns, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(rows)


def _print_summary(summary: dict[str, int], output_csv: Path) -> None:
    print(f"\n{'=' * 50}")
    print("Batch Extraction Complete")
    print(f"{'=' * 50}")
    print(f"Total:         {summary['total']}")
    print(f"Successful:    {summary['successful']}")
    print(f"Manual review: {summary['manual_review']}")
    print(f"Output:        {output_csv}")


def extract_single(
    file_path: Path,
    document_type: DocumentType,
    pipeline: ExtractionPipeline | None = None,
) -> dict[str, object]:
    """Extract one photo and return a JSON-ready dictionary."""
    pipeline = pipeline or ExtractionPipeline(load_config())
    result = pipeline.extract(_load_image(file_path), document_type)
    return {"filename": file_path.name, **result.to_dict()}


def _write_output(data: dict[str, object], output: Path | None) -> None:
    output_str = json.dumps(data, indent=2, ensure_ascii=False)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(output_str, encoding="utf-8")
        print(f"Output written to {output}")
    else:
        print(output_str)


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="Identity card and vehicle plate field extraction",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", type=Path, default=None, help="YAML config")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    single_parser = subparsers.add_parser("extract", help="Extract a single photo")
    single_parser.add_argument("file", type=Path, help="Image file to process")
    single_parser.add_argument(
        "-t",
        "--type",
        choices=_DOCUMENT_TYPE_CHOICES,
        required=True,
        dest="doc_type",
        help="Document type",
    )
    single_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    batch_parser = subparsers.add_parser("batch", help="Extract a folder of photos")
    batch_parser.add_argument("input_dir", type=Path, help="Directory with photos")
    batch_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("results.csv"),
        help="Output CSV file (default: results.csv)",
    )
    batch_parser.add_argument(
        "-t",
        "--type",
        choices=_DOCUMENT_TYPE_CHOICES,
        required=True,
        dest="doc_type",
        help="Document type",
    )
    batch_parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose output"
    )

    text_parser = subparsers.add_parser(
        "parse-text", help="Parse previously recognized text"
    )
    text_parser.add_argument(
        "text_file", type=Path, help="Text file, or '-' to read stdin"
    )
    text_parser.add_argument(
        "-t",
        "--type",
        choices=_DOCUMENT_TYPE_CHOICES,
        required=True,
        dest="doc_type",
        help="Document type",
    )

    args = parser.parse_args(argv)

    config = load_config(args.config)
    setup_logging(config.log_level)

    if args.command == "extract":
        if not args.file.exists():
            print(f"Error: {args.file} does not exist", file=sys.stderr)
            sys.exit(1)
        pipeline = ExtractionPipeline(config)
        result = extract_single(args.file, DocumentType(args.doc_type), pipeline)
        _write_output(result, args.output)
    elif args.command == "batch":
        if not args.input_dir.is_dir():
            print(f"Error: {args.input_dir} is not a directory", file=sys.stderr)
            sys.exit(1)
        process_folder(
            args.input_dir,
            args.output,
            DocumentType(args.doc_type),
            args.verbose,
            ExtractionPipeline(config),
        )
    elif args.command == "parse-text":
        if str(args.text_file) == "-":
            text = sys.stdin.read()
        elif args.text_file.exists():
            text = args.text_file.read_text(encoding="utf-8")
        else:
            print(f"Error: {args.text_file} does not exist", file=sys.stderr)
            sys.exit(1)
        pipeline = ExtractionPipeline(config)
        result = pipeline.parse_text(text, DocumentType(args.doc_type))
        _write_output(result.to_dict(), None)
    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    main()
