"""Command line entry point for the Image Enricher project."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from . import MetadataAggregator, SettingsStore
from .io.blob_store import LocalBlobContainer
from .io.documents import DocumentNotFoundError, DocumentStore
from .services.triggers import QueueRequest, process_blob_event, process_queue_item
from .utils.paths import resolve_image_paths
from .utils.streams import SourceReadError

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Image Enricher")
    parser.add_argument(
        "--input",
        "-i",
        type=Path,
        help="Image file or directory to run through the storage-event flow.",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        help="Output container directory for enriched copies.",
    )
    parser.add_argument(
        "--recursive",
        action="store_true",
        help="Traverse sub-directories when --input is a directory.",
    )
    parser.add_argument(
        "--queue-message",
        help='Queue message such as \'{"DocumentId": "...", "BlobName": "..."}\'.',
    )
    parser.add_argument(
        "--images-dir",
        type=Path,
        help="Container directory holding images referenced by queue messages.",
    )
    parser.add_argument(
        "--documents-dir",
        type=Path,
        help="Directory holding document records for the queue flow.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Settings file to load instead of the default location.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging.",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.input is None and args.queue_message is None:
        parser.error("Either --input or --queue-message is required.")
    if args.input is not None and args.queue_message is not None:
        parser.error("--input and --queue-message are mutually exclusive.")

    config = SettingsStore(args.config).load()
    aggregator = MetadataAggregator(config)

    if args.queue_message is not None:
        images_dir = args.images_dir
        documents_dir = args.documents_dir or config.documents_directory
        if images_dir is None or documents_dir is None:
            parser.error("--images-dir and --documents-dir are required for queue messages.")
        try:
            request = QueueRequest.from_message(args.queue_message)
        except ValueError as exc:
            parser.error(str(exc))
        try:
            result = process_queue_item(
                request,
                LocalBlobContainer(images_dir, sidecar_extension=config.sidecar_extension),
                DocumentStore(documents_dir),
                aggregator,
            )
        except (DocumentNotFoundError, FileNotFoundError, SourceReadError) as exc:
            parser.exit(1, f"Could not process queue message: {exc}\n")
        output: object = {
            "document_id": result.request.document_id,
            "blob_name": result.request.blob_name,
            "document": result.document,
        }
    else:
        output_dir = args.output_dir or config.output_directory
        if output_dir is None:
            parser.error("--output-dir is required when no output directory is configured.")
        try:
            image_paths = resolve_image_paths(args.input, recursive=args.recursive)
        except FileNotFoundError:
            parser.error(f"Input path does not exist: {args.input}")
        container = LocalBlobContainer(output_dir, sidecar_extension=config.sidecar_extension)
        output = [
            _process_path(path, _blob_name(path, args.input), container, aggregator)
            for path in image_paths
        ]

    json.dump(output, sys.stdout, indent=2)
    sys.stdout.write("\n")


def _blob_name(path: Path, root: Path) -> str:
    """Blob name for ``path``: its POSIX path below the input directory."""
    root = root.expanduser()
    if root.is_file():
        return path.name
    return path.relative_to(root).as_posix()


def _process_path(
    path: Path,
    name: str,
    container: LocalBlobContainer,
    aggregator: MetadataAggregator,
) -> dict[str, object]:
    try:
        with path.open("rb") as stream:
            result = process_blob_event(stream, name, container, aggregator)
    except (OSError, ValueError) as exc:
        logger.error("Failed to enrich %s: %s", path, exc)
        return {"path": str(path), "output": None, "metadata": None, "error": str(exc)}
    return {
        "path": str(path),
        "output": str(result.blob.path),
        "metadata": result.metadata.as_attributes(),
        "error": None,
    }


if __name__ == "__main__":  # pragma: no cover
    main()
