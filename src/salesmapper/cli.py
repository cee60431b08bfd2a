"""Command-line interface for salesmapper."""

import argparse
import asyncio
import csv
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import uvicorn

from .config import settings


def main():
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="salesmapper - Column-mapping detection for distributor sales reports"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Server command
    server_parser = subparsers.add_parser("serve", help="Start the web server")
    server_parser.add_argument(
        "--host", default=settings.host, help=f"Host to bind to (default: {settings.host})"
    )
    server_parser.add_argument(
        "--port", type=int, default=settings.port, help=f"Port to bind to (default: {settings.port})"
    )
    server_parser.add_argument(
        "--reload", action="store_true", help="Enable auto-reload for development"
    )

    # Detect command
    detect_parser = subparsers.add_parser(
        "detect", help="Detect the column mapping of a JSON or CSV rows file"
    )
    detect_parser.add_argument("path", type=Path, help="Rows file (.json list of objects, or .csv)")
    detect_parser.add_argument(
        "--organization", "-o", default="local", help="Organization ID (default: local)"
    )
    detect_parser.add_argument("--distributor", "-d", help="Distributor ID")
    detect_parser.add_argument(
        "--training-config", type=Path, help="JSON file with field_mappings/parsing_instructions"
    )
    detect_parser.add_argument(
        "--no-ai", action="store_true", help="Skip the LLM oracles even if configured"
    )
    detect_parser.add_argument(
        "--no-store", action="store_true", help="Do not read synonyms or history from the database"
    )

    args = parser.parse_args()
    configure_logging(args.verbose)

    if args.command == "serve":
        run_server(args.host, args.port, args.reload)
    elif args.command == "detect":
        try:
            result = asyncio.run(
                run_detect(
                    args.path,
                    organization_id=args.organization,
                    distributor_id=args.distributor,
                    training_config_path=args.training_config,
                    use_ai=not args.no_ai,
                    use_store=not args.no_store,
                )
            )
        except (OSError, ValueError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        print(json.dumps(result, indent=2))
    else:
        parser.print_help()
        sys.exit(1)


def configure_logging(verbose: bool = False):
    """Configure root logging from settings."""
    level = logging.DEBUG if verbose or settings.debug else settings.log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def run_server(host: str, port: int, reload: bool):
    """Run the web server."""
    uvicorn.run(
        "salesmapper.api:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


def load_rows(path: Path) -> list[dict[str, Any]]:
    """Load raw rows from a JSON array of objects or a CSV file."""
    if path.suffix.lower() == ".json":
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, list) or not all(isinstance(row, dict) for row in data):
            raise ValueError(f"{path} must contain a JSON array of objects")
        return data

    if path.suffix.lower() == ".csv":
        with path.open(newline="", encoding="utf-8-sig") as f:
            # Key cells by column letter; the header row is detected, not assumed
            return [
                {_column_letter(i): value for i, value in enumerate(record)}
                for record in csv.reader(f)
            ]

    raise ValueError(f"Unsupported file type: {path.suffix or path.name}")


def _column_letter(index: int) -> str:
    letters = ""
    index += 1
    while index:
        index, remainder = divmod(index - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return letters


async def run_detect(
    path: Path,
    organization_id: str,
    distributor_id: Optional[str] = None,
    training_config_path: Optional[Path] = None,
    use_ai: bool = True,
    use_store: bool = True,
) -> dict[str, Any]:
    """Run detection on a rows file and return the result as a dict."""
    from .detection import DetectionServices, detect_column_mapping_enhanced
    from .evidence import EvidenceStorage
    from .llm import create_oracles

    rows = load_rows(path)
    training_config = None
    if training_config_path:
        training_config = json.loads(training_config_path.read_text(encoding="utf-8"))

    header_oracle, mapping_oracle = create_oracles(settings) if use_ai else (None, None)
    services = DetectionServices(header_oracle=header_oracle, mapping_oracle=mapping_oracle)

    storage = None
    if use_store:
        storage = EvidenceStorage()
        await storage.initialize()
        services.synonym_store = storage
        services.learned_mapping_store = storage

    try:
        result = await detect_column_mapping_enhanced(
            rows,
            organization_id,
            distributor_id=distributor_id,
            filename=path.name,
            training_config=training_config,
            services=services,
        )
    finally:
        if storage:
            await storage.close()

    return result.model_dump(mode="json")


if __name__ == "__main__":
    main()
