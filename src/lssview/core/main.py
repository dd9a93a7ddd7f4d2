"""
LSSView - Main Entry Point.

This is the CLI entry point that uses tyro for argument parsing. Subcommands:
- view: serve a snapshot in the browser viewer
- info: print header, counts, bounds and size of a snapshot
- pack: write a snapshot from NumPy arrays
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Annotated, Literal

import numpy as np
import tyro

from src.domain.services import BoundsService
from src.infrastructure.io.fetch import fetch_bytes_sync
from src.infrastructure.processing.lssnap import decode, describe, write_snapshot
from src.lssview.config.io import import_viewer_config
from src.lssview.config.settings import ViewerConfig
from src.lssview.processing.subject_filter import SubjectFilterService
from src.shared.exceptions import LSSViewError
from src.shared.formatting import format_bytes, format_count

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    """
    Setup logging configuration.

    Parameters
    ----------
    level : str
        Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def build_view_config(
    source: str | None = None,
    variant: str | None = None,
    no_filter: bool = False,
    port: int | None = None,
    host: str | None = None,
    config: Path | None = None,
) -> ViewerConfig:
    """
    Resolve the viewer configuration for the view subcommand.

    Without ``config`` the variant preset (default "orbit") is the base. With
    ``config`` the file is the base and an explicit ``variant`` is applied on
    top of it. Remaining command-line values override either.

    Raises
    ------
    LSSViewError
        If the config file cannot be read or the result does not validate
    """
    if config is not None:
        viewer_config = import_viewer_config(config)
        if variant is not None:
            logger.info(f"Applying {variant} preset on top of {config}")
            viewer_config.apply_variant(variant)
        if source:
            viewer_config.source = source
    else:
        viewer_config = ViewerConfig.for_variant(variant or "orbit", source or "")

    if no_filter:
        viewer_config.subject_filter.enabled = False
    if port is not None:
        viewer_config.port = port
    if host is not None:
        viewer_config.host = host
    return viewer_config.validate()


def view(
    source: Annotated[str | None, tyro.conf.Positional] = None,
    variant: Literal["orbit", "trackball"] | None = None,
    no_filter: bool = False,
    port: int | None = None,
    host: str | None = None,
    config: Path | None = None,
    log_level: str = "INFO",
) -> None:
    """
    Serve a .lssnap snapshot in the browser viewer.

    Parameters
    ----------
    source : str | None
        Snapshot path or http(s) URL (optional when --config provides one)
    variant : str | None
        Viewer preset: "orbit" (damped orbit, Y-up) or "trackball" (Z-up);
        default "orbit", or applied on top of the --config file when given
    no_filter : bool
        Show every point instead of isolating the subject
    port : int | None
        Viser server port (default: 8080, or the config file's value)
    host : str | None
        Host to bind to (default: 0.0.0.0)
    config : Path | None
        YAML viewer config; command-line values override it
    log_level : str
        Logging level: DEBUG, INFO, WARNING, ERROR (default: INFO)

    Examples
    --------
    View a local snapshot:
        lssview view ./scan.lssnap

    Trackball variant on another port:
        lssview view https://example.com/scan.lssnap --variant trackball --port 8081
    """
    setup_logging(log_level)

    try:
        viewer_config = build_view_config(source, variant, no_filter, port, host, config)
    except LSSViewError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(2)

    logger.info("=== LSSView ===")
    logger.info(f"Source: {viewer_config.source}")
    logger.info(f"Controller: {viewer_config.camera.controller}")
    logger.info(f"Host: {viewer_config.host}")
    logger.info(f"Port: {viewer_config.port}")

    # Deferred so info/pack do not pay for the viser import
    from src.lssview.core.app import LSSViewApp

    app = LSSViewApp(viewer_config)
    app.run()


def info(
    source: Annotated[str, tyro.conf.Positional],
    variant: Literal["orbit", "trackball"] = "orbit",
    timeout: float = 30.0,
    log_level: str = "WARNING",
) -> None:
    """
    Print header fields, counts, bounds and size of a snapshot.

    Parameters
    ----------
    source : str
        Snapshot path or http(s) URL
    variant : str
        Preset whose subject filter is used for the "shown" count
    timeout : float
        Request timeout in seconds for remote sources
    log_level : str
        Logging level (default: WARNING)
    """
    setup_logging(log_level)

    try:
        fetched = fetch_bytes_sync(source, timeout=timeout)
        header = describe(fetched.data)
        snapshot = decode(fetched.data)
    except LSSViewError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    settings = ViewerConfig.for_variant(variant, source).subject_filter
    subset = SubjectFilterService(settings).filter(snapshot)
    bounds = BoundsService.calculate_bounds(snapshot.positions)

    print(f"Source:       {source}")
    print(f"Size:         {format_bytes(fetched.content_length)}")
    print(f"Version:      {header.version}")
    print(f"Vertices:     {format_count(snapshot.vertex_count)}")
    print(f"Shown:        {format_count(len(subset))} ({variant} filter)")
    print(f"Annotations:  {len(snapshot.annotations)} (block {header.annotation_length} bytes)")
    print(f"Bounds min:   {', '.join(f'{v:.3f}' for v in bounds.min_coords)}")
    print(f"Bounds max:   {', '.join(f'{v:.3f}' for v in bounds.max_coords)}")


def pack(
    arrays: Annotated[Path, tyro.conf.Positional],
    output: Annotated[Path, tyro.conf.Positional],
    annotations: Path | None = None,
    log_level: str = "INFO",
) -> None:
    """
    Write a .lssnap snapshot from a NumPy archive.

    Parameters
    ----------
    arrays : Path
        .npz file with "positions" (N, 3) in metres and "colors" (N, 3),
        either floats in [0, 1] or bytes
    output : Path
        Destination .lssnap file
    annotations : Path | None
        JSON file holding an array of annotation records
    log_level : str
        Logging level (default: INFO)
    """
    setup_logging(log_level)

    with np.load(arrays) as archive:
        missing = [key for key in ("positions", "colors") if key not in archive]
        if missing:
            logger.error(f"{arrays} is missing arrays: {', '.join(missing)}")
            sys.exit(2)
        positions = archive["positions"]
        colors = archive["colors"]

    records = []
    if annotations is not None:
        with open(annotations, "r", encoding="utf-8") as f:
            records = json.load(f)
        if not isinstance(records, list):
            logger.error(f"{annotations} must contain a JSON array")
            sys.exit(2)

    size = write_snapshot(output, positions, colors, records)
    logger.info(f"Packed {len(positions)} points and {len(records)} annotations ({format_bytes(size)})")


def cli() -> None:
    """Entry point for the installed script."""
    tyro.extras.subcommand_cli_from_dict(
        {
            "view": view,
            "info": info,
            "pack": pack,
        }
    )


if __name__ == "__main__":
    cli()
