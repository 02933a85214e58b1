# logostamp/cli.py
# Command line entry point: stamp a vector logo onto every image in a folder.

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from logostamp.config import build_run_settings, load_config_file, merge_settings
from logostamp.controllers.batch_controller import BatchController
from logostamp.errors import LogoStampError
from logostamp.imaging.magick import MagickRenderer
from logostamp.models.enums import BaseDimension, Placement
from logostamp.utils.logging_utils import build_logger

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INTERRUPTED = 130


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(
        prog="logostamp",
        description="Composite a vector logo onto a folder of images.",
    )
    ap.add_argument("input_dir", type=Path, help="Folder of background images")
    ap.add_argument("logo", type=Path, help="Logo file (SVG)")
    ap.add_argument("output_dir", type=Path, help="Output folder")

    # Defaults live in logostamp.config so a config file can supply them.
    ap.add_argument("--percent", type=float,
                    help="Logo width as a fraction of the base dimension (default 0.12)")
    ap.add_argument("--base-dimension", choices=[b.value for b in BaseDimension],
                    help="Dimension the percentage applies to (default width)")
    ap.add_argument("--position", choices=[p.value for p in Placement],
                    help="Logo placement (default TopRight)")
    ap.add_argument("--margin-px", type=int,
                    help="Fixed margin in pixels; -1 uses --margin-ratio (default -1)")
    ap.add_argument("--margin-ratio", type=float,
                    help="Margin as a multiple of logo height, 0-2 (default 0.25)")
    ap.add_argument("--fallback-density", type=int,
                    help="Density used when the logo cannot be probed, 72-1200 (default 300)")
    ap.add_argument("--format", choices=["png", "jpg", "jpeg"],
                    help="Output format (default png)")
    ap.add_argument("--recurse", action="store_true", default=None,
                    help="Process subfolders and mirror their structure")
    ap.add_argument("--magick", help="Path to the ImageMagick executable")
    ap.add_argument("--timeout", type=float,
                    help="Seconds allowed per ImageMagick call (default 120)")
    ap.add_argument("--strict", action="store_true", default=None,
                    help="Exit with status 1 if any image was skipped")
    ap.add_argument("--config", type=Path, help="TOML config file (default ~/.logostamp.toml)")
    ap.add_argument("--log-file", type=Path, help="Also write the log to this file")
    vg = ap.add_mutually_exclusive_group()
    vg.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    vg.add_argument("-q", "--quiet", action="store_true", help="Warnings and errors only")
    return ap.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    level = logging.DEBUG if args.verbose else logging.WARNING if args.quiet else logging.INFO
    log = build_logger(level)

    try:
        file_cfg = load_config_file(args.config)
        values = merge_settings(file_cfg, {
            "percent": args.percent,
            "base_dimension": args.base_dimension,
            "position": args.position,
            "margin_px": args.margin_px,
            "margin_ratio": args.margin_ratio,
            "fallback_density": args.fallback_density,
            "format": args.format,
            "recurse": args.recurse,
            "magick": args.magick,
            "timeout": args.timeout,
            "strict": args.strict,
            "log_file": args.log_file,
        })
        if values.get("log_file"):
            log = build_logger(level, log_file=Path(values["log_file"]))

        settings = build_run_settings(args.input_dir, args.logo, args.output_dir, values)
        renderer = MagickRenderer.discover(settings.magick_path, timeout=settings.timeout)
        report = BatchController(settings, renderer).run()
    except LogoStampError as e:
        log.error(str(e))
        return EXIT_FAILED
    except KeyboardInterrupt:
        log.warning("Interrupted")
        return EXIT_INTERRUPTED

    if report.interrupted:
        return EXIT_INTERRUPTED
    if settings.strict and report.skipped:
        return EXIT_FAILED
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
