from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Set

from logostamp.errors import FatalPrecondition, LogoStampError, PerFileIOError
from logostamp.imaging.density import REFERENCE_DENSITY, expected_logo_height, resolve_sizing
from logostamp.imaging.magick import Renderer
from logostamp.imaging.placement import is_centered, resolve_anchor
from logostamp.imaging.sizes import compute_margin, compute_target_width
from logostamp.models.enums import OutputFormat
from logostamp.models.requests import (
    ExactDensity,
    FileResult,
    FileSkipped,
    FileSucceeded,
    RenderRequest,
)
from logostamp.models.settings import RunSettings
from logostamp.utils.logging_utils import log_section

log = logging.getLogger("logostamp.batch")

SUPPORTED_EXTS = {".png", ".jpg", ".jpeg", ".bmp", ".gif", ".tif", ".tiff", ".webp"}
VECTOR_EXTS = {".svg", ".svgz"}


def is_vector_logo(path: Path) -> bool:
    return path.suffix.lower() in VECTOR_EXTS


def find_backgrounds(input_dir: Path, recurse: bool,
                     exclude: Optional[Path] = None) -> List[Path]:
    """Background images under input_dir, sorted. Files under `exclude` are skipped."""
    pattern = "**/*" if recurse else "*"
    excluded = exclude.resolve() if exclude is not None else None
    files = []
    for p in input_dir.glob(pattern):
        if not p.is_file() or p.suffix.lower() not in SUPPORTED_EXTS:
            continue
        if excluded is not None and excluded in p.resolve().parents:
            continue
        files.append(p)
    return sorted(files)


def resolve_output_path(source: Path, input_root: Path, output_root: Path,
                        fmt: OutputFormat, recurse: bool) -> Path:
    if recurse:
        rel = source.relative_to(input_root)
        return (output_root / rel).with_suffix(fmt.extension)
    return output_root / (source.stem + fmt.extension)


@dataclass
class BatchReport:
    succeeded: List[FileSucceeded] = field(default_factory=list)
    skipped: List[FileSkipped] = field(default_factory=list)
    interrupted: bool = False

    def add(self, result: FileResult) -> None:
        if isinstance(result, FileSucceeded):
            self.succeeded.append(result)
        else:
            self.skipped.append(result)

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.skipped)

    @property
    def ok(self) -> bool:
        return not self.skipped and not self.interrupted


class BatchController:
    """Drives the per-file pipeline over every background in the input folder."""

    def __init__(self, settings: RunSettings, renderer: Renderer):
        self.settings = settings
        self.renderer = renderer
        self._cancel = False
        self._claimed: Set[Path] = set()

    def cancel(self):
        self._cancel = True

    # ---------------------------- preconditions ----------------------------
    def check_preconditions(self) -> None:
        s = self.settings
        if not s.input_dir.is_dir():
            raise FatalPrecondition(f"Input folder not found: {s.input_dir}")
        if not s.logo_path.is_file():
            raise FatalPrecondition(f"Logo file not found: {s.logo_path}")
        try:
            s.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FatalPrecondition(f"Cannot create output folder {s.output_dir}: {e}") from e

    def discover(self) -> List[Path]:
        s = self.settings
        # Only an output root strictly inside the input root can hold earlier outputs.
        nested = s.input_dir.resolve() in s.output_dir.resolve().parents
        return find_backgrounds(s.input_dir, s.recurse,
                                exclude=s.output_dir if nested else None)

    # ---------------------------- per file ----------------------------
    def _claim_output(self, out: Path) -> Path:
        # Two sources with the same stem would otherwise write the same file.
        candidate, i = out, 1
        while candidate in self._claimed:
            candidate = out.with_name(f"{out.stem}_{i}{out.suffix}")
            i += 1
        self._claimed.add(candidate)
        return candidate

    def process_file(self, source: Path) -> FileResult:
        s = self.settings
        logo = s.logo_path
        stage = "dimensions"
        try:
            bg = self.renderer.get_image_dimensions(source)

            stage = "sizing"
            target_w = compute_target_width(bg.width_px, bg.height_px, s.sizing)

            stage = "density"
            probe = None
            if is_vector_logo(logo):
                probe = self.renderer.probe_vector_dimensions(logo, REFERENCE_DENSITY)
                if probe is None:
                    log.warning(
                        "%s: logo probe failed, using fallback density %d + resize to %dpx",
                        source.name, s.fallback_density, target_w,
                    )
            sizing = resolve_sizing(probe, target_w, fallback_density=s.fallback_density)

            stage = "margin"
            centered = is_centered(s.placement)
            logo_h: Optional[int] = None
            if isinstance(sizing, ExactDensity) and probe is not None:
                logo_h = expected_logo_height(probe, sizing.density)
            elif s.margin.uses_ratio and not centered:
                measured = self.renderer.probe_vector_dimensions(
                    logo, sizing.density, resize_width=target_w
                )
                if measured is None:
                    raise LogoStampError("cannot measure logo height for the margin ratio")
                logo_h = measured.reference_height_px
            margin = compute_margin(logo_h or 0, s.margin, centered)
            anchor = resolve_anchor(s.placement)

            stage = "output"
            out = resolve_output_path(source, s.input_dir, s.output_dir,
                                      s.output_format, s.recurse)
            out = self._claim_output(out)
            try:
                out.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise PerFileIOError(f"Cannot create {out.parent}: {e}") from e

            request = RenderRequest(
                background_path=source,
                logo_path=logo,
                target_width_px=target_w,
                sizing=sizing,
                anchor=anchor,
                margin_px=margin,
                output_path=out,
                output_format=s.output_format,
            )

            stage = "render"
            self.renderer.render_and_composite(request)
        except (LogoStampError, OSError) as e:
            return FileSkipped(source=source, stage=stage, reason=str(e))

        return FileSucceeded(
            source=source,
            output_path=out,
            logo_width_px=target_w,
            logo_height_px=logo_h,
            margin_px=margin,
            anchor=anchor,
            output_format=s.output_format,
            used_fallback=request.use_resize_fallback,
        )

    # ---------------------------- batch ----------------------------
    def run(self, files: Optional[Iterable[Path]] = None) -> BatchReport:
        """Process every file; failures are reported and skipped, never raised."""
        self.check_preconditions()
        files = list(files) if files is not None else self.discover()
        s = self.settings
        report = BatchReport()

        with log_section(f"STAMPING {len(files)} IMAGE(S) WITH {s.logo_path.name}", log):
            log.info("Input: %s | Output: %s | recurse=%s", s.input_dir, s.output_dir, s.recurse)

        try:
            for idx, f in enumerate(files, 1):
                if self._cancel:
                    report.interrupted = True
                    break
                try:
                    result = self.process_file(f)
                except Exception as e:
                    log.exception("%s: unexpected error", f)
                    result = FileSkipped(source=f, stage="unexpected", reason=str(e))
                report.add(result)
                _log_result(result, idx, len(files))
        except KeyboardInterrupt:
            log.warning("Interrupted; stopping before the next file")
            report.interrupted = True

        with log_section("SUMMARY", log):
            log.info("%d succeeded, %d skipped, %d total",
                     len(report.succeeded), len(report.skipped), len(files))
            for sk in report.skipped:
                log.warning("Skipped %s at %s: %s", sk.source, sk.stage, sk.reason)
        return report


def _log_result(result: FileResult, idx: int, total: int) -> None:
    if isinstance(result, FileSkipped):
        log.warning("[%d/%d] SKIP %s (%s): %s", idx, total, result.source, result.stage, result.reason)
        return
    height = f"{result.logo_height_px}" if result.logo_height_px is not None else "?"
    log.info(
        "[%d/%d] OK %s -> %s | logo %sx%s px | margin %d px | %s | %s | %s density",
        idx, total, result.source.name, result.output_path,
        result.logo_width_px, height, result.margin_px, result.anchor,
        result.output_format.value, "fallback" if result.used_fallback else "exact",
    )
