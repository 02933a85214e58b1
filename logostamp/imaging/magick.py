# logostamp/imaging/magick.py
# Purpose: Render invoker backed by the ImageMagick command line.
# - Background dimensions are read with Pillow (header only)
# - SVG probes and the rasterize + composite + encode step run through
#   `magick` (ImageMagick 7) or `convert` (ImageMagick 6)
# - Every engine call is a single bounded subprocess.run(); no retries
# - Output files are validated with Pillow before a render counts as done

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional, Protocol

from PIL import Image, UnidentifiedImageError

from logostamp.errors import FatalPrecondition, PerFileIOError, RenderFailure
from logostamp.models.enums import OutputFormat
from logostamp.models.requests import BackgroundInfo, LogoProbe, RenderRequest, ResizeFallback
from logostamp.models.settings import DEFAULT_TIMEOUT

log = logging.getLogger("logostamp.magick")

ENGINE_CANDIDATES = ("magick", "convert")

PNG_OPTIONS = [
    "-define", "png:compression-level=9",
    "-define", "png:compression-filter=5",
    "-define", "png:compression-strategy=1",
    # keep the encoder deterministic: no timestamp chunks
    "-define", "png:exclude-chunks=date,time",
]

JPEG_OPTIONS = [
    "-background", "white",
    "-alpha", "remove",
    "-alpha", "off",
    "-quality", "95",
    "-sampling-factor", "4:4:4",
    "-define", "jpeg:optimize-coding=true",
]


class Renderer(Protocol):
    """Operations the batch controller needs from an imaging engine."""

    def get_image_dimensions(self, path: Path) -> BackgroundInfo: ...

    def probe_vector_dimensions(
        self, svg_path: Path, density: int, resize_width: Optional[int] = None
    ) -> Optional[LogoProbe]: ...

    def render_and_composite(self, request: RenderRequest) -> None: ...


# ---------------------------- engine discovery ----------------------------
def find_magick(path: Optional[str] = None) -> str:
    """Locate the ImageMagick executable, preferring an explicit path."""
    if path:
        exe = Path(path)
        if exe.is_file():
            return str(exe)
        found = shutil.which(path)
        if found:
            return found
        raise FatalPrecondition(f"ImageMagick executable not found: {path}")

    for name in ENGINE_CANDIDATES:
        found = shutil.which(name)
        if found:
            log.debug("Using ImageMagick engine: %s", found)
            return found
    raise FatalPrecondition(
        "ImageMagick is required but neither 'magick' nor 'convert' is on PATH.\n"
        "Install it from https://imagemagick.org/ or pass --magick."
    )


def _output_target(fmt: OutputFormat, path: Path) -> str:
    # PNG32 forces an RGBA encode even when the background has no alpha
    prefix = "PNG32" if fmt is OutputFormat.PNG else "JPEG"
    return f"{prefix}:{path}"


def _validate_output(path: Path, expected: BackgroundInfo, fmt: OutputFormat) -> None:
    """Raise RenderFailure unless the encoded file looks right."""
    if not path.exists():
        raise RenderFailure(f"Output does not exist: {path}")
    if path.stat().st_size == 0:
        raise RenderFailure(f"Output is 0 bytes: {path}")
    try:
        with Image.open(path) as im:
            size = im.size
            mode = im.mode
    except (UnidentifiedImageError, OSError) as e:
        raise RenderFailure(f"Output cannot be decoded: {path}: {e}") from e

    if size != (expected.width_px, expected.height_px):
        raise RenderFailure(
            f"Output is {size[0]}x{size[1]}, expected "
            f"{expected.width_px}x{expected.height_px}: {path}"
        )
    if fmt is OutputFormat.PNG and "A" not in mode:
        raise RenderFailure(f"PNG output has no alpha channel (mode {mode}): {path}")
    if fmt is OutputFormat.JPEG and "A" in mode:
        raise RenderFailure(f"JPEG output kept an alpha channel (mode {mode}): {path}")


# ---------------------------- renderer ----------------------------
class MagickRenderer:
    def __init__(self, exe: str, timeout: float = DEFAULT_TIMEOUT):
        self.exe = exe
        self.timeout = timeout

    @classmethod
    def discover(cls, path: Optional[str] = None,
                 timeout: float = DEFAULT_TIMEOUT) -> "MagickRenderer":
        return cls(find_magick(path), timeout=timeout)

    def _run(self, args: List[str]) -> subprocess.CompletedProcess:
        cmd = [self.exe, *args]
        log.debug("ImageMagick command: %s", " ".join(cmd))
        return subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)

    def get_image_dimensions(self, path: Path) -> BackgroundInfo:
        Image.MAX_IMAGE_PIXELS = None  # allow very large backgrounds
        try:
            with Image.open(path) as im:
                w, h = im.size
        except (UnidentifiedImageError, OSError) as e:
            raise PerFileIOError(f"Cannot read image dimensions of {path}: {e}") from e
        return BackgroundInfo(width_px=w, height_px=h)

    def probe_vector_dimensions(
        self, svg_path: Path, density: int, resize_width: Optional[int] = None
    ) -> Optional[LogoProbe]:
        """Rendered size of the logo at `density`, or None if it cannot be measured."""
        args = ["-density", str(density), "-background", "none", str(svg_path)]
        if resize_width is not None:
            args += ["-resize", f"{resize_width}x"]
        args += ["-format", "%w %h\\n", "info:"]
        try:
            proc = self._run(args)
        except (subprocess.TimeoutExpired, OSError) as e:
            log.debug("Probe of %s failed: %s", svg_path, e)
            return None
        if proc.returncode != 0:
            log.debug("Probe of %s exited %d: %s", svg_path, proc.returncode, proc.stderr.strip())
            return None

        lines = proc.stdout.strip().splitlines()
        parts = lines[0].split() if lines else []
        if len(parts) != 2 or not all(p.isdigit() for p in parts):
            log.debug("Unparseable probe output for %s: %r", svg_path, proc.stdout)
            return None
        w, h = int(parts[0]), int(parts[1])
        if w <= 0 or h <= 0:
            return None
        return LogoProbe(reference_width_px=w, reference_height_px=h)

    def build_command(self, request: RenderRequest) -> List[str]:
        logo = ["-density", str(request.density_to_use), "-background", "none",
                str(request.logo_path)]
        if isinstance(request.sizing, ResizeFallback):
            logo += ["-resize", f"{request.sizing.target_width_px}x"]

        args = [f"{request.background_path}[0]", "(", *logo, ")",
                "-gravity", request.anchor,
                "-geometry", f"+{request.margin_px}+{request.margin_px}",
                "-composite",
                "+set", "date:create", "+set", "date:modify"]
        if request.output_format is OutputFormat.PNG:
            args += PNG_OPTIONS
        else:
            args += JPEG_OPTIONS
        args.append(_output_target(request.output_format, request.output_path))
        return args

    def render_and_composite(self, request: RenderRequest) -> None:
        expected = self.get_image_dimensions(request.background_path)
        try:
            proc = self._run(self.build_command(request))
        except subprocess.TimeoutExpired as e:
            raise RenderFailure(f"ImageMagick timed out after {self.timeout:g}s") from e
        except OSError as e:
            raise RenderFailure(f"ImageMagick could not be started: {e}") from e

        if proc.returncode != 0:
            raise RenderFailure(
                f"ImageMagick failed (code {proc.returncode}): {proc.stderr.strip()}"
            )
        _validate_output(request.output_path, expected, request.output_format)
