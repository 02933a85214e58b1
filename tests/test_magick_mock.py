from pathlib import Path
import shutil
import subprocess

import pytest
from PIL import Image

from logostamp.errors import FatalPrecondition, PerFileIOError, RenderFailure
from logostamp.imaging import magick
from logostamp.imaging.magick import MagickRenderer, find_magick
from logostamp.models.enums import OutputFormat
from logostamp.models.requests import ExactDensity, RenderRequest, ResizeFallback


class MockRun:
    """Stands in for subprocess.run with ImageMagick behaviour.

    `info:` probes print the configured size; composite commands write an
    image the size of the background in the mode the output prefix asks for.
    """

    def __init__(self, probe_stdout="360 180\n", returncode=0, out_mode=None, out_size=None):
        self.probe_stdout = probe_stdout
        self.returncode = returncode
        self.out_mode = out_mode
        self.out_size = out_size
        self.calls = []

    def __call__(self, cmd, capture_output=None, text=None, timeout=None):
        cmd = list(cmd)
        self.calls.append(cmd)
        if self.returncode != 0:
            return subprocess.CompletedProcess(cmd, self.returncode, "", "no decode delegate")
        if cmd[-1] == "info:":
            return subprocess.CompletedProcess(cmd, 0, self.probe_stdout, "")

        prefix, _, out = cmd[-1].partition(":")
        bg = Path(cmd[1][: -len("[0]")])
        with Image.open(bg) as im:
            size = self.out_size or im.size
        if prefix == "PNG32":
            Image.new(self.out_mode or "RGBA", size, (10, 20, 30, 255)).save(out, format="PNG")
        else:
            Image.new(self.out_mode or "RGB", size, (10, 20, 30)).save(out, format="JPEG")
        return subprocess.CompletedProcess(cmd, 0, "", "")


def _request(tmp_path: Path, fmt=OutputFormat.PNG, sizing=ExactDensity(24), margin=15):
    bg = tmp_path / "bg.png"
    Image.new("RGB", (320, 200), (200, 200, 200)).save(bg)
    return RenderRequest(
        background_path=bg,
        logo_path=tmp_path / "logo.svg",
        target_width_px=120,
        sizing=sizing,
        anchor="northeast",
        margin_px=margin,
        output_path=tmp_path / f"out{fmt.extension}",
        output_format=fmt,
    )


def test_probe_parses_dimensions(tmp_path: Path, monkeypatch):
    run = MockRun(probe_stdout="360 180\n")
    monkeypatch.setattr(subprocess, "run", run)

    probe = MagickRenderer("magick").probe_vector_dimensions(tmp_path / "logo.svg", 72)

    assert (probe.reference_width_px, probe.reference_height_px) == (360, 180)
    assert run.calls[0][:3] == ["magick", "-density", "72"]
    assert "-resize" not in run.calls[0]


def test_probe_with_resize(tmp_path: Path, monkeypatch):
    run = MockRun(probe_stdout="120 60\n")
    monkeypatch.setattr(subprocess, "run", run)

    probe = MagickRenderer("magick").probe_vector_dimensions(
        tmp_path / "logo.svg", 300, resize_width=120
    )

    assert probe.reference_height_px == 60
    i = run.calls[0].index("-resize")
    assert run.calls[0][i + 1] == "120x"


@pytest.mark.parametrize("stdout,code", [("", 0), ("garbage", 0), ("0 0\n", 0), ("360 180", 1)])
def test_probe_returns_none_when_unusable(tmp_path: Path, monkeypatch, stdout, code):
    monkeypatch.setattr(subprocess, "run", MockRun(probe_stdout=stdout, returncode=code))
    assert MagickRenderer("magick").probe_vector_dimensions(tmp_path / "logo.svg", 72) is None


def test_probe_timeout_is_absence(tmp_path: Path, monkeypatch):
    def timeout_run(cmd, **kwargs):
        raise subprocess.TimeoutExpired(cmd, 1)

    monkeypatch.setattr(subprocess, "run", timeout_run)
    assert MagickRenderer("magick", timeout=1).probe_vector_dimensions(tmp_path / "l.svg", 72) is None


def test_png_render_command_and_output(tmp_path: Path, monkeypatch):
    run = MockRun()
    monkeypatch.setattr(subprocess, "run", run)
    req = _request(tmp_path)

    MagickRenderer("magick").render_and_composite(req)

    cmd = run.calls[0]
    assert cmd[1] == f"{req.background_path}[0]"
    assert cmd[cmd.index("-density") + 1] == "24"
    assert "-resize" not in cmd
    assert cmd[cmd.index("-gravity") + 1] == "northeast"
    assert cmd[cmd.index("-geometry") + 1] == "+15+15"
    assert "png:compression-level=9" in cmd
    assert cmd[-1] == f"PNG32:{req.output_path}"
    with Image.open(req.output_path) as im:
        assert im.mode == "RGBA"


def test_jpeg_render_drops_alpha(tmp_path: Path, monkeypatch):
    run = MockRun()
    monkeypatch.setattr(subprocess, "run", run)
    req = _request(tmp_path, fmt=OutputFormat.JPEG, sizing=ResizeFallback(300, 120))

    MagickRenderer("magick").render_and_composite(req)

    cmd = run.calls[0]
    assert cmd[cmd.index("-density") + 1] == "300"
    assert cmd[cmd.index("-resize") + 1] == "120x"
    assert cmd[cmd.index("-quality") + 1] == "95"
    assert cmd[cmd.index("-sampling-factor") + 1] == "4:4:4"
    assert "remove" in cmd and "off" in cmd
    assert "jpeg:optimize-coding=true" in cmd
    assert cmd[-1] == f"JPEG:{req.output_path}"


def test_render_failure_on_nonzero_exit(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(subprocess, "run", MockRun(returncode=1))
    with pytest.raises(RenderFailure, match="code 1"):
        MagickRenderer("magick").render_and_composite(_request(tmp_path))


def test_render_failure_on_wrong_output_size(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(subprocess, "run", MockRun(out_size=(10, 10)))
    with pytest.raises(RenderFailure, match="expected 320x200"):
        MagickRenderer("magick").render_and_composite(_request(tmp_path))


def test_render_failure_when_png_lost_alpha(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(subprocess, "run", MockRun(out_mode="RGB"))
    with pytest.raises(RenderFailure, match="alpha"):
        MagickRenderer("magick").render_and_composite(_request(tmp_path))


def test_unreadable_background(tmp_path: Path):
    bad = tmp_path / "broken.png"
    bad.write_bytes(b"not an image")
    with pytest.raises(PerFileIOError):
        MagickRenderer("magick").get_image_dimensions(bad)


def test_find_magick_prefers_magick(monkeypatch):
    monkeypatch.setattr(shutil, "which", lambda name: f"/usr/bin/{name}")
    assert find_magick() == "/usr/bin/magick"


def test_find_magick_accepts_im6(monkeypatch):
    monkeypatch.setattr(shutil, "which", lambda name: "/usr/bin/convert" if name == "convert" else None)
    assert find_magick() == "/usr/bin/convert"


def test_find_magick_missing_is_fatal(monkeypatch):
    monkeypatch.setattr(shutil, "which", lambda name: None)
    with pytest.raises(FatalPrecondition):
        find_magick()
    with pytest.raises(FatalPrecondition):
        find_magick("/nope/magick")


def test_find_magick_explicit_file(tmp_path: Path):
    exe = tmp_path / "magick"
    exe.write_text("")
    assert find_magick(str(exe)) == str(exe)
    assert magick.MagickRenderer.discover(str(exe)).exe == str(exe)
