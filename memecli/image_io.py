from __future__ import annotations

import io
import logging
import platform
import subprocess
import tempfile
from pathlib import Path

from PIL import Image, ImageGrab

from memecli.decoders.image_decoder import decode_image
from memecli.errors import UnsupportedOperation

_log = logging.getLogger(__name__)


def image_in() -> Image.Image:
    """Read an image from the system clipboard as RGBA."""
    try:
        grabbed = ImageGrab.grabclipboard()
    except (NotImplementedError, OSError) as exc:
        raise UnsupportedOperation(f"clipboard is not available: {exc}") from exc
    if isinstance(grabbed, list):
        # copied files arrive as a list of paths
        paths = [Path(item) for item in grabbed if Path(item).is_file()]
        if not paths:
            raise UnsupportedOperation("clipboard holds no image")
        try:
            return decode_image(paths[0])
        except (OSError, RuntimeError) as exc:
            raise UnsupportedOperation(f"image from clipboard not compatible: {exc}") from exc
    if grabbed is None:
        raise UnsupportedOperation("clipboard holds no image")
    return grabbed.convert("RGBA")


def _writer_commands(system_name: str, png_path: Path) -> list[tuple[list[str], bool]]:
    """Commands that put a PNG on the clipboard, paired with whether they read it from stdin."""
    if system_name == "darwin":
        script = f'set the clipboard to (read (POSIX file "{png_path}") as «class PNGf»)'
        return [(["osascript", "-e", script], False)]
    if system_name == "windows":
        script = (
            "Add-Type -AssemblyName System.Windows.Forms, System.Drawing; "
            f"[System.Windows.Forms.Clipboard]::SetImage([System.Drawing.Image]::FromFile('{png_path}'))"
        )
        return [(["powershell", "-NoProfile", "-STA", "-Command", script], False)]
    return [
        (["wl-copy", "--type", "image/png"], True),
        (["xclip", "-selection", "clipboard", "-t", "image/png", "-i"], True),
    ]


def image_out(image: Image.Image) -> None:
    """Put ``image`` on the system clipboard as PNG."""
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    data = buffer.getvalue()

    failures: list[str] = []
    with tempfile.TemporaryDirectory(prefix="memecli-") as tmp:
        png_path = Path(tmp) / "meme.png"
        png_path.write_bytes(data)
        for command, uses_stdin in _writer_commands(platform.system().lower(), png_path):
            _log.debug("running %s", command[0])
            try:
                # clipboard owners such as xclip keep running in the background, so output is not captured
                result = subprocess.run(
                    command,
                    input=data if uses_stdin else None,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                    check=False,
                )
            except FileNotFoundError:
                failures.append(f"{command[0]} not found")
                continue
            if result.returncode == 0:
                return
            failures.append(f"{command[0]} exited with {result.returncode}")
    raise UnsupportedOperation(f"cannot write to the clipboard ({'; '.join(failures)})")
