import io

import pytest
from PIL import Image

from memecli import image_io
from memecli.errors import UnsupportedOperation


class _Completed:
    def __init__(self, returncode: int) -> None:
        self.returncode = returncode


def test_image_in_converts_clipboard_image(monkeypatch) -> None:
    monkeypatch.setattr(image_io.ImageGrab, "grabclipboard", lambda: Image.new("RGB", (6, 4), (9, 8, 7)))

    image = image_io.image_in()

    assert image.mode == "RGBA"
    assert image.size == (6, 4)


def test_image_in_decodes_copied_files(monkeypatch, tmp_path) -> None:
    path = tmp_path / "copied.png"
    Image.new("RGB", (3, 5)).save(path)
    monkeypatch.setattr(image_io.ImageGrab, "grabclipboard", lambda: [str(tmp_path / "gone.png"), str(path)])

    assert image_io.image_in().size == (3, 5)


@pytest.mark.parametrize("grabbed", [None, []])
def test_image_in_without_image_is_unsupported(monkeypatch, grabbed) -> None:
    monkeypatch.setattr(image_io.ImageGrab, "grabclipboard", lambda: grabbed)

    with pytest.raises(UnsupportedOperation, match="no image"):
        image_io.image_in()


def test_image_in_without_clipboard_tool_is_unsupported(monkeypatch) -> None:
    def _missing():
        raise NotImplementedError("wl-paste or xclip is required for ImageGrab.grabclipboard() on Linux")

    monkeypatch.setattr(image_io.ImageGrab, "grabclipboard", _missing)

    with pytest.raises(UnsupportedOperation, match="not available"):
        image_io.image_in()


def test_image_out_pipes_png_to_first_working_tool(monkeypatch) -> None:
    calls: list[tuple[str, bytes | None]] = []

    def _run(command, input=None, **kwargs):
        calls.append((command[0], input))
        if command[0] == "wl-copy":
            return _Completed(1)
        return _Completed(0)

    monkeypatch.setattr(image_io.platform, "system", lambda: "Linux")
    monkeypatch.setattr(image_io.subprocess, "run", _run)

    image_io.image_out(Image.new("RGBA", (4, 2), (1, 2, 3, 255)))

    assert [name for name, _ in calls] == ["wl-copy", "xclip"]
    with Image.open(io.BytesIO(calls[-1][1])) as image:
        assert image.format == "PNG"
        assert image.size == (4, 2)


def test_image_out_without_tools_is_unsupported(monkeypatch) -> None:
    def _missing(command, **kwargs):
        raise FileNotFoundError(command[0])

    monkeypatch.setattr(image_io.platform, "system", lambda: "Linux")
    monkeypatch.setattr(image_io.subprocess, "run", _missing)

    with pytest.raises(UnsupportedOperation, match="xclip not found"):
        image_io.image_out(Image.new("RGBA", (2, 2)))


def test_image_out_on_macos_reads_from_temporary_png(monkeypatch) -> None:
    seen: list[list[str]] = []

    def _run(command, input=None, **kwargs):
        seen.append(command)
        assert input is None
        return _Completed(0)

    monkeypatch.setattr(image_io.platform, "system", lambda: "Darwin")
    monkeypatch.setattr(image_io.subprocess, "run", _run)

    image_io.image_out(Image.new("RGBA", (2, 2)))

    assert seen[0][0] == "osascript"
    assert "meme.png" in seen[0][2]
