from pathlib import Path
import sys

import pytest
from PIL import Image

sys.path.append(str(Path(__file__).resolve().parents[1] / "simple_p6_converter/src"))

from simple_p6_converter.cli import main


def _save_image(path: Path, size, color) -> Path:
    Image.new("RGB", size, color).save(path)
    return path


def test_default_conversion(tmp_path: Path, capsys) -> None:
    src = _save_image(tmp_path / "red.png", (256, 192), (255, 0, 0))
    out = tmp_path / "red.bin"

    assert main([str(src), str(out)]) == 0
    assert out.read_bytes() == bytes([0xFF]) * 6144
    assert f"wrote {out}" in capsys.readouterr().out


def test_monochrome_conversion(tmp_path: Path) -> None:
    src = _save_image(tmp_path / "black.png", (256, 192), (0, 0, 0))
    out = tmp_path / "black.bin"

    assert main([str(src), str(out), "--mode", "mono"]) == 0
    assert out.read_bytes() == bytes(6144)


def test_palette_b_and_custom_size(tmp_path: Path) -> None:
    src = _save_image(tmp_path / "orange.png", (16, 2), (255, 128, 0))
    out = tmp_path / "orange.bin"

    assert main([str(src), str(out), "--palette", "B", "--width", "16", "--height", "2"]) == 0
    assert out.read_bytes() == bytes([0xFF]) * 4


def test_dimension_mismatch_writes_nothing(tmp_path: Path, capsys) -> None:
    src = _save_image(tmp_path / "small.png", (100, 100), (255, 0, 0))
    out = tmp_path / "small.bin"

    assert main([str(src), str(out)]) == 1
    assert not out.exists()
    err = capsys.readouterr().err
    assert "256x192" in err
    assert "100x100" in err


def test_invalid_size_reported_before_decoding(tmp_path: Path, capsys) -> None:
    out = tmp_path / "out.bin"

    assert main([str(tmp_path / "missing.png"), str(out), "--width", "257"]) == 1
    assert "Width" in capsys.readouterr().err
    assert not out.exists()


def test_unknown_mode_is_rejected_by_parser(tmp_path: Path) -> None:
    with pytest.raises(SystemExit):
        main([str(tmp_path / "in.png"), str(tmp_path / "out.bin"), "--mode", "sixteen"])


def test_unreadable_input(tmp_path: Path, capsys) -> None:
    src = tmp_path / "broken.png"
    src.write_bytes(b"garbage")
    out = tmp_path / "broken.bin"

    assert main([str(src), str(out)]) == 1
    assert "broken.png" in capsys.readouterr().err
    assert not out.exists()


def test_existing_output_requires_force(tmp_path: Path) -> None:
    src = _save_image(tmp_path / "red.png", (256, 192), (255, 0, 0))
    out = tmp_path / "red.bin"
    out.write_bytes(b"keep")

    assert main([str(src), str(out)]) == 1
    assert out.read_bytes() == b"keep"

    assert main([str(src), str(out), "--force"]) == 0
    assert len(out.read_bytes()) == 6144


def test_preview_output(tmp_path: Path) -> None:
    src = tmp_path / "split.png"
    image = Image.new("RGB", (256, 192), (255, 0, 0))
    image.paste((0, 255, 0), (0, 0, 128, 192))
    image.save(src)
    out = tmp_path / "split.bin"
    preview_path = tmp_path / "split_preview.png"

    assert main([str(src), str(out), "--preview", str(preview_path)]) == 0
    with Image.open(preview_path) as preview:
        preview = preview.convert("RGB")
        assert preview.size == (256, 192)
        assert preview.getpixel((0, 0)) == (0, 255, 0)
        assert preview.getpixel((255, 191)) == (255, 0, 0)


def test_huge_input_is_reported(tmp_path: Path, capsys, monkeypatch) -> None:
    src = _save_image(tmp_path / "huge.png", (100, 100), (255, 0, 0))
    out = tmp_path / "huge.bin"

    # Pillow refuses images over twice this pixel count when opening them.
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 10)
    assert main([str(src), str(out)]) == 1
    assert "huge.png" in capsys.readouterr().err
    assert not out.exists()
