"""Core conversion logic for the simple P6 converter."""

# Reference: PC-6001 graphics modes (bitmap area only, attribute area not emitted)
# Mode                  | Hardware dots | Bits/dot | Bytes/row | Notes
# ----------------------|---------------|----------|-----------|-------------------------------------
# SCREEN 3 (4 colors)   | 128×192       | 2        | 32        | 2 source dots merged into 1 hardware dot
# SCREEN 4 (monochrome) | 256×192       | 1        | 32        | luminance threshold at 127
#
# Bytes are laid out row by row, left to right, top to bottom, with the
# leftmost dot in the most significant bits of each byte.

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

from PIL import Image

Color = Tuple[int, int, int]
Palette = Tuple[Color, Color, Color, Color]

MODE_4COLOR = "4color"
MODE_MONO = "mono"
ENCODE_MODES = (MODE_4COLOR, MODE_MONO)

DEFAULT_WIDTH = 256
DEFAULT_HEIGHT = 192
MAX_WIDTH = 256
MAX_HEIGHT = 192

LUMA_THRESHOLD = 127

# Color set 1: 0 green, 1 yellow, 2 blue, 3 red
PALETTE_A: Palette = (
    (0, 255, 0),
    (255, 255, 0),
    (0, 0, 255),
    (255, 0, 0),
)

# Color set 2: 0 white, 1 cyan, 2 magenta, 3 orange
PALETTE_B: Palette = (
    (255, 255, 255),
    (0, 255, 255),
    (255, 0, 255),
    (255, 128, 0),
)

PALETTES: Dict[str, Palette] = {
    "A": PALETTE_A,
    "B": PALETTE_B,
}

MONO_OFF: Color = (0, 0, 0)
MONO_ON: Color = (255, 255, 255)


@dataclass
class ConvertOptions:
    """Options for mode, palette selection and working size."""

    mode: str = MODE_4COLOR  # 4color, mono
    palette: str = "A"  # A, B (4color only)
    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT


class ConversionError(Exception):
    """Base exception for conversion errors."""


class InputDecodeError(ConversionError):
    """Raised when the source image cannot be read or decoded."""


class InvalidConfigurationError(ConversionError):
    """Raised when the mode, palette or working size is not supported."""


class OutputWriteError(ConversionError):
    """Raised when the encoded data cannot be written."""


class DimensionMismatchError(ConversionError):
    """Raised when the decoded image differs from the working size."""

    def __init__(self, expected: Tuple[int, int], actual: Tuple[int, int]):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Input image must be {expected[0]}x{expected[1]} "
            f"(got {actual[0]}x{actual[1]})"
        )


def format_palette_text(palette: Sequence[Color]) -> str:
    entries = [f"{idx}: ({r},{g},{b})" for idx, (r, g, b) in enumerate(palette)]
    return ", ".join(entries)


def validate_options(options: ConvertOptions) -> None:
    """Check mode, palette and working size before any image work starts."""

    if options.mode not in ENCODE_MODES:
        raise InvalidConfigurationError(
            f"Unknown mode: {options.mode} (expected one of {', '.join(ENCODE_MODES)})"
        )
    if options.mode == MODE_4COLOR and options.palette not in PALETTES:
        raise InvalidConfigurationError(
            f"Unknown palette: {options.palette} (expected one of {', '.join(PALETTES)})"
        )
    if not (0 < options.width <= MAX_WIDTH):
        raise InvalidConfigurationError(
            f"Width must be between 1 and {MAX_WIDTH} (got {options.width})"
        )
    if not (0 < options.height <= MAX_HEIGHT):
        raise InvalidConfigurationError(
            f"Height must be between 1 and {MAX_HEIGHT} (got {options.height})"
        )
    if options.mode == MODE_4COLOR and options.width % 2 != 0:
        raise InvalidConfigurationError(
            f"Width must be even in {MODE_4COLOR} mode (got {options.width})"
        )


def build_palette(options: ConvertOptions) -> Palette:
    try:
        return PALETTES[options.palette]
    except KeyError as exc:
        raise InvalidConfigurationError(f"Unknown palette: {options.palette}") from exc


def nearest_color(rgb: Color, palette: Sequence[Color]) -> int:
    """
    Return the index of the palette entry closest to ``rgb``.
    Squared RGB distance is compared with a strict less-than while scanning
    from index 0, so the lowest index wins on ties.
    """
    r, g, b = rgb
    best_idx = 0
    best_dist = float("inf")
    for i, (pr, pg, pb) in enumerate(palette):
        dist = (r - pr) ** 2 + (g - pg) ** 2 + (b - pb) ** 2
        if dist < best_dist:
            best_idx = i
            best_dist = dist
    return best_idx


def merge_pixels(left: Color, right: Color) -> Color:
    return (
        (left[0] + right[0]) // 2,
        (left[1] + right[1]) // 2,
        (left[2] + right[2]) // 2,
    )


def merge_row(row: Sequence[Color]) -> List[Color]:
    """Halve a source row by averaging each horizontal pair of pixels."""

    if len(row) % 2 != 0:
        raise InvalidConfigurationError(
            f"Row width must be even to merge pixel pairs (got {len(row)})"
        )
    return [merge_pixels(row[x], row[x + 1]) for x in range(0, len(row), 2)]


def luma(rgb: Color) -> int:
    r, g, b = rgb
    return (299 * r + 587 * g + 114 * b) // 1000


def row_stride(width: int, mode: str) -> int:
    """Bytes per output row for a source row ``width`` pixels wide."""

    if mode == MODE_4COLOR:
        merged_width = width // 2
        return (merged_width + 3) // 4
    if mode == MODE_MONO:
        return (width + 7) // 8
    raise InvalidConfigurationError(f"Unknown mode: {mode}")


def encoded_size(width: int, height: int, mode: str) -> int:
    return row_stride(width, mode) * height


def pack_four_color_row(merged_row: Sequence[Color], palette: Sequence[Color]) -> bytes:
    out = bytearray()
    for group_start in range(0, len(merged_row), 4):
        out_byte = 0
        for i, rgb in enumerate(merged_row[group_start : group_start + 4]):
            code = nearest_color(rgb, palette)
            out_byte |= (code & 0x03) << ((3 - i) * 2)
        out.append(out_byte)
    return bytes(out)


def pack_monochrome_row(row: Sequence[Color], threshold: int = LUMA_THRESHOLD) -> bytes:
    out = bytearray()
    for group_start in range(0, len(row), 8):
        out_byte = 0
        for k, rgb in enumerate(row[group_start : group_start + 8]):
            if luma(rgb) > threshold:
                out_byte |= 0x01 << (7 - k)
        out.append(out_byte)
    return bytes(out)


def _row_pixels(pixels: bytes, width: int, y: int) -> List[Color]:
    offset = y * width * 3
    return [
        (pixels[i], pixels[i + 1], pixels[i + 2])
        for i in range(offset, offset + width * 3, 3)
    ]


def encode_pixels(
    pixels: bytes,
    width: int,
    height: int,
    mode: str,
    palette: Sequence[Color] | None = None,
) -> bytes:
    """Encode a flat row-major RGB buffer into VRAM bitmap bytes.

    ``palette`` is required in ``4color`` mode and ignored in ``mono`` mode.
    A buffer whose length is not ``width * height * 3`` breaks the calling
    contract and raises the base :class:`ConversionError`; size checks against
    the working size happen earlier, in :func:`encode_image`.
    """

    if mode not in ENCODE_MODES:
        raise InvalidConfigurationError(f"Unknown mode: {mode}")
    if mode == MODE_4COLOR:
        if palette is None or len(palette) != 4:
            raise InvalidConfigurationError("4color mode requires a 4-entry palette")
        if width % 2 != 0:
            raise InvalidConfigurationError(
                f"Width must be even in {MODE_4COLOR} mode (got {width})"
            )
    expected_len = width * height * 3
    if len(pixels) != expected_len:
        raise ConversionError(
            f"Pixel buffer must hold {expected_len} bytes for {width}x{height} RGB "
            f"(got {len(pixels)})"
        )

    out = bytearray()
    for y in range(height):
        row = _row_pixels(pixels, width, y)
        if mode == MODE_4COLOR:
            out += pack_four_color_row(merge_row(row), palette)
        else:
            out += pack_monochrome_row(row)
    return bytes(out)


def encode_image(image: Image.Image, options: ConvertOptions | None = None) -> bytes:
    """Encode an in-memory image that already matches the working size."""

    options = options or ConvertOptions()
    validate_options(options)

    expected = (options.width, options.height)
    if image.size != expected:
        raise DimensionMismatchError(expected, image.size)

    image = image.convert("RGB")
    palette = build_palette(options) if options.mode == MODE_4COLOR else None
    return encode_pixels(image.tobytes(), options.width, options.height, options.mode, palette)


def decode_to_image(data: bytes, options: ConvertOptions | None = None) -> Image.Image:
    """Render encoded VRAM bytes back into an RGB preview image.

    In ``4color`` mode every hardware dot is drawn two pixels wide, so the
    preview has the same geometry as the source image.
    """

    options = options or ConvertOptions()
    validate_options(options)

    width, height = options.width, options.height
    stride = row_stride(width, options.mode)
    if len(data) != stride * height:
        raise ConversionError(
            f"Encoded data must be {stride * height} bytes for {width}x{height} "
            f"{options.mode} (got {len(data)})"
        )

    rgb_values: List[Color] = []
    if options.mode == MODE_4COLOR:
        palette = build_palette(options)
        for y in range(height):
            row = data[y * stride : (y + 1) * stride]
            for x in range(width // 2):
                code = (row[x // 4] >> ((3 - x % 4) * 2)) & 0x03
                color = palette[code]
                rgb_values.extend((color, color))
    else:
        for y in range(height):
            row = data[y * stride : (y + 1) * stride]
            for x in range(width):
                bit = (row[x // 8] >> (7 - x % 8)) & 0x01
                rgb_values.append(MONO_ON if bit else MONO_OFF)

    preview = Image.new("RGB", (width, height))
    preview.putdata(rgb_values)
    return preview


def convert_file_to_p6(path: str | Path, options: ConvertOptions | None = None) -> bytes:
    options = options or ConvertOptions()
    validate_options(options)

    path = Path(path)
    try:
        with Image.open(path) as img:
            # Header is enough to reject a wrong size without decoding pixels.
            expected = (options.width, options.height)
            if img.size != expected:
                raise DimensionMismatchError(expected, img.size)
            img.load()
            return encode_image(img, options)
    except FileNotFoundError as exc:
        raise InputDecodeError(f"Input file not found: {path}") from exc
    except Image.DecompressionBombError as exc:
        raise InputDecodeError(f"Image is too large to decode safely: {path}") from exc
    except OSError as exc:
        raise InputDecodeError(f"Failed to read image: {path}") from exc


def write_output(path: str | Path, data: bytes, force: bool = False) -> Path:
    """Write encoded bytes verbatim; a failed write leaves no file behind."""

    path = Path(path)
    if path.exists() and not force:
        raise OutputWriteError(
            f"Output file already exists (use --force to overwrite): {path}"
        )
    opened = False
    try:
        with path.open("wb") as fp:
            opened = True
            fp.write(data)
    except OSError as exc:
        if opened:
            path.unlink(missing_ok=True)
        raise OutputWriteError(f"Failed to write output: {path}") from exc
    return path


def save_preview(path: str | Path, image: Image.Image, force: bool = False) -> Path:
    path = Path(path)
    if path.exists() and not force:
        raise OutputWriteError(
            f"Preview file already exists (use --force to overwrite): {path}"
        )
    try:
        image.save(path, format="PNG")
    except OSError as exc:
        raise OutputWriteError(f"Failed to write preview: {path}") from exc
    return path
