"""Command line interface for the simple P6 converter."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .converter import (
    DEFAULT_HEIGHT,
    DEFAULT_WIDTH,
    ENCODE_MODES,
    MAX_HEIGHT,
    MAX_WIDTH,
    MODE_4COLOR,
    PALETTES,
    ConversionError,
    ConvertOptions,
    OutputWriteError,
    convert_file_to_p6,
    decode_to_image,
    format_palette_text,
    save_preview,
    validate_options,
    write_output,
)


def build_parser() -> argparse.ArgumentParser:
    palette_lines = "\n".join(
        f"Palette {name}: {format_palette_text(palette)}" for name, palette in PALETTES.items()
    )

    parser = argparse.ArgumentParser(
        description=(
            "Convert an image into raw PC-6001 SCREEN 3 (4 colors) or SCREEN 4 (monochrome) VRAM data.\n"
            f"4color mode merges each pair of horizontal dots, so a {DEFAULT_WIDTH}x{DEFAULT_HEIGHT} source "
            f"becomes {DEFAULT_WIDTH // 2}x{DEFAULT_HEIGHT} hardware dots (2 bits each).\n"
            "mono mode keeps full resolution and sets a dot when its luminance is above 127.\n"
            "The output has no header and no attribute data.\n"
            f"{palette_lines}"
        ),
        formatter_class=argparse.RawTextHelpFormatter,
    )

    parser.add_argument("input", help="Source image (any format Pillow can read)")
    parser.add_argument("output", help="Destination file for the raw VRAM bytes")
    parser.add_argument(
        "--mode",
        choices=list(ENCODE_MODES),
        default=MODE_4COLOR,
        help="Graphics mode to encode for",
    )
    parser.add_argument(
        "--palette",
        choices=list(PALETTES),
        default="A",
        help="Color set used in 4color mode",
    )
    parser.add_argument(
        "--width",
        type=int,
        default=DEFAULT_WIDTH,
        help=f"Expected source width (max {MAX_WIDTH}; must be even in 4color mode)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=DEFAULT_HEIGHT,
        help=f"Expected source height (max {MAX_HEIGHT})",
    )
    parser.add_argument(
        "--preview",
        help="Also write a PNG rendering of the encoded data to this path",
    )
    parser.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Overwrite existing files without prompting",
    )

    return parser


def check_conflicts(targets: list[Path], force: bool) -> None:
    if force:
        return
    conflicts = [str(target) for target in targets if target.exists()]
    if conflicts:
        raise OutputWriteError(
            "Output files already exist (use --force to overwrite):\n" + "\n".join(conflicts)
        )


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        options = ConvertOptions()
        options.mode = args.mode
        options.palette = args.palette
        options.width = args.width
        options.height = args.height
        validate_options(options)

        output = Path(args.output)
        preview = Path(args.preview) if args.preview else None
        check_conflicts([output] + ([preview] if preview else []), args.force)

        data = convert_file_to_p6(args.input, options)

        write_output(output, data, force=args.force)
        print(f"wrote {output}")

        if preview is not None:
            save_preview(preview, decode_to_image(data, options), force=args.force)
            print(f"wrote {preview}")
        return 0
    except ConversionError as exc:
        print(exc, file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
