"""Simple image to PC-6001 SCREEN 3/4 converter.

This module provides a minimal converter that maps images to raw PC-6001
bitmap VRAM data, either 4-color (two source dots merged per hardware dot) or
monochrome. It can be invoked through the ``simple-p6-converter`` command or
imported to convert a single image into bytes.
"""

from .converter import (
    ENCODE_MODES,
    MODE_4COLOR,
    MODE_MONO,
    PALETTE_A,
    PALETTE_B,
    PALETTES,
    ConversionError,
    ConvertOptions,
    DimensionMismatchError,
    InputDecodeError,
    InvalidConfigurationError,
    OutputWriteError,
    convert_file_to_p6,
    decode_to_image,
    encode_image,
    encode_pixels,
    encoded_size,
    format_palette_text,
    nearest_color,
    row_stride,
    write_output,
)

__all__ = [
    "ENCODE_MODES",
    "MODE_4COLOR",
    "MODE_MONO",
    "PALETTE_A",
    "PALETTE_B",
    "PALETTES",
    "ConversionError",
    "ConvertOptions",
    "DimensionMismatchError",
    "InputDecodeError",
    "InvalidConfigurationError",
    "OutputWriteError",
    "convert_file_to_p6",
    "decode_to_image",
    "encode_image",
    "encode_pixels",
    "encoded_size",
    "format_palette_text",
    "nearest_color",
    "row_stride",
    "write_output",
]
