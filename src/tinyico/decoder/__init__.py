"""アイコン画像デコーダーパッケージ

DIB形式のピクセル展開と、埋め込みPNGのデコードを行う。
"""

from tinyico.decoder.pixels import (
    Indexed1,
    Indexed4,
    Indexed8,
    PixelDecoder,
    PixelLayout,
    TrueColor24,
    TrueColorAlpha32,
    layout_for,
)
from tinyico.decoder.png import DecodedPixels, ImageCodecProtocol, PngDecoder

__all__ = [
    "DecodedPixels",
    "ImageCodecProtocol",
    "Indexed1",
    "Indexed4",
    "Indexed8",
    "PixelDecoder",
    "PixelLayout",
    "PngDecoder",
    "TrueColor24",
    "TrueColorAlpha32",
    "layout_for",
]
