"""tinyico - Windows icon (.ico) decoder library and CLI tool."""

__version__ = "0.1.0"

from tinyico.icon import Icon, IconSet, IconSort  # noqa: E402
from tinyico.parser import (  # noqa: E402
    IconBoundsError,
    IconError,
    InvalidIconDataError,
    InvalidIconError,
)
from tinyico.source import IconSourceError  # noqa: E402

__all__ = [
    "Icon",
    "IconBoundsError",
    "IconError",
    "IconSet",
    "IconSort",
    "IconSourceError",
    "InvalidIconDataError",
    "InvalidIconError",
]
