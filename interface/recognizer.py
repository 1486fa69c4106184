"""
Position recognizer: board image in, position plus confidence out.

No computer vision happens here. CatalogRecognizer checks that the bytes
look like a supported image and then picks one of a small catalog of
well-known opening positions, with a confidence between 70 and 95 percent.
Both choices come from the injected ``random.Random``. Anything satisfying
the PositionRecognizer protocol can replace it.
"""

import base64
import binascii
import random
import re
from dataclasses import dataclass
from typing import Protocol

from engine.errors import InvalidInputError
from engine.models import Position

MAX_IMAGE_BYTES: int = 10 * 1024 * 1024

_DATA_URL_PREFIX = re.compile(r"^data:image/[a-z]+;base64,")


@dataclass(frozen=True)
class KnownPosition:
    name: str
    fen: str


CATALOG: tuple[KnownPosition, ...] = (
    KnownPosition("Starting Position", "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"),
    KnownPosition("Italian Game", "r1bqkbnr/pppp1ppp/2n5/4p3/2B1P3/5N2/PPPP1PPP/RNBQK2R b KQkq - 3 3"),
    KnownPosition("Sicilian Defense", "rnbqkbnr/pp1ppppp/8/2p5/4P3/8/PPPP1PPP/RNBQKBNR w KQkq c6 0 2"),
    KnownPosition("Queen's Gambit", "rnbqkbnr/ppp1pppp/8/3p4/2PP4/8/PP2PPPP/RNBQKBNR b KQkq c3 0 2"),
    KnownPosition("King's Indian Defense", "rnbqkb1r/pppppp1p/5np1/8/2PP4/8/PP2PPPP/RNBQKBNR w KQkq - 0 3"),
)


@dataclass(frozen=True)
class Recognition:
    position: Position
    confidence: int
    name: str


class PositionRecognizer(Protocol):
    def recognize(self, image: bytes) -> Recognition:
        ...


def decode_image(data: str) -> bytes:
    """Decode base64 image data, with or without a ``data:image/...`` prefix."""
    payload = _DATA_URL_PREFIX.sub("", data.strip())
    try:
        image = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidInputError("Image data is not valid base64") from exc
    if not image:
        raise InvalidInputError("No image data provided")
    return image


def image_format(image: bytes) -> str:
    """
    Identify the image format from its magic bytes.

    Raises:
        InvalidInputError: The image is empty, larger than MAX_IMAGE_BYTES,
            or not JPEG, PNG, or WebP.
    """
    if not image:
        raise InvalidInputError("No image data provided")
    if len(image) > MAX_IMAGE_BYTES:
        raise InvalidInputError("Image file is too large. Maximum size is 10MB.")
    if image.startswith(b"\xff\xd8\xff"):
        return "jpeg"
    if image.startswith(b"\x89PNG\r\n\x1a\n"):
        return "png"
    if image[:4] == b"RIFF" and image[8:12] == b"WEBP":
        return "webp"
    raise InvalidInputError("Unsupported image format. Please use JPEG, PNG, or WebP.")


class CatalogRecognizer:
    """Stand-in recognizer returning a random catalog position."""

    def __init__(self, rng: random.Random, catalog: tuple[KnownPosition, ...] = CATALOG) -> None:
        self._rng = rng
        self._catalog = catalog

    def recognize(self, image: bytes) -> Recognition:
        image_format(image)
        known = self._rng.choice(self._catalog)
        confidence = round(70 + self._rng.random() * 25)
        return Recognition(position=Position(known.fen), confidence=confidence, name=known.name)
