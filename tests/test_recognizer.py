"""Unit tests for interface/recognizer.py"""

import base64
import random

import pytest

from engine.errors import InvalidInputError
from interface.recognizer import (
    CATALOG,
    MAX_IMAGE_BYTES,
    CatalogRecognizer,
    decode_image,
    image_format,
)
from interface.rules import load_board

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16
JPEG = b"\xff\xd8\xff\xe0" + b"\x00" * 16
WEBP = b"RIFF\x00\x00\x00\x00WEBPVP8 " + b"\x00" * 8


# --- DECODING ---
def test_decode_plain_base64() -> None:
    assert decode_image(base64.b64encode(PNG).decode()) == PNG


def test_decode_data_url() -> None:
    assert decode_image("data:image/png;base64," + base64.b64encode(PNG).decode()) == PNG


@pytest.mark.parametrize("data", ["not base64!!", "", "data:image/png;base64,"])
def test_decode_rejects_bad_payload(data: str) -> None:
    with pytest.raises(InvalidInputError):
        decode_image(data)


# --- FORMAT CHECKS ---
@pytest.mark.parametrize(("image", "kind"), [(PNG, "png"), (JPEG, "jpeg"), (WEBP, "webp")])
def test_supported_formats(image: bytes, kind: str) -> None:
    assert image_format(image) == kind


def test_unsupported_format() -> None:
    with pytest.raises(InvalidInputError, match="Unsupported image format"):
        image_format(b"GIF89a" + b"\x00" * 16)


def test_oversized_image() -> None:
    with pytest.raises(InvalidInputError, match="too large"):
        image_format(PNG + b"\x00" * MAX_IMAGE_BYTES)


# --- RECOGNITION ---
def test_catalog_positions_are_legal() -> None:
    for known in CATALOG:
        load_board(known.fen)


def test_recognizer_picks_catalog_position() -> None:
    recognition = CatalogRecognizer(random.Random(1)).recognize(PNG)
    assert recognition.position.fen in {known.fen for known in CATALOG}
    assert recognition.name in {known.name for known in CATALOG}
    assert 70 <= recognition.confidence <= 95


def test_recognizer_is_reproducible_under_fixed_seed() -> None:
    first = CatalogRecognizer(random.Random(6)).recognize(JPEG)
    second = CatalogRecognizer(random.Random(6)).recognize(JPEG)
    assert first == second


def test_recognizer_validates_image() -> None:
    with pytest.raises(InvalidInputError):
        CatalogRecognizer(random.Random(1)).recognize(b"plain text")
