import base64

import pytest

from watercounter.core.exceptions import ValidationError
from watercounter.services.photo_codec import encode_photo, decode_photo, photo_content_type

from conftest import PHOTO_BYTES


def test_round_trip_is_byte_identical():
	"""Encoding then decoding yields the original content"""
	payload = bytes(range(256)) * 3 + b"\r\n--boundary\r\n"
	assert decode_photo(encode_photo(payload)) == payload
	assert decode_photo(encode_photo(PHOTO_BYTES, "image/png")) == PHOTO_BYTES


def test_encoded_photo_is_a_data_url():
	text = encode_photo(b"abc", "image/png")
	assert text == "data:image/png;base64,YWJj"
	assert text.isascii()


def test_decode_accepts_bare_base64():
	assert decode_photo(base64.b64encode(PHOTO_BYTES).decode()) == PHOTO_BYTES


def test_decode_ignores_line_breaks_in_payload():
	encoded = base64.encodebytes(PHOTO_BYTES).decode()
	assert "\n" in encoded
	assert decode_photo(f"data:image/jpeg;base64,{encoded}") == PHOTO_BYTES


def test_content_type_from_data_url():
	assert photo_content_type(encode_photo(b"x", "image/webp")) == "image/webp"
	assert photo_content_type(base64.b64encode(b"x").decode()) == "image/jpeg"


@pytest.mark.parametrize("text", ["", "not base64 at all!", "data:image/jpeg,plain-text"])
def test_decode_rejects_malformed_input(text):
	with pytest.raises(ValidationError):
		decode_photo(text)


def test_encode_rejects_text():
	with pytest.raises(ValidationError):
		encode_photo("already text")
