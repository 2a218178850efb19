"""Text-safe encoding of counter photos for the local store.

Photos are kept as ``data:<mime>;base64,<payload>`` URLs, the same shape a
browser ``FileReader.readAsDataURL`` produces, so payloads coming from the
mini-app can be stored untouched.
"""
import base64
import binascii
import re

from watercounter.core.exceptions import ValidationError

DEFAULT_CONTENT_TYPE = "image/jpeg"

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(;[\w-]+=[^;,]*)*);base64,(?P<data>.*)$", re.DOTALL)


def encode_photo(data: bytes, content_type: str = DEFAULT_CONTENT_TYPE) -> str:
	"""Encode binary photo content as a base64 data URL"""
	if not isinstance(data, (bytes, bytearray)):
		raise ValidationError("Photo must be binary content")
	payload = base64.b64encode(bytes(data)).decode("ascii")
	return f"data:{content_type or DEFAULT_CONTENT_TYPE};base64,{payload}"


def decode_photo(text: str) -> bytes:
	"""Decode a data URL (or a bare base64 string) back to the original bytes"""
	if not isinstance(text, str) or not text:
		raise ValidationError("Photo is empty")

	match = _DATA_URL_RE.match(text)
	if match:
		payload = match.group("data")
	elif text.startswith("data:"):
		raise ValidationError("Photo data URL is not base64 encoded")
	else:
		payload = text

	try:
		return base64.b64decode("".join(payload.split()), validate=True)
	except (binascii.Error, ValueError) as e:
		raise ValidationError(f"Photo is not valid base64: {e}") from e


def photo_content_type(text: str) -> str:
	"""MIME type declared by a stored photo, defaults to JPEG"""
	match = _DATA_URL_RE.match(text or "")
	if match and match.group("mime"):
		return match.group("mime")
	return DEFAULT_CONTENT_TYPE
