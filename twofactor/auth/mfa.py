"""
TOTP secret provisioning and verification.

Implements TOTP (Time-based One-Time Password) using RFC 6238.
Compatible with Google Authenticator, Authy, and other TOTP apps.

Secrets are 32 random bytes, shared with the authenticator app as base32
text with the '=' padding removed (authenticator apps ignore it). The
padding is restored locally when decoding.
"""
import base64
import binascii
import io
import logging
import re
import secrets
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Union

import pyotp
import qrcode
import qrcode.image.svg

from .errors import ConfigurationError, SecretDecodeError
from ..utils.secrets import mask_secret

logger = logging.getLogger(__name__)

SECRET_BYTES = 32
DEFAULT_WINDOW = 6  # time-steps accepted before/after the reference time
TOTP_DIGITS = 6

_CODE_SEPARATORS = re.compile(r"[\s-]")
_CODE_PATTERN = re.compile(rf"[0-9]{{{TOTP_DIGITS}}}")


@dataclass(frozen=True)
class ProvisioningPayload:
    """Everything an authenticator app needs to enroll a user."""
    secret: str
    uri: str
    qr: bytes

    @property
    def qr_base64(self) -> str:
        """QR image as a data URI, ready for an <img> tag."""
        return _svg_data_uri(self.qr)


def generate_secret_bytes() -> bytes:
    """
    Generate raw key material for a new TOTP secret.

    Returns:
        32 bytes from the OS cryptographic random source.
    """
    return secrets.token_bytes(SECRET_BYTES)


def encode_secret(raw: bytes) -> str:
    """Encode raw key bytes as base32 text without padding."""
    return base64.b32encode(raw).decode("ascii").replace("=", "")


def decode_secret(secret: str) -> bytes:
    """
    Decode base32 secret text back into raw key bytes.

    Padding may be present or absent; lowercase text is accepted.

    Args:
        secret: Base32 secret text, as produced by register().

    Returns:
        Raw key bytes.

    Raises:
        SecretDecodeError: If the text is not valid base32.
    """
    normalized = secret.strip().rstrip("=").upper()
    padding = "=" * (-len(normalized) % 8)
    try:
        return base64.b32decode(normalized + padding, casefold=True)
    except (binascii.Error, ValueError) as e:
        raise SecretDecodeError("Secret is not valid base32") from e


def get_totp_provisioning_uri(
    secret: str,
    username: str,
    issuer: Optional[str] = None,
) -> str:
    """
    Generate a provisioning URI for TOTP apps.

    This URI can be encoded as a QR code for easy scanning.

    Args:
        secret: Base32-encoded TOTP secret (no padding).
        username: Account label displayed in the authenticator app.
        issuer: Application name; omitted from the URI when empty.

    Returns:
        otpauth:// URI string.
    """
    uri = f"otpauth://totp/{username}?secret={secret}"
    if issuer:
        uri += f"&issuer={issuer}"
    return uri


def generate_qr_code(uri: str) -> bytes:
    """
    Generate a QR code image for the provisioning URI.

    Args:
        uri: otpauth:// provisioning URI.

    Returns:
        SVG image bytes.
    """
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=4,
        image_factory=qrcode.image.svg.SvgPathImage,
    )
    qr.add_data(uri)
    qr.make(fit=True)

    img = qr.make_image()

    buffer = io.BytesIO()
    img.save(buffer)
    return buffer.getvalue()


def _svg_data_uri(svg_bytes: bytes) -> str:
    b64 = base64.b64encode(svg_bytes).decode("utf-8")
    return f"data:image/svg+xml;base64,{b64}"


def generate_qr_code_base64(uri: str) -> str:
    """
    Generate a base64-encoded QR code for embedding in HTML.

    Args:
        uri: otpauth:// provisioning URI.

    Returns:
        Base64-encoded SVG image string (data URI ready).
    """
    return _svg_data_uri(generate_qr_code(uri))


def register(
    username: str,
    issuer: Optional[str] = None,
    *,
    renderer: Callable[[str], bytes] = generate_qr_code,
) -> ProvisioningPayload:
    """
    Complete TOTP enrollment: generate secret, URI, and QR code.

    The secret is not stored anywhere; the caller must persist it for
    later code verification.

    Args:
        username: Account label for the authenticator app.
        issuer: Optional application name.
        renderer: Turns the provisioning URI into image bytes.

    Returns:
        ProvisioningPayload with secret text, URI and QR image.

    Raises:
        ConfigurationError: If username is empty.
    """
    if not username:
        raise ConfigurationError("Username is required")

    secret = encode_secret(generate_secret_bytes())
    uri = get_totp_provisioning_uri(secret, username, issuer)
    qr = renderer(uri)

    logger.info(f"TOTP secret provisioned for {username}")
    logger.debug(f"Provisioned secret {mask_secret(secret)} for {username}")

    return ProvisioningPayload(secret=secret, uri=uri, qr=qr)


def _secret_text(secret: Union[str, bytes]) -> str:
    if isinstance(secret, (bytes, bytearray)):
        return encode_secret(bytes(secret))
    return secret


def verify_totp(
    code: Optional[str],
    secret: Union[str, bytes, None],
    window: int = DEFAULT_WINDOW,
    reference_time: Union[int, float, datetime, None] = None,
) -> bool:
    """
    Verify a TOTP code against the secret.

    Args:
        code: 6-digit code entered by user; spaces and dashes are ignored.
        secret: Base32 secret text, or the raw key bytes.
        window: Number of 30-second steps accepted on either side.
        reference_time: UNIX timestamp or datetime to verify at
            (default: now).

    Returns:
        True if code is valid, False otherwise.

    Raises:
        binascii.Error: If a text secret is not valid base32.
    """
    if not secret or not code:
        return False

    # Clean the code (spaces and dashes only); anything else is a wrong code
    code = _CODE_SEPARATORS.sub("", str(code))

    if not _CODE_PATTERN.fullmatch(code):
        return False

    totp = pyotp.TOTP(_secret_text(secret), digits=TOTP_DIGITS)
    return totp.verify(code, for_time=reference_time, valid_window=window)


def get_current_totp(
    secret: Union[str, bytes],
    for_time: Union[int, float, datetime, None] = None,
) -> str:
    """
    Get the TOTP code for a moment in time (for testing/debugging).

    Args:
        secret: Base32 secret text, or the raw key bytes.
        for_time: UNIX timestamp or datetime (default: now).

    Returns:
        6-digit TOTP code.
    """
    totp = pyotp.TOTP(_secret_text(secret), digits=TOTP_DIGITS)
    if for_time is None:
        return totp.now()
    return totp.at(for_time)
