"""Detección de FRAM cifrada y delegación al descifrador externo."""

from __future__ import annotations

import logging
from collections.abc import Callable

from libre_fram.errors import DecryptionFailed
from libre_fram.fram import FRAM_SIZE, MemoryImage
from libre_fram.identity import SensorType

logger = logging.getLogger(__name__)

# (sensor type, uid, patch info, ciphertext) -> plaintext. Any exception it
# raises is reported as DecryptionFailed.
Decryptor = Callable[[SensorType, bytes, bytes, bytes], bytes]

ENCRYPTED_TYPES = frozenset({SensorType.LIBRE2, SensorType.LIBRE_US_14DAY})


def looks_encrypted(image: MemoryImage, sensor_type: SensorType) -> bool:
    """Whether ``image`` should be treated as ciphertext.

    Only types that ship enciphered images qualify, and only full reads whose
    header checksum does not match the plaintext computation.
    """
    return (
        sensor_type in ENCRYPTED_TYPES
        and len(image) >= FRAM_SIZE
        and not image.header_checksum_matches()
    )


def open_image(
    image: MemoryImage,
    sensor_type: SensorType,
    uid: bytes,
    patch_info: bytes,
    decryptor: Decryptor | None,
) -> tuple[MemoryImage, bytes]:
    """Return a plaintext image and the original ciphertext, if any.

    The decryptor is called at most once; there is no retry.

    Args:
        image: Image as read from the sensor.
        sensor_type: Type derived from patch info.
        uid: Factory identifier, a key input.
        patch_info: Patch info bytes, a key input.
        decryptor: External decryption capability.

    Returns:
        ``(image, b"")`` for plaintext images, ``(plaintext, ciphertext)``
        after a successful decryption.

    Raises:
        DecryptionFailed: If the image is enciphered and cannot be decrypted,
            whatever the decryptor raised.
    """
    if not looks_encrypted(image, sensor_type):
        return image, b""
    encrypted = image.data
    if decryptor is None:
        raise DecryptionFailed(f"{sensor_type} FRAM is encrypted and no decryptor is set")
    try:
        plaintext = decryptor(sensor_type, bytes(uid), bytes(patch_info), encrypted)
    except DecryptionFailed:
        raise
    except Exception as exc:
        logger.warning("%s FRAM decryption failed: %r", sensor_type, exc)
        raise DecryptionFailed(str(exc) or type(exc).__name__) from exc
    logger.info("Decrypted %s FRAM (%d bytes)", sensor_type, len(plaintext))
    return MemoryImage(plaintext), encrypted
