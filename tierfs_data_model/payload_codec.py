from enum import Enum
from typing import List

import numpy as np

from tierfs_exception_model.exception import InvalidPayloadError

INT_SIZE = 4


class ByteOrder(Enum):
    """Byte order tag shared by the payload writer and reader."""
    LITTLE = "<"
    BIG = ">"
    NATIVE = "="

    @classmethod
    def from_name(cls, name: str) -> 'ByteOrder':
        return cls[name.strip().upper()]

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(f"{self.value}i4")


def encode_sequential(n: int, byte_order: ByteOrder = ByteOrder.LITTLE) -> bytes:
    """
    Encode the integers ``0 .. n-1`` as 32-bit signed values in ``byte_order``.

    Args:
        n: Number of integers, must be >= 0.
        byte_order: Byte order of every encoded integer.

    Returns:
        ``n * 4`` bytes.
    """
    if n < 0:
        raise ValueError(f"n must be non-negative, got {n}")
    return np.arange(n, dtype=byte_order.dtype).tobytes()


def decode_sequential(data, byte_order: ByteOrder = ByteOrder.LITTLE) -> List[int]:
    """
    Decode a buffer of 32-bit signed integers written in ``byte_order``.

    Raises:
        InvalidPayloadError: if the buffer length is not a multiple of 4.
    """
    if len(data) % INT_SIZE != 0:
        raise InvalidPayloadError(f"Payload length {len(data)} is not a multiple of {INT_SIZE}")
    return np.frombuffer(bytes(data), dtype=byte_order.dtype).tolist()
