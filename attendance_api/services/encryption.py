from __future__ import annotations

import base64
import hashlib

import numpy as np
from cryptography.fernet import Fernet

from attendance_api.core.config import get_settings


class DescriptorCrypto:
    """Fernet envelope for descriptor vectors stored at rest."""

    def __init__(self, key_material: str):
        key = base64.urlsafe_b64encode(hashlib.sha256(key_material.encode("utf-8")).digest())
        self._fernet = Fernet(key)

    def encrypt(self, vector: np.ndarray) -> str:
        payload = np.asarray(vector, dtype=np.float64).tobytes()
        return self._fernet.encrypt(payload).decode("utf-8")

    def decrypt(self, ciphertext: str) -> np.ndarray:
        payload = self._fernet.decrypt(ciphertext.encode("utf-8"))
        return np.frombuffer(payload, dtype=np.float64).copy()


descriptor_crypto = DescriptorCrypto(get_settings().descriptor_cipher_key)
