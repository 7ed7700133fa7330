"""Unit tests for the approval payload cipher"""

import base64
import re
import pytest
from pg_gateway.infrastructure.crypto.cipher import (
    SIMULATION_IV,
    PayloadCipher,
    PayloadCipherError,
    b64url_encode,
)

API_KEY = "11111111-1111-4111-8111-111111111111"
IV = b64url_encode(b"test-pg-iv-1")


@pytest.fixture
def cipher() -> PayloadCipher:
    return PayloadCipher()


def test_encrypt_decrypt_round_trip(cipher: PayloadCipher):
    """Test decrypt restores plaintext with the same key and IV"""
    plaintext = '{"cardNumber":"1111-1111-1111-1111","amount":10000}'

    ciphertext = cipher.encrypt(plaintext, API_KEY, IV)

    assert ciphertext != plaintext
    assert cipher.decrypt(ciphertext, API_KEY, IV) == plaintext


def test_ciphertext_is_unpadded_base64url(cipher: PayloadCipher):
    """Test output alphabet and absence of padding"""
    ciphertext = cipher.encrypt("x" * 37, API_KEY, IV)

    assert re.fullmatch(r"[A-Za-z0-9_-]+", ciphertext)


def test_ciphertext_carries_gcm_tag(cipher: PayloadCipher):
    """Test ciphertext length is plaintext plus the 16-byte tag"""
    ciphertext = cipher.encrypt("hello", API_KEY, IV)
    raw = base64.urlsafe_b64decode(ciphertext + "=" * (-len(ciphertext) % 4))

    assert len(raw) == len("hello") + 16


def test_missing_key_and_iv_use_simulation_values(cipher: PayloadCipher):
    """Test None key and IV still encrypt deterministically"""
    first = cipher.encrypt("payload", None, None)
    second = cipher.encrypt("payload", "", "")

    assert first == second
    assert cipher.decrypt(first, None, None) == "payload"


def test_invalid_iv_falls_back_to_simulation_iv(cipher: PayloadCipher):
    """Test malformed and wrong-length IVs behave like the simulation IV"""
    expected = cipher.encrypt("payload", API_KEY, b64url_encode(SIMULATION_IV))

    assert cipher.encrypt("payload", API_KEY, "***not base64***") == expected
    assert cipher.encrypt("payload", API_KEY, b64url_encode(b"short")) == expected


def test_wrong_key_fails_authentication(cipher: PayloadCipher):
    """Test tampering or a different key is detected"""
    ciphertext = cipher.encrypt("payload", API_KEY, IV)

    with pytest.raises(PayloadCipherError):
        cipher.decrypt(ciphertext, "another-key", IV)


def test_malformed_ciphertext_raises(cipher: PayloadCipher):
    """Test non-base64 ciphertext is reported, not crashed on"""
    with pytest.raises(PayloadCipherError):
        cipher.decrypt("@@@", API_KEY, IV)


def test_unencodable_plaintext_raises(cipher: PayloadCipher):
    """Test lone surrogates are reported as a cipher error"""
    with pytest.raises(PayloadCipherError):
        cipher.encrypt("amount \ud800", API_KEY, IV)
