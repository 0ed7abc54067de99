from __future__ import annotations

import base64
import hashlib
import hmac

import pytest

from clinicbot_core.errors import AuthenticationError
from clinicbot_core.signature import compute_signature, ensure_valid_signature, verify_signature

SECRET = "channel-secret"
BODY = b'{"destination":"Uabc","events":[{"type":"message","message":{"id":"1","type":"text","text":"hi"}}]}'


def test_signature_matches_base64_hmac_sha256():
    expected = base64.b64encode(hmac.new(SECRET.encode(), BODY, hashlib.sha256).digest()).decode()
    assert compute_signature(BODY, SECRET) == expected
    assert verify_signature(BODY, expected, SECRET)


@pytest.mark.parametrize(
    "body",
    [b"", b"{}", "体重 65kg".encode("utf-8"), bytes(range(256))],
)
def test_verify_accepts_own_signature_for_any_body(body):
    assert verify_signature(body, compute_signature(body, SECRET), SECRET)


def test_any_single_byte_change_in_body_is_rejected():
    signature = compute_signature(BODY, SECRET)
    for index in range(len(BODY)):
        mutated = bytearray(BODY)
        mutated[index] ^= 0x01
        assert not verify_signature(bytes(mutated), signature, SECRET)


def test_any_single_character_change_in_signature_is_rejected():
    signature = compute_signature(BODY, SECRET)
    for index in range(len(signature)):
        replacement = "A" if signature[index] != "A" else "B"
        mutated = signature[:index] + replacement + signature[index + 1 :]
        assert not verify_signature(BODY, mutated, SECRET)
    assert not verify_signature(BODY, signature + " ", SECRET)


def test_reserialized_body_does_not_verify():
    signature = compute_signature(BODY, SECRET)
    reserialized = BODY.replace(b'":"', b'": "')
    assert not verify_signature(reserialized, signature, SECRET)


def test_missing_signature_or_secret_is_rejected():
    signature = compute_signature(BODY, SECRET)
    assert not verify_signature(BODY, None, SECRET)
    assert not verify_signature(BODY, "", SECRET)
    assert not verify_signature(BODY, compute_signature(BODY, ""), "")
    assert not verify_signature(BODY, signature, "other-secret")


def test_ensure_valid_signature_raises_authentication_error():
    ensure_valid_signature(BODY, compute_signature(BODY, SECRET), SECRET)
    with pytest.raises(AuthenticationError):
        ensure_valid_signature(BODY, "bogus", SECRET)
