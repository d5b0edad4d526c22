from datetime import date, timedelta

import pytest

from cliqstr.shared.utils.constants import JOIN_CODE_ALPHABET, JOIN_CODE_LENGTH, JOIN_CODE_PREFIX
from cliqstr.shared.utils.security import SecurityUtils, calculate_age, normalize_email


def test_password_hash_roundtrip():
    hashed = SecurityUtils.hash_password("s3cret-pass")

    assert hashed != "s3cret-pass"
    assert SecurityUtils.verify_password("s3cret-pass", hashed)
    assert not SecurityUtils.verify_password("wrong-pass", hashed)


def test_access_token_carries_payload():
    token = SecurityUtils.create_access_token({"user_id": "abc", "email": "a@family.io"}, "k")

    payload = SecurityUtils.decode_access_token(token, "k")

    assert payload["user_id"] == "abc"
    assert payload["email"] == "a@family.io"
    assert payload["exp"] > payload["iat"]


def test_expired_access_token_is_rejected():
    token = SecurityUtils.create_access_token({"user_id": "abc"}, "k", expires_delta=timedelta(seconds=-1))

    with pytest.raises(ValueError, match="expired"):
        SecurityUtils.decode_access_token(token, "k")


def test_token_signed_with_other_key_is_rejected():
    token = SecurityUtils.create_access_token({"user_id": "abc"}, "k")

    with pytest.raises(ValueError, match="Invalid token"):
        SecurityUtils.decode_access_token(token, "other")


def test_join_code_format():
    code = SecurityUtils.generate_join_code()

    assert code.startswith(JOIN_CODE_PREFIX)
    suffix = code[len(JOIN_CODE_PREFIX):]
    assert len(suffix) == JOIN_CODE_LENGTH
    assert set(suffix) <= set(JOIN_CODE_ALPHABET)


def test_link_tokens_are_unique():
    assert len({SecurityUtils.generate_token() for _ in range(50)}) == 50


def test_normalize_email():
    assert normalize_email("  Parent@Family.IO ") == "parent@family.io"


@pytest.mark.parametrize(
    "birthdate, expected",
    [
        (date(2008, 5, 1), 18),
        (date(2008, 5, 2), 17),
        (date(2016, 1, 1), 10),
    ],
)
def test_calculate_age(birthdate, expected):
    assert calculate_age(birthdate, today=date(2026, 5, 1)) == expected
