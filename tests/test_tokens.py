"""
tests/test_tokens.py -- Unit tests for identity tokens, password hashing and the auth cookie.

Coverage:
  - mint/verify round trip for every role and country, plus seeded random identities
  - any single-character substitution, truncation or extension invalidates a token
  - malformed, empty, expired, foreign-secret and foreign-algorithm tokens verify to None
  - claims outside the closed role/country sets are rejected
  - bcrypt hashing: salted, verifiable, malformed stored hash raises
  - authenticate_user: uniform None, bcrypt always runs, case-insensitive email
  - cookie helpers: attributes on set, empty value and zero max-age on clear
"""

from __future__ import annotations

import itertools
import random
import string
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt
from starlette.responses import Response

import auth.tokens as tokens
from auth.models import Identity, User
from auth.rbac import Country, Role
from auth.store import UserStore
from auth.tokens import (
    clear_auth_cookie,
    create_access_token,
    decode_access_token,
    extract_bearer_token,
    hash_password,
    set_auth_cookie,
    verify_password,
)
from core.config import get_settings

_B64URL = string.ascii_letters + string.digits + "-_"


def _claims(**overrides) -> dict:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": "7",
        "email": "ana@example.com",
        "role": "manager",
        "country": "india",
        "iat": now,
        "exp": now + timedelta(hours=1),
        "jti": "abc123",
    }
    payload.update(overrides)
    return {k: v for k, v in payload.items() if v is not None}


def _sign(payload: dict, key: str | None = None, algorithm: str = "HS256") -> str:
    return jwt.encode(payload, key or get_settings().secret_key, algorithm=algorithm)


class TestTokenRoundTrip:
    """A freshly minted token verifies back to the identity it was minted for."""

    @pytest.mark.parametrize("role,country", list(itertools.product(list(Role), list(Country))))
    def test_every_role_and_country(self, role: Role, country: Country) -> None:
        token = create_access_token(42, "ana@example.com", role.value, country.value)
        assert decode_access_token(token) == Identity(
            id=42, email="ana@example.com", role=role.value, country=country.value
        )

    def test_sampled_identities(self) -> None:
        rng = random.Random(1234)
        minted: dict[str, Identity] = {}
        for _ in range(50):
            identity = Identity(
                id=rng.randint(1, 10**9),
                email=f"{''.join(rng.choices(string.ascii_lowercase, k=8))}@example.com",
                role=rng.choice(list(Role)).value,
                country=rng.choice(list(Country)).value,
            )
            token = create_access_token(identity.id, identity.email, identity.role, identity.country)
            assert decode_access_token(token) == identity
            minted[token] = identity
        assert len(minted) == 50, "two sampled identities produced the same token"

    def test_tokens_for_same_identity_are_distinct(self) -> None:
        minted = {create_access_token(1, "a@example.com", "member", "india") for _ in range(20)}
        assert len(minted) == 20, "jti must make every token unique"

    def test_default_lifetime_is_seven_days(self) -> None:
        token = create_access_token(1, "a@example.com", "member", "india")
        claims = jwt.get_unverified_claims(token)
        assert claims["exp"] - claims["iat"] == 7 * 24 * 3600
        assert claims["sub"] == "1"
        assert len(claims["jti"]) == 32

    def test_expire_seconds_override(self) -> None:
        token = create_access_token(1, "a@example.com", "member", "india", expire_seconds=60)
        claims = jwt.get_unverified_claims(token)
        assert claims["exp"] - claims["iat"] == 60


@pytest.fixture(scope="module")
def token() -> str:
    return create_access_token(9, "thor@slooze.com", "member", "india")


class TestTokenTampering:
    """Any modification of a valid token must make verification fail."""

    def test_every_final_character_substitution(self, token: str) -> None:
        for ch in _B64URL:
            if ch == token[-1]:
                continue
            assert decode_access_token(token[:-1] + ch) is None, f"last char {token[-1]!r} -> {ch!r} accepted"

    def test_random_single_character_substitutions(self, token: str) -> None:
        rng = random.Random(99)
        for position in rng.sample(range(len(token)), k=min(60, len(token))):
            replacement = rng.choice([c for c in _B64URL + "." if c != token[position]])
            tampered = token[:position] + replacement + token[position + 1 :]
            assert decode_access_token(tampered) is None, f"substitution at {position} accepted"

    def test_every_truncation(self, token: str) -> None:
        for cut in range(1, len(token) + 1):
            assert decode_access_token(token[:-cut]) is None, f"token minus {cut} chars accepted"

    @pytest.mark.parametrize("suffix", ["A", "AA", "=", "==", ".", "x.y"])
    def test_extension(self, token: str, suffix: str) -> None:
        assert decode_access_token(token + suffix) is None

    def test_payload_swap_between_tokens(self) -> None:
        """Splicing one token's payload onto another's signature fails."""
        member = create_access_token(5, "thanos@slooze.com", "member", "india").split(".")
        admin = create_access_token(1, "nick@slooze.com", "admin", "america").split(".")
        assert decode_access_token(".".join([member[0], admin[1], member[2]])) is None


class TestTokenRejection:
    """Malformed or foreign tokens verify to None without raising."""

    @pytest.mark.parametrize(
        "value",
        ["", " ", "\t\n", "not-a-token", "a.b", "a.b.c", "...", "Bearer abc", "é.é.é"],
    )
    def test_garbage(self, value: str) -> None:
        assert decode_access_token(value) is None

    def test_expired(self) -> None:
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        token = _sign(_claims(iat=past, exp=past + timedelta(hours=1)))
        assert decode_access_token(token) is None

    def test_wrong_secret(self) -> None:
        assert decode_access_token(_sign(_claims(), key="x" * 64)) is None

    def test_other_hmac_algorithm(self) -> None:
        assert decode_access_token(_sign(_claims(), algorithm="HS512")) is None

    @pytest.mark.parametrize("claim", ["sub", "email", "role", "country"])
    def test_missing_claim(self, claim: str) -> None:
        assert decode_access_token(_sign(_claims(**{claim: None}))) is None

    @pytest.mark.parametrize(
        "overrides",
        [
            {"role": "superadmin"},
            {"role": "Admin"},
            {"country": "france"},
            {"country": ""},
            {"sub": "not-a-number"},
        ],
    )
    def test_invalid_claim_values(self, overrides: dict) -> None:
        assert decode_access_token(_sign(_claims(**overrides))) is None

    def test_hand_signed_valid_claims_accepted(self) -> None:
        """Sanity check for the helpers above: untouched claims do verify."""
        assert decode_access_token(_sign(_claims())) == Identity(
            id=7, email="ana@example.com", role="manager", country="india"
        )


class TestBearerExtraction:
    @pytest.mark.parametrize(
        "header,expected",
        [
            ("Bearer abc.def.ghi", "abc.def.ghi"),
            (None, None),
            ("", None),
            ("Bearer", None),
            ("Bearer ", None),
            ("bearer abc", None),
            ("Basic abc", None),
            ("Bearer a b", None),
        ],
    )
    def test_extract(self, header: str | None, expected: str | None) -> None:
        assert extract_bearer_token(header) == expected


class TestPasswords:
    def test_hash_verifies(self) -> None:
        hashed = hash_password("correct horse")
        assert verify_password("correct horse", hashed) is True
        assert verify_password("wrong horse", hashed) is False

    def test_hash_is_salted(self) -> None:
        assert hash_password("same") != hash_password("same")

    def test_hash_never_contains_plaintext(self) -> None:
        assert "hunter22" not in hash_password("hunter22")

    def test_cost_factor_from_settings(self) -> None:
        rounds = get_settings().bcrypt_rounds
        assert hash_password("x").startswith(f"$2b${rounds:02d}$")

    @pytest.mark.parametrize("bad_hash", ["", "not-a-hash", "$2b$04$short"])
    def test_malformed_stored_hash_raises(self, bad_hash: str) -> None:
        with pytest.raises(ValueError):
            verify_password("anything", bad_hash)


@pytest.fixture(scope="module")
def store():
    store = UserStore(db_url="sqlite:///file:test_tokens_auth?mode=memory&cache=shared&uri=true")
    store.create_user(
        User(
            email="Ana@Example.com",
            name="Ana",
            role="manager",
            country="india",
            hashed_password=hash_password("s3cret"),
        )
    )
    yield store
    store.close()


class TestAuthenticateUser:
    def test_correct_password(self, store: UserStore) -> None:
        user = tokens.authenticate_user(store, "ana@example.com", "s3cret")
        assert user is not None and user.email == "ana@example.com"

    def test_email_is_case_insensitive(self, store: UserStore) -> None:
        assert tokens.authenticate_user(store, "  ANA@EXAMPLE.COM ", "s3cret") is not None

    def test_wrong_password_and_unknown_email_look_the_same(self, store: UserStore) -> None:
        assert tokens.authenticate_user(store, "ana@example.com", "nope") is None
        assert tokens.authenticate_user(store, "ghost@example.com", "s3cret") is None

    def test_bcrypt_runs_for_unknown_email(self, store: UserStore, monkeypatch) -> None:
        calls: list[str] = []
        real = tokens.verify_password

        def counting(plain: str, hashed: str) -> bool:
            calls.append(hashed)
            return real(plain, hashed)

        monkeypatch.setattr(tokens, "verify_password", counting)
        tokens.authenticate_user(store, "ghost@example.com", "whatever")
        assert calls == [tokens._DUMMY_HASH]


class TestCookies:
    def test_set_cookie_attributes(self) -> None:
        resp = Response()
        set_auth_cookie(resp, "tok.en.value")
        cookie = resp.headers["set-cookie"]
        assert cookie.startswith("token=tok.en.value")
        assert "HttpOnly" in cookie
        assert "Max-Age=604800" in cookie
        assert "Path=/" in cookie
        assert "samesite=lax" in cookie.lower()

    def test_clear_cookie(self) -> None:
        resp = Response()
        clear_auth_cookie(resp)
        cookie = resp.headers["set-cookie"]
        assert cookie.startswith('token=""') or cookie.startswith("token=;")
        assert "Max-Age=0" in cookie
