import base64
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from tutorly.models.auth import Claims
from tutorly.services.auth import (
    TOKEN_LIFETIME,
    ExpiredTokenError,
    InvalidCredentialsError,
    MalformedTokenError,
    SignatureMismatchError,
    SigningError,
    StaticCredentialVerifier,
    TokenIssuer,
    TokenVerifier,
    VerificationResult,
)
from tutorly.services.config import AppConfig

SECRET = "unit-test-secret-0123456789abcdef"
OTHER_SECRET = "another-secret-fedcba9876543210xx"
T0 = datetime(2026, 1, 5, 12, 0, 0, tzinfo=timezone.utc)


class FrozenClock:
    def __init__(self, at: datetime):
        self.now = at

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


def _flip_signature_bit(token: str, index: int) -> str:
    header, payload, signature = token.split(".")
    raw = bytearray(base64.urlsafe_b64decode(signature + "=" * (-len(signature) % 4)))
    raw[index] ^= 0x01
    flipped = base64.urlsafe_b64encode(bytes(raw)).decode("ascii").rstrip("=")
    return ".".join([header, payload, flipped])


def test_issue_and_verify_round_trip() -> None:
    token = TokenIssuer(SECRET).issue("user-123")
    claims = TokenVerifier(SECRET).decode(token)

    assert claims.sub == "user-123"
    assert claims.exp - claims.iat == int(TOKEN_LIFETIME.total_seconds())


@pytest.mark.parametrize("subject", ["alice", "", "bob-456", "ünïcødé"])
def test_verify_returns_subject_for_any_string(subject: str) -> None:
    token = TokenIssuer(SECRET).issue(subject)
    result = TokenVerifier(SECRET).verify(token)

    assert result.is_valid
    assert result.subject == subject
    assert result.error is None


def test_issued_token_carries_five_minute_expiry() -> None:
    issuer = TokenIssuer(SECRET, clock=FrozenClock(T0))

    token, expires_at = issuer.issue_token_response("alice")
    decoded = jwt.decode(token, SECRET, algorithms=["HS256"], options={"verify_exp": False})

    assert expires_at == T0 + timedelta(minutes=5)
    assert decoded == {
        "sub": "alice",
        "iat": int(T0.timestamp()),
        "exp": int((T0 + timedelta(minutes=5)).timestamp()),
    }


def test_same_subject_at_different_instants_gives_different_tokens() -> None:
    clock = FrozenClock(T0)
    issuer = TokenIssuer(SECRET, clock=clock)

    first = issuer.issue("alice")
    clock.advance(1)
    second = issuer.issue("alice")

    assert first != second


def test_alice_scenario() -> None:
    issuer = TokenIssuer(SECRET, clock=FrozenClock(T0))
    token = issuer.issue("alice")

    check_clock = FrozenClock(T0 + timedelta(seconds=1))
    verifier = TokenVerifier(SECRET, clock=check_clock)
    assert verifier.decode(token).subject == "alice"

    check_clock.now = T0 + timedelta(seconds=301)
    with pytest.raises(ExpiredTokenError) as excinfo:
        verifier.decode(token)
    assert excinfo.value.error == "token_expired"


@pytest.mark.parametrize("offset", [0, 1, 150, 299, 299.999])
def test_token_valid_before_expiry(offset: float) -> None:
    token = TokenIssuer(SECRET, clock=FrozenClock(T0)).issue("alice")
    verifier = TokenVerifier(SECRET, clock=FrozenClock(T0 + timedelta(seconds=offset)))

    assert verifier.verify(token).is_valid


@pytest.mark.parametrize("offset", [300, 300.001, 301, 86400])
def test_token_invalid_at_and_after_expiry(offset: float) -> None:
    token = TokenIssuer(SECRET, clock=FrozenClock(T0)).issue("alice")
    verifier = TokenVerifier(SECRET, clock=FrozenClock(T0 + timedelta(seconds=offset)))

    result = verifier.verify(token)

    assert not result.is_valid
    assert isinstance(result.error, ExpiredTokenError)


def test_clock_skew_extends_acceptance_window() -> None:
    token = TokenIssuer(SECRET, clock=FrozenClock(T0)).issue("alice")
    verifier = TokenVerifier(
        SECRET,
        leeway=timedelta(seconds=30),
        clock=FrozenClock(T0 + timedelta(seconds=310)),
    )

    assert verifier.verify(token).is_valid


@pytest.mark.parametrize("index", [0, 7, 16, 31])
def test_tampered_signature_is_rejected(index: int) -> None:
    token = TokenIssuer(SECRET).issue("alice")
    tampered = _flip_signature_bit(token, index)

    with pytest.raises(SignatureMismatchError):
        TokenVerifier(SECRET).decode(tampered)


def test_tampered_payload_is_rejected() -> None:
    token = TokenIssuer(SECRET).issue("alice")
    header, _, signature = token.split(".")
    forged_payload = jwt.encode(
        {"sub": "mallory", "iat": 0, "exp": 4102444800}, SECRET, algorithm="HS256"
    ).split(".")[1]

    result = TokenVerifier(SECRET).verify(".".join([header, forged_payload, signature]))

    assert isinstance(result.error, SignatureMismatchError)


def test_token_from_other_key_is_rejected() -> None:
    token = TokenIssuer(OTHER_SECRET).issue("alice")

    result = TokenVerifier(SECRET).verify(token)

    assert not result.is_valid
    assert isinstance(result.error, SignatureMismatchError)
    assert result.error.error == "invalid_signature"


@pytest.mark.parametrize("token", ["garbage", "", "a.b", "a.b.c", "..."])
def test_malformed_tokens(token: str) -> None:
    result = TokenVerifier(SECRET).verify(token)

    assert not result.is_valid
    assert isinstance(result.error, MalformedTokenError)
    assert result.error.message


def test_token_without_subject_is_malformed() -> None:
    token = jwt.encode({"iat": 0, "exp": 4102444800}, SECRET, algorithm="HS256")

    with pytest.raises(MalformedTokenError):
        TokenVerifier(SECRET).decode(token)


def test_token_with_unexpected_algorithm_is_rejected() -> None:
    token = jwt.encode(
        {"sub": "alice", "iat": 0, "exp": 4102444800}, SECRET, algorithm="HS512"
    )

    assert not TokenVerifier(SECRET).verify(token).is_valid


@pytest.mark.filterwarnings("ignore")
def test_empty_secret_is_deterministic_but_works() -> None:
    clock = FrozenClock(T0)
    first = TokenIssuer("", clock=clock).issue("alice")
    second = TokenIssuer(b"", clock=clock).issue("alice")

    assert first == second
    result = TokenVerifier("", clock=clock).verify(first)
    assert result.subject == "alice"


def test_signing_error_for_non_string_subject() -> None:
    with pytest.raises(SigningError) as excinfo:
        TokenIssuer(SECRET).issue(12345)  # type: ignore[arg-type]

    assert excinfo.value.status_code == 500


def test_signing_error_for_unknown_algorithm() -> None:
    with pytest.raises(SigningError):
        TokenIssuer(SECRET, algorithm="HS999").issue("alice")


def test_from_config_shares_secret_and_skew() -> None:
    config = AppConfig(jwt_secret_key=SECRET, clock_skew_seconds=5)

    issuer = TokenIssuer.from_config(config)
    verifier = TokenVerifier.from_config(config)

    assert issuer.secret == verifier.secret == SECRET.encode("utf-8")
    assert verifier.leeway == timedelta(seconds=5)
    assert verifier.decode(issuer.issue("alice")).sub == "alice"


def test_verification_result_requires_exactly_one_outcome() -> None:
    with pytest.raises(ValueError):
        VerificationResult()
    with pytest.raises(ValueError):
        VerificationResult(
            claims=Claims(sub="a", iat=0, exp=1), error=MalformedTokenError("bad")
        )


def test_static_credential_verifier() -> None:
    verifier = StaticCredentialVerifier({"alice": "wonderland"})

    assert verifier.verify("alice", "wonderland") == "alice"
    with pytest.raises(InvalidCredentialsError):
        verifier.verify("alice", "wrong")
    with pytest.raises(InvalidCredentialsError):
        verifier.verify("bob", "wonderland")


def test_token_with_only_subject_and_expiry_verifies() -> None:
    token = jwt.encode({"sub": "alice", "exp": 4102444800}, SECRET, algorithm="HS256")

    claims = TokenVerifier(SECRET, clock=FrozenClock(T0)).decode(token)

    assert claims.sub == "alice"
    assert claims.iat is None


@pytest.mark.parametrize(
    "claims",
    [
        {"sub": "alice", "iat": 0, "exp": 10**400},
        {"sub": "alice", "iat": 0, "exp": 10**15},
        {"sub": "alice", "iat": 0, "exp": -(10**20)},
        {"sub": "alice", "iat": -(10**20), "exp": 4102444800},
        {"sub": "alice", "exp": "soon"},
    ],
)
def test_out_of_range_timestamps_are_malformed(claims: dict) -> None:
    token = jwt.encode(claims, SECRET, algorithm="HS256")

    result = TokenVerifier(SECRET, clock=FrozenClock(T0)).verify(token)

    assert not result.is_valid
    assert isinstance(result.error, MalformedTokenError)


def test_non_object_payload_is_malformed() -> None:
    token = jwt.PyJWS().encode(b"[1, 2, 3]", SECRET, algorithm="HS256")

    with pytest.raises(MalformedTokenError):
        TokenVerifier(SECRET).decode(token)


def test_issue_time_is_truncated_to_whole_seconds() -> None:
    issued_at = T0 + timedelta(seconds=0.9)
    token, expires_at = TokenIssuer(SECRET, clock=FrozenClock(issued_at)).issue_token_response("alice")

    assert expires_at == T0 + TOKEN_LIFETIME
    still_valid = TokenVerifier(SECRET, clock=FrozenClock(T0 + timedelta(seconds=299.9)))
    assert still_valid.verify(token).is_valid
    # Expiry counts from the truncated second, not the fractional instant.
    early = TokenVerifier(SECRET, clock=FrozenClock(issued_at + timedelta(seconds=299.2)))
    assert isinstance(early.verify(token).error, ExpiredTokenError)


@pytest.mark.filterwarnings("ignore")
def test_empty_secret_tokens_fail_against_a_real_secret() -> None:
    token = TokenIssuer("", clock=FrozenClock(T0)).issue("alice")

    result = TokenVerifier(SECRET, clock=FrozenClock(T0)).verify(token)

    assert isinstance(result.error, SignatureMismatchError)
