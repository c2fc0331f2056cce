from datetime import timedelta

import pytest

from models import storage
from user_auth.errors import ExpiredError, MalformedTokenError, UserNotFoundError


@pytest.fixture
def access_tokens(flow):
    return flow.access_tokens


def test_round_trip_resolves_same_user(access_tokens, user, clock):
    issued = access_tokens.issue(user.id)
    parsed = access_tokens.parse(issued.token)

    assert parsed.resolve_user().id == user.id
    assert abs(parsed.expires - (clock() + 30 * 60)) <= 1
    assert parsed.claims == issued.claims


def test_custom_lifetime(access_tokens, user, clock):
    issued = access_tokens.issue(user.id, lifetime=timedelta(seconds=90))
    assert abs(issued.expires - (clock() + 90)) <= 1


def test_subject_is_opaque(access_tokens, user):
    issued = access_tokens.issue(user.id)
    assert issued.subject != user.id
    assert user.id not in issued.token
    assert issued.user_id == user.id


def test_extra_claims_cannot_override_reserved(access_tokens, user):
    issued = access_tokens.issue(user.id, extra_claims={"role": "admin", "sub": "someone-else", "exp": 1})
    parsed = access_tokens.parse(issued.token)
    assert parsed.claims["role"] == "admin"
    assert parsed.user_id == user.id
    assert parsed.expires > 1


def test_expired_access_token(access_tokens, user, clock):
    issued = access_tokens.issue(user.id)
    clock.advance(30 * 60)
    with pytest.raises(ExpiredError):
        access_tokens.parse(issued.token)


def test_refresh_token_is_not_an_access_token(flow, access_tokens, user):
    refresh = flow.refresh_tokens.issue(user.id)
    with pytest.raises(MalformedTokenError):
        access_tokens.parse(refresh.token)


def test_parse_is_stateless_and_lookup_propagates_not_found(access_tokens, user):
    issued = access_tokens.issue(user.id)
    storage.delete(user)
    storage.save()

    parsed = access_tokens.parse(issued.token)
    with pytest.raises(UserNotFoundError):
        parsed.resolve_user()
