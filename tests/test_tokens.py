import time

import pytest
from itsdangerous import TimestampSigner, URLSafeTimedSerializer

from shopforge.auth.tokens import TOKEN_SALT, SessionIssuer
from shopforge.utils.exceptions import UnauthorizedError


@pytest.fixture
def member(users, clock):
    user, _ = users.set_otp_for_phone("9876543210", "123456", clock.now())
    return user


def test_issue_and_verify_round_trip(sessions, member):
    token = sessions.issue_token(member.id)
    assert sessions.verify_token(token).id == member.id


def test_expired_token_rejected(sessions, member, monkeypatch):
    issued_at = int(time.time()) - 31 * 24 * 60 * 60
    monkeypatch.setattr(TimestampSigner, "get_timestamp", lambda self: issued_at)
    token = sessions.issue_token(member.id)
    monkeypatch.undo()

    with pytest.raises(UnauthorizedError):
        sessions.verify_token(token)


def test_tampered_token_rejected(sessions, member):
    token = sessions.issue_token(member.id)
    with pytest.raises(UnauthorizedError):
        sessions.verify_token("x" + token)


def test_token_from_other_secret_rejected(users, member):
    other = SessionIssuer(secret="other-secret", load_user=users.find_by_id)
    theirs = other.issue_token(member.id)
    mine = SessionIssuer(secret="test-secret", load_user=users.find_by_id)

    with pytest.raises(UnauthorizedError):
        mine.verify_token(theirs)


def test_missing_subject_rejected(sessions):
    forged = URLSafeTimedSerializer("test-secret", salt=TOKEN_SALT).dumps({"user": "x"})
    with pytest.raises(UnauthorizedError):
        sessions.verify_token(forged)


def test_unknown_user_rejected(sessions):
    with pytest.raises(UnauthorizedError):
        sessions.verify_token(sessions.issue_token("no-such-user"))


def test_inactive_user_rejected(sessions, users, member):
    token = sessions.issue_token(member.id)
    users.update_user(member.id, is_active=False)

    with pytest.raises(UnauthorizedError) as exc_info:
        sessions.verify_token(token)
    assert exc_info.value.status_code == 401


def test_empty_secret_refused():
    with pytest.raises(ValueError):
        SessionIssuer(secret="")
