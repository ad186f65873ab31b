from datetime import datetime, timedelta, timezone

from bson import ObjectId

from snapgram.auth.auth import create_access_token
from snapgram.client.session import SessionContext, SessionStore, token_expiry
from snapgram.users.schemas import UserSummary


def _user() -> UserSummary:
    return UserSummary(
        id=str(ObjectId()),
        username="alice",
        email="alice@example.com",
        profile_picture="https://img.test/default.png",
    )


def test_token_expiry_reads_exp_claim():
    user = _user()
    before = datetime.now(timezone.utc)

    expires = token_expiry(create_access_token(user.id, lifetime_seconds=600))

    assert before + timedelta(seconds=590) <= expires <= before + timedelta(seconds=610)


def test_unreadable_token_counts_as_expired():
    session = SessionContext(token="garbage", user=_user())

    assert session.expires_at is None
    assert session.is_expired()


def test_is_expired_compares_against_now():
    session = SessionContext(token=create_access_token(_user().id, lifetime_seconds=600), user=_user())

    assert not session.is_expired()
    assert session.is_expired(session.expires_at)
    assert session.is_expired(datetime.now(timezone.utc) + timedelta(hours=1))


def test_store_round_trip(tmp_path):
    store = SessionStore(tmp_path / "session.json")
    user = _user()
    session = SessionContext(token=create_access_token(user.id), user=user)

    store.save(session)
    loaded = store.load()

    assert loaded.token == session.token
    assert loaded.user == user
    assert loaded.expires_at == session.expires_at


def test_store_drops_expired_session(tmp_path):
    path = tmp_path / "session.json"
    store = SessionStore(path)
    user = _user()
    store.save(SessionContext(token=create_access_token(user.id, lifetime_seconds=60), user=user))

    assert store.load(now=datetime.now(timezone.utc) + timedelta(minutes=5)) is None
    assert not path.exists()


def test_store_drops_unreadable_file(tmp_path):
    path = tmp_path / "session.json"
    path.write_text("{not json", encoding="utf-8")

    assert SessionStore(path).load() is None
    assert not path.exists()


def test_store_without_file(tmp_path):
    assert SessionStore(tmp_path / "missing.json").load() is None
