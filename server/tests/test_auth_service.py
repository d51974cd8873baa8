"""Tests for password hashing and the one-time code store."""

from server.app.services.auth import OtpStore, hash_password, verify_password


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


class TestPasswords:
    def test_roundtrip(self):
        encoded = hash_password("secret123")
        assert encoded.startswith("pbkdf2_sha256$")
        assert verify_password("secret123", encoded)
        assert not verify_password("secret124", encoded)

    def test_salted(self):
        assert hash_password("same") != hash_password("same")

    def test_missing_or_malformed_hash(self):
        assert not verify_password("x", None)
        assert not verify_password("x", "not-a-hash")
        assert not verify_password("x", "md5$1$salt$abc")


class TestOtpStore:
    def test_issue_and_verify(self):
        store = OtpStore(ttl_seconds=600, clock=FakeClock())
        code = store.issue("forgot-password", "a@b.c")
        assert len(code) == 6 and code.isdigit()
        assert store.verify("forgot-password", "a@b.c", code)

    def test_purpose_and_identifier_are_separate(self):
        store = OtpStore(ttl_seconds=600, clock=FakeClock())
        code = store.issue("forgot-password", "a@b.c")
        assert not store.verify("signup", "a@b.c", code)
        assert not store.verify("forgot-password", "x@b.c", code)

    def test_expired_code_rejected(self):
        clock = FakeClock()
        store = OtpStore(ttl_seconds=600, clock=clock)
        code = store.issue("forgot-password", "a@b.c")
        clock.now += 600
        assert not store.verify("forgot-password", "a@b.c", code)

    def test_consume_requires_verification(self):
        store = OtpStore(ttl_seconds=600, clock=FakeClock())
        code = store.issue("forgot-password", "a@b.c")
        assert not store.consume_verified("forgot-password", "a@b.c")
        store.verify("forgot-password", "a@b.c", code)
        assert store.consume_verified("forgot-password", "a@b.c")
        assert not store.consume_verified("forgot-password", "a@b.c")

    def test_consume_after_expiry(self):
        clock = FakeClock()
        store = OtpStore(ttl_seconds=600, clock=clock)
        code = store.issue("forgot-password", "a@b.c")
        store.verify("forgot-password", "a@b.c", code)
        clock.now += 601
        assert not store.consume_verified("forgot-password", "a@b.c")

    def test_reissue_replaces_code(self):
        store = OtpStore(ttl_seconds=600, clock=FakeClock())
        first = store.issue("signup", "a@b.c")
        second = store.issue("signup", "a@b.c")
        if first != second:
            assert not store.verify("signup", "a@b.c", first)
        assert store.verify("signup", "a@b.c", second)
