from senpai.utils import token_crypto


def test_generate_and_parse_session_token():
    tid, secret, full = token_crypto.generate_token()
    assert full.startswith("sc_sess_")
    parsed = token_crypto.parse_token(full)
    assert parsed is not None
    assert parsed.prefix == token_crypto.SESSION_PREFIX
    assert parsed.token_id == tid
    assert parsed.secret == secret


def test_reset_prefix():
    _tid, _secret, full = token_crypto.generate_token(token_crypto.RESET_PREFIX)
    parsed = token_crypto.parse_token(full)
    assert parsed.prefix == token_crypto.RESET_PREFIX


def test_parse_rejects_bad_formats():
    assert token_crypto.parse_token("") is None
    assert token_crypto.parse_token("hs_pat_abc_def") is None
    assert token_crypto.parse_token("sc_sess_") is None
    assert token_crypto.parse_token("sc_sess_abc") is None
    assert token_crypto.parse_token("sc_sess__secret") is None


def test_secret_may_contain_underscores():
    parsed = token_crypto.parse_token("sc_sess_abc123_sec_ret")
    assert parsed.token_id == "abc123"
    assert parsed.secret == "sec_ret"


def test_hash_and_verify_pbkdf2_fallback():
    # Force PBKDF2 fallback regardless of argon2 availability to exercise that code path
    old_argon = getattr(token_crypto, "ARGON2_AVAILABLE", False)
    try:
        token_crypto.ARGON2_AVAILABLE = False
        enc = token_crypto.hash_secret("s3cr3t-test-value")
        assert enc.startswith("pbkdf2$")
        assert token_crypto.verify_secret("s3cr3t-test-value", enc)
        assert not token_crypto.verify_secret("wrong-secret", enc)
    finally:
        token_crypto.ARGON2_AVAILABLE = old_argon


def test_password_hash_roundtrip():
    enc = token_crypto.hash_password("correct-horse-42")
    assert enc != "correct-horse-42"
    assert token_crypto.verify_password("correct-horse-42", enc)
    assert not token_crypto.verify_password("correct-horse-43", enc)


def test_verify_unknown_scheme_and_empty():
    assert not token_crypto.verify_secret("x", "md5$abc")
    assert not token_crypto.verify_secret("", "pbkdf2$sha256$1$a$b")
    assert not token_crypto.verify_secret("x", "")
