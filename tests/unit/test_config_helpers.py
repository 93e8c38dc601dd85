import pytest

from senpai.utils import feature_flags
from senpai.utils.email_domains import get_email_domain, is_blocked_free_domain
from senpai.utils.runtime import dev_mode_active, env_int


@pytest.mark.parametrize(
    "email",
    ["someone@gmail.com", "Someone@GMAIL.com", "x@mail.yahoo.co.jp", "x@hotmail.com", "x@outlook.com"],
)
def test_free_domains_blocked(email):
    assert is_blocked_free_domain(email)


@pytest.mark.parametrize("email", ["taro@waseda.jp", "hanako@acme.co.jp", "x@notgmail.com", "x@gmail.com.example.org"])
def test_other_domains_allowed(email):
    assert not is_blocked_free_domain(email)


def test_get_email_domain():
    assert get_email_domain("A@U-Tokyo.AC.JP") == "u-tokyo.ac.jp"
    assert get_email_domain("no-at-sign") is None
    assert get_email_domain("") is None
    assert not is_blocked_free_domain("no-at-sign")


def test_flags_default_on():
    flags = feature_flags.get_feature_flags()
    assert flags == {
        "block_free_email_domains": True,
        "email_notifications_enabled": True,
        "auto_no_show_enabled": True,
    }


@pytest.mark.parametrize("raw,expected", [("false", False), ("0", False), ("off", False), ("yes", True), ("weird", True)])
def test_flag_env_parsing(monkeypatch, raw, expected):
    monkeypatch.setenv("AUTO_NO_SHOW_ENABLED", raw)
    feature_flags.refresh_feature_flag_cache()
    assert feature_flags.auto_no_show_enabled() is expected


def test_flag_cache_needs_refresh(monkeypatch):
    assert feature_flags.free_email_blocking_enabled()
    monkeypatch.setenv("BLOCK_FREE_EMAIL_DOMAINS", "false")
    assert feature_flags.free_email_blocking_enabled()
    feature_flags.refresh_feature_flag_cache()
    assert not feature_flags.free_email_blocking_enabled()


def test_env_int(monkeypatch):
    monkeypatch.setenv("SOME_INT", " 42 ")
    assert env_int("SOME_INT", 7) == 42
    monkeypatch.setenv("SOME_INT", "junk")
    assert env_int("SOME_INT", 7) == 7
    monkeypatch.delenv("SOME_INT")
    assert env_int("SOME_INT", 7) == 7


def test_dev_mode_off_by_default():
    assert dev_mode_active() is False


@pytest.mark.parametrize("base_url", ["http://localhost:3000", "127.0.0.1:8000", ""])
def test_dev_mode_allowed_on_local_hosts(monkeypatch, base_url):
    monkeypatch.setenv("DEV_MODE", "true")
    monkeypatch.setenv("APP_BASE_URL", base_url)
    assert dev_mode_active() is True


def test_dev_mode_refused_on_remote_host(monkeypatch):
    monkeypatch.setenv("DEV_MODE", "true")
    monkeypatch.setenv("APP_BASE_URL", "https://senpai-career.jp")
    with pytest.raises(RuntimeError):
        dev_mode_active()
    monkeypatch.setenv("DEV_MODE_ALLOWED_HOSTS", "staging.local, senpai-career.jp")
    assert dev_mode_active() is True
