"""Free webmail domains that may not be used to sign up."""
from __future__ import annotations

from typing import Optional

BLOCKED_FREE_DOMAINS = (
    # Google
    "gmail.com",
    "googlemail.com",
    "google.com",
    # Microsoft
    "outlook.com",
    "hotmail.com",
    "live.com",
    "msn.com",
    # Yahoo
    "yahoo.com",
    "yahoo.co.jp",
    "ymail.com",
    "rocketmail.com",
    # Apple
    "icloud.com",
    "me.com",
    "mac.com",
    # Other global providers
    "aol.com",
    "protonmail.com",
    "proton.me",
    "mail.com",
    "zoho.com",
    "yandex.com",
    "gmx.com",
    "gmx.net",
    "tutanota.com",
    "fastmail.com",
    "mail.ru",
    # Asia
    "qq.com",
    "163.com",
    "126.com",
    "naver.com",
    "daum.net",
    "hanmail.net",
    # Europe
    "web.de",
    "orange.fr",
    "free.fr",
    "laposte.net",
    "wp.pl",
    "o2.pl",
    "seznam.cz",
    "btinternet.com",
    "virginmedia.com",
    "sky.com",
    "ntlworld.com",
    "blueyonder.co.uk",
    "fsnet.co.uk",
    "talktalk.net",
    # ISP mailboxes
    "rediffmail.com",
    "cox.net",
    "att.net",
    "sbcglobal.net",
    "verizon.net",
    "comcast.net",
    "charter.net",
    "earthlink.net",
    "juno.com",
    "netzero.com",
    # Placeholder and disposable
    "example.com",
    "test.com",
    "mailinator.com",
    "guerrillamail.com",
    "tempmail.com",
    "10minutemail.com",
    "throwaway.email",
)

BLOCKED_DOMAIN_ERROR = (
    "Sign-up with free email providers (e.g. Gmail, Yahoo, Outlook) is not allowed. "
    "Please use your university or work email."
)


def get_email_domain(email: Optional[str]) -> Optional[str]:
    """Return the lower-cased domain part of an address, or None if there is none."""
    if not email or "@" not in email:
        return None
    domain = email.rsplit("@", 1)[1].strip().lower()
    return domain or None


def is_blocked_free_domain(email: Optional[str]) -> bool:
    """True when the domain is a listed provider or a subdomain of one."""
    domain = get_email_domain(email)
    if not domain:
        return False
    return any(domain == d or domain.endswith("." + d) for d in BLOCKED_FREE_DOMAINS)
