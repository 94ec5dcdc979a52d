"""Decides whether an account is asked to subscribe at all."""

from typing import Iterable


class SubscriptionPolicy:
    """Accounts on the exempt lists never see the subscription prompt."""

    def __init__(self, exempt_emails: Iterable[str] = (), exempt_domains: Iterable[str] = ()) -> None:
        self._exempt_emails = {email.strip().lower() for email in exempt_emails if email.strip()}
        self._exempt_domains = {
            domain.strip().lower().lstrip("@") for domain in exempt_domains if domain.strip()
        }

    def is_required(self, email: str) -> bool:
        email_clean = email.strip().lower()
        if email_clean in self._exempt_emails:
            return False
        _, _, domain = email_clean.rpartition("@")
        return domain not in self._exempt_domains
