"""Error taxonomy shared by the reconciliation core and the HTTP layer."""

from typing import Optional


class SubsyncError(Exception):
    """Base class for every error raised by the service."""


class MalformedRequestError(SubsyncError):
    """The caller asked for something that cannot be done (missing token, nothing to cancel)."""


class AccountNotFoundError(SubsyncError):
    def __init__(self, email: str) -> None:
        super().__init__(f"No account found for {email}")
        self.email = email


class StoreError(SubsyncError):
    """The account store failed to read or write a record."""


class InvalidWebhookError(SubsyncError):
    """Webhook body could not be parsed or its signature did not verify."""


class ProviderError(SubsyncError):
    """Any failure talking to the billing provider."""


class CardError(ProviderError):
    """
    The provider rejected the payment method.

    Attributes:
        code: Provider error code (e.g. ``card_declined``, ``expired_card``)
        decline_code: Issuer decline code when the provider supplies one
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        decline_code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.decline_code = decline_code
