from dataclasses import dataclass

from ..application.services.auth_service import AuthService
from .config import Settings
from ..domain.ports.persistence import AccountRepository
from ..services.stripe_service import StripeService
from ..services.subscription_service import SubscriptionService
from ..services.tracking_service import TrackingService


@dataclass(slots=True)
class ApplicationContainer:
    """Dependency registry shared across the FastAPI application lifecycle."""

    settings: Settings
    accounts: AccountRepository
    stripe_service: StripeService
    subscription_service: SubscriptionService
    tracking_service: TrackingService
    auth_service: AuthService
