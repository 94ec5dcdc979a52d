import logging

from .config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(settings: Settings) -> None:
    """Set the service log level and keep Stripe SDK request logs at their own level."""
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
    # The SDK logs every request and response line at INFO.
    logging.getLogger("stripe").setLevel(settings.stripe_log_level)
