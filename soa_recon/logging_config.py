# soa_recon/logging_config.py

import logging

from soa_recon.config import Settings, get_settings


def configure_logging(settings: Settings | None = None) -> None:
    """Set up root logging at the configured level."""
    settings = settings or get_settings()
    level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("soa_recon").setLevel(level)
