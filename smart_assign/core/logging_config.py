import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """
    Configures the root logger once for the service process.
    Module code only ever calls logging.getLogger(__name__).
    """
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)

    # Supabase pulls in httpx; its request lines drown our own output
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
