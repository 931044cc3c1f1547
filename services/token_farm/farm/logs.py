import logging

from farm.config import LOG_LEVEL

_configured = False


def configure_logging(level: str = LOG_LEVEL) -> None:
    """
    Configure the "farm" logger hierarchy once per process.
    """
    global _configured
    if _configured:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )

    root = logging.getLogger("farm")
    root.addHandler(handler)
    root.setLevel(level.upper())
    root.propagate = False
    _configured = True
