import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """
    Root logging setup for the API process.
    basicConfig is a no-op once handlers exist, so repeated app creation
    (tests, reloads) keeps the first configuration.
    """
    logging.basicConfig(level=(level or "INFO").upper(), format=LOG_FORMAT)
    logging.getLogger("dealpilot").setLevel((level or "INFO").upper())
