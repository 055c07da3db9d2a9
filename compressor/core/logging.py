import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def configure_logging(level: str = "INFO") -> None:
    """Attach one stream handler to the root logger, once per process.

    Runtimes that already set up the root logger (AWS Lambda does) keep
    their handler; adding ours would print every line twice.
    """
    global _configured
    root = logging.getLogger()
    root.setLevel(level.upper())
    if _configured or root.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    _configured = True
