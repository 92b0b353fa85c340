import logging

from textual.logging import TextualHandler

FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


def setup_logging(level: str, log_file: str | None = None) -> None:
    """Configure root logging.

    The dashboard owns the terminal, so without a log file records go to
    Textual's handler (devtools console, or stderr when no app is running).
    """
    lvl = getattr(logging, level.upper(), logging.INFO)
    if log_file:
        logging.basicConfig(level=lvl, format=FORMAT, filename=log_file, force=True)
    else:
        handler = TextualHandler()
        handler.setFormatter(logging.Formatter(FORMAT))
        logging.basicConfig(level=lvl, handlers=[handler], force=True)
    # kafka-python is chatty at INFO (bootstrap, api version probing)
    logging.getLogger("kafka").setLevel(max(lvl, logging.WARNING))
