import logging
import sys


logger = logging.getLogger("sharedcheckout")

# stdout is reserved for command results such as the checkout path
_handler = logging.StreamHandler(sys.stderr)


def configure_logging(debug: bool):
    """
    Route sharedcheckout logs to stderr, at DEBUG level when debug is set.

    Safe to call repeatedly; the handler is attached only once.
    """
    if debug:
        _handler.setFormatter(logging.Formatter("%(name)s %(levelname)s: %(message)s"))
    else:
        _handler.setFormatter(logging.Formatter("%(message)s"))

    logger.setLevel(logging.DEBUG if debug else logging.INFO)

    if _handler not in logger.handlers:
        logger.addHandler(_handler)
