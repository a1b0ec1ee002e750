"""Logging configuration for the pipeboard CLI."""
import logging


def configure_logging(verbose: bool) -> None:
    """Configure logging level based on verbosity setting.

    Args:
        verbose: If True, set DEBUG level; otherwise WARNING level.

    Warnings (watch retries, conflicts, history write failures) and errors
    are always printed to stderr regardless of verbosity.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
        handlers=[logging.StreamHandler()],
    )
    # botocore is chatty at DEBUG; keep it at INFO even in verbose mode.
    logging.getLogger("botocore").setLevel(max(level, logging.INFO))
