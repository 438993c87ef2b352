import logging
import os

LOG_LEVEL_ENV = "RAG_COST_SIM_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"

_ROOT_LOGGER = "rag_cost_sim"


def _configure_root() -> logging.Logger:
    root = logging.getLogger(_ROOT_LOGGER)
    if root.handlers:
        return root

    level_name = os.getenv(LOG_LEVEL_ENV, "WARNING").upper()
    level = getattr(logging, level_name, logging.WARNING)
    if not isinstance(level, int):
        level = logging.WARNING
    root.setLevel(level)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.propagate = False
    return root


def get_logger(name: str = _ROOT_LOGGER) -> logging.Logger:
    """
    Return a logger under the package's root logger.

    The root handler is attached only once per process; the level is read
    from RAG_COST_SIM_LOG_LEVEL (default WARNING).
    """
    _configure_root()
    return logging.getLogger(name)
