"""
utils/logger.py
---------------
Tiny logger factory shared by the viewer, procedures and CLI.
"""
import logging
from utils.config import LOG_LEVEL

def get_logger(name: str = "pinecone_viewer"):
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
        ch = logging.StreamHandler()
        ch.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
        logger.addHandler(ch)
    return logger
