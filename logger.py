"""
Application logger with masking of patient contact data.
E-mail addresses and phone numbers never reach the log output.
"""
import logging
import re
import sys

from config import settings


CONTACT_PATTERNS = [
    (re.compile(r'[\w.+-]+@[\w-]+\.[\w.-]+'), '[EMAIL_REDACTED]'),
    (re.compile(r'(?<!\d)\+?\d{3}[\s-]?\d{3}[\s-]?\d{4}(?!\d)'), '[PHONE_REDACTED]'),
]


class ContactMaskingFilter(logging.Filter):
    """Logging filter that masks contact data in log messages."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = mask_contacts(record.msg)
        if record.args:
            if isinstance(record.args, dict):
                record.args = {
                    k: mask_contacts(v) if isinstance(v, str) else v
                    for k, v in record.args.items()
                }
            elif isinstance(record.args, tuple):
                record.args = tuple(
                    mask_contacts(a) if isinstance(a, str) else a
                    for a in record.args
                )
        return True


def mask_contacts(text: str) -> str:
    for pattern, replacement in CONTACT_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def setup_logger(name: str = "clinic_scheduler", level: str = "INFO") -> logging.Logger:
    logger = logging.getLogger(name)

    # Avoid duplicate handlers on reload
    if logger.handlers:
        return logger

    logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s | %(levelname)-7s | %(message)s",
        datefmt="%H:%M:%S",
    ))
    handler.addFilter(ContactMaskingFilter())

    logger.addHandler(handler)
    logger.propagate = False

    return logger


logger = setup_logger(level=settings.log_level.upper())
