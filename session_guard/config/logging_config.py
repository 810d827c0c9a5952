# session_guard/config/logging_config.py
import logging

SECURITY_LOGGER_NAME = "session_guard.security"


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    # eventos de segurança nunca ficam abaixo de INFO, mesmo com LOG_LEVEL=WARNING
    security_logger = logging.getLogger(SECURITY_LOGGER_NAME)
    if security_logger.level == logging.NOTSET or security_logger.level > logging.INFO:
        security_logger.setLevel(logging.INFO)
