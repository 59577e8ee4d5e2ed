import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


@dataclass
class Settings:
    # loans
    default_loan_days: int = int(os.getenv("BOOKLOANS_DEFAULT_LOAN_DAYS", "14"))
    loan_id_prefix: str = os.getenv("BOOKLOANS_LOAN_ID_PREFIX", "LOAN")

    # logging
    log_level: str = os.getenv("BOOKLOANS_LOG_LEVEL", "INFO")


settings = Settings()


def configure_logging(cfg: Settings = settings) -> logging.Logger:
    """Install the default log format and set the package logger level."""
    logging.basicConfig(format=LOG_FORMAT)
    logger = logging.getLogger("bookloans")
    logger.setLevel(cfg.log_level.upper())
    return logger
