import logging
from typing import Union

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

# botocore is chatty below WARNING and drowns the per-record output
_NOISY_LOGGERS = ("botocore", "boto3", "urllib3")


class LogManager:
    @staticmethod
    def get_logger(name: str) -> logging.Logger:
        return logging.getLogger(name)

    @staticmethod
    def set_level(level: Union[int, str]) -> None:
        root = logging.getLogger()
        root.setLevel(level)
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(
                max(logging.WARNING, root.getEffectiveLevel())
            )
