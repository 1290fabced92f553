import logging

import pytest

from shard_consumer.logger import LogManager


@pytest.fixture
def restore_levels():
    names = ("", "botocore", "boto3", "urllib3")
    saved = {name: logging.getLogger(name).level for name in names}
    yield
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)


def test_get_logger_returns_named_logger():
    assert LogManager.get_logger("shard_consumer.test").name == "shard_consumer.test"


def test_set_level_keeps_aws_loggers_at_warning(restore_levels):
    LogManager.set_level("DEBUG")

    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("botocore").level == logging.WARNING


def test_set_level_above_warning_applies_to_aws_loggers(restore_levels):
    LogManager.set_level(logging.ERROR)

    assert logging.getLogger("urllib3").level == logging.ERROR
