"""
Tests for forwarding standard library logging into loguru
"""

import logging

import pytest
from loguru import logger

from photoblog.core.logging import InterceptHandler


@pytest.fixture
def captured_records():
    records = []
    sink_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(sink_id)


@pytest.fixture
def forwarded_logger():
    std_logger = logging.getLogger("photoblog.tests.forwarded")
    std_logger.handlers = [InterceptHandler()]
    std_logger.propagate = False
    std_logger.setLevel(logging.DEBUG)
    yield std_logger
    std_logger.handlers = []


def test_record_points_at_caller(captured_records, forwarded_logger):
    forwarded_logger.info("uploaded photo 7")

    record = captured_records[-1]
    assert record["message"] == "uploaded photo 7"
    assert record["function"] == "test_record_points_at_caller"
    assert record["name"] == __name__


def test_level_carried_over(captured_records, forwarded_logger):
    forwarded_logger.warning("disk nearly full")

    assert captured_records[-1]["level"].name == "WARNING"


def test_exception_attached(captured_records, forwarded_logger):
    try:
        raise ValueError("bad image")
    except ValueError:
        forwarded_logger.exception("upload failed")

    record = captured_records[-1]
    assert record["exception"] is not None
    assert record["exception"].type is ValueError
