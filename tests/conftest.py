"""Shared pytest fixtures."""

from __future__ import annotations

import logging
from typing import Iterator

import pytest

from acornget.core.logging import ROOT_LOGGER_NAME


@pytest.fixture(autouse=True)
def reset_acornget_logger() -> Iterator[None]:
    """Drop handlers bound to streams captured by a previous test."""
    yield
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
