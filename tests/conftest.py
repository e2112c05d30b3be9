"""Test configuration for pytest."""

import logging
import os
import pytest

from bulwark import use_engine
from tests.helpers.models import make_engine


@pytest.fixture(autouse=True)
def configure_test_logging():
    """Configure logging for tests to be minimal."""
    os.environ['BULWARK_LOG_LEVEL'] = 'WARNING'

    logging.getLogger().setLevel(logging.WARNING)

    # Construction bookkeeping logs at DEBUG; keep it out of test output
    for logger_name in ['bulwark.engine.construction', 'bulwark.engine.ledger', 'bulwark.engine.shape']:
        logging.getLogger(logger_name).setLevel(logging.ERROR)


@pytest.fixture
def engine_and_recorder():
    """Isolated engine, active for the duration of the test."""
    engine, recorder = make_engine()
    with use_engine(engine):
        yield engine, recorder


@pytest.fixture
def engine(engine_and_recorder):
    return engine_and_recorder[0]


@pytest.fixture
def recorder(engine_and_recorder):
    return engine_and_recorder[1]
