import logging

import pytest
import structlog


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    # CLI and logging tests install root handlers against captured streams and tmp files.
    structlog.reset_defaults()
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
