import logging
import shutil

import pytest


@pytest.fixture
def source():
    """Three-line source buffer used by most pipeline tests."""
    return b"a\nb\nc\n"


def require(*programs):
    """Skip a test unless every program is on PATH."""
    missing = [p for p in programs if shutil.which(p) is None]
    return pytest.mark.skipif(bool(missing), reason=f"missing programs: {missing}")


@pytest.fixture(autouse=True)
def reset_txtflow_logger():
    """Detach handlers the CLI installs so they never outlive a test."""
    yield
    logger = logging.getLogger("txtflow")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
