import logging

import pytest


@pytest.fixture(autouse=True)
def reset_package_logger():
    yield
    logger = logging.getLogger("heatprop2d")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
