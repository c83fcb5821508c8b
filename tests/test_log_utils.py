import logging

from sidelink.log_utils import get_logger


def test_logger_writes_to_file(tmp_path):
    logger = get_logger("sidelink_test_file", log_dir=tmp_path, log_level=logging.DEBUG)
    logger.debug("slot tick")
    for handler in logger.handlers:
        handler.flush()
    files = list(tmp_path.glob("sidelink_test_file_*.log"))
    assert len(files) == 1
    assert "slot tick" in files[0].read_text()
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def test_logger_is_not_configured_twice():
    first = get_logger("sidelink_test_twice")
    count = len(first.handlers)
    second = get_logger("sidelink_test_twice")
    assert second is first
    assert len(second.handlers) == count
