import logging
from datetime import datetime
from pathlib import Path

FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def get_timestamp() -> str:
    return datetime.now().strftime('%Y_%m_%d_%H%M%S')


def get_logger(logger_name, log_dir=None, log_level=logging.INFO):
    """
    Create and return a logger object.

    Messages go to the console and, when log_dir is given, also to
    <log_dir>/<logger_name>_<timestamp>.log.
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(log_level)
    formatter = logging.Formatter(FORMAT)

    # avoid stacking handlers when called again for the same logger
    if logger.handlers:
        return logger

    if log_dir is not None:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        log_file_path = Path(log_dir) / f'{logger_name}_{get_timestamp()}.log'
        handler = logging.FileHandler(log_file_path, mode="a")
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger
