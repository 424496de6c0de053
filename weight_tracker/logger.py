"""ログ設定の一元化。"""

import logging

from weight_tracker.config import settings


def get_logger(name: str) -> logging.Logger:
    """設定済みのロガーを名前で取得する。"""
    logger = logging.getLogger(name)
    logger.setLevel(settings.WEIGHT_TRACKER_LOG_LEVEL_INT)

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter(
                fmt=settings.WEIGHT_TRACKER_LOG_FORMAT,
                datefmt=settings.WEIGHT_TRACKER_LOG_DATE_FORMAT,
            )
        )
        logger.addHandler(handler)

    logger.propagate = False
    return logger
