"""
日志配置
"""
import logging

from . import config

_configured = False


def configure_logging(level: str = config.LOG_LEVEL) -> None:
    """安装统一的日志格式，只生效一次"""
    global _configured
    if _configured:
        return
    logging.basicConfig(
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        level=getattr(logging, level.upper(), logging.INFO),
    )
    _configured = True
