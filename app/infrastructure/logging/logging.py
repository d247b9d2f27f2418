import logging
import sys

from core.config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

# 第三方库的请求日志过于频繁，统一调高级别
NOISY_LOGGERS = ("httpx", "httpcore", "urllib3")


def setup_logging() -> None:
    """根据配置初始化根日志记录器，输出到标准输出，重复调用不会重复添加处理器"""
    settings = get_settings()

    # 1.获取根日志记录器并设置级别
    root_logger = logging.getLogger()
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    root_logger.setLevel(log_level)

    # 2.已经初始化过则只更新级别
    for handler in root_logger.handlers:
        if getattr(handler, "_file_service_handler", False):
            handler.setLevel(log_level)
            return

    # 3.创建控制台处理器并设置格式
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
    console_handler.setLevel(log_level)
    console_handler._file_service_handler = True
    root_logger.addHandler(console_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    root_logger.info("日志记录器已初始化，日志级别: %s", settings.log_level)
