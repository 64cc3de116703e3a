#!filepath: mlpipe/utils/logger.py
import os
import sys
from functools import wraps
from time import perf_counter
from loguru import logger
from typing import Callable

# Logger 初始化“只执行一次”（每个进程）
_LOGGER_CONFIGURED = False


class Logging:
    """
    生产级日志模块
    ---------------------------------------
    - 支持按日期切割
    - 支持日志保留周期
    - 包含函数级日志装饰器
    - worker 进程经 pool initializer 采用 driver 的配置（adopt）
    ---------------------------------------
    """

    def __init__(
        self,
        log_dir: str = "logs",
        rotation: str = "1 day",
        retention: str = "30 days",
        log_level: str = "INFO",
    ):
        self.log_dir = log_dir
        self.rotation = rotation
        self.retention = retention
        self.level = log_level

        os.makedirs(self.log_dir, exist_ok=True)
        self._configure()

    def _configure(self) -> None:
        """
        配置全局 logger
        """
        global _LOGGER_CONFIGURED

        logger.remove()

        logger.add(
            sink=f"{self.log_dir}/{{time:YYYY-MM-DD}}.log",
            rotation=self.rotation,
            retention=self.retention,
            level=self.level,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {process} | {message}",
            enqueue=True,  # 多进程安全
            backtrace=True,
            diagnose=False,
        )

        if not _LOGGER_CONFIGURED:
            logger.debug("-----------Logger initialized-----------")
        _LOGGER_CONFIGURED = True

    def reconfigure(
        self,
        *,
        log_dir: str,
        rotation: str,
        retention: str,
        log_level: str,
    ) -> None:
        self.log_dir = log_dir
        self.rotation = rotation
        self.retention = retention
        self.level = log_level

        os.makedirs(self.log_dir, exist_ok=True)
        self._configure()

    def settings(self) -> dict:
        return {
            "log_dir": self.log_dir,
            "rotation": self.rotation,
            "retention": self.retention,
            "log_level": self.level,
        }

    def adopt(self, settings: dict) -> None:
        """
        spawn 出的 worker 只会按环境变量构造 logs，看不到 driver 的 init_logging；
        配置不同时按 driver 的 settings 重新配置，相同则不动。
        """
        if settings != self.settings():
            self.reconfigure(**settings)

    # ----------- 日志方法 -----------
    def debug(self, msg: str, *args, **kwargs):
        logger.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        logger.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        print(msg, file=sys.stderr)
        logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        print(msg, file=sys.stderr)
        logger.error(msg, *args, **kwargs)

    def exception(self, msg: str, *args, **kwargs):
        logger.exception(msg, *args, **kwargs)

    # ---------- 日志装饰器 ----------
    def catch(
        self,
        msg: str = "Exception occurred",
        log_inputs: bool = False,
        log_outputs: bool = False,
        log_time: bool = True,
    ) -> Callable:

        def decorator(func: Callable):
            @wraps(func)
            def wrapper(*args, **kwargs):

                if log_inputs:
                    logger.info(
                        f"[CALL] {func.__name__} args={args}, kwargs={kwargs}"
                    )

                start = perf_counter()

                try:
                    result = func(*args, **kwargs)
                except Exception:
                    logger.exception(f"[ERROR] {func.__name__}: {msg}")
                    raise

                if log_outputs:
                    logger.info(f"[RETURN] {func.__name__} result={result}")

                if log_time:
                    cost = perf_counter() - start
                    logger.info(f"[TIME] {func.__name__} took {cost:.4f}s")

                return result

            return wrapper

        return decorator


# 默认全局 logs（可被 init_logging 替换配置）
logs = Logging(log_dir=os.getenv("MLPIPE_LOG_DIR", "logs"))


def init_logging(cfg) -> Logging:
    """
    用 LogConfig 重新配置全局 logs（driver 启动时调用一次）。
    """
    logs.reconfigure(
        log_dir=cfg.dir,
        rotation=cfg.rotation,
        retention=cfg.retention,
        log_level=cfg.level,
    )
    return logs
