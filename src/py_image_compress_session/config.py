"""统一配置管理模块。

提供压缩会话的全局配置管理，包括默认值、环境变量支持等。
"""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class SessionDefaults:
    """压缩会话相关的默认配置"""

    # 目标大小与尺寸
    MAX_SIZE_MB: float = 0.2
    MAX_WIDTH_OR_HEIGHT: int = 1920

    # 输出编码
    FILE_TYPE: str = "image/jpeg"
    SINGLE_FILE_TYPE: str = "image/webp"  # 单图上传
    BATCH_FILE_TYPE: str = "image/jpeg"  # 批量上传

    # 是否将编码工作放到后台线程
    USE_WEB_WORKER: bool = True

    def as_options(self) -> dict[str, object]:
        """以选项字段名导出默认值"""
        return {
            "max_size_mb": self.MAX_SIZE_MB,
            "max_width_or_height": self.MAX_WIDTH_OR_HEIGHT,
            "file_type": self.FILE_TYPE,
            "use_web_worker": self.USE_WEB_WORKER,
        }


@dataclass(frozen=True)
class EngineDefaults:
    """压缩引擎相关的默认配置"""

    # 迭代压缩
    MAX_ITERATION: int = 10
    INITIAL_QUALITY: int = 90
    MIN_QUALITY: int = 10
    QUALITY_STEP: float = 0.95
    SCALE_STEP: float = 0.95

    # 后台执行
    MAX_WORKERS: int = 4


@dataclass(frozen=True)
class LoggingDefaults:
    """日志相关的默认配置"""

    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # 文件日志
    ENABLE_FILE_LOGGING: bool = False
    LOG_FILE_PATH: str = "py_image_compress_session.log"
    LOG_FILE_MAX_SIZE: int = 10 * 1024 * 1024  # 10MB
    LOG_FILE_BACKUP_COUNT: int = 5


class AppConfig:
    """应用程序配置管理器

    支持环境变量覆盖默认配置
    """

    def __init__(self):
        self.session = SessionDefaults()
        self.engine = EngineDefaults()
        self.logging = LoggingDefaults()

        self._load_from_env()

    def _load_from_env(self):
        """从环境变量加载配置"""
        # 会话配置
        if max_size_mb := os.getenv("PIC_MAX_SIZE_MB"):
            object.__setattr__(self.session, "MAX_SIZE_MB", float(max_size_mb))

        if max_dimension := os.getenv("PIC_MAX_WIDTH_OR_HEIGHT"):
            object.__setattr__(
                self.session, "MAX_WIDTH_OR_HEIGHT", int(max_dimension)
            )

        if file_type := os.getenv("PIC_FILE_TYPE"):
            object.__setattr__(self.session, "FILE_TYPE", file_type.lower())

        if use_worker := os.getenv("PIC_USE_WEB_WORKER"):
            object.__setattr__(
                self.session,
                "USE_WEB_WORKER",
                use_worker.lower() in ("true", "1", "yes"),
            )

        # 引擎配置
        if max_iteration := os.getenv("PIC_MAX_ITERATION"):
            object.__setattr__(self.engine, "MAX_ITERATION", int(max_iteration))

        if max_workers := os.getenv("PIC_MAX_WORKERS"):
            object.__setattr__(self.engine, "MAX_WORKERS", int(max_workers))

        # 日志配置
        if log_level := os.getenv("PIC_LOG_LEVEL"):
            object.__setattr__(self.logging, "LOG_LEVEL", log_level.upper())

        if enable_file_log := os.getenv("PIC_ENABLE_FILE_LOGGING"):
            object.__setattr__(
                self.logging,
                "ENABLE_FILE_LOGGING",
                enable_file_log.lower() in ("true", "1", "yes"),
            )

    @staticmethod
    def get_executor_type(payload_size: int) -> str:
        """根据图片体积选择执行器类型"""
        if payload_size <= 20 * 1024 * 1024:
            return "thread"  # 常规图片使用线程池
        return "process"  # 超大图片使用进程池


# 全局配置实例
config = AppConfig()


def get_config() -> AppConfig:
    """获取全局配置实例"""
    return config


def reset_config():
    """重置配置（主要用于测试）"""
    global config
    config = AppConfig()
