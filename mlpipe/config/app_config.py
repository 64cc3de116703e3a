#!filepath: mlpipe/config/app_config.py
import yaml
from pydantic import BaseModel, Field
from dotenv import load_dotenv
import os

from .log_config import LogConfig
from .execution_config import ExecutionConfig
from .model_config import NaiveBayesConfig


def project_root() -> str:
    """
    返回项目根目录（基于当前文件位置推导）:
    mlpipe/config/app_config.py → mlpipe/config → mlpipe → project_root
    """
    return os.path.abspath(os.path.join(os.path.dirname(__file__), "../../"))


# env var → (section, key)
_ENV_OVERRIDES = {
    "MLPIPE_LOG_DIR": ("log", "dir"),
    "MLPIPE_LOG_LEVEL": ("log", "level"),
    "MLPIPE_MAX_WORKERS": ("execution", "max_workers"),
    "MLPIPE_DEFAULT_PARALLELISM": ("execution", "default_parallelism"),
}


class AppConfig(BaseModel):
    log: LogConfig = Field(default_factory=LogConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    model: NaiveBayesConfig = Field(default_factory=NaiveBayesConfig)

    @classmethod
    def load(cls, path: str | None = None) -> "AppConfig":
        """
        加载 YAML 配置 + .env
        - 默认使用 <package>/config/base.yml
        - 不依赖当前工作目录
        - MLPIPE_* 环境变量覆盖 YAML
        """
        root = project_root()

        # 1) 先加载 .env（在项目根目录下）
        load_dotenv(os.path.join(root, ".env"))

        # 2) 决定配置文件路径
        if path is None:
            path = os.path.join(os.path.dirname(__file__), "base.yml")

        if not os.path.exists(path):
            raise FileNotFoundError(f"Config file not found: {path}")

        # 3) 读取 YAML
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        # 4) env 覆盖
        for env_key, (section, key) in _ENV_OVERRIDES.items():
            value = os.getenv(env_key)
            if value:
                raw.setdefault(section, {})[key] = value

        return cls(**raw)
