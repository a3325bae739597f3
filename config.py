# -*- coding: utf-8 -*-
"""运行配置

所有配置通过环境变量读取（支持 .env 文件），启动时加载一次，之后只读。
"""
import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

# 加载环境变量
load_dotenv()


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    """服务配置"""
    database_path: str = "beats.db"
    api_key: Optional[str] = field(default=None, repr=False)  # 不出现在 repr / 日志中
    rate_limit_max_requests: int = 100
    rate_limit_window_seconds: float = 60.0
    cors_allow_origins: List[str] = field(default_factory=lambda: ["*"])
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"


def load_settings() -> Settings:
    """根据环境变量创建配置"""
    origins = os.environ.get("CORS_ALLOW_ORIGINS", "*")
    return Settings(
        database_path=os.environ.get("BEAT_SHEETS_DATABASE", "beats.db"),
        api_key=os.environ.get("API_KEY") or None,
        rate_limit_max_requests=int(os.environ.get("RATE_LIMIT_MAX_REQUESTS", "100")),
        rate_limit_window_seconds=float(os.environ.get("RATE_LIMIT_WINDOW_SECONDS", "60")),
        cors_allow_origins=[o.strip() for o in origins.split(",") if o.strip()],
        host=os.environ.get("WEB_SERVER_HOST", "0.0.0.0"),
        port=int(os.environ.get("WEB_SERVER_PORT", "8000")),
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    """配置根日志"""
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
