"""备份引擎配置

从 JSON 文件加载，文件不存在时写入默认配置
"""

import json
from pathlib import Path
from typing import Optional

from loguru import logger
from pydantic import BaseModel, ValidationError, field_validator

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


class ConfigError(Exception):
    """配置加载或校验失败"""


class BackupSettings(BaseModel):
    """备份引擎配置"""

    data_dir: Path = Path("data")
    scratch_dir: Optional[Path] = None
    file_prefix: str = "saison"
    json_indent: Optional[int] = 2
    log_level: str = "INFO"

    @field_validator("file_prefix")
    @classmethod
    def validate_file_prefix(cls, v: str) -> str:
        """前缀只能包含小写字母和下划线，且不能为空"""
        v = v.strip()
        if not v or not all(c.islower() or c == "_" for c in v):
            raise ValueError(f"无效的文件名前缀: {v!r}")
        return v

    @field_validator("json_indent")
    @classmethod
    def validate_json_indent(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError("json_indent 不能为负数")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v):
        """日志级别不区分大小写"""
        level = str(v or "INFO").upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"无效的日志级别: {v}")
        return level


def load_settings(config_path: Path) -> BackupSettings:
    """加载配置

    Args:
        config_path: 配置文件路径

    Returns:
        配置对象

    Raises:
        ConfigError: 文件格式错误或配置值无效
    """
    config_path = Path(config_path)
    if not config_path.exists():
        settings = BackupSettings()
        save_settings(settings, config_path)
        logger.info(f"已创建配置文件: {config_path}")
        return settings

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        settings = BackupSettings.model_validate(data)
    except json.JSONDecodeError as e:
        logger.error(f"配置文件格式错误: {e}")
        raise ConfigError(f"配置文件格式错误: {config_path}") from e
    except ValidationError as e:
        logger.error(f"配置校验失败: {e}")
        raise ConfigError(f"配置校验失败: {config_path}") from e

    logger.debug(f"已加载配置: {config_path}")
    return settings


def save_settings(settings: BackupSettings, config_path: Path) -> None:
    """保存配置到文件"""
    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w", encoding="utf-8") as f:
        f.write(settings.model_dump_json(indent=2))
    logger.debug(f"已保存配置: {config_path}")


__all__ = ["BackupSettings", "ConfigError", "load_settings", "save_settings"]
