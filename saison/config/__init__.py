"""Saison 配置管理

提供备份引擎配置模型和加载函数
"""

from .settings import BackupSettings, ConfigError, load_settings, save_settings

__all__ = [
    "BackupSettings",
    "ConfigError",
    "load_settings",
    "save_settings",
]
