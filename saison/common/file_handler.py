"""JSON 文件处理器

提供统一的 JSON / 文本文件读写，写入时先写临时文件再替换，
避免进程中断留下半截文件
"""

import asyncio
import json
import os
from pathlib import Path
from typing import Any

from loguru import logger


class JsonFileHandler:
    """JSON 文件处理器"""

    def __init__(self, base_path: Path):
        """初始化文件处理器

        Args:
            base_path: 基础路径
        """
        self.base_path = Path(base_path)

    def path_of(self, filename: str) -> Path:
        return self.base_path / filename

    def load(self, filename: str, default: Any = None) -> Any:
        """加载 JSON 文件

        Args:
            filename: 文件名
            default: 文件不存在或内容损坏时的默认值

        Returns:
            解析后的数据或默认值
        """
        file_path = self.path_of(filename)
        if not file_path.exists():
            return default

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"文件内容损坏 {filename}: {e}")
            return default

    def load_text(self, filename: str, default: str = "") -> str:
        """读取文本文件，不存在时返回默认值"""
        file_path = self.path_of(filename)
        if not file_path.exists():
            return default
        return file_path.read_text(encoding="utf-8")

    def save_text(self, filename: str, content: str) -> None:
        """原子写入文本文件"""
        file_path = self.path_of(filename)
        self.base_path.mkdir(parents=True, exist_ok=True)
        tmp_path = file_path.with_name(f".{file_path.name}.tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_path, file_path)
        finally:
            tmp_path.unlink(missing_ok=True)

    def save(
        self, filename: str, data: Any, indent: int = 2, ensure_ascii: bool = False
    ) -> None:
        """保存 JSON 文件

        Args:
            filename: 文件名
            data: 要保存的数据
            indent: 缩进空格数
            ensure_ascii: 是否确保 ASCII 编码
        """
        self.save_text(filename, json.dumps(data, indent=indent, ensure_ascii=ensure_ascii))

    async def load_async(self, filename: str, default: Any = None) -> Any:
        return await asyncio.to_thread(self.load, filename, default)

    async def save_async(self, filename: str, data: Any) -> None:
        await asyncio.to_thread(self.save, filename, data)

    def exists(self, filename: str) -> bool:
        """检查文件是否存在"""
        return self.path_of(filename).exists()

    def delete(self, filename: str) -> bool:
        """删除文件

        Returns:
            是否删除成功
        """
        try:
            self.path_of(filename).unlink(missing_ok=True)
            return True
        except OSError as e:
            logger.error(f"删除文件失败 {filename}: {e}")
            return False


__all__ = ["JsonFileHandler"]
