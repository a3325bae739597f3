# -*- coding: utf-8 -*-
"""数据源 (Row Source)

核心只依赖一个能力：执行参数化 SQL 并按请求顺序返回行。
每一行是 列名 -> 值 的字典。

提供三种实现：
1. RowSource - 基类，子类实现 query
2. SQLiteRowSource - 基于 sqlite3，每次查询独立打开只读连接
3. MockRowSource - 测试用，返回预设行或抛出预设错误
"""
import logging
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from errors import DataAccessError

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


class RowSource:
    """数据源基类 - 可继承实现不同存储的查询"""

    def query(self, sql: str, params: Sequence[Any] = ()) -> List[Row]:
        """执行参数化查询并返回所有行"""
        raise NotImplementedError("子类必须实现 query 方法")

    def query_one(self, sql: str, params: Sequence[Any] = ()) -> Optional[Row]:
        """执行查询并返回第一行，无结果时返回 None"""
        rows = self.query(sql, params)
        return rows[0] if rows else None

    def is_available(self) -> bool:
        """存储是否可用（用于健康检查）"""
        return True


class SQLiteRowSource(RowSource):
    """SQLite 数据源 - 以只读模式打开，连接不跨查询共享"""

    def __init__(self, database_path: str):
        self.database_path = database_path

    def _connect(self) -> sqlite3.Connection:
        uri = f"{Path(self.database_path).resolve().as_uri()}?mode=ro"
        conn = sqlite3.connect(uri, uri=True)
        conn.row_factory = sqlite3.Row
        return conn

    def query(self, sql: str, params: Sequence[Any] = ()) -> List[Row]:
        try:
            conn = self._connect()
        except sqlite3.Error as e:
            raise DataAccessError(f"unable to open database {self.database_path}: {e}") from e

        try:
            cursor = conn.execute(sql, tuple(params))
            return [dict(row) for row in cursor.fetchall()]
        except sqlite3.Error as e:
            raise DataAccessError(str(e)) from e
        finally:
            conn.close()

    def is_available(self) -> bool:
        """数据库文件是否存在（用于健康检查）"""
        return Path(self.database_path).is_file()


class MockRowSource(RowSource):
    """Mock 数据源 - 用于测试时无需真实数据库"""

    def __init__(self, rows: Optional[List[Row]] = None,
                 responses: Optional[List[List[Row]]] = None,
                 error: Optional[str] = None):
        """
        Args:
            rows: 每次查询都返回的行
            responses: 按调用顺序依次返回的结果列表（优先于 rows）
            error: 设置后每次查询都抛出 DataAccessError(error)
        """
        self.rows = rows or []
        self.responses = list(responses) if responses is not None else None
        self.error = error
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []

    def query(self, sql: str, params: Sequence[Any] = ()) -> List[Row]:
        self.calls.append((sql, tuple(params)))
        if self.error is not None:
            raise DataAccessError(self.error)
        if self.responses is not None:
            return self.responses.pop(0) if self.responses else []
        return [dict(row) for row in self.rows]

    def is_available(self) -> bool:
        return self.error is None
