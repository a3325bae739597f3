# -*- coding: utf-8 -*-
"""异常定义

只有两类错误会从核心流出：
1. NotFound - 请求的节拍或幕不存在（可展示的正常状态，页面仍返回 200）
2. DataAccessError - 数据源查询失败（返回 500）
"""


class BeatSheetError(Exception):
    """节拍表系统异常基类"""


class DataAccessError(BeatSheetError):
    """数据源查询失败，保留底层错误信息，不做重试"""


class NotFound(BeatSheetError):
    """请求的行不存在"""

    def __init__(self, what: str):
        super().__init__(f"{what} not found")
        self.what = what
