# -*- coding: utf-8 -*-
"""报表导出 - 格式投影与格式分发表

四种格式共享同一个 Report 模型：
1. JSON - 原样序列化（规范格式，其他格式以它为参照）
2. HTML - 带侧边栏导航的完整文档（见 html_report.py）
3. CSV - 扁平的逐节拍行，按需加引号转义
4. PRINT_HTML - HTML 输出的后处理：去掉交互元素，关闭深色背景

格式由封闭的 ReportFormat 枚举表示，通过查找表映射到各自的投影函数，
不使用条件分支链。
"""
import csv
import io
import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, NamedTuple, Optional, Union

from aggregator import aggregate
from errors import DataAccessError
from html_report import project_error_html, project_html
from models import Report
from row_source import RowSource

logger = logging.getLogger(__name__)


class ReportFormat(str, Enum):
    """报表格式枚举"""
    JSON = "json"
    HTML = "html"
    CSV = "csv"
    PRINT_HTML = "pdf"


# ==================== JSON ====================

def project_json(report: Report) -> bytes:
    """原样序列化报表模型"""
    return json.dumps(report.to_dict(), indent=2, ensure_ascii=False).encode("utf-8")


# ==================== CSV ====================

CSV_COLUMNS = (
    "Act Number",
    "Act Title",
    "Beat Number",
    "Scene Number",
    "Beat Title",
    "Description",
    "Conflict",
    "Emotion",
    "Location",
    "Time of Day",
    "Characters",
    "Version",
    "Created At",
    "Updated At",
)


def _csv_value(value) -> str:
    """None 输出空字符串，而不是 'None'"""
    return "" if value is None else str(value)


def project_csv(report: Report) -> str:
    """
    扁平化为 CSV：表头 + 每个节拍一行（先按幕、再按节拍）

    字段包含逗号、双引号或换行时加双引号，内部双引号加倍。
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)

    for act in report.acts:
        for beat in act.beats:
            writer.writerow([_csv_value(v) for v in (
                act.act_no,
                act.act_title,
                beat.beat_number,
                beat.scene_number,
                beat.title,
                beat.description,
                beat.conflict,
                beat.emotion,
                beat.location,
                beat.time_of_day,
                beat.characters,
                beat.version,
                beat.created_at,
                beat.updated_at,
            )])

    return buffer.getvalue()


def csv_filename(report: Report) -> str:
    return f"beat-sheets-report-{report.generation_date}.csv"


# ==================== 打印版 HTML ====================

PRINT_CSS = """
    <style media="all">
        .sidebar, .actions, .back-link { display: none !important; }
        body { padding: 0 !important; background: white !important; color: #111 !important; }
        .container { display: block !important; max-width: none !important; box-shadow: none !important; }
        .act-section, .beat-entry, .stats { background: white !important; border-color: #ccc !important; }
        h1, h2, h3, strong, .act-title, .act-count, .stat-value, .stat-label, .metadata { color: #111 !important; }
        .act-section { page-break-inside: avoid; }
    </style>
</head>"""

_SIDEBAR_RE = re.compile(r'\s*<nav class="sidebar">.*?</nav>', re.DOTALL)
_ACTIONS_RE = re.compile(r'\s*<div class="actions">.*?</div>', re.DOTALL)
_BACK_LINK_RE = re.compile(r'\s*<a href="[^"]*" class="back-link">.*?</a>', re.DOTALL)


def print_transform(document: str) -> str:
    """对 HTML 报表做打印版后处理，只改外观，不改数据内容"""
    document = _SIDEBAR_RE.sub("", document, count=1)
    document = _ACTIONS_RE.sub("", document, count=1)
    document = _BACK_LINK_RE.sub("", document, count=1)
    return document.replace("</head>", PRINT_CSS, 1)


def project_print_html(report: Report) -> str:
    return print_transform(project_html(report))


# ==================== 格式分发 ====================

JSON_CONTENT_TYPE = "application/json"
HTML_CONTENT_TYPE = "text/html; charset=utf-8"
CSV_CONTENT_TYPE = "text/csv; charset=utf-8"


class FormatSpec(NamedTuple):
    """格式 -> (投影函数, Content-Type, 错误时是否渲染 HTML)"""
    projector: Callable[[Report], Union[bytes, str]]
    content_type: str
    html_errors: bool


PROJECTORS: Dict[ReportFormat, FormatSpec] = {
    ReportFormat.JSON: FormatSpec(project_json, JSON_CONTENT_TYPE, False),
    ReportFormat.HTML: FormatSpec(project_html, HTML_CONTENT_TYPE, True),
    ReportFormat.CSV: FormatSpec(project_csv, CSV_CONTENT_TYPE, False),
    ReportFormat.PRINT_HTML: FormatSpec(project_print_html, HTML_CONTENT_TYPE, True),
}


@dataclass
class ReportResponse:
    """导出结果：(body, content_type, status) + 额外响应头"""
    body: Union[bytes, str]
    content_type: str
    status: int = 200
    headers: Dict[str, str] = field(default_factory=dict)


def project(report: Report, fmt: ReportFormat) -> ReportResponse:
    """用查找表中的投影函数渲染报表"""
    spec = PROJECTORS[fmt]
    headers = {}
    if fmt is ReportFormat.CSV:
        headers["Content-Disposition"] = f'attachment; filename="{csv_filename(report)}"'
    return ReportResponse(spec.projector(report), spec.content_type, 200, headers)


def error_response(fmt: ReportFormat, message: str,
                   now: Optional[datetime] = None) -> ReportResponse:
    """报表失败响应：HTML 类格式返回完整错误页，其余返回 JSON 错误"""
    spec = PROJECTORS[fmt]
    if spec.html_errors:
        body = project_error_html(message, now or datetime.now(timezone.utc))
        return ReportResponse(body, HTML_CONTENT_TYPE, 500)

    body = json.dumps({
        "error": "Report generation failed",
        "message": message,
    }, indent=2).encode("utf-8")
    return ReportResponse(body, JSON_CONTENT_TYPE, 500)


def export_report(row_source: RowSource, fmt: ReportFormat,
                  now: Optional[datetime] = None) -> ReportResponse:
    """
    聚合并导出报表

    Args:
        row_source: 已打开的数据源
        fmt: 导出格式
        now: 报表生成时间（测试时注入）

    Returns:
        ReportResponse；数据源失败时 status 为 500
    """
    try:
        report = aggregate(row_source, now=now)
    except DataAccessError as e:
        return error_response(fmt, str(e), now)

    logger.info(
        "Generated %s report: %d acts, %d beats",
        fmt.value, report.summary.total_acts, report.summary.total_beats
    )
    return project(report, fmt)


def to_json(row_source: RowSource) -> ReportResponse:
    return export_report(row_source, ReportFormat.JSON)


def to_html(row_source: RowSource) -> ReportResponse:
    return export_report(row_source, ReportFormat.HTML)


def to_csv(row_source: RowSource) -> ReportResponse:
    return export_report(row_source, ReportFormat.CSV)


def to_print_html(row_source: RowSource) -> ReportResponse:
    return export_report(row_source, ReportFormat.PRINT_HTML)
