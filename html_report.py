# -*- coding: utf-8 -*-
"""HTML 报表投影

将 Report 模型渲染为两栏 HTML 文档：
- 左侧边栏：Overview 链接 + 每幕一个锚点链接（#act-{act_no}）
- 主栏：汇总统计 + 每幕一个 section，每个节拍一个条目

规则：
- 所有插入的文本均经过 HTML 转义
- 可选字段（冲突/情绪/地点/时间/人物）缺失时整对 标签+值 省略
- 无数据时输出空状态提示，仍是完整文档
"""
from datetime import datetime
from typing import Optional

from models import ActGroup, BeatView, Report
from presentation import (
    DETAIL_FIELDS, act_label, display, esc, format_long_date, is_present,
    render_notice, scene_suffix,
)


REPORT_TITLE = "ALLY - Beat Sheets Report"
CSV_EXPORT_PATH = "/api/reports/beats/csv"
PRINT_EXPORT_PATH = "/api/reports/beats/pdf"


REPORT_CSS = """
        * {
            margin: 0;
            padding: 0;
            box-sizing: border-box;
        }

        body {
            font-family: 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif;
            background: #0d1117;
            color: #c9d1d9;
            line-height: 1.6;
            padding: 2rem;
        }

        .container {
            max-width: 1200px;
            margin: 0 auto;
            display: flex;
            gap: 2rem;
        }

        .sidebar {
            width: 250px;
            flex-shrink: 0;
            position: sticky;
            top: 2rem;
            height: fit-content;
            background: #161b22;
            border: 1px solid #30363d;
            border-radius: 6px;
            padding: 1.5rem;
        }

        .sidebar h3 {
            color: #58a6ff;
            font-size: 1rem;
            margin-bottom: 1rem;
            font-weight: 600;
        }

        .nav-list {
            list-style: none;
        }

        .nav-item {
            margin-bottom: 0.5rem;
        }

        .nav-link {
            color: #8b949e;
            text-decoration: none;
            font-size: 0.9rem;
            display: block;
            padding: 0.5rem;
            border-radius: 4px;
        }

        .nav-link:hover {
            background: #21262d;
            color: #c9d1d9;
        }

        .main-content {
            flex: 1;
            min-width: 0;
        }

        .back-link {
            color: #58a6ff;
            text-decoration: none;
            display: inline-block;
            margin-bottom: 2rem;
            font-size: 0.9rem;
        }

        .header {
            border-bottom: 2px solid #21262d;
            padding-bottom: 1.5rem;
            margin-bottom: 2rem;
            display: flex;
            justify-content: space-between;
            align-items: flex-start;
        }

        .header-content {
            flex: 1;
        }

        h1 {
            font-size: 2rem;
            font-weight: 600;
            color: #58a6ff;
            margin-bottom: 0.5rem;
        }

        .metadata {
            color: #8b949e;
            font-size: 0.9rem;
        }

        .actions {
            text-align: right;
        }

        .action-button {
            color: #f85149;
            text-decoration: none;
            font-size: 0.9rem;
            padding: 0.5rem 1rem;
            border: 1px solid #30363d;
            border-radius: 4px;
            display: inline-block;
            margin-bottom: 0.5rem;
        }

        .stats {
            background: #0d1117;
            border: 1px solid #30363d;
            border-radius: 6px;
            padding: 1rem;
            margin-bottom: 2rem;
            display: grid;
            grid-template-columns: 1fr 1fr;
            gap: 1rem;
        }

        .stat {
            text-align: center;
        }

        .stat-value {
            font-size: 1.5rem;
            color: #58a6ff;
            font-weight: 600;
        }

        .stat-label {
            color: #8b949e;
            font-size: 0.85rem;
            text-transform: uppercase;
            letter-spacing: 0.5px;
        }

        .act-section {
            background: #161b22;
            border: 1px solid #30363d;
            border-radius: 6px;
            padding: 1.5rem;
            margin-bottom: 2rem;
        }

        .act-header {
            display: flex;
            justify-content: space-between;
            align-items: baseline;
            margin-bottom: 1rem;
            padding-bottom: 0.5rem;
            border-bottom: 1px solid #21262d;
        }

        .act-title {
            font-size: 1.3rem;
            font-weight: 600;
            color: #58a6ff;
        }

        .act-count {
            color: #f85149;
            font-size: 0.9rem;
        }

        .beat-entry {
            margin-bottom: 2rem;
            padding: 1rem;
            background: #0d1117;
            border-radius: 6px;
            border: 1px solid #21262d;
        }

        .beat-entry h2 {
            font-size: 1.25rem;
            font-weight: 600;
            margin: 0 0 0.75rem 0;
            padding-bottom: 0.5rem;
            border-bottom: 1px solid #21262d;
            color: #c9d1d9;
        }

        .beat-entry h3 {
            font-size: 1.1rem;
            font-weight: 500;
            margin: 0 0 0.5rem 0;
            color: #58a6ff;
        }

        .beat-entry p {
            margin-bottom: 0.75rem;
        }

        .beat-entry strong {
            color: #58a6ff;
            font-weight: 600;
        }

        .notice {
            text-align: center;
            padding: 3rem;
            color: #8b949e;
        }

        .notice.error {
            color: #f85149;
        }

        @media (max-width: 768px) {
            body {
                padding: 1rem;
            }

            .container {
                flex-direction: column;
                gap: 1rem;
            }

            .sidebar {
                position: static;
                width: 100%;
                order: -1;
            }

            h1 {
                font-size: 1.5rem;
            }
        }
"""


def act_anchor(act_no: int) -> str:
    """幕的页内锚点 id"""
    return f"act-{act_no}"


# ==================== 片段渲染 ====================

def render_sidebar(report: Optional[Report]) -> str:
    """侧边栏导航：Overview + 每幕一个链接"""
    items = ['<li class="nav-item"><a href="#overview" class="nav-link">Overview</a></li>']
    if report is not None:
        for act in report.acts:
            items.append(
                f'<li class="nav-item"><a href="#{act_anchor(act.act_no)}" '
                f'class="nav-link">Act {esc(act.act_no)}</a></li>'
            )
    nav_items = "\n                ".join(items)
    return f"""
        <nav class="sidebar">
            <h3>Quick Navigation</h3>
            <ul class="nav-list">
                {nav_items}
            </ul>
        </nav>"""


def render_beat_entry(beat: BeatView) -> str:
    """单个节拍条目；可选字段缺失时省略整行"""
    details = []
    for field_name, label in DETAIL_FIELDS:
        value = getattr(beat, field_name)
        if is_present(value):
            details.append(f"<p><strong>{label}:</strong> {esc(value)}</p>")
    detail_html = "\n                ".join(details)

    return f"""
            <div class="beat-entry">
                <h2>Beat {esc(beat.beat_number)}{scene_suffix(beat.scene_number)}</h2>
                <h3>{display("title", beat.title)}</h3>
                <p><strong>Description:</strong> {display("description", beat.description)}</p>
                {detail_html}
            </div>"""


def render_act_section(act: ActGroup) -> str:
    """单幕 section"""
    noun = "beat" if act.beat_count == 1 else "beats"
    entries = "".join(render_beat_entry(beat) for beat in act.beats)
    return f"""
        <section class="act-section" id="{act_anchor(act.act_no)}">
            <div class="act-header">
                <div class="act-title">Act {esc(act.act_no)}: {esc(act_label(act.act_no, act.act_title))}</div>
                <div class="act-count">{act.beat_count} {noun}</div>
            </div>
            <div class="act-beats">{entries}
            </div>
        </section>"""


def render_stats(report: Report) -> str:
    """汇总统计（幕数 / 节拍总数）"""
    return f"""
            <div class="stats">
                <div class="stat">
                    <div class="stat-value">{report.summary.total_acts}</div>
                    <div class="stat-label">Acts</div>
                </div>
                <div class="stat">
                    <div class="stat-value">{report.summary.total_beats}</div>
                    <div class="stat-label">Total Beats</div>
                </div>
            </div>"""


def render_document(sidebar: str, content: str, generated_at: datetime) -> str:
    """组装报表文档外框（返回链接、标题区、操作按钮）"""
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{esc(REPORT_TITLE)}</title>
    <style>{REPORT_CSS}
    </style>
</head>
<body>
    <div class="container">{sidebar}

        <main class="main-content">
            <a href="/" class="back-link">&larr; Back to Beat Sheets</a>

            <div class="header" id="overview">
                <div class="header-content">
                    <h1>{esc(REPORT_TITLE.upper())}</h1>
                    <div class="metadata">As of {esc(format_long_date(generated_at))}</div>
                </div>
                <div class="actions">
                    <a href="{CSV_EXPORT_PATH}" class="action-button">Download CSV</a>
                    <a href="{PRINT_EXPORT_PATH}" class="action-button">Print View</a>
                </div>
            </div>
{content}
        </main>
    </div>
</body>
</html>"""


# ==================== 投影入口 ====================

def project_html(report: Report) -> str:
    """
    将报表模型渲染为完整的 HTML 文档

    Args:
        report: 报表模型

    Returns:
        HTML 文本
    """
    if report.acts:
        sections = "".join(render_act_section(act) for act in report.acts)
    else:
        sections = render_notice(
            "No Beats Found",
            "There are currently no beats in the database. Add some beats to see them here."
        )

    content = render_stats(report) + sections
    return render_document(render_sidebar(report), content, report.generated_at)


def project_error_html(message: str, generated_at: datetime) -> str:
    """报表生成失败时的 HTML 页面（保留正常外框，导航仍可用）"""
    content = render_notice(
        "Report Unavailable",
        f"Unable to generate the beat sheets report due to a database error: {message}. "
        "Please try again later.",
        error=True,
    )
    return render_document(render_sidebar(None), content, generated_at)
