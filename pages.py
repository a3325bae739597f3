# -*- coding: utf-8 -*-
"""独立页面渲染

每个页面发出自己的窄查询并渲染一个完整 HTML 文档，不经过报表模型：
1. 节拍详情页 - /ally/act/{act_no}/beat/{beat_number}
2. 单幕节拍列表 - /ally/act/{act_no}
3. 全部节拍 - /ally/beats/all
4. 幕总览 - /ally
5. 首页 - /

状态码约定：
- 行不存在：200，在正常布局中显示“未找到”提示
- 数据库失败：500，仍在正常布局中显示错误说明，导航可用
"""
import logging
from dataclasses import dataclass
from itertools import groupby
from typing import List, Tuple

from errors import DataAccessError, NotFound
from models import Act, Beat
from presentation import (
    DETAIL_FIELDS, act_label, display, esc, format_date, render_header,
    render_layout, render_notice, scene_suffix,
)
from row_source import Row, RowSource

logger = logging.getLogger(__name__)


PROJECT_NAME = "ALLY"
ACCENT_COLOR = "#f85149"


@dataclass
class PageResult:
    """页面渲染结果"""
    html: str
    status: int = 200


# ==================== 查询 ====================

BEAT_QUERY = """
    SELECT
        b.id,
        b.act_id,
        b.beat_number,
        b.scene_number,
        b.title,
        b.description,
        b.conflict,
        b.emotion,
        b.location,
        b.time_of_day,
        b.characters,
        b.version,
        b.created_at,
        b.updated_at,
        a.act_no,
        a.title AS act_title
    FROM beats b
    JOIN acts a ON b.act_id = a.id
    WHERE a.act_no = ? AND b.beat_number = ? AND b.is_current = 1 AND b.is_deleted = 0
"""

ACT_QUERY = "SELECT act_no, title FROM acts WHERE act_no = ?"

ACT_BEATS_QUERY = """
    SELECT
        b.beat_number,
        b.scene_number,
        b.title,
        b.description,
        a.title AS act_title
    FROM beats b
    JOIN acts a ON b.act_id = a.id
    WHERE a.act_no = ? AND b.is_current = 1 AND b.is_deleted = 0
    ORDER BY b.beat_number
"""

ALL_BEATS_QUERY = """
    SELECT
        b.beat_number,
        b.scene_number,
        b.title,
        b.description,
        a.act_no,
        a.title AS act_title
    FROM beats b
    JOIN acts a ON b.act_id = a.id
    WHERE b.is_current = 1 AND b.is_deleted = 0
    ORDER BY a.act_no, b.beat_number
"""

ACTS_OVERVIEW_QUERY = """
    SELECT
        a.act_no,
        a.title,
        COUNT(b.id) AS beat_count
    FROM acts a
    LEFT JOIN beats b ON a.id = b.act_id AND b.is_current = 1 AND b.is_deleted = 0
    GROUP BY a.id, a.act_no, a.title
    ORDER BY a.act_no
"""


def _fetch_beat(row_source: RowSource, act_no: int, beat_number: int) -> Tuple[Beat, str]:
    row = row_source.query_one(BEAT_QUERY, (act_no, beat_number))
    if row is None:
        raise NotFound(f"Beat {beat_number} in act {act_no}")
    return Beat.from_row(row), act_label(act_no, row.get("act_title"))


def _fetch_act(row_source: RowSource, act_no: int) -> Act:
    row = row_source.query_one(ACT_QUERY, (act_no,))
    if row is None:
        raise NotFound(f"Act {act_no}")
    return Act(act_no=row["act_no"], title=row["title"])


def _act_title_or_default(row_source: RowSource, act_no: int) -> str:
    """查不到幕时回退为 'Act N'"""
    try:
        return act_label(act_no, _fetch_act(row_source, act_no).title)
    except NotFound:
        return act_label(act_no)


# ==================== 节拍详情页 ====================

BEAT_PAGE_CSS = """
        .back-link {
            color: #58a6ff;
            text-decoration: none;
            display: inline-block;
            margin-bottom: 2rem;
        }

        .metadata {
            color: #8b949e;
            font-size: 0.9rem;
            display: flex;
            gap: 2rem;
            justify-content: center;
        }

        .content-section {
            background: #111;
            border: 1px solid #333;
            border-radius: 8px;
            padding: 2rem;
            margin-bottom: 2rem;
        }

        .content-section h2 {
            font-size: 1.8rem;
            margin-bottom: 1rem;
        }

        .content-section p {
            color: #ccc;
            line-height: 1.8;
            font-size: 1.1rem;
        }

        .beat-details {
            display: grid;
            grid-template-columns: repeat(auto-fit, minmax(250px, 1fr));
            gap: 1.5rem;
            margin-bottom: 2rem;
        }

        .detail-card {
            background: #111;
            border: 1px solid #333;
            border-radius: 8px;
            padding: 1.5rem;
        }

        .detail-card h3 {
            color: #58a6ff;
            font-size: 1rem;
            text-transform: uppercase;
            letter-spacing: 1px;
            margin-bottom: 0.75rem;
        }

        .detail-card p {
            color: #ccc;
        }

        .navigation {
            display: flex;
            justify-content: space-between;
            gap: 1rem;
        }

        .nav-button {
            color: #fff;
            text-decoration: none;
            padding: 0.75rem 1.5rem;
            border: 1px solid #333;
            border-radius: 4px;
        }

        .nav-button:hover {
            background: #333;
        }

        @media (max-width: 768px) {
            .navigation {
                flex-direction: column;
            }
        }
"""


def _beat_navigation(act_no: int, beat_number: int, act_title: str) -> str:
    """上一拍 / 本幕总览 / 下一拍；第 1 拍时隐藏“上一拍”"""
    hidden = ' style="visibility: hidden;"' if beat_number <= 1 else ""
    return f"""
        <div class="navigation">
            <a href="/ally/act/{act_no}/beat/{beat_number - 1}" class="nav-button"{hidden}>&larr; Previous Beat</a>
            <a href="/ally/act/{act_no}" class="nav-button">{esc(act_title)} Overview</a>
            <a href="/ally/act/{act_no}/beat/{beat_number + 1}" class="nav-button">Next Beat &rarr;</a>
        </div>"""


def _beat_page(act_no: int, beat_number: int, act_title: str, heading: str, main: str) -> str:
    body = f"""
        <a href="/ally/act/{act_no}" class="back-link">&larr; Back to {esc(act_title)}</a>
        <div class="header">
            <h1>{heading}</h1>
        </div>
{main}
{_beat_navigation(act_no, beat_number, act_title)}"""
    return render_layout(f"{PROJECT_NAME} - Beat {beat_number}", body, BEAT_PAGE_CSS)


def render_beat_page(row_source: RowSource, act_no: int, beat_number: int) -> PageResult:
    """
    渲染单个节拍的详情页

    Args:
        row_source: 已打开的数据源
        act_no: 幕编号
        beat_number: 节拍编号

    Returns:
        PageResult；节拍不存在时 200 + 未找到提示，数据库失败时 500
    """
    heading = f"Beat {esc(beat_number)}"
    try:
        beat, act_title = _fetch_beat(row_source, act_no, beat_number)
    except NotFound:
        try:
            act_title = _act_title_or_default(row_source, act_no)
        except DataAccessError as e:
            return _beat_error_page(act_no, beat_number, e)
        notice = render_notice(
            "Beat Not Found",
            f"Beat {beat_number} was not found in {act_title}. "
            "This beat may not exist yet or may have been removed."
        )
        return PageResult(_beat_page(act_no, beat_number, act_title, heading, notice))
    except DataAccessError as e:
        return _beat_error_page(act_no, beat_number, e)

    cards = "".join(f"""
            <div class="detail-card">
                <h3>{label}</h3>
                <p>{display(field_name, getattr(beat, field_name))}</p>
            </div>""" for field_name, label in DETAIL_FIELDS)

    main = f"""
        <div class="metadata">
            <span>Last updated: {esc(format_date(beat.updated_at))}</span>
            <span>Created: {esc(format_date(beat.created_at))}</span>
            <span>Version: {esc(beat.version)}</span>
        </div>

        <div class="content-section">
            <h2>{display("title", beat.title)}</h2>
            <p>{display("description", beat.description)}</p>
        </div>

        <div class="beat-details">{cards}
        </div>"""

    heading = f"Beat {esc(beat_number)}{scene_suffix(beat.scene_number)}"
    return PageResult(_beat_page(act_no, beat_number, act_title, heading, main))


def _beat_error_page(act_no: int, beat_number: int, error: DataAccessError) -> PageResult:
    logger.error("Database error loading beat %s of act %s: %s", beat_number, act_no, error)
    notice = render_notice(
        "Database Error",
        f"Unable to load beat data due to a database error: {error}. Please try again later.",
        error=True,
    )
    html = _beat_page(act_no, beat_number, act_label(act_no), f"Beat {esc(beat_number)}", notice)
    return PageResult(html, 500)


# ==================== 列表页 ====================

def _beat_card(act_no: int, row: Row) -> str:
    beat_number = row["beat_number"]
    return f"""
            <div class="card">
                <a href="/ally/act/{esc(act_no)}/beat/{esc(beat_number)}">
                    <h3>Beat {esc(beat_number)}{scene_suffix(row.get("scene_number"))}</h3>
                    <p>{display("title", row.get("title"))}</p>
                </a>
            </div>"""


def _link_card(href: str, heading: str, text: str, color: str = "") -> str:
    style = f' style="color: {color};"' if color else ""
    return f"""
            <div class="card">
                <a href="{href}">
                    <h3{style}>{esc(heading)}</h3>
                    <p>{esc(text)}</p>
                </a>
            </div>"""


def _listing_page(title: str, subtitle: str, back_href: str, back_text: str,
                  cards: str, extra_css: str = "") -> str:
    body = f"""{render_header(PROJECT_NAME, subtitle, ACCENT_COLOR)}
        <div class="nav">
            <a href="{back_href}">&larr; {esc(back_text)}</a>
        </div>

        <div class="card-grid">{cards}
        </div>"""
    return render_layout(title, body, extra_css)


def render_act_page(row_source: RowSource, act_no: int) -> PageResult:
    """渲染单幕的节拍列表页"""
    act_title = act_label(act_no)
    status = 200
    cards = _link_card(
        "/ally/beats/all", "All Beats",
        "View all beats across all acts with navigation to individual beat details.",
        "#667eea",
    )

    try:
        rows = row_source.query(ACT_BEATS_QUERY, (act_no,))
        if rows:
            act_title = act_label(act_no, rows[0].get("act_title"))
            cards += "".join(_beat_card(act_no, row) for row in rows)
        else:
            act_title = _act_title_or_default(row_source, act_no)
            cards += render_notice(
                "No Beats Found",
                f"There are currently no beats for {act_title}. Add some beats to see them here."
            )
    except DataAccessError as e:
        logger.error("Database error loading beats for act %s: %s", act_no, e)
        status = 500
        cards += render_notice(
            "Database Error",
            f"Unable to load beats for {act_title}. Please try again later.",
            error=True,
        )

    html = _listing_page(
        f"{PROJECT_NAME} - {act_title} Beats", f"ACT {act_no} BEATS",
        "/ally", "Back to Acts", cards,
    )
    return PageResult(html, status)


ALL_BEATS_CSS = """
        .act-divider {
            grid-column: 1 / -1;
            text-align: center;
            border-top: 2px solid #333;
            padding-top: 2rem;
        }

        .act-divider:first-child {
            border-top: none;
            padding-top: 0;
        }

        .act-divider h2 {
            font-size: 1.8rem;
            color: #667eea;
            font-weight: 600;
        }
"""


def render_all_beats_page(row_source: RowSource) -> PageResult:
    """渲染全部节拍页（按幕分隔）"""
    status = 200
    try:
        rows = row_source.query(ALL_BEATS_QUERY)
    except DataAccessError as e:
        logger.error("Database error loading all beats: %s", e)
        status = 500
        cards = render_notice("Database Error", "Unable to load beats. Please try again later.", error=True)
    else:
        if not rows:
            cards = render_notice(
                "No Beats Found",
                "There are currently no beats in the database. Add some beats to see them here."
            )
        else:
            parts: List[str] = []
            for act_no, act_rows in groupby(rows, key=lambda r: r["act_no"]):
                act_rows = list(act_rows)
                act_title = act_label(act_no, act_rows[0].get("act_title"))
                parts.append(f'\n            <div class="act-divider"><h2>{esc(act_title)}</h2></div>')
                parts.extend(_beat_card(act_no, row) for row in act_rows)
            cards = "".join(parts)

    html = _listing_page(
        f"{PROJECT_NAME} - All Beats", "All Beats - Complete Beat Sheet Overview",
        "/ally", "Back to Acts", cards, ALL_BEATS_CSS,
    )
    return PageResult(html, status)


def render_acts_overview(row_source: RowSource) -> PageResult:
    """渲染幕总览页：每幕一张卡片（含当前节拍数）"""
    status = 200
    cards = _link_card(
        "/ally/beats/all", "All Beats",
        "Complete beat sheet across all acts with detailed scene breakdown and export options.",
        "#667eea",
    )

    try:
        rows = row_source.query(ACTS_OVERVIEW_QUERY)
    except DataAccessError as e:
        logger.error("Database error loading acts overview: %s", e)
        status = 500
        cards += render_notice("Database Error", "Unable to load acts. Please try again later.", error=True)
    else:
        if not rows:
            cards += render_notice("No Acts Found", "There are currently no acts in the database.")
        for row in rows:
            act = Act(act_no=row["act_no"], title=row["title"])
            count = row.get("beat_count") or 0
            noun = "beat" if count == 1 else "beats"
            cards += _link_card(
                f"/ally/act/{act.act_no}",
                f"Act {act.act_no}: {act_label(act.act_no, act.title)}",
                f"{count} {noun}. Each beat represents one scene in this act.",
            )

    html = _listing_page(
        f"{PROJECT_NAME} - Beat Sheets Overview", "BEAT SHEETS OVERVIEW",
        "/", "Back to Projects", cards,
    )
    return PageResult(html, status)


def render_homepage() -> PageResult:
    """首页：项目入口与报表导出链接（无查询）"""
    cards = "".join((
        _link_card("/ally", f"{PROJECT_NAME} Beat Sheets",
                   "Beat sheets for the screenplay. Track story beats, scene structure and narrative flow."),
        _link_card("/ally/beats/all", "All Beats", "Every current beat across all acts."),
        _link_card("/api/reports/beats/html", "Beats Report",
                   "Beats grouped by act with summary statistics."),
        _link_card("/api/reports/beats/csv", "CSV Export", "Download the beats report as CSV."),
    ))
    body = f"""{render_header("Beat Sheets", "Screenplay Beat Sheets")}
        <div class="card-grid">{cards}
        </div>"""
    return PageResult(render_layout("Beat Sheets", body))
