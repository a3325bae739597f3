# -*- coding: utf-8 -*-
"""节拍报表聚合器

一次联表查询取出所有当前版本的节拍（附带所属幕的编号和标题），
按 (act_no, beat_number) 升序，然后折叠为按幕分组的 Report 模型。

核心设计：
- 每个请求只发一条查询，失败直接抛出 DataAccessError，不重试
- 分组保持输入顺序：幕按首次出现的顺序排列（由 ORDER BY 保证即 act_no 升序）
- 同一幕的 act_title / act_id 取首次出现的值
"""
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from errors import DataAccessError
from models import ActGroup, ActSummary, BeatView, Report, ReportSummary
from row_source import Row, RowSource

logger = logging.getLogger(__name__)


REPORT_QUERY = """
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
    WHERE b.is_current = 1 AND b.is_deleted = 0
    ORDER BY a.act_no, b.beat_number
"""


def group_rows(rows: List[Row]) -> List[ActGroup]:
    """
    将已排序的行按幕折叠为 ActGroup 列表

    Args:
        rows: 按 (act_no, beat_number) 排好序的查询行

    Returns:
        按首次出现顺序排列的 ActGroup 列表
    """
    # dict 保持插入顺序，即首次出现顺序
    groups: Dict[int, dict] = {}
    for row in rows:
        act_no = row["act_no"]
        group = groups.get(act_no)
        if group is None:
            group = {
                "act_no": act_no,
                "act_id": row.get("act_id"),
                "act_title": row.get("act_title"),
                "beats": [],
            }
            groups[act_no] = group
        group["beats"].append(BeatView.from_row(row))

    return [
        ActGroup(
            act_no=g["act_no"],
            act_id=g["act_id"],
            act_title=g["act_title"],
            beats=tuple(g["beats"]),
        )
        for g in groups.values()
    ]


def build_report(rows: List[Row], now: Optional[datetime] = None) -> Report:
    """由查询行构建报表模型（纯函数）"""
    acts = group_rows(rows)

    total_beats = 0
    beats_per_act = []
    for act in acts:
        total_beats += act.beat_count
        beats_per_act.append(ActSummary(
            act_no=act.act_no,
            act_title=act.act_title,
            beat_count=act.beat_count,
        ))

    return Report(
        generated_at=now or datetime.now(timezone.utc),
        summary=ReportSummary(
            total_acts=len(acts),
            total_beats=total_beats,
            beats_per_act=tuple(beats_per_act),
        ),
        acts=tuple(acts),
    )


def aggregate(row_source: RowSource, now: Optional[datetime] = None) -> Report:
    """
    查询数据源并生成按幕分组的节拍报表

    Args:
        row_source: 已打开的数据源
        now: 报表生成时间（测试时注入），默认当前 UTC 时间

    Returns:
        Report 模型

    Raises:
        DataAccessError: 数据源查询失败
    """
    try:
        rows = row_source.query(REPORT_QUERY)
    except DataAccessError as e:
        logger.error("Beat report query failed: %s", e)
        raise

    report = build_report(rows, now=now)
    logger.debug(
        "Aggregated %d beats into %d acts",
        report.summary.total_beats, report.summary.total_acts
    )
    return report
