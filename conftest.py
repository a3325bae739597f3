# -*- coding: utf-8 -*-
"""测试公共 fixture"""
import sqlite3
from datetime import datetime, timezone
from html.parser import HTMLParser
from pathlib import Path

import pytest

from row_source import MockRowSource

SCHEMA_PATH = Path(__file__).parent / "schema.sql"

FIXED_NOW = datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)


def build_row(act_no, beat_number, **overrides):
    """构造一行报表查询结果"""
    row = {
        "id": act_no * 100 + beat_number,
        "act_id": act_no * 10,
        "beat_number": beat_number,
        "scene_number": beat_number,
        "title": f"Beat {beat_number} of act {act_no}",
        "description": "Ally discovers the first signs of corruption",
        "conflict": "Internal vs. conscience",
        "emotion": "Curiosity mixed with unease",
        "location": "City Hall Office",
        "time_of_day": "Morning",
        "characters": "Ally, Secretary",
        "version": 1,
        "created_at": "2026-01-05 10:00:00",
        "updated_at": "2026-02-10 18:45:00",
        "act_no": act_no,
        "act_title": f"Act {act_no} Title",
    }
    row.update(overrides)
    return row


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def make_row():
    """行构造工厂"""
    return build_row


@pytest.fixture
def two_act_rows():
    """第 1 幕两个节拍，第 2 幕一个节拍（已按 act_no, beat_number 排序）"""
    return [
        build_row(1, 1, act_title="Setup"),
        build_row(1, 2, act_title="Setup"),
        build_row(2, 1, act_title="Confrontation"),
    ]


@pytest.fixture
def mock_source(two_act_rows):
    return MockRowSource(rows=two_act_rows)


@pytest.fixture
def failing_source():
    return MockRowSource(error="database is locked")


class _TagBalanceChecker(HTMLParser):
    """检查标签是否正确闭合"""

    VOID_ELEMENTS = {"meta", "br", "hr", "img", "input", "link"}

    def __init__(self):
        super().__init__()
        self.stack = []
        self.errors = []

    def handle_starttag(self, tag, attrs):
        if tag not in self.VOID_ELEMENTS:
            self.stack.append(tag)

    def handle_endtag(self, tag):
        if not self.stack or self.stack[-1] != tag:
            self.errors.append(f"unexpected </{tag}>, open: {self.stack[-3:]}")
            return
        self.stack.pop()


@pytest.fixture
def assert_well_formed():
    """返回断言函数：文档以 DOCTYPE 开头且标签全部闭合"""
    def check(document: str):
        assert document.lstrip().startswith("<!DOCTYPE html>")
        checker = _TagBalanceChecker()
        checker.feed(document)
        checker.close()
        assert checker.errors == []
        assert checker.stack == []
    return check


@pytest.fixture
def sqlite_db(tmp_path):
    """由 schema.sql 构建的临时数据库，含历史版本与已删除节拍"""
    db_path = tmp_path / "beats.db"
    conn = sqlite3.connect(db_path)
    try:
        conn.executescript(SCHEMA_PATH.read_text(encoding="utf-8"))
        conn.executemany(
            "INSERT INTO acts (id, act_no, title) VALUES (?, ?, ?)",
            [(10, 1, "Setup"), (20, 2, "Confrontation"), (30, 3, "Resolution")],
        )
        conn.executemany(
            """
            INSERT INTO beats (act_id, beat_number, scene_number, title, description,
                               conflict, emotion, location, time_of_day, characters,
                               version, is_current, is_deleted, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                # 故意乱序插入，验证 ORDER BY
                (20, 1, 3, "The Leak", 'He said, "go now"', None, "Dread", "Parking Garage",
                 "Night", "Ally, Source", 1, 1, 0, "2026-01-07 09:00:00", "2026-01-07 09:00:00"),
                (10, 2, 2, "First Clue", "A ledger that does not add up", "Loyalty vs. truth",
                 None, "Archive", None, "Ally", 2, 1, 0, "2026-01-05 10:00:00", "2026-03-01 12:00:00"),
                (10, 1, 1, "Opening Scene", "Ally discovers the first signs of corruption",
                 "Internal vs. conscience", "Curiosity", "City Hall Office", "Morning",
                 "Ally, Secretary", 1, 1, 0, "2026-01-05 10:00:00", "2026-01-05 10:00:00"),
                # 历史版本，不应被读取
                (10, 2, 2, "First Clue (draft)", "Old draft", None, None, None, None, None,
                 1, 0, 0, "2026-01-01 10:00:00", "2026-01-01 10:00:00"),
                # 已删除，不应被读取
                (20, 2, 4, "Cut Scene", "Removed", None, None, None, None, None,
                 1, 1, 1, "2026-01-08 10:00:00", "2026-01-08 10:00:00"),
            ],
        )
        conn.commit()
    finally:
        conn.close()
    return str(db_path)
