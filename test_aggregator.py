# -*- coding: utf-8 -*-
"""
节拍报表聚合器测试

本测试文件验证报表聚合：
1. 按幕分组与汇总统计
2. 单条查询与失败传播
3. 真实 SQLite 数据库下的当前版本过滤
"""
import pytest

from aggregator import REPORT_QUERY, aggregate, build_report, group_rows
from errors import DataAccessError
from row_source import MockRowSource, SQLiteRowSource


class TestGrouping:
    """测试按幕分组"""

    def test_two_acts_scenario(self, mock_source, now):
        """第 1 幕 {1,2}，第 2 幕 {1}"""
        report = aggregate(mock_source, now=now)

        assert report.summary.total_acts == 2
        assert report.summary.total_beats == 3
        assert [act.act_no for act in report.acts] == [1, 2]
        assert [beat.beat_number for beat in report.acts[0].beats] == [1, 2]
        assert [beat.beat_number for beat in report.acts[1].beats] == [1]

    def test_totals_match_rows(self, make_row):
        rows = [make_row(1, n) for n in range(1, 5)] + [make_row(3, n) for n in range(1, 3)]
        report = build_report(rows)

        assert report.summary.total_beats == len(rows)
        assert report.summary.total_beats == sum(act.beat_count for act in report.acts)

    def test_beats_per_act_matches_groups(self, two_act_rows):
        report = build_report(two_act_rows)
        summary = [item.to_dict() for item in report.summary.beats_per_act]

        assert summary == [
            {"act_no": 1, "act_title": "Setup", "beat_count": 2},
            {"act_no": 2, "act_title": "Confrontation", "beat_count": 1},
        ]

    def test_first_seen_act_title_wins(self, make_row):
        rows = [
            make_row(1, 1, act_title="Setup", act_id=7),
            make_row(1, 2, act_title="Setup (renamed)", act_id=8),
        ]
        group = group_rows(rows)[0]

        assert group.act_title == "Setup"
        assert group.act_id == 7

    def test_group_order_follows_input(self, make_row):
        """分组保持输入顺序，不重新排序"""
        rows = [make_row(2, 1), make_row(5, 1), make_row(9, 1)]
        assert [g.act_no for g in group_rows(rows)] == [2, 5, 9]

    def test_zero_rows(self, now):
        report = aggregate(MockRowSource(rows=[]), now=now)

        assert report.acts == ()
        assert report.summary.total_acts == 0
        assert report.summary.total_beats == 0
        assert report.summary.beats_per_act == ()

    def test_generated_at_injected(self, mock_source, now):
        assert aggregate(mock_source, now=now).generated_at == now


class TestQuery:
    """测试查询行为"""

    def test_single_query(self, mock_source):
        aggregate(mock_source)

        assert len(mock_source.calls) == 1
        sql, params = mock_source.calls[0]
        assert sql == REPORT_QUERY
        assert params == ()

    def test_query_orders_by_act_and_beat(self):
        assert "ORDER BY a.act_no, b.beat_number" in REPORT_QUERY
        assert "b.is_current = 1" in REPORT_QUERY

    def test_failure_propagates(self, failing_source):
        with pytest.raises(DataAccessError) as exc_info:
            aggregate(failing_source)

        assert "database is locked" in str(exc_info.value)
        # 不重试
        assert len(failing_source.calls) == 1


class TestSQLite:
    """使用真实 SQLite 数据库测试"""

    def test_reads_only_current_beats(self, sqlite_db):
        report = aggregate(SQLiteRowSource(sqlite_db))

        assert report.summary.total_beats == 3
        assert [act.act_no for act in report.acts] == [1, 2]
        titles = [beat.title for act in report.acts for beat in act.beats]
        assert titles == ["Opening Scene", "First Clue", "The Leak"]
        assert "First Clue (draft)" not in titles
        assert "Cut Scene" not in titles

    def test_act_without_beats_is_absent(self, sqlite_db):
        report = aggregate(SQLiteRowSource(sqlite_db))
        assert 3 not in [act.act_no for act in report.acts]

    def test_null_fields_stay_null(self, sqlite_db):
        report = aggregate(SQLiteRowSource(sqlite_db))
        leak = report.acts[1].beats[0]

        assert leak.conflict is None
        assert leak.description == 'He said, "go now"'

    def test_missing_database(self, tmp_path):
        source = SQLiteRowSource(str(tmp_path / "missing.db"))
        with pytest.raises(DataAccessError):
            aggregate(source)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
