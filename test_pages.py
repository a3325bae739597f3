# -*- coding: utf-8 -*-
"""
独立页面渲染测试

本测试文件验证各个页面：
1. 节拍详情页（找到 / 未找到 / 数据库错误）
2. 单幕节拍列表页
3. 全部节拍页与幕总览页
4. 首页
"""
import pytest

from pages import (
    ACT_QUERY, BEAT_QUERY, render_act_page, render_acts_overview,
    render_all_beats_page, render_beat_page, render_homepage,
)
from row_source import MockRowSource, SQLiteRowSource


class TestBeatPage:
    """测试节拍详情页"""

    def test_found(self, make_row, assert_well_formed):
        source = MockRowSource(rows=[make_row(1, 2, scene_number=5, act_title="Setup")])
        page = render_beat_page(source, 1, 2)

        assert page.status == 200
        assert_well_formed(page.html)
        assert "Beat 2 (Scene 5)" in page.html
        assert "Beat 2 of act 1" in page.html
        assert "City Hall Office" in page.html
        assert "&larr; Back to Setup" in page.html
        assert "Last updated: February 10, 2026" in page.html
        assert "Created: January 5, 2026" in page.html

    def test_single_query_when_found(self, make_row):
        source = MockRowSource(rows=[make_row(1, 2)])
        render_beat_page(source, 1, 2)

        assert source.calls == [(BEAT_QUERY, (1, 2))]

    def test_scene_number_zero(self, make_row):
        page = render_beat_page(MockRowSource(rows=[make_row(1, 1, scene_number=0)]), 1, 1)
        assert "Beat 1 (Scene 0)" in page.html

    def test_missing_fields_use_shared_defaults(self, make_row):
        row = make_row(1, 1, title=None, description=None, conflict=None,
                       emotion=None, created_at=None)
        page = render_beat_page(MockRowSource(rows=[row]), 1, 1)

        assert "Untitled Beat" in page.html
        assert "No description available." in page.html
        assert page.html.count("Not specified") == 2
        assert "Created: Unknown" in page.html

    def test_not_found_with_existing_act(self, assert_well_formed):
        """节拍不存在但幕存在：200，显示幕标题"""
        source = MockRowSource(responses=[[], [{"act_no": 2, "title": "Confrontation"}]])
        page = render_beat_page(source, 2, 9)

        assert page.status == 200
        assert_well_formed(page.html)
        assert "Beat 9 was not found in Confrontation." in page.html
        assert "Back to Confrontation" in page.html
        assert source.calls[1] == (ACT_QUERY, (2,))

    def test_not_found_without_act(self):
        source = MockRowSource(responses=[[], []])
        page = render_beat_page(source, 7, 1)

        assert page.status == 200
        assert "Beat 1 was not found in Act 7." in page.html

    def test_database_error(self, failing_source, assert_well_formed):
        page = render_beat_page(failing_source, 1, 1)

        assert page.status == 500
        assert_well_formed(page.html)
        assert "Database Error" in page.html
        assert "database is locked" in page.html
        # 导航仍可用
        assert 'href="/ally/act/1"' in page.html

    def test_previous_hidden_on_first_beat(self, make_row):
        page = render_beat_page(MockRowSource(rows=[make_row(1, 1)]), 1, 1)
        assert 'class="nav-button" style="visibility: hidden;">&larr; Previous Beat' in page.html

    def test_navigation_links(self, make_row):
        page = render_beat_page(MockRowSource(rows=[make_row(2, 4)]), 2, 4)

        assert 'href="/ally/act/2/beat/3" class="nav-button">' in page.html
        assert 'href="/ally/act/2/beat/5"' in page.html

    def test_escaping(self, make_row):
        row = make_row(1, 1, title="<script>x</script>", act_title="A & B")
        page = render_beat_page(MockRowSource(rows=[row]), 1, 1)

        assert "<script>x" not in page.html
        assert "Back to A &amp; B" in page.html

    def test_sqlite(self, sqlite_db):
        page = render_beat_page(SQLiteRowSource(sqlite_db), 1, 2)

        assert page.status == 200
        assert "First Clue" in page.html
        assert "First Clue (draft)" not in page.html
        assert "Version: 2" in page.html


class TestActPage:
    """测试单幕节拍列表页"""

    def test_lists_beats(self, two_act_rows, assert_well_formed):
        source = MockRowSource(rows=two_act_rows[:2])
        page = render_act_page(source, 1)

        assert page.status == 200
        assert_well_formed(page.html)
        assert 'href="/ally/act/1/beat/1"' in page.html
        assert 'href="/ally/act/1/beat/2"' in page.html
        assert "<title>ALLY - Setup Beats</title>" in page.html

    def test_card_shows_scene_number_zero(self, make_row):
        page = render_act_page(MockRowSource(rows=[make_row(1, 1, scene_number=0)]), 1)
        assert "<h3>Beat 1 (Scene 0)</h3>" in page.html

    def test_empty_act(self, assert_well_formed):
        source = MockRowSource(responses=[[], [{"act_no": 3, "title": "Resolution"}]])
        page = render_act_page(source, 3)

        assert page.status == 200
        assert_well_formed(page.html)
        assert "No Beats Found" in page.html
        assert "no beats for Resolution" in page.html

    def test_database_error(self, failing_source, assert_well_formed):
        page = render_act_page(failing_source, 1)

        assert page.status == 500
        assert_well_formed(page.html)
        assert "Unable to load beats for Act 1." in page.html

    def test_sqlite_empty_act(self, sqlite_db):
        page = render_act_page(SQLiteRowSource(sqlite_db), 3)
        assert "no beats for Resolution" in page.html


class TestAllBeatsPage:
    """测试全部节拍页"""

    def test_grouped_by_act(self, two_act_rows, assert_well_formed):
        page = render_all_beats_page(MockRowSource(rows=two_act_rows))

        assert page.status == 200
        assert_well_formed(page.html)
        assert page.html.index("<h2>Setup</h2>") < page.html.index("<h2>Confrontation</h2>")
        assert 'href="/ally/act/2/beat/1"' in page.html

    def test_empty(self):
        page = render_all_beats_page(MockRowSource(rows=[]))
        assert page.status == 200
        assert "No Beats Found" in page.html

    def test_database_error(self, failing_source, assert_well_formed):
        page = render_all_beats_page(failing_source)

        assert page.status == 500
        assert_well_formed(page.html)
        assert "Database Error" in page.html

    def test_sqlite(self, sqlite_db):
        page = render_all_beats_page(SQLiteRowSource(sqlite_db))

        assert page.html.count('class="act-divider"') == 2
        assert "Cut Scene" not in page.html


class TestActsOverview:
    """测试幕总览页"""

    def test_lists_acts_with_counts(self, sqlite_db, assert_well_formed):
        page = render_acts_overview(SQLiteRowSource(sqlite_db))

        assert page.status == 200
        assert_well_formed(page.html)
        assert "Act 1: Setup" in page.html
        assert "Act 3: Resolution" in page.html
        assert "2 beats." in page.html
        assert "1 beat." in page.html
        assert "0 beats." in page.html

    def test_no_acts(self):
        page = render_acts_overview(MockRowSource(rows=[]))
        assert "No Acts Found" in page.html

    def test_database_error(self, failing_source):
        page = render_acts_overview(failing_source)
        assert page.status == 500
        assert "Unable to load acts." in page.html


class TestHomepage:
    """测试首页"""

    def test_links(self, assert_well_formed):
        page = render_homepage()

        assert page.status == 200
        assert_well_formed(page.html)
        assert 'href="/ally"' in page.html
        assert 'href="/api/reports/beats/csv"' in page.html


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
