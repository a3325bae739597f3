# -*- coding: utf-8 -*-
"""页面展示公共工具

报表 HTML 与各个独立页面共用：
1. HTML 转义
2. 字段缺省文案表（统一占位符，保证报表页与节拍页措辞一致）
3. 日期格式化
4. 页面外框（样式与导航）
"""
import html
from datetime import datetime
from typing import Any, Optional


# ==================== 字段缺省文案 ====================

NOT_SPECIFIED = "Not specified"
UNKNOWN = "Unknown"

FIELD_DEFAULTS = {
    "title": "Untitled Beat",
    "description": "No description available.",
    "conflict": NOT_SPECIFIED,
    "emotion": NOT_SPECIFIED,
    "location": NOT_SPECIFIED,
    "time_of_day": NOT_SPECIFIED,
    "characters": NOT_SPECIFIED,
    "created_at": UNKNOWN,
    "updated_at": UNKNOWN,
}

# 可选详情字段及其展示标签（报表与节拍页顺序一致）
DETAIL_FIELDS = (
    ("conflict", "Conflict"),
    ("emotion", "Emotion"),
    ("location", "Location"),
    ("time_of_day", "Time of Day"),
    ("characters", "Characters"),
)


def is_present(value: Any) -> bool:
    """字段是否有值：只有 None 与空字符串视为缺失"""
    if value is None:
        return False
    if isinstance(value, str):
        return value != ""
    return True


def esc(value: Any) -> str:
    """转义后插入 HTML，None 输出空字符串"""
    if value is None:
        return ""
    return html.escape(str(value), quote=True)


def default_for(field_name: str) -> str:
    return FIELD_DEFAULTS.get(field_name, NOT_SPECIFIED)


def display(field_name: str, value: Any) -> str:
    """有值时返回转义后的值，否则返回该字段的缺省文案"""
    if is_present(value):
        return esc(value)
    return esc(default_for(field_name))


def act_label(act_no: int, act_title: Optional[str] = None) -> str:
    """幕标题，缺失时回退为 'Act N'"""
    return act_title if is_present(act_title) else f"Act {act_no}"


def scene_suffix(scene_number: Optional[int]) -> str:
    """有场景号时返回 ' (Scene N)'"""
    return f" (Scene {esc(scene_number)})" if scene_number is not None else ""


# ==================== 日期格式化 ====================

def parse_timestamp(value: Any) -> Optional[datetime]:
    """解析 ISO-8601 或 SQLite CURRENT_TIMESTAMP 格式，失败返回 None"""
    if isinstance(value, datetime):
        return value
    if not is_present(value):
        return None
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def format_date(value: Any, default: str = UNKNOWN) -> str:
    """格式化为 'October 19, 2026'，缺失返回 default，无法解析时原样返回"""
    if not is_present(value):
        return default
    parsed = parse_timestamp(value)
    if parsed is None:
        return str(value)
    return f"{parsed.strftime('%B')} {parsed.day}, {parsed.year}"


def format_long_date(value: datetime) -> str:
    """格式化为 'Monday, October 19, 2026'"""
    return f"{value.strftime('%A')}, {value.strftime('%B')} {value.day}, {value.year}"


# ==================== 页面外框 ====================

BASE_CSS = """
        * {
            margin: 0;
            padding: 0;
            box-sizing: border-box;
        }

        body {
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Oxygen, Ubuntu, Cantarell, sans-serif;
            background: #0a0a0a;
            min-height: 100vh;
            color: #fff;
            padding: 2rem;
        }

        .container {
            max-width: 1200px;
            margin: 0 auto;
        }

        .header {
            text-align: center;
            margin-bottom: 3rem;
            padding-bottom: 2rem;
            border-bottom: 1px solid #333;
        }

        .header h1 {
            font-size: 3rem;
            font-weight: 300;
            margin-bottom: 1rem;
            font-family: Georgia, 'Times New Roman', serif;
            letter-spacing: 2px;
        }

        .header .subtitle {
            font-size: 1.2rem;
            font-weight: 600;
            color: #888;
        }

        .nav {
            margin-bottom: 2rem;
        }

        .nav a {
            color: #fff;
            text-decoration: none;
            font-size: 1rem;
            padding: 0.5rem 1rem;
            border-radius: 4px;
        }

        .nav a:hover {
            background: #333;
        }

        .card-grid {
            display: grid;
            grid-template-columns: repeat(auto-fit, minmax(300px, 1fr));
            gap: 2rem;
        }

        .card {
            background: #111;
            border: 1px solid #333;
            border-radius: 8px;
            padding: 2rem;
        }

        .card:hover {
            border-color: #555;
        }

        .card h3 {
            font-size: 1.5rem;
            margin-bottom: 1rem;
        }

        .card p {
            color: #ccc;
            line-height: 1.6;
        }

        .card a {
            color: inherit;
            text-decoration: none;
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
            .header h1 {
                font-size: 2rem;
            }

            .card-grid {
                grid-template-columns: 1fr;
            }
        }
"""


def render_header(title: str, subtitle: str, subtitle_color: str = "#888") -> str:
    """所有页面一致的标题区"""
    return f"""
    <div class="header">
        <h1>{esc(title)}</h1>
        <p class="subtitle" style="color: {subtitle_color};">{esc(subtitle)}</p>
    </div>
    """


def render_notice(heading: str, message: str, error: bool = False) -> str:
    """空状态 / 未找到 / 错误提示块"""
    css_class = "notice error" if error else "notice"
    return f"""
        <div class="{css_class}">
            <h3>{esc(heading)}</h3>
            <p>{esc(message)}</p>
        </div>
    """


def render_layout(title: str, body: str, extra_css: str = "") -> str:
    """
    组装完整 HTML 文档

    Args:
        title: <title> 文本（会被转义）
        body: 已转义的正文 HTML
        extra_css: 追加到公共样式之后的页面样式
    """
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{esc(title)}</title>
    <style>{BASE_CSS}{extra_css}
    </style>
</head>
<body>
    <div class="container">
{body}
    </div>
</body>
</html>"""
