# -*- coding: utf-8 -*-
"""核心数据结构定义

Act / Beat 描述数据库中的行；Report 系列是报表聚合后的内存模型，
每个请求独立构建，构建完成后不可变（frozen dataclass + tuple）。
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple


REPORT_TYPE = "beats_by_act"


@dataclass(frozen=True)
class Act:
    """幕实体"""
    act_no: int
    title: str


@dataclass(frozen=True)
class Beat:
    """节拍实体（1 个场景 = 1 个节拍）"""
    id: int
    act_id: int
    beat_number: int
    title: str
    scene_number: Optional[int] = None
    description: Optional[str] = None
    conflict: Optional[str] = None
    emotion: Optional[str] = None
    location: Optional[str] = None
    time_of_day: Optional[str] = None
    characters: Optional[str] = None
    version: int = 1
    is_current: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Beat":
        """从查询行构建，is_current 由 SQLite 的 0/1 转为布尔值"""
        return cls(
            id=row["id"],
            act_id=row["act_id"],
            beat_number=row["beat_number"],
            title=row.get("title"),
            scene_number=row.get("scene_number"),
            description=row.get("description"),
            conflict=row.get("conflict"),
            emotion=row.get("emotion"),
            location=row.get("location"),
            time_of_day=row.get("time_of_day"),
            characters=row.get("characters"),
            version=row.get("version") or 1,
            is_current=bool(row.get("is_current", 1)),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )


# ==================== 报表模型 ====================

@dataclass(frozen=True)
class BeatView:
    """报表中的节拍投影 - 保留原始可空字段，不做占位符替换"""
    beat_number: int
    scene_number: Optional[int] = None
    title: Optional[str] = None
    description: Optional[str] = None
    conflict: Optional[str] = None
    emotion: Optional[str] = None
    location: Optional[str] = None
    time_of_day: Optional[str] = None
    characters: Optional[str] = None
    version: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "BeatView":
        """从查询行构建"""
        return cls(
            beat_number=row["beat_number"],
            scene_number=row.get("scene_number"),
            title=row.get("title"),
            description=row.get("description"),
            conflict=row.get("conflict"),
            emotion=row.get("emotion"),
            location=row.get("location"),
            time_of_day=row.get("time_of_day"),
            characters=row.get("characters"),
            version=row.get("version"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "beat_number": self.beat_number,
            "scene_number": self.scene_number,
            "title": self.title,
            "description": self.description,
            "conflict": self.conflict,
            "emotion": self.emotion,
            "location": self.location,
            "time_of_day": self.time_of_day,
            "characters": self.characters,
            "version": self.version,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class ActGroup:
    """按幕分组的节拍集合，beats 按 beat_number 升序"""
    act_no: int
    act_id: Optional[int]
    act_title: Optional[str]
    beats: Tuple[BeatView, ...] = ()

    @property
    def beat_count(self) -> int:
        return len(self.beats)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "act_no": self.act_no,
            "act_id": self.act_id,
            "act_title": self.act_title,
            "beats": [beat.to_dict() for beat in self.beats],
            "beat_count": self.beat_count,
        }


@dataclass(frozen=True)
class ActSummary:
    """summary.beats_per_act 中的单项"""
    act_no: int
    act_title: Optional[str]
    beat_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "act_no": self.act_no,
            "act_title": self.act_title,
            "beat_count": self.beat_count,
        }


@dataclass(frozen=True)
class ReportSummary:
    """报表汇总统计"""
    total_acts: int = 0
    total_beats: int = 0
    beats_per_act: Tuple[ActSummary, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_acts": self.total_acts,
            "total_beats": self.total_beats,
            "beats_per_act": [item.to_dict() for item in self.beats_per_act],
        }


@dataclass(frozen=True)
class Report:
    """
    报表模型 - 所有导出格式共享的中间表示

    不变式：
    - summary.total_beats == sum(act.beat_count for act in acts)
    - acts 按 act_no 升序
    """
    generated_at: datetime
    summary: ReportSummary = field(default_factory=ReportSummary)
    acts: Tuple[ActGroup, ...] = ()
    report_type: str = REPORT_TYPE

    @property
    def generation_date(self) -> str:
        """生成日期（ISO 格式，YYYY-MM-DD）"""
        return self.generated_at.date().isoformat()

    def to_dict(self) -> Dict[str, Any]:
        """转换为 JSON 原生结构（JSON 导出的规范形式）"""
        return {
            "report_type": self.report_type,
            "generated_at": self.generated_at.isoformat(),
            "summary": self.summary.to_dict(),
            "acts": [act.to_dict() for act in self.acts],
        }
