# -*- coding: utf-8 -*-
"""命令行入口

1. 导出节拍报表（JSON / HTML / CSV / 打印版 HTML）到文件或标准输出
2. 启动 Web 服务
"""
import argparse
import logging
import os
import sys
from typing import List, Optional

from config import configure_logging, load_settings
from projectors import ReportFormat, export_report
from row_source import SQLiteRowSource

logger = logging.getLogger(__name__)


def write_output(body, output_path: Optional[str]) -> None:
    """写入文件或标准输出"""
    data = body.encode("utf-8") if isinstance(body, str) else body
    if output_path:
        with open(output_path, "wb") as f:
            f.write(data)
        logger.info("Report saved to %s", output_path)
    else:
        sys.stdout.buffer.write(data)
        sys.stdout.flush()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="节拍表报表导出工具",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
示例:
  # 导出 CSV 报表
  python main.py --database beats.db --format csv --output report.csv

  # 输出 JSON 报表到标准输出
  python main.py --format json

  # 启动 Web 服务
  python main.py --serve
        """
    )

    parser.add_argument(
        "--database", "-d",
        type=str,
        default=None,
        help="SQLite 数据库路径（默认读取 BEAT_SHEETS_DATABASE）"
    )

    parser.add_argument(
        "--format", "-f",
        type=str,
        choices=[fmt.value for fmt in ReportFormat],
        default=ReportFormat.JSON.value,
        help="导出格式（pdf 为打印版 HTML，默认 json）"
    )

    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="输出文件路径（默认输出到标准输出）"
    )

    parser.add_argument(
        "--serve",
        action="store_true",
        help="启动 Web 服务而不是导出报表"
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """主函数 - 命令行入口"""
    args = build_parser().parse_args(argv)
    settings = load_settings()
    configure_logging(settings.log_level)

    if args.serve:
        from api import run_server
        run_server(settings)
        return 0

    database_path = args.database or settings.database_path
    if not os.path.exists(database_path):
        logger.error("Database file does not exist: %s", database_path)
        return 1

    result = export_report(SQLiteRowSource(database_path), ReportFormat(args.format))
    if result.status != 200:
        logger.error("Report export failed (status %d)", result.status)
        return 1

    write_output(result.body, args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
