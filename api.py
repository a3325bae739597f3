# -*- coding: utf-8 -*-
"""
FastAPI Web 接口层 - 请求分发

本模块把 URL 路径映射到页面渲染或报表导出：
1. HTML 页面：首页、幕总览、单幕节拍、节拍详情、全部节拍
2. 报表导出：JSON / HTML / CSV / 打印版 HTML
3. 健康检查与 API 说明
4. CORS 跨域支持

核心设计：
- 所有依赖（配置、数据源、限流器）由 create_app 注入，无全局单例
- 请求先经过限流，再经过认证，未认证请求不会到达核心
- 报表格式在此解析为 ReportFormat，非法格式不会进入核心
"""
import logging
from datetime import datetime, timezone
from typing import Dict, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, Response
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from auth import is_authenticated
from config import Settings, configure_logging, load_settings
from pages import (
    render_act_page, render_acts_overview, render_all_beats_page,
    render_beat_page, render_homepage,
)
from projectors import ReportFormat, ReportResponse, export_report
from rate_limiter import SlidingWindowRateLimiter
from row_source import RowSource, SQLiteRowSource

logger = logging.getLogger(__name__)

SERVICE_NAME = "beat-sheets-ui"
SERVICE_VERSION = "1.0.0"


# ==================== 数据模型 ====================

class HealthBindings(BaseModel):
    """外部依赖状态"""
    database: bool = Field(..., description="数据库是否可用")


class HealthResponse(BaseModel):
    """健康检查响应"""
    status: str = Field(..., description="服务状态")
    timestamp: datetime = Field(..., description="检查时间")
    service: str = Field(..., description="服务名称")
    bindings: HealthBindings


class ErrorResponse(BaseModel):
    """错误响应模型"""
    error: str = Field(..., description="错误类型")
    message: Optional[str] = Field(default=None, description="错误详情")


# 报表路径后缀 -> 格式
REPORT_ROUTES: Dict[str, ReportFormat] = {
    "html": ReportFormat.HTML,
    "csv": ReportFormat.CSV,
    "pdf": ReportFormat.PRINT_HTML,
}


# ==================== 工具函数 ====================

def get_row_source(request: Request) -> RowSource:
    """获取当前应用注入的数据源"""
    return request.app.state.row_source


def error_json(status_code: int, error: str, message: Optional[str] = None) -> JSONResponse:
    payload = ErrorResponse(error=error, message=message)
    return JSONResponse(status_code=status_code, content=payload.model_dump(exclude_none=True))


def to_http_response(result: ReportResponse) -> Response:
    """ReportResponse -> HTTP 响应"""
    return Response(
        content=result.body,
        status_code=result.status,
        media_type=result.content_type,
        headers=result.headers,
    )


def report_response(row_source: RowSource, fmt: ReportFormat) -> Response:
    return to_http_response(export_report(row_source, fmt))


def client_identifier(request: Request) -> str:
    """限流标识：客户端地址"""
    return request.client.host if request.client else "anonymous"


# ==================== 页面路由 ====================

router = APIRouter()


@router.get("/", response_class=HTMLResponse)
async def homepage():
    """首页"""
    page = render_homepage()
    return HTMLResponse(page.html, status_code=page.status)


@router.get("/ally", response_class=HTMLResponse)
async def acts_overview(row_source: RowSource = Depends(get_row_source)):
    """幕总览页"""
    page = render_acts_overview(row_source)
    return HTMLResponse(page.html, status_code=page.status)


@router.get("/ally/beats/all", response_class=HTMLResponse)
async def all_beats(row_source: RowSource = Depends(get_row_source)):
    """全部节拍页"""
    page = render_all_beats_page(row_source)
    return HTMLResponse(page.html, status_code=page.status)


@router.get("/ally/act/{act_no}", response_class=HTMLResponse)
async def act_beats(act_no: int, row_source: RowSource = Depends(get_row_source)):
    """单幕节拍列表页"""
    page = render_act_page(row_source, act_no)
    return HTMLResponse(page.html, status_code=page.status)


@router.get("/ally/act/{act_no}/beat/{beat_number}", response_class=HTMLResponse)
async def beat_detail(act_no: int, beat_number: int,
                      row_source: RowSource = Depends(get_row_source)):
    """
    节拍详情页

    节拍不存在时仍返回 200（页面中显示未找到提示），数据库失败时返回 500。
    """
    page = render_beat_page(row_source, act_no, beat_number)
    return HTMLResponse(page.html, status_code=page.status)


# ==================== 报表路由 ====================

@router.get("/act/all")
@router.get("/dashboard")
@router.get("/report")
async def report_dashboard(row_source: RowSource = Depends(get_row_source)):
    """HTML 报表（仪表盘入口）"""
    return report_response(row_source, ReportFormat.HTML)


@router.get(
    "/api/reports/beats",
    responses={500: {"model": ErrorResponse, "description": "报表生成失败"}}
)
async def beats_report_json(row_source: RowSource = Depends(get_row_source)):
    """JSON 报表"""
    return report_response(row_source, ReportFormat.JSON)


@router.get(
    "/api/reports/beats/{fmt}",
    responses={
        400: {"model": ErrorResponse, "description": "无效的报表格式"},
        500: {"model": ErrorResponse, "description": "报表生成失败"}
    }
)
async def beats_report(fmt: str, row_source: RowSource = Depends(get_row_source)):
    """HTML / CSV / 打印版报表"""
    report_format = REPORT_ROUTES.get(fmt)
    if report_format is None:
        return error_json(400, "Invalid report endpoint")
    return report_response(row_source, report_format)


@router.get("/api/reports/{rest:path}", responses={400: {"model": ErrorResponse}})
async def invalid_report(rest: str):
    """未知报表路径"""
    return error_json(400, "Invalid report endpoint")


# ==================== 服务信息 ====================

@router.get("/api")
@router.get("/api/")
async def api_info():
    """API 说明"""
    return {
        "name": "Beat Sheets UI",
        "version": SERVICE_VERSION,
        "description": "Read-only display and reporting for screenplay beat sheets",
        "endpoints": {
            "ui": {
                "home": "GET / - Homepage",
                "ally": "GET /ally - Acts overview page",
                "beats": "GET /ally/beats/all - All beats across script",
                "act": "GET /ally/act/{actNo} - Act-specific beats",
                "beat": "GET /ally/act/{actNo}/beat/{beatNo} - Individual beat page"
            },
            "reports": {
                "html": "GET /api/reports/beats/html - HTML beats report",
                "json": "GET /api/reports/beats - JSON beats report",
                "csv": "GET /api/reports/beats/csv - CSV download",
                "pdf": "GET /api/reports/beats/pdf - Print-ready HTML"
            },
            "info": {
                "api": "GET /api - API documentation",
                "health": "GET /health - Health check"
            }
        }
    }


@router.get("/health", response_model=HealthResponse)
async def health_check(row_source: RowSource = Depends(get_row_source)):
    """健康检查端点"""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        service=SERVICE_NAME,
        bindings=HealthBindings(database=row_source.is_available()),
    )


# ==================== FastAPI 应用 ====================

def create_app(settings: Optional[Settings] = None,
               row_source: Optional[RowSource] = None,
               rate_limiter: Optional[SlidingWindowRateLimiter] = None) -> FastAPI:
    """
    创建 FastAPI 应用

    Args:
        settings: 服务配置，默认从环境变量加载
        row_source: 数据源，默认使用配置中的 SQLite 数据库
        rate_limiter: 限流器，默认按配置创建（max_requests <= 0 时不限流）

    Returns:
        FastAPI 应用
    """
    settings = settings or load_settings()
    if rate_limiter is None and settings.rate_limit_max_requests > 0:
        rate_limiter = SlidingWindowRateLimiter(
            max_requests=settings.rate_limit_max_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )

    app = FastAPI(
        title="Beat Sheets API",
        description="节拍表展示与报表服务 - 按幕浏览节拍并导出 JSON / HTML / CSV",
        version=SERVICE_VERSION,
        docs_url="/docs",
        redoc_url="/redoc"
    )
    app.state.settings = settings
    app.state.row_source = row_source or SQLiteRowSource(settings.database_path)
    app.state.rate_limiter = rate_limiter

    @app.middleware("http")
    async def access_gate(request: Request, call_next):
        """限流 + 认证；OPTIONS 预检直接放行"""
        if request.method == "OPTIONS":
            return await call_next(request)

        limiter = request.app.state.rate_limiter
        if limiter is not None and not limiter.allow(client_identifier(request)):
            logger.warning("Rate limit exceeded for %s", client_identifier(request))
            return error_json(429, "Too many requests")

        if not is_authenticated(request.headers, request.app.state.settings.api_key):
            return error_json(401, "Unauthorized", "Valid API key required")

        return await call_next(request)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return error_json(404, "Not found")
        if exc.status_code == 405:
            return error_json(405, "Method not allowed")
        return error_json(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        # 路径参数不是整数，等同于路由不匹配
        return error_json(404, "Not found")

    @app.exception_handler(Exception)
    async def internal_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error for %s %s", request.method, request.url.path)
        return error_json(500, "Internal server error", str(exc))

    app.include_router(router)

    # 配置 CORS 中间件（最后添加，位于最外层）
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-API-Key"],
    )

    return app


app = create_app()


# ==================== 启动配置 ====================

def run_server(settings: Optional[Settings] = None) -> None:
    """使用 uvicorn 启动服务"""
    import uvicorn

    settings = settings or load_settings()
    configure_logging(settings.log_level)
    logger.info("Starting %s on %s:%d", SERVICE_NAME, settings.host, settings.port)
    uvicorn.run(
        "api:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    run_server()
