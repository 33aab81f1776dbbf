"""
FastAPI 애플리케이션 진입점.

실행:
- 개발: uv run uvicorn src.app.main:app --reload
- 프로덕션: uv run uvicorn src.app.main:app
"""

import logging
import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from src.app.routes import generate, ws
from src.core.sessions import SessionRegistry

PROJECT_ROOT = Path(__file__).parent.parent.parent

load_dotenv()

# =============================================================================
# Configuration
# =============================================================================


def load_config(config_path: Path | None = None) -> dict:
    """설정 파일 로드."""
    if config_path is None:
        # 프로젝트 루트의 default.yaml
        config_path = PROJECT_ROOT / "default.yaml"

    if not config_path.exists():
        return {}

    with open(config_path, encoding="utf-8") as f:
        data: dict[Any, Any] = yaml.safe_load(f) or {}
        return data


def configure_logging(config: dict) -> None:
    """logging.level 설정 적용 (기본 INFO)."""
    level_name = str(config.get("logging", {}).get("level", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# =============================================================================
# Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    애플리케이션 생명주기 관리.

    시작 시: 설정 로드, 세션 레지스트리 생성
    종료 시: 진행 중인 생성 취소
    """
    # Startup
    app.state.config = load_config()
    configure_logging(app.state.config)
    app.state.registry = SessionRegistry()
    # 백엔드는 첫 생성 요청 때 생성 (API 키 없이도 서버는 기동)
    app.state.backend = None

    yield

    # Shutdown
    registry: SessionRegistry = app.state.registry
    for session_id in registry.session_ids():
        registry.cancel(session_id)


# =============================================================================
# App Instance
# =============================================================================

app = FastAPI(
    title="Dreamware",
    description="App description → streamed, self-contained HTML app",
    version="0.1.0",
    lifespan=lifespan,
)

# Static files (client page)
static_dir = PROJECT_ROOT / "static"
if static_dir.exists():
    app.mount("/static", StaticFiles(directory=static_dir, html=True), name="static")


# =============================================================================
# Routes
# =============================================================================

app.include_router(ws.router, tags=["Generate WebSocket"])
app.include_router(generate.api_router, prefix="/api/generate", tags=["Generate API"])


# =============================================================================
# Root Endpoints
# =============================================================================


@app.get("/health")
async def health() -> dict[str, str]:
    """헬스 체크."""
    return {"status": "ok", "timestamp": datetime.now(UTC).isoformat()}


# =============================================================================
# CLI Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    server_config = load_config().get("server", {})
    uvicorn.run(
        "src.app.main:app",
        host=server_config.get("host", "127.0.0.1"),
        port=int(os.environ.get("PORT") or server_config.get("port", 3000)),
        reload=bool(server_config.get("reload", False)),
    )
