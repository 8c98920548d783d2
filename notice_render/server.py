"""
Notice Render Server
Letter form and PDF generation endpoints
"""

import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Form, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, Response
from fastapi.staticfiles import StaticFiles

from notice_render.core.config import Settings, get_settings
from notice_render.core.errors import RenderException
from notice_render.core.logger import get_logger
from notice_render.pipeline.render import PAGE_SIZES, RenderPipeline, RenderRequest
from notice_render.pipeline.template import LetterFields, TemplateStore
from notice_render.services.browser import BrowserManager

logger = get_logger(__name__)

GENERIC_FAILURE = "PDF generation failed (see server logs)."


def build_app(
    settings: Optional[Settings] = None,
    browser_manager: Optional[BrowserManager] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Optional settings override (useful for testing)
        browser_manager: Optional browser manager override (useful for testing)

    Returns:
        Configured FastAPI application
    """
    if settings is None:
        settings = get_settings()
    if browser_manager is None:
        browser_manager = BrowserManager(headless=settings.BROWSER_HEADLESS)

    pipeline = RenderPipeline(browser_manager, filename=settings.PDF_FILENAME)
    templates = TemplateStore(settings.TEMPLATES_DIR)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan - startup and shutdown."""
        logger.info("server_starting", app_name=settings.app_name)

        if settings.BROWSER_WARMUP:
            try:
                await browser_manager.acquire()
            except RenderException as e:
                # Lazy launch will retry on the first render
                logger.warning("browser_warmup_failed", error=str(e))

        yield

        logger.info("server_stopping")
        await browser_manager.shutdown()
        logger.info("server_stopped")

    app = FastAPI(
        title=settings.app_name,
        description="Letter form to printable PDF",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.browser_manager = browser_manager
    app.state.pipeline = pipeline

    # Logo and fonts
    if Path(settings.ASSETS_DIR).is_dir():
        app.mount("/assets", StaticFiles(directory=settings.ASSETS_DIR), name="assets")
    else:
        logger.warning("assets_dir_missing", assets_dir=settings.ASSETS_DIR)

    @app.get("/", response_class=HTMLResponse)
    async def form_page():
        """Letter form"""
        return HTMLResponse(templates.render_form_page())

    @app.post("/generate")
    async def generate(
        request: Request,
        language: str = Form("nepali"),
        date: str = Form(""),
        recipient: str = Form(""),
        org: str = Form(""),
        address: str = Form(""),
        subject: str = Form(""),
        body: str = Form(""),
        signname: str = Form(""),
        signtitle: str = Form(""),
    ):
        """Render the submitted letter as a PDF attachment"""
        fields = LetterFields(
            language=language,
            date=date,
            recipient=recipient,
            org=org,
            address=address,
            subject=subject,
            body=body,
            signname=signname,
            signtitle=signtitle,
        )
        base_url = settings.PUBLIC_BASE_URL or str(request.base_url)
        html = templates.render_letter(fields, base_url)

        render_request = RenderRequest(
            html=html,
            page_size=PAGE_SIZES[settings.PAGE_SIZE],
            timeout=settings.RENDER_TIMEOUT,
            wait_for_images=settings.WAIT_FOR_IMAGES,
        )

        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex

        with logger.render_scope(request_id=request_id, language=fields.language):
            try:
                with logger.timer("render_pdf"):
                    document = await pipeline.render(render_request)
            except RenderException as e:
                logger.error("pdf_generation_failed", error_code=e.code, error=e.to_dict())
                return PlainTextResponse(
                    GENERIC_FAILURE, status_code=500, headers={"X-Request-ID": request_id}
                )

        return Response(
            content=document.content,
            media_type=document.mime_type,
            headers={
                "Content-Disposition": f'attachment; filename="{document.filename}"',
                "Content-Length": str(document.size),
                "X-Request-ID": request_id,
            },
        )

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "browser_running": browser_manager.is_running(),
            "page_size": settings.PAGE_SIZE,
            "render_timeout": settings.RENDER_TIMEOUT,
            "timestamp": datetime.now().isoformat(),
        }

    return app


app = build_app()
