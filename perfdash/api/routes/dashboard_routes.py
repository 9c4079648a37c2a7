#!/usr/bin/env python3
"""
Dashboard Routes - Web UI and Template Rendering

Every action route answers with the re-rendered dashboard fragment, so the
page swaps one element (#dashboard) and the theme token, charts and
controls always come from the same controller snapshot.
"""

import logging
import time
from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates

# Support running as script or as package
try:
    from ...api.data_service import DataServiceError
    from ...api.schemas import DateRangeUpdate, DeleteRequest
    from ...core.audit import audit_logger
    from ...dashboard import DashboardController
    from ...dashboard.controller import DeleteNotConfirmedError
    from ...dashboard.export import CSV_FILENAME
    from ...dashboard.state import InvalidDateRangeError
    from ...web.template_helpers import setup_template_filters
except ImportError:
    from api.data_service import DataServiceError
    from api.schemas import DateRangeUpdate, DeleteRequest
    from core.audit import audit_logger
    from dashboard import DashboardController
    from dashboard.controller import DeleteNotConfirmedError
    from dashboard.export import CSV_FILENAME
    from dashboard.state import InvalidDateRangeError
    from web.template_helpers import setup_template_filters

logger = logging.getLogger("perfdash.server")

UI_DIR = Path(__file__).resolve().parent.parent.parent / "ui"


def create_templates() -> Jinja2Templates:
    templates = Jinja2Templates(directory=[str(UI_DIR / "pages"), str(UI_DIR / "components")])
    setup_template_filters(templates)
    return templates


def create_dashboard_routes(dashboard_controller: DashboardController) -> APIRouter:
    """Create dashboard and web UI routes."""
    router = APIRouter()
    templates = create_templates()

    def render(request: Request, template: str, status_code: int = 200, **extra):
        try:
            context = dashboard_controller.get_dashboard_data()
        except Exception as e:
            logger.error(f"Dashboard error: {e}", exc_info=True)
            context = {
                "page_title": "perfdash - Error",
                "timestamp": int(time.time()),
                "state": "failed",
                "error": str(e),
                "charts": [],
                "theme_token": dashboard_controller.theme.token,
            }
            status_code = 500
        context.update(extra)
        return templates.TemplateResponse(request, template, context, status_code=status_code)

    @router.get("/", include_in_schema=False)
    async def index():
        return RedirectResponse(url="/dashboard")

    @router.get("/dashboard", response_class=HTMLResponse)
    async def dashboard_main(request: Request):
        """Main dashboard page - controls, charts and raw data."""
        logger.debug("Rendering main dashboard")
        return render(request, "dashboard.html")

    @router.get("/dashboard/content", response_class=HTMLResponse)
    async def dashboard_content(request: Request):
        """Dashboard fragment; polled by the page while loading or refreshing."""
        return render(request, "content.html")

    @router.post("/dashboard/range", response_class=HTMLResponse)
    async def update_range(update: DateRangeUpdate, request: Request):
        """Change one or both range boundaries and schedule a fetch."""
        try:
            new_range = dashboard_controller.set_date_range(update.date_from, update.date_to)
        except InvalidDateRangeError as e:
            logger.info(f"Rejected date range: {e}")
            return render(request, "content.html", status_code=422, range_error=str(e))

        audit_logger.ui_action(
            action="range_change",
            details={"date_from": new_range.date_from.isoformat(), "date_to": new_range.date_to.isoformat()},
            request=request
        )
        return render(request, "content.html")

    @router.post("/dashboard/retry", response_class=HTMLResponse)
    async def retry_fetch(request: Request):
        dashboard_controller.retry()
        return render(request, "content.html")

    @router.post("/dashboard/theme", response_class=HTMLResponse)
    async def toggle_theme(request: Request):
        theme = dashboard_controller.toggle_theme()
        audit_logger.ui_action(action="toggle_theme", details={"theme": theme.name}, request=request)
        return render(request, "content.html")

    @router.post("/dashboard/raw-data", response_class=HTMLResponse)
    async def toggle_raw_data(request: Request):
        dashboard_controller.toggle_raw_data()
        return render(request, "content.html")

    @router.post("/dashboard/delete", response_class=HTMLResponse)
    async def delete_all_data(body: DeleteRequest, request: Request):
        """Delete all data on the Data Service. The page confirms before posting."""
        try:
            await dashboard_controller.delete_data(confirmed=body.confirmed)
        except DeleteNotConfirmedError as e:
            return render(request, "content.html", status_code=400, notice=str(e))
        except DataServiceError as e:
            audit_logger.data_deletion(success=False, details={"error": str(e)}, request=request)
            return render(request, "content.html", status_code=502)

        audit_logger.data_deletion(
            success=True,
            details={"refetch": dashboard_controller.refetch_after_delete},
            request=request
        )
        return render(request, "content.html", notice="All data deleted.")

    @router.get("/dashboard/export.csv")
    async def export_csv(request: Request):
        """Download the current dataset as semicolon-separated CSV."""
        csv_text = dashboard_controller.export_csv()
        if csv_text is None:
            return JSONResponse({"detail": "no data loaded"}, status_code=404)

        audit_logger.ui_action(
            action="export_csv",
            details={"points": len(dashboard_controller.dataset.graphs)},
            request=request
        )
        return Response(
            content=csv_text,
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{CSV_FILENAME}"'}
        )

    @router.get("/dashboard/data.json")
    async def raw_data():
        """Current dataset exactly as received from the Data Service."""
        raw = dashboard_controller.get_raw_data()
        if raw is None:
            return JSONResponse({"detail": "no data loaded"}, status_code=404)
        return Response(content=raw, media_type="application/json")

    return router
