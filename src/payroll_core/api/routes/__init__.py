"""API routes."""

from payroll_core.api.routes.health import router as health_router
from payroll_core.api.routes.payroll_runs import router as payroll_runs_router
from payroll_core.api.routes.previews import router as previews_router

__all__ = ["health_router", "payroll_runs_router", "previews_router"]
