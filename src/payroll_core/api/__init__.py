"""HTTP API for payroll core."""

from payroll_core.api.app import create_app

__all__ = ["create_app"]
