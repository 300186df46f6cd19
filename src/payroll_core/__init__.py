"""Payroll computation and payroll run lifecycle."""

__version__ = "1.0.0"
