# src/clinic_workflow/__init__.py

"""Repair-shop task lifecycle service."""

__version__ = "0.1.0"
