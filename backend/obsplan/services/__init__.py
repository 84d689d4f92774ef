"""Database-backed services for step sequences and smart calibration mapping."""

from . import expansion, gcal_mapping, step_store

__all__ = ["expansion", "gcal_mapping", "step_store"]
