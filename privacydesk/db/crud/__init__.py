"""CRUD operations for database models"""
from . import case
from . import sla_config
from . import report

__all__ = ["case", "sla_config", "report"]
