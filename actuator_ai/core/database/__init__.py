"""
Database layer for Actuator-AI.

Structure:
- entities/: SQLModel entities, one module per table
- base.py: shared ``Base`` model and JSON column helpers
- utils.py: engine, session factory and table creation helpers
"""

from .base import Base
from .utils import (
    create_all,
    create_engine,
    create_sessionmaker,
)

__all__ = [
    "Base",
    "create_all",
    "create_engine",
    "create_sessionmaker",
]
