"""Pending-confirmation workflow."""

from .manager import ConfirmationManager

__all__ = ["ConfirmationManager"]
