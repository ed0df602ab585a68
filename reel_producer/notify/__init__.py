"""Approval notifications."""

from .email import EmailNotifier
from .templates import approve_link, reject_link

__all__ = ["EmailNotifier", "approve_link", "reject_link"]
