"""Notification module for the NoClouds bot."""

from .notifier import Notifier
from .templates import MessageTemplates

__all__ = ["Notifier", "MessageTemplates"]
