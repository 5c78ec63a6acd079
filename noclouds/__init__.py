"""
NoClouds Telegram Bot
=====================
A monitoring bot that watches the hourly cloud and wind forecast and
notifies a single chat when a clear, calm night sky window is coming.
"""

__version__ = "1.0.0"
__author__ = "NoClouds Bot"
