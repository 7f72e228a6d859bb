# src/tracelog/logger/__init__.py
"""Logging API: entity emitters and the id-addressed TraceLogger."""

from tracelog.logger.logger import TraceLogger

__all__ = ["TraceLogger"]
