# src/tracelog/core/__init__.py
"""Core utilities shared across tracelog subsystems."""
