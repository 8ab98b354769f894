"""
Observability module for the FarmFocus engine.

This module provides:
- Metrics collection with Prometheus
"""

__all__ = ["metrics"]
