"""
Service Layer Package

This package contains business logic services that sit between callers
(an HTTP layer, a bot, scripts) and the engine components and stores.

Core Services:
- ProgressService: Task/habit creation, completion, undo, deletion
- ShopService: Purchases and daily restock
- UserService: Onboarding, dashboard summary, planting and harvest
"""

from farmfocus.services.container import ServiceContainer, get_container, init_container

__all__ = [
    "ServiceContainer",
    "get_container",
    "init_container",
]
