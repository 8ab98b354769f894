"""
Service Container - Dependency Injection Container

Simple DI container for managing the engine components and services.
Uses lazy loading to only instantiate them when first accessed; every
component shares the container's store and clock.
"""

from dataclasses import dataclass, field
from typing import Optional
import logging

from farmfocus.utils.datetime_helpers import Clock, now_local

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """
    Simple dependency injection container for services.

    Services are lazy-loaded on first access via properties.
    Infrastructure dependencies (store, clock) are injected.
    """

    # Infrastructure dependencies (injected)
    store: object  # MemoryStore or PostgresStore
    clock: Clock = now_local

    # Components and services (lazy-loaded via properties)
    _ledger: Optional[object] = field(default=None, init=False, repr=False)
    _streaks: Optional[object] = field(default=None, init=False, repr=False)
    _plants: Optional[object] = field(default=None, init=False, repr=False)
    _shop_service: Optional[object] = field(default=None, init=False, repr=False)
    _progress_service: Optional[object] = field(default=None, init=False, repr=False)
    _user_service: Optional[object] = field(default=None, init=False, repr=False)
    _schedulers: Optional[object] = field(default=None, init=False, repr=False)

    @property
    def ledger(self):
        """Get ActivityLedger instance (lazy-loaded)"""
        if self._ledger is None:
            from farmfocus.gamification.ledger import ActivityLedger
            self._ledger = ActivityLedger(self.store, self.clock)
            logger.debug("ActivityLedger instantiated")
        return self._ledger

    @property
    def streaks(self):
        """Get StreakDroughtStateMachine instance (lazy-loaded)"""
        if self._streaks is None:
            from farmfocus.gamification.streak_system import StreakDroughtStateMachine
            self._streaks = StreakDroughtStateMachine(self.store, self.ledger, self.clock)
            logger.debug("StreakDroughtStateMachine instantiated")
        return self._streaks

    @property
    def plants(self):
        """Get PlantLifecycleManager instance (lazy-loaded)"""
        if self._plants is None:
            from farmfocus.gamification.plant_system import PlantLifecycleManager
            self._plants = PlantLifecycleManager(self.store)
            logger.debug("PlantLifecycleManager instantiated")
        return self._plants

    @property
    def shop_service(self):
        """Get ShopService instance (lazy-loaded)"""
        if self._shop_service is None:
            from farmfocus.services.shop_service import ShopService
            self._shop_service = ShopService(self.store)
            logger.debug("ShopService instantiated")
        return self._shop_service

    @property
    def progress_service(self):
        """Get ProgressService instance (lazy-loaded)"""
        if self._progress_service is None:
            from farmfocus.services.progress_service import ProgressService
            self._progress_service = ProgressService(self.store, self.ledger, self.streaks, self.plants)
            logger.debug("ProgressService instantiated")
        return self._progress_service

    @property
    def user_service(self):
        """Get UserService instance (lazy-loaded)"""
        if self._user_service is None:
            from farmfocus.services.user_service import UserService
            self._user_service = UserService(
                self.store,
                self.ledger,
                self.streaks,
                self.plants,
                self.shop_service
            )
            logger.debug("UserService instantiated")
        return self._user_service

    @property
    def schedulers(self):
        """Get SchedulerSet instance (lazy-loaded)"""
        if self._schedulers is None:
            from farmfocus.scheduler.daily_jobs import SchedulerSet
            self._schedulers = SchedulerSet(self.store, self.streaks, self.shop_service, self.clock)
            logger.debug("SchedulerSet instantiated")
        return self._schedulers


# Global container instance (initialized in main.py)
_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """
    Get the global service container.

    Returns:
        ServiceContainer: The global container instance

    Raises:
        RuntimeError: If container not initialized (call init_container first)
    """
    if _container is None:
        raise RuntimeError(
            "Service container not initialized. "
            "Call init_container() in main.py before using services."
        )
    return _container


def init_container(store: object, clock: Clock = now_local) -> ServiceContainer:
    """
    Initialize the global service container.

    Should be called once in main.py after infrastructure setup.

    Args:
        store: Store implementing every protocol in farmfocus.db.stores
        clock: Source of the current moment (timezone-aware)

    Returns:
        ServiceContainer: The initialized container
    """
    global _container

    _container = ServiceContainer(store=store, clock=clock)

    logger.info("Service container initialized")
    return _container
