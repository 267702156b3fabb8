"""
Integration Registry

Maps integration ids to their definitions. Built-in integrations are listed
explicitly in BUILTIN_INTEGRATIONS; load_all() registers them exactly once per
registry, even when several request threads race to trigger it.
"""
import threading
from typing import Callable, Dict, Iterable, List, Optional

from . import gumroad, stripe
from .base import IntegrationDefinition
from ..utils.logger import get_logger

logger = get_logger('integrations')

IntegrationFactory = Callable[[], IntegrationDefinition]

# To add an integration, add its factory here
BUILTIN_INTEGRATIONS: List[IntegrationFactory] = [
    stripe.build_integration,
    gumroad.build_integration,
]


class IntegrationRegistry:
    """Registry of available integrations.

    Example:
        >>> registry = IntegrationRegistry()
        >>> registry.load_all()
        >>> registry.get('stripe').fetcher.sync(account)
    """

    def __init__(self, factories: Optional[Iterable[IntegrationFactory]] = None):
        """
        Args:
            factories: integration factories run by load_all();
                defaults to BUILTIN_INTEGRATIONS
        """
        self._factories = list(BUILTIN_INTEGRATIONS if factories is None else factories)
        self._integrations: Dict[str, IntegrationDefinition] = {}
        self._loaded = False
        self._load_lock = threading.Lock()
        self._lock = threading.Lock()

    def register(self, definition: IntegrationDefinition) -> bool:
        """Register an integration. Duplicate ids are skipped with a warning."""
        with self._lock:
            if definition.id in self._integrations:
                logger.warning(f'Integration "{definition.id}" is already registered. Skipping duplicate.')
                return False
            self._integrations[definition.id] = definition
            return True

    def get(self, integration_id: str) -> Optional[IntegrationDefinition]:
        with self._lock:
            return self._integrations.get(integration_id)

    def has(self, integration_id: str) -> bool:
        with self._lock:
            return integration_id in self._integrations

    def all(self) -> List[IntegrationDefinition]:
        with self._lock:
            return list(self._integrations.values())

    def clear(self) -> None:
        """Forget every integration and allow load_all() to run again"""
        with self._load_lock, self._lock:
            self._integrations.clear()
            self._loaded = False

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def load_all(self) -> None:
        """
        Register every configured integration, once

        Concurrent callers block until the first load finishes. If a factory
        raises, the registry stays unloaded and the next call retries.
        """
        if self._loaded:
            return

        with self._load_lock:
            if self._loaded:
                return

            for factory in self._factories:
                self.register(factory())

            self._loaded = True
            logger.info(f"Loaded {len(self._integrations)} integrations: {', '.join(sorted(self._integrations))}")
