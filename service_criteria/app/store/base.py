"""
Loader interface consumed by the criteria engine.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..criteria.models import Configuration, Domain, Group, Strategy


class ConfigurationStore(ABC):
    """Read access to domains, groups, configurations and strategies."""

    @abstractmethod
    async def load_configuration_by_key(self, key: str) -> Optional[Configuration]:
        """Get a configuration by its unique key, or None."""

    @abstractmethod
    async def load_group(self, group_id: str) -> Group:
        """Get a group by ID."""

    @abstractmethod
    async def load_domain(self, domain_id: str) -> Domain:
        """Get a domain by ID."""

    @abstractmethod
    async def load_strategies(self, config_id: str) -> List[Strategy]:
        """Get a configuration's strategies in declaration order."""

    @abstractmethod
    async def find_group_by_name(self, name: str) -> Optional[Group]:
        """Get a group by name, or None."""

    @abstractmethod
    async def load_configurations(self, group_id: str) -> List[Configuration]:
        """Get a group's configurations."""

    async def health_check(self) -> bool:
        """Check store availability."""
        return True
