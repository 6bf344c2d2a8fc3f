"""
In-memory configuration store.

Holds a snapshot of domains, groups, configurations and strategies in
dicts. Snapshots can be loaded from a nested mapping or a YAML file of
the form::

    domains:
      - name: Domain
        activated: {default: true}
        groups:
          - name: Release
            configs:
              - key: NEW_CHECKOUT
                activated: {default: false, QA: true}
                strategies:
                  - strategy: NETWORK_VALIDATION
                    operation: EXIST
                    values: ["10.0.0.0/24"]

``activated`` accepts either a map of environment to bool or a single
bool for the default environment. Activation flags must be real booleans
and ``values`` must be a list; anything else raises ValidationError. Time
operands must be quoted in YAML.
"""

import uuid
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, StrictBool
from pydantic import ValidationError as PydanticValidationError

from shared.logging import get_logger
from shared.errors import NotFoundError, ServiceError, ValidationError
from ..criteria.models import (
    DEFAULT_ENVIRONMENT, Configuration, Domain, Group, OperationType, Strategy, StrategyType
)
from ..criteria.operators import check_strategy_requirements
from .base import ConfigurationStore


Activation = Union[StrictBool, Dict[str, StrictBool]]


class SnapshotStrategy(BaseModel):
    """Strategy record in a snapshot."""
    id: Optional[Union[str, int]] = None
    strategy: StrategyType
    operation: OperationType
    values: Optional[List[Union[str, int, float]]] = None
    description: Optional[str] = None
    activated: Optional[Activation] = None


class SnapshotConfiguration(BaseModel):
    """Configuration record in a snapshot."""
    id: Optional[Union[str, int]] = None
    key: str
    description: Optional[str] = None
    activated: Optional[Activation] = None
    strategies: Optional[List[SnapshotStrategy]] = None


class SnapshotGroup(BaseModel):
    """Group record in a snapshot."""
    id: Optional[Union[str, int]] = None
    name: str
    description: Optional[str] = None
    activated: Optional[Activation] = None
    configs: Optional[List[SnapshotConfiguration]] = None


class SnapshotDomain(BaseModel):
    """Domain record in a snapshot."""
    id: Optional[Union[str, int]] = None
    name: str
    description: Optional[str] = None
    activated: Optional[Activation] = None
    groups: Optional[List[SnapshotGroup]] = None


class Snapshot(BaseModel):
    """Nested snapshot document."""
    domains: Optional[List[SnapshotDomain]] = None


class InMemoryStore(ConfigurationStore):
    """Dict-backed store; strategies keep insertion order per configuration."""

    def __init__(self):
        self.logger = get_logger("criteria.store.memory")
        self.domains: Dict[str, Domain] = {}
        self.groups: Dict[str, Group] = {}
        self.configurations: Dict[str, Configuration] = {}
        self.strategies: Dict[str, Strategy] = {}
        self._config_keys: Dict[str, str] = {}  # key -> config_id

    def add_domain(self, domain: Domain) -> Domain:
        """Add a domain."""
        self.domains[domain.domain_id] = domain
        self.logger.debug("Domain added", domain_id=domain.domain_id, name=domain.name)
        return domain

    def add_group(self, group: Group) -> Group:
        """Add a group to an existing domain."""
        if group.domain_id not in self.domains:
            raise ValidationError(
                f"Domain '{group.domain_id}' does not exist",
                {"group": group.name}
            )

        self.groups[group.group_id] = group
        self.logger.debug("Group added", group_id=group.group_id, name=group.name)
        return group

    def add_configuration(self, configuration: Configuration) -> Configuration:
        """Add a configuration to an existing group; keys are unique."""
        if configuration.group_id not in self.groups:
            raise ValidationError(
                f"Group '{configuration.group_id}' does not exist",
                {"key": configuration.key}
            )

        existing = self._config_keys.get(configuration.key)
        if existing and existing != configuration.config_id:
            raise ValidationError(
                f"Configuration '{configuration.key}' already exists",
                {"key": configuration.key}
            )

        previous = self.configurations.get(configuration.config_id)
        if previous is not None and previous.key != configuration.key:
            del self._config_keys[previous.key]

        self.configurations[configuration.config_id] = configuration
        self._config_keys[configuration.key] = configuration.config_id
        self.logger.debug("Configuration added", config_id=configuration.config_id, key=configuration.key)
        return configuration

    def add_strategy(self, strategy: Strategy) -> Strategy:
        """Add a strategy to an existing configuration."""
        if strategy.config_id not in self.configurations:
            raise ValidationError(
                f"Configuration '{strategy.config_id}' does not exist",
                {"strategy": strategy.strategy.value}
            )

        for problem in check_strategy_requirements(strategy):
            self.logger.warning(
                "Strategy will not agree with any input",
                strategy_id=strategy.strategy_id,
                strategy=strategy.strategy.value,
                problem=problem
            )

        self.strategies[strategy.strategy_id] = strategy
        self.logger.debug("Strategy added", strategy_id=strategy.strategy_id, strategy=strategy.strategy.value)
        return strategy

    async def load_configuration_by_key(self, key: str) -> Optional[Configuration]:
        config_id = self._config_keys.get(key)
        if config_id is None:
            return None
        return self.configurations.get(config_id)

    async def load_group(self, group_id: str) -> Group:
        if group_id not in self.groups:
            raise NotFoundError(f"Group '{group_id}' not found", {"group_id": group_id})
        return self.groups[group_id]

    async def load_domain(self, domain_id: str) -> Domain:
        if domain_id not in self.domains:
            raise NotFoundError(f"Domain '{domain_id}' not found", {"domain_id": domain_id})
        return self.domains[domain_id]

    async def load_strategies(self, config_id: str) -> List[Strategy]:
        return [
            strategy for strategy in self.strategies.values()
            if strategy.config_id == config_id
        ]

    async def find_group_by_name(self, name: str) -> Optional[Group]:
        for group in self.groups.values():
            if group.name == name:
                return group
        return None

    async def load_configurations(self, group_id: str) -> List[Configuration]:
        return [
            configuration for configuration in self.configurations.values()
            if configuration.group_id == group_id
        ]

    def get_store_stats(self) -> Dict[str, int]:
        """Get store statistics."""
        return {
            "domains": len(self.domains),
            "groups": len(self.groups),
            "configurations": len(self.configurations),
            "strategies": len(self.strategies),
        }

    def clear(self):
        """Remove every record."""
        self.domains.clear()
        self.groups.clear()
        self.configurations.clear()
        self.strategies.clear()
        self._config_keys.clear()

    @classmethod
    def from_snapshot(cls, data: Mapping[str, Any]) -> "InMemoryStore":
        """Build a store from a nested domains/groups/configs/strategies mapping."""
        try:
            snapshot = Snapshot.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(
                "Invalid snapshot data",
                {"errors": [
                    {"loc": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
                    for error in e.errors()
                ]}
            )

        store = cls()

        for domain_data in snapshot.domains or []:
            domain = store.add_domain(Domain(
                domain_id=_record_id(domain_data.id),
                name=domain_data.name,
                description=domain_data.description,
                activated=_activation(domain_data.activated)
            ))

            for group_data in domain_data.groups or []:
                group = store.add_group(Group(
                    group_id=_record_id(group_data.id),
                    name=group_data.name,
                    domain_id=domain.domain_id,
                    description=group_data.description,
                    activated=_activation(group_data.activated)
                ))

                for config_data in group_data.configs or []:
                    configuration = store.add_configuration(Configuration(
                        config_id=_record_id(config_data.id),
                        key=config_data.key,
                        group_id=group.group_id,
                        description=config_data.description,
                        activated=_activation(config_data.activated)
                    ))

                    for strategy_data in config_data.strategies or []:
                        store.add_strategy(Strategy(
                            strategy_id=_record_id(strategy_data.id),
                            config_id=configuration.config_id,
                            strategy=strategy_data.strategy,
                            operation=strategy_data.operation,
                            values=strategy_data.values or [],
                            description=strategy_data.description,
                            activated=_activation(strategy_data.activated)
                        ))

        store.logger.info("Snapshot loaded", **store.get_store_stats())
        return store


def _record_id(value: Optional[Union[str, int]]) -> str:
    return str(value) if value is not None else str(uuid.uuid4())


def _activation(value: Optional[Activation]) -> Dict[str, bool]:
    if value is None:
        return {}
    if isinstance(value, bool):
        return {DEFAULT_ENVIRONMENT: value}
    return {str(env): active for env, active in value.items()}


def load_snapshot_file(path: str) -> InMemoryStore:
    """Load an in-memory store from a YAML snapshot file."""
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ServiceError("Snapshot file cannot be read", {"path": path, "error": str(e)})
    except yaml.YAMLError as e:
        raise ValidationError("Snapshot file is not valid YAML", {"path": path, "error": str(e)})

    if not isinstance(data, dict):
        raise ValidationError("Snapshot file must contain a mapping", {"path": path})

    return InMemoryStore.from_snapshot(data)
