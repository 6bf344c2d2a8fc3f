"""
Criteria resolution engine for the Criteria Service.
"""

import asyncio
import time
from typing import List, Optional, Sequence

from shared.logging import get_logger, set_evaluation_context
from shared.errors import ConfigurationNotFoundError, NotFoundError, ValidationError
from ..store.base import ConfigurationStore
from .activation import resolve
from .evaluator import evaluate as evaluate_strategy
from .models import (
    DEFAULT_ENVIRONMENT, Configuration, ContextEntry, Domain, FlatConfiguration,
    Group, Reason, Strategy, StrategyStatus, Verdict
)


class CriteriaEngine:
    """Criteria resolution engine.

    Checks activation of the configuration, its group and its domain, in
    that order, then runs the configuration's strategies in declared order.
    The first inactive ancestor, or the first active strategy that fails or
    lacks input, decides the verdict.
    """

    def __init__(self, store: ConfigurationStore, default_environment: str = DEFAULT_ENVIRONMENT):
        self.logger = get_logger("criteria.engine")
        self.store = store
        self.default_environment = default_environment

    def is_active(self, entity, environment: str) -> bool:
        """Resolve an entity's activation for an environment."""
        return resolve(entity.activated, environment, self.default_environment)

    async def evaluate(
        self,
        key: str,
        environment: str,
        entries: Sequence[ContextEntry]
    ) -> Verdict:
        """Evaluate a configuration key for an environment and context.

        Raises ConfigurationNotFoundError when the key is unknown.
        """
        start_time = time.time()

        configuration = await self.store.load_configuration_by_key(key)
        if configuration is None:
            self.logger.info("Configuration not found", key=key, environment=environment)
            raise ConfigurationNotFoundError(key)

        group, strategies = await asyncio.gather(
            self.store.load_group(configuration.group_id),
            self.store.load_strategies(configuration.config_id)
        )
        domain = await self.store.load_domain(group.domain_id)
        set_evaluation_context(domain=domain.name, environment=environment)

        verdict = self.resolve_criteria(configuration, group, domain, strategies, environment, entries)
        verdict.evaluation_time_ms = (time.time() - start_time) * 1000

        self.logger.debug(
            "Criteria evaluation result",
            key=key,
            environment=environment,
            result=verdict.result,
            reason=verdict.reason,
            evaluation_time_ms=verdict.evaluation_time_ms
        )

        return verdict

    def resolve_criteria(
        self,
        configuration: Configuration,
        group: Group,
        domain: Domain,
        strategies: List[Strategy],
        environment: str,
        entries: Sequence[ContextEntry]
    ) -> Verdict:
        """Resolve a verdict over an already fetched snapshot."""

        def done(result: bool, reason: str) -> Verdict:
            return Verdict(result=result, reason=reason, domain=domain, group=group, strategies=strategies)

        # Fixed check order: configuration, group, domain
        if not self.is_active(configuration, environment):
            return done(False, Reason.CONFIG_DISABLED)

        if not self.is_active(group, environment):
            return done(False, Reason.GROUP_DISABLED)

        if not self.is_active(domain, environment):
            return done(False, Reason.DOMAIN_DISABLED)

        for strategy in strategies:
            if not self.is_active(strategy, environment):
                continue

            status = evaluate_strategy(strategy, entries)

            if status == StrategyStatus.NO_INPUT:
                return done(False, Reason.no_input(strategy.strategy.value))

            if status == StrategyStatus.FAIL:
                return done(False, Reason.does_not_agree(strategy.strategy.value))

        return done(True, Reason.SUCCESS)

    async def configuration(
        self,
        environment: str,
        key: Optional[str] = None,
        group: Optional[str] = None
    ) -> FlatConfiguration:
        """Flat view of the entities around a configuration key or group name."""
        if key:
            configuration = await self.store.load_configuration_by_key(key)
            if configuration is None:
                raise ConfigurationNotFoundError(key)

            found_group, strategies = await asyncio.gather(
                self.store.load_group(configuration.group_id),
                self.store.load_strategies(configuration.config_id)
            )
            domain = await self.store.load_domain(found_group.domain_id)

            return FlatConfiguration(
                domain=domain,
                groups=[found_group],
                configurations=[configuration],
                strategies=strategies
            )

        if group:
            found_group = await self.store.find_group_by_name(group)
            if found_group is None:
                raise NotFoundError(f"Group '{group}' not found", {"group": group})

            domain, configurations = await asyncio.gather(
                self.store.load_domain(found_group.domain_id),
                self.store.load_configurations(found_group.group_id)
            )

            return FlatConfiguration(
                domain=domain,
                groups=[found_group],
                configurations=configurations
            )

        raise ValidationError("Either 'key' or 'group' must be provided")
