"""
Criteria service for evaluating configurations against request context.
"""

from typing import Optional

from fastapi import Query

from shared.base_service import BaseService
from shared.config import ServiceConfig

from .criteria.engine import CriteriaEngine
from .criteria.operators import strategy_requirements
from .criteria.models import (
    CriteriaRequest, CriteriaResponse, StrategyResponse,
    FlatConfigurationResponse, DomainResponse, GroupResponse, ConfigResponse,
    StrategyRequirementsResponse, Strategy
)
from .store import ConfigurationStore, InMemoryStore, load_snapshot_file


class CriteriaService(BaseService):
    """Criteria service implementation."""

    def __init__(self, store: Optional[ConfigurationStore] = None, config: Optional[ServiceConfig] = None):
        super().__init__("criteria", 8013, config)

        self.store = store or InMemoryStore()
        self.engine = CriteriaEngine(self.store, self.config.default_environment)

        self._setup_criteria_routes()

    def _strategy_response(self, strategy: Strategy, environment: str) -> StrategyResponse:
        return StrategyResponse(
            strategy=strategy.strategy,
            operation=strategy.operation,
            values=strategy.values,
            description=strategy.description,
            activated=self.engine.is_active(strategy, environment)
        )

    def _setup_criteria_routes(self):
        """Set up criteria-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "criteria",
                "message": "Criteria Service",
                "version": "1.0.0",
                "default_environment": self.config.default_environment,
                "capabilities": ["criteria", "configuration", "strategy_requirements"]
            }

        @self.app.post("/criteria", response_model=CriteriaResponse, response_model_exclude_none=True)
        async def check_criteria(
            request: CriteriaRequest,
            key: str = Query(..., description="Configuration key"),
            environment: Optional[str] = Query(None, description="Environment name"),
            show_reason: bool = Query(False, alias="showReason", description="Include the reason"),
            show_strategy: bool = Query(False, alias="showStrategy", description="Include resolved strategies")
        ):
            """Evaluate a configuration for the supplied context entries."""
            environment = environment or self.config.default_environment

            verdict = await self.engine.evaluate(key, environment, request.to_entries())

            response = CriteriaResponse(result=verdict.result)
            if show_reason:
                response.reason = verdict.reason
            if show_strategy:
                response.strategies = [
                    self._strategy_response(s, environment) for s in verdict.strategies
                ]

            self.logger.info(
                "Criteria checked",
                key=key,
                environment=environment,
                result=verdict.result,
                reason=verdict.reason,
                evaluation_time_ms=round(verdict.evaluation_time_ms, 3)
            )

            return response

        @self.app.get("/configuration", response_model=FlatConfigurationResponse, response_model_exclude_none=True)
        async def get_configuration(
            key: Optional[str] = Query(None, description="Configuration key"),
            group: Optional[str] = Query(None, description="Group name"),
            environment: Optional[str] = Query(None, description="Environment name")
        ):
            """Flat view of a configuration or group, activation resolved."""
            environment = environment or self.config.default_environment
            flat = await self.engine.configuration(environment, key=key, group=group)

            return FlatConfigurationResponse(
                domain=DomainResponse(
                    name=flat.domain.name,
                    description=flat.domain.description,
                    activated=self.engine.is_active(flat.domain, environment)
                ),
                group=[
                    GroupResponse(
                        name=g.name,
                        description=g.description,
                        activated=self.engine.is_active(g, environment)
                    )
                    for g in flat.groups
                ],
                config=[
                    ConfigResponse(
                        key=c.key,
                        description=c.description,
                        activated=self.engine.is_active(c, environment)
                    )
                    for c in flat.configurations
                ],
                strategies=None if flat.strategies is None else [
                    self._strategy_response(s, environment) for s in flat.strategies
                ]
            )

        @self.app.get("/strategies/{strategy}/requirements", response_model=StrategyRequirementsResponse)
        async def get_strategy_requirements(strategy: str):
            """Operations and operand format accepted by a strategy type."""
            requirements = strategy_requirements(strategy)

            return StrategyRequirementsResponse(
                strategy=requirements.strategy,
                operations=list(requirements.operations),
                values_per_operation={
                    operation.value: count
                    for operation, count in requirements.operations.items()
                },
                format=requirements.format,
                example=requirements.example
            )

    async def _check_dependencies(self):
        """Check criteria service dependencies."""
        try:
            return {"store": "ok" if await self.store.health_check() else "error"}
        except Exception:
            return {"store": "error"}

    async def start(self):
        """Start criteria service components."""
        if self.config.snapshot_file:
            self.store = load_snapshot_file(self.config.snapshot_file)
            self.engine = CriteriaEngine(self.store, self.config.default_environment)
            self.logger.info("Snapshot loaded", path=self.config.snapshot_file)

        self.logger.info("Criteria service started", default_environment=self.config.default_environment)

    async def stop(self):
        """Stop criteria service components."""
        self.logger.info("Criteria service stopped")


def create_app():
    """Create criteria service application."""
    service = CriteriaService()
    return service.app


if __name__ == "__main__":
    service = CriteriaService()
    service.run()
