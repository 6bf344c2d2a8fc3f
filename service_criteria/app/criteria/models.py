"""
Criteria data models for the Criteria Service.
"""

from typing import Dict, Optional, List
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, Field


DEFAULT_ENVIRONMENT = "default"


class StrategyType(str, Enum):
    """Strategy types."""
    VALUE = "VALUE_VALIDATION"
    NETWORK = "NETWORK_VALIDATION"
    TIME = "TIME_VALIDATION"
    DATE = "DATE_VALIDATION"
    REGEX = "REGEX_VALIDATION"
    LOCATION = "LOCATION_VALIDATION"


class OperationType(str, Enum):
    """Strategy operations."""
    EXIST = "EXIST"
    NOT_EXIST = "NOT_EXIST"
    EQUAL = "EQUAL"
    NOT_EQUAL = "NOT_EQUAL"
    GREATER = "GREATER"
    LOWER = "LOWER"
    BETWEEN = "BETWEEN"


class StrategyStatus(str, Enum):
    """Outcome of evaluating one strategy against the context."""
    PASS = "pass"
    FAIL = "fail"
    NO_INPUT = "no_input"


class Reason:
    """Verdict reason strings."""
    SUCCESS = "Success"
    CONFIG_DISABLED = "Config disabled"
    GROUP_DISABLED = "Group disabled"
    DOMAIN_DISABLED = "Domain disabled"

    @staticmethod
    def does_not_agree(strategy_type: str) -> str:
        return f"Strategy '{strategy_type}' does not agree"

    @staticmethod
    def no_input(strategy_type: str) -> str:
        return f"Strategy '{strategy_type}' did not receive any input"


def _activation_with_default(activated: Dict[str, bool]) -> Dict[str, bool]:
    activation = dict(activated)
    activation.setdefault(DEFAULT_ENVIRONMENT, True)
    return activation


@dataclass
class Domain:
    """Top-level namespace owning groups."""
    domain_id: str
    name: str
    description: Optional[str] = None
    activated: Dict[str, bool] = field(default_factory=dict)

    def __post_init__(self):
        self.activated = _activation_with_default(self.activated)


@dataclass
class Group:
    """Named cluster of configurations within a domain."""
    group_id: str
    name: str
    domain_id: str
    description: Optional[str] = None
    activated: Dict[str, bool] = field(default_factory=dict)

    def __post_init__(self):
        self.activated = _activation_with_default(self.activated)


@dataclass
class Configuration:
    """A single feature, identified by key."""
    config_id: str
    key: str
    group_id: str
    description: Optional[str] = None
    activated: Dict[str, bool] = field(default_factory=dict)

    def __post_init__(self):
        self.activated = _activation_with_default(self.activated)


@dataclass
class Strategy:
    """Typed rule that must agree for its configuration to be satisfied."""
    strategy_id: str
    config_id: str
    strategy: StrategyType
    operation: OperationType
    values: List[str] = field(default_factory=list)
    description: Optional[str] = None
    activated: Dict[str, bool] = field(default_factory=dict)

    def __post_init__(self):
        self.strategy = StrategyType(self.strategy)
        self.operation = OperationType(self.operation)
        self.values = [str(v) for v in self.values]
        self.activated = _activation_with_default(self.activated)


@dataclass(frozen=True)
class ContextEntry:
    """One typed input supplied with a criteria request."""
    strategy: str
    input: str


@dataclass
class Verdict:
    """Result of one criteria evaluation."""
    result: bool
    reason: str
    domain: Optional[Domain] = None
    group: Optional[Group] = None
    strategies: List[Strategy] = field(default_factory=list)
    evaluation_time_ms: float = 0.0


@dataclass
class FlatConfiguration:
    """Entities surrounding a configuration key or group name."""
    domain: Domain
    groups: List[Group]
    configurations: List[Configuration]
    strategies: Optional[List[Strategy]] = None


@dataclass
class StrategyRequirements:
    """Operations and operand formats accepted by a strategy type."""
    strategy: StrategyType
    operations: Dict[OperationType, Optional[int]]
    format: str
    example: List[str] = field(default_factory=list)


class EntryModel(BaseModel):
    """Context entry as received from callers."""
    strategy: str = Field(..., description="Strategy type identifier")
    input: str = Field(..., description="Raw input for the strategy")


class CriteriaRequest(BaseModel):
    """Request model for criteria evaluation."""
    entry: List[EntryModel] = Field(default_factory=list, description="Context entries")

    def to_entries(self) -> List[ContextEntry]:
        return [ContextEntry(strategy=e.strategy, input=e.input) for e in self.entry]


class StrategyResponse(BaseModel):
    """Strategy as reported to callers, activation resolved."""
    strategy: StrategyType
    operation: OperationType
    values: List[str]
    description: Optional[str] = None
    activated: bool


class CriteriaResponse(BaseModel):
    """Response model for criteria evaluation."""
    result: bool = Field(..., description="Whether the configuration is enabled")
    reason: Optional[str] = Field(None, description="Reason for the decision")
    strategies: Optional[List[StrategyResponse]] = Field(None, description="Strategies resolved for the call")


class DomainResponse(BaseModel):
    """Domain as reported to callers, activation resolved."""
    name: str
    description: Optional[str] = None
    activated: bool


class GroupResponse(BaseModel):
    """Group as reported to callers, activation resolved."""
    name: str
    description: Optional[str] = None
    activated: bool


class ConfigResponse(BaseModel):
    """Configuration as reported to callers, activation resolved."""
    key: str
    description: Optional[str] = None
    activated: bool


class FlatConfigurationResponse(BaseModel):
    """Response model for the flat configuration view."""
    domain: DomainResponse
    group: List[GroupResponse]
    config: List[ConfigResponse]
    strategies: Optional[List[StrategyResponse]] = None


class StrategyRequirementsResponse(BaseModel):
    """Response model for strategy requirements."""
    strategy: StrategyType
    operations: List[OperationType]
    values_per_operation: Dict[str, Optional[int]]
    format: str
    example: List[str]
