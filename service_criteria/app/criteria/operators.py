"""
Strategy operator library.

Each strategy type has one operator function taking
``(operation, input, values)`` and returning a bool. Operators never
raise: unparsable operands are logged and treated as non-matching, and
operations a type does not support evaluate to False.
"""

import ipaddress
import re
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence, Union

from shared.logging import get_logger
from shared.errors import ValidationError
from .models import OperationType, StrategyType, Strategy, StrategyRequirements

logger = get_logger("criteria.operators")

_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?[Zz]?$")

Operator = Callable[[OperationType, str, Sequence[str]], bool]


def parse_time(value: str) -> Optional[int]:
    """Parse ``HH:MM`` (optionally ``HH:MM:SS`` or a trailing ``Z``) to minute of day."""
    match = _TIME_PATTERN.match(value.strip())
    if not match:
        return None

    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        return None
    if match.group(3) is not None and int(match.group(3)) > 59:
        return None

    return hours * 60 + minutes


def parse_date(value: str) -> Optional[datetime]:
    """Parse an ISO-8601 date or date-time; naive values are taken as UTC."""
    text = value.strip()
    if text[-1:] in ("Z", "z"):
        text = text[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_network(value: str) -> Optional[Union[ipaddress.IPv4Network, ipaddress.IPv6Network]]:
    """Parse a bare address or CIDR block; host bits are tolerated."""
    try:
        return ipaddress.ip_network(value.strip(), strict=False)
    except ValueError:
        return None


def _compile(pattern: str) -> Optional[re.Pattern]:
    try:
        return re.compile(pattern)
    except re.error:
        return None


def _malformed(strategy: StrategyType, operand: str, source: str) -> None:
    logger.warning("malformed_operand", strategy=strategy.value, operand=operand, source=source)


def _unsupported(strategy: StrategyType, operation: OperationType) -> bool:
    logger.warning("unsupported_operation", strategy=strategy.value, operation=operation.value)
    return False


def _operand_count(operation: OperationType) -> int:
    return 2 if operation == OperationType.BETWEEN else 1


def _compare_ordered(strategy: StrategyType, operation: OperationType, value, bounds: List) -> bool:
    """GREATER / LOWER / BETWEEN over already-parsed comparable operands."""
    if operation == OperationType.GREATER:
        return len(bounds) >= 1 and value > bounds[0]

    elif operation == OperationType.LOWER:
        return len(bounds) >= 1 and value < bounds[0]

    elif operation == OperationType.BETWEEN:
        if len(bounds) < 2:
            return False
        low, high = min(bounds[0], bounds[1]), max(bounds[0], bounds[1])
        return low <= value <= high

    return _unsupported(strategy, operation)


def value_operator(operation: OperationType, input: str, values: Sequence[str]) -> bool:
    """Opaque string comparisons."""
    if operation == OperationType.EXIST:
        return input in values

    elif operation == OperationType.NOT_EXIST:
        return input not in values

    elif operation == OperationType.EQUAL:
        return len(values) == 1 and values[0] == input

    elif operation == OperationType.NOT_EQUAL:
        return len(values) == 1 and values[0] != input

    return _unsupported(StrategyType.VALUE, operation)


def network_operator(operation: OperationType, input: str, values: Sequence[str]) -> bool:
    """Membership of an IP address in a list of addresses or CIDR blocks."""
    if operation not in (OperationType.EXIST, OperationType.NOT_EXIST):
        return _unsupported(StrategyType.NETWORK, operation)

    try:
        address = ipaddress.ip_address(input.strip())
    except ValueError:
        _malformed(StrategyType.NETWORK, input, "input")
        return False

    found = False
    for value in values:
        network = parse_network(value)
        if network is None:
            _malformed(StrategyType.NETWORK, value, "values")
            continue
        if address in network:
            found = True
            break

    return found if operation == OperationType.EXIST else not found


def time_operator(operation: OperationType, input: str, values: Sequence[str]) -> bool:
    """Time-of-day comparisons on minute-of-day integers."""
    if operation not in (OperationType.GREATER, OperationType.LOWER, OperationType.BETWEEN):
        return _unsupported(StrategyType.TIME, operation)

    current = parse_time(input)
    if current is None:
        _malformed(StrategyType.TIME, input, "input")
        return False

    bounds = []
    for value in values[:_operand_count(operation)]:
        parsed = parse_time(value)
        if parsed is None:
            _malformed(StrategyType.TIME, value, "values")
            return False
        bounds.append(parsed)

    return _compare_ordered(StrategyType.TIME, operation, current, bounds)


def date_operator(operation: OperationType, input: str, values: Sequence[str]) -> bool:
    """Calendar comparisons on parsed instants."""
    if operation not in (OperationType.GREATER, OperationType.LOWER, OperationType.BETWEEN):
        return _unsupported(StrategyType.DATE, operation)

    current = parse_date(input)
    if current is None:
        _malformed(StrategyType.DATE, input, "input")
        return False

    bounds = []
    for value in values[:_operand_count(operation)]:
        parsed = parse_date(value)
        if parsed is None:
            _malformed(StrategyType.DATE, value, "values")
            return False
        bounds.append(parsed)

    return _compare_ordered(StrategyType.DATE, operation, current, bounds)


def regex_operator(operation: OperationType, input: str, values: Sequence[str]) -> bool:
    """Regular expression matching; invalid patterns are skipped."""
    if operation in (OperationType.EXIST, OperationType.NOT_EXIST):
        found = False
        for value in values:
            pattern = _compile(value)
            if pattern is None:
                _malformed(StrategyType.REGEX, value, "values")
                continue
            if pattern.search(input):
                found = True
                break

        return found if operation == OperationType.EXIST else not found

    elif operation in (OperationType.EQUAL, OperationType.NOT_EQUAL):
        if len(values) != 1:
            return False
        pattern = _compile(values[0])
        if pattern is None:
            _malformed(StrategyType.REGEX, values[0], "values")
            return False

        matched = pattern.fullmatch(input) is not None
        return matched if operation == OperationType.EQUAL else not matched

    return _unsupported(StrategyType.REGEX, operation)


def location_operator(operation: OperationType, input: str, values: Sequence[str]) -> bool:
    """Exact, case-sensitive location names."""
    if operation == OperationType.EXIST:
        return input in values

    elif operation == OperationType.NOT_EXIST:
        return input not in values

    return _unsupported(StrategyType.LOCATION, operation)


OPERATORS: Dict[StrategyType, Operator] = {
    StrategyType.VALUE: value_operator,
    StrategyType.NETWORK: network_operator,
    StrategyType.TIME: time_operator,
    StrategyType.DATE: date_operator,
    StrategyType.REGEX: regex_operator,
    StrategyType.LOCATION: location_operator,
}


def process_operation(
    strategy: Union[StrategyType, str],
    operation: Union[OperationType, str],
    input: str,
    values: Sequence[str],
) -> bool:
    """Apply the operator for ``strategy`` to ``input`` and ``values``."""
    try:
        strategy = StrategyType(strategy)
        operation = OperationType(operation)
    except ValueError:
        logger.warning("unsupported_strategy", strategy=str(strategy), operation=str(operation))
        return False

    if input is None:
        return False

    try:
        return OPERATORS[strategy](operation, input, values)
    except Exception as e:
        logger.error(
            "Error processing operation",
            strategy=strategy.value,
            operation=operation.value,
            error=str(e)
        )
        return False


# None means "one or more operands"
REQUIREMENTS: Dict[StrategyType, StrategyRequirements] = {
    StrategyType.VALUE: StrategyRequirements(
        strategy=StrategyType.VALUE,
        operations={
            OperationType.EXIST: None,
            OperationType.NOT_EXIST: None,
            OperationType.EQUAL: 1,
            OperationType.NOT_EQUAL: 1,
        },
        format="Any string",
        example=["USER_1", "USER_2"],
    ),
    StrategyType.NETWORK: StrategyRequirements(
        strategy=StrategyType.NETWORK,
        operations={
            OperationType.EXIST: None,
            OperationType.NOT_EXIST: None,
        },
        format="IP address or CIDR block",
        example=["10.0.0.0/24", "192.168.0.1"],
    ),
    StrategyType.TIME: StrategyRequirements(
        strategy=StrategyType.TIME,
        operations={
            OperationType.GREATER: 1,
            OperationType.LOWER: 1,
            OperationType.BETWEEN: 2,
        },
        format="HH:MM (24-hour)",
        example=["08:00", "17:30"],
    ),
    StrategyType.DATE: StrategyRequirements(
        strategy=StrategyType.DATE,
        operations={
            OperationType.GREATER: 1,
            OperationType.LOWER: 1,
            OperationType.BETWEEN: 2,
        },
        format="ISO-8601 date or date-time (YYYY-MM-DD or YYYY-MM-DDTHH:MM)",
        example=["2019-12-01", "2019-12-01T13:00"],
    ),
    StrategyType.REGEX: StrategyRequirements(
        strategy=StrategyType.REGEX,
        operations={
            OperationType.EXIST: None,
            OperationType.NOT_EXIST: None,
            OperationType.EQUAL: 1,
            OperationType.NOT_EQUAL: 1,
        },
        format="Regular expression",
        example=[r"^USER_\d+$"],
    ),
    StrategyType.LOCATION: StrategyRequirements(
        strategy=StrategyType.LOCATION,
        operations={
            OperationType.EXIST: None,
            OperationType.NOT_EXIST: None,
        },
        format="Location name (case-sensitive)",
        example=["Vancouver", "Dallas"],
    ),
}

_OPERAND_PARSERS: Dict[StrategyType, Callable[[str], object]] = {
    StrategyType.NETWORK: parse_network,
    StrategyType.TIME: parse_time,
    StrategyType.DATE: parse_date,
    StrategyType.REGEX: _compile,
}


def strategy_requirements(strategy: Union[StrategyType, str]) -> StrategyRequirements:
    """Get operations and operand format accepted by a strategy type."""
    try:
        return REQUIREMENTS[StrategyType(strategy)]
    except ValueError:
        raise ValidationError(
            f"Strategy '{strategy}' is not supported",
            {"supported": [s.value for s in StrategyType]}
        )


def check_strategy_requirements(strategy: Strategy) -> List[str]:
    """List problems that would make a strategy fail closed on every input."""
    requirements = REQUIREMENTS[strategy.strategy]
    problems = []

    if strategy.operation not in requirements.operations:
        problems.append(
            f"Operation '{strategy.operation.value}' is not supported by '{strategy.strategy.value}'"
        )
        return problems

    expected = requirements.operations[strategy.operation]
    if expected is None and not strategy.values:
        problems.append(f"Operation '{strategy.operation.value}' requires at least one value")
    elif expected is not None and len(strategy.values) != expected:
        problems.append(
            f"Operation '{strategy.operation.value}' requires {expected} value(s), got {len(strategy.values)}"
        )

    parser = _OPERAND_PARSERS.get(strategy.strategy)
    if parser:
        for value in strategy.values:
            if parser(value) is None:
                problems.append(f"Value '{value}' does not match format: {requirements.format}")

    return problems
