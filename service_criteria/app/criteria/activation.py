"""
Per-environment activation resolution.
"""

from typing import Mapping

from shared.logging import get_logger
from .models import DEFAULT_ENVIRONMENT

logger = get_logger("criteria.activation")


def resolve(
    activated: Mapping[str, bool],
    environment: str,
    default_environment: str = DEFAULT_ENVIRONMENT,
) -> bool:
    """Resolve whether an entity is active for an environment.

    An explicit entry for ``environment`` wins; otherwise the entry for
    ``default_environment`` applies. A map missing even the default entry
    is a data-integrity problem and resolves to inactive.
    """
    if environment in activated:
        return bool(activated[environment])

    if default_environment in activated:
        return bool(activated[default_environment])

    logger.warning(
        "activation_map_missing_default",
        environment=environment,
        default_environment=default_environment,
        known_environments=sorted(activated),
    )
    return False
