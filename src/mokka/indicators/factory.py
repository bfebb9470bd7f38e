"""Build the configured indicator once per run."""

from __future__ import annotations

from typing import Any, Callable

from pydantic import ValidationError

from mokka.errors import ConfigurationError
from mokka.indicators.base import Indicator
from mokka.indicators.moving_average import MovingAverageIndicator, MovingAverageParams
from mokka.indicators.percent import PercentIndicator, PercentParams

_REGISTRY: dict[str, Callable[[dict[str, Any]], Indicator]] = {
    "percent": lambda p: PercentIndicator(PercentParams.model_validate(p)),
    "moving_average": lambda p: MovingAverageIndicator(MovingAverageParams.model_validate(p)),
}


def available() -> list[str]:
    return sorted(_REGISTRY)


def make_indicator(name: str, params: dict[str, Any] | None = None) -> Indicator:
    """Construct indicator *name* from its config section."""
    builder = _REGISTRY.get(name)
    if builder is None:
        raise ConfigurationError(
            f"Unknown indicator {name!r} (available: {', '.join(available())})"
        )
    try:
        return builder(params or {})
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid parameters for indicator {name!r}: {exc}") from exc
