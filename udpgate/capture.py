"""Filter that captures bytes from a packet into its metadata."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional

from udpgate.capture_config import Config
from udpgate.capture_strategies import CaptureMetrics
from udpgate.filters import FilterError, StaticFilter

_log = logging.getLogger(__name__)


class Capture(StaticFilter):
    """Captures bytes from each read packet and stores them in its metadata.

    The captured value is stored under the configured metadata key, and
    whether anything was captured under `<metadata_key>/is_present`.
    A packet from which nothing could be captured is dropped.
    """

    NAME = "quilkin.filters.capture.v1alpha1.Capture"

    def __init__(self, config: Config, metrics: Optional[CaptureMetrics] = None) -> None:
        self.strategy = config.strategy
        self.metrics = CaptureMetrics() if metrics is None else metrics
        self.metadata_key = config.metadata_key
        self.is_present_key = f"{config.metadata_key}/is_present"

    def read(self, ctx: Any) -> bool:
        if not isinstance(ctx.contents, bytearray):
            ctx.contents = bytearray(ctx.contents)
        captured = self.strategy.capture(ctx.contents, self.metrics)
        ctx.metadata[self.is_present_key] = captured is not None
        if captured is None:
            _log.debug("No value captured for key %s", self.metadata_key)
            return False
        _log.debug("captured value for key %s", self.metadata_key)
        ctx.metadata[self.metadata_key] = captured
        return True

    @classmethod
    def try_from_config(cls, config: Optional[Any]) -> Capture:
        """Create the filter from a Config or its mapping form."""
        config = cls.ensure_config_exists(config)
        if isinstance(config, Mapping):
            try:
                config = Config.from_dict(config)
            except (TypeError, ValueError) as error:
                raise FilterError(f"filter `{cls.NAME}`: invalid config: {error}") from error
        if not isinstance(config, Config):
            raise FilterError(f"filter `{cls.NAME}`: unsupported config type {type(config).__name__}")
        return cls(config, CaptureMetrics())