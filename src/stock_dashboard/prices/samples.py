"""Static sample datasets — the last tier before giving up.

A sample directory holds one ``<SYMBOL>_sample.json`` file per symbol, each
a JSON list of ``{date, open, high, low, close, volume}`` objects. Symbols
without their own file get the default symbol's dataset instead.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from stock_dashboard.core.config import SamplesConfig
from stock_dashboard.core.exceptions import ConfigError
from stock_dashboard.core.models import PriceBar

logger = logging.getLogger(__name__)

_BARS = TypeAdapter(list[PriceBar])


class SampleStore:
    """Read-only access to the canned per-symbol datasets.

    Parsed files are memoized; the directory is never written to.
    """

    def __init__(self, config: SamplesConfig | None = None) -> None:
        config = config or SamplesConfig()
        self._dir = Path(config.sample_dir)
        self._default = config.default_symbol
        self._cache: dict[Path, list[PriceBar]] = {}

    @property
    def default_symbol(self) -> str:
        return self._default

    def sample_path(self, symbol: str) -> Path:
        return self._dir / f"{symbol.upper()}_sample.json"

    def has_sample(self, symbol: str) -> bool:
        return self.sample_path(symbol).is_file()

    def load_sample(self, symbol: str) -> list[PriceBar]:
        """Return the dataset for ``symbol``, else the default symbol's.

        Raises
        ------
        ConfigError
            If the default dataset is missing or unreadable.
        """
        symbol = symbol.upper()
        if symbol != self._default:
            try:
                return self._read(self.sample_path(symbol))
            except (OSError, ValueError) as e:
                logger.info(
                    "No usable sample for %s (%s), using %s", symbol, e, self._default
                )

        path = self.sample_path(self._default)
        try:
            return self._read(path)
        except (OSError, ValueError) as e:
            raise ConfigError(
                f"Default sample dataset unavailable: {path}",
                context={"field": "samples.default_symbol", "value": str(path)},
            ) from e

    def _read(self, path: Path) -> list[PriceBar]:
        if path in self._cache:
            return self._cache[path]
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
        try:
            bars = _BARS.validate_python(raw)
        except ValidationError as e:
            raise ValueError(f"malformed sample file {path.name}: {e}") from e
        bars = sorted(bars, key=lambda b: b.date)
        self._cache[path] = bars
        return bars
