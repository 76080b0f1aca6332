# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
JSON scenario file adapter.

Reads scenario configuration from JSON files. Parse errors are reported as
ConfigurationError so callers handle every malformed scenario the same way.
"""
import json
import logging
from typing import Any

from astroprop.domain.errors import ConfigurationError
from astroprop.ports import ScenarioReader

logger = logging.getLogger(__name__)


class JsonScenarioReader(ScenarioReader):
    """Reads scenario data from JSON files."""

    def read_scenario(self, path: str) -> dict[str, Any]:
        with open(path, encoding='utf-8') as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"{path}: invalid JSON ({e})") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"{path}: scenario must be a JSON object")
        logger.debug("Read scenario %s", path)
        return data
