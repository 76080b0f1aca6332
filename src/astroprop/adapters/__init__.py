# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Adapters implementing port interfaces.
"""

from astroprop.adapters.json_io import JsonScenarioReader

__all__ = ["JsonScenarioReader"]
