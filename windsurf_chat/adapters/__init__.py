"""
Adapters for chat inference backends.

Provider-agnostic architecture: Protocol defines WHAT, implementations define HOW.
"""

from .base import HostAdapter
from .schema import InferenceTask
from .windsurf import WindsurfAdapter

__all__ = ["HostAdapter", "InferenceTask", "WindsurfAdapter"]
