"""
Core routes module

Routes that are always mounted, independent of feature flags.
"""

from . import feature_flags, health, tasks
