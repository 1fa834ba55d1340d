"""Core turn engine: metrics, catalog, resolver, rules, achievements.

No UI, network or global state here.
"""

API_VERSION = "core-v1-unit-economics"
