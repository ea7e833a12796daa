"""Habitta Core - system update authority and lifecycle prediction engine.

Resolves conflicting evidence about a home's systems (HVAC, roof, water
heater), keeps one canonical record per system, and derives survival
predictions and a home-level planning outlook from the result.
"""

__version__ = "0.3.0"


# Lazy imports keep `import habitta` light for the CLI
def __getattr__(name: str):
    if name == "models":
        from habitta import models
        return models
    if name == "updates":
        from habitta import updates
        return updates
    if name == "lifecycle":
        from habitta import lifecycle
        return lifecycle
    if name == "alerts":
        from habitta import alerts
        return alerts
    if name == "store":
        from habitta import store
        return store
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
