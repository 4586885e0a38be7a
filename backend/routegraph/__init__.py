"""RouteGraph: transit routes persisted as chains of station-to-station graph edges."""

__version__ = "0.1.0"
