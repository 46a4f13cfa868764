"""Internal implementation modules; import public names from ``foldlab``."""
