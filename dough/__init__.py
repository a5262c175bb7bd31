# dough/__init__.py
__all__ = [
    "molecules", "bonds", "spatial_grid", "physics",
    "chemistry", "simulation", "metrics", "constants"
]
