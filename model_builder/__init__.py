"""Model Builder: projects, datasets, model configs and simulated training jobs."""

__version__ = "1.0.0"
