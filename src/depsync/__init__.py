"""depsync — keep workspace manifests in sync with what the code imports."""

__version__ = "0.1.0"
