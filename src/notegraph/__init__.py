"""notegraph: a local knowledge graph over a markdown note collection."""

__version__ = "0.1.0"
