"""Asset lineage: context graphs and scoped lineage queries over a metadata catalog."""

__version__ = "0.1.0"
