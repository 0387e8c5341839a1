"""Column metadata facade for database catalog readers."""

__version__ = "0.1.0"
