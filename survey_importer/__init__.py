"""CSV -> survey platform answer importer."""

__version__ = "0.1.0"
