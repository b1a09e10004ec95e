"""Concrete adapters for the interfaces in ``profmatch/interfaces/``."""
