"""
p11: Utilities for maintaining partic11e repositories.

This package scaffolds new repositories with the standard boilerplate
files and keeps their GitHub issue labels consistent with the canonical
label set published in the template store.
"""

__version__ = "0.1.0"
