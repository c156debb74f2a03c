"""
Row Store - Row-oriented storage engine

A single-process, single-user table store with column constraints,
in-memory indexes, a line-oriented text format, and directory-per-database
persistence with an audit log and threshold-driven checkpoints.
"""

__version__ = "0.1.0"
__author__ = "Systems Engineering Portfolio"
