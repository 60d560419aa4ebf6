"""
flatdb - Flat-file tabular data store

Each table is a single tab-delimited text file with a header row. Mutations
are serialized across processes with a directory lock and committed by
atomic rename.
"""

__version__ = "0.1.0"
__author__ = "Systems Engineering Portfolio"
