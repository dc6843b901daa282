"""I/O package for the outbreak simulation."""

from .csv_writer import CSVWriter
from .reporter import Reporter

__all__ = ['CSVWriter', 'Reporter']
