"""
app/parsing package marker.
"""

from app.parsing.csv_parser import parse_csv

__all__ = ["parse_csv"]
