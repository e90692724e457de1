"""Employee spreadsheet import / export for the employment certificate service."""

__version__ = "0.1.0"
