"""Spreadsheet I/O: cell conversion, worksheet reading and table writing."""
