"""Spreadsheet import: parsing, column matching, lenient coercion, and execution."""
