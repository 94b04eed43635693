"""Mapping table parsing, lookup tables and the table cache."""
