"""Metric family data types, value codec and text exposition."""
