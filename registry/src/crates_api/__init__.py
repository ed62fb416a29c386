"""Crate registry API: crate records, ownership, publishing and download accounting."""
