"""Blame output parsing."""

from .parser import BlameParser, is_uncommitted, parse_blame_output

__all__ = ["BlameParser", "is_uncommitted", "parse_blame_output"]
