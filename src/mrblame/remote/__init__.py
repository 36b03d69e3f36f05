"""Git remote URL handling."""

from .url_parser import (
    configured_git_host,
    extract_hostname,
    host_matches_provider,
    parse_remote_url,
)

__all__ = [
    "configured_git_host",
    "extract_hostname",
    "host_matches_provider",
    "parse_remote_url",
]
