"""Git remote URL parsing and host matching helpers."""

import re
from typing import Optional
from urllib.parse import urlparse, urlunparse

from ..models import RemoteIdentity

# user@host:group/project.git (scp-like syntax, no scheme)
SCP_REMOTE_PATTERN = re.compile(r"^(?:[^@/\s]+@)?([^:/\s]+):(?!//)(.+)$")

SUPPORTED_SCHEMES = ("http", "https", "ssh", "git", "git+ssh", "ssh+git")


def _clean_project_path(path: str) -> str:
    path = path.strip().strip("/")
    if path.endswith(".git"):
        path = path[: -len(".git")]
    return path.strip("/")


def parse_remote_url(remote_url: Optional[str]) -> Optional[RemoteIdentity]:
    """Extract host URL and project path from a git remote URL.

    Args:
        remote_url: Remote URL in SSH (``git@host:group/project.git``,
            ``ssh://git@host:2222/group/project.git``) or HTTP(S) form

    Returns:
        RemoteIdentity, or None if the URL cannot be parsed or has no path

    Examples:
        ``git@gitlab.com:group/sub/project.git`` ->
        ``RemoteIdentity("https://gitlab.com", "group/sub/project")``

        ``https://github.com/owner/repo`` ->
        ``RemoteIdentity("https://github.com", "owner/repo")``
    """
    if not remote_url:
        return None
    remote_url = remote_url.strip()

    parsed = urlparse(remote_url)
    if parsed.scheme in SUPPORTED_SCHEMES and parsed.netloc:
        hostname = parsed.hostname
        if not hostname:
            return None
        project_path = _clean_project_path(parsed.path)
        if not project_path:
            return None

        if parsed.scheme in ("http", "https"):
            try:
                port = parsed.port
            except ValueError:
                return None
            netloc = hostname if port is None else f"{hostname}:{port}"
            host_url = urlunparse((parsed.scheme, netloc, "", "", "", ""))
        else:
            # SSH ports are not web ports; the web UI lives on https
            host_url = f"https://{hostname}"
        return RemoteIdentity(host_url=host_url, project_path=project_path)

    scp_match = SCP_REMOTE_PATTERN.match(remote_url)
    if scp_match and "://" not in remote_url:
        host, path = scp_match.groups()
        project_path = _clean_project_path(path)
        if not project_path:
            return None
        return RemoteIdentity(host_url=f"https://{host.lower()}", project_path=project_path)

    return None


def extract_hostname(remote_url: Optional[str]) -> Optional[str]:
    """Return the lower-cased hostname of a remote URL, or None."""
    identity = parse_remote_url(remote_url)
    if identity is not None:
        return identity.hostname or None

    # Host-only URLs (no project path) still have a hostname worth matching
    if not remote_url:
        return None
    parsed = urlparse(remote_url.strip())
    if parsed.hostname:
        return parsed.hostname.lower()
    scp_match = SCP_REMOTE_PATTERN.match(remote_url.strip())
    if scp_match:
        return scp_match.group(1).lower()
    return None


def configured_git_host(base_url: Optional[str]) -> str:
    """Hostname of a configured base URL with a leading ``api.`` removed.

    Git remotes point at ``github.example.com`` even when the configured
    API endpoint is ``https://api.github.example.com``.
    """
    if not base_url:
        return ""
    hostname = (urlparse(base_url.strip()).hostname or "").lower()
    if hostname.startswith("api."):
        hostname = hostname[len("api.") :]
    return hostname


def host_matches_provider(
    remote_url: Optional[str], brand_token: str, base_url: Optional[str] = None
) -> bool:
    """Decide whether a remote belongs to a provider.

    Matches when the hostname contains the provider's brand token (for example
    ``gitlab``), or equals the configured base URL's host. The second rule
    covers self-hosted deployments whose hostnames carry no brand token.
    """
    hostname = extract_hostname(remote_url)
    if not hostname:
        return False
    if brand_token and brand_token.lower() in hostname:
        return True
    configured = configured_git_host(base_url)
    return bool(configured) and hostname == configured
