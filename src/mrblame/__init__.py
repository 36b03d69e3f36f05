"""
mrblame - find the merge/pull request behind any line of code.

Resolves the commit that last touched a line (via git blame) to the GitLab
merge request or GitHub pull request that landed it, with TTL caching and
coalescing of concurrent lookups.
"""

__version__ = "0.1.0"
