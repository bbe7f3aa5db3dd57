"""GitHub repository URL grammar."""

from __future__ import annotations

import re
from typing import Optional

from docpilot.services.change_source import RepoLocator

# https://github.com/owner/repo, with optional .git and trailing slash
_HTTPS_PATTERN = re.compile(
    r"github\.com/(?P<owner>[^/\s]+)/(?P<name>[^/\s]+?)(?:\.git)?/?$"
)
# git@github.com:owner/repo.git
_SSH_PATTERN = re.compile(
    r"git@github\.com:(?P<owner>[^/\s]+)/(?P<name>[^/\s]+?)(?:\.git)?$"
)


def parse_github_url(url: str) -> Optional[RepoLocator]:
    if not url:
        return None
    candidate = url.strip()
    for pattern in (_HTTPS_PATTERN, _SSH_PATTERN):
        match = pattern.search(candidate)
        if match:
            return RepoLocator(owner=match.group("owner"), name=match.group("name"))
    return None
