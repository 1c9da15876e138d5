"""Build the COMPOSER_AUTH payload from credential rules.

See https://getcomposer.org/doc/articles/authentication-for-private-packages.md
for the structure Composer expects.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from lockkeeper.core.host_rules import HostRules
from lockkeeper.managers.composer.models import GIT_TAGS_DATASOURCE, PACKAGIST_DATASOURCE

GITHUB_API_URL = "https://api.github.com/"
GITHUB_URL = "https://github.com"
GITHUB_HOST = "github.com"
GITLAB_DEFAULT_HOST = "gitlab.com"

_GITHUB_PAT_PREFIX = "ghp_"
_ACCESS_TOKEN_PREFIX = "x-access-token:"


def is_github_personal_access_token(token: str) -> bool:
    return token.startswith(_GITHUB_PAT_PREFIX)


def find_github_token(host_rules: HostRules, host_type: str, url: str) -> str | None:
    """Token for a GitHub host type, with any ``x-access-token:`` prefix removed."""
    token = host_rules.find(host_type, url).token
    if not token:
        return None
    return token.replace(_ACCESS_TOKEN_PREFIX, "", 1)


def take_personal_access_token_if_possible(
    github_token: str | None,
    git_tags_github_token: str | None,
) -> str | None:
    """Pick which GitHub token to hand to Composer.

    A personal access token (``ghp_`` prefix) wins over any other token
    shape; on a tie the git-tags token wins.
    """
    if git_tags_github_token and is_github_personal_access_token(git_tags_github_token):
        return git_tags_github_token
    if github_token and is_github_personal_access_token(github_token):
        return github_token
    if git_tags_github_token:
        return git_tags_github_token
    return github_token


@dataclass
class AuthJson:
    """auth.json under construction. Every section stays None until written."""

    github_oauth: dict[str, str] | None = None
    gitlab_token: dict[str, str] | None = None
    gitlab_domains: list[str] | None = None
    http_basic: dict[str, dict[str, str]] | None = None
    bearer: dict[str, str] | None = None

    def set_github_oauth(self, host: str, token: str) -> None:
        self.github_oauth = {host: token}

    def add_gitlab_token(self, host: str, token: str) -> None:
        if self.gitlab_token is None:
            self.gitlab_token = {}
        self.gitlab_token[host] = token
        # Most recently added domain first.
        self.gitlab_domains = [host, *(self.gitlab_domains or [])]

    def add_http_basic(self, host: str, username: str, password: str) -> None:
        if self.http_basic is None:
            self.http_basic = {}
        self.http_basic[host] = {"username": username, "password": password}

    def add_bearer(self, host: str, token: str) -> None:
        if self.bearer is None:
            self.bearer = {}
        self.bearer[host] = token

    def to_dict(self) -> dict[str, Any]:
        sections = {
            "github-oauth": self.github_oauth,
            "gitlab-token": self.gitlab_token,
            "gitlab-domains": self.gitlab_domains,
            "http-basic": self.http_basic,
            "bearer": self.bearer,
        }
        return {k: v for k, v in sections.items() if v is not None}

    def to_json(self) -> str | None:
        data = self.to_dict()
        return json.dumps(data) if data else None


def get_auth_json(host_rules: HostRules) -> str | None:
    """Serialized auth.json for COMPOSER_AUTH, or None when no credentials apply."""
    auth = AuthJson()

    github_token = find_github_token(host_rules, "github", GITHUB_API_URL)
    git_tags_github_token = find_github_token(host_rules, GIT_TAGS_DATASOURCE, GITHUB_URL)
    selected = take_personal_access_token_if_possible(github_token, git_tags_github_token)
    if selected:
        auth.set_github_oauth(GITHUB_HOST, selected)

    for rule in host_rules.find_all("gitlab"):
        if rule.token:
            auth.add_gitlab_token(rule.resolved_host or GITLAB_DEFAULT_HOST, rule.token)

    for rule in host_rules.find_all(PACKAGIST_DATASOURCE):
        host = rule.resolved_host
        if host and rule.username and rule.password:
            auth.add_http_basic(host, rule.username, rule.password)
        elif host and rule.token:
            auth.add_bearer(host, rule.token)

    return auth.to_json()
