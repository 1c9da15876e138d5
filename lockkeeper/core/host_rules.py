"""In-memory credential rules, matched by host type and URL."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any
from urllib.parse import urlparse


def _hostname(value: str) -> str | None:
    """Hostname of a URL, or the value itself when it is a bare host."""
    if "://" in value:
        return urlparse(value).hostname
    return value.split("/", 1)[0].lower() or None


@dataclass
class HostRule:
    """Credentials for a host, optionally restricted to one host type.

    ``match_host`` is either a bare hostname (``gitlab.example.com``) or a
    URL (``https://repo.example.com/composer``).
    """

    host_type: str | None = None
    match_host: str | None = None
    token: str | None = None
    username: str | None = None
    password: str | None = None

    @property
    def resolved_host(self) -> str | None:
        if not self.match_host:
            return None
        return _hostname(self.match_host)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HostRule:
        """Build a rule from a camelCase or snake_case mapping."""
        return cls(
            host_type=data.get("hostType", data.get("host_type")),
            match_host=data.get("matchHost", data.get("match_host")),
            token=data.get("token"),
            username=data.get("username"),
            password=data.get("password"),
        )

    def _matches(self, host_type: str | None, url: str | None) -> bool:
        if self.host_type and self.host_type != host_type:
            return False
        if not self.match_host:
            return True
        if not url:
            return False
        url_host = _hostname(url)
        rule_host = self.resolved_host
        if not url_host or not rule_host:
            return False
        if url_host != rule_host and not url_host.endswith("." + rule_host):
            return False
        if "://" in self.match_host:
            return url.startswith(self.match_host.rstrip("/"))
        return True

    def _specificity(self) -> int:
        score = 0
        if self.host_type:
            score += 1
        if self.match_host:
            score += 2
        return score


class HostRules:
    """A small credential-rule store."""

    def __init__(self, rules: list[HostRule] | None = None) -> None:
        self._rules: list[HostRule] = list(rules or [])

    def add(self, rule: HostRule) -> None:
        self._rules.append(rule)

    def clear(self) -> None:
        self._rules.clear()

    def find(self, host_type: str | None = None, url: str | None = None) -> HostRule:
        """Merge every rule matching *host_type* and *url*.

        Less specific rules are applied first so that a rule naming both a
        host type and a host overrides a catch-all rule.
        """
        matching = [r for r in self._rules if r._matches(host_type, url)]
        matching.sort(key=HostRule._specificity)
        merged = HostRule(host_type=host_type)
        for rule in matching:
            for f in fields(HostRule):
                if f.name in ("host_type", "match_host"):
                    continue
                value = getattr(rule, f.name)
                if value is not None:
                    setattr(merged, f.name, value)
            if rule.match_host:
                merged.match_host = rule.match_host
        return merged

    def find_all(self, host_type: str) -> list[HostRule]:
        """Every rule declared for exactly *host_type*, in insertion order."""
        return [r for r in self._rules if r.host_type == host_type]
