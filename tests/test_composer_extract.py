"""Tests for composer.json dependency extraction."""

from __future__ import annotations

import json

from lockkeeper.managers.composer.extract import (
    PHP_EXTRACT_VERSION,
    extract_package_file,
    get_lock_file_name,
)
from lockkeeper.managers.composer.models import PackageDependency
from lockkeeper.managers.composer.scanner import discover_manifests, scan

PACKAGIST = "https://packagist.org"


def _manifest(**data) -> str:
    return json.dumps(data)


# ── basics ───────────────────────────────────────────────────────────────


class TestExtractBasics:
    def test_invalid_json_returns_none(self):
        assert extract_package_file("{not json", "composer.json") is None

    def test_non_object_returns_none(self):
        assert extract_package_file("[1, 2, 3]", "composer.json") is None

    def test_no_dependencies_returns_none(self):
        assert extract_package_file(_manifest(name="acme/app"), "composer.json") is None

    def test_empty_require_blocks_return_none(self):
        content = _manifest(require={}, **{"require-dev": []})
        assert extract_package_file(content, "composer.json") is None

    def test_non_string_constraint_returns_none(self):
        assert extract_package_file(_manifest(require={"acme/widget": 2}), "composer.json") is None

    def test_single_registry_dependency(self):
        res = extract_package_file(_manifest(require={"acme/widget": "^2.0"}), "composer.json")
        assert res is not None
        assert res.deps == [
            PackageDependency(
                dep_name="acme/widget",
                dep_type="require",
                current_value="^2.0",
                datasource="packagist",
                registry_urls=[PACKAGIST],
            )
        ]
        assert res.lock_files == []
        assert res.manager_data is None
        assert res.extracted_constraints == {}

    def test_constraint_is_trimmed(self):
        res = extract_package_file(_manifest(require={"acme/widget": "  ~1.4 "}), "composer.json")
        assert res.deps[0].current_value == "~1.4"

    def test_declaration_order_require_before_require_dev(self):
        content = json.dumps(
            {
                "require-dev": {"phpunit/phpunit": "^10.0", "mockery/mockery": "^1.6"},
                "require": {"symfony/console": "^6.4", "guzzlehttp/guzzle": "^7.8"},
            }
        )
        res = extract_package_file(content, "composer.json")
        assert [(d.dep_name, d.dep_type) for d in res.deps] == [
            ("symfony/console", "require"),
            ("guzzlehttp/guzzle", "require"),
            ("phpunit/phpunit", "require-dev"),
            ("mockery/mockery", "require-dev"),
        ]

    def test_project_type_passed_through(self):
        content = _manifest(type="library", require={"acme/widget": "^2.0"})
        res = extract_package_file(content, "composer.json")
        assert res.manager_data.composer_json_type == "library"

    def test_non_string_type_ignored(self):
        content = _manifest(type=["library"], require={"acme/widget": "^2.0"})
        res = extract_package_file(content, "composer.json")
        assert res.manager_data is None


# ── skip reasons ─────────────────────────────────────────────────────────


class TestSkipReasons:
    def test_unscoped_names_are_unsupported_but_kept(self):
        content = _manifest(require={"monolog": "^3.0", "ext-json": "*", "lib-curl": "*"})
        res = extract_package_file(content, "composer.json")
        assert len(res.deps) == 3
        assert all(d.skip_reason == "unsupported" for d in res.deps)
        assert all(d.registry_urls is None for d in res.deps)
        assert all(d.datasource == "packagist" for d in res.deps)

    def test_path_repository_dependency(self):
        content = _manifest(
            repositories=[{"type": "path", "url": "../packages/lib", "name": "acme/lib"}],
            require={"acme/lib": "*@dev"},
        )
        res = extract_package_file(content, "composer.json")
        assert res.deps == [
            PackageDependency(
                dep_name="acme/lib",
                dep_type="require",
                current_value="*@dev",
                skip_reason="path-dependency",
            )
        ]


# ── repositories ─────────────────────────────────────────────────────────


class TestRepositoryBinding:
    def test_vcs_repository_mapping_form(self):
        content = _manifest(
            repositories={
                "acme/private": {"type": "vcs", "url": "https://github.com/acme/private"},
            },
            require={"acme/private": "^1.0", "acme/public": "^2.0"},
        )
        res = extract_package_file(content, "composer.json")
        private, public = res.deps
        assert private.datasource == "git-tags"
        assert private.package_name == "https://github.com/acme/private"
        assert private.registry_urls is None
        assert public.datasource == "packagist"
        assert public.package_name is None
        assert public.registry_urls == [PACKAGIST]

    def test_git_repository_list_form(self):
        content = _manifest(
            repositories=[
                {"name": "acme/tool", "type": "git", "url": "git@gitlab.com:acme/tool.git"},
            ],
            require={"acme/tool": "^3.1"},
        )
        dep = extract_package_file(content, "composer.json").deps[0]
        assert dep.datasource == "git-tags"
        assert dep.package_name == "git@gitlab.com:acme/tool.git"

    def test_composer_repository_adds_registry_before_packagist(self):
        content = _manifest(
            repositories=[
                {"type": "composer", "url": "https://gitlab.example.com/api/v4/group/1/-/packages/composer/packages.json"},
            ],
            require={"acme/widget": "^2.0"},
        )
        dep = extract_package_file(content, "composer.json").deps[0]
        assert dep.registry_urls == [
            "https://gitlab.example.com/api/v4/group/1/-/packages/composer",
            PACKAGIST,
        ]

    def test_packagist_disabled(self):
        content = _manifest(
            repositories=[
                {"type": "composer", "url": "https://repo.example.com"},
                {"packagist.org": False},
            ],
            require={"acme/widget": "^2.0"},
        )
        dep = extract_package_file(content, "composer.json").deps[0]
        assert dep.registry_urls == ["https://repo.example.com"]

    def test_only_packagist_disabled_means_no_registry_urls(self):
        content = _manifest(
            repositories={"packagist": False},
            require={"acme/widget": "^2.0"},
        )
        dep = extract_package_file(content, "composer.json").deps[0]
        assert dep.registry_urls is None
        assert dep.skip_reason is None

    def test_unnamed_vcs_repository_keeps_registry_urls(self):
        content = _manifest(
            repositories=[
                {"type": "vcs", "url": "https://github.com/acme/fork"},
                {"type": "composer", "url": "https://repo.example.com"},
            ],
            require={"acme/widget": "^2.0"},
        )
        dep = extract_package_file(content, "composer.json").deps[0]
        assert dep.datasource == "packagist"
        assert dep.registry_urls == ["https://repo.example.com", PACKAGIST]

    def test_malformed_repositories_do_not_abort(self):
        content = _manifest(repositories="https://repo.example.com", require={"acme/widget": "^2.0"})
        res = extract_package_file(content, "composer.json")
        assert len(res.deps) == 1
        assert res.deps[0].registry_urls is None


# ── php ──────────────────────────────────────────────────────────────────


class TestPhpDependency:
    def test_php_uses_php_src_tags(self):
        content = _manifest(require={"php": ">=8.1", "acme/widget": "^2.0"})
        res = extract_package_file(content, "composer.json")
        php = res.deps[0]
        assert php.dep_name == "php"
        assert php.datasource == "github-tags"
        assert php.package_name == "php/php-src"
        assert php.extract_version == PHP_EXTRACT_VERSION
        assert php.skip_reason is None
        assert php.registry_urls is None
        assert res.extracted_constraints == {"php": ">=8.1"}

    def test_php_in_require_dev_has_no_extracted_constraint(self):
        content = json.dumps({"require-dev": {"php": "^8.2"}})
        res = extract_package_file(content, "composer.json")
        assert res.deps[0].datasource == "github-tags"
        assert res.extracted_constraints == {}


# ── lock file ────────────────────────────────────────────────────────────


class TestLockFile:
    def test_lock_file_name(self):
        assert get_lock_file_name("composer.json") == "composer.lock"
        assert get_lock_file_name("apps/api/composer.json") == "apps/api/composer.lock"

    def test_locked_version_strips_leading_v(self, repo, fs, write_json):
        write_json(repo / "composer.lock", {"packages": [{"name": "foo/bar", "version": "v1.2.3"}]})
        res = extract_package_file(_manifest(require={"foo/bar": "^1.2"}), "composer.json", fs)
        assert res.lock_files == ["composer.lock"]
        assert res.deps[0].locked_version == "1.2.3"

    def test_dev_dependency_reads_packages_dev(self, repo, fs, write_json):
        write_json(
            repo / "composer.lock",
            {
                "packages": [{"name": "phpunit/phpunit", "version": "9.6.0"}],
                "packages-dev": [{"name": "phpunit/phpunit", "version": "10.5.2"}],
            },
        )
        content = json.dumps({"require-dev": {"phpunit/phpunit": "^10.5"}})
        res = extract_package_file(content, "composer.json", fs)
        assert res.deps[0].locked_version == "10.5.2"

    def test_require_does_not_read_packages_dev(self, repo, fs, write_json):
        write_json(
            repo / "composer.lock",
            {"packages": [], "packages-dev": [{"name": "foo/bar", "version": "1.0.0"}]},
        )
        res = extract_package_file(_manifest(require={"foo/bar": "^1.0"}), "composer.json", fs)
        assert res.deps[0].locked_version is None

    def test_branch_alias_is_not_a_locked_version(self, repo, fs, write_json):
        write_json(repo / "composer.lock", {"packages": [{"name": "foo/bar", "version": "dev-main"}]})
        res = extract_package_file(_manifest(require={"foo/bar": "dev-main"}), "composer.json", fs)
        assert res.deps[0].locked_version is None

    def test_first_matching_record_wins(self, repo, fs, write_json):
        write_json(
            repo / "composer.lock",
            {
                "packages": [
                    {"name": "foo/bar", "version": "2.0.0"},
                    {"name": "foo/bar", "version": "3.0.0"},
                ]
            },
        )
        res = extract_package_file(_manifest(require={"foo/bar": "^2.0"}), "composer.json", fs)
        assert res.deps[0].locked_version == "2.0.0"

    def test_unscoped_dependency_still_gets_locked_version(self, repo, fs, write_json):
        write_json(repo / "composer.lock", {"packages": [{"name": "legacy", "version": "1.1.0"}]})
        res = extract_package_file(_manifest(require={"legacy": "^1.0"}), "composer.json", fs)
        assert res.deps[0].skip_reason == "unsupported"
        assert res.deps[0].locked_version == "1.1.0"

    def test_invalid_lock_json_is_ignored(self, repo, fs, write_json):
        (repo / "composer.lock").write_text("{broken")
        res = extract_package_file(_manifest(require={"foo/bar": "^1.0"}), "composer.json", fs)
        assert res.lock_files == ["composer.lock"]
        assert res.deps[0].locked_version is None

    def test_nested_manifest_reads_sibling_lock(self, repo, fs, write_json):
        write_json(repo / "app" / "composer.lock", {"packages": [{"name": "foo/bar", "version": "1.0.1"}]})
        res = extract_package_file(_manifest(require={"foo/bar": "^1.0"}), "app/composer.json", fs)
        assert res.lock_files == ["app/composer.lock"]
        assert res.deps[0].locked_version == "1.0.1"


# ── scanner ──────────────────────────────────────────────────────────────


class TestScanner:
    def test_discover_skips_vendor(self, repo, write_json):
        write_json(repo / "composer.json", {"require": {"a/b": "^1.0"}})
        write_json(repo / "packages" / "core" / "composer.json", {"require": {"c/d": "^1.0"}})
        write_json(repo / "vendor" / "a" / "b" / "composer.json", {"require": {"e/f": "^1.0"}})
        found = [p.relative_to(repo).as_posix() for p in discover_manifests(repo)]
        assert found == ["composer.json", "packages/core/composer.json"]

    def test_discover_empty_repo(self, repo):
        assert discover_manifests(repo) == []

    def test_scan_keys_are_relative_paths(self, repo, write_json):
        write_json(repo / "composer.json", {"require": {"a/b": "^1.0"}})
        write_json(repo / "composer.lock", {"packages": [{"name": "a/b", "version": "1.3.0"}]})
        write_json(repo / "tools" / "composer.json", {"name": "empty/manifest"})
        results = scan(repo)
        assert list(results) == ["composer.json"]
        assert results["composer.json"].deps[0].locked_version == "1.3.0"
