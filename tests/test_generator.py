"""
Tests for bevyhatch.generator
=============================

This module contains tests for project materialization: target checks,
name resolution, template rendering, license and CI emission, version
control and end-to-end generation from every template source.

Test Organization
-----------------
- TestTargetDirectory: Tests for the empty-directory check
- TestProjectName: Tests for name resolution
- TestBuildContext: Tests for the template variable context
- TestLicenseFiles: Tests for license emission
- TestCIFiles: Tests for CI emission and conflict handling
- TestInitProject: End-to-end generation tests
- TestNewProject: Tests for directory creation
"""

import shutil
from collections.abc import Callable
from pathlib import Path
from unittest.mock import patch

import pytest

from bevyhatch.config import Settings
from bevyhatch.entries import TemplateStore
from bevyhatch.errors import (
    DirectoryNotEmptyError,
    FilesystemError,
    InvalidProjectNameError,
    RepositoryError,
    TemplateNotFoundError,
    TemplateRenderError,
    UnknownLicenseError,
)
from bevyhatch.generator import (
    GenerationResult,
    build_context,
    check_target_directory,
    init_project,
    new_project,
    resolve_project_name,
    write_ci_files,
    write_license_files,
    write_template_files,
)
from bevyhatch.models import (
    VCS,
    CIProvider,
    CISelection,
    ConflictPolicy,
    License,
    LicenseSelection,
    ProjectOptions,
)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """An empty target directory named ``bobgame``."""
    path = tmp_path / "bobgame"
    path.mkdir()
    return path


@pytest.fixture
def no_vcs() -> ProjectOptions:
    """Default options without git initialization."""
    return ProjectOptions(vcs=VCS.NONE)


def files_under(root: Path) -> list[str]:
    """Relative POSIX paths of all files under ``root``, excluding .git."""
    return sorted(
        p.relative_to(root).as_posix()
        for p in root.rglob("*")
        if p.is_file() and ".git" not in p.relative_to(root).parts
    )


# =============================================================================
# Target Directory Tests
# =============================================================================

class TestTargetDirectory:
    """Tests for check_target_directory."""

    def test_empty_directory_ok(self, project_dir: Path) -> None:
        check_target_directory(project_dir)

    def test_non_empty_directory(self, project_dir: Path) -> None:
        (project_dir / "existing.txt").write_text("hi")
        with pytest.raises(DirectoryNotEmptyError):
            check_target_directory(project_dir)

    def test_hidden_file_counts(self, project_dir: Path) -> None:
        (project_dir / ".hidden").write_text("")
        with pytest.raises(DirectoryNotEmptyError):
            check_target_directory(project_dir)

    def test_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(FilesystemError, match="not a directory"):
            check_target_directory(tmp_path / "missing")


# =============================================================================
# Project Name Tests
# =============================================================================

class TestProjectName:
    """Tests for resolve_project_name."""

    def test_defaults_to_directory_name(self, project_dir: Path) -> None:
        assert resolve_project_name(project_dir, None) == "bobgame"

    def test_explicit_name_wins(self, project_dir: Path) -> None:
        assert resolve_project_name(project_dir, "othergame") == "othergame"

    def test_invalid_directory_name(self, tmp_path: Path) -> None:
        bad = tmp_path / "my game"
        bad.mkdir()
        with pytest.raises(InvalidProjectNameError):
            resolve_project_name(bad, None)


# =============================================================================
# Context Tests
# =============================================================================

class TestBuildContext:
    """Tests for build_context."""

    def test_license_expression(self) -> None:
        context = build_context("bobgame", (License.APACHE2, License.MIT))
        assert context == {"name": "bobgame", "license": "Apache-2.0 OR MIT"}

    def test_no_licenses(self) -> None:
        assert build_context("bobgame", ())["license"] == ""


# =============================================================================
# License File Tests
# =============================================================================

class TestLicenseFiles:
    """Tests for write_license_files."""

    def test_writes_one_file_per_license(self, project_dir: Path) -> None:
        created, skipped = write_license_files(project_dir, (License.APACHE2, License.MIT))

        assert [p.name for p in created] == ["LICENSE-Apache-2.0", "LICENSE-MIT"]
        assert skipped == []
        assert "MIT License" in (project_dir / "LICENSE-MIT").read_text()

    def test_unknown_license_text(self, project_dir: Path) -> None:
        with pytest.raises(UnknownLicenseError, match="GPL-3.0-only"):
            write_license_files(project_dir, (License.GPL3,))

    def test_existing_file_skipped(self, project_dir: Path) -> None:
        (project_dir / "LICENSE-MIT").write_text("custom")

        created, skipped = write_license_files(project_dir, (License.MIT,))

        assert created == []
        assert skipped == [project_dir / "LICENSE-MIT"]
        assert (project_dir / "LICENSE-MIT").read_text() == "custom"

    def test_existing_file_fails_with_fail_policy(self, project_dir: Path) -> None:
        (project_dir / "LICENSE-MIT").write_text("custom")
        with pytest.raises(FilesystemError, match="already exists"):
            write_license_files(project_dir, (License.MIT,), ConflictPolicy.FAIL)


# =============================================================================
# CI File Tests
# =============================================================================

class TestCIFiles:
    """Tests for write_ci_files."""

    CONTEXT = {"name": "bobgame", "license": ""}

    def test_rerooted_under_output_dir(self, project_dir: Path) -> None:
        created, _ = write_ci_files(project_dir, (CIProvider.GITHUB,), self.CONTEXT)

        workflow = project_dir / ".github" / "workflows" / "ci.yml"
        assert created == [workflow]
        assert workflow.is_file()
        assert not (project_dir / "github").exists()

    def test_rendered_with_context(self, project_dir: Path) -> None:
        store = TemplateStore()
        store.add("github/workflows/build.yml.tera", b"name: {{ name }}\n")
        store.add("other/ignored.yml", b"x")

        created, _ = write_ci_files(
            project_dir, (CIProvider.GITHUB,), self.CONTEXT, ci_store=store,
        )

        assert created == [project_dir / ".github" / "workflows" / "build.yml"]
        assert created[0].read_text() == "name: bobgame\n"

    def test_no_providers(self, project_dir: Path) -> None:
        assert write_ci_files(project_dir, (), self.CONTEXT) == ([], [])
        assert files_under(project_dir) == []

    def test_existing_file_skipped(self, project_dir: Path) -> None:
        workflow = project_dir / ".github" / "workflows" / "ci.yml"
        workflow.parent.mkdir(parents=True)
        workflow.write_text("mine")

        created, skipped = write_ci_files(project_dir, (CIProvider.GITHUB,), self.CONTEXT)

        assert created == []
        assert skipped == [workflow]
        assert workflow.read_text() == "mine"

    def test_existing_file_fails_with_fail_policy(self, project_dir: Path) -> None:
        workflow = project_dir / ".github" / "workflows" / "ci.yml"
        workflow.parent.mkdir(parents=True)
        workflow.write_text("mine")

        with pytest.raises(FilesystemError):
            write_ci_files(
                project_dir, (CIProvider.GITHUB,), self.CONTEXT, ConflictPolicy.FAIL,
            )


# =============================================================================
# Template File Tests
# =============================================================================

class TestTemplateFiles:
    """Tests for write_template_files."""

    def test_existing_file_is_error(self, project_dir: Path) -> None:
        (project_dir / "Cargo.toml").write_text("mine")
        store = TemplateStore()
        store.add("Cargo.toml", b"x")

        with pytest.raises(FilesystemError, match="already exists"):
            write_template_files(project_dir, store, {"name": "x", "license": ""})
        assert (project_dir / "Cargo.toml").read_text() == "mine"

    def test_render_error_propagates(self, project_dir: Path) -> None:
        store = TemplateStore()
        store.add("bad.txt", b"{% endfor %}")
        with pytest.raises(TemplateRenderError):
            write_template_files(project_dir, store, {"name": "x", "license": ""})


# =============================================================================
# End-to-End Tests
# =============================================================================

class TestInitProject:
    """End-to-end tests for init_project."""

    def test_default_project(
        self, project_dir: Path, settings: Settings, no_vcs: ProjectOptions
    ) -> None:
        """Defaults: bundled template, Apache-2.0 + MIT, GitHub CI."""
        result = init_project(project_dir, no_vcs, settings)

        assert files_under(project_dir) == [
            ".github/workflows/ci.yml",
            ".gitignore",
            "Cargo.toml",
            "LICENSE-Apache-2.0",
            "LICENSE-MIT",
            "README.md",
            "assets/icon.png",
            "src/main.rs",
        ]
        cargo = (project_dir / "Cargo.toml").read_text()
        assert 'name = "bobgame"' in cargo
        assert 'license = "Apache-2.0 OR MIT"' in cargo
        assert result.name == "bobgame"
        assert result.licenses == (License.APACHE2, License.MIT)
        assert result.ci_providers == (CIProvider.GITHUB,)
        assert result.vcs_initialized is False
        assert len(result.files_created) == 8

    def test_binary_asset_copied_verbatim(
        self, project_dir: Path, settings: Settings, no_vcs: ProjectOptions
    ) -> None:
        init_project(project_dir, no_vcs, settings)

        icon = (project_dir / "assets" / "icon.png").read_bytes()
        assert icon.startswith(b"\x89PNG")

    def test_no_licenses_no_ci(
        self, project_dir: Path, settings: Settings
    ) -> None:
        options = ProjectOptions(
            licenses=LicenseSelection.from_values(["none"]),
            ci=CISelection.from_values(["none"]),
            vcs=VCS.NONE,
        )

        result = init_project(project_dir, options, settings)

        assert not list(project_dir.glob("LICENSE-*"))
        assert not (project_dir / ".github").exists()
        assert "license" not in (project_dir / "Cargo.toml").read_text()
        assert result.licenses == ()
        assert result.ci_providers == ()

    def test_explicit_name(
        self, project_dir: Path, settings: Settings
    ) -> None:
        options = ProjectOptions(name="coolgame", vcs=VCS.NONE)
        init_project(project_dir, options, settings)
        assert 'name = "coolgame"' in (project_dir / "Cargo.toml").read_text()

    def test_non_empty_directory_writes_nothing(
        self, project_dir: Path, settings: Settings, no_vcs: ProjectOptions
    ) -> None:
        (project_dir / "keep.txt").write_text("keep")

        with pytest.raises(DirectoryNotEmptyError):
            init_project(project_dir, no_vcs, settings)

        assert files_under(project_dir) == ["keep.txt"]

    def test_invalid_name_writes_nothing(
        self, tmp_path: Path, settings: Settings, no_vcs: ProjectOptions
    ) -> None:
        target = tmp_path / "9lives"
        target.mkdir()

        with pytest.raises(InvalidProjectNameError):
            init_project(target, no_vcs, settings)

        assert files_under(target) == []

    def test_unknown_template(
        self, project_dir: Path, settings: Settings
    ) -> None:
        options = ProjectOptions(template="not-installed", vcs=VCS.NONE)
        with pytest.raises(TemplateNotFoundError):
            init_project(project_dir, options, settings)
        assert files_under(project_dir) == []

    def test_unknown_license_keeps_template_files(
        self, project_dir: Path, settings: Settings
    ) -> None:
        """A failing stage leaves earlier output in place."""
        options = ProjectOptions(
            licenses=LicenseSelection.explicit(License.GPL3),
            vcs=VCS.NONE,
        )

        with pytest.raises(UnknownLicenseError):
            init_project(project_dir, options, settings)

        assert (project_dir / "Cargo.toml").is_file()
        assert not (project_dir / ".github").exists()

    def test_archive_template(
        self,
        project_dir: Path,
        settings: Settings,
        make_zip: Callable,
    ) -> None:
        make_zip(
            {
                "tpl-main/Cargo.toml": '[package]\nname = "{{ name }}"\n',
                "tpl-main/src/main.rs.tera": 'fn main() { println!("{{ name }}"); }\n',
                "tpl-main/src/keep.tera.tera": "{{ name }}",
                "tpl-main/assets/data.bin": b"\x00\xff\x10",
            },
            settings.template_dir / "mytpl.zip",
        )
        options = ProjectOptions(
            template="mytpl",
            licenses=LicenseSelection.from_values(["MIT"]),
            ci=CISelection.empty(),
            vcs=VCS.NONE,
        )

        init_project(project_dir, options, settings)

        assert files_under(project_dir) == [
            "Cargo.toml",
            "LICENSE-MIT",
            "assets/data.bin",
            "src/keep.tera",
            "src/main.rs",
        ]
        assert (project_dir / "Cargo.toml").read_text() == '[package]\nname = "bobgame"\n'
        assert (project_dir / "src" / "main.rs").read_text() == (
            'fn main() { println!("bobgame"); }\n'
        )
        assert (project_dir / "src" / "keep.tera").read_text() == "{{ name }}"
        assert (project_dir / "assets" / "data.bin").read_bytes() == b"\x00\xff\x10"

    def test_plain_directory_template(
        self, project_dir: Path, settings: Settings, tmp_path: Path
    ) -> None:
        template = tmp_path / "unpacked"
        (template / "src").mkdir(parents=True)
        (template / "Cargo.toml").write_text('name = "{{ name }}"\n')
        (template / "src" / "main.rs.tera").write_text("fn main() {}\n")
        options = ProjectOptions(
            template=str(template),
            licenses=LicenseSelection.empty(),
            ci=CISelection.empty(),
            vcs=VCS.NONE,
        )

        init_project(project_dir, options, settings)

        assert files_under(project_dir) == ["Cargo.toml", "src/main.rs"]
        assert (project_dir / "Cargo.toml").read_text() == 'name = "bobgame"\n'

    @pytest.mark.integration
    def test_repository_template(
        self,
        project_dir: Path,
        settings: Settings,
        git_template: Path,
    ) -> None:
        settings.template_dir.mkdir(parents=True)
        shutil.move(git_template, settings.template_dir / "repo-tpl")
        options = ProjectOptions(
            template="repo-tpl",
            licenses=LicenseSelection.empty(),
            ci=CISelection.empty(),
            vcs=VCS.NONE,
        )

        init_project(project_dir, options, settings)

        assert files_under(project_dir) == ["Cargo.toml", "assets/data.bin", "src/main.rs"]
        assert 'println!("bobgame")' in (project_dir / "src" / "main.rs").read_text()

    @pytest.mark.integration
    def test_git_initialized(self, project_dir: Path, settings: Settings) -> None:
        if shutil.which("git") is None:
            pytest.skip("git not installed")

        result = init_project(project_dir, ProjectOptions(), settings)

        assert result.vcs_initialized is True
        assert (project_dir / ".git").is_dir()

    def test_git_failure_is_reported(
        self, project_dir: Path, settings: Settings
    ) -> None:
        with patch(
            "bevyhatch.generator.vcs.init_repository",
            side_effect=RepositoryError("git executable not found"),
        ):
            with pytest.raises(RepositoryError):
                init_project(project_dir, ProjectOptions(), settings)

        # Files written before the failing stage stay
        assert (project_dir / "Cargo.toml").is_file()


# =============================================================================
# new_project Tests
# =============================================================================

class TestNewProject:
    """Tests for new_project."""

    def test_creates_directory(self, tmp_path: Path, settings: Settings) -> None:
        target = tmp_path / "nested" / "bobgame"

        result = new_project(target, ProjectOptions(vcs=VCS.NONE), settings)

        assert isinstance(result, GenerationResult)
        assert result.project_path == target.resolve()
        assert (target / "Cargo.toml").is_file()

    def test_existing_directory_fails(
        self, project_dir: Path, settings: Settings
    ) -> None:
        with pytest.raises(FilesystemError, match="already exists"):
            new_project(project_dir, ProjectOptions(vcs=VCS.NONE), settings)

    def test_verbose_output(self, tmp_path: Path, settings: Settings) -> None:
        """Verbose mode reports progress without changing the result."""
        result = new_project(
            tmp_path / "bobgame", ProjectOptions(vcs=VCS.NONE), settings, verbose=True,
        )
        assert result.name == "bobgame"
