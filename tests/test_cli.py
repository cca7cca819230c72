"""
Tests for the AutoPatch command line.
"""

import json
import shutil

import pytest

from autopatch.main import main

from tests.conftest import make_diff


def _write_project(project, patches, installed):
    (project.root / "project.json").write_text(json.dumps({
        "name": "acme/project",
        "extra": {"patches": patches},
    }))
    (project.vendor_dir / "installed.json").write_text(json.dumps({"packages": installed}))


def _run(project, *args):
    with pytest.raises(SystemExit) as excinfo:
        main(["--project", str(project.root / "project.json"), *args])
    return excinfo.value.code


def _installed(project):
    data = json.loads((project.vendor_dir / "installed.json").read_text())
    return {item["name"]: item for item in data["packages"]}


class TestResolveCommand:
    def test_json_output(self, project, capsys):
        _write_project(project, {"my/pkg": {"fix header": "patches/fix.patch"}}, [])

        assert _run(project, "resolve", "--json") == 0

        output = json.loads(capsys.readouterr().out)
        assert output == {"my/pkg": [{
            "package": "my/pkg",
            "url": "patches/fix.patch",
            "description": "fix header",
            "resolver": "root",
        }]}

    def test_missing_project_file(self, tmp_path):
        with pytest.raises(SystemExit) as excinfo:
            main(["--project", str(tmp_path / "nope.json"), "resolve"])
        assert excinfo.value.code == 1


class TestCheckCommand:
    def test_clean(self, project):
        _write_project(
            project,
            {"my/pkg": {"fix": "patches/fix.patch"}},
            [{"name": "my/pkg", "extra": {"patches_applied": {"fix": "patches/fix.patch"}}}],
        )
        assert _run(project, "check") == 0

    def test_drift_reported(self, project):
        _write_project(
            project,
            {"my/pkg": {"fix": "patches/fix-v2.patch"}},
            [{"name": "my/pkg", "extra": {"patches_applied": {"fix": "patches/fix.patch"}}}],
        )
        assert _run(project, "check") == 1
        # check never rewrites the installed file
        assert "my/pkg" in _installed(project)


@pytest.mark.skipif(shutil.which("patch") is None, reason="patch is not installed")
class TestApplyCommand:
    def test_apply_and_record(self, project):
        url = project.write_patch("fix.patch", make_diff())
        project.install("my/pkg")
        _write_project(project, {"my/pkg": {"fix header": url}}, [{"name": "my/pkg", "version": "1.0.0"}])

        assert _run(project, "apply") == 0

        assert (project.vendor_dir / "my/pkg" / "header.h").read_text() == "new\n"
        assert _installed(project)["my/pkg"]["extra"]["patches_applied"] == {"fix header": url}

        # Running again leaves the patched package alone
        assert _run(project, "apply") == 0
        assert (project.vendor_dir / "my/pkg" / "header.h").read_text() == "new\n"

    def test_failed_patch_exits_non_zero(self, project):
        url = project.write_patch("bad.patch", make_diff(old="missing"))
        project.install("my/pkg")
        _write_project(project, {"my/pkg": {"bad": url}}, [{"name": "my/pkg"}])

        assert _run(project, "apply") == 1
        assert "patches_applied" not in _installed(project)["my/pkg"]["extra"]

    def test_stale_package_needs_reinstall(self, project):
        url = project.write_patch("fix.patch", make_diff())
        project.install("my/pkg")
        _write_project(
            project,
            {"my/pkg": {"fix header": url}},
            [{"name": "my/pkg", "extra": {"patches_applied": {"old": "patches/old.patch"}}}],
        )

        assert _run(project, "apply") == 1
        assert (project.vendor_dir / "my/pkg" / "header.h").read_text() == "old\n"

    def test_aborted_package_is_not_patched_twice(self, project):
        good = project.write_patch("fix.patch", make_diff())
        bad = project.write_patch("bad.patch", make_diff(path="missing.h"))
        project.install("my/pkg")
        _write_project(
            project,
            {"my/pkg": {"fix header": good, "bad": bad}},
            [{"name": "my/pkg"}],
        )

        assert _run(project, "apply") == 1
        assert _installed(project)["my/pkg"]["extra"]["patches_applied"] == {"fix header": good}

        # The partial record marks the package for reinstall instead of re-applying
        assert _run(project, "apply") == 1
        assert (project.vendor_dir / "my/pkg" / "header.h").read_text() == "new\n"
