"""Tests for the build step executor and the Arrow C++ pre-build hook."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from wheelclosure.builder import BuildExecutor, build_log_name
from wheelclosure.closure import ClosureBuilder
from wheelclosure.errors import BuildError, PrerequisiteError
from wheelclosure.hooks import PREBUILD_HOOKS, ArrowCppHook, PrebuildHook
from wheelclosure.loader import load_context
from wheelclosure.metadata import MetadataReader
from wheelclosure.store import ArtifactStore


@pytest.fixture
def ctx(tmp_path):
    return load_context(
        store_dir=str(tmp_path / "store"),
        log_dir=str(tmp_path / "logs"),
        pip_bin="/venv/bin/pip",
        arrow_prefix=str(tmp_path / "arrow"),
        arrow_src=str(tmp_path / "arrow-src"),
    )


class TestBuildCommand:
    def test_forces_source_build_into_store(self, ctx):
        cmd = BuildExecutor(ctx).command("numpy>=1.26")
        assert cmd == [
            "/venv/bin/pip",
            "wheel",
            "--wheel-dir",
            str(ctx.store_dir),
            "--no-binary=:all:",
            "numpy>=1.26",
        ]

    def test_log_name_from_base(self):
        assert build_log_name("zope-interface") == "build_zopeinterface.log"

    def test_success_returns_result(self, ctx):
        with patch("wheelclosure.builder.run_logged", return_value=0) as run:
            result = BuildExecutor(ctx).build("Zope.Interface>=5")
        cmd, log_path = run.call_args.args
        assert cmd[-1] == "Zope.Interface>=5"
        assert log_path == ctx.log_dir / "build_zopeinterface.log"
        assert run.call_args.kwargs["env"] == {}
        assert result.base == "zope-interface"
        assert result.saved == ()

    def test_saved_lines_are_reported(self, ctx):
        whl = ctx.store_dir / "six-1.16.0-py2.py3-none-any.whl"
        whl.write_bytes(b"")

        def fake_run(cmd, log_path, env=None, cwd=None):
            log_path.write_text(f"  Saved {whl}\n")
            return 0

        with patch("wheelclosure.builder.run_logged", side_effect=fake_run):
            result = BuildExecutor(ctx).build("six")
        assert result.saved == (whl,)

    def test_nonzero_exit_raises(self, ctx):
        with patch("wheelclosure.builder.run_logged", return_value=1):
            with pytest.raises(BuildError) as exc:
                BuildExecutor(ctx).build("broken")
        assert exc.value.spec == "broken"
        assert exc.value.log_path == ctx.log_dir / "build_broken.log"

    def test_missing_pip_raises_build_error(self, ctx):
        with patch("wheelclosure.builder.run_logged", side_effect=FileNotFoundError("pip")):
            with pytest.raises(BuildError):
                BuildExecutor(ctx).build("anything")


class TestHookLookup:
    def test_pyarrow_is_registered(self):
        assert PREBUILD_HOOKS["pyarrow"] is ArrowCppHook

    def test_hook_instances_are_reused(self, ctx):
        executor = BuildExecutor(ctx)
        assert executor.hook_for("pyarrow") is executor.hook_for("pyarrow")
        assert executor.hook_for("numpy") is None

    def test_custom_hook_env_reaches_build(self, ctx):
        class EnvHook(PrebuildHook):
            log_name = "custom.log"

            def __call__(self, spec):
                return {"FOO": "1"}

        executor = BuildExecutor(ctx, hooks={"special": EnvHook})
        with patch("wheelclosure.builder.run_logged", return_value=0) as run:
            executor.build("special==2")
        assert run.call_args.kwargs["env"] == {"FOO": "1"}
        assert run.call_args.args[1] == ctx.log_dir / "custom.log"


class TestArrowHook:
    def install_marker(self, ctx):
        lib = ctx.arrow_prefix / "lib"
        lib.mkdir(parents=True)
        (lib / "libarrow.so").write_bytes(b"")

    def test_present_arrow_skips_native_build(self, ctx):
        self.install_marker(ctx)
        with patch("wheelclosure.hooks.run_logged") as native, patch(
            "wheelclosure.builder.run_logged", return_value=0
        ) as build:
            BuildExecutor(ctx).build("pyarrow>=14")
        native.assert_not_called()
        env = build.call_args.kwargs["env"]
        assert env["PYARROW_BUNDLE_ARROW_CPP"] == "0"
        assert env["Arrow_DIR"] == str(ctx.arrow_prefix / "lib" / "cmake" / "Arrow")
        assert env["CMAKE_PREFIX_PATH"].startswith(str(ctx.arrow_prefix))
        assert "-DCMAKE_FIND_DEBUG_MODE=OFF" in env["PYARROW_CMAKE_OPTIONS"]
        assert build.call_args.args[1] == ctx.log_dir / "pyarrow_build.log"

    def test_native_build_steps_in_order(self, ctx):
        ctx.arrow_src.mkdir()
        with patch("wheelclosure.hooks.run_logged", return_value=0) as native, patch(
            "wheelclosure.builder.run_logged", return_value=0
        ):
            BuildExecutor(ctx).build("pyarrow")
        cmds = [c.args[0] for c in native.call_args_list]
        assert cmds[0][0] == "cmake"
        assert f"-DCMAKE_INSTALL_PREFIX={ctx.arrow_prefix}" in cmds[0]
        assert cmds[1][0] == "make" and cmds[1][1].startswith("-j")
        assert cmds[2] == ["make", "install"]

    def test_clone_when_source_missing(self, ctx):
        with patch("wheelclosure.hooks.run_logged", return_value=0) as native, patch(
            "wheelclosure.builder.run_logged", return_value=0
        ):
            BuildExecutor(ctx).build("pyarrow")
        first = native.call_args_list[0].args[0]
        assert first[:2] == ["git", "clone"]
        assert first[-1] == str(ctx.arrow_src)

    def test_prerequisite_failure_stops_branch_and_is_not_retried(self, ctx):
        ctx.arrow_src.mkdir()
        executor = BuildExecutor(ctx)
        with patch("wheelclosure.hooks.run_logged", return_value=2) as native, patch(
            "wheelclosure.builder.run_logged", return_value=0
        ) as build:
            with pytest.raises(PrerequisiteError):
                executor.build("pyarrow")
            with pytest.raises(PrerequisiteError):
                executor.build("pyarrow==15")
        assert native.call_count == 1
        build.assert_not_called()

    def test_unusable_build_dir_does_not_end_the_walk(self, ctx):
        ctx.arrow_src.mkdir()
        (ctx.arrow_src / "cpp").write_text("not a directory")
        executor = BuildExecutor(ctx)
        walk = ClosureBuilder(ArtifactStore(ctx.store_dir), executor, MetadataReader())
        with patch("wheelclosure.hooks.run_logged") as native, patch(
            "wheelclosure.builder.run_logged", return_value=0
        ) as build:
            report = walk.run(["pyarrow", "six"])
            with pytest.raises(PrerequisiteError):
                executor.build("pyarrow")
        native.assert_not_called()
        assert report.failures == ["pyarrow"]
        assert report.built == ["six"]
        assert build.call_count == 1

    def test_prerequisite_error_is_a_build_error(self):
        assert issubclass(PrerequisiteError, BuildError)
