"""Tests for the docker/podman command wrapper"""

import subprocess
from unittest.mock import patch

import pytest

from git_fork.exceptions import (
    ContainerCreateError,
    ContainerRemoveError,
    ContainerStartError,
    ContainerStopError,
    ImageBuildError,
    RuntimeUnavailableError,
)
from git_fork.models.container import ContainerState
from git_fork.services.container.runtime import ContainerRuntime


def completed(stdout=""):
    return subprocess.CompletedProcess(args=[], returncode=0, stdout=stdout, stderr="")


def failed(stderr):
    return subprocess.CalledProcessError(1, ["docker"], output="", stderr=stderr)


@pytest.fixture
def mock_run():
    with patch("git_fork.services.container.runtime.subprocess.run") as run:
        yield run


class TestAvailability:
    def test_available_when_on_path(self):
        with patch("git_fork.services.container.runtime.shutil.which", return_value="/usr/bin/podman"):
            assert ContainerRuntime("podman").is_available() is True

    def test_unavailable_when_missing(self):
        with patch("git_fork.services.container.runtime.shutil.which", return_value=None):
            assert ContainerRuntime("docker").is_available() is False

    def test_missing_binary_during_call(self, mock_run):
        mock_run.side_effect = FileNotFoundError("docker")

        with pytest.raises(RuntimeUnavailableError, match="Please install docker"):
            ContainerRuntime("docker").list_names()


class TestState:
    def test_list_names(self, mock_run):
        mock_run.return_value = completed("alpha_fork\n\nbeta_fork\n")

        names = ContainerRuntime("docker").list_names()

        assert names == ["alpha_fork", "beta_fork"]
        mock_run.assert_called_once_with(
            ["docker", "ps", "-a", "--format", "{{.Names}}"],
            check=True, capture_output=True, text=True,
        )

    def test_running_only_listing(self, mock_run):
        mock_run.return_value = completed("")

        ContainerRuntime("podman").list_names(include_stopped=False)

        assert mock_run.call_args[0][0] == ["podman", "ps", "--format", "{{.Names}}"]

    @pytest.mark.parametrize("all_names,running_names,expected", [
        ("", "", ContainerState.ABSENT),
        ("feature_fork\n", "", ContainerState.STOPPED),
        ("feature_fork\n", "feature_fork\n", ContainerState.RUNNING),
    ])
    def test_state(self, mock_run, all_names, running_names, expected):
        def fake_run(cmd, **kwargs):
            return completed(all_names if "-a" in cmd else running_names)

        mock_run.side_effect = fake_run

        assert ContainerRuntime("docker").state("feature_fork") is expected

    def test_similar_names_do_not_match(self, mock_run):
        mock_run.return_value = completed("feature_fork_old\n")

        assert ContainerRuntime("docker").exists("feature_fork") is False


class TestLifecycle:
    def test_start_failure(self, mock_run):
        mock_run.side_effect = failed("no such container")

        with pytest.raises(ContainerStartError, match="failed to start container: feature_fork"):
            ContainerRuntime("docker").start("feature_fork")

    def test_stop_uses_podman_binary(self, mock_run):
        mock_run.return_value = completed()

        ContainerRuntime("podman").stop("feature_fork")

        assert mock_run.call_args[0][0] == ["podman", "stop", "feature_fork"]

    def test_stop_failure(self, mock_run):
        mock_run.side_effect = failed("timeout")

        with pytest.raises(ContainerStopError, match="failed to stop container: feature_fork"):
            ContainerRuntime("docker").stop("feature_fork")

    def test_remove_is_forced(self, mock_run):
        mock_run.return_value = completed()

        ContainerRuntime("docker").remove("feature_fork")

        assert mock_run.call_args[0][0] == ["docker", "rm", "-f", "feature_fork"]

    def test_remove_failure(self, mock_run):
        mock_run.side_effect = failed("permission denied")

        with pytest.raises(ContainerRemoveError, match="permission denied"):
            ContainerRuntime("docker").remove("feature_fork")

    def test_run_detached(self, mock_run):
        mock_run.return_value = completed("abc123\n")

        ContainerRuntime("docker").run_detached(
            "feature_fork", "ubuntu:latest", "/work/myrepo_forks/feature", "/myrepo"
        )

        cmd = mock_run.call_args[0][0]
        assert cmd[:5] == ["docker", "run", "-d", "--name", "feature_fork"]
        assert "/work/myrepo_forks/feature:/myrepo:rw" in cmd
        assert cmd[cmd.index("-w") + 1] == "/myrepo"
        assert cmd[cmd.index("--entrypoint") + 1] == "/bin/sh"
        assert cmd[-3:] == ["ubuntu:latest", "-c", "while true; do sleep 3600; done"]

    def test_run_detached_failure(self, mock_run):
        mock_run.side_effect = failed("image not found")

        with pytest.raises(ContainerCreateError):
            ContainerRuntime("docker").run_detached("x_fork", "nope", "/src", "/repo")

    def test_build_uses_dockerfile_directory_as_context(self, mock_run):
        mock_run.return_value = completed()

        ContainerRuntime("podman").build("/work/myrepo/.docker/Dockerfile.fork", "fork_feature_image")

        assert mock_run.call_args[0][0] == [
            "podman", "build",
            "-t", "fork_feature_image",
            "-f", "/work/myrepo/.docker/Dockerfile.fork",
            "/work/myrepo/.docker",
        ]

    def test_build_failure(self, mock_run):
        mock_run.side_effect = failed("syntax error")

        with pytest.raises(ImageBuildError, match="failed to build image from Dockerfile"):
            ContainerRuntime("docker").build("/tmp/Dockerfile.fork", "fork_x_image")
