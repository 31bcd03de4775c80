"""Tests for container image resolution"""

import pytest

from git_fork.config import Config
from git_fork.models.container import ImageSource
from git_fork.services.container.images import (
    ImageResolver,
    dockerfile_search_dirs,
    dockerfile_variant,
    image_tag,
    normalize_variant,
)


@pytest.fixture
def layout(tmp_path):
    """A repository root with a nested working directory."""
    repo_root = tmp_path / "myrepo"
    cwd = repo_root / "services" / "api"
    cwd.mkdir(parents=True)
    return repo_root, cwd


def resolver_for(layout, **config):
    repo_root, cwd = layout
    return ImageResolver(Config(**config), str(cwd), str(repo_root))


class TestNaming:
    def test_image_tag(self):
        assert image_tag("feature") == "fork_feature_image"
        assert image_tag("feature", "dev") == "fork_feature_dev_image"

    def test_normalize_variant(self):
        assert normalize_variant("gpu build!") == "gpu_build_"
        assert normalize_variant("py3.12-slim") == "py3.12-slim"

    @pytest.mark.parametrize("path,expected", [
        ("/x/Dockerfile.fork.dev", "dev"),
        ("/x/Dockerfile.fork", None),
        ("/x/Dockerfile.fork.", None),
        ("/x/Dockerfile", None),
    ])
    def test_dockerfile_variant(self, path, expected):
        assert dockerfile_variant(path) == expected

    def test_search_dirs_deduplicated(self, tmp_path):
        dirs = dockerfile_search_dirs(str(tmp_path), str(tmp_path))

        assert dirs == [str(tmp_path), str(tmp_path / ".docker")]


class TestResolve:
    def test_prebuilt_image_when_nothing_found(self, layout):
        assert resolver_for(layout).resolve("feature") == ImageSource(image="ubuntu:latest")

    def test_configured_prebuilt_image(self, layout):
        source = resolver_for(layout, container_image="alpine:3").resolve("feature")

        assert source.image == "alpine:3"
        assert source.needs_build is False

    def test_auto_dockerfile_in_cwd(self, layout):
        _, cwd = layout
        (cwd / "Dockerfile.fork").write_text("FROM alpine\n")

        source = resolver_for(layout).resolve("feature")

        assert source.image == "fork_feature_image"
        assert source.dockerfile == str(cwd / "Dockerfile.fork")
        assert source.needs_build is True

    def test_variant_in_docker_subdir(self, layout):
        repo_root, _ = layout
        (repo_root / ".docker").mkdir()
        (repo_root / ".docker" / "Dockerfile.fork.dev").write_text("FROM alpine\n")

        source = resolver_for(layout).resolve("feature")

        assert source.image == "fork_feature_dev_image"
        assert source.variant == "dev"
        assert source.image != image_tag("feature")

    def test_plain_name_beats_variant_in_same_directory(self, layout):
        _, cwd = layout
        (cwd / "Dockerfile.fork.dev").write_text("FROM alpine\n")
        (cwd / "Dockerfile.fork").write_text("FROM alpine\n")

        assert resolver_for(layout).resolve("feature").image == "fork_feature_image"

    def test_variants_taken_in_sorted_order(self, layout):
        _, cwd = layout
        (cwd / "Dockerfile.fork.zeta").write_text("FROM alpine\n")
        (cwd / "Dockerfile.fork.alpha").write_text("FROM alpine\n")

        assert resolver_for(layout).resolve("feature").variant == "alpha"

    def test_cwd_beats_repo_root(self, layout):
        repo_root, cwd = layout
        (repo_root / "Dockerfile.fork").write_text("FROM debian\n")
        (cwd / "Dockerfile.fork.local").write_text("FROM alpine\n")

        assert resolver_for(layout).resolve("feature").variant == "local"

    def test_override_wins_over_auto(self, layout, tmp_path):
        _, cwd = layout
        (cwd / "Dockerfile.fork").write_text("FROM alpine\n")
        override = tmp_path / "Custom.Dockerfile"
        override.write_text("FROM fedora\n")

        source = resolver_for(layout, container_dockerfile=str(override)).resolve("feature")

        assert source.dockerfile == str(override)
        assert source.image == "fork_feature_image"

    def test_missing_override_falls_through(self, layout, tmp_path):
        _, cwd = layout
        (cwd / "Dockerfile.fork").write_text("FROM alpine\n")

        source = resolver_for(
            layout, container_dockerfile=str(tmp_path / "missing")
        ).resolve("feature")

        assert source.dockerfile == str(cwd / "Dockerfile.fork")

    def test_default_dockerfile_only_without_auto_match(self, layout):
        _, cwd = layout
        (cwd / "default.Dockerfile").write_text("FROM alpine\n")

        source = resolver_for(
            layout, container_default_dockerfile="./default.Dockerfile"
        ).resolve("feature")
        assert source.dockerfile.endswith("default.Dockerfile")

        (cwd / "Dockerfile.fork").write_text("FROM alpine\n")
        source = resolver_for(
            layout, container_default_dockerfile="./default.Dockerfile"
        ).resolve("feature")
        assert source.dockerfile == str(cwd / "Dockerfile.fork")

    def test_default_dockerfile_beats_prebuilt_image(self, layout):
        _, cwd = layout
        (cwd / "default.Dockerfile").write_text("FROM alpine\n")

        source = resolver_for(
            layout,
            container_image="alpine:3",
            container_default_dockerfile=str(cwd / "default.Dockerfile"),
        ).resolve("feature")

        assert source.needs_build is True
        assert source.image == "fork_feature_image"
