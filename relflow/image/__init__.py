"""Runnable environment image: build, archive, load, run, publish."""

from relflow.image.docker import DockerCli
from relflow.image.lifecycle import DockerClient, ImageLifecycle, ImageState

__all__ = ["DockerCli", "DockerClient", "ImageLifecycle", "ImageState"]
