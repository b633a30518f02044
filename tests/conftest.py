"""
Shared fixtures: an in-memory stand-in for the Docker SDK client and a
throwaway project directory laid out the way a build plan expects.
"""
import os
import pytest
from docker.errors import NotFound
from bim.MODELS.build_config import BuildConfiguration
from bim.errors import BuildError


class FakeImage:
    def __init__(self, image_id, tags):
        self.id = image_id
        self.tags = list(tags)


class FakeImageCollection:
    """Mimics ``DockerClient.images``."""

    def __init__(self, client):
        self.client = client

    def list(self, name=None):
        self.client.calls.append(("list", name))
        images = list(self.client.images_by_id.values())
        if name is None:
            return images
        return [i for i in images if any(t.rsplit(":", 1)[0] == name for t in i.tags)]

    def remove(self, image, force=False, noprune=False):
        self.client.calls.append(("remove", image, force, noprune))
        if image not in self.client.images_by_id:
            raise NotFound(f"No such image: {image}")
        del self.client.images_by_id[image]

    def prune(self, filters=None):
        self.client.calls.append(("prune", filters))
        dangling = [i for i in self.client.images_by_id.values() if not i.tags]
        for image in dangling:
            del self.client.images_by_id[image.id]
        return {
            "ImagesDeleted": [{"Deleted": i.id} for i in dangling] or None,
            "SpaceReclaimed": 1024 * len(dangling),
        }


class FakeAPI:
    """Mimics the low level ``DockerClient.api``."""

    def __init__(self, client):
        self.client = client

    def tag(self, image, repository, tag=None, force=False):
        self.client.calls.append(("tag", image, repository, tag))
        reference = f"{repository}:{tag}"
        # A repo tag points at one image only, as in a real store
        for other in self.client.images_by_id.values():
            if reference in other.tags:
                other.tags.remove(reference)
        self.client.images_by_id[image].tags.append(reference)
        return True


class FakeDockerClient:
    def __init__(self):
        self.images_by_id = {}
        self.calls = []
        self.images = FakeImageCollection(self)
        self.api = FakeAPI(self)

    def add_image(self, image_id, *tags):
        self.images_by_id[image_id] = FakeImage(image_id, tags)
        return self.images_by_id[image_id]

    def ids_for(self, reference):
        return [i.id for i in self.images_by_id.values() if reference in i.tags]

    def call_names(self):
        return [call[0] for call in self.calls]


class FakeBuildRunner:
    """
    Stands in for the build script: registers ``image_name:version`` in the
    fake store, or fails for the versions listed in ``fail``.
    """

    def __init__(self, client, image_name, fail=(), produce=True):
        self.client = client
        self.image_name = image_name
        self.fail = set(fail)
        self.produce = produce
        self.built = []

    def build(self, version):
        self.built.append(version)
        if version in self.fail:
            raise BuildError(version, "Build failed with status 1")
        if self.produce:
            image_id = f"sha256:{self.image_name}-{version}-{len(self.built)}"
            self.client.add_image(image_id, f"{self.image_name}:{version}")


@pytest.fixture
def docker_client():
    return FakeDockerClient()


@pytest.fixture
def fake_runner(docker_client):
    def factory(image_name="quay.io/test/mandrel", fail=(), produce=True):
        return FakeBuildRunner(docker_client, image_name, fail=fail, produce=produce)
    return factory


@pytest.fixture
def project_dir(tmp_path):
    """
    A base directory holding an image descriptor, an executable build script
    and module directories for 21.3 and 22.0.
    """
    (tmp_path / "image.yaml").write_text("name: mandrel\n")
    script = tmp_path / "build.sh"
    script.write_text("#!/bin/sh\necho \"building $1\"\n")
    os.chmod(script, 0o755)
    for version in ("21.3", "22.0"):
        (tmp_path / "modules" / "mandrel" / version).mkdir(parents=True)
    return str(tmp_path)


@pytest.fixture
def make_config():
    def factory(**overrides):
        data = {
            "image": "image.yaml",
            "buildScript": "build.sh",
            "imageName": "quay.io/test/mandrel",
            "versions": ["21.3", "22.0"],
            "tags": [],
        }
        data.update(overrides)
        return BuildConfiguration.model_validate(data)
    return factory
