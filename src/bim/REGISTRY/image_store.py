# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Client for the local container image store.
Lists, removes, tags and prunes images through the Docker Engine API.
"""

from typing import Any, Dict, List, Optional

import docker
from docker.errors import DockerException, NotFound
from requests.exceptions import RequestException
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from ..MODELS.build_config import BuildConfiguration
from ..MODELS.container_image import ContainerImage
from ..errors import (
    AmbiguousTagTargetError,
    ImageStoreError,
    TaggingError,
    TagTargetNotFoundError,
)

CONNECT_ATTEMPTS = 3
CONNECT_WAIT_SECONDS = 2

# The SDK lets transport errors from requests through unwrapped
RUNTIME_ERRORS = (DockerException, RequestException)


class ImageStore:
    """
    Wraps the container runtime's image operations.

    Every query goes to the runtime; nothing is cached between calls because
    the build script changes the store behind our back.
    """

    def __init__(self, client: Optional[Any] = None):
        """
        Initialize the image store.

        Args:
            client: A ``docker.DockerClient``. When omitted, one is created from
                the environment (``DOCKER_HOST`` and friends) on first use and
                reused for the rest of the run.
        """
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            try:
                self._client = self._connect()
            except DockerException as e:
                raise ImageStoreError(f"Unable to connect to the container runtime: {e}") from e
        return self._client

    @retry(
        retry=retry_if_exception_type(DockerException),
        stop=stop_after_attempt(CONNECT_ATTEMPTS),
        wait=wait_fixed(CONNECT_WAIT_SECONDS),
        reraise=True,
    )
    def _connect(self) -> Any:
        """Create a client from the environment, retrying while the daemon is unreachable."""
        return docker.from_env()

    def list_images(self, image_name: str) -> List[ContainerImage]:
        """
        List images whose repository is ``image_name``.

        Args:
            image_name: Repository name, without tag.

        Returns:
            Fresh records for every matching image.
        """
        try:
            images = self.client.images.list(name=image_name)
        except RUNTIME_ERRORS as e:
            raise ImageStoreError(f"Unable to list images for {image_name}: {e}") from e
        return [ContainerImage.from_docker(image) for image in images]

    def find_images(self, image_name: str, version: str) -> List[ContainerImage]:
        """
        Find images carrying exactly the repo tag ``image_name:version``.

        Args:
            image_name: Repository name.
            version: Tag to match.

        Returns:
            Zero, one or several images; callers decide what each count means.
        """
        reference = f"{image_name}:{version}"
        return [image for image in self.list_images(image_name) if image.has_tag(reference)]

    def delete_existing_image(self, image_name: str, version: str) -> None:
        """
        Force-remove every image tagged ``image_name:version``.

        Parents left unreferenced are removed as well. Nothing to delete is
        not an error.
        """
        reference = f"{image_name}:{version}"
        for image in self.find_images(image_name, version):
            print(f"Existing image found: {reference} : {image.id}")
            print("Deleting the existing image...")
            try:
                self.client.images.remove(image=image.id, force=True, noprune=False)
            except NotFound:
                # Removed since the listing
                continue
            except RUNTIME_ERRORS as e:
                raise ImageStoreError(f"Unable to delete image {reference} ({image.id}): {e}") from e

    def validate_created_images(self, configuration: BuildConfiguration) -> bool:
        """
        Check that every declared version now has an image.

        All versions are checked and every missing one is reported.

        Args:
            configuration: The build plan.

        Returns:
            True if all images exist, False if at least one is missing.
        """
        missing = []
        for version in configuration.versions:
            reference = configuration.reference(version)
            if self.find_images(configuration.image_name, version):
                print(f"Image {reference} created!")
            else:
                print(f"Expected {reference} to be created, but cannot find it")
                missing.append(reference)
        return not missing

    def create_tags(self, configuration: BuildConfiguration) -> None:
        """
        Apply every alias tag of the plan, in order.

        Each target must resolve to exactly one image. Tags applied before a
        failure are left in place.

        Args:
            configuration: The build plan.

        Raises:
            TagTargetNotFoundError: no image carries the target.
            AmbiguousTagTargetError: several images carry the target.
            TaggingError: the runtime refused to create the tag.
        """
        for tag in configuration.tags:
            target = configuration.reference(tag.target)
            images = self.find_images(configuration.image_name, tag.target)
            if not images:
                raise TagTargetNotFoundError(
                    f"Unable to tag {tag.id} - target cannot be found {target}"
                )
            if len(images) > 1:
                ids = ", ".join(image.id for image in images)
                raise AmbiguousTagTargetError(
                    f"Unable to tag {tag.id} - multiple target matches for {target}: {ids}"
                )

            image = images[0]
            try:
                applied = self.client.api.tag(image.id, configuration.image_name, tag=tag.id)
            except RUNTIME_ERRORS as e:
                raise TaggingError(f"Unable to tag {tag.id} - {e}") from e
            if not applied:
                raise TaggingError(f"Unable to tag {tag.id} - the runtime rejected the tag")
            print(f"Tag {tag.id} created, pointing to {target}")

    def prune(self) -> Optional[Dict[str, Any]]:
        """
        Remove dangling images. Best effort: failures are only reported.

        Returns:
            The runtime's prune report, or None if pruning failed.
        """
        try:
            report = self.client.images.prune(filters={"dangling": True})
        except RUNTIME_ERRORS as e:
            print(f"Warning: Failed to prune images: {e}")
            return None

        deleted = report.get("ImagesDeleted") or []
        reclaimed = report.get("SpaceReclaimed") or 0
        print(f"Pruned {len(deleted)} image(s), reclaimed {reclaimed} bytes")
        return report
