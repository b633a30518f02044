"""
Models representing images as reported by the container store.
"""
from typing import Any, List
from pydantic import BaseModel


class ContainerImage(BaseModel):
    """
    A single image listed by the container runtime.

    Only the store-assigned id and the repo tags are kept; records are
    rebuilt from a fresh listing every time they are needed.
    """
    id: str
    repo_tags: List[str] = []

    @classmethod
    def from_docker(cls, image: Any) -> "ContainerImage":
        """
        Builds a record from a ``docker.models.images.Image``.

        :param image: Image object returned by the Docker SDK.
        :return: A ContainerImage instance.
        """
        return cls(id=image.id, repo_tags=list(image.tags or []))

    def has_tag(self, reference: str) -> bool:
        """
        Checks whether ``reference`` (``name:tag``) is one of the repo tags.

        :param reference: The exact repo tag to look for.
        :return: True if the image carries this repo tag.
        """
        return reference in self.repo_tags
