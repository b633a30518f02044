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
Models for the image build plan: which versions to build, under which
name, with which script, and which alias tags to apply afterwards.
"""
import os
from typing import Any, List
from pydantic import BaseModel, ConfigDict, Field, field_validator
from ..errors import ConfigurationError

DEFAULT_MODULES_DIR = os.path.join("modules", "mandrel")


def _scalar_to_str(value: Any) -> Any:
    # YAML reads unquoted 22.0 as a float
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class TagAlias(BaseModel):
    """
    An extra repo tag pointing at the image of one declared version.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    target: str

    @field_validator("id", "target", mode="before")
    @classmethod
    def _coerce_scalars(cls, value: Any) -> Any:
        return _scalar_to_str(value)


class BuildConfiguration(BaseModel):
    """
    The complete build plan, equivalent to a parsed configuration file.

    Field names follow the YAML keys (``imageName``, ``buildScript``,
    ``modulesDir``); the snake_case attribute names are accepted too.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    image: str
    image_name: str = Field(alias="imageName")
    build_script: str = Field(alias="buildScript")
    versions: List[str]
    tags: List[TagAlias] = []
    modules_dir: str = Field(default=DEFAULT_MODULES_DIR, alias="modulesDir")

    @field_validator("versions", mode="before")
    @classmethod
    def _coerce_versions(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [_scalar_to_str(v) for v in value]
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def _empty_tags(cls, value: Any) -> Any:
        return [] if value is None else value

    def reference(self, version: str) -> str:
        """
        Returns the repo tag an image for ``version`` is registered under.

        :param version: A version identifier or tag id.
        :return: ``<image_name>:<version>``
        """
        return f"{self.image_name}:{version}"

    def image_path(self, base_dir: str = ".") -> str:
        return os.path.join(base_dir, self.image)

    def build_script_path(self, base_dir: str = ".") -> str:
        return os.path.join(base_dir, self.build_script)

    def module_path(self, version: str, base_dir: str = ".") -> str:
        return os.path.join(base_dir, self.modules_dir, version)

    def validate_configuration(self, base_dir: str = "."):
        """
        Checks the plan against the filesystem and its own cross references.

        Stops at the first problem found. Order: image descriptor, build
        script, every tag (known target, id differs from target), then the
        module directory of every version.

        :param base_dir: Directory relative paths are resolved against.
        :raises ConfigurationError: naming the offending field.
        """
        image = self.image_path(base_dir)
        if not os.path.isfile(image):
            raise ConfigurationError(
                f"The image descriptor {os.path.abspath(image)} does not exist"
            )

        build_script = self.build_script_path(base_dir)
        if not os.path.isfile(build_script):
            raise ConfigurationError(
                f"The build script {os.path.abspath(build_script)} does not exist"
            )

        for tag in self.tags:
            if tag.target not in self.versions:
                raise ConfigurationError(f"A tag target on unknown version: {tag.target}")
            if tag.id.lower() == tag.target.lower():
                raise ConfigurationError(f"A tag name is the same as the target: {tag.id}")

        for version in self.versions:
            module = self.module_path(version, base_dir)
            if not os.path.isdir(module):
                raise ConfigurationError(
                    f"The module directory for version {version} does not exist: "
                    f"{os.path.abspath(module)}"
                )
