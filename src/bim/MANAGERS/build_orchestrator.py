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
Orchestration of a full build run: validate, build each version,
check the results, tag and prune.
"""
from enum import Enum
from typing import Optional
from ..MODELS.build_config import BuildConfiguration
from ..REGISTRY.image_store import ImageStore
from ..RUNNERS.build_runner import BuildRunner
from ..errors import BimError, BuildError


class BuildState(str, Enum):
    """
    Steps of a build run. FAILED can be reached from any step and is final.
    """
    VALIDATING = "validating"
    BUILDING = "building"
    POST_VALIDATING = "post-validating"
    TAGGING = "tagging"
    PRUNING = "pruning"
    DONE = "done"
    FAILED = "failed"


class BuildOrchestrator:
    """
    Runs the build plan step by step, stopping at the first failure.
    """
    def __init__(self,
                 config: BuildConfiguration,
                 store: ImageStore,
                 runner: BuildRunner,
                 base_dir: str = "."):
        """
        Initializes the orchestrator.

        :param config: The parsed build plan.
        :param store: Image store client, used for the whole run.
        :param runner: Runner for the build script.
        :param base_dir: Directory relative paths of the plan resolve against.
        """
        self.config = config
        self.store = store
        self.runner = runner
        self.base_dir = base_dir
        self.state = BuildState.VALIDATING
        self.current_version: Optional[str] = None

    def run(self) -> bool:
        """
        Executes the whole run.

        :return: True if every image was built, validated and tagged.
        """
        try:
            self.state = BuildState.VALIDATING
            self.config.validate_configuration(self.base_dir)

            self.state = BuildState.BUILDING
            for version in self.config.versions:
                self._build_version(version)
            self.current_version = None

            self.state = BuildState.POST_VALIDATING
            if not self.store.validate_created_images(self.config):
                return self._fail("Not all images were created")

            self.state = BuildState.TAGGING
            self.store.create_tags(self.config)

            self.state = BuildState.PRUNING
            self.store.prune()
        except BuildError as e:
            reference = self.config.reference(e.version)
            return self._fail(f"Build of image {reference} has failed: {e.cause}")
        except BimError as e:
            return self._fail(str(e))

        self.state = BuildState.DONE
        print(f"Built {len(self.config.versions)} image(s) of {self.config.image_name}")
        return True

    def _build_version(self, version: str):
        """
        Removes any stale image for ``version`` and runs its build.

        :param version: The version to build.
        """
        self.current_version = version
        self.store.delete_existing_image(self.config.image_name, version)
        print(f"Building {self.config.reference(version)}...")
        self.runner.build(version)

    def _fail(self, message: str) -> bool:
        self.state = BuildState.FAILED
        print(f"{message} - exiting")
        return False
