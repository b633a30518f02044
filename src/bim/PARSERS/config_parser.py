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
Parsers for build plan YAML files.
"""
import os
import yaml
from pydantic import ValidationError
from ..MODELS.build_config import BuildConfiguration
from ..errors import ConfigurationError


class ConfigParser:
    """
    Parser for build plan files.
    """
    def parse(self, config_path: str) -> BuildConfiguration:
        """
        Parses a build plan from a path.

        :param config_path: Path to the YAML file.
        :return: Parsed configuration.
        :raises ConfigurationError: if the file is missing or invalid.
        """
        if not os.path.isfile(config_path):
            raise ConfigurationError(
                f"The configuration file {os.path.abspath(config_path)} does not exist"
            )
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigurationError(f"Unable to read {config_path}: {e}") from e
        return self.parse_from_string(content, source=config_path)

    def parse_from_string(self, content: str, source: str = "<string>") -> BuildConfiguration:
        """
        Parses a build plan from a string.

        :param content: YAML content of the build plan.
        :param source: Name used in error messages.
        :return: Parsed configuration.
        :raises ConfigurationError: on malformed YAML or schema violations.
        """
        try:
            data = yaml.safe_load(content)
        except (yaml.YAMLError, ValueError) as e:
            # ValueError: e.g. an impossible date such as 2021-02-30
            raise ConfigurationError(f"Unable to read {source}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Unable to read {source}: expected a mapping, got {type(data).__name__}"
            )

        try:
            return BuildConfiguration.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration in {source}: {self._describe(e)}") from e

    def _describe(self, error: ValidationError) -> str:
        """
        Flattens pydantic errors into one line, e.g. ``imageName: Field required``.
        """
        parts = []
        for err in error.errors():
            location = ".".join(str(p) for p in err.get("loc", ()))
            parts.append(f"{location}: {err.get('msg')}")
        return "; ".join(parts)
