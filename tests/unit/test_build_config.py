"""
Unit tests for build plan validation.
"""
import os
import shutil
import pytest
from pydantic import ValidationError
from bim.errors import ConfigurationError


class TestValidateConfiguration:
    """Tests for BuildConfiguration.validate_configuration."""

    def test_valid_configuration(self, project_dir, make_config):
        config = make_config(tags=[{"id": "latest", "target": "22.0"}])
        config.validate_configuration(project_dir)

    def test_missing_image_descriptor(self, project_dir, make_config):
        config = make_config(image="missing.yaml")
        with pytest.raises(ConfigurationError, match="image descriptor .*missing.yaml"):
            config.validate_configuration(project_dir)

    def test_missing_build_script(self, project_dir, make_config):
        config = make_config(buildScript="missing.sh")
        with pytest.raises(ConfigurationError, match="build script .*missing.sh"):
            config.validate_configuration(project_dir)

    def test_tag_on_unknown_version(self, project_dir, make_config):
        config = make_config(tags=[{"id": "latest", "target": "99.9"}])
        with pytest.raises(ConfigurationError, match="unknown version: 99.9"):
            config.validate_configuration(project_dir)

    def test_tag_same_as_target_ignores_case(self, project_dir, make_config):
        os.makedirs(os.path.join(project_dir, "modules", "mandrel", "dev"))
        config = make_config(versions=["dev"], tags=[{"id": "DEV", "target": "dev"}])
        with pytest.raises(ConfigurationError, match="same as the target: DEV"):
            config.validate_configuration(project_dir)

    def test_missing_module_directory(self, project_dir, make_config):
        shutil.rmtree(os.path.join(project_dir, "modules", "mandrel", "22.0"))
        config = make_config()
        with pytest.raises(ConfigurationError, match="version 22.0"):
            config.validate_configuration(project_dir)

    def test_tags_checked_before_versions(self, project_dir, make_config):
        shutil.rmtree(os.path.join(project_dir, "modules", "mandrel", "21.3"))
        config = make_config(tags=[{"id": "latest", "target": "1.0"}])
        with pytest.raises(ConfigurationError, match="unknown version: 1.0"):
            config.validate_configuration(project_dir)

    def test_image_checked_before_build_script(self, project_dir, make_config):
        config = make_config(image="nope.yaml", buildScript="nope.sh")
        with pytest.raises(ConfigurationError, match="image descriptor"):
            config.validate_configuration(project_dir)

    def test_custom_modules_dir(self, project_dir, make_config):
        os.makedirs(os.path.join(project_dir, "mods", "21.3"))
        config = make_config(versions=["21.3"], modulesDir="mods")
        config.validate_configuration(project_dir)


def test_configuration_is_immutable(make_config):
    config = make_config()
    with pytest.raises(ValidationError):
        config.image_name = "other"


def test_snake_case_names_accepted():
    from bim.MODELS.build_config import BuildConfiguration

    config = BuildConfiguration(
        image="a", build_script="b", image_name="c", versions=["1"]
    )
    assert config.image_name == "c"
    assert config.reference("1") == "c:1"
