"""
Command Line Interface for BIM.
"""
import os
import click
from dotenv import load_dotenv
from .. import __version__
from ..PARSERS.config_parser import ConfigParser
from ..MANAGERS.build_orchestrator import BuildOrchestrator
from ..REGISTRY.image_store import ImageStore
from ..RUNNERS.build_runner import BuildRunner
from ..errors import ConfigurationError

EXIT_FAILURE = -1


@click.command(context_settings={'help_option_names': ['-h', '--help']})
@click.argument('config')
@click.option('--base-dir', default='.', show_default=True,
              help='Directory relative paths in the configuration resolve against.')
@click.option('--env-file', default='.env', show_default=True,
              help='Dotenv file with DOCKER_HOST and related settings.')
@click.version_option(__version__, prog_name='bim')
def cli(config, base_dir, env_file):
    """
    Build the container images described in CONFIG, a YAML file.

    Each version is built with the configured build script, then all images
    are checked, alias tags are applied and dangling images are pruned.
    """
    try:
        configuration = ConfigParser().parse(config)
    except ConfigurationError as e:
        click.echo(f"{e} - exiting")
        raise SystemExit(EXIT_FAILURE) from e

    # Existing environment variables take precedence over the file
    load_dotenv(env_file, override=False)

    build_script = os.path.abspath(configuration.build_script_path(base_dir))
    runner = BuildRunner(build_script, working_dir=base_dir)
    orchestrator = BuildOrchestrator(configuration, ImageStore(), runner, base_dir=base_dir)

    if not orchestrator.run():
        raise SystemExit(EXIT_FAILURE)
    click.echo("Done.")


def main():
    """
    Main entry point for the CLI.
    """
    cli()


if __name__ == '__main__':
    main()
