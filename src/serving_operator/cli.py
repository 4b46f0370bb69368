"""
Serving operator CLI.

Commands:
    serving-operator run       Run the operator (kopf) against the current cluster
    serving-operator render    Print the transformed manifest for an Instance
    serving-operator version   Print the operator version
"""

import os
import shutil
import subprocess
import sys
from typing import Optional

import click
import yaml

from serving_operator import __version__
from serving_operator.config import get_config
from serving_operator.errors import OperatorError
from serving_operator.manifest import Manifest
from serving_operator.models import KnativeServing
from serving_operator.transforms import builtin_transforms


@click.group()
@click.version_option(__version__, prog_name="serving-operator")
def main():
    """Serving operator - install and converge Knative Serving from a KnativeServing resource."""
    pass


@main.command()
@click.option("--kubeconfig", envvar="KUBECONFIG", help="Path to kubeconfig")
@click.option("--namespace", default="", help="Namespace to watch (empty for all)")
@click.option("--verbose", is_flag=True, help="Verbose kopf output")
def run(kubeconfig: Optional[str], namespace: str, verbose: bool):
    """Run the operator locally."""
    if not shutil.which("kopf"):
        raise click.ClickException(
            "kopf not found in PATH.\n"
            "Install with: pip install kopf"
        )

    cmd = ["kopf", "run", "-m", "serving_operator.operator"]
    if namespace:
        cmd.extend(["--namespace", namespace])
    else:
        cmd.append("--all-namespaces")
    if verbose:
        cmd.append("--verbose")

    env = dict(os.environ)
    if kubeconfig:
        env["SERVING_OPERATOR_KUBECONFIG"] = kubeconfig
    if namespace:
        env["SERVING_OPERATOR_WATCH_NAMESPACE"] = namespace

    click.echo(f"Starting serving operator {__version__}")
    click.echo(f"  kubeconfig: {kubeconfig or 'in-cluster'}")
    click.echo(f"  namespace: {namespace or 'all'}")
    click.echo(f"  Running: {' '.join(cmd)}")

    result = subprocess.run(cmd, env=env)
    if result.returncode != 0:
        raise click.ClickException(
            f"Operator exited with error.\n"
            f"Exit code: {result.returncode}\n"
            f"Command: {' '.join(cmd)}"
        )


@main.command()
@click.argument("instance_yaml", type=click.Path(exists=True, dir_okay=False))
@click.option("--manifest", "manifest_path", default=None, help="Release manifest path (default from config)")
@click.option("--recursive", is_flag=True, help="Descend into manifest subdirectories")
def render(instance_yaml: str, manifest_path: Optional[str], recursive: bool):
    """Print the manifest as it would be applied for INSTANCE_YAML.

    No cluster access: platform extensions are not detected, only the
    built-in transforms run.
    """
    config = get_config()

    with open(instance_yaml) as f:
        raw = yaml.safe_load(f) or {}
    raw.setdefault("metadata", {}).setdefault("namespace", config.operand_namespace)
    try:
        instance = KnativeServing.from_dict(raw)
    except ValueError as e:
        raise click.ClickException(f"Invalid instance {instance_yaml}: {e}")

    path = manifest_path or config.manifest_path
    try:
        manifest = Manifest.from_path(path, recursive=recursive or config.recursive)
        transformed = manifest.transform(*builtin_transforms(instance))
    except (OSError, ValueError, OperatorError) as e:
        raise click.ClickException(str(e))

    yaml.safe_dump_all(
        [resource.to_dict() for resource in transformed],
        sys.stdout,
        default_flow_style=False,
        sort_keys=False,
    )


@main.command()
def version():
    """Print the operator version."""
    click.echo(__version__)


if __name__ == "__main__":
    main()
