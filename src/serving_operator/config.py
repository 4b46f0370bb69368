"""
Centralized configuration for the serving operator.

Uses Pydantic BaseSettings for environment variable integration
and validation. All configurable values should be defined here.

Configuration sources (in order of precedence):
1. Explicit constructor arguments
2. Environment variables (SERVING_OPERATOR_*)
3. .env file
4. Default values

Example:
    from serving_operator.config import get_config

    config = get_config()
    print(config.manifest_path)  # From SERVING_OPERATOR_MANIFEST_PATH or default

    # Override at runtime
    config = get_config(manifest_path="/var/run/ko/knative-serving")
"""

from __future__ import annotations

import os
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from serving_operator import __version__


class OperatorConfig(BaseSettings):
    """
    Central configuration for the serving operator.

    All settings can be overridden via environment variables
    prefixed with SERVING_OPERATOR_.

    Example:
        export SERVING_OPERATOR_MANIFEST_PATH=/var/run/ko/knative-serving
        export SERVING_OPERATOR_LOG_LEVEL=debug
    """

    model_config = SettingsConfigDict(
        env_prefix="SERVING_OPERATOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Release manifest
    manifest_path: str = Field(
        default="config/knative-serving",
        description="File, directory or comma-separated list of the release manifest",
    )
    recursive: bool = Field(
        default=False,
        description="Descend into subdirectories of manifest_path",
    )
    release_version: str = Field(
        default=__version__,
        description="Version recorded in status.version after install",
    )

    # Kubernetes
    kubeconfig: Optional[str] = Field(
        default=None,
        description="Path to kubeconfig file (in-cluster config if not set)",
    )
    watch_namespace: str = Field(
        default="",
        description="Namespace to watch for Instances (empty for all)",
    )

    # Custom resource
    crd_group: str = Field(default="operator.knative.dev")
    crd_version: str = Field(default="v1alpha1")
    crd_kind: str = Field(default="KnativeServing")
    crd_plural: str = Field(default="knativeservings")
    finalizer_name: str = Field(
        default="delete-knative-serving-manifest",
        description="Finalizer holding the Instance until teardown completes",
    )

    resync_interval: float = Field(
        default=30.0,
        description="Seconds between periodic re-reconciles of each Instance",
    )

    # Default Instance
    create_default_instance: bool = Field(
        default=False,
        description="Create the operand Instance at startup if it is missing",
    )
    operand_namespace: str = Field(default="knative-serving")
    operand_name: str = Field(default="knative-serving")

    # Platforms
    openshift_ingress_manifest: Optional[str] = Field(
        default=None,
        description="Manifest applied by the OpenShift post-install hook",
    )
    maistra_operator_manifest: Optional[str] = Field(
        default=None,
        description="Maistra operator manifest installed on OpenShift when no mesh is present",
    )
    maistra_control_plane_manifest: Optional[str] = Field(
        default=None,
        description="Maistra control plane manifest installed into istio-system when missing",
    )

    # Logging
    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="info",
        description="Logging level for the operator",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log output format (json for Loki, text for console)",
    )

    @field_validator("manifest_path")
    @classmethod
    def expand_path(cls, v: str) -> str:
        """Expand ~ and environment variables in each listed path."""
        return ",".join(
            os.path.expanduser(os.path.expandvars(part.strip()))
            for part in v.split(",")
        )

    @property
    def api_version(self) -> str:
        return f"{self.crd_group}/{self.crd_version}"


# Global singleton
_config: Optional[OperatorConfig] = None


def get_config(**overrides) -> OperatorConfig:
    """
    Get the global configuration instance.

    Creates a singleton on first call. Subsequent calls return
    the same instance unless overrides are provided.

    Args:
        **overrides: Override any config values

    Returns:
        OperatorConfig instance
    """
    global _config

    if overrides or _config is None:
        _config = OperatorConfig(**overrides)

    return _config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None
