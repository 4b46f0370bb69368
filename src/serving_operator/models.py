"""
Pydantic models for the KnativeServing custom resource.

These models give the reconciler typed access to the Instance's spec and
status while round-tripping the object through the API: unknown metadata
(labels, annotations, managedFields) is retained via ``extra="allow"`` and
every field serializes back to its camelCase wire name.

Example:
    instance = KnativeServing.from_dict(raw)
    instance.status.mark_install_succeeded()
    body = instance.to_dict()
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from serving_operator.status import (
    DEPLOYMENTS_AVAILABLE,
    INSTALL_SUCCEEDED,
    SERVING_CONDITIONS,
    Condition,
)

DEFAULT_API_VERSION = "operator.knative.dev/v1alpha1"
DEFAULT_KIND = "KnativeServing"


class LocalObjectReference(BaseModel):
    """Reference to an object in the same namespace, by name."""
    name: str = Field(..., description="Referenced object name")


class Registry(BaseModel):
    """Image registry overrides."""

    model_config = ConfigDict(populate_by_name=True)

    default: str = Field("", description="Image template; ${NAME} is replaced by the container name")
    override: Dict[str, str] = Field(default_factory=dict, description="Per-container image overrides")
    image_pull_secrets: List[LocalObjectReference] = Field(
        default_factory=list, alias="imagePullSecrets", description="Extra pull secrets"
    )

    @field_validator("image_pull_secrets", mode="before")
    @classmethod
    def accept_plain_names(cls, v: Any) -> Any:
        """Allow ``["regcred"]`` as shorthand for ``[{"name": "regcred"}]``."""
        if isinstance(v, list):
            return [{"name": item} if isinstance(item, str) else item for item in v]
        return v


class IstioGatewayOverride(BaseModel):
    """Selector and server overrides for one Istio gateway."""
    selector: Dict[str, str] = Field(default_factory=dict, description="Pod selector labels")
    servers: List[Dict[str, Any]] = Field(default_factory=list, description="Gateway server entries")


class CustomCerts(BaseModel):
    """Source of custom CA certificates for the controller."""
    type: str = Field("", description="ConfigMap or Secret")
    name: str = Field("", description="Name of the ConfigMap or Secret")

    def is_empty(self) -> bool:
        return not self.type and not self.name


class KnativeServingSpec(BaseModel):
    """Desired install configuration."""

    model_config = ConfigDict(populate_by_name=True)

    config: Dict[str, Dict[str, str]] = Field(
        default_factory=dict, description="ConfigMap overrides keyed by config-<suffix>"
    )
    registry: Registry = Field(default_factory=Registry)
    knative_ingress_gateway: IstioGatewayOverride = Field(
        default_factory=IstioGatewayOverride, alias="knativeIngressGateway"
    )
    cluster_local_gateway: IstioGatewayOverride = Field(
        default_factory=IstioGatewayOverride, alias="clusterLocalGateway"
    )
    controller_custom_certs: CustomCerts = Field(
        default_factory=CustomCerts, alias="controllerCustomCerts"
    )
    resources: Dict[str, Dict[str, Any]] = Field(
        default_factory=dict, description="Resource requirements keyed by container name"
    )
    namespace: Optional[str] = Field(None, description="Namespace to install into")


class KnativeServingStatus(BaseModel):
    """Observed state, written through the status subresource."""

    model_config = ConfigDict(populate_by_name=True)

    version: Optional[str] = Field(None, description="Installed release version")
    resources: List[Dict[str, str]] = Field(
        default_factory=list, description="References to applied resources"
    )
    conditions: List[Condition] = Field(default_factory=list)
    observed_generation: Optional[int] = Field(None, alias="observedGeneration")

    def get_condition(self, condition_type: str) -> Optional[Condition]:
        return SERVING_CONDITIONS.get(self.conditions, condition_type)

    def initialize_conditions(self) -> None:
        SERVING_CONDITIONS.initialize(self.conditions)

    def is_ready(self) -> bool:
        return SERVING_CONDITIONS.is_happy(self.conditions)

    def is_installed(self) -> bool:
        condition = self.get_condition(INSTALL_SUCCEEDED)
        return condition is not None and condition.is_true()

    def is_available(self) -> bool:
        condition = self.get_condition(DEPLOYMENTS_AVAILABLE)
        return condition is not None and condition.is_true()

    def is_deploying(self) -> bool:
        return self.is_installed() and not self.is_available()

    def mark_install_failed(self, msg: str) -> None:
        SERVING_CONDITIONS.mark_false(
            self.conditions, INSTALL_SUCCEEDED, "Error",
            f"Install failed with message: {msg}",
        )

    def mark_install_succeeded(self) -> None:
        SERVING_CONDITIONS.mark_true(self.conditions, INSTALL_SUCCEEDED)

    def mark_deployments_available(self) -> None:
        SERVING_CONDITIONS.mark_true(self.conditions, DEPLOYMENTS_AVAILABLE)

    def mark_deployments_not_ready(self) -> None:
        SERVING_CONDITIONS.mark_false(
            self.conditions, DEPLOYMENTS_AVAILABLE, "NotReady", "Waiting on deployments",
        )


class ObjectMeta(BaseModel):
    """The metadata fields the reconciler reads; everything else is kept verbatim."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str = Field(..., description="Object name")
    namespace: str = Field("", description="Object namespace")
    uid: Optional[str] = Field(None)
    generation: int = Field(0)
    resource_version: Optional[str] = Field(None, alias="resourceVersion")
    finalizers: List[str] = Field(default_factory=list)
    deletion_timestamp: Optional[datetime] = Field(None, alias="deletionTimestamp")


class KnativeServing(BaseModel):
    """The Instance: user-authored description of the desired install."""

    model_config = ConfigDict(populate_by_name=True)

    api_version: str = Field(DEFAULT_API_VERSION, alias="apiVersion")
    kind: str = Field(DEFAULT_KIND)
    metadata: ObjectMeta
    spec: KnativeServingSpec = Field(default_factory=KnativeServingSpec)
    status: KnativeServingStatus = Field(default_factory=KnativeServingStatus)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "KnativeServing":
        return cls.model_validate(raw)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    @property
    def key(self) -> str:
        """``namespace/name`` cache key."""
        if self.namespace:
            return f"{self.namespace}/{self.name}"
        return self.name

    @property
    def target_namespace(self) -> str:
        return self.spec.namespace or self.namespace

    @property
    def being_deleted(self) -> bool:
        return self.metadata.deletion_timestamp is not None

    def owner_reference(self) -> Dict[str, Any]:
        """Controller owner reference pointing at this Instance."""
        return {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "name": self.name,
            "uid": self.metadata.uid or "",
            "controller": True,
            "blockOwnerDeletion": True,
        }
