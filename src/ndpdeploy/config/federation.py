"""
Federation document model.

The federation document is the remote JSON describing one endpoint
deployment: credential seeds, feature toggles and access-control fields.
It is fetched once per run and never mutated afterwards.

Some fields fall back to fixed defaults when absent (admin name,
organization, toggles) while others are hard-required. Feature-specific
fields are only required when their toggle is on.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Mapping

from ndpdeploy.core.errors import ValidationError

DEFAULT_CKAN_NAME = "ckan_admin"
DEFAULT_ORGANIZATION = "NDP"

TRUE_LITERALS = frozenset({"true", "True"})
FALSE_LITERALS = frozenset({"false", "False"})

# Always required, regardless of toggles
REQUIRED_FIELDS = (
    "ckan_password",
    "client_id",
    "client_secret",
    "realm_name",
    "keycloak_secret",
)

# Required only when the named toggle is enabled
FEATURE_REQUIREMENTS: dict[str, tuple[str, ...]] = {
    "streaming": ("kafka_port",),
    "staging": (),
    "jhub": ("poc", "client_id", "client_secret"),
}


def normalize_bool(value: Any, field_name: str = "value") -> bool:
    """
    Normalize a feature toggle.

    Accepts JSON booleans and the literals ``true``/``True``/``false``/``False``.
    Any other literal is a ValidationError. Normalizing an already normalized
    value returns it unchanged.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        if value in TRUE_LITERALS:
            return True
        if value in FALSE_LITERALS:
            return False
    raise ValidationError(
        f"'{field_name}' must be 'true' or 'false'",
        details={"field": field_name, "value": repr(value)},
    )


def format_bool(value: bool) -> str:
    """Render a toggle the way the collaborator services expect it."""
    return "True" if value else "False"


def _text(document: Mapping[str, Any], key: str, default: str = "") -> str:
    value = document.get(key)
    if value is None:
        return default
    text = str(value).strip()
    return text or default


def _toggle(document: Mapping[str, Any], *keys: str) -> bool:
    for key in keys:
        if document.get(key) is not None:
            return normalize_bool(document[key], key)
    return False


@dataclass(frozen=True)
class FederationConfig:
    """Validated, immutable federation document."""

    config_id: str
    ckan_password: str
    client_id: str
    client_secret: str
    realm_name: str
    keycloak_secret: str
    ckan_name: str = DEFAULT_CKAN_NAME
    organization: str = DEFAULT_ORGANIZATION
    ep_name: str = ""
    poc: str = ""
    group_name: str = ""
    pre_ckan_url: str = ""
    pre_ckan_key: str = ""
    kafka_port: str = ""
    streaming: bool = False
    staging: bool = False
    jhub: bool = False

    @classmethod
    def from_document(
        cls, document: Mapping[str, Any], config_id: str | None = None
    ) -> FederationConfig:
        """
        Build a config from a fetched document, applying defaults.

        Args:
            document: Decoded JSON object
            config_id: Identifier used for the request, when the
                document does not echo its own ``id``

        Raises:
            ValidationError: If a toggle is malformed or a required
                field for an enabled feature is missing
        """
        config = cls(
            config_id=_text(document, "id", config_id or ""),
            ckan_password=_text(document, "ckan_password"),
            client_id=_text(document, "client_id"),
            client_secret=_text(document, "client_secret"),
            realm_name=_text(document, "realm_name"),
            keycloak_secret=_text(document, "keycloak_secret"),
            ckan_name=_text(document, "ckan_name", DEFAULT_CKAN_NAME),
            organization=_text(document, "organization", DEFAULT_ORGANIZATION),
            ep_name=_text(document, "ep_name"),
            poc=_text(document, "poc"),
            group_name=_text(document, "group_name"),
            pre_ckan_url=_text(document, "pre_ckan_url"),
            pre_ckan_key=_text(document, "pre_ckan_key"),
            kafka_port=_text(document, "kafka_port"),
            streaming=_toggle(document, "streaming"),
            staging=_toggle(document, "dxspaces", "staging"),
            jhub=_toggle(document, "jhub"),
        )
        config.validate()
        return config

    def validate(self) -> None:
        """Check required and feature-gated fields."""
        missing = [name for name in REQUIRED_FIELDS if not getattr(self, name)]
        for toggle, fields in FEATURE_REQUIREMENTS.items():
            if getattr(self, toggle):
                missing.extend(
                    name for name in fields if not getattr(self, name) and name not in missing
                )
        if missing:
            raise ValidationError(
                "Federation document is missing required fields",
                details={"config_id": self.config_id, "missing": ",".join(missing)},
            )

        if bool(self.pre_ckan_url) != bool(self.pre_ckan_key):
            raise ValidationError(
                "pre_ckan_url and pre_ckan_key must be provided together",
                details={"config_id": self.config_id},
            )

        if self.kafka_port and not self.kafka_port.isdigit():
            raise ValidationError(
                "kafka_port must be numeric",
                details={"config_id": self.config_id, "kafka_port": self.kafka_port},
            )

    @property
    def secondary_catalog_enabled(self) -> bool:
        return bool(self.pre_ckan_url and self.pre_ckan_key)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
