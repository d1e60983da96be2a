"""
Service catalogue for an NDP endpoint host.

Provisioning order is registration order: broker, catalog, staging, hub,
gateway. The gateway goes last because its environment is assembled from
facts the earlier services publish.
"""

from __future__ import annotations

import re
from typing import Dict

from ndpdeploy.config.federation import format_bool
from ndpdeploy.core.errors import ProvisioningError
from ndpdeploy.provisioning.credentials import CATALOG_TOKEN_PATTERN
from ndpdeploy.provisioning.descriptors import (
    CredentialSpec,
    ProvisionContext,
    ServiceDescriptor,
    ServiceRegistry,
)

CATALOG_PORT = 8443
STAGING_PORT = 8001
HUB_PORT = 8002
GATEWAY_PORT = 8080
DEFAULT_BROKER_PORT = "9092"

CKAN_INI = "/srv/app/ckan.ini"
CKAN_TOKEN_NAME = "api_key_for_admin"

KAFKA_STARTED = re.compile(
    r"Kafka Server started|started \(kafka\.server\.Kafka(?:Raft)?Server\)"
)

# State keys
HOST_IP = "host_ip"
BROKER_HOST = "broker_host"
BROKER_PORT = "broker_port"
CATALOG_URL = "catalog_url"
CATALOG_API_KEY = "catalog_api_key"
STAGING_URL = "staging_url"
HUB_URL = "hub_url"
GATEWAY_URL = "gateway_url"


def render_group_value(group_name: str) -> str:
    """Bare and slash-prefixed group forms, comma-joined (``a/b,/a/b``)."""
    bare = group_name.lstrip("/")
    return f"{bare},/{bare}"


def _fact(ctx: ProvisionContext, key: str) -> str:
    value = ctx.state.get(key)
    if not value:
        raise ProvisioningError(
            f"Missing provisioning fact '{key}'", details={"state_file": str(ctx.state.path)}
        )
    return value


def _openid_url(ctx: ProvisionContext, endpoint: str) -> str:
    base = ctx.settings.keycloak_url.rstrip("/")
    return f"{base}/realms/{ctx.config.realm_name}/protocol/openid-connect/{endpoint}"


# Broker


def _broker_render(ctx: ProvisionContext) -> Dict[str, str]:
    return {"MACHINE_IP": ctx.host_ip}


def _broker_publish(ctx: ProvisionContext) -> Dict[str, str]:
    return {BROKER_HOST: ctx.host_ip, BROKER_PORT: ctx.config.kafka_port}


BROKER = ServiceDescriptor(
    name="broker",
    display_name="Kafka broker",
    repo_url="https://github.com/sci-ndp/sciDX-kafka.git",
    directory="sciDX-kafka",
    required_keys=(BROKER_HOST, BROKER_PORT),
    render=_broker_render,
    publish=_broker_publish,
    summarize=lambda ctx: f"Kafka broker: {_fact(ctx, BROKER_HOST)}:{_fact(ctx, BROKER_PORT)}",
    enabled=lambda config: config.streaming,
    container_filter=lambda ctx: f"publish={ctx.config.kafka_port}",
    log_marker=KAFKA_STARTED,
)


# Catalog


def _catalog_render(ctx: ProvisionContext) -> Dict[str, str]:
    return {
        "CKAN_SYSADMIN_NAME": ctx.config.ckan_name,
        "CKAN_SYSADMIN_PASSWORD": ctx.config.ckan_password,
        "CKAN_SITE_URL": ctx.url(CATALOG_PORT),
    }


CATALOG = ServiceDescriptor(
    name="catalog",
    display_name="CKAN",
    repo_url="https://github.com/sci-ndp/pop-ckan-docker.git",
    directory="ckan",
    required_keys=(CATALOG_URL, CATALOG_API_KEY),
    render=_catalog_render,
    publish=lambda ctx: {CATALOG_URL: ctx.url(CATALOG_PORT)},
    summarize=lambda ctx: f"CKAN URL: {_fact(ctx, CATALOG_URL)}",
    env_templates=((".env.example",),),
    container_filter=lambda ctx: "expose=5000",
    post_ready_commands=(
        ("test", "-f", CKAN_INI),
        (
            "sed",
            "-i",
            "s/ckan.auth.create_user_via_web = true/ckan.auth.create_user_via_web = false/",
            CKAN_INI,
        ),
    ),
    credential=CredentialSpec(
        state_key=CATALOG_API_KEY,
        command=lambda ctx: [
            "ckan", "-c", CKAN_INI, "user", "token", "add",
            ctx.config.ckan_name, CKAN_TOKEN_NAME,
        ],
        pattern=CATALOG_TOKEN_PATTERN,
        restart_after=True,
    ),
)


# Staging

STAGING = ServiceDescriptor(
    name="staging",
    display_name="DataSpaces staging",
    repo_url="https://github.com/sci-ndp/dspaces-api.git",
    directory="dspaces-api",
    required_keys=(STAGING_URL,),
    render=lambda ctx: {},
    publish=lambda ctx: {STAGING_URL: ctx.url(STAGING_PORT)},
    summarize=lambda ctx: f"DataSpaces staging URL: {_fact(ctx, STAGING_URL)}",
    enabled=lambda config: config.staging,
    env_templates=(
        ("env_variables/env_dspaces.example", "env_variables/env_api.example"),
    ),
    env_copies=(
        ("env_variables/env_swagger.example", "env_variables/.env_swagger"),
        ("env_variables/env_dspaces.example", "env_variables/.env_dspaces"),
        ("env_variables/env_api.example", "env_variables/.env_api"),
    ),
    build=False,
)


# Notebook hub


def _hub_render(ctx: ProvisionContext) -> Dict[str, str]:
    config = ctx.config
    hub_url = ctx.url(HUB_PORT)
    values = {
        "JUPYTERHUB_ADMIN": config.poc,
        "JUPYTERHUB_KEYCLOAK_CLIENT_ID": config.client_id,
        "JUPYTERHUB_KEYCLOAK_CLIENT_SECRET": config.client_secret,
        "JUPYTERHUB_OAUTH_CALLBACK_URL": f"{hub_url}/hub/oauth_callback",
        "JUPYTERHUB_LOGOUT_REDIRECT_URL": (
            f"{_openid_url(ctx, 'logout')}?redirect_uri={hub_url}/hub/spawn"
        ),
        "JUPYTERHUB_AUTHORIZE_URL": _openid_url(ctx, "auth"),
        "JUPYTERHUB_TOKEN_URL": _openid_url(ctx, "token"),
        "JUPYTERHUB_USERDATA_URL": _openid_url(ctx, "userinfo"),
    }
    if config.group_name:
        values["JUPYTERHUB_ALLOWED_GROUPS"] = render_group_value(config.group_name)
    return values


HUB = ServiceDescriptor(
    name="hub",
    display_name="JupyterHub",
    repo_url="https://github.com/sci-ndp/jhub.git",
    directory="jhub",
    required_keys=(HUB_URL,),
    render=_hub_render,
    publish=lambda ctx: {HUB_URL: ctx.url(HUB_PORT)},
    summarize=lambda ctx: f"JupyterHub URL: {_fact(ctx, HUB_URL)}",
    enabled=lambda config: config.jhub,
    env_templates=((".env.example",),),
)


# Gateway


def _gateway_render(ctx: ProvisionContext) -> Dict[str, str]:
    config = ctx.config
    settings = ctx.settings

    values = {
        "CKAN_LOCAL_ENABLED": "True",
        "CKAN_URL": _fact(ctx, CATALOG_URL),
        "CKAN_GLOBAL_URL": settings.catalog_global_url,
        "CKAN_API_KEY": _fact(ctx, CATALOG_API_KEY),
        "PRE_CKAN_ENABLED": format_bool(config.secondary_catalog_enabled),
        "PRE_CKAN_URL": config.pre_ckan_url,
        "PRE_CKAN_API_KEY": config.pre_ckan_key,
        "KAFKA_CONNECTION": format_bool(config.streaming),
        "KAFKA_HOST": ctx.host_ip,
        "KAFKA_PORT": config.kafka_port if config.streaming else DEFAULT_BROKER_PORT,
        "KEYCLOAK_URL": settings.keycloak_url,
        "REALM_NAME": config.realm_name,
        "CLIENT_ID": config.client_id,
        "CLIENT_SECRET": config.client_secret,
        "TEST_USERNAME": config.ckan_name,
        "TEST_PASSWORD": config.ckan_password,
        "SWAGGER_TITLE": settings.swagger_title,
        "SWAGGER_DESCRIPTION": f"NDP EndPoint API for data access @{config.organization}",
        "USE_JUPYTERLAB": format_bool(config.jhub),
        "JUPYTER_URL": ctx.url(HUB_PORT),
        "USE_DXSPACES": format_bool(config.staging),
    }
    if config.staging:
        values["DXSPACES_URL"] = _fact(ctx, STAGING_URL)
    values.update(
        {
            "POC": config.poc,
            "ORGANIZATION": config.organization,
            "SECRET": config.keycloak_secret,
        }
    )
    return values


GATEWAY = ServiceDescriptor(
    name="gateway",
    display_name="POP API",
    repo_url="https://github.com/sci-ndp/pop.git",
    directory="pop",
    required_keys=(GATEWAY_URL,),
    render=_gateway_render,
    publish=lambda ctx: {GATEWAY_URL: ctx.url(GATEWAY_PORT)},
    summarize=lambda ctx: f"POP API URL: {_fact(ctx, GATEWAY_URL)}",
    env_templates=(("example.env",), (".env.example",)),
)


def default_registry() -> ServiceRegistry:
    """Registry with every endpoint service, in provisioning order."""
    registry = ServiceRegistry()
    for descriptor in (BROKER, CATALOG, STAGING, HUB, GATEWAY):
        registry.register(descriptor)
    return registry
