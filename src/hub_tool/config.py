"""Configuration for the Docker Hub client."""

from __future__ import annotations

import datetime
import os
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Annotated, Self

import yaml
from pydantic import BaseModel, ConfigDict, Field
from safir.pydantic import HumanTimedelta

API_URL_ENV = "DOCKER_HUB_API_URL"
REGISTRY_URL_ENV = "DOCKER_REGISTRY_URL"

RATE_LIMIT_TOKEN_URL = (
    "https://auth.docker.io/token?service=registry.docker.io"
    "&scope=repository:ratelimitpreview/test:pull"
)
RATE_LIMIT_PROBE_URL = (
    "https://registry-1.docker.io/v2/ratelimitpreview/test/manifests/latest"
)


def _default_user_agent() -> str:
    try:
        ver = version("hub-tool")
    except PackageNotFoundError:
        ver = "unknown"
    return f"hub-tool/{ver}"


class HubInstance(BaseModel):
    """The pair of hosts that together make up one Docker Hub."""

    model_config = ConfigDict(frozen=True)

    api_base_url: Annotated[
        str,
        Field(
            title="API base URL",
            description="Base URL of the Hub management API.",
            examples=["https://hub.docker.com"],
        ),
    ] = "https://hub.docker.com"

    registry_host: Annotated[
        str,
        Field(
            title="Registry host",
            description="Hostname of the registry paired with the API.",
            examples=["registry-1.docker.io"],
        ),
    ] = "registry-1.docker.io"

    official: Annotated[
        bool,
        Field(
            title="Official",
            description="Whether this is the public Docker Hub.",
        ),
    ] = True

    @classmethod
    def from_environment(cls) -> Self:
        """Return the public Hub unless both override variables are set.

        Setting only one of the two variables has no effect.
        """
        api_url = os.getenv(API_URL_ENV, "")
        registry = os.getenv(REGISTRY_URL_ENV, "")
        if api_url and registry:
            return cls(
                api_base_url=api_url.rstrip("/"),
                registry_host=registry,
                official=False,
            )
        return cls()


class ClientConfig(BaseModel):
    """Everything the client needs, resolved once at startup."""

    model_config = ConfigDict(frozen=True)

    instance: Annotated[
        HubInstance,
        Field(
            title="Hub instance",
            description="API and registry hosts to talk to.",
        ),
    ] = HubInstance()

    page_size: Annotated[
        int,
        Field(
            title="Page size",
            description="Number of items requested per page.",
            gt=0,
        ),
    ] = 100

    expiry_leeway: Annotated[
        HumanTimedelta,
        Field(
            title="Expiry leeway",
            description=(
                "Tokens expiring within this window are treated as already "
                "expired."
            ),
            examples=["1m", "90s"],
        ),
    ] = datetime.timedelta(seconds=60)

    user_agent: Annotated[
        str,
        Field(
            default_factory=_default_user_agent,
            title="User agent",
            description="User-Agent header sent with every request.",
        ),
    ]

    rate_limit_token_url: Annotated[
        str,
        Field(
            title="Rate limit token URL",
            description="Token endpoint used by the rate-limit probe.",
        ),
    ] = RATE_LIMIT_TOKEN_URL

    rate_limit_probe_url: Annotated[
        str,
        Field(
            title="Rate limit probe URL",
            description="Manifest URL requested with HEAD by the probe.",
        ),
    ] = RATE_LIMIT_PROBE_URL

    debug: Annotated[
        bool,
        Field(
            title="Debug",
            description="Much more verbose logging.",
        ),
    ] = False

    @classmethod
    def from_environment(cls, **kwargs: object) -> Self:
        return cls.model_validate(
            {**kwargs, "instance": HubInstance.from_environment()}
        )

    @classmethod
    def from_file(cls, path: Path) -> Self:
        """Load from YAML.  The environment overrides still win for the
        instance, so that a test Hub can be selected without editing the
        file.
        """
        data = yaml.safe_load(path.read_text()) or {}
        env_instance = HubInstance.from_environment()
        if not env_instance.official:
            data["instance"] = env_instance.model_dump()
        return cls.model_validate(data)
