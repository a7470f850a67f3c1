import logging
import os
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Tuple

import yaml
from aws_cdk import Aws

from aws_fargate_service.task_configuration import DEFAULT_VERSION

logger = logging.getLogger(__name__)

DEFAULT_APP_ENV = "uat"

# Keys settings.yml must provide, as paths into the document
REQUIRED_SETTINGS = (
    ("global", "app_name"),
    ("global", "domain_name"),
    ("service", "name"),
    ("service", "certificate_arn"),
)


class SettingsError(ValueError):
    """settings.yml is missing or incomplete"""


@dataclass(frozen=True)
class StackConfig:
    """
    Naming and addressing for one deployment of the application.

    Every construct and stack id, secret name and hostname is derived from here so
    that several environments (uat, prod, ...) can live side by side in one account.
    """

    app_name: str
    app_env: str
    domain_name: str
    account: Optional[str] = None
    region: Optional[str] = None

    def get_resource_id(self, name: str) -> str:
        return f"{self.app_name}-{self.app_env}-{name}"

    def get_stack_id(self, name: str) -> str:
        # Stack ids double as CloudFormation stack names, e.g. CDKTest-uat-admin
        return self.get_resource_id(name)

    def get_secret_name(self, name: str) -> str:
        return f"{self.app_name}/{self.app_env}/{name}"

    def get_secret_base_arn(self) -> str:
        # Falls back to the pseudo parameters for environment-agnostic stacks
        region = self.region or Aws.REGION
        account = self.account or Aws.ACCOUNT_ID
        return f"arn:aws:secretsmanager:{region}:{account}:secret:{self.app_name}/{self.app_env}"

    def get_hostname(self, sub_domain_including_dot: str = "") -> str:
        return f"{sub_domain_including_dot}{self.domain_name}"


def _lookup(settings: Mapping[str, Any], path) -> Any:
    value = settings
    for key in path:
        if not isinstance(value, Mapping) or key not in value:
            raise SettingsError("Missing required setting: " + ".".join(path))
        value = value[key]
    return value


def validate_settings(settings: Any) -> Mapping[str, Any]:
    if not isinstance(settings, Mapping):
        raise SettingsError("settings.yml must contain a mapping at the top level")
    for path in REQUIRED_SETTINGS:
        _lookup(settings, path)
    return settings


def load_settings(path: str = "settings.yml") -> Mapping[str, Any]:
    """Read and validate settings.yml"""
    if not os.path.exists(path):
        raise SettingsError("Settings file not found: " + path)
    logger.info("Loading settings from " + path)
    with open(path, "r") as file:
        settings = yaml.safe_load(file)
    return validate_settings(settings)


def stack_config_from_settings(settings: Mapping[str, Any],
        app_env: Optional[str] = None,
        account: Optional[str] = None,
        region: Optional[str] = None) -> StackConfig:
    """
    Build the StackConfig for a deployment.

    `app_env` overrides global.app_env from the settings; when neither is given the
    environment is "uat".
    """
    global_settings = settings["global"]
    return StackConfig(
        app_name = global_settings["app_name"],
        app_env = app_env or global_settings.get("app_env") or DEFAULT_APP_ENV,
        domain_name = global_settings["domain_name"],
        account = account,
        region = region,
    )


def resolve_deployment(settings: Mapping[str, Any],
        get_context: Callable[[str], Any],
        environ: Mapping[str, str]) -> Tuple[StackConfig, str, str]:
    """
    Apply the per-deploy overrides to the settings.

    CDK context wins over the environment, which wins over settings.yml:

        appEnv:       -c appEnv      > APP_ENV     > global.app_env > "uat"
        imageVersion: -c imageVersion              > service.image_version > "default"

    Returns the StackConfig, the image version and the ECR repository name. The
    repository name falls back to the lowercased resource id of the service, i.e.
    cdktest-uat-admin.
    """
    app_env = get_context("appEnv") or environ.get("APP_ENV")
    stack_config = stack_config_from_settings(settings,
        app_env = app_env,
        account = environ.get("CDK_DEFAULT_ACCOUNT"),
        region = environ.get("CDK_DEFAULT_REGION"),
    )

    service_settings = settings["service"]
    image_version = (get_context("imageVersion")
        or service_settings.get("image_version")
        or DEFAULT_VERSION)
    repository_name = (service_settings.get("repository_name")
        or stack_config.get_resource_id(service_settings["name"]).lower())
    return stack_config, str(image_version), repository_name


def resolve_log_level(environ: Mapping[str, str]) -> str:
    # logging only knows the upper case names, settings.yml uses "info"
    return (environ.get("LOG_LEVEL") or "INFO").upper()
