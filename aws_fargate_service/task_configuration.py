"""
Resolution of a task configuration into the values the Fargate service is built from.

A task configuration is what each environment declares about its service (sizing,
environment variables, secret references). Nothing here creates constructs; the
FargateService nested stack consumes the resolved values.

Secret references are written as "<secret name>:<field name>", e.g.

    secrets:
      DB_PASS: "CDKTest/uat/admin:password"

A value without a ":" points at the whole secret.
"""
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Mapping, NamedTuple, Optional, Union

from aws_cdk import Duration, aws_ecs as ecs

logger = logging.getLogger(__name__)

# Placeholder image run until a real version has been pushed to the repository
DEFAULT_IMAGE = "nginxdemos/hello:latest"

# Image version sentinel selecting DEFAULT_IMAGE
DEFAULT_VERSION = "default"

DEFAULT_MEMORY_LIMIT_MIB = 512
DEFAULT_CPU = 256
DEFAULT_DESIRED_COUNT = 1
DEFAULT_HEALTH_CHECK_GRACE_PERIOD_SECONDS = 60


@dataclass(frozen=True)
class TaskConfiguration:
    """Resource and runtime parameters for one deployable task."""

    memory_limit_mib: Optional[int] = None
    cpu: Optional[int] = None
    desired_count: Optional[int] = None
    environment: Dict[str, str] = field(default_factory=dict)
    secrets: Optional[Dict[str, str]] = None
    # cdk.Duration, or a number of seconds when read from settings.yml
    health_check_grace_period: Union[Duration, int, None] = None

    @classmethod
    def from_settings(cls, task_settings: Optional[Mapping[str, Any]]) -> "TaskConfiguration":
        """Build from the `task` block of a service in settings.yml"""
        task_settings = task_settings or {}
        # YAML turns unquoted values into ints, floats or bools; a blank one is None
        environment = {str(k): str(v)
            for k, v in (task_settings.get("environment") or {}).items() if v is not None}
        secrets = task_settings.get("secrets")
        if secrets is not None:
            secrets = {str(k): (str(v) if v is not None else None) for k, v in secrets.items()}
        return cls(
            memory_limit_mib = task_settings.get("memory_limit_mib"),
            cpu = task_settings.get("cpu"),
            desired_count = task_settings.get("desired_count"),
            environment = environment,
            secrets = secrets,
            health_check_grace_period = task_settings.get("health_check_grace_period"),
        )


# Builds the task configuration for a stack. The second argument holds the
# environment variables every task receives (APP_NAME, APP_ENV).
EnvFactory = Callable[[Any, Mapping[str, str]], TaskConfiguration]


class SecretReference(NamedTuple):
    secret_name: str
    field_name: str


@dataclass(frozen=True)
class ImageReference:
    """Either a public registry image or a tag within an ECR repository."""

    tag: str
    registry_image: Optional[str] = None
    repository: Any = None

    @property
    def is_default(self) -> bool:
        return self.registry_image is not None

    def container_image(self) -> ecs.ContainerImage:
        if self.is_default:
            return ecs.ContainerImage.from_registry(self.registry_image)
        return ecs.ContainerImage.from_ecr_repository(self.repository, self.tag)


class ResolvedSizing(NamedTuple):
    memory_limit_mib: int
    cpu: int
    desired_count: int
    health_check_grace_period_seconds: int

    @property
    def health_check_grace_period(self) -> Duration:
        return Duration.seconds(self.health_check_grace_period_seconds)


def resolve_secrets(secrets: Optional[Mapping[str, str]]) -> Dict[str, SecretReference]:
    """
    Parse "<secret name>:<field name>" values into secret references.

    Empty values are dropped. Anything after a second ":" is ignored, and a value
    with no ":" gets an empty field name.
    """
    resolved = {}
    for secret_key, value in (secrets or {}).items():
        if not value:
            logger.info("Skipping secret " + secret_key + " with no value")
            continue
        parts = value.split(":")[:2]
        secret_name = parts[0]
        field_name = parts[1] if len(parts) > 1 else ""
        resolved[secret_key] = SecretReference(secret_name, field_name)
    return resolved


def resolve_image(version: str, repository: Any = None,
        default_version: str = DEFAULT_VERSION) -> ImageReference:
    if version == default_version:
        return ImageReference(tag = "latest", registry_image = DEFAULT_IMAGE)
    return ImageReference(tag = version, repository = repository)


def _grace_period_seconds(grace_period) -> int:
    if isinstance(grace_period, Duration):
        return int(grace_period.to_seconds())
    return int(grace_period)


def resolve_sizing(config: TaskConfiguration) -> ResolvedSizing:
    # 0 falls back to the default just like an unset value
    grace_period = config.health_check_grace_period
    grace_period_seconds = _grace_period_seconds(grace_period) if grace_period else 0
    return ResolvedSizing(
        memory_limit_mib = config.memory_limit_mib or DEFAULT_MEMORY_LIMIT_MIB,
        cpu = config.cpu or DEFAULT_CPU,
        desired_count = config.desired_count or DEFAULT_DESIRED_COUNT,
        health_check_grace_period_seconds = grace_period_seconds or DEFAULT_HEALTH_CHECK_GRACE_PERIOD_SECONDS,
    )


def settings_env_factory(task_settings: Optional[Mapping[str, Any]]) -> EnvFactory:
    """
    Return an EnvFactory reading the given settings.yml `task` block.

    Environment values from the settings win over the defaults.
    """
    def factory(stack_config, defaults: Mapping[str, str]) -> TaskConfiguration:
        config = TaskConfiguration.from_settings(task_settings)
        environment = dict(defaults)
        environment.update(config.environment)
        logger.info("Task configuration for " + stack_config.app_env + " has "
            + str(len(environment)) + " environment variables and "
            + str(len(config.secrets or {})) + " secrets")
        return replace(config, environment = environment)
    return factory
