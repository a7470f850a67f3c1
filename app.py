#!/usr/bin/env python3
import logging
import os

import aws_cdk as cdk

from aws_fargate_service.configuration import load_settings, resolve_deployment, resolve_log_level
from aws_fargate_service.task_configuration import settings_env_factory

# The stacks we'll create
from aws_fargate_service.bootstrap_stack import BootstrapStack
from aws_fargate_service.ecs_cluster import ServiceCluster
from aws_fargate_service.service_stack import ServiceStack

logging.basicConfig(level=resolve_log_level(os.environ))
logger = logging.getLogger("app")

# Place referenced common settings in settings.yml
settings = load_settings(os.getenv("SETTINGS_FILE", "settings.yml"))

app = cdk.App()

# The env declarations are taken from the current CLI configuration (--profile)
env = cdk.Environment(account=os.getenv("CDK_DEFAULT_ACCOUNT"), region=os.getenv("CDK_DEFAULT_REGION"))

# Environment and image version can be overridden per deploy, i.e.
#   APP_ENV=prod cdk deploy -c imageVersion=v2 CDKTest-prod-admin
stack_config, image_version, repository_name = resolve_deployment(settings,
    app.node.try_get_context, os.environ)
service_settings = settings["service"]

logger.info("Synthesizing " + stack_config.app_name + " for " + stack_config.app_env
    + " with image version " + image_version)

# Bootstrap is deployed once per environment, before the service (make bootstrap-cicd)
bootstrap = BootstrapStack(app, stack_config.get_stack_id("bootstrap"),
    stack_config = stack_config,
    repository_name = repository_name,
    secret_names = (settings.get("bootstrap") or {}).get("secrets"),
    env = env
)

network = ServiceCluster(app, stack_config.get_stack_id("network"),
    vpc_cidr = settings["global"].get("vpc_cidr", "10.0.0.0/16"),
    nat_gateways = settings["global"].get("nat_gateways", 0),
    env = env
)

service = ServiceStack(app, stack_config.get_stack_id(service_settings["name"]),
    stack_config = stack_config,
    cluster = network.cluster,
    env_factory = settings_env_factory(service_settings.get("task")),
    repository_name = repository_name,
    certificate_arn = service_settings["certificate_arn"],
    service_name = service_settings["name"],
    sub_domain_including_dot = service_settings.get("sub_domain", ""),
    health_check_path = service_settings.get("health_check_path", "/health-check"),
    image_version = image_version,
    env = env
)
service.add_dependency(bootstrap)

app.synth()
