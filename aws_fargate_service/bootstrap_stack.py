import logging

from aws_cdk import (
    RemovalPolicy,
    Stack,
    aws_ecr as ecr,
    aws_secretsmanager as secretsmanager,
)
from constructs import Construct

from aws_fargate_service.configuration import StackConfig

logger = logging.getLogger(__name__)


class BootstrapStack(Stack):
    """
    Resources that must exist before the service is first deployed: the image
    repository CI pushes to and the secrets the tasks read.
    """

    def __init__(self, scope: Construct, construct_id: str,
        stack_config: StackConfig,
        repository_name,    # String: name of the ECR repository to create
        secret_names=None,  # List: secrets to create, stored as <AppName>/<env>/<name>
        **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        # Images outlive the stack, so keep the repository if the stack is deleted
        self.repository = ecr.Repository(self, stack_config.get_resource_id("Repository"),
            repository_name = repository_name,
            removal_policy = RemovalPolicy.RETAIN
        )

        # Secrets are created empty (a generated value) and filled in by hand afterwards.
        # Their names sit under the deployment's secret base ARN, which the service's
        # execution role is allowed to read.
        self.secrets = {}
        for name in secret_names or []:
            secret_name = stack_config.get_secret_name(name)
            logger.info("Bootstrapping secret " + secret_name)
            self.secrets[name] = secretsmanager.Secret(self, name,
                secret_name = secret_name,
                removal_policy = RemovalPolicy.RETAIN
            )
