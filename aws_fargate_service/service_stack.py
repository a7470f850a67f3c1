from aws_cdk import (
    Stack,
    aws_certificatemanager as acm,
    aws_ecr as ecr,
    aws_ecs as ecs,
    aws_route53 as route53,
)
from constructs import Construct

from aws_fargate_service.configuration import StackConfig
from aws_fargate_service.fargate_service import DEFAULT_HEALTH_CHECK_PATH, FargateService
from aws_fargate_service.task_configuration import DEFAULT_VERSION, EnvFactory


class ServiceStack(Stack):

    def __init__(self, scope: Construct, construct_id: str,
        stack_config: StackConfig,
        cluster: ecs.ICluster,      # the ECS cluster created previously
        env_factory: EnvFactory,    # builds the task configuration for this environment
        repository_name,            # String: ECR repository created by the bootstrap stack
        certificate_arn,            # String: ACM certificate covering the service hostname
        service_name = "admin",
        sub_domain_including_dot = "",
        health_check_path = DEFAULT_HEALTH_CHECK_PATH,
        image_version = DEFAULT_VERSION,
        zone: route53.IHostedZone = None,   # looked up from the domain name when not given
        **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        # Note: the .from_lookup call needs an explicit account/region on the stack and rights to query Route53
        if zone is None:
            zone = route53.HostedZone.from_lookup(self, "Zone",
                domain_name = stack_config.domain_name
            )

        certificate = acm.Certificate.from_certificate_arn(self, "Certificate", certificate_arn)
        repository = ecr.Repository.from_repository_name(self, "Repository", repository_name)

        task_configuration = env_factory(stack_config, {
            "APP_NAME": stack_config.app_name,
            "APP_ENV": stack_config.app_env,
        })

        # The service is a NestedStack, see ServiceCluster for why
        self.fargate_service = FargateService(self, stack_config.get_resource_id(service_name),
            stack_config = stack_config,
            cluster = cluster,
            certificate = certificate,
            zone = zone,
            repository = repository,
            task_configuration = task_configuration,
            sub_domain_including_dot = sub_domain_including_dot,
            health_check_path = health_check_path,
            image_version = image_version
        )
        self.service = self.fargate_service.service
