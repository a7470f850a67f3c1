import logging

from aws_cdk import (
    NestedStack,
    aws_certificatemanager as acm,
    aws_ec2 as ec2,
    aws_ecr as ecr,
    aws_ecs as ecs,
    aws_ecs_patterns as ecs_patterns,
    aws_elasticloadbalancingv2 as elbv2,
    aws_iam as iam,
    aws_route53 as route53,
    aws_route53_targets as targets,
    aws_secretsmanager as secretsmanager,
)
from constructs import Construct

from aws_fargate_service.configuration import StackConfig
from aws_fargate_service.route53 import ServiceARecord
from aws_fargate_service.task_configuration import (
    DEFAULT_VERSION,
    TaskConfiguration,
    resolve_image,
    resolve_secrets,
    resolve_sizing,
)

logger = logging.getLogger(__name__)

DEFAULT_HEALTH_CHECK_PATH = "/health-check"


class FargateService(NestedStack):
    """
    A Fargate service attached to an existing cluster, with its own load balancer
    and an alias record pointing at it.
    """

    def __init__(self, scope: Construct, construct_id: str,
        stack_config: StackConfig,
        cluster: ecs.ICluster,
        certificate: acm.ICertificate,
        zone: route53.IHostedZone,
        repository: ecr.IRepository,
        task_configuration: TaskConfiguration,
        sub_domain_including_dot: str = "",
        health_check_path: str = DEFAULT_HEALTH_CHECK_PATH,
        image_version: str = DEFAULT_VERSION,   # "default" runs the placeholder image instead of the repository
        **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        # Map each "<secret name>:<field>" reference onto an ecs.Secret
        secrets = {}
        for secret_key, reference in resolve_secrets(task_configuration.secrets).items():
            secret = secretsmanager.Secret.from_secret_name_v2(self, secret_key, reference.secret_name)
            # An empty field injects the whole secret
            secrets[secret_key] = ecs.Secret.from_secrets_manager(secret, reference.field_name or None)

        image = resolve_image(image_version, repository)
        sizing = resolve_sizing(task_configuration)
        logger.info("Service " + construct_id + " runs "
            + (image.registry_image if image.is_default else "repository tag " + image.tag)
            + " with cpu=" + str(sizing.cpu) + " memory=" + str(sizing.memory_limit_mib)
            + " desired_count=" + str(sizing.desired_count))

        # See https://docs.aws.amazon.com/cdk/api/v2/python/aws_cdk.aws_ecs_patterns/ApplicationLoadBalancedFargateService.html
        self.service = ecs_patterns.ApplicationLoadBalancedFargateService(self,
            stack_config.get_resource_id("AdminService"),
            assign_public_ip = True,
            cluster = cluster,
            certificate = certificate,
            redirect_http = True,
            memory_limit_mib = sizing.memory_limit_mib,
            health_check_grace_period = sizing.health_check_grace_period,
            cpu = sizing.cpu,
            desired_count = sizing.desired_count,
            task_image_options = ecs_patterns.ApplicationLoadBalancedTaskImageOptions(
                image = image.container_image(),
                environment = dict(task_configuration.environment or {}),
                secrets = secrets
            ),
            task_subnets = ec2.SubnetSelection(
                subnet_type = ec2.SubnetType.PUBLIC,
                one_per_az = True
            )
        )

        # The load balancer otherwise takes every public subnet of the VPC, and both
        # public groups share AZs. Pin it to one subnet per AZ.
        # https://github.com/aws/aws-cdk/issues/5892#issuecomment-701993883
        cfn_load_balancer: elbv2.CfnLoadBalancer = self.service.load_balancer.node.default_child
        cfn_load_balancer.subnets = cluster.vpc.select_subnets(
            one_per_az = True,
            subnet_type = ec2.SubnetType.PUBLIC
        ).subnet_ids

        task_definition = self.service.task_definition

        # Pull rights on the service repository
        task_definition.add_to_execution_role_policy(iam.PolicyStatement(
            actions = [
                "ecr:GetAuthorizationToken",
                "ecr:BatchCheckLayerAvailability",
                "ecr:GetDownloadUrlForLayer",
                "ecr:BatchGetImage",
            ],
            resources = [repository.repository_arn]
        ))

        # Read rights on every secret of this deployment
        task_definition.add_to_execution_role_policy(iam.PolicyStatement(
            actions = ["secretsmanager:GetSecretValue"],
            resources = [stack_config.get_secret_base_arn() + "/*"]
        ))

        self.service.target_group.configure_health_check(
            path = health_check_path
        )

        self.record = ServiceARecord(self, stack_config.get_resource_id("Record"),
            stack_config = stack_config,
            zone = zone,
            target = route53.RecordTarget.from_alias(
                targets.LoadBalancerTarget(self.service.load_balancer)
            ),
            sub_domain_including_dot = sub_domain_including_dot
        )
