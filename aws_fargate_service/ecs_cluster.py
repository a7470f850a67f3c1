from aws_cdk import (
    Stack,
    aws_ecs as ecs,
)
from constructs import Construct

from aws_fargate_service.vpc import DEFAULT_CIDR, ServiceVpc


class ServiceCluster(Stack):

    def __init__(self, scope: Construct, construct_id: str,
        vpc_cidr: str = DEFAULT_CIDR,   # String: CIDR block of the VPC, i.e. "10.0.0.0/16"
        nat_gateways: int = 0,          # Int: NAT gateways; 0 keeps the private subnets isolated
        **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        # The VPC is a NestedStack so it shows as a single resource here
        # See https://docs.aws.amazon.com/cdk/api/v2/python/aws_cdk/NestedStack.html for more info
        network = ServiceVpc(self, "Vpc",
            cidr = vpc_cidr,
            nat_gateways = nat_gateways
        )
        self.vpc = network.vpc

        # Expose the cluster so services in other stacks can attach to it
        self.cluster = ecs.Cluster(self, "Cluster",
            vpc = self.vpc
        )
