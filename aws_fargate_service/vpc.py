from aws_cdk import (
    NestedStack,
    aws_ec2 as ec2,
)
from constructs import Construct

DEFAULT_CIDR = "10.0.0.0/16"


class ServiceVpc(NestedStack):
    """
    A standard VPC with two public and two private subnet groups across two AZs.

    Without NAT gateways the private groups are isolated, since CDK only accepts
    egress subnets when there is a NAT gateway to route through.
    """

    def __init__(self, scope: Construct, construct_id: str,
        cidr: str = DEFAULT_CIDR,
        nat_gateways: int = 0,
        **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        private_type = (ec2.SubnetType.PRIVATE_WITH_EGRESS if nat_gateways
            else ec2.SubnetType.PRIVATE_ISOLATED)

        self.vpc = ec2.Vpc(self, "VPC",
            ip_addresses = ec2.IpAddresses.cidr(cidr),
            max_azs = 2,
            nat_gateways = nat_gateways,
            subnet_configuration = [
                ec2.SubnetConfiguration(
                    cidr_mask = 20,
                    name = "SubnetAPublic",
                    subnet_type = ec2.SubnetType.PUBLIC
                ),
                ec2.SubnetConfiguration(
                    cidr_mask = 20,
                    name = "SubnetAPrivate",
                    subnet_type = private_type
                ),
                ec2.SubnetConfiguration(
                    cidr_mask = 20,
                    name = "SubnetBPublic",
                    subnet_type = ec2.SubnetType.PUBLIC
                ),
                ec2.SubnetConfiguration(
                    cidr_mask = 20,
                    name = "SubnetBPrivate",
                    subnet_type = private_type
                ),
            ]
        )
