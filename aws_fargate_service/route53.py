from aws_cdk import (
    aws_route53 as route53,
)
from constructs import Construct

from aws_fargate_service.configuration import StackConfig


class ServiceARecord(Construct):
    """A record for <subdomain><domain> in the given hosted zone"""

    def __init__(self, scope: Construct, construct_id: str,
        stack_config: StackConfig,
        zone: route53.IHostedZone,
        target: route53.RecordTarget,
        sub_domain_including_dot: str = "",   # i.e. "admin." or "" for the apex
        **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self.record_name = stack_config.get_hostname(sub_domain_including_dot)
        self.record = route53.ARecord(self, "ARecord",
            zone = zone,
            record_name = self.record_name,
            target = target
        )
