"""
Data layer construct: single DynamoDB table for tickets and daily claims.
"""

from aws_cdk import (
    RemovalPolicy,
    aws_dynamodb as dynamodb,
)
from constructs import Construct


class DataLayerConstruct(Construct):
    """Provision the tickets table."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        environment: str,
        table_name: str,
        point_in_time_recovery: bool = False,
    ) -> None:
        super().__init__(scope, construct_id)

        # Ticket items (TICKET#<id>) and daily claim items (DAILY#<user>#<day>)
        # share the table; the claim's conditional put enforces uniqueness.
        self.tickets_table = dynamodb.Table(
            self,
            "Tickets",
            table_name=table_name,
            partition_key=dynamodb.Attribute(name="pk", type=dynamodb.AttributeType.STRING),
            billing_mode=dynamodb.BillingMode.PAY_PER_REQUEST,
            point_in_time_recovery=point_in_time_recovery,
            removal_policy=RemovalPolicy.RETAIN if environment == "prod" else RemovalPolicy.DESTROY,
        )

        # Sparse index: only ticket items carry userId.
        self.tickets_table.add_global_secondary_index(
            index_name="userId-createdAt-index",
            partition_key=dynamodb.Attribute(name="userId", type=dynamodb.AttributeType.STRING),
            sort_key=dynamodb.Attribute(name="createdAt", type=dynamodb.AttributeType.STRING),
            projection_type=dynamodb.ProjectionType.ALL,
        )
