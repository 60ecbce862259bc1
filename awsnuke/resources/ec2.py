"""EC2 and VPC resource types."""

from __future__ import annotations

from typing import Dict, Iterable, List, Set

from botocore.exceptions import WaiterError

from ..models.candidate_resource import CandidateResource
from ..nuke.errors import DeleteError
from ..utils.time import FIRST_SEEN_TAG_KEY, parse_timestamp
from .base import BaseAwsResource, tags_to_dict


class BaseEc2Resource(BaseAwsResource):
    """EC2 resource type; first-seen tags are written with CreateTags."""

    @property
    def service_name(self) -> str:
        return "ec2"

    def tag_first_seen(self, identifier: str, value: str) -> None:
        self.client.create_tags(Resources=[identifier], Tags=[{"Key": FIRST_SEEN_TAG_KEY, "Value": value}])

    def _default_vpc_ids(self) -> Set[str]:
        response = self.client.describe_vpcs(Filters=[{"Name": "is-default", "Values": ["true"]}])
        return {vpc["VpcId"] for vpc in response.get("Vpcs", [])}


def _candidate(identifier: str, raw_tags, created_at=None, terminal: bool = False) -> CandidateResource:
    tags = tags_to_dict(raw_tags)
    return CandidateResource(
        identifier=identifier,
        name=tags.get("Name") or identifier,
        created_at=created_at,
        tags=tags,
        terminal=terminal,
    )


class Ec2Instances(BaseEc2Resource):
    """EC2 instances, terminated with one TerminateInstances call per batch.

    Instances with termination protection enabled are never candidates.
    """

    TERMINAL_STATES = {"shutting-down", "terminated"}

    @property
    def resource_name(self) -> str:
        return "ec2"

    @property
    def supports_bulk_delete(self) -> bool:
        return True

    def list_candidates(self) -> Iterable[CandidateResource]:
        for reservation in self._paginate("describe_instances", "Reservations"):
            for instance in reservation.get("Instances", []):
                instance_id = instance["InstanceId"]
                state = instance.get("State", {}).get("Name")
                terminal = state in self.TERMINAL_STATES
                if not terminal and self._termination_protected(instance_id):
                    self.logger.debug(f"Skipping {instance_id}: termination protection enabled")
                    continue
                yield _candidate(instance_id, instance.get("Tags"), instance.get("LaunchTime"), terminal)

    def _termination_protected(self, instance_id: str) -> bool:
        response = self.client.describe_instance_attribute(InstanceId=instance_id, Attribute="disableApiTermination")
        return bool(response.get("DisableApiTermination", {}).get("Value"))

    def delete_identifiers(self, identifiers: List[str]) -> Dict[str, Exception]:
        response = self.client.terminate_instances(InstanceIds=identifiers)
        terminating = {item["InstanceId"] for item in response.get("TerminatingInstances", [])}

        failures: Dict[str, Exception] = {}
        for identifier in identifiers:
            if identifier not in terminating:
                failures[identifier] = DeleteError(self.resource_name, identifier, "instance was not terminated")

        done = [identifier for identifier in identifiers if identifier in terminating]
        if done:
            try:
                self.client.get_waiter("instance_terminated").wait(InstanceIds=done)
            except WaiterError as e:
                self.logger.warning(f"Timed out waiting for instances to terminate in {self.region}: {e}")

        return failures


class EbsVolumes(BaseEc2Resource):
    """EBS volumes."""

    @property
    def resource_name(self) -> str:
        return "ebs"

    def list_candidates(self) -> Iterable[CandidateResource]:
        for volume in self._paginate("describe_volumes", "Volumes"):
            terminal = volume.get("State") in ("deleting", "deleted")
            yield _candidate(volume["VolumeId"], volume.get("Tags"), volume.get("CreateTime"), terminal)

    def delete_identifier(self, identifier: str) -> None:
        self.client.delete_volume(VolumeId=identifier)


class Amis(BaseEc2Resource):
    """AMIs owned by the account."""

    @property
    def resource_name(self) -> str:
        return "ami"

    def list_candidates(self) -> Iterable[CandidateResource]:
        for image in self._paginate("describe_images", "Images", Owners=["self"]):
            created_at = parse_timestamp(image["CreationDate"]) if image.get("CreationDate") else None
            terminal = image.get("State") == "deregistered"
            candidate = _candidate(image["ImageId"], image.get("Tags"), created_at, terminal)
            candidate.name = image.get("Name") or candidate.name
            yield candidate

    def delete_identifier(self, identifier: str) -> None:
        self.client.deregister_image(ImageId=identifier)


class Snapshots(BaseEc2Resource):
    """EBS snapshots owned by the account."""

    @property
    def resource_name(self) -> str:
        return "snap"

    def list_candidates(self) -> Iterable[CandidateResource]:
        for snapshot in self._paginate("describe_snapshots", "Snapshots", OwnerIds=["self"]):
            yield _candidate(snapshot["SnapshotId"], snapshot.get("Tags"), snapshot.get("StartTime"))

    def delete_identifier(self, identifier: str) -> None:
        self.client.delete_snapshot(SnapshotId=identifier)


class Ec2KeyPairs(BaseEc2Resource):
    """EC2 key pairs."""

    @property
    def resource_name(self) -> str:
        return "ec2-keypairs"

    def list_candidates(self) -> Iterable[CandidateResource]:
        response = self.client.describe_key_pairs()
        for key_pair in response.get("KeyPairs", []):
            candidate = _candidate(key_pair["KeyPairId"], key_pair.get("Tags"), key_pair.get("CreateTime"))
            candidate.name = key_pair.get("KeyName") or candidate.name
            yield candidate

    def delete_identifier(self, identifier: str) -> None:
        self.client.delete_key_pair(KeyPairId=identifier)


class ElasticIps(BaseEc2Resource):
    """Elastic IP allocations; age comes from the first-seen tag."""

    @property
    def resource_name(self) -> str:
        return "eip"

    @property
    def tracks_first_seen(self) -> bool:
        return True

    def list_candidates(self) -> Iterable[CandidateResource]:
        response = self.client.describe_addresses()
        for address in response.get("Addresses", []):
            if "AllocationId" not in address:
                continue
            yield _candidate(address["AllocationId"], address.get("Tags"))

    def delete_identifier(self, identifier: str) -> None:
        response = self.client.describe_addresses(AllocationIds=[identifier])
        for address in response.get("Addresses", []):
            if address.get("AssociationId"):
                self.client.disassociate_address(AssociationId=address["AssociationId"])
        self.client.release_address(AllocationId=identifier)


class NatGateways(BaseEc2Resource):
    """NAT gateways.

    Deletion waits until the gateway is gone so its elastic IP and subnet can
    be released afterwards.
    """

    @property
    def resource_name(self) -> str:
        return "nat-gateway"

    def list_candidates(self) -> Iterable[CandidateResource]:
        default_vpcs = self._default_vpc_ids() if self.default_only else set()
        for gateway in self._paginate("describe_nat_gateways", "NatGateways"):
            if self.default_only and gateway.get("VpcId") not in default_vpcs:
                continue
            terminal = gateway.get("State") in ("deleting", "deleted")
            yield _candidate(gateway["NatGatewayId"], gateway.get("Tags"), gateway.get("CreateTime"), terminal)

    def delete_identifier(self, identifier: str) -> None:
        self.client.delete_nat_gateway(NatGatewayId=identifier)
        try:
            self.client.get_waiter("nat_gateway_deleted").wait(NatGatewayIds=[identifier])
        except WaiterError as e:
            self.logger.warning(f"Timed out waiting for NAT gateway {identifier} to delete in {self.region}: {e}")


class InternetGateways(BaseEc2Resource):
    """Internet gateways, detached before deletion.

    Gateways attached to a default VPC are candidates only in default-only runs,
    and are then the only candidates.
    """

    @property
    def resource_name(self) -> str:
        return "internet-gateway"

    @property
    def tracks_first_seen(self) -> bool:
        return True

    def list_candidates(self) -> Iterable[CandidateResource]:
        default_vpcs = self._default_vpc_ids()
        for gateway in self._paginate("describe_internet_gateways", "InternetGateways"):
            attached_vpcs = {a["VpcId"] for a in gateway.get("Attachments", []) if a.get("VpcId")}
            if bool(attached_vpcs & default_vpcs) != self.default_only:
                continue
            yield _candidate(gateway["InternetGatewayId"], gateway.get("Tags"))

    def delete_identifier(self, identifier: str) -> None:
        response = self.client.describe_internet_gateways(InternetGatewayIds=[identifier])
        for gateway in response.get("InternetGateways", []):
            for attachment in gateway.get("Attachments", []):
                self.client.detach_internet_gateway(InternetGatewayId=identifier, VpcId=attachment["VpcId"])
        self.client.delete_internet_gateway(InternetGatewayId=identifier)


class SecurityGroups(BaseEc2Resource):
    """Security groups; age comes from the first-seen tag.

    Normal runs delete every group except the per-VPC "default" groups, which
    AWS removes with their VPC. Default-only runs target just the "default"
    groups and revoke all of their rules instead, since they cannot be deleted.
    """

    DEFAULT_GROUP_NAME = "default"

    @property
    def resource_name(self) -> str:
        return "security-group"

    @property
    def tracks_first_seen(self) -> bool:
        return True

    def list_candidates(self) -> Iterable[CandidateResource]:
        for group in self._paginate("describe_security_groups", "SecurityGroups"):
            if (group.get("GroupName") == self.DEFAULT_GROUP_NAME) != self.default_only:
                continue
            candidate = _candidate(group["GroupId"], group.get("Tags"))
            candidate.name = group.get("GroupName") or candidate.name
            yield candidate

    def delete_identifier(self, identifier: str) -> None:
        response = self.client.describe_security_groups(GroupIds=[identifier])
        for group in response.get("SecurityGroups", []):
            self._revoke_rules(group)
        if not self.default_only:
            self.client.delete_security_group(GroupId=identifier)

    def _revoke_rules(self, group: dict) -> None:
        # Rules referencing other groups block those groups' deletion
        if group.get("IpPermissions"):
            self.client.revoke_security_group_ingress(GroupId=group["GroupId"], IpPermissions=group["IpPermissions"])
        if group.get("IpPermissionsEgress"):
            self.client.revoke_security_group_egress(
                GroupId=group["GroupId"], IpPermissions=group["IpPermissionsEgress"]
            )


class Subnets(BaseEc2Resource):
    """Subnets; default-for-AZ subnets are candidates only in default-only runs."""

    @property
    def resource_name(self) -> str:
        return "ec2-subnet"

    @property
    def tracks_first_seen(self) -> bool:
        return True

    def list_candidates(self) -> Iterable[CandidateResource]:
        for subnet in self._paginate("describe_subnets", "Subnets"):
            if bool(subnet.get("DefaultForAz")) != self.default_only:
                continue
            yield _candidate(subnet["SubnetId"], subnet.get("Tags"))

    def delete_identifier(self, identifier: str) -> None:
        self.client.delete_subnet(SubnetId=identifier)


class Vpcs(BaseEc2Resource):
    """VPCs; default VPCs are candidates only in default-only runs.

    Subnets, non-main route tables, non-default security groups and attached
    internet gateways are removed before the VPC itself.
    """

    @property
    def resource_name(self) -> str:
        return "vpc"

    @property
    def tracks_first_seen(self) -> bool:
        return True

    def list_candidates(self) -> Iterable[CandidateResource]:
        for vpc in self._paginate("describe_vpcs", "Vpcs"):
            if bool(vpc.get("IsDefault")) != self.default_only:
                continue
            yield _candidate(vpc["VpcId"], vpc.get("Tags"))

    def delete_identifier(self, identifier: str) -> None:
        ec2 = self.client
        vpc_filter = [{"Name": "vpc-id", "Values": [identifier]}]

        gateways = ec2.describe_internet_gateways(Filters=[{"Name": "attachment.vpc-id", "Values": [identifier]}])
        for gateway in gateways.get("InternetGateways", []):
            ec2.detach_internet_gateway(InternetGatewayId=gateway["InternetGatewayId"], VpcId=identifier)
            ec2.delete_internet_gateway(InternetGatewayId=gateway["InternetGatewayId"])

        for subnet in ec2.describe_subnets(Filters=vpc_filter).get("Subnets", []):
            ec2.delete_subnet(SubnetId=subnet["SubnetId"])

        for route_table in ec2.describe_route_tables(Filters=vpc_filter).get("RouteTables", []):
            if any(assoc.get("Main") for assoc in route_table.get("Associations", [])):
                continue
            ec2.delete_route_table(RouteTableId=route_table["RouteTableId"])

        for group in ec2.describe_security_groups(Filters=vpc_filter).get("SecurityGroups", []):
            if group.get("GroupName") == "default":
                continue
            ec2.delete_security_group(GroupId=group["GroupId"])

        ec2.delete_vpc(VpcId=identifier)
