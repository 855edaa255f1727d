"""Plan package: typed resource descriptors and their ordering."""

from kserveup.plan.builder import DescriptorBuilder
from kserveup.plan.models import (
    ApplyResult,
    ApplyStatus,
    DeploymentPlan,
    ResourceKind,
    ResourceSpec,
    SequenceResult,
)

__all__ = [
    "ApplyResult",
    "ApplyStatus",
    "DeploymentPlan",
    "DescriptorBuilder",
    "ResourceKind",
    "ResourceSpec",
    "SequenceResult",
]
