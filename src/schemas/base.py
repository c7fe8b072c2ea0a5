"""Shared base for dashboard response schemas."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Response model serialised with camelCase keys for the dashboard."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PipelineFlags(CamelModel):
    """
    Completeness flags carried by every aggregate response.

    Attributes:
        truncated: A listing hit the page ceiling; counts are lower bounds
        partial: A listing stopped early or enrichment ran out of time
    """

    truncated: bool = False
    partial: bool = False
