# This project was developed with assistance from AI tools.
"""RFC 7807 Problem Details error response schema."""

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Problem Details body returned by every failing endpoint.

    See https://datatracker.ietf.org/doc/html/rfc7807
    """

    type: str = Field(
        default="about:blank",
        description="URI reference identifying the problem type.",
    )
    title: str = Field(description="Short summary of the problem class.")
    status: int = Field(description="HTTP status code.")
    detail: str = Field(
        default="",
        description="Explanation of this particular failure.",
    )
    request_id: str = Field(
        default="",
        description="Value of x-request-id, or a generated id when the caller sent none.",
    )
    instance: str = Field(
        default="",
        description="Request path that produced the problem.",
    )
