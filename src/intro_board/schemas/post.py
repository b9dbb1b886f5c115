"""Post-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from intro_board.models.post import PostStatus
from intro_board.services.validation import SubmissionCandidate


class PostRecord(BaseModel):
    """Strict read-side view of a stored post.

    Built from store rows; fields the schema does not know about are dropped.
    """

    id: str
    nickname: str
    age: int
    contact: str
    intro: str
    status: PostStatus
    reports_count: int = Field(ge=0)
    created_at: datetime

    model_config = ConfigDict(from_attributes=True, extra="ignore", frozen=True)


class PublicPost(BaseModel):
    """Feed projection of a post; the contact stays behind the reveal action."""

    id: str
    nickname: str
    age: int
    intro: str
    has_contact: bool
    created_at: datetime

    @classmethod
    def from_record(cls, record: PostRecord) -> "PublicPost":
        return cls(
            id=record.id,
            nickname=record.nickname,
            age=record.age,
            intro=record.intro,
            has_contact=bool(record.contact),
            created_at=record.created_at,
        )


class PostSubmission(BaseModel):
    """Schema for submitting a new post.

    Only these fields are read; a client-supplied `status` or report count is
    ignored. Text fields accept null so that missing values reach the
    admission rules and come back as a typed rejection.
    """

    nickname: str | None = Field(default=None, description="Display name")
    age: int | str | None = Field(default=None, description="Submitter age")
    contact: str | None = Field(default=None, description="Optional handle or address")
    intro: str | None = Field(default=None, description="Short self-introduction")
    agree: bool | None = Field(default=None, description="Submitter accepted the board rules")

    model_config = ConfigDict(extra="ignore")

    def to_candidate(self) -> SubmissionCandidate:
        return SubmissionCandidate(
            nickname=self.nickname,
            age=self.age,
            contact=self.contact,
            intro=self.intro,
            agree=self.agree,
        )


class SubmissionResponse(BaseModel):
    id: str
    status: PostStatus


class ContactResponse(BaseModel):
    id: str
    contact: str


class ReportResponse(BaseModel):
    id: str
    status: str = "reported"
