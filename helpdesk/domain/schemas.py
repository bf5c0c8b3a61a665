from enum import Enum
from typing import Annotated, Any, Literal, Union
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class TicketStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    PENDING = "pending"
    RESOLVED = "resolved"
    CLOSED = "closed"


class TicketPriority(str, Enum):
    URGENT = "urgent"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Level(str, Enum):
    """Impact and urgency scale."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class UserRole(str, Enum):
    ADMIN = "admin"
    AGENT = "agent"
    USER = "user"


class CamelModel(BaseModel):
    # JSON uses camelCase, Python uses snake_case; both are accepted on input
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# ----- Users -----

class UserCreate(CamelModel):
    username: str = Field(min_length=1)
    full_name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    role: UserRole = UserRole.USER
    department: str | None = None
    avatar_url: str | None = None


class UserUpdate(CamelModel):
    username: str | None = Field(default=None, min_length=1)
    full_name: str | None = Field(default=None, min_length=1)
    email: str | None = None
    role: UserRole | None = None
    department: str | None = None
    avatar_url: str | None = None


class UserRead(CamelModel):
    id: int
    username: str
    full_name: str
    email: str
    role: str
    department: str | None = None
    avatar_url: str | None = None


# ----- Tickets -----

class TicketCreate(CamelModel):
    title: str = Field(min_length=5)
    description: str | None = None
    status: TicketStatus = TicketStatus.OPEN
    priority: TicketPriority = TicketPriority.MEDIUM
    category: str = Field(min_length=1)
    sub_category: str | None = None
    impact: Level | None = None
    urgency: Level | None = None
    assigned_to_id: int | None = None
    reported_by_id: int
    configuration_item: str | None = None
    caller_location: str | None = None
    issue_location: str | None = None
    preferred_contact: str | None = None


class TicketUpdate(CamelModel):
    title: str | None = Field(default=None, min_length=5)
    description: str | None = None
    status: TicketStatus | None = None
    priority: TicketPriority | None = None
    category: str | None = Field(default=None, min_length=1)
    sub_category: str | None = None
    impact: Level | None = None
    urgency: Level | None = None
    assigned_to_id: int | None = None
    configuration_item: str | None = None
    caller_location: str | None = None
    issue_location: str | None = None
    preferred_contact: str | None = None

    # Acting user for the activity log, never merged into the ticket
    updated_by_id: int | None = None


class TicketRead(CamelModel):
    id: int
    ticket_number: str
    title: str
    description: str | None = None
    status: str
    priority: str
    category: str
    sub_category: str | None = None
    impact: str | None = None
    urgency: str | None = None
    assigned_to_id: int | None = None
    reported_by_id: int
    configuration_item: str | None = None
    caller_location: str | None = None
    issue_location: str | None = None
    preferred_contact: str | None = None
    created_at: datetime
    updated_at: datetime
    resolved_at: datetime | None = None
    closed_at: datetime | None = None


class TicketFilters(BaseModel):
    status: TicketStatus | None = None
    priority: TicketPriority | None = None
    assigned_to: int | None = None
    reported_by: int | None = None


# ----- Comments & attachments -----

class CommentCreate(CamelModel):
    user_id: int
    content: str = Field(min_length=1)
    is_internal: bool = False


class CommentRead(CamelModel):
    id: int
    ticket_id: int
    user_id: int
    content: str
    is_internal: bool
    created_at: datetime


class UploadedFile(BaseModel):
    name: str = Field(min_length=1)
    size: int = Field(ge=0)
    type: str = "application/octet-stream"


class AttachmentUpload(CamelModel):
    files: list[UploadedFile] | None = None
    user_id: int | None = None


class AttachmentRead(CamelModel):
    id: int
    ticket_id: int
    filename: str
    file_type: str
    file_size: int
    path: str
    uploaded_by_id: int
    created_at: datetime


# ----- Activity log: details are a tagged union keyed by `action` -----

class FieldChange(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: Any = Field(default=None, alias="from")
    to: Any = None


class TicketCreatedDetails(BaseModel):
    ticket: dict[str, Any]


class CommentedDetails(BaseModel):
    comment: str


class AttachedFileDetails(BaseModel):
    filename: str


# `updated` details are exactly the field diff: {field: {from, to}}
TicketChanges = dict[str, FieldChange]

ACTIVITY_DETAILS: dict[str, TypeAdapter] = {
    "created": TypeAdapter(TicketCreatedDetails),
    "updated": TypeAdapter(TicketChanges),
    "commented": TypeAdapter(CommentedDetails),
    "attached_file": TypeAdapter(AttachedFileDetails),
}


class _ActivityLogBase(CamelModel):
    id: int
    ticket_id: int
    user_id: int
    created_at: datetime


class CreatedActivity(_ActivityLogBase):
    action: Literal["created"]
    details: TicketCreatedDetails


class UpdatedActivity(_ActivityLogBase):
    action: Literal["updated"]
    details: TicketChanges


class CommentedActivity(_ActivityLogBase):
    action: Literal["commented"]
    details: CommentedDetails


class AttachedFileActivity(_ActivityLogBase):
    action: Literal["attached_file"]
    details: AttachedFileDetails


ActivityLogRead = Annotated[
    Union[CreatedActivity, UpdatedActivity, CommentedActivity, AttachedFileActivity],
    Field(discriminator="action"),
]


# ----- Knowledge base -----

class KbArticleRead(CamelModel):
    id: int
    title: str
    content: str
    category_id: int | None = None
    author_id: int
    is_published: bool
    created_at: datetime
    updated_at: datetime


# ----- Dashboard -----

class CountTrend(BaseModel):
    count: int
    trend: Literal["up", "down"]


class HoursTrend(BaseModel):
    hours: float
    trend: Literal["up", "down"]


class DashboardMetrics(CamelModel):
    total_tickets: int
    open_tickets: int
    closed_today: int
    average_response_time: float
    total_trend: CountTrend
    open_trend: CountTrend
    closed_trend: CountTrend
    response_trend: HoursTrend


class TeamPerformanceMetric(CamelModel):
    user_id: int
    user_name: str
    user_role: str
    avatar_url: str | None = None
    assigned: int
    resolved: int
    average_response_time: float
    satisfaction: int


class StatusBreakdown(BaseModel):
    status: str
    count: int
    percentage: int


class PriorityDistribution(BaseModel):
    priority: str
    count: int


# ----- Real-time envelope -----

class RealtimeMessage(BaseModel):
    type: Literal["ticket_update", "comment_update"]
    action: Literal["create", "update"]
    data: dict[str, Any]
