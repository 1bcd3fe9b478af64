"""
Task model for user-owned study tasks.

A task is a to-do item owned by a single user: a title, optional description,
priority, lifecycle status, optional due date, free-form tags and an optional
recurrence pattern. Tasks are only ever read or changed through their owner.

Architecture:
    User → Task

Lifecycle:
    1. Created by its owner, always starting as PENDING
    2. Status moves freely between PENDING / IN_PROGRESS / COMPLETED / CANCELLED
    3. completed_at is stamped on entering COMPLETED and cleared on leaving it
    4. Deleted permanently (no soft delete)
"""

from enum import Enum

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import relationship, validates

from app.models.base import Base, TimestampMixin, UUIDMixin


class TaskPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class TaskStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Task(Base, UUIDMixin, TimestampMixin):
    """
    Study task owned by a user.

    priority and status are stored as their enum values; anything outside
    the closed sets is rejected before it reaches the database.
    """

    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_owner_id", "owner_id"),
        Index("ix_tasks_status", "status"),
    )

    owner_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        comment="Reference to the user who owns this task",
    )

    title = Column(
        String(255),
        nullable=False,
        comment="Short task title, never empty after trimming",
    )

    description = Column(
        Text,
        nullable=True,
        comment="Optional free-form description",
    )

    priority = Column(
        String(10),
        nullable=False,
        default=TaskPriority.MEDIUM.value,
        comment="Priority: LOW/MEDIUM/HIGH/URGENT",
    )

    status = Column(
        String(20),
        nullable=False,
        default=TaskStatus.PENDING.value,
        comment="Lifecycle status: PENDING/IN_PROGRESS/COMPLETED/CANCELLED",
    )

    due_date = Column(
        DateTime(timezone=True),
        nullable=True,
        comment="Optional deadline",
    )

    tags = Column(
        JSON,
        nullable=False,
        default=list,
        comment="Ordered list of tag strings",
    )

    is_recurring = Column(
        Boolean,
        nullable=False,
        default=False,
        server_default="false",
        comment="Whether the task repeats",
    )

    recurring_pattern = Column(
        String(100),
        nullable=True,
        comment="Recurrence description (e.g. daily, weekly); only kept while is_recurring is set",
    )

    completed_at = Column(
        DateTime(timezone=True),
        nullable=True,
        comment="Set when the task enters COMPLETED, cleared when it leaves",
    )

    owner = relationship(
        "User",
        back_populates="tasks",
        doc="User who owns this task",
    )

    @validates("priority")
    def validate_priority(self, key, value):
        try:
            return TaskPriority(value).value
        except ValueError as e:
            raise ValueError(f"Invalid priority: {value}") from e

    @validates("status")
    def validate_status(self, key, value):
        try:
            return TaskStatus(value).value
        except ValueError as e:
            raise ValueError(f"Invalid status: {value}") from e

    @validates("title")
    def validate_title(self, key, value):
        if value is None or not value.strip():
            raise ValueError("Task title cannot be empty")
        return value.strip()

    def __repr__(self):
        return (
            f"<Task(id={self.id}, "
            f"status='{self.status}', "
            f"priority='{self.priority}', "
            f"title='{(self.title or '')[:50]}')>"
        )
