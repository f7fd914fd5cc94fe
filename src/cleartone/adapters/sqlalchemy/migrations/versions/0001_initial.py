"""Initial clearance schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

from cleartone.adapters.sqlalchemy.mappings import UTCDateTime

revision: str = "0001_initial"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_STATUSES = ("PENDING", "NEGOTIATING", "APPROVED", "REJECTED", "FINALIZED")
_ACTIONS = ("CREATE", "APPROVE", "REJECT", "NEGOTIATE", "COUNTER", "ACCEPT")


def _status_type() -> sa.Enum:
    return sa.Enum(*_STATUSES, name="clearancestatus", native_enum=False)


def _create_work_table(name: str) -> None:
    op.create_table(
        name,
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("artist", sa.String(), nullable=False),
        sa.Column("owner_id", sa.Uuid(), nullable=False),
        sa.Column("fingerprint_token", sa.Text(), nullable=False),
        sa.Column("duration_seconds", sa.Float(), nullable=True),
        sa.Column("registered_at", UTCDateTime(), nullable=False),
        sa.ForeignKeyConstraint(
            ["owner_id"], ["party.id"], name=op.f(f"fk_{name}_{name}_owner_id_party")
        ),
        sa.PrimaryKeyConstraint("id", name=op.f(f"pk_{name}")),
    )
    op.create_index(op.f(f"ix_{name}_owner_id"), name, ["owner_id"], unique=False)


def upgrade() -> None:
    op.create_table(
        "party",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("display_name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_party")),
    )
    _create_work_table("original_work")
    _create_work_table("derivative_work")

    op.create_table(
        "clearance_request",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("derivative_work_id", sa.Uuid(), nullable=False),
        sa.Column("original_work_id", sa.Uuid(), nullable=False),
        sa.Column("requester_id", sa.Uuid(), nullable=False),
        sa.Column("rights_holder_id", sa.Uuid(), nullable=False),
        sa.Column("status", _status_type(), nullable=False),
        sa.Column("usage_description", sa.Text(), nullable=False),
        sa.Column("terms_of_use", sa.Text(), nullable=True),
        sa.Column("royalty_percentage", sa.Float(), nullable=True),
        sa.Column("counter_proposal", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("match_confidence", sa.Float(), nullable=True),
        sa.Column("request_date", UTCDateTime(), nullable=False),
        sa.Column("response_date", UTCDateTime(), nullable=True),
        sa.Column("counter_date", UTCDateTime(), nullable=True),
        sa.Column("finalized_date", UTCDateTime(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["derivative_work_id"],
            ["derivative_work.id"],
            name=op.f("fk_clearance_request_clearance_request_derivative_work_id_derivative_work"),
        ),
        sa.ForeignKeyConstraint(
            ["original_work_id"],
            ["original_work.id"],
            name=op.f("fk_clearance_request_clearance_request_original_work_id_original_work"),
        ),
        sa.ForeignKeyConstraint(
            ["requester_id"],
            ["party.id"],
            name=op.f("fk_clearance_request_clearance_request_requester_id_party"),
        ),
        sa.ForeignKeyConstraint(
            ["rights_holder_id"],
            ["party.id"],
            name=op.f("fk_clearance_request_clearance_request_rights_holder_id_party"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_clearance_request")),
    )
    op.create_index(
        "ix_clearance_request_requester_id", "clearance_request", ["requester_id"], unique=False
    )
    op.create_index(
        "ix_clearance_request_rights_holder_id",
        "clearance_request",
        ["rights_holder_id"],
        unique=False,
    )

    op.create_table(
        "negotiation_event",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("request_id", sa.Uuid(), nullable=False),
        sa.Column(
            "action",
            sa.Enum(*_ACTIONS, name="negotiationaction", native_enum=False),
            nullable=False,
        ),
        sa.Column("actor_id", sa.Uuid(), nullable=False),
        sa.Column("from_status", _status_type(), nullable=True),
        sa.Column("to_status", _status_type(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("occurred_at", UTCDateTime(), nullable=False),
        sa.Column("terms_of_use", sa.Text(), nullable=True),
        sa.Column("royalty_percentage", sa.Float(), nullable=True),
        sa.Column("counter_proposal", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(
            ["actor_id"],
            ["party.id"],
            name=op.f("fk_negotiation_event_negotiation_event_actor_id_party"),
        ),
        sa.ForeignKeyConstraint(
            ["request_id"],
            ["clearance_request.id"],
            name=op.f("fk_negotiation_event_negotiation_event_request_id_clearance_request"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_negotiation_event")),
    )
    op.create_index(
        op.f("ix_negotiation_event_request_id"), "negotiation_event", ["request_id"], unique=False
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_negotiation_event_request_id"), table_name="negotiation_event")
    op.drop_table("negotiation_event")
    op.drop_index("ix_clearance_request_rights_holder_id", table_name="clearance_request")
    op.drop_index("ix_clearance_request_requester_id", table_name="clearance_request")
    op.drop_table("clearance_request")
    for name in ("derivative_work", "original_work"):
        op.drop_index(op.f(f"ix_{name}_owner_id"), table_name=name)
        op.drop_table(name)
    op.drop_table("party")
