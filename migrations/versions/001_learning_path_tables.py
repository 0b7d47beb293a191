"""create learning path, skill and project tables"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None

level_values = ("beginner", "intermediate", "advanced")

experience_level_enum = sa.Enum(*level_values, name="experience_level")
project_difficulty_enum = sa.Enum(*level_values, name="project_difficulty")

skill_status_enum = sa.Enum(
    "existing",
    "learning",
    "completed",
    "mastered",
    name="skill_status",
)

project_status_enum = sa.Enum(
    "not_started",
    "in_progress",
    "done",
    name="project_status",
)


def upgrade() -> None:
    """Create learning path tables."""
    op.create_table(
        "learning_paths",
        sa.Column(
            "id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False
        ),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column("job_title", sa.String(length=255), nullable=False),
        sa.Column("target_role", sa.String(length=255), nullable=True),
        sa.Column("experience", experience_level_enum, nullable=False),
        sa.Column(
            "existing_skills",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column(
            "overall_progress", sa.Integer(), nullable=False, server_default="0"
        ),
        sa.Column("estimated_completion_time", sa.String(length=100), nullable=True),
        sa.Column(
            "is_active", sa.Boolean(), nullable=False, server_default=sa.true()
        ),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("api_response", postgresql.JSONB(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.CheckConstraint(
            "overall_progress >= 0 AND overall_progress <= 100",
            name="check_overall_progress",
        ),
    )
    op.create_index(
        "idx_learning_paths_user",
        "learning_paths",
        ["user_id", "created_at"],
        unique=False,
    )
    op.create_index(
        "uq_learning_paths_active_user",
        "learning_paths",
        ["user_id"],
        unique=True,
        postgresql_where=sa.text("is_active"),
    )

    op.create_table(
        "skills",
        sa.Column(
            "id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False
        ),
        sa.Column(
            "path_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("learning_paths.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("skill_name", sa.String(length=255), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column(
            "status", skill_status_enum, nullable=False, server_default="learning"
        ),
        sa.Column(
            "learning_topics",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column(
            "progress_percentage", sa.Integer(), nullable=False, server_default="0"
        ),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.CheckConstraint(
            "progress_percentage >= 0 AND progress_percentage <= 100",
            name="check_skill_progress",
        ),
    )
    op.create_index(
        "idx_skills_path_position", "skills", ["path_id", "position"], unique=False
    )
    op.create_index("idx_skills_name", "skills", ["skill_name"], unique=False)

    op.create_table(
        "projects",
        sa.Column(
            "id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False
        ),
        sa.Column(
            "skill_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("skills.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column(
            "difficulty",
            project_difficulty_enum,
            nullable=False,
            server_default="beginner",
        ),
        sa.Column(
            "estimated_hours", sa.Integer(), nullable=False, server_default="10"
        ),
        sa.Column(
            "status",
            project_status_enum,
            nullable=False,
            server_default="not_started",
        ),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.CheckConstraint(
            "estimated_hours >= 1 AND estimated_hours <= 200",
            name="check_estimated_hours",
        ),
    )
    op.create_index(
        "idx_projects_skill_position",
        "projects",
        ["skill_id", "position"],
        unique=False,
    )


def downgrade() -> None:
    """Drop learning path tables."""
    op.drop_index("idx_projects_skill_position", table_name="projects")
    op.drop_table("projects")
    op.drop_index("idx_skills_name", table_name="skills")
    op.drop_index("idx_skills_path_position", table_name="skills")
    op.drop_table("skills")
    op.drop_index("uq_learning_paths_active_user", table_name="learning_paths")
    op.drop_index("idx_learning_paths_user", table_name="learning_paths")
    op.drop_table("learning_paths")

    project_status_enum.drop(op.get_bind(), checkfirst=True)
    skill_status_enum.drop(op.get_bind(), checkfirst=True)
    project_difficulty_enum.drop(op.get_bind(), checkfirst=True)
    experience_level_enum.drop(op.get_bind(), checkfirst=True)
