# File: alembic/versions/0001_initial_schema.py | Version: 1.0 | Title: Databases, properties, records and views
import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "database",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("workspace_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_database_workspace_id", "database", ["workspace_id"], unique=False)

    op.create_table(
        "property",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("database_id", sa.String(), sa.ForeignKey("database.id"), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("type", sa.String(length=50), nullable=False),
        sa.Column("required", sa.Boolean(), nullable=True),
        sa.Column("config", sa.JSON(), nullable=True),
        sa.Column("order", sa.Integer(), nullable=True),
        sa.Column("is_visible", sa.Boolean(), nullable=True),
        sa.Column("is_system", sa.Boolean(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("database_id", "name", name="uq_database_property_name"),
    )
    op.create_index("ix_property_database_id", "property", ["database_id"], unique=False)

    op.create_table(
        "record",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("database_id", sa.String(), sa.ForeignKey("database.id"), nullable=False),
        sa.Column("properties", sa.JSON(), nullable=True),
        sa.Column("order", sa.Integer(), nullable=True),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column("last_edited_by", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_deleted", sa.Boolean(), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_by", sa.String(), nullable=True),
    )
    op.create_index("ix_record_database_id", "record", ["database_id"], unique=False)
    op.create_index(
        "ix_record_database_id_is_deleted", "record", ["database_id", "is_deleted"], unique=False
    )

    op.create_table(
        "views",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("database_id", sa.String(), sa.ForeignKey("database.id"), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("type", sa.String(), nullable=False, server_default="table"),
        sa.Column("filters_json", sa.JSON(), nullable=True),
        sa.Column("sorts_json", sa.JSON(), nullable=True),
        sa.Column("visible_properties_json", sa.JSON(), nullable=True),
        sa.Column("group_by", sa.String(), nullable=True),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_views_database", "views", ["database_id"], unique=False)


def downgrade():
    op.drop_index("ix_views_database", table_name="views")
    op.drop_table("views")
    op.drop_index("ix_record_database_id_is_deleted", table_name="record")
    op.drop_index("ix_record_database_id", table_name="record")
    op.drop_table("record")
    op.drop_index("ix_property_database_id", table_name="property")
    op.drop_table("property")
    op.drop_index("ix_database_workspace_id", table_name="database")
    op.drop_table("database")
