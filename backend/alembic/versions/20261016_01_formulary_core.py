"""Create ingredient, formulation and production batch tables."""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "20261016_01"
down_revision: str | Sequence[str] | None = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create the catalog tables and the batch snapshot tables."""

    op.create_table(
        "ingredients",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("inci_name", sa.String(length=255), nullable=True),
        sa.Column("origin", sa.String(length=255), nullable=True),
        sa.Column("ingredient_type", sa.String(length=100), nullable=True),
        sa.Column("is_humectant", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_emollient", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_occlusive", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_moisturizing", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_anhydrous", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("ph_min", sa.Float(), nullable=True),
        sa.Column("ph_max", sa.Float(), nullable=True),
        sa.Column("solubility", sa.String(length=50), nullable=True),
        sa.Column("max_usage_rate", sa.Float(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("name", name="uq_ingredients_name"),
    )

    op.create_table(
        "formulations",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("base_batch_size", sa.Float(), nullable=False),
        sa.Column("unit", sa.String(length=10), nullable=False, server_default="g"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="testing"),
        sa.Column("version_number", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("parent_formulation_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("phases", sa.Text(), nullable=True),
        sa.Column("instructions", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(
            ["parent_formulation_id"],
            ["formulations.id"],
            ondelete="SET NULL",
        ),
        sa.CheckConstraint("base_batch_size > 0", name="ck_formulation_base_batch_size_positive"),
        sa.CheckConstraint(
            "status IN ('testing', 'finalized', 'freeze', 'archived', 'discontinued')",
            name="ck_formulation_status",
        ),
    )
    op.create_index("ix_formulations_status", "formulations", ["status"])

    op.create_table(
        "formulation_ingredients",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("formulation_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("ingredient_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("percentage", sa.Float(), nullable=False),
        sa.Column("phase", sa.String(length=50), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["formulation_id"], ["formulations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["ingredient_id"], ["ingredients.id"]),
        sa.CheckConstraint(
            "percentage > 0 AND percentage <= 100",
            name="ck_formulation_ingredient_percentage",
        ),
    )
    op.create_index(
        "ix_formulation_ingredients_formulation_id",
        "formulation_ingredients",
        ["formulation_id"],
    )
    op.create_index(
        "ix_formulation_ingredients_ingredient_id",
        "formulation_ingredients",
        ["ingredient_id"],
    )

    op.create_table(
        "production_batches",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("formulation_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("batch_name", sa.String(length=255), nullable=True),
        sa.Column("target_amount", sa.Float(), nullable=False),
        sa.Column("actual_amount", sa.Float(), nullable=True),
        sa.Column("unit", sa.String(length=10), nullable=False, server_default="g"),
        sa.Column("production_date", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["formulation_id"], ["formulations.id"]),
        sa.CheckConstraint("target_amount > 0", name="ck_batch_target_amount_positive"),
    )
    op.create_index(
        "ix_production_batches_formulation_id",
        "production_batches",
        ["formulation_id"],
    )

    op.create_table(
        "batch_ingredients",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("batch_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("ingredient_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("planned_amount", sa.Float(), nullable=False),
        sa.Column("actual_amount", sa.Float(), nullable=True),
        sa.Column("unit", sa.String(length=10), nullable=False, server_default="g"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["batch_id"], ["production_batches.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["ingredient_id"], ["ingredients.id"]),
    )
    op.create_index("ix_batch_ingredients_batch_id", "batch_ingredients", ["batch_id"])
    op.create_index("ix_batch_ingredients_ingredient_id", "batch_ingredients", ["ingredient_id"])


def downgrade() -> None:
    """Drop the batch snapshot tables before the catalog they reference."""

    op.drop_index("ix_batch_ingredients_ingredient_id", table_name="batch_ingredients")
    op.drop_index("ix_batch_ingredients_batch_id", table_name="batch_ingredients")
    op.drop_table("batch_ingredients")
    op.drop_index("ix_production_batches_formulation_id", table_name="production_batches")
    op.drop_table("production_batches")
    op.drop_index("ix_formulation_ingredients_ingredient_id", table_name="formulation_ingredients")
    op.drop_index("ix_formulation_ingredients_formulation_id", table_name="formulation_ingredients")
    op.drop_table("formulation_ingredients")
    op.drop_index("ix_formulations_status", table_name="formulations")
    op.drop_table("formulations")
    op.drop_table("ingredients")
