import uuid
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy import (
    Column,
    String,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    Text,
    Float,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from .database import Base

FORMULATION_STATUSES = ("testing", "finalized", "freeze", "archived", "discontinued")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Ingredient(Base):
    __tablename__ = "ingredients"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), unique=True, nullable=False)
    inci_name = Column(String(255))
    origin = Column(String(255))
    ingredient_type = Column(String(100))
    is_humectant = Column(Boolean, default=False, nullable=False)
    is_emollient = Column(Boolean, default=False, nullable=False)
    is_occlusive = Column(Boolean, default=False, nullable=False)
    is_moisturizing = Column(Boolean, default=False, nullable=False)
    is_anhydrous = Column(Boolean, default=False, nullable=False)
    ph_min = Column(Float)
    ph_max = Column(Float)
    solubility = Column(String(50))
    max_usage_rate = Column(Float)
    notes = Column(Text)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)


class Formulation(Base):
    __tablename__ = "formulations"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    base_batch_size = Column(Float, nullable=False)
    unit = Column(String(10), default="g", nullable=False)
    status = Column(String(20), default="testing", nullable=False, index=True)
    version_number = Column(Integer, default=1, nullable=False)
    parent_formulation_id = Column(
        UUID(as_uuid=True),
        ForeignKey("formulations.id", ondelete="SET NULL"),
        nullable=True,
    )
    phases = Column(Text)
    instructions = Column(Text)
    notes = Column(Text)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    # lines are owned by the formulation; batches only hold a copy
    lines = relationship(
        "FormulationIngredient",
        back_populates="formulation",
        cascade="all, delete-orphan",
        order_by="FormulationIngredient.sort_order",
    )
    parent = relationship("Formulation", remote_side=[id])

    @property
    def ordered_lines(self) -> list["FormulationIngredient"]:
        """Lines in display order: sort_order, then phase (nulls last), then ingredient name."""

        return sorted(
            self.lines,
            key=lambda line: (
                line.sort_order or 0,
                line.phase is None,
                line.phase or "",
                line.ingredient.name if line.ingredient is not None else "",
            ),
        )

    __table_args__ = (
        sa.CheckConstraint("base_batch_size > 0", name="ck_formulation_base_batch_size_positive"),
        sa.CheckConstraint(
            "status IN ('testing', 'finalized', 'freeze', 'archived', 'discontinued')",
            name="ck_formulation_status",
        ),
    )


class FormulationIngredient(Base):
    __tablename__ = "formulation_ingredients"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    formulation_id = Column(
        UUID(as_uuid=True),
        ForeignKey("formulations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    ingredient_id = Column(
        UUID(as_uuid=True),
        ForeignKey("ingredients.id"),
        nullable=False,
        index=True,
    )
    percentage = Column(Float, nullable=False)
    phase = Column(String(50))
    sort_order = Column(Integer, default=0, nullable=False)
    notes = Column(Text)

    formulation = relationship("Formulation", back_populates="lines")
    ingredient = relationship("Ingredient")

    __table_args__ = (
        sa.CheckConstraint(
            "percentage > 0 AND percentage <= 100",
            name="ck_formulation_ingredient_percentage",
        ),
    )


class ProductionBatch(Base):
    __tablename__ = "production_batches"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    formulation_id = Column(
        UUID(as_uuid=True),
        ForeignKey("formulations.id"),
        nullable=False,
        index=True,
    )
    batch_name = Column(String(255))
    target_amount = Column(Float, nullable=False)
    actual_amount = Column(Float, nullable=True)
    unit = Column(String(10), default="g", nullable=False)
    production_date = Column(DateTime, default=_utcnow, nullable=False)
    notes = Column(Text)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    formulation = relationship("Formulation")
    lines = relationship(
        "BatchIngredient",
        back_populates="batch",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        sa.CheckConstraint("target_amount > 0", name="ck_batch_target_amount_positive"),
    )


class BatchIngredient(Base):
    __tablename__ = "batch_ingredients"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    batch_id = Column(
        UUID(as_uuid=True),
        ForeignKey("production_batches.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    ingredient_id = Column(
        UUID(as_uuid=True),
        ForeignKey("ingredients.id"),
        nullable=False,
        index=True,
    )
    # fixed at batch creation; variance is derived on read, never stored
    planned_amount = Column(Float, nullable=False)
    actual_amount = Column(Float, nullable=True)
    unit = Column(String(10), default="g", nullable=False)
    notes = Column(Text)

    batch = relationship("ProductionBatch", back_populates="lines")
    ingredient = relationship("Ingredient")
