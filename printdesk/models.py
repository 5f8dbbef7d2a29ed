from sqlalchemy import Column, Integer, String, Float, DateTime, Boolean, ForeignKey, Text, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from .database import Base


# Units a service can be priced in. Stored as VARCHAR so new units don't need a migration.
SERVICE_UNITS = ["sheet", "hour", "m2", "click", "item", "run", "meter"]


class Service(Base):
    """Priced production service (printing, lamination, cutting, ...)."""
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    unit = Column(String, nullable=False, default="item")
    base_rate = Column(Float, nullable=False, default=0.0)
    currency = Column(String, nullable=False, default="BYN")
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    volume_tiers = relationship("ServiceVolumeTier", back_populates="service", cascade="all, delete-orphan")
    operation_norms = relationship("OperationNorm", back_populates="service")


class ServiceVolumeTier(Base):
    """Quantity break, rate applies from min_quantity upwards."""
    __tablename__ = "service_volume_tiers"

    id = Column(Integer, primary_key=True, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    min_quantity = Column(Float, nullable=False)
    rate = Column(Float, nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    service = relationship("Service", back_populates="volume_tiers")


class OperationNorm(Base):
    """How much of a service one production step consumes, as a formula."""
    __tablename__ = "operation_norms"
    __table_args__ = (UniqueConstraint("product_type", "operation", name="uq_norm_product_operation"),)

    id = Column(Integer, primary_key=True, index=True)
    product_type = Column(String, nullable=False, index=True)
    operation = Column(String, nullable=False)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    formula = Column(Text, nullable=False)
    is_active = Column(Boolean, default=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    service = relationship("Service", back_populates="operation_norms")


class PaperStock(Base):
    """Warehouse paper, priced per press sheet."""
    __tablename__ = "paper_stock"
    __table_args__ = (UniqueConstraint("paper_type", "density", name="uq_paper_type_density"),)

    id = Column(Integer, primary_key=True, index=True)
    paper_type = Column(String, nullable=False)  # 'semi-matte' | 'glossy' | 'offset' | ...
    density = Column(Integer, nullable=False)     # g/m2
    name = Column(String, nullable=False)
    unit = Column(String, default="sheet")
    price_per_sheet = Column(Float, nullable=False)
    currency = Column(String, nullable=False, default="BYN")
    is_active = Column(Boolean, default=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class MaterialRule(Base):
    """Per product type layout: press sheet, bleed, waste, pinned pieces-per-sheet."""
    __tablename__ = "material_rules"

    id = Column(Integer, primary_key=True, index=True)
    product_type = Column(String, unique=True, nullable=False)
    requires_paper = Column(Boolean, default=True)
    press_sheet = Column(String, default="SRA3")
    sheet_width_mm = Column(Float, default=320.0)
    sheet_height_mm = Column(Float, default=450.0)
    bleed_mm = Column(Float, default=2.0)
    waste_ratio = Column(Float, default=0.02)
    up_by_format = Column(JSON, default=dict)  # {"A6": 8, ...}
    notes = Column(String, nullable=True)
