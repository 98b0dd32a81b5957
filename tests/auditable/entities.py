"""Mapped classes used by the auditable tests."""

from __future__ import annotations

from sqlalchemy import Column, Date, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import declarative_base, relationship

from packages.auditable import auditable, audited

Base = declarative_base()


class Company(Base):
    __tablename__ = "company"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)

    def __str__(self) -> str:
        return self.name


class Warehouse(Base):
    __tablename__ = "warehouse"

    id = Column(Integer, primary_key=True)
    label = Column(String(100), nullable=False)


@auditable("customer", "total_items", "executed_ts", "company", "status")
class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    customer = Column(String(100), nullable=False)
    total_items = Column(Integer, nullable=False)
    note = Column(String(255), nullable=True)
    executed_ts = Column(DateTime(timezone=True), nullable=True)
    ship_on = Column(Date, nullable=True, info=audited())
    status = Column(Enum("open", "closed", name="order_status"), nullable=True)
    company_id = Column(Integer, ForeignKey("company.id"), nullable=True)
    warehouse_id = Column(Integer, ForeignKey("warehouse.id"), nullable=True)

    company = relationship(Company)
    warehouse = relationship(Warehouse, info=audited())
    lines = relationship("OrderLine", back_populates="order")


class OrderLine(Base):
    __tablename__ = "order_line"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False)
    sku = Column(String(50), nullable=False)

    order = relationship(Order, back_populates="lines")


@auditable("label")
class Labelled(Base):
    __abstract__ = True

    label = Column(String(50), nullable=True)


@auditable("size")
class Crate(Labelled):
    __tablename__ = "crate"

    id = Column(Integer, primary_key=True)
    size = Column(Integer, nullable=True)


@auditable("name")
class Vehicle(Base):
    __tablename__ = "vehicle"

    id = Column(Integer, primary_key=True)
    kind = Column(String(20), nullable=False)
    name = Column(String(50), nullable=True)

    __mapper_args__ = {"polymorphic_on": kind, "polymorphic_identity": "vehicle"}


@auditable("wheels")
class Car(Vehicle):
    __tablename__ = "car"

    id = Column(Integer, ForeignKey("vehicle.id"), primary_key=True)
    wheels = Column(Integer, nullable=True)

    __mapper_args__ = {"polymorphic_identity": "car"}


class Bicycle(Vehicle):
    __tablename__ = "bicycle"

    id = Column(Integer, ForeignKey("vehicle.id"), primary_key=True)
    gears = Column(Integer, nullable=True)

    __mapper_args__ = {"polymorphic_identity": "bicycle"}
