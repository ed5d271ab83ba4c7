from __future__ import annotations

from sqlalchemy import Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from modelcache.observability.collector import StackFrame


class Base(DeclarativeBase):
    pass


class Product(Base):
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    sku: Mapped[str] = mapped_column(String(64), nullable=False)


class StoreProduct(Base):
    __tablename__ = "store_products"

    store_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    product_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class RecordingSink:
    def __init__(self) -> None:
        self.writes: list[tuple[str, str]] = []

    def write(self, message: str, file: str) -> None:
        self.writes.append((file, message))


class FailingSink:
    def write(self, message: str, file: str) -> None:
        raise OSError("disk full")


def make_stack(*frames: tuple[str | None, int | None]) -> list[StackFrame]:
    return [StackFrame(file=f, line=line) for f, line in frames]


def plumbing_then(*frames: tuple[str | None, int | None]) -> list[StackFrame]:
    """Five dispatch frames followed by the given caller frames."""

    plumbing = [StackFrame(file="/lib/dispatch.py", line=i) for i in range(5)]
    return plumbing + make_stack(*frames)
