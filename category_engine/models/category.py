"""Category model - a node of the bounded-depth category tree."""

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from category_engine.models.base import Base, TimestampMixin, new_id


class Category(Base, TimestampMixin):
    """Content category.

    The flat row is the source of truth: `parent_id` links a node to its
    parent and `depth` mirrors the length of that chain (0 for roots).
    Nested children are never stored, only projected by the tree operations.
    """

    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(120), unique=True, nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    parent_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("categories.id"),
        nullable=True,
        index=True,
    )
    depth: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, slug='{self.slug}', depth={self.depth})>"
