"""
Shared primitive data types for the engine and minigames.

Minigames lay out their entities in a normalized 0-100 arena; these types
carry positions and bounding boxes in that space.
"""

from pydantic import BaseModel, ConfigDict, computed_field, field_validator


class Point2D(BaseModel):
    """Immutable arena or screen position.

    Examples:
        >>> Point2D(x=50.0, y=50.0)  # center of the arena
    """
    x: float
    y: float

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"Point2D({self.x:.2f}, {self.y:.2f})"


class Rectangle(BaseModel):
    """Axis-aligned bounding box, anchored at its top-left corner like pygame.Rect.

    Attributes:
        x, y: Top-left corner
        width, height: Extent, strictly positive

    Examples:
        >>> box = Rectangle(x=46.5, y=43.5, width=7.0, height=13.0)
        >>> box.right, box.bottom
        (53.5, 56.5)
    """
    x: float
    y: float
    width: float
    height: float

    model_config = ConfigDict(frozen=True)

    @field_validator('width', 'height')
    @classmethod
    def validate_extent(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f'Width and height must be positive, got {v}')
        return v

    @computed_field
    @property
    def right(self) -> float:
        return self.x + self.width

    @computed_field
    @property
    def bottom(self) -> float:
        return self.y + self.height

    @computed_field
    @property
    def center(self) -> Point2D:
        return Point2D(x=self.x + self.width / 2, y=self.y + self.height / 2)

    def overlaps(self, other: 'Rectangle') -> bool:
        """True when the interiors intersect. Boxes sharing only an edge do not overlap.

        Examples:
            >>> a = Rectangle(x=0.0, y=0.0, width=10.0, height=10.0)
            >>> a.overlaps(Rectangle(x=5.0, y=5.0, width=10.0, height=10.0))
            True
            >>> a.overlaps(Rectangle(x=10.0, y=0.0, width=10.0, height=10.0))
            False
        """
        return (self.x < other.right and other.x < self.right and
                self.y < other.bottom and other.y < self.bottom)

    def __str__(self) -> str:
        return f"Rectangle({self.x:.2f}, {self.y:.2f}, {self.width:.2f}x{self.height:.2f})"
