from typing import List, Literal

from pydantic import BaseModel


class Position(BaseModel):
    x: float
    y: float


class Size(BaseModel):
    width: float
    height: float


class GridItem(BaseModel):
    """Dashboard panel: where it sits and how big it is"""
    id: str
    title: str
    position: Position
    size: Size


class PointerEvent(BaseModel):
    """One pointer event replayed against a panel"""
    type: Literal["down", "move", "up"]
    x: float = 0
    y: float = 0
    on_handle: bool = False


class GestureRequest(BaseModel):
    events: List[PointerEvent]
