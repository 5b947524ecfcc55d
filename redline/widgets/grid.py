"""
Drag/resize tracking for dashboard panels. Pure state: callers feed pointer
events in the order the UI delivers them.
"""
from typing import Callable, Dict, Iterable, List, Optional

from redline.models.grid import GridItem, PointerEvent, Position, Size

MIN_PANEL_SIZE = 100


class DragResizeWidget:
    def __init__(
        self,
        item_id: str,
        position: Position,
        size: Size,
        on_drag: Optional[Callable[[str, Position], None]] = None,
        on_resize: Optional[Callable[[str, Size], None]] = None,
    ):
        self.id = item_id
        self.position = position
        self.size = size
        self.on_drag = on_drag
        self.on_resize = on_resize
        self.is_dragging = False
        self.is_resizing = False
        self._grab_offset = Position(x=0, y=0)
        self._resize_origin = (0.0, 0.0)
        self._resize_start = size

    def pointer_down(self, x: float, y: float, on_handle: bool = False) -> None:
        if on_handle:
            # handle press never reaches the body
            self.is_resizing = True
            self.is_dragging = False
            self._resize_origin = (x, y)
            self._resize_start = self.size
            return
        self.is_dragging = True
        self.is_resizing = False
        self._grab_offset = Position(x=x - self.position.x, y=y - self.position.y)

    def pointer_move(self, x: float, y: float) -> None:
        if self.is_dragging:
            self.position = Position(x=x - self._grab_offset.x, y=y - self._grab_offset.y)
            if self.on_drag:
                self.on_drag(self.id, self.position)
        elif self.is_resizing:
            dx = x - self._resize_origin[0]
            dy = y - self._resize_origin[1]
            self.size = Size(
                width=max(MIN_PANEL_SIZE, self._resize_start.width + dx),
                height=max(MIN_PANEL_SIZE, self._resize_start.height + dy),
            )
            if self.on_resize:
                self.on_resize(self.id, self.size)

    def pointer_up(self) -> None:
        self.is_dragging = False
        self.is_resizing = False

    def handle(self, event: PointerEvent) -> None:
        if event.type == "down":
            self.pointer_down(event.x, event.y, on_handle=event.on_handle)
        elif event.type == "move":
            self.pointer_move(event.x, event.y)
        else:
            self.pointer_up()


DEFAULT_PANELS: List[GridItem] = [
    GridItem(id="analytics", title="Analytics", position=Position(x=24, y=80), size=Size(width=300, height=240)),
    GridItem(id="tasks", title="Tasks", position=Position(x=348, y=80), size=Size(width=300, height=240)),
    GridItem(id="calendar", title="Calendar", position=Position(x=24, y=340), size=Size(width=300, height=240)),
    GridItem(id="notes", title="Notes", position=Position(x=348, y=340), size=Size(width=300, height=240)),
]


class GridBoard:
    """Panels on the dashboard. Panels may overlap; nothing is persisted."""

    def __init__(self, items: Optional[Iterable[GridItem]] = None):
        source = DEFAULT_PANELS if items is None else items
        self.items: Dict[str, GridItem] = {item.id: item.model_copy(deep=True) for item in source}
        self.widgets: Dict[str, DragResizeWidget] = {
            item.id: DragResizeWidget(
                item.id,
                item.position,
                item.size,
                on_drag=self._item_dragged,
                on_resize=self._item_resized,
            )
            for item in self.items.values()
        }

    def _item_dragged(self, item_id: str, position: Position) -> None:
        self.items[item_id] = self.items[item_id].model_copy(update={"position": position})

    def _item_resized(self, item_id: str, size: Size) -> None:
        self.items[item_id] = self.items[item_id].model_copy(update={"size": size})

    def list_items(self) -> List[GridItem]:
        return list(self.items.values())

    def replay(self, item_id: str, events: Iterable[PointerEvent]) -> GridItem:
        widget = self.widgets[item_id]
        for event in events:
            widget.handle(event)
        return self.items[item_id]
