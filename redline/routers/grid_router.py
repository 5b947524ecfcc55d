from typing import List

from fastapi import APIRouter, Depends, HTTPException

from redline.models.grid import GestureRequest, GridItem
from redline.widgets.grid import GridBoard

router = APIRouter(
    prefix="/api/grid",
    tags=["grid"]
)

_board = GridBoard()


def get_grid_board() -> GridBoard:
    return _board


@router.get("", response_model=List[GridItem])
async def list_panels(board: GridBoard = Depends(get_grid_board)):
    return board.list_items()


@router.post("/{item_id}/gestures", response_model=GridItem)
async def replay_gesture(item_id: str, request: GestureRequest, board: GridBoard = Depends(get_grid_board)):
    if item_id not in board.items:
        raise HTTPException(status_code=404, detail=f"Unknown panel: {item_id}")
    return board.replay(item_id, request.events)
