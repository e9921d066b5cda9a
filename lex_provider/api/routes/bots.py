from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status

from lex_provider.api.deps import get_bot_resource, get_state_store
from lex_provider.schemas.lex import BotConfig, BotState, ImportRequest
from lex_provider.services.bot import KIND, BotResource
from lex_provider.services.state import ResourceStateStore

router = APIRouter()

IMMUTABLE_FIELDS = ("name", "locale")


def _load_or_404(store: ResourceStateStore, name: str) -> BotState:
    current = store.load(KIND, name, BotState)
    if current is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Bot {name} is not managed by this provider.",
        )
    return current


def _remember(
    store: ResourceStateStore, name: str, state: Optional[BotState]
) -> BotState:
    if state is None:
        store.discard(KIND, name)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Bot {name} no longer exists and was removed from state.",
        )
    store.persist(KIND, state.id, state)
    return state


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=BotState,
    summary="Create a Lex bot",
)
def create_bot(
    config: BotConfig,
    resource: BotResource = Depends(get_bot_resource),
    store: ResourceStateStore = Depends(get_state_store),
) -> BotState:
    if store.load(KIND, config.name, BotState) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Bot {config.name} is already managed; use PUT to change it.",
        )
    return _remember(store, config.name, resource.create(config))


@router.post(
    "/import",
    response_model=BotState,
    summary="Adopt an existing Lex bot by name",
)
def import_bot(
    request: ImportRequest,
    resource: BotResource = Depends(get_bot_resource),
    store: ResourceStateStore = Depends(get_state_store),
) -> BotState:
    return _remember(store, request.id, resource.import_state(request.id))


@router.get("/{name}", response_model=BotState, summary="Refresh a managed bot")
def read_bot(
    name: str,
    resource: BotResource = Depends(get_bot_resource),
    store: ResourceStateStore = Depends(get_state_store),
) -> BotState:
    current = _load_or_404(store, name)
    state = resource.read(
        name, version=current.version, process_behavior=current.process_behavior
    )
    return _remember(store, name, state)


@router.put("/{name}", response_model=BotState, summary="Update a managed bot")
def update_bot(
    name: str,
    config: BotConfig,
    resource: BotResource = Depends(get_bot_resource),
    store: ResourceStateStore = Depends(get_state_store),
) -> BotState:
    """
    Apply a new configuration.

    The stored checksum is sent along so Lex can reject the put if the bot
    was changed elsewhere since the last read.
    """
    current = _load_or_404(store, name)
    for field in IMMUTABLE_FIELDS:
        if getattr(config, field) != getattr(current, field):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"'{field}' cannot be changed on an existing bot; recreate it instead.",
            )
    return _remember(store, name, resource.update(current, config))


@router.delete(
    "/{name}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a managed bot",
)
def delete_bot(
    name: str,
    resource: BotResource = Depends(get_bot_resource),
    store: ResourceStateStore = Depends(get_state_store),
) -> Response:
    current = _load_or_404(store, name)
    resource.delete(current)
    store.discard(KIND, name)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
