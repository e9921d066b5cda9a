from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status

from lex_provider.api.deps import get_bot_alias_resource, get_state_store
from lex_provider.schemas.lex import BotAliasConfig, BotAliasState, ImportRequest
from lex_provider.services.bot_alias import KIND, BotAliasResource
from lex_provider.services.state import ResourceStateStore

router = APIRouter()

IMMUTABLE_FIELDS = ("bot_name", "name")


def _store_key(bot_name: str, name: str) -> str:
    return f"{bot_name}.{name}"


def _load_or_404(store: ResourceStateStore, bot_name: str, name: str) -> BotAliasState:
    current = store.load(KIND, _store_key(bot_name, name), BotAliasState)
    if current is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Bot alias {name} of bot {bot_name} is not managed by this provider.",
        )
    return current


def _remember(
    store: ResourceStateStore,
    bot_name: str,
    name: str,
    state: Optional[BotAliasState],
) -> BotAliasState:
    if state is None:
        store.discard(KIND, _store_key(bot_name, name))
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Bot alias {name} of bot {bot_name} no longer exists and was removed from state.",
        )
    store.persist(KIND, _store_key(state.bot_name, state.name), state)
    return state


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=BotAliasState,
    summary="Create a Lex bot alias",
)
def create_bot_alias(
    config: BotAliasConfig,
    resource: BotAliasResource = Depends(get_bot_alias_resource),
    store: ResourceStateStore = Depends(get_state_store),
) -> BotAliasState:
    key = _store_key(config.bot_name, config.name)
    if store.load(KIND, key, BotAliasState) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Bot alias {key} is already managed; use PUT to change it.",
        )
    return _remember(store, config.bot_name, config.name, resource.create(config))


@router.post(
    "/import",
    response_model=BotAliasState,
    summary="Adopt an existing bot alias by BOT_NAME.BOT_ALIAS_NAME",
)
def import_bot_alias(
    request: ImportRequest,
    resource: BotAliasResource = Depends(get_bot_alias_resource),
    store: ResourceStateStore = Depends(get_state_store),
) -> BotAliasState:
    key = resource.import_state(request.id)
    state = resource.read(key.bot_name, key.name)
    return _remember(store, key.bot_name, key.name, state)


@router.get(
    "/{bot_name}/{name}",
    response_model=BotAliasState,
    summary="Refresh a managed bot alias",
)
def read_bot_alias(
    bot_name: str,
    name: str,
    resource: BotAliasResource = Depends(get_bot_alias_resource),
    store: ResourceStateStore = Depends(get_state_store),
) -> BotAliasState:
    _load_or_404(store, bot_name, name)
    return _remember(store, bot_name, name, resource.read(bot_name, name))


@router.put(
    "/{bot_name}/{name}",
    response_model=BotAliasState,
    summary="Update a managed bot alias",
)
def update_bot_alias(
    bot_name: str,
    name: str,
    config: BotAliasConfig,
    resource: BotAliasResource = Depends(get_bot_alias_resource),
    store: ResourceStateStore = Depends(get_state_store),
) -> BotAliasState:
    current = _load_or_404(store, bot_name, name)
    for field in IMMUTABLE_FIELDS:
        if getattr(config, field) != getattr(current, field):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"'{field}' cannot be changed on an existing bot alias; recreate it instead.",
            )
    return _remember(store, bot_name, name, resource.update(current, config))


@router.delete(
    "/{bot_name}/{name}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a managed bot alias and wait until it is gone",
)
def delete_bot_alias(
    bot_name: str,
    name: str,
    resource: BotAliasResource = Depends(get_bot_alias_resource),
    store: ResourceStateStore = Depends(get_state_store),
) -> Response:
    current = _load_or_404(store, bot_name, name)
    resource.delete(current)
    store.discard(KIND, _store_key(bot_name, name))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
