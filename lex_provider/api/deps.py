from typing import Optional

from lex_provider.clients.lex_models import LexModelsClient
from lex_provider.services.bot import BotResource
from lex_provider.services.bot_alias import BotAliasResource
from lex_provider.services.state import ResourceStateStore


_state_store: Optional[ResourceStateStore] = None
_lex_client: Optional[LexModelsClient] = None


def get_state_store() -> ResourceStateStore:
    """Provide a shared resource state store instance."""
    global _state_store
    if _state_store is None:
        _state_store = ResourceStateStore()
    return _state_store


def get_lex_client() -> LexModelsClient:
    """Provide a shared Lex model-building client."""
    global _lex_client
    if _lex_client is None:
        _lex_client = LexModelsClient()
    return _lex_client


def get_bot_resource() -> BotResource:
    return BotResource(client=get_lex_client())


def get_bot_alias_resource() -> BotAliasResource:
    return BotAliasResource(client=get_lex_client())
