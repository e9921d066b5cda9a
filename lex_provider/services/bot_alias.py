import logging
import time
from typing import Callable, Optional

from pydantic import ValidationError

from lex_provider.clients.lex_models import LexModelsClient
from lex_provider.core.config import settings
from lex_provider.core.errors import (
    InvalidImportIdError,
    LexProviderError,
    ResourceOperationError,
    is_conflict,
    is_not_found,
)
from lex_provider.core.logging import bound_resource
from lex_provider.core.retry import poll_until, retry_until
from lex_provider.schemas.lex import BotAliasConfig, BotAliasKey, BotAliasState
from lex_provider.services.expand import expand_bot_alias
from lex_provider.services.flatten import flatten_bot_alias

logger = logging.getLogger(__name__)

KIND = "bot alias"
IMPORT_ID_SEPARATOR = "."
IMPORT_ID_FORMAT = "BOT_NAME.BOT_ALIAS_NAME"


def parse_import_id(identifier: str) -> BotAliasKey:
    """Split ``BOT_NAME.BOT_ALIAS_NAME`` into the alias key without calling Lex."""
    parts = identifier.split(IMPORT_ID_SEPARATOR)
    if len(parts) != 2 or not all(parts):
        raise InvalidImportIdError(identifier, IMPORT_ID_FORMAT)
    try:
        return BotAliasKey(bot_name=parts[0], name=parts[1])
    except ValidationError as exc:
        raise InvalidImportIdError(identifier, IMPORT_ID_FORMAT) from exc


class BotAliasResource:
    """Create, read, update, delete and import Lex bot aliases."""

    def __init__(
        self,
        *,
        client: LexModelsClient,
        update_timeout: Optional[float] = None,
        delete_timeout: Optional[float] = None,
        retry_base_delay: Optional[float] = None,
        retry_max_delay: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client = client
        self._update_timeout = (
            update_timeout if update_timeout is not None else settings.lex_update_timeout
        )
        self._delete_timeout = (
            delete_timeout if delete_timeout is not None else settings.lex_delete_timeout
        )
        self._retry_base_delay = retry_base_delay
        self._retry_max_delay = retry_max_delay
        self._clock = clock
        self._sleep = sleep

    def create(self, config: BotAliasConfig) -> Optional[BotAliasState]:
        with bound_resource(KIND, config.name):
            try:
                self._client.put_bot_alias(**expand_bot_alias(config))
            except LexProviderError as exc:
                raise ResourceOperationError(
                    kind=KIND, action="creating", resource_id=config.name, cause=exc
                ) from exc
            logger.info("Bot alias created for bot %s", config.bot_name)

        return self.read(config.bot_name, config.name)

    def read(self, bot_name: str, name: str) -> Optional[BotAliasState]:
        """Fetch the alias; ``None`` means it is gone and local identity should be dropped."""
        with bound_resource(KIND, name):
            try:
                response = self._client.get_bot_alias(bot_name=bot_name, name=name)
            except LexProviderError as exc:
                if is_not_found(exc):
                    logger.warning("Bot alias (%s) not found, removing from state", name)
                    return None
                raise ResourceOperationError(
                    kind=KIND, action="reading", resource_id=name, cause=exc
                ) from exc

        return flatten_bot_alias(response)

    def update(
        self, state: BotAliasState, config: BotAliasConfig
    ) -> Optional[BotAliasState]:
        params = expand_bot_alias(config, checksum=state.checksum)
        params["name"] = state.id

        with bound_resource(KIND, state.id):
            try:
                retry_until(
                    lambda: self._client.put_bot_alias(**params),
                    timeout=self._update_timeout,
                    retry_on=is_conflict,
                    description=f"{state.id!r}: bot alias still updating",
                    base_delay=self._retry_base_delay,
                    max_delay=self._retry_max_delay,
                    clock=self._clock,
                    sleep=self._sleep,
                )
            except LexProviderError as exc:
                raise ResourceOperationError(
                    kind=KIND, action="updating", resource_id=state.id, cause=exc
                ) from exc
            logger.info("Bot alias updated")

        return self.read(config.bot_name, state.id)

    def delete(self, state: BotAliasState) -> None:
        """
        Delete the alias and wait until Lex stops returning it.

        A bot cannot be deleted while an alias still points at it, so the
        call only returns once ``GetBotAlias`` reports not found. The conflict
        retries and the wait are each bounded by the delete timeout.
        """
        bot_name, name = state.bot_name, state.name

        with bound_resource(KIND, state.id):
            try:
                retry_until(
                    lambda: self._client.delete_bot_alias(bot_name=bot_name, name=name),
                    timeout=self._delete_timeout,
                    retry_on=is_conflict,
                    description=f"{state.id!r}: bot alias still deleting",
                    base_delay=self._retry_base_delay,
                    max_delay=self._retry_max_delay,
                    clock=self._clock,
                    sleep=self._sleep,
                )
                poll_until(
                    lambda: self._is_gone(bot_name, name),
                    timeout=self._delete_timeout,
                    description=f"{state.id!r}: waiting for bot alias to disappear",
                    base_delay=self._retry_base_delay,
                    max_delay=self._retry_max_delay,
                    clock=self._clock,
                    sleep=self._sleep,
                )
            except LexProviderError as exc:
                raise ResourceOperationError(
                    kind=KIND, action="deleting", resource_id=state.id, cause=exc
                ) from exc
            logger.info("Bot alias deleted")

    def import_state(self, identifier: str) -> BotAliasKey:
        """Seed the alias identity from ``BOT_NAME.BOT_ALIAS_NAME``."""
        key = parse_import_id(identifier)
        logger.info("Importing bot alias %s of bot %s", key.name, key.bot_name)
        return key

    def _is_gone(self, bot_name: str, name: str) -> bool:
        try:
            self._client.get_bot_alias(bot_name=bot_name, name=name)
        except LexProviderError as exc:
            if is_not_found(exc):
                return True
            raise
        return False
