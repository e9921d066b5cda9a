import logging
import time
from typing import Callable, Optional

from pydantic import TypeAdapter, ValidationError

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
from lex_provider.core.retry import retry_until
from lex_provider.schemas.lex import VERSION_LATEST, BotConfig, BotName, BotState
from lex_provider.services.expand import expand_bot
from lex_provider.services.flatten import flatten_bot

logger = logging.getLogger(__name__)

KIND = "bot"
IMPORT_ID_FORMAT = "BOT_NAME"

_bot_name_adapter = TypeAdapter(BotName)


class BotResource:
    """Create, read, update, delete and import Lex bots."""

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

    def create(self, config: BotConfig) -> Optional[BotState]:
        """Put a new bot and return its state as read back from Lex."""
        with bound_resource(KIND, config.name):
            try:
                self._client.put_bot(**expand_bot(config))
            except LexProviderError as exc:
                raise ResourceOperationError(
                    kind=KIND, action="creating", resource_id=config.name, cause=exc
                ) from exc
            logger.info("Bot created")

        return self.read(
            config.name,
            version=config.version,
            process_behavior=config.process_behavior,
        )

    def read(
        self,
        bot_id: str,
        *,
        version: str = VERSION_LATEST,
        process_behavior: Optional[str] = None,
    ) -> Optional[BotState]:
        """
        Fetch the bot and flatten it into a state record.

        Returns ``None`` when Lex no longer knows the bot, which tells the
        caller to drop its local identity.
        """
        with bound_resource(KIND, bot_id):
            try:
                response = self._client.get_bot(name=bot_id, version_or_alias=version)
            except LexProviderError as exc:
                if is_not_found(exc):
                    logger.warning("Bot (%s) not found, removing from state", bot_id)
                    return None
                raise ResourceOperationError(
                    kind=KIND, action="reading", resource_id=bot_id, cause=exc
                ) from exc

        return flatten_bot(response, process_behavior)

    def update(self, state: BotState, config: BotConfig) -> Optional[BotState]:
        """Put the new configuration, retrying while Lex reports a conflict."""
        params = expand_bot(config, checksum=state.checksum)
        params["name"] = state.id

        with bound_resource(KIND, state.id):
            try:
                retry_until(
                    lambda: self._client.put_bot(**params),
                    timeout=self._update_timeout,
                    retry_on=is_conflict,
                    description=f"{state.id!r}: bot still updating",
                    base_delay=self._retry_base_delay,
                    max_delay=self._retry_max_delay,
                    clock=self._clock,
                    sleep=self._sleep,
                )
            except LexProviderError as exc:
                raise ResourceOperationError(
                    kind=KIND, action="updating", resource_id=state.id, cause=exc
                ) from exc
            logger.info("Bot updated")

        return self.read(
            state.id,
            version=config.version,
            process_behavior=config.process_behavior,
        )

    def delete(self, state: BotState) -> None:
        """Delete the bot, retrying while Lex reports a conflict."""
        with bound_resource(KIND, state.id):
            try:
                retry_until(
                    lambda: self._client.delete_bot(name=state.id),
                    timeout=self._delete_timeout,
                    retry_on=is_conflict,
                    description=f"{state.id!r}: bot still deleting",
                    base_delay=self._retry_base_delay,
                    max_delay=self._retry_max_delay,
                    clock=self._clock,
                    sleep=self._sleep,
                )
            except LexProviderError as exc:
                raise ResourceOperationError(
                    kind=KIND, action="deleting", resource_id=state.id, cause=exc
                ) from exc
            logger.info("Bot deleted")

    def import_state(self, identifier: str) -> Optional[BotState]:
        """Adopt an existing bot by name; the version is not part of the id."""
        try:
            name = _bot_name_adapter.validate_python(identifier)
        except ValidationError as exc:
            raise InvalidImportIdError(identifier, IMPORT_ID_FORMAT) from exc
        logger.info("Importing bot %s", name)
        return self.read(name, version=VERSION_LATEST)
