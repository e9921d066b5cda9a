"""
Configuration-side models for Lex bots and bot aliases.

Lex resources need nested objects that a flat key/value configuration cannot
express directly. Nested blocks with exactly one instance (``abort_statement``,
``clarification_prompt``) are therefore single-item lists, and unordered
collections (messages, intents) are sets of frozen models.

Limits follow the Lex model-building data types:
https://docs.aws.amazon.com/lex/latest/dg/API_Types_Amazon_Lex_Model_Building_Service.html
"""

from enum import Enum
from typing import Annotated, FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

NAME_PATTERN = r"^([A-Za-z]_?)+$"
VERSION_PATTERN = r"^(\$LATEST|[0-9]+)$"
VERSION_LATEST = "$LATEST"
DEFAULT_LOCALE = "en-US"

BOT_NAME_MIN_LENGTH = 2
BOT_NAME_MAX_LENGTH = 50
NAME_MIN_LENGTH = 1
NAME_MAX_LENGTH = 100
VERSION_MAX_LENGTH = 64
DESCRIPTION_MAX_LENGTH = 200

IDLE_SESSION_TTL_MIN = 60
IDLE_SESSION_TTL_MAX = 86400
IDLE_SESSION_TTL_DEFAULT = 300
BOT_MIN_INTENTS = 1
BOT_MAX_INTENTS = 100

MESSAGE_CONTENT_MAX_LENGTH = 1000
MESSAGE_GROUP_NUMBER_MIN = 1
MESSAGE_GROUP_NUMBER_MAX = 5

RESPONSE_CARD_MAX_LENGTH = 50000
STATEMENT_MESSAGES_MIN = 1
STATEMENT_MESSAGES_MAX = 15

PROMPT_MAX_ATTEMPTS_MIN = 1
PROMPT_MAX_ATTEMPTS_MAX = 5


class ContentType(str, Enum):
    PLAIN_TEXT = "PlainText"
    SSML = "SSML"
    CUSTOM_PAYLOAD = "CustomPayload"


class ProcessBehavior(str, Enum):
    SAVE = "SAVE"
    BUILD = "BUILD"


BotName = Annotated[
    str,
    Field(
        min_length=BOT_NAME_MIN_LENGTH,
        max_length=BOT_NAME_MAX_LENGTH,
        pattern=NAME_PATTERN,
    ),
]
LexName = Annotated[
    str,
    Field(min_length=NAME_MIN_LENGTH, max_length=NAME_MAX_LENGTH, pattern=NAME_PATTERN),
]
LexVersion = Annotated[
    str,
    Field(min_length=1, max_length=VERSION_MAX_LENGTH, pattern=VERSION_PATTERN),
]
Description = Annotated[str, Field(max_length=DESCRIPTION_MAX_LENGTH)]
ResponseCard = Optional[
    Annotated[str, Field(min_length=1, max_length=RESPONSE_CARD_MAX_LENGTH)]
]
GroupNumber = Annotated[
    int, Field(ge=MESSAGE_GROUP_NUMBER_MIN, le=MESSAGE_GROUP_NUMBER_MAX)
]


class LexBlock(BaseModel):
    """Immutable nested block; hashable so it can live in a set."""

    model_config = ConfigDict(frozen=True, extra="forbid", use_enum_values=True)


class MessageBlock(LexBlock):
    """A single message a bot can say."""

    content: str = Field(min_length=1, max_length=MESSAGE_CONTENT_MAX_LENGTH)
    content_type: ContentType
    group_number: Optional[GroupNumber] = Field(
        default=None,
        description="Message group the message belongs to; unset when not grouped.",
    )

    @field_validator("group_number", mode="before")
    @classmethod
    def _zero_means_unset(cls, value):
        # Older state snapshots store 0 for "not grouped".
        if value == 0:
            return None
        return value


Messages = Annotated[
    FrozenSet[MessageBlock],
    Field(min_length=STATEMENT_MESSAGES_MIN, max_length=STATEMENT_MESSAGES_MAX),
]


class StatementBlock(LexBlock):
    """A one-shot set of alternative messages."""

    message: Messages
    response_card: ResponseCard = None


class PromptBlock(LexBlock):
    """A statement that is repeated up to ``max_attempts`` times."""

    max_attempts: int = Field(ge=PROMPT_MAX_ATTEMPTS_MIN, le=PROMPT_MAX_ATTEMPTS_MAX)
    message: Messages
    response_card: ResponseCard = None


class IntentBlock(LexBlock):
    """Reference to an externally managed intent."""

    intent_name: LexName
    intent_version: LexVersion


class BotConfig(BaseModel):
    """Desired configuration of a Lex bot."""

    model_config = ConfigDict(extra="forbid", use_enum_values=True)

    name: BotName
    description: Description = ""
    child_directed: bool
    idle_session_ttl_in_seconds: int = Field(
        default=IDLE_SESSION_TTL_DEFAULT,
        ge=IDLE_SESSION_TTL_MIN,
        le=IDLE_SESSION_TTL_MAX,
    )
    abort_statement: List[StatementBlock] = Field(min_length=1, max_length=1)
    clarification_prompt: List[PromptBlock] = Field(min_length=1, max_length=1)
    intent: FrozenSet[IntentBlock] = Field(
        min_length=BOT_MIN_INTENTS, max_length=BOT_MAX_INTENTS
    )
    locale: str = Field(default=DEFAULT_LOCALE, min_length=1)
    process_behavior: ProcessBehavior = Field(
        default=ProcessBehavior.SAVE,
        validate_default=True,
        description="Write-only: Lex never returns it, so reads keep the configured value.",
    )
    version: LexVersion = VERSION_LATEST
    voice_id: Optional[str] = None


class BotState(BotConfig):
    """Flat state record of a bot, including server-computed fields."""

    model_config = ConfigDict(extra="ignore", use_enum_values=True)

    id: str = Field(description="Local identity; the bot name.")
    checksum: Optional[str] = None
    status: Optional[str] = None
    failure_reason: Optional[str] = None


class BotAliasKey(BaseModel):
    """Identity of a bot alias: the pair (bot_name, name)."""

    bot_name: BotName
    name: LexName

    @property
    def id(self) -> str:
        return self.name


class BotAliasConfig(BaseModel):
    """Desired configuration of a Lex bot alias."""

    model_config = ConfigDict(extra="forbid")

    bot_name: BotName
    bot_version: LexVersion
    name: LexName
    description: Description = ""

    @property
    def key(self) -> BotAliasKey:
        return BotAliasKey(bot_name=self.bot_name, name=self.name)


class BotAliasState(BotAliasConfig):
    """Flat state record of a bot alias."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(description="Local identity; the alias name.")
    checksum: Optional[str] = None


class ImportRequest(BaseModel):
    """External identifier of an existing remote resource to adopt."""

    id: str = Field(min_length=1)
