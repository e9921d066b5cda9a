"""Translate configuration blocks into Lex model-building request payloads."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence, TypeVar

from lex_provider.core.errors import SingleObjectError
from lex_provider.schemas.lex import (
    BotAliasConfig,
    BotConfig,
    IntentBlock,
    MessageBlock,
    PromptBlock,
    StatementBlock,
)

T = TypeVar("T")


def unwrap_single(items: Sequence[T], field: str = "block") -> T:
    """Return the only item of a single-cardinality list block."""
    if len(items) != 1:
        raise SingleObjectError(field, len(items))
    return items[0]


def expand_messages(messages: Iterable[MessageBlock]) -> List[Dict[str, Any]]:
    expanded: List[Dict[str, Any]] = []
    for message in messages:
        item: Dict[str, Any] = {
            "content": message.content,
            "contentType": message.content_type,
        }
        if message.group_number:
            item["groupNumber"] = message.group_number
        expanded.append(item)
    return expanded


def expand_statement(statement: StatementBlock) -> Dict[str, Any]:
    expanded: Dict[str, Any] = {"messages": expand_messages(statement.message)}
    if statement.response_card:
        expanded["responseCard"] = statement.response_card
    return expanded


def expand_prompt(prompt: PromptBlock) -> Dict[str, Any]:
    expanded: Dict[str, Any] = {
        "maxAttempts": prompt.max_attempts,
        "messages": expand_messages(prompt.message),
    }
    if prompt.response_card:
        expanded["responseCard"] = prompt.response_card
    return expanded


def expand_intents(intents: Iterable[IntentBlock]) -> List[Dict[str, str]]:
    return [
        {"intentName": intent.intent_name, "intentVersion": intent.intent_version}
        for intent in intents
    ]


def expand_bot(config: BotConfig, checksum: Optional[str] = None) -> Dict[str, Any]:
    """
    Build the keyword arguments of ``PutBot``.

    ``checksum`` is passed on updates only; Lex rejects a put without the
    current checksum for an existing bot.
    """
    params: Dict[str, Any] = {
        "name": config.name,
        "abortStatement": expand_statement(
            unwrap_single(config.abort_statement, "abort_statement")
        ),
        "childDirected": config.child_directed,
        "clarificationPrompt": expand_prompt(
            unwrap_single(config.clarification_prompt, "clarification_prompt")
        ),
        "idleSessionTTLInSeconds": config.idle_session_ttl_in_seconds,
        "intents": expand_intents(config.intent),
        "locale": config.locale,
        "processBehavior": config.process_behavior,
    }
    if config.description:
        params["description"] = config.description
    if config.voice_id:
        params["voiceId"] = config.voice_id
    if checksum:
        params["checksum"] = checksum
    return params


def expand_bot_alias(
    config: BotAliasConfig, checksum: Optional[str] = None
) -> Dict[str, Any]:
    """Build the keyword arguments of ``PutBotAlias``."""
    params: Dict[str, Any] = {
        "botName": config.bot_name,
        "botVersion": config.bot_version,
        "name": config.name,
    }
    if config.description:
        params["description"] = config.description
    if checksum:
        params["checksum"] = checksum
    return params
