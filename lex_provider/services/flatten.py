"""Translate Lex model-building responses back into flat state blocks."""

from __future__ import annotations

from typing import Any, FrozenSet, Iterable, List, Mapping, Optional, TypeVar

from lex_provider.schemas.lex import (
    BotAliasState,
    BotState,
    DEFAULT_LOCALE,
    IDLE_SESSION_TTL_DEFAULT,
    IntentBlock,
    MessageBlock,
    ProcessBehavior,
    PromptBlock,
    StatementBlock,
    VERSION_LATEST,
)

T = TypeVar("T")


def wrap_single(item: T) -> List[T]:
    """Store a nested object in its single-cardinality list block."""
    return [item]


def flatten_messages(
    messages: Optional[Iterable[Mapping[str, Any]]],
) -> FrozenSet[MessageBlock]:
    return frozenset(
        MessageBlock(
            content=message["content"],
            content_type=message["contentType"],
            group_number=message.get("groupNumber"),
        )
        for message in messages or ()
    )


def flatten_statement(statement: Mapping[str, Any]) -> StatementBlock:
    return StatementBlock(
        message=flatten_messages(statement.get("messages")),
        response_card=statement.get("responseCard"),
    )


def flatten_prompt(prompt: Mapping[str, Any]) -> PromptBlock:
    return PromptBlock(
        max_attempts=prompt["maxAttempts"],
        message=flatten_messages(prompt.get("messages")),
        response_card=prompt.get("responseCard"),
    )


def flatten_intents(
    intents: Optional[Iterable[Mapping[str, Any]]],
) -> FrozenSet[IntentBlock]:
    return frozenset(
        IntentBlock(
            intent_name=intent["intentName"],
            intent_version=intent["intentVersion"],
        )
        for intent in intents or ()
    )


def flatten_bot(
    response: Mapping[str, Any], process_behavior: Optional[str] = None
) -> BotState:
    """
    Convert a ``GetBot`` response into a bot state record.

    ``processBehavior`` is never returned by Lex; the last configured value is
    carried over so reads do not report a spurious change.
    """
    state = {
        "id": response["name"],
        "name": response["name"],
        "abort_statement": wrap_single(flatten_statement(response["abortStatement"])),
        "checksum": response.get("checksum"),
        "child_directed": response.get("childDirected", False),
        "clarification_prompt": wrap_single(
            flatten_prompt(response["clarificationPrompt"])
        ),
        "description": response.get("description") or "",
        "failure_reason": response.get("failureReason"),
        "idle_session_ttl_in_seconds": response.get(
            "idleSessionTTLInSeconds", IDLE_SESSION_TTL_DEFAULT
        ),
        "intent": flatten_intents(response.get("intents")),
        "locale": response.get("locale") or DEFAULT_LOCALE,
        "process_behavior": process_behavior or ProcessBehavior.SAVE.value,
        "status": response.get("status"),
        "version": response.get("version") or VERSION_LATEST,
    }
    if response.get("voiceId") is not None:
        state["voice_id"] = response["voiceId"]
    return BotState.model_validate(state)


def flatten_bot_alias(response: Mapping[str, Any]) -> BotAliasState:
    return BotAliasState(
        id=response["name"],
        bot_name=response["botName"],
        bot_version=response["botVersion"],
        checksum=response.get("checksum"),
        description=response.get("description") or "",
        name=response["name"],
    )
