from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from lex_provider.core.config import settings
from lex_provider.core.errors import RemoteServiceError, classify_client_error

logger = logging.getLogger(__name__)


class LexModelsClient:
    """Thin wrapper around the boto3 ``lex-models`` client with error classification."""

    def __init__(
        self,
        *,
        client: Optional[Any] = None,
        region_name: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        profile_name: Optional[str] = None,
        max_attempts: Optional[int] = None,
    ) -> None:
        if client is None:
            session = boto3.session.Session(
                profile_name=profile_name or settings.aws_profile,
                region_name=region_name or settings.aws_region,
            )
            client = session.client(
                "lex-models",
                endpoint_url=endpoint_url or settings.lex_endpoint_url,
                config=Config(
                    retries={
                        "max_attempts": max_attempts or settings.lex_max_attempts,
                        "mode": "standard",
                    }
                ),
            )
        self._client = client

    def put_bot(self, **params: Any) -> Dict[str, Any]:
        return self._call("PutBot", params.get("name", "-"), self._client.put_bot, params)

    def get_bot(self, *, name: str, version_or_alias: str) -> Dict[str, Any]:
        return self._call(
            "GetBot",
            name,
            self._client.get_bot,
            {"name": name, "versionOrAlias": version_or_alias},
        )

    def delete_bot(self, *, name: str) -> Dict[str, Any]:
        return self._call("DeleteBot", name, self._client.delete_bot, {"name": name})

    def put_bot_alias(self, **params: Any) -> Dict[str, Any]:
        return self._call(
            "PutBotAlias",
            _alias_id(params.get("botName", "-"), params.get("name", "-")),
            self._client.put_bot_alias,
            params,
        )

    def get_bot_alias(self, *, bot_name: str, name: str) -> Dict[str, Any]:
        return self._call(
            "GetBotAlias",
            _alias_id(bot_name, name),
            self._client.get_bot_alias,
            {"botName": bot_name, "name": name},
        )

    def delete_bot_alias(self, *, bot_name: str, name: str) -> Dict[str, Any]:
        return self._call(
            "DeleteBotAlias",
            _alias_id(bot_name, name),
            self._client.delete_bot_alias,
            {"botName": bot_name, "name": name},
        )

    def _call(
        self,
        operation: str,
        resource_id: str,
        method: Callable[..., Dict[str, Any]],
        params: Dict[str, Any],
    ) -> Dict[str, Any]:
        logger.debug("Calling %s for %s", operation, resource_id)
        try:
            response = method(**params)
        except ClientError as exc:
            raise classify_client_error(
                exc, operation=operation, resource_id=resource_id
            ) from exc
        except BotoCoreError as exc:
            # Transport and credential failures never reach Lex; no error code.
            raise RemoteServiceError(
                operation=operation,
                resource_id=resource_id,
                code=type(exc).__name__,
                message=str(exc),
            ) from exc
        response = dict(response or {})
        response.pop("ResponseMetadata", None)
        return response


def _alias_id(bot_name: str, name: str) -> str:
    return f"{bot_name}.{name}"
