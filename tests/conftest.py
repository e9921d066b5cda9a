from collections import defaultdict, deque
from typing import Any, Deque, Dict, List, Optional, Tuple

import pytest
from botocore.exceptions import ClientError

from lex_provider.clients.lex_models import LexModelsClient
from lex_provider.services.bot import BotResource
from lex_provider.services.bot_alias import BotAliasResource

OPERATIONS = {
    "put_bot": "PutBot",
    "get_bot": "GetBot",
    "delete_bot": "DeleteBot",
    "put_bot_alias": "PutBotAlias",
    "get_bot_alias": "GetBotAlias",
    "delete_bot_alias": "DeleteBotAlias",
}


def client_error(code: str, operation: str, message: str = "") -> ClientError:
    return ClientError(
        {
            "Error": {"Code": code, "Message": message or code},
            "ResponseMetadata": {"HTTPStatusCode": 400},
        },
        operation,
    )


class FakeClock:
    """Monotonic clock that only moves when something sleeps."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeLexModels:
    """In-memory stand-in for the boto3 ``lex-models`` client."""

    def __init__(self) -> None:
        self.bots: Dict[str, Dict[str, Any]] = {}
        self.aliases: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.alias_linger_polls = 0
        self._lingering: Dict[Tuple[str, str], int] = {}
        self._failures: Dict[str, Deque[str]] = defaultdict(deque)
        self._always_fail: Dict[str, str] = {}
        self._raises: Dict[str, BaseException] = {}
        self._checksums = 0

    def fail(self, method: str, code: str, times: Optional[int] = 1) -> None:
        """Make ``method`` raise ``code``; ``times=None`` fails forever."""
        if times is None:
            self._always_fail[method] = code
        else:
            self._failures[method].extend([code] * times)

    def raise_on(self, method: str, exc: BaseException) -> None:
        """Make the next call to ``method`` raise ``exc`` as is."""
        self._raises[method] = exc

    def calls_to(self, method: str) -> List[Dict[str, Any]]:
        return [params for name, params in self.calls if name == method]

    def _record(self, method: str, params: Dict[str, Any]) -> None:
        self.calls.append((method, params))
        if method in self._raises:
            raise self._raises.pop(method)
        if method in self._always_fail:
            raise client_error(self._always_fail[method], OPERATIONS[method])
        if self._failures[method]:
            raise client_error(self._failures[method].popleft(), OPERATIONS[method])

    def _next_checksum(self) -> str:
        self._checksums += 1
        return f"checksum-{self._checksums}"

    def put_bot(self, **params: Any) -> Dict[str, Any]:
        self._record("put_bot", params)
        name = params["name"]
        existing = self.bots.get(name)
        if existing and params.get("checksum") != existing["checksum"]:
            raise client_error("PreconditionFailedException", "PutBot")
        bot = {key: value for key, value in params.items() if key != "processBehavior"}
        bot.update(
            checksum=self._next_checksum(),
            status="READY" if params.get("processBehavior") == "BUILD" else "NOT_BUILT",
            version="$LATEST",
            ResponseMetadata={"HTTPStatusCode": 200},
        )
        self.bots[name] = bot
        return dict(bot)

    def get_bot(self, **params: Any) -> Dict[str, Any]:
        self._record("get_bot", params)
        bot = self.bots.get(params["name"])
        if bot is None:
            raise client_error("NotFoundException", "GetBot")
        return dict(bot)

    def delete_bot(self, **params: Any) -> Dict[str, Any]:
        self._record("delete_bot", params)
        if self.bots.pop(params["name"], None) is None:
            raise client_error("NotFoundException", "DeleteBot")
        return {"ResponseMetadata": {"HTTPStatusCode": 204}}

    def put_bot_alias(self, **params: Any) -> Dict[str, Any]:
        self._record("put_bot_alias", params)
        key = (params["botName"], params["name"])
        existing = self.aliases.get(key)
        if existing and params.get("checksum") != existing["checksum"]:
            raise client_error("PreconditionFailedException", "PutBotAlias")
        alias = dict(params, checksum=self._next_checksum())
        self.aliases[key] = alias
        return dict(alias)

    def get_bot_alias(self, **params: Any) -> Dict[str, Any]:
        self._record("get_bot_alias", params)
        key = (params["botName"], params["name"])
        if key in self._lingering:
            if self._lingering[key] > 0:
                self._lingering[key] -= 1
                return {"botName": key[0], "name": key[1], "botVersion": "$LATEST"}
            del self._lingering[key]
        alias = self.aliases.get(key)
        if alias is None:
            raise client_error("NotFoundException", "GetBotAlias")
        return dict(alias)

    def delete_bot_alias(self, **params: Any) -> Dict[str, Any]:
        self._record("delete_bot_alias", params)
        key = (params["botName"], params["name"])
        if self.aliases.pop(key, None) is None:
            raise client_error("NotFoundException", "DeleteBotAlias")
        if self.alias_linger_polls is None:
            self._lingering[key] = float("inf")
        elif self.alias_linger_polls:
            self._lingering[key] = self.alias_linger_polls
        return {}


def message(content: str = "Sorry, I am not able to assist at this time", **extra: Any) -> Dict[str, Any]:
    return {"content": content, "content_type": "PlainText", **extra}


def bot_payload(**overrides: Any) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "name": "OrderFlowers",
        "description": "Bot to order flowers on the behalf of a user",
        "child_directed": False,
        "abort_statement": [{"message": [message()]}],
        "clarification_prompt": [
            {
                "max_attempts": 2,
                "message": [message("I didn't understand you, what would you like to do?")],
            }
        ],
        "intent": [{"intent_name": "OrderFlowers", "intent_version": "1"}],
        "process_behavior": "BUILD",
        "voice_id": "Salli",
    }
    payload.update(overrides)
    return payload


def alias_payload(**overrides: Any) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "bot_name": "OrderFlowers",
        "bot_version": "1",
        "name": "OrderFlowersProd",
        "description": "Production version of the OrderFlowers bot.",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def fake_lex() -> FakeLexModels:
    return FakeLexModels()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def lex_client(fake_lex: FakeLexModels) -> LexModelsClient:
    return LexModelsClient(client=fake_lex)


@pytest.fixture
def bot_resource(lex_client: LexModelsClient, clock: FakeClock) -> BotResource:
    return BotResource(
        client=lex_client,
        update_timeout=60,
        delete_timeout=300,
        retry_base_delay=1.0,
        retry_max_delay=8.0,
        clock=clock,
        sleep=clock.sleep,
    )


@pytest.fixture
def alias_resource(lex_client: LexModelsClient, clock: FakeClock) -> BotAliasResource:
    return BotAliasResource(
        client=lex_client,
        update_timeout=60,
        delete_timeout=300,
        retry_base_delay=1.0,
        retry_max_delay=8.0,
        clock=clock,
        sleep=clock.sleep,
    )
