import json
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool

from ai_builder.db.session import Database
from ai_builder.gateways import CompilerGateway, LLMGateway
from ai_builder.llm_providers import LLMProvider, ProviderConfig
from ai_builder.main import app, configure_services
from ai_builder.middleware.rate_limit import rate_limiter
from ai_builder.models import ContractType
from ai_builder.storage import DocumentStore


COMPILER_URL = "https://compiler.test/api/v1/starknet"

GENERATED_CODE = "#[starknet::contract]\nmod Token {\n}"

EXAMPLE_CONTRACT = "#[starknet::contract]\nmod Example {\n}"

ARTIFACT = {
    "sierra": {"sierra_program": ["0x1", "0x2"], "contract_class_version": "0.1.0"},
    "casm": {"prime": "0x800000000000011000000000000000000000000000000000000000000000001", "bytecode": []},
}

AUDIT_FINDINGS = {
    "audits": [
        {"title": "Missing access control", "severity": "High", "description": "Anyone can mint."},
        {"title": "Unchecked arithmetic", "severity": "Low", "description": "Balances may underflow."},
        {"title": "No events", "severity": "Low", "description": "Transfers emit nothing."},
    ]
}


def text_response(content: Optional[str]) -> SimpleNamespace:
    message = SimpleNamespace(content=content, tool_calls=None)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def tool_call_response(arguments: Any) -> SimpleNamespace:
    call = SimpleNamespace(function=SimpleNamespace(name="output_formatter", arguments=arguments))
    message = SimpleNamespace(content=None, tool_calls=[call])
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeCompletion:
    """Stands in for litellm.acompletion; answers text or tool calls by request shape."""

    def __init__(self):
        self.calls: List[Dict[str, Any]] = []
        self.text: Optional[str] = f"Here you go:\n```cairo\n{GENERATED_CODE}\n```"
        self.audit: Any = json.dumps(AUDIT_FINDINGS)
        self.text_error: Optional[Exception] = None
        self.structured_error: Optional[Exception] = None

    async def __call__(self, **kwargs):
        self.calls.append(kwargs)
        if "tools" in kwargs:
            if self.structured_error:
                raise self.structured_error
            return tool_call_response(self.audit)
        if self.text_error:
            raise self.text_error
        return text_response(self.text)

    @property
    def structured_calls(self) -> List[Dict[str, Any]]:
        return [c for c in self.calls if "tools" in c]

    @property
    def text_calls(self) -> List[Dict[str, Any]]:
        return [c for c in self.calls if "tools" not in c]


class FakeCompiler:
    """httpx.MockTransport handler recording submitted source."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.handler: Callable[[httpx.Request], httpx.Response] = self.succeed

    def succeed(self, request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": True, "message": "Compiled", "artifact": ARTIFACT})

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    @property
    def submitted(self) -> List[Dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests]


@pytest_asyncio.fixture
async def db():
    database = Database(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await database.connect()
    await database.create_all()
    yield database
    await database.disconnect()


@pytest_asyncio.fixture
async def documents(db):
    store = DocumentStore(db)
    await store.add_example(ContractType.token, EXAMPLE_CONTRACT)
    await store.add_prompt(ContractType.token, "Capped supply", "Cap the supply at 10M tokens")
    await store.add_prompt(ContractType.token, "Pausable", "Let the owner pause transfers")
    return store


@pytest.fixture
def fake_completion():
    return FakeCompletion()


@pytest.fixture
def llm(fake_completion):
    config = ProviderConfig(provider=LLMProvider.OPENAI, model_name="gpt-test", api_key="sk-test")
    return LLMGateway(config=config, temperature=0.2, structured_temperature=0.0, seed=1337, timeout=5, completion=fake_completion)


@pytest.fixture
def fake_compiler():
    return FakeCompiler()


@pytest_asyncio.fixture
async def compiler(fake_compiler):
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake_compiler)) as client:
        yield CompilerGateway(client, COMPILER_URL, "test-key")


@pytest_asyncio.fixture
async def api_client(db, documents, llm, compiler):
    configure_services(app, db=db, llm=llm, compiler=compiler, language_docs="Cairo reference")
    rate_limiter.reset()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
