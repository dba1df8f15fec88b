"""Test the login service and interactive prompts."""

from __future__ import annotations

import asyncio
import threading

import pytest
from conftest import (
    API_URL,
    MemoryCredentialStore,
    MockHub,
    json_body,
    make_token,
)
from pydantic import SecretStr

from hub_tool.exceptions import AuthenticationError, OperationCancelledError
from hub_tool.factory import Factory
from hub_tool.models.credentials import Credentials
from hub_tool.services.login import PASSWORD_ENV, USERNAME_ENV
from hub_tool.services.prompt import Prompter, _hand_back
from hub_tool.storage.auth import SECOND_FACTOR_DETAIL

LOGIN = f"{API_URL}/v2/users/login"
TWO_FACTOR = f"{API_URL}/v2/users/2fa-login"


def _no_input(question: str) -> str:
    raise AssertionError(f"unexpected prompt: {question}")


@pytest.mark.asyncio
async def test_ensure_session_reuses_token(
    factory: Factory, mock_hub: MockHub
) -> None:
    token = make_token(3600)
    store = MemoryCredentialStore(
        Credentials(
            username="fbooth",
            password=SecretStr("hunter2"),
            access_token=SecretStr(token),
        )
    )
    service = factory.create_login_service(
        store, factory.create_prompter(_no_input, _no_input)
    )

    session = await service.ensure_session()

    assert session.token == token
    assert session.username == "fbooth"
    assert mock_hub.requests == []


@pytest.mark.asyncio
async def test_ensure_session_relogin(
    factory: Factory, mock_hub: MockHub
) -> None:
    fresh = make_token(3600)
    mock_hub.add("POST", LOGIN, body={"token": fresh})
    store = MemoryCredentialStore(
        Credentials(
            username="fbooth",
            password=SecretStr("hunter2"),
            access_token=SecretStr(make_token(-60)),
        )
    )
    service = factory.create_login_service(
        store, factory.create_prompter(_no_input, _no_input)
    )

    session = await service.ensure_session()

    assert session.token == fresh
    (request,) = mock_hub.requests
    assert json_body(request) == {"username": "fbooth", "password": "hunter2"}
    (saved,) = store.stored
    assert saved.access_token is not None
    assert saved.access_token.get_secret_value() == fresh
    assert saved.password is not None
    assert saved.password.get_secret_value() == "hunter2"


@pytest.mark.asyncio
async def test_ensure_session_no_credentials(
    factory: Factory, mock_hub: MockHub, store: MemoryCredentialStore
) -> None:
    service = factory.create_login_service(
        store, factory.create_prompter(_no_input, _no_input)
    )
    with pytest.raises(AuthenticationError):
        await service.ensure_session()
    assert mock_hub.requests == []


@pytest.mark.asyncio
async def test_ensure_session_expired_without_password(
    factory: Factory, mock_hub: MockHub
) -> None:
    store = MemoryCredentialStore(
        Credentials(
            username="fbooth", access_token=SecretStr(make_token(-60))
        )
    )
    service = factory.create_login_service(
        store, factory.create_prompter(_no_input, _no_input)
    )
    with pytest.raises(AuthenticationError, match="expired"):
        await service.ensure_session()
    assert mock_hub.requests == []


@pytest.mark.asyncio
async def test_interactive_login_two_factor(
    factory: Factory,
    mock_hub: MockHub,
    store: MemoryCredentialStore,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.delenv(USERNAME_ENV, raising=False)
    monkeypatch.delenv(PASSWORD_ENV, raising=False)
    mock_hub.add(
        "POST",
        LOGIN,
        status=401,
        body={"detail": SECOND_FACTOR_DETAIL, "login_2fa_token": "chal"},
    )
    mock_hub.add(
        "POST", TWO_FACTOR, body={"token": "t2", "refresh_token": "r2"}
    )
    questions: list[str] = []

    def reader(question: str) -> str:
        questions.append(question)
        return "fbooth\n" if question == "Username: " else " 123456 "

    def secret_reader(question: str) -> str:
        questions.append(question)
        return "hunter2"

    service = factory.create_login_service(
        store, factory.create_prompter(reader, secret_reader)
    )

    session = await service.interactive_login()

    assert session.token == "t2"
    assert session.refresh_token.get_secret_value() == "r2"
    assert questions[:2] == ["Username: ", "Password: "]
    assert questions[2].startswith("2FA required")
    (second,) = mock_hub.requested("POST", "/v2/users/2fa-login")
    assert json_body(second)["code"] == "123456"
    (saved,) = store.stored
    assert saved.username == "fbooth"
    assert saved.refresh_token is not None
    assert saved.refresh_token.get_secret_value() == "r2"


@pytest.mark.asyncio
async def test_interactive_login_from_environment(
    factory: Factory,
    mock_hub: MockHub,
    store: MemoryCredentialStore,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv(USERNAME_ENV, "fbooth")
    monkeypatch.setenv(PASSWORD_ENV, "hunter2")
    mock_hub.add("POST", LOGIN, body={"token": "abc"})
    service = factory.create_login_service(
        store, factory.create_prompter(_no_input, _no_input)
    )

    session = await service.interactive_login()

    assert session.token == "abc"
    (request,) = mock_hub.requests
    assert json_body(request) == {"username": "fbooth", "password": "hunter2"}


@pytest.mark.asyncio
async def test_logout(factory: Factory) -> None:
    store = MemoryCredentialStore(
        Credentials(username="fbooth", password=SecretStr("hunter2"))
    )
    service = factory.create_login_service(
        store, factory.create_prompter(_no_input, _no_input)
    )
    service.logout()
    assert store.get() == Credentials()


@pytest.mark.asyncio
async def test_prompt_answers() -> None:
    answers = iter(["  yes ", "n"])
    prompter = Prompter(lambda q: next(answers), lambda q: " secret ")
    assert await prompter.confirm("Delete?")
    assert not await prompter.confirm("Delete?")
    assert await prompter.ask_secret("Password: ") == " secret "


@pytest.mark.asyncio
async def test_prompt_reader_error() -> None:
    def reader(question: str) -> str:
        raise EOFError

    prompter = Prompter(reader, reader)
    with pytest.raises(EOFError):
        await prompter.ask("Username: ")


@pytest.mark.asyncio
async def test_prompt_cancelled() -> None:
    release = threading.Event()
    cancel = asyncio.Event()

    def reader(question: str) -> str:
        release.wait(5)
        return "too late"

    prompter = Prompter(reader, reader, cancel=cancel)
    asyncio.get_running_loop().call_later(0.01, cancel.set)
    try:
        with pytest.raises(OperationCancelledError):
            await prompter.code_prompt()()
    finally:
        release.set()


@pytest.mark.asyncio
async def test_login_cancelled_during_prompt(
    factory: Factory, mock_hub: MockHub, store: MemoryCredentialStore
) -> None:
    mock_hub.add(
        "POST",
        LOGIN,
        status=401,
        body={"detail": SECOND_FACTOR_DETAIL, "login_2fa_token": "chal"},
    )
    release = threading.Event()

    def reader(question: str) -> str:
        release.wait(5)
        return "123456"

    service = factory.create_login_service(
        store, factory.create_prompter(reader, reader)
    )
    factory.cancel.set()
    try:
        with pytest.raises(OperationCancelledError):
            await service.login("fbooth", "hunter2")
    finally:
        release.set()
    assert mock_hub.requested("POST", "/v2/users/2fa-login") == []
    assert store.stored == []


def test_hand_back_after_loop_closed() -> None:
    received: list[str] = []
    loop = asyncio.new_event_loop()
    assert _hand_back(loop, received.append, "early")
    loop.run_until_complete(asyncio.sleep(0))
    loop.close()

    assert not _hand_back(loop, received.append, "late")
    assert received == ["early"]
