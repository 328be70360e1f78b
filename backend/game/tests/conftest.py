import random

import pytest

from game.logic.settings import GameSettings
from game.logic.words import WordBank
from game.messaging.router import MessageRouter
from game.server.app import create_app
from game.server.settings import GameServerSettings
from game.session.manager import SessionManager
from game.session.registry import RoomRegistry
from game.tests.helpers.rooms import SECRET_WORD, WORDS
from game.tests.mocks import MockConnection


@pytest.fixture
def word_bank():
    return WordBank(WORDS, rng=random.Random(7))


@pytest.fixture
def game_settings():
    return GameSettings(round_advance_delay_seconds=0)


@pytest.fixture
def registry():
    return RoomRegistry(rng=random.Random(42))


@pytest.fixture
def session_manager(word_bank, game_settings, registry):
    return SessionManager(word_bank, settings=game_settings, registry=registry)


@pytest.fixture
def message_router(session_manager):
    return MessageRouter(session_manager)


@pytest.fixture
def mock_connection():
    return MockConnection()


@pytest.fixture
def server_settings():
    return GameServerSettings(cors_origins=["http://localhost:3000"], round_advance_delay_seconds=0)


@pytest.fixture
def app(server_settings, session_manager, message_router):
    return create_app(
        settings=server_settings,
        session_manager=session_manager,
        message_router=message_router,
    )


@pytest.fixture
def secret_word():
    return SECRET_WORD
