import pytest

from game.session.manager import SessionManager


@pytest.fixture
def manager(session_manager: SessionManager) -> SessionManager:
    return session_manager
