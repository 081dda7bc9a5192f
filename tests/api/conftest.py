import pytest
from unittest.mock import Mock
from fastapi.testclient import TestClient

from imagestation.api.main import create_app
from imagestation.api.dependencies.session import ResultStore, get_model_manager, get_result_store
from imagestation.models.manager import ModelManager, PACKAGE_ROOT
from imagestation.models.prompts import PromptManager


@pytest.fixture
def mock_manager():
    """ModelManager double with real packaged prompts and no vendor clients"""
    manager = Mock(spec=ModelManager)
    manager.app_settings = {}
    manager.config = {"providers": {}, "services": {}, "tasks": {}}
    manager.prompts = PromptManager(PACKAGE_ROOT / "prompts")
    manager.get_stats.return_value = {}
    return manager


@pytest.fixture
def store():
    return ResultStore()


@pytest.fixture
def client(mock_manager, store):
    app = create_app(cors_origins=["http://testserver"])
    app.dependency_overrides[get_model_manager] = lambda: mock_manager
    app.dependency_overrides[get_result_store] = lambda: store
    return TestClient(app)
