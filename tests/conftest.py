import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from database.db import init_db, make_engine
from services.auth_service import AuthClient
from services.data_client import DataClient, DataStoreError
from services.grade_store import GradeStore
from services.notifications import NotificationCenter
from services.store_registry import StoreRegistry

TEST_SECRET = "test-secret-key-for-gradebook-suite-0001"


@pytest.fixture
def session_factory(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'gradebook_test.db'}")
    init_db(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def data_client(session_factory):
    return DataClient(session_factory)


@pytest.fixture
def auth(session_factory):
    return AuthClient(session_factory, secret_key=TEST_SECRET, expire_minutes=5)


@pytest.fixture
def owner_id(auth):
    return auth.sign_up("homeroom@example.com", "password1").user.id


@pytest.fixture
def owner_client(data_client, owner_id):
    return data_client.for_owner(owner_id)


@pytest.fixture
def store(owner_client):
    return GradeStore(owner_client, NotificationCenter())


@pytest.fixture
def inject_failure(monkeypatch):
    """client.execute를 바꿔 (table, action) 호출만 실패시킴"""

    def _inject(client, table, action, code="XX000"):
        original = client.execute
        calls = []

        def execute(query):
            if query.table_name == table and query.action == action:
                calls.append(query)
                raise DataStoreError("injected failure", code=code)
            return original(query)

        monkeypatch.setattr(client, "execute", execute)
        return calls

    return _inject


@pytest.fixture
def registry(data_client, auth):
    return StoreRegistry(data_client, auth)


@pytest.fixture
def api(auth, registry):
    from dependencies.security import get_auth_client, get_registry
    from main import app

    app.dependency_overrides[get_auth_client] = lambda: auth
    app.dependency_overrides[get_registry] = lambda: registry
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def token(api):
    response = api.post("/v1/auth/signup", json={"email": "api@example.com", "password": "password1"})
    return response.json()["data"]["accessToken"]


@pytest.fixture
def headers(token):
    return {"Authorization": f"Bearer {token}"}
