from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.models.base import BaseModel
from app.api.dependencies import get_db
from app.models import User, UserRole, UserStatus
from app.api.auth import create_access_token
from app.utils.auth import get_password_hash


def setup_app():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    BaseModel.metadata.create_all(engine)
    Session = sessionmaker(bind=engine, expire_on_commit=False)

    def override_db():
        db = Session()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_db
    return Session


def create_user(Session, email="foo@test.com", status=UserStatus.ACTIVE, role=UserRole.CLIENT):
    db = Session()
    user = User(
        email=email,
        password=get_password_hash("secret123"),
        first_name="Foo",
        last_name="Bar",
        role=role,
        status=status,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    db.close()
    return user


def _register(client, **overrides):
    payload = {
        "email": "New.Person@Test.com",
        "password": "longenough",
        "first_name": "New",
        "last_name": "Person",
    }
    payload.update(overrides)
    return client.post("/auth/register", json=payload)


def test_register_client_and_talent():
    setup_app()
    client = TestClient(app)

    res = _register(client)
    assert res.status_code == 201
    body = res.json()
    assert body["email"] == "new.person@test.com"
    assert body["role"] == "client"
    assert body["status"] == "active"
    assert "password" not in body

    res = _register(client, email="talent@test.com", role="talent")
    assert res.status_code == 201
    assert res.json()["status"] == "pending"
    app.dependency_overrides.clear()


def test_register_rejects_admin_and_duplicates():
    setup_app()
    client = TestClient(app)

    res = _register(client, role="admin")
    assert res.status_code == 403
    assert res.json()["detail"]["field_errors"] == {"role": "forbidden"}

    assert _register(client).status_code == 201
    res = _register(client, email="new.person@test.com")
    assert res.status_code == 409
    assert res.json()["detail"] == "That email already has an account. Sign in instead."

    res = _register(client, email="short@test.com", password="short")
    assert res.status_code == 422
    app.dependency_overrides.clear()


def test_login_returns_token_and_sets_cookie():
    Session = setup_app()
    create_user(Session)
    client = TestClient(app)

    res = client.post("/auth/login", data={"username": "FOO@test.com", "password": "secret123"})
    assert res.status_code == 200
    body = res.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["email"] == "foo@test.com"
    assert "access_token=" in res.headers["set-cookie"]
    assert "HttpOnly" in res.headers["set-cookie"]

    # The cookie alone authenticates browser requests
    me = client.get("/auth/me")
    assert me.status_code == 200
    assert me.json()["email"] == "foo@test.com"

    headers = {"Authorization": f"Bearer {body['access_token']}"}
    assert TestClient(app).get("/auth/me", headers=headers).status_code == 200
    app.dependency_overrides.clear()


def test_login_failures():
    Session = setup_app()
    create_user(Session)
    create_user(Session, email="gone@test.com", status=UserStatus.SUSPENDED)
    client = TestClient(app)

    res = client.post("/auth/login", data={"username": "foo@test.com", "password": "wrong"})
    assert res.status_code == 401
    res = client.post("/auth/login", data={"username": "nobody@test.com", "password": "secret123"})
    assert res.status_code == 401
    res = client.post("/auth/login", data={"username": "gone@test.com", "password": "secret123"})
    assert res.status_code == 403
    app.dependency_overrides.clear()


def test_logout_clears_cookie():
    Session = setup_app()
    create_user(Session)
    client = TestClient(app)
    client.post("/auth/login", data={"username": "foo@test.com", "password": "secret123"})

    res = client.post("/auth/logout")
    assert res.status_code == 200
    assert res.json() == {"message": "logged out"}
    assert "Max-Age=0" in res.headers["set-cookie"]
    app.dependency_overrides.clear()


def test_me_requires_a_valid_token():
    Session = setup_app()
    create_user(Session, email="gone@test.com", status=UserStatus.SUSPENDED)
    client = TestClient(app)

    assert client.get("/auth/me").status_code == 401
    assert client.get("/auth/me", headers={"Authorization": "Bearer garbage"}).status_code == 401
    ghost = create_access_token({"sub": "ghost@test.com"})
    assert client.get("/auth/me", headers={"Authorization": f"Bearer {ghost}"}).status_code == 401
    suspended = create_access_token({"sub": "gone@test.com"})
    assert client.get("/auth/me", headers={"Authorization": f"Bearer {suspended}"}).status_code == 403
    app.dependency_overrides.clear()


def test_profile_update_edits_own_details():
    Session = setup_app()
    create_user(Session)
    create_user(Session, email="taken@test.com")
    client = TestClient(app)
    client.post("/auth/login", data={"username": "foo@test.com", "password": "secret123"})

    res = client.patch("/auth/profile", json={"first_name": "Fay", "phone": "+1 555 0100"})
    assert res.status_code == 200
    assert res.json()["first_name"] == "Fay"
    assert res.json()["last_name"] == "Bar"
    assert res.json()["phone"] == "+1 555 0100"
    assert "set-cookie" not in res.headers

    res = client.patch("/auth/profile", json={"email": "Taken@test.com"})
    assert res.status_code == 409
    assert res.json()["detail"]["field_errors"] == {"email": "duplicate"}
    res = client.patch("/auth/profile", json={"last_name": None})
    assert res.status_code == 422
    res = client.patch("/auth/profile", json={"email": "not-an-email"})
    assert res.status_code == 422

    # A new address comes with a fresh cookie so the session survives
    res = client.patch("/auth/profile", json={"email": "Fay@Test.com"})
    assert res.status_code == 200
    assert res.json()["email"] == "fay@test.com"
    assert "access_token=" in res.headers["set-cookie"]
    assert client.get("/auth/me").json()["email"] == "fay@test.com"
    assert client.patch("/auth/profile", json={"phone": None}).json()["phone"] is None
    app.dependency_overrides.clear()


def test_profile_update_requires_login():
    setup_app()
    client = TestClient(app)
    assert client.patch("/auth/profile", json={"first_name": "X"}).status_code == 401
    app.dependency_overrides.clear()
