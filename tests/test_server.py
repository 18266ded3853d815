import pytest
from conftest import FakeProvider
from fastapi.testclient import TestClient

from terminalai.errors import AuthFailed, ProviderTimeout
from terminalai.server import create_app


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def client(provider):
    return TestClient(create_app(lambda: provider))


def test_list_skills(client):
    response = client.get("/skills")

    assert response.status_code == 200
    names = [skill["name"] for skill in response.json()]
    assert sorted(names) == ["cp", "find", "grep", "ps", "resolve", "tai"]


def test_skill_commands(client, provider):
    provider.response = "mkdir -p backup\ncp *.txt backup/\nDone."

    response = client.post("/commands", json={"skill": "cp", "prompt": "copy txt files to backup"})

    assert response.status_code == 200
    body = response.json()
    assert body["skill"] == "cp"
    assert body["commands"] == ["mkdir -p backup", "cp *.txt backup/"]
    assert body["response"].endswith("Done.")


def test_orchestrator_is_default(client, provider):
    provider.response = "COMMAND: df -h"

    response = client.post("/commands", json={"prompt": "how full is my disk"})

    assert response.status_code == 200
    assert response.json()["commands"] == ["df -h"]


def test_out_of_scope(client, provider):
    response = client.post("/commands", json={"skill": "grep", "prompt": "copy files to backup"})

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert "out of scope" in detail["error"]
    assert "tai -p" in detail["hint"]
    assert provider.calls == []


def test_unknown_skill(client):
    response = client.post("/commands", json={"skill": "tar", "prompt": "pack it"})
    assert response.status_code == 400


def test_empty_prompt(client):
    response = client.post("/commands", json={"skill": "cp", "prompt": "   "})
    assert response.status_code == 400


@pytest.mark.parametrize("error, status", [(ProviderTimeout("too slow"), 504), (AuthFailed("bad key"), 502)])
def test_provider_errors(client, provider, error, status):
    provider.error = error

    response = client.post("/commands", json={"skill": "ps", "prompt": "list processes"})

    assert response.status_code == status
    assert response.json()["detail"]["error"] == str(error)
