"""Tests for the tag endpoints."""

from collections.abc import Callable

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from tests.builders import make_tag


class TestListTags:
    """Tests for GET /api/tags."""

    def test_sorted_by_text_with_meta(self, client: TestClient, db_session: Session) -> None:
        make_tag(db_session, "RC")
        make_tag(db_session, "DPG")
        make_tag(db_session, "FLP", archived=True)

        response = client.get("/api/tags", params={"page[limit]": 2})

        assert response.status_code == 200
        body = response.json()
        assert body["meta"] == {"totalCount": 3, "pageCount": 2}
        assert [tag["text"] for tag in body["data"]] == ["DPG", "FLP"]

    def test_filters(self, client: TestClient, db_session: Session) -> None:
        rc = make_tag(db_session, "RC")
        make_tag(db_session, "DPG")
        make_tag(db_session, "FLP", archived=True)

        archived = client.get("/api/tags", params={"filter[archived]": "true"}).json()
        by_ids = client.get("/api/tags", params={"filter[ids]": str(rc.id)}).json()
        by_texts = client.get("/api/tags", params={"filter[texts]": "DPG,FLP"}).json()

        assert [tag["text"] for tag in archived["data"]] == ["FLP"]
        assert archived["data"][0]["archived"] is True
        assert isinstance(archived["data"][0]["archivedAt"], int)
        assert [tag["text"] for tag in by_ids["data"]] == ["RC"]
        assert [tag["text"] for tag in by_texts["data"]] == ["DPG", "FLP"]

    def test_invalid_ids(self, client: TestClient) -> None:
        response = client.get("/api/tags", params={"filter[ids]": "1,abc"})

        assert response.status_code == 400


class TestGetTag:
    """Tests for tag lookups."""

    def test_by_id(self, client: TestClient, db_session: Session) -> None:
        tag = make_tag(db_session, "RC")

        response = client.get(f"/api/tags/{tag.id}")

        assert response.status_code == 200
        assert response.json()["data"]["text"] == "RC"

    def test_by_name(self, client: TestClient, db_session: Session) -> None:
        make_tag(db_session, "RC")

        response = client.get("/api/tags/name", params={"name": "RC"})

        assert response.status_code == 200
        assert response.json()["data"]["text"] == "RC"

    def test_not_found(self, client: TestClient) -> None:
        response = client.get("/api/tags/999")

        assert response.status_code == 404
        assert response.json()["errors"][0]["detail"] == "Tag with this id (999) could not be found"


class TestWriteTags:
    """Tests for tag creation and update."""

    def test_create_requires_session(self, client: TestClient) -> None:
        response = client.post("/api/tags", json={"text": "RC"})

        assert response.status_code == 401

    def test_create(self, client: TestClient, auth_headers: Callable[..., dict[str, str]]) -> None:
        response = client.post(
            "/api/tags",
            json={"text": "RC", "color": "#FF0000"},
            headers=auth_headers(),
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["text"] == "RC"
        assert data["color"] == "#FF0000"
        assert data["archived"] is False

    def test_create_duplicate(
        self,
        client: TestClient,
        db_session: Session,
        auth_headers: Callable[..., dict[str, str]],
    ) -> None:
        make_tag(db_session, "RC")

        response = client.post("/api/tags", json={"text": "RC"}, headers=auth_headers())

        assert response.status_code == 409

    def test_create_rejects_spaces_and_bad_colors(
        self, client: TestClient, auth_headers: Callable[..., dict[str, str]]
    ) -> None:
        assert client.post("/api/tags", json={"text": "R C"}, headers=auth_headers()).status_code == 400
        assert (
            client.post("/api/tags", json={"text": "RC", "color": "red"}, headers=auth_headers()).status_code
            == 400
        )

    def test_archive(
        self,
        client: TestClient,
        db_session: Session,
        auth_headers: Callable[..., dict[str, str]],
    ) -> None:
        tag = make_tag(db_session, "RC")

        response = client.patch(
            f"/api/tags/{tag.id}",
            json={"archived": True, "description": "Run coordination"},
            headers=auth_headers(),
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["archived"] is True
        assert data["description"] == "Run coordination"
