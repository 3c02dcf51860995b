"""
test_genres.py - genre controller

Checks:
1. create with an existing name -> redirect to that genre, nothing saved
2. rename onto another genre's name -> error
3. delete refused while books use the genre
4. edit form posts stored text back unchanged
"""

import html
import re

from fastapi.testclient import TestClient

from src.app.routes.genres import DUPLICATE_NAME_MESSAGE
from src.core.store import MemoryDocumentStore
from src.domain.constants import GENRES


class TestGenreList:
    def test_sorted(self, client: TestClient):
        response = client.get("/catalog/genres")

        assert response.template.name == "genre_list.html"
        assert [g.name for g in response.context["genre_list"]] == [
            "Fantasy",
            "Poetry",
            "Science Fiction",
        ]


class TestGenreDetail:
    def test_with_books(self, client: TestClient):
        response = client.get("/catalog/genre/g2")

        assert response.context["genre"].name == "Science Fiction"
        assert [b.title for b in response.context["genre_books"]] == [
            "Dune",
            "The Name of the Wind",
        ]

    def test_missing_is_404(self, client: TestClient):
        assert client.get("/catalog/genre/nope").status_code == 404


class TestGenreCreate:
    def test_success_trimmed(self, client: TestClient, store: MemoryDocumentStore, run):
        response = client.post(
            "/catalog/genre/create", data={"name": "  Horror  "}, follow_redirects=False
        )

        assert response.status_code == 303
        genre_id = response.headers["location"].rsplit("/", 1)[1]
        assert run(store.find_by_id(GENRES, genre_id))["name"] == "Horror"

    def test_existing_name_redirects(self, client: TestClient, store: MemoryDocumentStore, run):
        response = client.post(
            "/catalog/genre/create", data={"name": "Fantasy"}, follow_redirects=False
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/catalog/genre/g1"
        assert run(store.count_documents(GENRES)) == 3

    def test_same_name_twice_single_document(
        self, client: TestClient, store: MemoryDocumentStore, run
    ):
        first = client.post("/catalog/genre/create", data={"name": "Horror"}, follow_redirects=False)
        second = client.post("/catalog/genre/create", data={"name": "Horror"}, follow_redirects=False)

        assert first.headers["location"] == second.headers["location"]
        assert run(store.count_documents(GENRES, {"name": "Horror"})) == 1

    def test_empty_name(self, client: TestClient, store: MemoryDocumentStore, run):
        response = client.post("/catalog/genre/create", data={"name": "   "}, follow_redirects=False)

        assert response.status_code == 200
        assert response.template.name == "genre_form.html"
        assert response.context["errors"][0]["message"] == "Genre name required"
        assert "Genre name required" in response.text
        assert run(store.count_documents(GENRES)) == 3


class TestGenreDelete:
    def test_refused_when_referenced(self, client: TestClient, store: MemoryDocumentStore, run):
        response = client.post(
            "/catalog/genre/g2/delete", data={"genreid": "g2"}, follow_redirects=False
        )

        assert response.status_code == 200
        assert response.template.name == "genre_delete.html"
        assert len(response.context["genre_books"]) == 2
        assert run(store.find_by_id(GENRES, "g2")) is not None

    def test_deleted_when_unused(self, client: TestClient, store: MemoryDocumentStore, run):
        response = client.post(
            "/catalog/genre/g3/delete", data={"genreid": "g3"}, follow_redirects=False
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/catalog/genres"
        assert run(store.find_by_id(GENRES, "g3")) is None

    def test_confirmation_missing_redirects(self, client: TestClient):
        response = client.get("/catalog/genre/nope/delete", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/catalog/genres"


class TestGenreUpdate:
    def test_rename(self, client: TestClient, store: MemoryDocumentStore, run):
        response = client.post(
            "/catalog/genre/g3/update", data={"name": "Verse"}, follow_redirects=False
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/catalog/genre/g3"
        assert run(store.find_by_id(GENRES, "g3"))["name"] == "Verse"

    def test_keep_own_name(self, client: TestClient):
        response = client.post(
            "/catalog/genre/g3/update", data={"name": "Poetry"}, follow_redirects=False
        )

        assert response.status_code == 303

    def test_rename_onto_other_genre(self, client: TestClient, store: MemoryDocumentStore, run):
        response = client.post(
            "/catalog/genre/g3/update", data={"name": "Fantasy"}, follow_redirects=False
        )

        assert response.status_code == 200
        assert response.context["errors"][0]["message"] == DUPLICATE_NAME_MESSAGE
        assert run(store.find_by_id(GENRES, "g3"))["name"] == "Poetry"

    def test_form_prefilled(self, client: TestClient):
        response = client.get("/catalog/genre/g1/update")

        assert response.template.name == "genre_form.html"
        assert 'value="Fantasy"' in response.text

    def test_update_missing_invalid_redirects(self, client: TestClient):
        response = client.post(
            "/catalog/genre/nope/update", data={"name": ""}, follow_redirects=False
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/catalog/genres"

    def test_resubmitted_form_keeps_stored_name(
        self, client: TestClient, store: MemoryDocumentStore, run
    ):
        client.post("/catalog/genre/g3/update", data={"name": "Sci/Fi"}, follow_redirects=False)
        stored = run(store.find_by_id(GENRES, "g3"))["name"]
        assert stored == "Sci&#x2F;Fi"

        form_page = client.get("/catalog/genre/g3/update")
        shown = re.search(r'name="name"[^>]*value="([^"]*)"', form_page.text).group(1)

        response = client.post(
            "/catalog/genre/g3/update",
            data={"name": html.unescape(shown)},
            follow_redirects=False,
        )

        assert response.status_code == 303
        assert run(store.find_by_id(GENRES, "g3"))["name"] == stored
        assert "&amp;#x2F;" not in client.get("/catalog/genre/g3").text
