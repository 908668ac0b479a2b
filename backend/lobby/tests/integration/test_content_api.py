"""Integration tests for the vocabulary content endpoints."""


class TestCategories:
    def test_lists_seeded_categories(self, host_client):
        response = host_client.get("/api/content/categories")
        assert response.status_code == 200
        categories = {c["name"]: c for c in response.json()["categories"]}
        assert categories["animals"]["count"] == 3
        assert categories["animals"]["subcategory_count"] == 2
        assert categories["animals"]["has_sentences"] is True
        assert categories["food"]["has_sentences"] is False

    def test_requires_session(self, anon_client):
        assert anon_client.get("/api/content/categories").status_code == 401


class TestQuestions:
    def test_all_subcategories(self, host_client):
        response = host_client.get("/api/content/questions", params={"category": "animals"})
        assert [item["english"] for item in response.json()["items"]] == ["cat", "dog", "cow"]

    def test_single_subcategory(self, host_client):
        response = host_client.get("/api/content/questions", params={"category": "animals", "subcategory": 2})
        assert [item["english"] for item in response.json()["items"]] == ["cow"]

    def test_sentence_mode_requires_sentences(self, host_client):
        response = host_client.get("/api/content/questions", params={"category": "animals", "mode": "sentence"})
        items = response.json()["items"]
        assert len(items) == 1
        assert items[0]["sentence_english"] == "The cat sleeps."

    def test_unknown_category_is_empty(self, host_client):
        response = host_client.get("/api/content/questions", params={"category": "planets"})
        assert response.json() == {"items": []}

    def test_missing_category(self, host_client):
        response = host_client.get("/api/content/questions")
        assert response.status_code == 422

    def test_bad_mode(self, host_client):
        response = host_client.get("/api/content/questions", params={"category": "animals", "mode": "essay"})
        assert response.status_code == 422
