import pytest


@pytest.fixture
def category(admin_client):
    return admin_client.post("/blog/categories", json={"name": "Vie du café"}).json()


def publish(client, title, **overrides):
    payload = {"title": title, "content": "<p>Bonjour</p>", "status": "published"}
    payload.update(overrides)
    return client.post("/blog/admin/articles", json=payload)


class TestCategories:
    def test_slug_from_name(self, category):
        assert category["slug"] == "vie-du-cafe"

    def test_duplicate_slug(self, admin_client, category):
        response = admin_client.post("/blog/categories", json={"name": "Vie du Café"})
        assert response.status_code == 409

    def test_public_list(self, guest_client, category):
        assert [c["slug"] for c in guest_client.get("/blog/categories").json()] == ["vie-du-cafe"]

    def test_delete_uncategorizes_articles(self, admin_client, guest_client, category):
        publish(admin_client, "Nouveaux horaires", categoryId=category["id"])
        assert admin_client.delete(f"/blog/categories/{category['id']}").status_code == 200

        article = guest_client.get("/blog/articles/nouveaux-horaires").json()
        assert article["categoryId"] is None

    def test_requires_admin(self, staff_client):
        assert staff_client.post("/blog/categories", json={"name": "News"}).status_code == 403


class TestArticles:
    def test_create_published(self, admin_client, admin_user):
        response = publish(admin_client, "Les bienfaits du café !")
        assert response.status_code == 201
        body = response.json()
        assert body["slug"] == "les-bienfaits-du-cafe"
        assert body["publishedAt"] is not None
        assert body["authorId"] == admin_user.id
        assert body["content"] == "&lt;p&gt;Bonjour&lt;/p&gt;"

    def test_unknown_category(self, admin_client):
        assert publish(admin_client, "Orphelin", categoryId=999).status_code == 404

    def test_drafts_are_not_public(self, admin_client, guest_client):
        publish(admin_client, "Brouillon", status="draft")
        assert guest_client.get("/blog/articles").json()["total"] == 0
        assert guest_client.get("/blog/articles/brouillon").status_code == 404

    def test_reading_counts_views(self, admin_client, guest_client):
        publish(admin_client, "Atelier latte art")
        guest_client.get("/blog/articles/atelier-latte-art")
        second = guest_client.get("/blog/articles/atelier-latte-art")
        assert second.json()["views"] == 2

    def test_pagination_and_category_filter(self, admin_client, guest_client, category):
        for i in range(3):
            publish(admin_client, f"Article {i}", categoryId=category["id"])
        publish(admin_client, "Hors catégorie")

        page = guest_client.get("/blog/articles", params={"page": 2, "limit": 2}).json()
        assert page["total"] == 4
        assert page["pages"] == 2
        assert len(page["articles"]) == 2

        filtered = guest_client.get("/blog/articles", params={"category": "vie-du-cafe"}).json()
        assert filtered["total"] == 3

    def test_publishing_a_draft_sets_date(self, admin_client):
        article = publish(admin_client, "Plus tard", status="draft").json()
        assert article["publishedAt"] is None
        updated = admin_client.patch(f"/blog/admin/articles/{article['id']}", json={"status": "published"})
        assert updated.json()["publishedAt"] is not None

    def test_admin_list_by_status(self, admin_client):
        publish(admin_client, "Une")
        publish(admin_client, "Deux", status="draft")
        drafts = admin_client.get("/blog/admin/articles", params={"status": "draft"}).json()
        assert [a["title"] for a in drafts] == ["Deux"]

    def test_delete(self, admin_client):
        article = publish(admin_client, "Temporaire").json()
        assert admin_client.delete(f"/blog/admin/articles/{article['id']}").status_code == 200
        assert admin_client.get(f"/blog/admin/articles/{article['id']}").status_code == 404
