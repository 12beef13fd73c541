import unittest

from fastapi.testclient import TestClient

from postboard.app import create_app
from postboard.config import get_settings
from postboard.dependencies import get_database, get_storage_client
from postboard.storage import InMemoryStorageClient
from postboard.tests.fixtures import Seeder, make_database, upload_settings


class BackendApiTests(unittest.TestCase):
    def setUp(self):
        self.app = create_app()
        self.db = make_database()
        self.storage = InMemoryStorageClient(bucket="uploads")
        self.settings = upload_settings()
        self.app.dependency_overrides[get_database] = lambda: self.db
        self.app.dependency_overrides[get_storage_client] = lambda: self.storage
        self.app.dependency_overrides[get_settings] = lambda: self.settings
        self.client = TestClient(self.app)
        self.seed = Seeder(self.db)
        self.seed.user(42, "alice")

    def create_post(self):
        response = self.client.post("/api/posts", json={}, headers={"X-User-Id": "42"})
        self.assertEqual(response.status_code, 201)
        return response.json()

    def test_s3_upload(self):
        response = self.client.post(
            "/api/s3-upload",
            json={"filename": "a.png", "type": "avatar"},
            headers={"X-User-Id": "42"},
        )
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["key"], "42/avatar/a.png")
        self.assertEqual(payload["bucket"], "uploads")
        self.assertIn("expires=3600", payload["url"])

    def test_s3_upload_requires_caller(self):
        response = self.client.post("/api/s3-upload", json={"filename": "a.png"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"error": "Unauthorized"})

    def test_s3_upload_reports_missing_settings(self):
        self.settings = upload_settings(s3_upload_secret=None)
        response = self.client.post(
            "/api/s3-upload", json={"filename": "a.png"}, headers={"X-User-Id": "42"}
        )
        self.assertEqual(response.status_code, 500)
        self.assertIn("S3_UPLOAD_SECRET", response.json()["error"])

    def test_create_update_and_fetch_post(self):
        post = self.create_post()
        self.assertEqual(post["user_id"], 42)

        response = self.client.patch(
            f"/api/posts/{post['id']}", json={"title": "Castle", "detail": ""}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["title"], "Castle")
        self.assertIsNone(response.json()["detail"])

        response = self.client.get(f"/api/posts/{post['id']}")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["user"]["username"], "alice")

    def test_create_post_requires_caller(self):
        response = self.client.post("/api/posts", json={})
        self.assertEqual(response.status_code, 401)

    def test_missing_post_is_404(self):
        self.assertEqual(self.client.get("/api/posts/404").status_code, 404)
        self.assertEqual(self.client.delete("/api/posts/404").status_code, 404)
        response = self.client.patch("/api/posts/404", json={"title": "x"})
        self.assertEqual(response.status_code, 404)
        self.assertIn("error", response.json())

    def test_images_tags_and_feed(self):
        post = self.create_post()
        image = self.client.post(
            f"/api/posts/{post['id']}/images",
            json={"url": "https://x/1.png", "meta": {"hashes": {"lora": "ffff"}}},
            headers={"X-User-Id": "42"},
        )
        self.assertEqual(image.status_code, 201)
        self.assertEqual(image.json()["resources"][0]["name"], "lora")

        tag = self.client.post(f"/api/posts/{post['id']}/tags", json={"name": "Sky"})
        self.assertEqual(tag.status_code, 200)
        self.assertEqual(tag.json()["name"], "sky")

        feed = self.client.get("/api/posts", params={"limit": 10})
        self.assertEqual(feed.status_code, 200)
        self.assertEqual([item["id"] for item in feed.json()["items"]], [post["id"]])
        self.assertIsNone(feed.json()["next_cursor"])

        feed = self.client.get(
            "/api/posts", params={"excluded_tag_ids": str(tag.json()["id"])}
        )
        self.assertEqual(feed.json()["items"], [])

        search = self.client.get("/api/post-tags", params={"query": "sk"})
        self.assertEqual([t["name"] for t in search.json()], ["sky"])

        removed = self.client.delete(f"/api/posts/{post['id']}/tags/{tag.json()['id']}")
        self.assertEqual(removed.status_code, 204)

        deleted = self.client.delete(f"/api/posts/{post['id']}")
        self.assertEqual(deleted.status_code, 204)

    def test_feed_rejects_malformed_id_lists(self):
        response = self.client.get("/api/posts", params={"excluded_user_ids": "1,x"})
        self.assertEqual(response.status_code, 400)

    def test_reorder_and_update_image(self):
        post = self.create_post()
        ids = [
            self.client.post(
                f"/api/posts/{post['id']}/images",
                json={"url": f"https://x/{n}.png"},
                headers={"X-User-Id": "42"},
            ).json()["id"]
            for n in range(2)
        ]
        response = self.client.post(
            f"/api/posts/{post['id']}/images/reorder",
            json={"image_ids": list(reversed(ids))},
        )
        self.assertEqual(response.status_code, 204)

        edit = self.client.get(f"/api/posts/{post['id']}/edit").json()
        self.assertEqual([image["id"] for image in edit["images"]], list(reversed(ids)))

        response = self.client.patch(f"/api/post-images/{ids[0]}", json={"nsfw": True})
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["nsfw"])


if __name__ == "__main__":
    unittest.main()
