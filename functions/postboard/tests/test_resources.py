import unittest

from postboard.resources import get_image_generation_process, resolve_detected_resources
from postboard.tests.fixtures import Seeder, make_database


class GenerationProcessTests(unittest.TestCase):
    def test_no_meta(self):
        self.assertIsNone(get_image_generation_process(None))
        self.assertIsNone(get_image_generation_process({}))

    def test_classification(self):
        cases = [
            ({"prompt": "a cat"}, "txt2img"),
            ({"Denoising strength": 0.5}, "img2img"),
            ({"Denoise strength": 0.5, "Hires upscale": 2}, "txt2imgHiRes"),
            ({"Denoising strength": 0.4, "First pass strength": 0.7}, "txt2imgHiRes"),
            ({"Mask blur": 4, "Denoising strength": 0.75}, "inpainting"),
        ]
        for meta, expected in cases:
            self.assertEqual(get_image_generation_process(meta), expected, meta)


class ResolveDetectedResourcesTests(unittest.TestCase):
    def setUp(self):
        self.db = make_database()
        seed = Seeder(self.db)
        seed.model_version(1, 100, "Dreamy")
        seed.model_file(100, "Model", "ABCDEF01")
        seed.model_file(100, "Pruned Model", "12345678")
        seed.model_version(2, 200, "Shadow")
        seed.model_file(200, "Negative", "deadbeef")
        seed.model_file(200, "VAE", "0badf00d")

    def resolve(self, meta, model_version_id=None):
        with self.db.Session() as session:
            return resolve_detected_resources(session, meta, model_version_id)

    def test_no_hashes(self):
        self.assertEqual(self.resolve(None), [])
        self.assertEqual(self.resolve({"prompt": "x"}), [])
        self.assertEqual(self.resolve(None, 100), [{"model_version_id": 100}])

    def test_hashes_match_case_insensitively(self):
        resources = self.resolve({"hashes": {"model": "abcdef01", "neg": "DEADBEEF"}})
        self.assertEqual(
            resources, [{"model_version_id": 100}, {"model_version_id": 200}]
        )

    def test_two_hashes_for_one_version_yield_one_resource(self):
        resources = self.resolve({"hashes": {"model": "ABCDEF01", "pruned": "12345678"}})
        self.assertEqual(resources, [{"model_version_id": 100}])

    def test_unknown_and_excluded_file_types_keep_their_name(self):
        resources = self.resolve({"hashes": {"vae": "0badf00d", "lora": "ffff"}})
        self.assertEqual(resources, [{"name": "vae"}, {"name": "lora"}])

    def test_explicit_version_goes_first_and_is_deduplicated(self):
        resources = self.resolve(
            {"hashes": {"lora": "ffff", "model": "abcdef01"}}, model_version_id=100
        )
        self.assertEqual(resources, [{"model_version_id": 100}, {"name": "lora"}])


if __name__ == "__main__":
    unittest.main()
